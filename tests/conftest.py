import os
from datetime import timedelta
from decimal import Decimal

os.environ.setdefault("SEND_EMAILS", "false")

import pytest
from fastapi.testclient import TestClient

from campus_events.core.clock import utcnow
from campus_events.db.database import Base, create_engine_from_url, create_session_factory, get_db
from campus_events.main import app
from campus_events.models import (
    Organizer, Participant, Event, EventType, EventStatus, FormField, MerchandiseItem,
)
from campus_events.services import notification_service


@pytest.fixture
def engine(tmp_path):
    engine = create_engine_from_url(f"sqlite:///{tmp_path / 'campus_events_test.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def outbox(monkeypatch):
    """Capture outbound notifications instead of sending them."""
    sent = {"emails": [], "announcements": []}

    def fake_send_ticket_email(to_email, participant_name, event_name, ticket,
                               item_name=None, quantity=None, approved=False):
        sent["emails"].append({
            "to": to_email,
            "event_name": event_name,
            "ticket_id": ticket.ticket_id,
            "item_name": item_name,
            "quantity": quantity,
            "approved": approved,
        })

    def fake_announce_event(webhook_url, event_id, *args):
        sent["announcements"].append({"webhook_url": webhook_url, "event_id": event_id})

    monkeypatch.setattr(notification_service, "send_ticket_email", fake_send_ticket_email)
    monkeypatch.setattr(notification_service, "announce_event", fake_announce_event)
    return sent


@pytest.fixture
def organizer(db):
    org = Organizer(name="Chess Club", email="chess@clubs.example.org",
                    discord_webhook="https://discord.example.com/api/webhooks/1/abc")
    db.add(org)
    db.commit()
    return org


@pytest.fixture
def other_organizer(db):
    org = Organizer(name="Music Club", email="music@clubs.example.org")
    db.add(org)
    db.commit()
    return org


@pytest.fixture
def participant(db):
    p = Participant(first_name="Asha", last_name="Rao", email="asha@students.example.org",
                    iiit_participant=True)
    db.add(p)
    db.commit()
    return p


@pytest.fixture
def other_participant(db):
    p = Participant(first_name="Ravi", last_name="Kumar", email="ravi@students.example.org",
                    iiit_participant=True)
    db.add(p)
    db.commit()
    return p


@pytest.fixture
def outsider(db):
    p = Participant(first_name="Maya", last_name="Shah", email="maya@example.com",
                    iiit_participant=False)
    db.add(p)
    db.commit()
    return p


def make_participants(db, count, prefix="p"):
    people = []
    for i in range(count):
        p = Participant(first_name=f"{prefix}{i}", last_name="Test",
                        email=f"{prefix}{i}@students.example.org", iiit_participant=True)
        db.add(p)
        people.append(p)
    db.commit()
    return people


def make_normal_event(db, organizer, status=EventStatus.PUBLISHED.value, **overrides):
    now = utcnow()
    values = dict(
        organizer_id=organizer.id,
        name="Blitz Tournament",
        description="Five minute games",
        event_type=EventType.NORMAL.value,
        non_iiit_eligibility=False,
        registration_deadline=now + timedelta(days=7),
        start_date=now + timedelta(days=10),
        end_date=now + timedelta(days=11),
        registration_limit=None,
        registration_fee=Decimal("100.00"),
        tags=["chess"],
        status=status,
    )
    values.update(overrides)
    event = Event(**values)
    event.form_fields = [
        FormField(position=0, kind="text", name="team", title="Team name"),
        FormField(position=1, kind="dropdown", name="level", title="Level",
                  choices=["beginner", "advanced"]),
        FormField(position=2, kind="checkbox", name="lunch", title="Need lunch"),
    ]
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


def make_merch_event(db, organizer, stock=5, limit=2, status=EventStatus.PUBLISHED.value, **overrides):
    now = utcnow()
    values = dict(
        organizer_id=organizer.id,
        name="Club Hoodies",
        description="Winter batch",
        event_type=EventType.MERCHANDISE.value,
        non_iiit_eligibility=True,
        registration_deadline=now + timedelta(days=7),
        start_date=now + timedelta(days=10),
        end_date=now + timedelta(days=11),
        registration_limit=None,
        registration_fee=Decimal("0"),
        tags=["merch"],
        status=status,
    )
    values.update(overrides)
    event = Event(**values)
    event.merchandise = [
        MerchandiseItem(name="Hoodie", sizes=["S", "M", "L"], stock_quantity=stock,
                        purchase_limit_per_participant=limit),
    ]
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


@pytest.fixture
def normal_event(db, organizer):
    return make_normal_event(db, organizer)


@pytest.fixture
def merch_event(db, organizer):
    return make_merch_event(db, organizer)


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def actor_headers(actor, role):
    return {"X-Actor-Id": str(actor.id), "X-Actor-Role": role}
