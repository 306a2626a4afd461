from datetime import timedelta

import pytest

from campus_events.core.clock import utcnow
from campus_events.core.exceptions import (
    Forbidden, InvalidTransition, LockedField, NotFound, ValidationFailed,
)
from campus_events.models import EventStatus
from campus_events.schemas.event import EventCreate, EventUpdate, FormFieldCreate, MerchandiseItemCreate
from campus_events.services import event_lifecycle, order_service, registration_service

from conftest import make_merch_event, make_normal_event, make_participants


def _create_payload(**overrides):
    now = utcnow()
    values = dict(
        name="Hack Night",
        description="Overnight build session",
        event_type="normal",
        registration_deadline=now + timedelta(days=3),
        start_date=now + timedelta(days=5),
        end_date=now + timedelta(days=6),
        registration_limit=50,
    )
    values.update(overrides)
    return EventCreate(**values)


class TestCreateEvent:
    def test_created_events_start_as_draft(self, db, organizer):
        event = event_lifecycle.create_event(db, organizer, _create_payload(
            form_fields=[FormFieldCreate(kind="text", name="team", title="Team")],
        ))

        assert event.status == EventStatus.DRAFT.value
        assert event.organizer_id == organizer.id
        assert event.form_locked is False
        assert event.registered_count == 0
        assert [f.name for f in event.form_fields] == ["team"]

    def test_normal_event_cannot_carry_merchandise(self, db, organizer):
        with pytest.raises(ValidationFailed):
            event_lifecycle.create_event(db, organizer, _create_payload(
                merchandise=[MerchandiseItemCreate(name="Mug", stock_quantity=3)],
            ))

    def test_merchandise_event_cannot_carry_form_fields(self, db, organizer):
        with pytest.raises(ValidationFailed):
            event_lifecycle.create_event(db, organizer, _create_payload(
                event_type="merchandise",
                form_fields=[FormFieldCreate(kind="text", name="team", title="Team")],
            ))

    def test_end_before_start_rejected(self, db, organizer):
        now = utcnow()
        with pytest.raises(ValidationFailed):
            event_lifecycle.create_event(db, organizer, _create_payload(
                start_date=now + timedelta(days=5),
                end_date=now + timedelta(days=4),
            ))


class TestDraftUpdates:
    def test_draft_edits_any_field(self, db, organizer):
        event = make_normal_event(db, organizer, status=EventStatus.DRAFT.value)

        updated = event_lifecycle.update_event(db, event, organizer, EventUpdate(
            name="Rapid Tournament",
            registration_fee=0,
            form_fields=[FormFieldCreate(kind="number", name="rating", title="Rating")],
        ))

        assert updated.name == "Rapid Tournament"
        assert [f.name for f in updated.form_fields] == ["rating"]
        assert updated.status == EventStatus.DRAFT.value

    def test_publish_normal_event_requires_form_fields(self, db, organizer):
        event = make_normal_event(db, organizer, status=EventStatus.DRAFT.value)

        with pytest.raises(ValidationFailed):
            event_lifecycle.update_event(db, event, organizer, EventUpdate(
                form_fields=[], status="published",
            ))

    def test_publish_merchandise_event_requires_items(self, db, organizer):
        event = event_lifecycle.create_event(db, organizer, _create_payload(event_type="merchandise"))

        with pytest.raises(ValidationFailed):
            event_lifecycle.update_event(db, event, organizer, EventUpdate(status="published"))

    def test_publish_announces_to_webhook(self, db, organizer, outbox):
        event = make_normal_event(db, organizer, status=EventStatus.DRAFT.value)

        published = event_lifecycle.update_event(db, event, organizer, EventUpdate(status="published"))

        assert published.status == EventStatus.PUBLISHED.value
        assert outbox["announcements"] == [
            {"webhook_url": organizer.discord_webhook, "event_id": event.id},
        ]

    def test_publish_without_webhook_is_silent(self, db, other_organizer, outbox):
        event = make_normal_event(db, other_organizer, status=EventStatus.DRAFT.value)

        event_lifecycle.update_event(db, event, other_organizer, EventUpdate(status="published"))

        assert outbox["announcements"] == []

    def test_draft_cannot_skip_to_ongoing(self, db, organizer):
        event = make_normal_event(db, organizer, status=EventStatus.DRAFT.value)

        with pytest.raises(InvalidTransition):
            event_lifecycle.update_event(db, event, organizer, EventUpdate(status="ongoing"))

    @pytest.mark.parametrize("field", ["event_type", "name", "start_date", "registration_fee", "form_fields"])
    def test_required_fields_cannot_be_cleared(self, db, organizer, field):
        event = make_normal_event(db, organizer, status=EventStatus.DRAFT.value)

        with pytest.raises(ValidationFailed):
            event_lifecycle.update_event(db, event, organizer, EventUpdate(**{field: None}))

        db.refresh(event)
        assert event.event_type == "normal"
        assert event.name

    def test_cleared_description_becomes_empty(self, db, organizer):
        event = make_normal_event(db, organizer, status=EventStatus.DRAFT.value)

        updated = event_lifecycle.update_event(db, event, organizer, EventUpdate(description=None))

        assert updated.description == ""


class TestPublishedUpdates:
    def test_description_deadline_and_limit_are_editable(self, db, organizer, normal_event):
        later = normal_event.registration_deadline + timedelta(days=1)

        updated = event_lifecycle.update_event(db, normal_event, organizer, EventUpdate(
            description="Now with prizes",
            registration_deadline=later,
            registration_limit=40,
        ))

        assert updated.description == "Now with prizes"
        assert updated.registration_deadline == later
        assert updated.registration_limit == 40

    def test_other_fields_are_locked(self, db, organizer, normal_event):
        with pytest.raises(LockedField):
            event_lifecycle.update_event(db, normal_event, organizer, EventUpdate(name="Renamed"))

    def test_deadline_cannot_move_earlier(self, db, organizer, normal_event):
        earlier = normal_event.registration_deadline - timedelta(days=1)

        with pytest.raises(ValidationFailed):
            event_lifecycle.update_event(db, normal_event, organizer, EventUpdate(
                registration_deadline=earlier,
            ))

    def test_limit_cannot_decrease(self, db, organizer):
        event = make_normal_event(db, organizer, registration_limit=30)

        with pytest.raises(ValidationFailed):
            event_lifecycle.update_event(db, event, organizer, EventUpdate(registration_limit=20))

    @pytest.mark.parametrize("target", ["ongoing", "closed", "completed"])
    def test_allowed_status_moves(self, db, organizer, normal_event, target):
        updated = event_lifecycle.update_event(db, normal_event, organizer, EventUpdate(status=target))

        assert updated.status == target

    def test_cannot_return_to_draft(self, db, organizer, normal_event):
        with pytest.raises(InvalidTransition):
            event_lifecycle.update_event(db, normal_event, organizer, EventUpdate(status="draft"))


class TestLockedStates:
    @pytest.mark.parametrize("status", ["ongoing", "completed", "closed"])
    def test_only_status_changes_allowed(self, db, organizer, status):
        event = make_normal_event(db, organizer, status=status)

        with pytest.raises(LockedField):
            event_lifecycle.update_event(db, event, organizer, EventUpdate(description="late edit"))

    def test_update_without_status_is_locked(self, db, organizer):
        event = make_normal_event(db, organizer, status=EventStatus.ONGOING.value)

        with pytest.raises(LockedField):
            event_lifecycle.update_event(db, event, organizer, EventUpdate())

    def test_ongoing_can_complete(self, db, organizer):
        event = make_normal_event(db, organizer, status=EventStatus.ONGOING.value)

        updated = event_lifecycle.update_event(db, event, organizer, EventUpdate(status="completed"))

        assert updated.status == EventStatus.COMPLETED.value

    def test_closed_cannot_reopen(self, db, organizer):
        event = make_normal_event(db, organizer, status=EventStatus.CLOSED.value)

        with pytest.raises(InvalidTransition):
            event_lifecycle.update_event(db, event, organizer, EventUpdate(status="published"))


class TestFormLock:
    def test_first_registration_locks_form(self, db, organizer, participant):
        event = make_normal_event(db, organizer)
        registration_service.register(db, event, participant)
        db.refresh(event)

        assert event.form_locked is True

    def test_locked_form_rejects_field_edits(self, db, organizer, participant):
        event = make_normal_event(db, organizer)
        registration_service.register(db, event, participant)
        db.refresh(event)

        with pytest.raises(LockedField):
            event_lifecycle.update_event(db, event, organizer, EventUpdate(
                form_fields=[FormFieldCreate(kind="text", name="team", title="Team")],
            ))

    def test_locked_merchandise_rejects_item_edits(self, db, organizer, participant):
        event = make_merch_event(db, organizer)
        order_service.purchase(db, event, participant, item_id=event.merchandise[0].id, quantity=1)
        db.refresh(event)

        with pytest.raises(LockedField):
            event_lifecycle.update_event(db, event, organizer, EventUpdate(
                merchandise=[MerchandiseItemCreate(name="Cap", stock_quantity=10)],
            ))


class TestAccess:
    def test_non_owner_cannot_update(self, db, other_organizer, normal_event):
        with pytest.raises(Forbidden):
            event_lifecycle.update_event(db, normal_event, other_organizer, EventUpdate(description="x"))

    def test_missing_event(self, db):
        with pytest.raises(NotFound):
            event_lifecycle.get_event(db, 9999)

    def test_allowed_transitions(self):
        assert event_lifecycle.allowed_transitions("draft") == {"draft", "published"}
        assert "draft" not in event_lifecycle.allowed_transitions("published")
        assert event_lifecycle.allowed_transitions("unknown") == set()


class TestReadSide:
    def test_detail_reports_participant_registration(self, db, organizer, participant, other_participant):
        event = make_normal_event(db, organizer)
        reg, _ = registration_service.register(db, event, participant)

        detail = event_lifecycle.get_event_detail(db, event.id, participant)
        other = event_lifecycle.get_event_detail(db, event.id, other_participant)

        assert detail["registration_count"] == 1
        assert detail["participant_registered"] is True
        assert detail["participant_registration_id"] == reg.id
        assert other["participant_registered"] is False

    def test_list_filters_by_status(self, db, organizer):
        make_normal_event(db, organizer, status=EventStatus.DRAFT.value)
        published = make_normal_event(db, organizer)

        events = event_lifecycle.list_events(db, status="published")

        assert [e.id for e in events] == [published.id]

    def test_trending_orders_by_recent_registrations(self, db, organizer):
        quiet = make_normal_event(db, organizer)
        busy = make_normal_event(db, organizer)
        for p in make_participants(db, 3):
            registration_service.register(db, busy, p)
        registration_service.register(db, quiet, make_participants(db, 1, prefix="q")[0])

        trending = event_lifecycle.trending_events(db)

        assert [row["event"].id for row in trending] == [busy.id, quiet.id]
        assert trending[0]["count"] == 3
