# File: campus_events/services/event_lifecycle.py
"""
Event lifecycle: draft -> published -> {ongoing, closed} -> completed/closed.

Which fields an organizer may edit depends on the current status, and
form fields / merchandise are frozen for good once the first
registration exists (``Event.form_locked``).
"""
import logging
from datetime import timedelta
from typing import Dict, List, Optional, Set
from fastapi import BackgroundTasks
from sqlalchemy import func
from sqlalchemy.orm import Session
from campus_events import crud
from campus_events.core.clock import utcnow
from campus_events.core.exceptions import (
    NotFound, Forbidden, LockedField, InvalidTransition, ValidationFailed,
)
from campus_events.crud.event import build_form_fields, build_merchandise
from campus_events.models.event import Event, EventType, EventStatus
from campus_events.models.organizer import Organizer
from campus_events.models.participant import Participant
from campus_events.models.registration import Registration
from campus_events.schemas.event import EventCreate, EventUpdate
from campus_events.services import notification_service
from campus_events.services.form_responses import validate_field_definitions

logger = logging.getLogger(__name__)

TRANSITIONS: Dict[str, Set[str]] = {
    EventStatus.DRAFT.value: {EventStatus.DRAFT.value, EventStatus.PUBLISHED.value},
    EventStatus.PUBLISHED.value: {
        EventStatus.CLOSED.value, EventStatus.ONGOING.value, EventStatus.COMPLETED.value,
    },
    EventStatus.ONGOING.value: {EventStatus.COMPLETED.value, EventStatus.CLOSED.value},
    EventStatus.COMPLETED.value: {EventStatus.COMPLETED.value, EventStatus.CLOSED.value},
    EventStatus.CLOSED.value: {EventStatus.COMPLETED.value, EventStatus.CLOSED.value},
}

PUBLISHED_EDITABLE = {"description", "registration_deadline", "registration_limit"}
NOT_NULL_FIELDS = (
    "name", "event_type", "non_iiit_eligibility", "registration_deadline",
    "start_date", "end_date", "registration_fee", "form_fields", "merchandise",
)
OPEN_STATUSES = {EventStatus.PUBLISHED.value, EventStatus.ONGOING.value}


def allowed_transitions(status: str) -> Set[str]:
    return set(TRANSITIONS.get(status, set()))


def is_open_for_registration(event: Event) -> bool:
    return event.status in OPEN_STATUSES


def _validate_structure(event_type: str, form_fields, merchandise, start_date, end_date) -> None:
    if event_type == EventType.NORMAL.value and merchandise:
        raise ValidationFailed("Normal events cannot carry merchandise items")
    if event_type == EventType.MERCHANDISE.value and form_fields:
        raise ValidationFailed("Merchandise events cannot carry form fields")
    if form_fields:
        validate_field_definitions(form_fields)
    if start_date and end_date and end_date < start_date:
        raise ValidationFailed("Event end date must not be before its start date")


def _require_owner(event: Event, organizer: Organizer) -> None:
    if event.organizer_id != organizer.id:
        raise Forbidden("Forbidden: not event owner")


# ---------------------------
# Create / read
# ---------------------------
def create_event(db: Session, organizer: Organizer, data: EventCreate) -> Event:
    _validate_structure(
        data.event_type.value, data.form_fields, data.merchandise, data.start_date, data.end_date,
    )
    event = crud.event.create_with_organizer(db, obj_in=data, organizer_id=organizer.id)
    logger.info(f"Event created as draft: {event.id} by organizer {organizer.id}")
    return event


def get_event(db: Session, event_id: int) -> Event:
    event = crud.event.get(db, id=event_id)
    if not event:
        raise NotFound("Event not found")
    return event


def get_event_detail(db: Session, event_id: int, participant: Optional[Participant] = None) -> dict:
    event = get_event(db, event_id)
    registration_count = crud.registration.count_active(db, event_id=event.id)

    participant_registration_id = None
    if participant is not None:
        existing = crud.registration.get_by_pair(db, participant_id=participant.id, event_id=event.id)
        if existing:
            participant_registration_id = existing.id

    return {
        "event": event,
        "registration_count": registration_count,
        "participant_registered": participant_registration_id is not None,
        "participant_registration_id": participant_registration_id,
    }


def list_events(
    db: Session, organizer_id: Optional[int] = None, status: Optional[str] = None,
    skip: int = 0, limit: int = 100,
) -> List[Event]:
    if organizer_id is not None:
        events = crud.event.get_by_organizer(db, organizer_id=organizer_id)
        if status:
            events = [e for e in events if e.status == status]
        return events
    return crud.event.get_filtered(db, status=status, skip=skip, limit=limit)


def trending_events(db: Session, limit: int = 5, window_hours: int = 24) -> List[dict]:
    """Events with the most registrations created in the last ``window_hours``."""
    since = utcnow() - timedelta(hours=window_hours)
    rows = (
        db.query(Registration.event_id, func.count(Registration.id).label("count"))
        .filter(Registration.created_at >= since)
        .group_by(Registration.event_id)
        .order_by(func.count(Registration.id).desc())
        .limit(limit)
        .all()
    )
    result = []
    for event_id, count in rows:
        event = crud.event.get(db, id=event_id)
        if event:
            result.append({"event": event, "count": count})
    return result


# ---------------------------
# Update
# ---------------------------
def update_event(
    db: Session,
    event: Event,
    organizer: Organizer,
    data: EventUpdate,
    background_tasks: Optional[BackgroundTasks] = None,
) -> Event:
    _require_owner(event, organizer)

    changes = data.model_dump(exclude_unset=True)
    new_status = changes.pop("status", None)
    if new_status is not None:
        new_status = EventStatus(new_status).value

    if event.form_locked and ("form_fields" in changes or "merchandise" in changes):
        raise LockedField("Form fields and merchandise are locked after the first registration")

    current = event.status
    if current == EventStatus.DRAFT.value:
        return _update_draft(db, event, organizer, data, changes, new_status, background_tasks)
    if current == EventStatus.PUBLISHED.value:
        return _update_published(db, event, changes, new_status)
    return _update_locked(db, event, changes, new_status)


def _update_draft(db, event, organizer, data, changes, new_status, background_tasks):
    if new_status is not None and new_status not in TRANSITIONS[EventStatus.DRAFT.value]:
        raise InvalidTransition(f"Draft events can only move to published, not {new_status}")

    cleared = [field for field in NOT_NULL_FIELDS if field in changes and changes[field] is None]
    if cleared:
        raise ValidationFailed(f"Fields cannot be null: {', '.join(cleared)}")
    if "description" in changes and changes["description"] is None:
        changes["description"] = ""

    event_type = changes["event_type"].value if "event_type" in changes else event.event_type
    form_fields = data.form_fields if "form_fields" in changes else event.form_fields
    merchandise = data.merchandise if "merchandise" in changes else event.merchandise
    _validate_structure(
        event_type,
        form_fields,
        merchandise,
        changes.get("start_date", event.start_date),
        changes.get("end_date", event.end_date),
    )

    publishing = new_status == EventStatus.PUBLISHED.value
    if publishing:
        if event_type == EventType.NORMAL.value and not form_fields:
            raise ValidationFailed("At least one form field is required to publish")
        if event_type == EventType.MERCHANDISE.value and not merchandise:
            raise ValidationFailed("Merchandise events must define merchandise items")

    for field in ("form_fields", "merchandise"):
        changes.pop(field, None)
    if "event_type" in changes:
        changes["event_type"] = event_type
    for field, value in changes.items():
        setattr(event, field, value)

    if "form_fields" in data.model_fields_set:
        event.form_fields.clear()
        db.flush()
        event.form_fields = build_form_fields(data.form_fields)
    if "merchandise" in data.model_fields_set:
        event.merchandise.clear()
        db.flush()
        event.merchandise = build_merchandise(data.merchandise)

    if new_status is not None:
        event.status = new_status

    db.add(event)
    db.commit()
    db.refresh(event)

    if publishing:
        logger.info(f"Event {event.id} published by organizer {organizer.id}")
        if organizer.discord_webhook:
            notification_service.dispatch(
                background_tasks,
                notification_service.announce_event,
                organizer.discord_webhook,
                event.id,
                event.name,
                event.description,
                event.event_type,
                event.start_date,
                event.registration_deadline,
            )
    return event


def _update_published(db, event, changes, new_status):
    locked = sorted(set(changes) - PUBLISHED_EDITABLE)
    if locked:
        raise LockedField(f"Cannot modify locked field: {', '.join(locked)}")

    if new_status is not None and new_status not in TRANSITIONS[EventStatus.PUBLISHED.value]:
        raise InvalidTransition(f"Invalid status transition: published -> {new_status}")

    if "registration_deadline" in changes:
        new_deadline = changes["registration_deadline"]
        if new_deadline is None or new_deadline < event.registration_deadline:
            raise ValidationFailed("Cannot reduce registration deadline")
        event.registration_deadline = new_deadline

    if "registration_limit" in changes:
        new_limit = changes["registration_limit"]
        if new_limit is not None and new_limit < (event.registration_limit or 0):
            raise ValidationFailed("Cannot decrease registration limit")
        event.registration_limit = new_limit

    if "description" in changes:
        event.description = changes["description"] or ""

    if new_status is not None:
        event.status = new_status
        logger.info(f"Event {event.id} moved published -> {new_status}")

    db.add(event)
    db.commit()
    db.refresh(event)
    return event


def _update_locked(db, event, changes, new_status):
    if changes or new_status is None:
        raise LockedField("Event locked; no edits allowed")
    if new_status not in TRANSITIONS.get(event.status, set()):
        raise InvalidTransition(f"Invalid status transition: {event.status} -> {new_status}")

    previous = event.status
    event.status = new_status
    db.add(event)
    db.commit()
    db.refresh(event)
    logger.info(f"Event {event.id} moved {previous} -> {new_status}")
    return event
