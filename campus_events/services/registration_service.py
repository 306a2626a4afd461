# File: campus_events/services/registration_service.py
"""
Registration for normal events.

Seats are claimed with a conditional increment of ``Event.registered_count``
and the (participant, event) unique constraint makes the create path safe
under concurrent calls: whoever loses the insert race gets the winner's
registration back instead of an error.
"""
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple
from fastapi import BackgroundTasks
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from campus_events import crud
from campus_events.core.clock import utcnow
from campus_events.core.exceptions import (
    NotFound, Forbidden, NotOpen, DeadlinePassed, CapacityReached, NotEligible, AlreadyExists,
)
from campus_events.models.event import Event
from campus_events.models.organizer import Organizer
from campus_events.models.participant import Participant
from campus_events.models.registration import Registration, RegistrationStatus
from campus_events.services import notification_service
from campus_events.services.event_lifecycle import is_open_for_registration
from campus_events.services.form_responses import validate_responses
from campus_events.services.ticket_service import issue_ticket, attach_ticket

logger = logging.getLogger(__name__)


def check_can_join(event: Event, participant: Participant, now=None) -> None:
    """Openness, deadline and eligibility gates shared by registrations and purchases."""
    if not is_open_for_registration(event):
        raise NotOpen("Event not open for registration")
    now = now or utcnow()
    if event.registration_deadline and now > event.registration_deadline:
        raise DeadlinePassed("Registration deadline passed")
    if not event.non_iiit_eligibility and not participant.iiit_participant:
        raise NotEligible("You are not eligible to register for this IIIT-only event")


def register(
    db: Session,
    event: Event,
    participant: Participant,
    form_responses: Optional[Dict[str, Any]] = None,
    background_tasks: Optional[BackgroundTasks] = None,
) -> Tuple[Registration, bool]:
    if not event.is_normal:
        raise NotOpen("Event is not a normal event")
    check_can_join(event, participant)
    responses = validate_responses(event.form_fields, form_responses)

    existing = crud.registration.get_by_pair(db, participant_id=participant.id, event_id=event.id)
    if existing and existing.status != RegistrationStatus.CANCELLED.value:
        return existing, False

    # Encode the QR before any write so the transaction stays short
    ticket = issue_ticket(event.id, participant.id)

    try:
        if not crud.event.claim_seat(db, event_id=event.id):
            db.rollback()
            # The last seat may have gone to a concurrent call for this same pair
            winner = crud.registration.get_by_pair(db, participant_id=participant.id, event_id=event.id)
            if winner and winner.status != RegistrationStatus.CANCELLED.value:
                return winner, False
            raise CapacityReached("Registration limit reached")

        if existing:
            reactivated = crud.registration.reactivate(
                db,
                registration_id=existing.id,
                values={
                    "form_responses": responses,
                    "ticket_id": ticket.ticket_id,
                    "ticket_qr": ticket.qr_png,
                    "ticket_qr_content_type": ticket.content_type,
                },
            )
            if not reactivated:
                db.rollback()
                db.refresh(existing)
                return existing, False
            reg = existing
        else:
            reg = Registration(
                participant_id=participant.id,
                event_id=event.id,
                status=RegistrationStatus.UPCOMING.value,
                form_responses=responses,
            )
            attach_ticket(reg, ticket)
            db.add(reg)
            crud.event.lock_form(db, event_id=event.id)

        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(f"Concurrent registration for participant {participant.id} event {event.id}")
        winner = crud.registration.get_by_pair(db, participant_id=participant.id, event_id=event.id)
        if winner and winner.status != RegistrationStatus.CANCELLED.value:
            return winner, False
        raise AlreadyExists("Registration changed concurrently, please retry")

    db.refresh(reg)
    db.refresh(event)
    logger.info(
        f"Registration {'reactivated' if existing else 'created'}: {reg.id} "
        f"participant={participant.id} event={event.id} ticket={ticket.ticket_id}"
    )

    notification_service.dispatch(
        background_tasks,
        notification_service.send_ticket_email,
        participant.email,
        participant.full_name,
        event.name,
        ticket,
    )
    return reg, True


def cancel(db: Session, event: Event, participant: Participant) -> Registration:
    reg = crud.registration.get_by_pair(db, participant_id=participant.id, event_id=event.id)
    if not reg:
        raise NotFound("Registration not found")
    if reg.is_order or event.is_merchandise:
        raise NotOpen("Merchandise orders cannot be cancelled")

    if crud.registration.mark_cancelled(db, registration_id=reg.id):
        crud.event.release_seat(db, event_id=event.id)
        db.commit()
        logger.info(f"Registration cancelled: {reg.id} participant={participant.id} event={event.id}")
    else:
        db.rollback()

    db.refresh(reg)
    db.refresh(event)
    return reg


# ---------------------------
# Read side
# ---------------------------
def get_participant_registration(db: Session, event: Event, participant: Participant) -> Optional[Registration]:
    return crud.registration.get_by_pair(db, participant_id=participant.id, event_id=event.id)


def list_participant_registrations(
    db: Session, participant: Participant, upcoming_only: bool = False
) -> List[Registration]:
    return crud.registration.get_by_participant(
        db, participant_id=participant.id, upcoming_only=upcoming_only
    )


def get_ticket(db: Session, registration_id: int, participant: Participant) -> Registration:
    reg = crud.registration.get(db, id=registration_id)
    if not reg:
        raise NotFound("Registration not found")
    if reg.participant_id != participant.id:
        raise Forbidden("Forbidden")
    if not reg.ticket_id or not reg.ticket_qr:
        raise NotFound("No ticket available for this registration")
    return reg


def list_event_registrations(db: Session, event: Event, organizer: Organizer) -> dict:
    """Organizer view of an event's registrations with simple analytics."""
    if event.organizer_id != organizer.id:
        raise Forbidden("Forbidden: not event owner")

    regs = crud.registration.get_by_event(db, event_id=event.id)
    active = [r for r in regs if r.status != RegistrationStatus.CANCELLED.value]
    fee = Decimal(event.registration_fee or 0)

    rows = []
    for reg in regs:
        participant = reg.participant
        rows.append({
            "registration_id": reg.id,
            "status": reg.status,
            "created_at": reg.created_at,
            "ticket_id": reg.ticket_id,
            "participant": {
                "id": participant.id,
                "name": participant.full_name,
                "email": participant.email,
            },
        })

    return {
        "event_id": event.id,
        "registrations": rows,
        "analytics": {
            "total_registrations": len(regs),
            "active_registrations": len(active),
            "estimated_revenue": float(fee * len(active)),
        },
    }
