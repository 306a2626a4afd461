# File: campus_events/api/v1/endpoints/registrations.py
import base64
import logging
from typing import Any, List
from fastapi import APIRouter, BackgroundTasks, Depends, Response, status
from sqlalchemy.orm import Session
from campus_events.core import deps
from campus_events.db.database import get_db
from campus_events.models.organizer import Organizer
from campus_events.models.participant import Participant
from campus_events.schemas.registration import (
    RegisterRequest, Registration, RegistrationResult, ParticipantRegistrationLookup,
    Ticket, EventRegistrations,
)
from campus_events.services import event_lifecycle, registration_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/events/{event_id}/register", response_model=RegistrationResult)
def register_for_event(
    *,
    db: Session = Depends(get_db),
    event_id: int,
    body: RegisterRequest,
    response: Response,
    background_tasks: BackgroundTasks,
    current_participant: Participant = Depends(deps.get_current_participant),
) -> Any:
    """Register for a normal event. Repeating the call is harmless."""
    event = event_lifecycle.get_event(db, event_id)
    reg, created = registration_service.register(
        db, event, current_participant, body.form_responses, background_tasks=background_tasks,
    )
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return {
        "registration": Registration.from_model(reg),
        "created": created,
        "ticket_id": reg.ticket_id,
        "message": "Registered" if created else "Already registered",
    }


@router.get("/events/{event_id}/registration", response_model=ParticipantRegistrationLookup)
def get_my_registration(
    *,
    db: Session = Depends(get_db),
    event_id: int,
    current_participant: Participant = Depends(deps.get_current_participant),
) -> Any:
    event = event_lifecycle.get_event(db, event_id)
    reg = registration_service.get_participant_registration(db, event, current_participant)
    if not reg:
        return {"registered": False}
    return {"registered": True, "registration": Registration.from_model(reg)}


@router.delete("/events/{event_id}/registration", response_model=Registration)
def cancel_registration(
    *,
    db: Session = Depends(get_db),
    event_id: int,
    current_participant: Participant = Depends(deps.get_current_participant),
) -> Any:
    event = event_lifecycle.get_event(db, event_id)
    reg = registration_service.cancel(db, event, current_participant)
    return Registration.from_model(reg)


@router.get("/events/{event_id}/registrations", response_model=EventRegistrations)
def get_event_registrations(
    *,
    db: Session = Depends(get_db),
    event_id: int,
    current_organizer: Organizer = Depends(deps.get_current_organizer),
) -> Any:
    """Organizer-only: registrations for an event with participant info."""
    event = event_lifecycle.get_event(db, event_id)
    return registration_service.list_event_registrations(db, event, current_organizer)


@router.get("/registrations/me", response_model=List[Registration])
def get_my_registrations(
    *,
    db: Session = Depends(get_db),
    upcoming: bool = False,
    current_participant: Participant = Depends(deps.get_current_participant),
) -> Any:
    regs = registration_service.list_participant_registrations(
        db, current_participant, upcoming_only=upcoming,
    )
    return [Registration.from_model(reg) for reg in regs]


@router.get("/registrations/{registration_id}/ticket", response_model=Ticket)
def get_registration_ticket(
    *,
    db: Session = Depends(get_db),
    registration_id: int,
    current_participant: Participant = Depends(deps.get_current_participant),
) -> Any:
    reg = registration_service.get_ticket(db, registration_id, current_participant)
    return {
        "ticket_id": reg.ticket_id,
        "event_id": reg.event_id,
        "content_type": reg.ticket_qr_content_type or "image/png",
        "qr_base64": base64.b64encode(reg.ticket_qr).decode(),
    }
