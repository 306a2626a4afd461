# File: campus_events/services/attendance_service.py
import logging
from typing import Optional
from sqlalchemy.orm import Session
from campus_events import crud
from campus_events.core.clock import utcnow
from campus_events.core.exceptions import NotFound, Forbidden, InvalidTicket, ValidationFailed
from campus_events.models.event import Event
from campus_events.models.organizer import Organizer
from campus_events.models.registration import (
    Registration, RegistrationStatus, PaymentStatus, ScanMethod, ScanHistoryEntry, ManualOverride,
)
from campus_events.services.ticket_service import decode_payload

logger = logging.getLogger(__name__)

DUPLICATE_NOTE = "duplicate scan attempt"
OVERRIDE_ACTIONS = ("set", "unset")


def _require_owner(event: Event, organizer: Organizer) -> None:
    if event.organizer_id != organizer.id:
        raise Forbidden("Forbidden: not event owner")


def _scanner_name(organizer: Organizer) -> str:
    return organizer.name or organizer.email or str(organizer.id)


def normalize_method(method: Optional[str]) -> str:
    values = {m.value for m in ScanMethod}
    return method if method in values else ScanMethod.CAMERA.value


def resolve_ticket_id(ticket_id: Optional[str], payload: Optional[str]) -> str:
    """Accept either a bare ticket id or the raw text read from the QR code."""
    if ticket_id and ticket_id.strip():
        return ticket_id.strip()
    data = decode_payload(payload) if payload else None
    if not data:
        raise ValidationFailed("ticketId required")
    return str(data["ticketId"])


def _outcome(result: str, reg: Registration, message: str) -> dict:
    participant = reg.participant
    return {
        "result": result,
        "message": message,
        "registration_id": reg.id,
        "ticket_id": reg.ticket_id,
        "participant_name": participant.full_name,
        "participant_email": participant.email,
        "first_scan_at": reg.first_scan_at,
        "scanned_by": reg.scanned_by,
    }


def scan(
    db: Session,
    event: Event,
    ticket_id: str,
    method: Optional[str],
    organizer: Organizer,
    ip: Optional[str] = None,
) -> dict:
    """
    Check a ticket in. First scan wins.

    The attended flag is flipped with a conditional UPDATE, so of several
    concurrent scans of one ticket exactly one reports ``scanned`` and the
    rest report ``duplicate``.
    """
    _require_owner(event, organizer)

    reg = crud.registration.get_by_ticket(db, event_id=event.id, ticket_id=ticket_id)
    if not reg:
        raise NotFound("Ticket not found for this event")
    if event.is_merchandise and reg.payment_status != PaymentStatus.SUCCESSFUL.value:
        raise InvalidTicket("Payment not approved for this ticket")
    if reg.status == RegistrationStatus.CANCELLED.value:
        raise InvalidTicket("Registration is cancelled")

    method = normalize_method(method)
    now = utcnow()
    won = crud.registration.mark_first_scan(
        db, registration_id=reg.id, scanner_id=organizer.id, method=method, ts=now,
    )

    entry = ScanHistoryEntry(
        registration_id=reg.id,
        scanner_id=organizer.id,
        scanner_name=_scanner_name(organizer),
        method=method,
        ip=ip or "",
        ts=now,
        notes=None if won else DUPLICATE_NOTE,
    )
    db.add(entry)
    db.commit()
    db.refresh(reg)

    if won:
        logger.info(f"Ticket {ticket_id} scanned for event {event.id} by organizer {organizer.id}")
        return _outcome("scanned", reg, "Checked in")

    logger.info(f"Duplicate scan of ticket {ticket_id} for event {event.id}")
    return _outcome("duplicate", reg, "Already scanned")


def manual_override(
    db: Session,
    registration: Registration,
    action: str,
    reason: Optional[str],
    organizer: Organizer,
    ip: Optional[str] = None,
) -> Registration:
    if action not in OVERRIDE_ACTIONS:
        raise ValidationFailed("action must be set or unset")
    if not reason or not reason.strip():
        raise ValidationFailed("reason is required for manual override")
    _require_owner(registration.event, organizer)

    reason = reason.strip()
    now = utcnow()
    name = _scanner_name(organizer)

    if action == "set":
        registration.attended = True
        if registration.first_scan_at is None:
            registration.first_scan_at = now
            registration.scanned_by = organizer.id
            registration.scan_method = ScanMethod.MANUAL.value
        notes = f"Manual set: {reason}"
    else:
        registration.attended = False
        notes = f"Manual unset: {reason}"

    registration.scan_history.append(ScanHistoryEntry(
        scanner_id=organizer.id,
        scanner_name=name,
        method=ScanMethod.MANUAL.value,
        ip=ip or "",
        ts=now,
        notes=notes,
    ))
    registration.manual_overrides.append(ManualOverride(
        by_id=organizer.id,
        by_name=name,
        ts=now,
        action=action,
        reason=reason,
    ))
    db.add(registration)
    db.commit()
    db.refresh(registration)
    logger.info(f"Manual attendance {action} on registration {registration.id} by organizer {organizer.id}")
    return registration


def attendance_summary(
    db: Session,
    event: Event,
    organizer: Organizer,
    search: Optional[str] = None,
    filter: Optional[str] = None,
) -> dict:
    _require_owner(event, organizer)

    regs = crud.registration.get_by_event(
        db,
        event_id=event.id,
        include_cancelled=False,
        payment_status=PaymentStatus.SUCCESSFUL.value if event.is_merchandise else None,
    )
    total = len(regs)
    scanned = len([r for r in regs if r.attended])

    items = regs
    term = (search or "").strip().lower()
    if term:
        items = [
            r for r in items
            if term in (r.participant.first_name or "").lower()
            or term in (r.participant.last_name or "").lower()
            or term in (r.participant.email or "").lower()
            or term in (r.ticket_id or "").lower()
        ]
    if filter == "scanned":
        items = [r for r in items if r.attended]
    elif filter == "not_scanned":
        items = [r for r in items if not r.attended]

    return {
        "event_id": event.id,
        "event_name": event.name,
        "event_type": event.event_type,
        "event_status": event.status,
        "counts": {"total": total, "scanned": scanned, "remaining": total - scanned},
        "registrations": [
            {
                "registration_id": r.id,
                "ticket_id": r.ticket_id,
                "participant_name": r.participant.full_name,
                "participant_email": r.participant.email,
                "attended": r.attended,
                "first_scan_at": r.first_scan_at,
                "scanned_by": r.scanned_by,
                "scan_method": r.scan_method,
                "scan_history": r.scan_history,
                "manual_overrides": r.manual_overrides,
                "created_at": r.created_at,
            }
            for r in items
        ],
    }
