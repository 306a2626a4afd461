# File: campus_events/api/v1/endpoints/attendance.py
import logging
from typing import Any, Literal, Optional
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from campus_events import crud
from campus_events.core import deps
from campus_events.core.exceptions import NotFound
from campus_events.db.database import get_db
from campus_events.models.organizer import Organizer
from campus_events.schemas.attendance import (
    ScanRequest, ScanResult, ManualAttendanceRequest, ManualAttendanceResult, AttendanceSummary,
)
from campus_events.services import attendance_service, event_lifecycle

logger = logging.getLogger(__name__)

router = APIRouter()


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else ""


@router.post("/events/{event_id}/scan", response_model=ScanResult)
def scan_ticket(
    *,
    db: Session = Depends(get_db),
    event_id: int,
    body: ScanRequest,
    request: Request,
    current_organizer: Organizer = Depends(deps.get_current_organizer),
) -> Any:
    """Check a ticket in. A repeat scan returns ``duplicate``, not an error."""
    event = event_lifecycle.get_event(db, event_id)
    ticket_id = attendance_service.resolve_ticket_id(body.ticket_id, body.payload)
    return attendance_service.scan(
        db, event, ticket_id, body.method, current_organizer, ip=_client_ip(request),
    )


@router.get("/events/{event_id}/attendance", response_model=AttendanceSummary)
def get_event_attendance(
    *,
    db: Session = Depends(get_db),
    event_id: int,
    search: Optional[str] = None,
    filter: Optional[Literal["scanned", "not_scanned"]] = None,
    current_organizer: Organizer = Depends(deps.get_current_organizer),
) -> Any:
    event = event_lifecycle.get_event(db, event_id)
    return attendance_service.attendance_summary(
        db, event, current_organizer, search=search, filter=filter,
    )


@router.post("/registrations/{registration_id}/manual-attendance", response_model=ManualAttendanceResult)
def manual_attendance(
    *,
    db: Session = Depends(get_db),
    registration_id: int,
    body: ManualAttendanceRequest,
    request: Request,
    current_organizer: Organizer = Depends(deps.get_current_organizer),
) -> Any:
    """Set or unset attendance by hand. A reason is always required."""
    reg = crud.registration.get(db, id=registration_id)
    if not reg:
        raise NotFound("Registration not found")
    reg = attendance_service.manual_override(
        db, reg, body.action, body.reason, current_organizer, ip=_client_ip(request),
    )
    return {
        "registration_id": reg.id,
        "attended": reg.attended,
        "manual_overrides": reg.manual_overrides,
    }
