# File: campus_events/api/v1/endpoints/events.py
import logging
from typing import Any, List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session
from campus_events.core import deps
from campus_events.db.database import get_db
from campus_events.models.event import EventStatus
from campus_events.models.organizer import Organizer
from campus_events.models.participant import Participant
from campus_events.schemas.event import Event, EventCreate, EventUpdate, EventDetail
from campus_events.services import event_lifecycle

logger = logging.getLogger(__name__)

router = APIRouter()


class TrendingEvent(BaseModel):
    event: Event
    count: int


class EventTransitions(BaseModel):
    status: EventStatus
    allowed: List[EventStatus]
    form_locked: bool


@router.post("/", response_model=Event, status_code=status.HTTP_201_CREATED)
def create_event(
    *,
    db: Session = Depends(get_db),
    event_in: EventCreate,
    current_organizer: Organizer = Depends(deps.get_current_organizer),
) -> Any:
    """Create new event. Events always start as draft."""
    return event_lifecycle.create_event(db, current_organizer, event_in)


@router.get("/", response_model=List[Event])
def list_events(
    *,
    db: Session = Depends(get_db),
    organizer_id: Optional[int] = None,
    status: Optional[EventStatus] = None,
    skip: int = 0,
    limit: int = 100,
) -> Any:
    return event_lifecycle.list_events(
        db,
        organizer_id=organizer_id,
        status=status.value if status else None,
        skip=skip,
        limit=limit,
    )


@router.get("/trending", response_model=List[TrendingEvent])
def get_trending_events(
    *,
    db: Session = Depends(get_db),
    limit: int = 5,
) -> Any:
    """Top events by registrations created in the last 24 hours."""
    return event_lifecycle.trending_events(db, limit=limit)


@router.get("/{event_id}", response_model=EventDetail)
def get_event(
    *,
    db: Session = Depends(get_db),
    event_id: int,
    participant: Optional[Participant] = Depends(deps.get_optional_participant),
) -> Any:
    return event_lifecycle.get_event_detail(db, event_id, participant=participant)


@router.get("/{event_id}/transitions", response_model=EventTransitions)
def get_event_transitions(
    *,
    db: Session = Depends(get_db),
    event_id: int,
) -> Any:
    event = event_lifecycle.get_event(db, event_id)
    return {
        "status": event.status,
        "allowed": sorted(event_lifecycle.allowed_transitions(event.status)),
        "form_locked": event.form_locked,
    }


@router.put("/{event_id}", response_model=Event)
def update_event(
    *,
    db: Session = Depends(get_db),
    event_id: int,
    event_in: EventUpdate,
    background_tasks: BackgroundTasks,
    current_organizer: Organizer = Depends(deps.get_current_organizer),
) -> Any:
    """Update an event subject to its lifecycle state."""
    event = event_lifecycle.get_event(db, event_id)
    return event_lifecycle.update_event(
        db, event, current_organizer, event_in, background_tasks=background_tasks,
    )
