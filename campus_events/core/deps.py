# File: campus_events/core/deps.py
"""
Actor resolution.

Authentication happens upstream; the gateway forwards the authenticated
identity as ``X-Actor-Id`` and ``X-Actor-Role`` headers.
"""
from typing import Optional, Union
from fastapi import Depends, HTTPException, Header, status
from sqlalchemy.orm import Session
from campus_events.db.database import get_db
from campus_events.models.organizer import Organizer
from campus_events.models.participant import Participant

PARTICIPANT_ROLE = "participant"
ORGANIZER_ROLE = "organizer"


def get_current_actor(
    db: Session = Depends(get_db),
    x_actor_id: Optional[str] = Header(None),
    x_actor_role: Optional[str] = Header(None),
) -> Union[Participant, Organizer]:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate actor",
    )
    if not x_actor_id or not x_actor_role:
        raise credentials_exception
    try:
        actor_id = int(x_actor_id)
    except ValueError:
        raise credentials_exception

    role = x_actor_role.lower()
    if role == PARTICIPANT_ROLE:
        actor = db.query(Participant).filter(Participant.id == actor_id).first()
    elif role == ORGANIZER_ROLE:
        actor = db.query(Organizer).filter(Organizer.id == actor_id).first()
    else:
        raise credentials_exception

    if actor is None:
        raise credentials_exception
    return actor


def get_optional_participant(
    db: Session = Depends(get_db),
    x_actor_id: Optional[str] = Header(None),
    x_actor_role: Optional[str] = Header(None),
) -> Optional[Participant]:
    if not x_actor_id or (x_actor_role or "").lower() != PARTICIPANT_ROLE:
        return None
    try:
        return db.query(Participant).filter(Participant.id == int(x_actor_id)).first()
    except ValueError:
        return None


def get_current_participant(
    actor: Union[Participant, Organizer] = Depends(get_current_actor),
) -> Participant:
    if not isinstance(actor, Participant):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Participant required")
    return actor


def get_current_organizer(
    actor: Union[Participant, Organizer] = Depends(get_current_actor),
) -> Organizer:
    if not isinstance(actor, Organizer):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Organizer required")
    return actor
