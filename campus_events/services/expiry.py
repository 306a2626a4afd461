from datetime import datetime
from typing import Optional
from campus_events.core.clock import utcnow
from campus_events.models.event import Event
from campus_events.models.registration import Registration, RegistrationStatus


def complete_if_ended(registration: Registration, event: Event, now: Optional[datetime] = None) -> bool:
    """
    Flip an UPCOMING registration to COMPLETED once its event has ended.

    Pure with respect to storage: only the in-memory object changes.
    Returns True when the status was changed so callers can persist it.
    """
    now = now or utcnow()
    if registration.status != RegistrationStatus.UPCOMING.value:
        return False
    if event is None or event.end_date is None or event.end_date >= now:
        return False
    registration.status = RegistrationStatus.COMPLETED.value
    return True
