from .base import BaseModel
from .organizer import Organizer
from .participant import Participant
from .event import Event, EventType, EventStatus
from .form_field import FormField, FieldKind, CHOICE_KINDS
from .merchandise import MerchandiseItem
from .registration import (
    Registration, RegistrationStatus, PaymentStatus, ScanMethod,
    ScanHistoryEntry, ManualOverride,
)

__all__ = [
    "BaseModel", "Organizer", "Participant",
    "Event", "EventType", "EventStatus",
    "FormField", "FieldKind", "CHOICE_KINDS", "MerchandiseItem",
    "Registration", "RegistrationStatus", "PaymentStatus", "ScanMethod",
    "ScanHistoryEntry", "ManualOverride",
]
