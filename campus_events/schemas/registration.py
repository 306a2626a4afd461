# File: campus_events/schemas/registration.py
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any, Union, Literal, Annotated
from datetime import datetime
from campus_events.models.registration import RegistrationStatus, PaymentStatus


class RegisterRequest(BaseModel):
    form_responses: Optional[Dict[str, Any]] = None


class NormalRegistrationState(BaseModel):
    kind: Literal["normal"] = "normal"
    status: RegistrationStatus


class MerchandiseOrderState(BaseModel):
    kind: Literal["merchandise"] = "merchandise"
    status: RegistrationStatus
    payment_status: PaymentStatus


RegistrationState = Annotated[
    Union[NormalRegistrationState, MerchandiseOrderState],
    Field(discriminator="kind"),
]


class ScanHistoryEntry(BaseModel):
    scanner_id: Optional[int] = None
    scanner_name: Optional[str] = None
    method: str
    ip: Optional[str] = None
    ts: datetime
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class ManualOverride(BaseModel):
    by_id: int
    by_name: Optional[str] = None
    ts: datetime
    action: str
    reason: str

    class Config:
        from_attributes = True


class Registration(BaseModel):
    id: int
    participant_id: int
    event_id: int
    state: RegistrationState
    form_responses: Optional[Dict[str, Any]] = None
    ticket_id: Optional[str] = None
    item_id: Optional[int] = None
    quantity: Optional[int] = None
    payment_proof_url: Optional[str] = None
    rejection_reason: Optional[str] = None
    attended: bool = False
    first_scan_at: Optional[datetime] = None
    scanned_by: Optional[int] = None
    scan_method: Optional[str] = None
    scan_history: List[ScanHistoryEntry] = []
    manual_overrides: List[ManualOverride] = []
    created_at: datetime
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, reg) -> "Registration":
        if reg.payment_status is not None:
            state = MerchandiseOrderState(status=reg.status, payment_status=reg.payment_status)
        else:
            state = NormalRegistrationState(status=reg.status)
        return cls(
            id=reg.id,
            participant_id=reg.participant_id,
            event_id=reg.event_id,
            state=state,
            form_responses=reg.form_responses,
            ticket_id=reg.ticket_id,
            item_id=reg.item_id,
            quantity=reg.quantity,
            payment_proof_url=reg.payment_proof_url,
            rejection_reason=reg.rejection_reason,
            attended=reg.attended,
            first_scan_at=reg.first_scan_at,
            scanned_by=reg.scanned_by,
            scan_method=reg.scan_method,
            scan_history=[ScanHistoryEntry.model_validate(h) for h in reg.scan_history],
            manual_overrides=[ManualOverride.model_validate(o) for o in reg.manual_overrides],
            created_at=reg.created_at,
            updated_at=reg.updated_at,
        )


class RegistrationResult(BaseModel):
    registration: Registration
    created: bool
    ticket_id: Optional[str] = None
    message: str


class ParticipantRegistrationLookup(BaseModel):
    registered: bool
    registration: Optional[Registration] = None


class Ticket(BaseModel):
    ticket_id: str
    event_id: int
    content_type: str
    qr_base64: str


class ParticipantSummary(BaseModel):
    id: int
    name: str
    email: str


class EventRegistrationRow(BaseModel):
    registration_id: int
    status: RegistrationStatus
    created_at: datetime
    participant: ParticipantSummary
    ticket_id: Optional[str] = None


class RegistrationAnalytics(BaseModel):
    total_registrations: int
    active_registrations: int
    estimated_revenue: float


class EventRegistrations(BaseModel):
    event_id: int
    registrations: List[EventRegistrationRow]
    analytics: RegistrationAnalytics
