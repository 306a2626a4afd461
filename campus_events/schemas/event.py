# File: campus_events/schemas/event.py
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime, timezone
from decimal import Decimal
from campus_events.models.event import EventType, EventStatus
from campus_events.models.form_field import FieldKind


def _to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class FormFieldBase(BaseModel):
    position: int = 0
    kind: FieldKind
    name: str = Field(..., min_length=1, max_length=100)
    title: str = Field(..., min_length=1, max_length=255)
    choices: Optional[List[str]] = None


class FormFieldCreate(FormFieldBase):
    pass


class FormField(FormFieldBase):
    id: int

    class Config:
        from_attributes = True


class MerchandiseItemBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    sizes: Optional[List[str]] = None
    colors: Optional[List[str]] = None
    variants: Optional[List[str]] = None
    stock_quantity: int = Field(0, ge=0)
    purchase_limit_per_participant: int = Field(1, ge=0)


class MerchandiseItemCreate(MerchandiseItemBase):
    pass


class MerchandiseItem(MerchandiseItemBase):
    id: int

    class Config:
        from_attributes = True


class EventBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    event_type: EventType
    non_iiit_eligibility: bool = False
    registration_deadline: datetime
    start_date: datetime
    end_date: datetime
    registration_limit: Optional[int] = Field(None, ge=0)
    registration_fee: Decimal = Field(Decimal("0"), ge=0)
    tags: List[str] = []

    @field_validator("registration_deadline", "start_date", "end_date")
    @classmethod
    def normalize_timestamps(cls, value):
        return _to_naive_utc(value)


class EventCreate(EventBase):
    form_fields: Optional[List[FormFieldCreate]] = None
    merchandise: Optional[List[MerchandiseItemCreate]] = None


class EventUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    event_type: Optional[EventType] = None
    non_iiit_eligibility: Optional[bool] = None
    registration_deadline: Optional[datetime] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    registration_limit: Optional[int] = Field(None, ge=0)
    registration_fee: Optional[Decimal] = Field(None, ge=0)
    tags: Optional[List[str]] = None
    form_fields: Optional[List[FormFieldCreate]] = None
    merchandise: Optional[List[MerchandiseItemCreate]] = None
    status: Optional[EventStatus] = None

    @field_validator("registration_deadline", "start_date", "end_date")
    @classmethod
    def normalize_timestamps(cls, value):
        return _to_naive_utc(value)


class Event(EventBase):
    id: int
    organizer_id: int
    status: EventStatus
    form_locked: bool
    registered_count: int
    form_fields: List[FormField] = []
    merchandise: List[MerchandiseItem] = []
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EventDetail(BaseModel):
    event: Event
    registration_count: int
    participant_registered: bool = False
    participant_registration_id: Optional[int] = None
