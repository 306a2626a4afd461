# File: campus_events/models/event.py
import enum
from sqlalchemy import Column, String, Text, Boolean, Numeric, ForeignKey, Integer, DateTime, JSON, CheckConstraint
from sqlalchemy.orm import relationship
from campus_events.models.base import BaseModel


class EventType(str, enum.Enum):
    NORMAL = "normal"
    MERCHANDISE = "merchandise"


class EventStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CLOSED = "closed"


class Event(BaseModel):
    __tablename__ = "events"
    __table_args__ = (
        CheckConstraint("registered_count >= 0", name="ck_events_registered_count_non_negative"),
    )

    organizer_id = Column(Integer, ForeignKey("organizers.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    event_type = Column(String(20), nullable=False)
    non_iiit_eligibility = Column(Boolean, nullable=False, default=False)  # False => IIIT-only

    registration_deadline = Column(DateTime, nullable=False)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)

    # Registration
    registration_limit = Column(Integer, nullable=True)  # None or 0 => unlimited
    registration_fee = Column(Numeric(10, 2), nullable=False, default=0)
    tags = Column(JSON, nullable=True, default=list)

    # Lifecycle
    status = Column(String(20), nullable=False, default=EventStatus.DRAFT.value, index=True)
    form_locked = Column(Boolean, nullable=False, default=False)
    registered_count = Column(Integer, nullable=False, default=0)  # non-cancelled registrations

    # Relationships
    organizer = relationship("Organizer", back_populates="events")
    form_fields = relationship(
        "FormField",
        back_populates="event",
        order_by="FormField.position",
        cascade="all, delete-orphan",
    )
    merchandise = relationship(
        "MerchandiseItem",
        back_populates="event",
        order_by="MerchandiseItem.id",
        cascade="all, delete-orphan",
    )
    registrations = relationship("Registration", back_populates="event", cascade="all, delete-orphan")

    @property
    def is_normal(self) -> bool:
        return self.event_type == EventType.NORMAL.value

    @property
    def is_merchandise(self) -> bool:
        return self.event_type == EventType.MERCHANDISE.value

    @property
    def has_capacity_limit(self) -> bool:
        return bool(self.registration_limit) and self.registration_limit > 0
