# File: campus_events/models/registration.py
import enum
from sqlalchemy import (
    Column, String, Integer, ForeignKey, DateTime, Text, Boolean, JSON, LargeBinary,
    UniqueConstraint, CheckConstraint,
)
from sqlalchemy.orm import relationship
from campus_events.core.clock import utcnow
from campus_events.models.base import BaseModel


class RegistrationStatus(str, enum.Enum):
    UPCOMING = "UPCOMING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, enum.Enum):
    AWAITING_PAYMENT = "awaiting_payment"
    PENDING_APPROVAL = "pending_approval"
    REJECTED = "rejected"
    SUCCESSFUL = "successful"


class ScanMethod(str, enum.Enum):
    CAMERA = "camera"
    UPLOAD = "upload"
    MANUAL = "manual"


class Registration(BaseModel):
    __tablename__ = "registrations"
    __table_args__ = (
        # One registration per participant per event
        UniqueConstraint("participant_id", "event_id", name="uq_registrations_participant_event"),
        # Merchandise orders are never cancelled
        CheckConstraint(
            "payment_status IS NULL OR status != 'CANCELLED'",
            name="ck_registrations_order_not_cancelled",
        ),
    )

    participant_id = Column(Integer, ForeignKey("participants.id"), nullable=False, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=RegistrationStatus.UPCOMING.value)

    # Custom form answers, keyed by field name
    form_responses = Column(JSON, nullable=True)

    # Ticket (last issued)
    ticket_id = Column(String(64), nullable=True, unique=True)
    ticket_qr = Column(LargeBinary, nullable=True)
    ticket_qr_content_type = Column(String(50), nullable=True)

    # Merchandise orders only
    payment_status = Column(String(30), nullable=True)
    item_id = Column(Integer, ForeignKey("merchandise_items.id"), nullable=True)
    quantity = Column(Integer, nullable=True)
    payment_proof_url = Column(String(500), nullable=True)
    rejection_reason = Column(Text, nullable=True)

    # Attendance
    attended = Column(Boolean, nullable=False, default=False)
    first_scan_at = Column(DateTime, nullable=True)
    scanned_by = Column(Integer, ForeignKey("organizers.id"), nullable=True)
    scan_method = Column(String(20), nullable=True)

    # Relationships
    event = relationship("Event", back_populates="registrations")
    participant = relationship("Participant")
    item = relationship("MerchandiseItem")
    scan_history = relationship(
        "ScanHistoryEntry",
        back_populates="registration",
        order_by="ScanHistoryEntry.id",
        cascade="all, delete-orphan",
    )
    manual_overrides = relationship(
        "ManualOverride",
        back_populates="registration",
        order_by="ManualOverride.id",
        cascade="all, delete-orphan",
    )

    @property
    def is_order(self) -> bool:
        return self.payment_status is not None


class ScanHistoryEntry(BaseModel):
    __tablename__ = "scan_history"

    registration_id = Column(Integer, ForeignKey("registrations.id", ondelete="CASCADE"), nullable=False, index=True)
    scanner_id = Column(Integer, ForeignKey("organizers.id"), nullable=True)
    scanner_name = Column(String(255), nullable=True)
    method = Column(String(20), nullable=False)
    ip = Column(String(64), nullable=True)
    ts = Column(DateTime, nullable=False, default=utcnow)
    notes = Column(Text, nullable=True)

    registration = relationship("Registration", back_populates="scan_history")


class ManualOverride(BaseModel):
    __tablename__ = "manual_overrides"

    registration_id = Column(Integer, ForeignKey("registrations.id", ondelete="CASCADE"), nullable=False, index=True)
    by_id = Column(Integer, ForeignKey("organizers.id"), nullable=False)
    by_name = Column(String(255), nullable=True)
    ts = Column(DateTime, nullable=False, default=utcnow)
    action = Column(String(10), nullable=False)  # set | unset
    reason = Column(Text, nullable=False)

    registration = relationship("Registration", back_populates="manual_overrides")
