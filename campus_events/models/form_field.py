import enum
from sqlalchemy import Column, Integer, String, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from campus_events.models.base import BaseModel


class FieldKind(str, enum.Enum):
    TEXT = "text"
    NUMBER = "number"
    DROPDOWN = "dropdown"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    FILE = "file"


CHOICE_KINDS = {FieldKind.DROPDOWN.value, FieldKind.CHECKBOX.value, FieldKind.RADIO.value}


class FormField(BaseModel):
    __tablename__ = "form_fields"
    __table_args__ = (
        UniqueConstraint("event_id", "name", name="uq_form_fields_event_name"),
    )

    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    kind = Column(String(20), nullable=False)
    name = Column(String(100), nullable=False)
    title = Column(String(255), nullable=False)
    choices = Column(JSON, nullable=True)  # required for dropdown/checkbox/radio only

    event = relationship("Event", back_populates="form_fields")
