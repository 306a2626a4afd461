from sqlalchemy import Column, String
from sqlalchemy.orm import relationship
from campus_events.models.base import BaseModel


class Organizer(BaseModel):
    __tablename__ = "organizers"

    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    discord_webhook = Column(String(500), nullable=True)  # announcement target on publish

    events = relationship("Event", back_populates="organizer")
