from sqlalchemy import Column, String, Boolean
from campus_events.models.base import BaseModel


class Participant(BaseModel):
    __tablename__ = "participants"

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    iiit_participant = Column(Boolean, default=False, nullable=False)

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()
