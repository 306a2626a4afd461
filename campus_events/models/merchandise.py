from sqlalchemy import Column, Integer, String, ForeignKey, JSON, CheckConstraint
from sqlalchemy.orm import relationship
from campus_events.models.base import BaseModel


class MerchandiseItem(BaseModel):
    __tablename__ = "merchandise_items"
    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="ck_merchandise_stock_non_negative"),
        CheckConstraint("purchase_limit_per_participant >= 0", name="ck_merchandise_limit_non_negative"),
    )

    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    sizes = Column(JSON, nullable=True)
    colors = Column(JSON, nullable=True)
    variants = Column(JSON, nullable=True)
    stock_quantity = Column(Integer, nullable=False, default=0)
    purchase_limit_per_participant = Column(Integer, nullable=False, default=1)  # 0 => no limit

    event = relationship("Event", back_populates="merchandise")
