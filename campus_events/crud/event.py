# File: campus_events/crud/event.py
import logging
from typing import List, Optional
from sqlalchemy import update, or_
from sqlalchemy.orm import Session
from campus_events.crud.base import CRUDBase
from campus_events.models.event import Event, EventStatus
from campus_events.models.form_field import FormField
from campus_events.models.merchandise import MerchandiseItem
from campus_events.schemas.event import EventCreate, EventUpdate

logger = logging.getLogger(__name__)


def build_form_fields(fields_in) -> List[FormField]:
    return [
        FormField(
            position=f.position,
            kind=f.kind.value,
            name=f.name,
            title=f.title,
            choices=list(f.choices) if f.choices else None,
        )
        for f in fields_in or []
    ]


def build_merchandise(items_in) -> List[MerchandiseItem]:
    return [
        MerchandiseItem(
            name=m.name,
            sizes=m.sizes,
            colors=m.colors,
            variants=m.variants,
            stock_quantity=m.stock_quantity,
            purchase_limit_per_participant=m.purchase_limit_per_participant,
        )
        for m in items_in or []
    ]


class CRUDEvent(CRUDBase[Event, EventCreate, EventUpdate]):

    def get_by_organizer(self, db: Session, *, organizer_id: int) -> List[Event]:
        return (
            db.query(Event)
            .filter(Event.organizer_id == organizer_id)
            .order_by(Event.updated_at.desc(), Event.id.desc())
            .all()
        )

    def get_filtered(self, db: Session, *, status: Optional[str] = None, skip: int = 0, limit: int = 100) -> List[Event]:
        query = db.query(Event)
        if status:
            query = query.filter(Event.status == status)
        return query.order_by(Event.id.desc()).offset(skip).limit(limit).all()

    def create_with_organizer(self, db: Session, *, obj_in: EventCreate, organizer_id: int) -> Event:
        event_data = obj_in.model_dump(exclude={"form_fields", "merchandise"})
        event_data["event_type"] = obj_in.event_type.value
        event_data["organizer_id"] = organizer_id
        event_data["status"] = EventStatus.DRAFT.value

        db_obj = Event(**event_data)
        db_obj.form_fields = build_form_fields(obj_in.form_fields)
        db_obj.merchandise = build_merchandise(obj_in.merchandise)
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def get_item(self, db: Session, *, event_id: int, item_id: int) -> Optional[MerchandiseItem]:
        return (
            db.query(MerchandiseItem)
            .filter(MerchandiseItem.event_id == event_id, MerchandiseItem.id == item_id)
            .first()
        )

    # ---------------------------
    # Conditional updates (no commit; callers own the transaction)
    # ---------------------------
    def claim_seat(self, db: Session, *, event_id: int) -> bool:
        """Count one more non-cancelled registration if the limit allows it."""
        result = db.execute(
            update(Event)
            .where(Event.id == event_id)
            .where(
                or_(
                    Event.registration_limit.is_(None),
                    Event.registration_limit <= 0,
                    Event.registered_count < Event.registration_limit,
                )
            )
            .values(registered_count=Event.registered_count + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def release_seat(self, db: Session, *, event_id: int) -> None:
        db.execute(
            update(Event)
            .where(Event.id == event_id, Event.registered_count > 0)
            .values(registered_count=Event.registered_count - 1)
            .execution_options(synchronize_session=False)
        )

    def lock_form(self, db: Session, *, event_id: int) -> None:
        db.execute(
            update(Event)
            .where(Event.id == event_id, Event.form_locked.is_(False))
            .values(form_locked=True)
            .execution_options(synchronize_session=False)
        )

    def decrement_stock(self, db: Session, *, event_id: int, item_id: int, quantity: int) -> bool:
        result = db.execute(
            update(MerchandiseItem)
            .where(
                MerchandiseItem.id == item_id,
                MerchandiseItem.event_id == event_id,
                MerchandiseItem.stock_quantity >= quantity,
            )
            .values(stock_quantity=MerchandiseItem.stock_quantity - quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1


event = CRUDEvent(Event)
