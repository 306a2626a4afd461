# File: campus_events/services/inventory.py
import logging
from sqlalchemy.orm import Session
from campus_events import crud
from campus_events.core.exceptions import ValidationFailed

logger = logging.getLogger(__name__)


def decrement_stock(db: Session, event_id: int, item_id: int, quantity: int) -> bool:
    """
    Take ``quantity`` units of an item if that many are on hand.

    Runs as one conditional UPDATE inside the caller's transaction, so
    concurrent buyers can never push stock below zero. Returns whether
    the decrement happened.
    """
    if quantity < 1:
        raise ValidationFailed("Quantity must be at least 1")

    ok = crud.event.decrement_stock(db, event_id=event_id, item_id=item_id, quantity=quantity)
    if ok:
        logger.info(f"Stock decremented: event={event_id} item={item_id} qty={quantity}")
    else:
        logger.info(f"Stock decrement refused: event={event_id} item={item_id} qty={quantity}")
    return ok
