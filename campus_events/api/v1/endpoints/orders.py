# File: campus_events/api/v1/endpoints/orders.py
import logging
from typing import Any, List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session
from campus_events.core import deps
from campus_events.db.database import get_db
from campus_events.models.organizer import Organizer
from campus_events.models.participant import Participant
from campus_events.models.registration import PaymentStatus
from campus_events.schemas.order import PurchaseRequest, OrderCreate, PaymentProofSubmit, OrderStatusUpdate
from campus_events.schemas.registration import Registration
from campus_events.services import event_lifecycle, order_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/events/{event_id}/purchase", response_model=Registration, status_code=status.HTTP_201_CREATED)
def purchase_merchandise(
    *,
    db: Session = Depends(get_db),
    event_id: int,
    body: PurchaseRequest,
    background_tasks: BackgroundTasks,
    current_participant: Participant = Depends(deps.get_current_participant),
) -> Any:
    """Buy an item outright: stock is taken and a ticket issued immediately."""
    event = event_lifecycle.get_event(db, event_id)
    reg = order_service.purchase(
        db, event, current_participant, body.item_id, body.quantity, background_tasks=background_tasks,
    )
    return Registration.from_model(reg)


@router.post("/events/{event_id}/orders", response_model=Registration, status_code=status.HTTP_201_CREATED)
def create_order(
    *,
    db: Session = Depends(get_db),
    event_id: int,
    body: OrderCreate,
    current_participant: Participant = Depends(deps.get_current_participant),
) -> Any:
    """Place an order that waits for proof of payment."""
    event = event_lifecycle.get_event(db, event_id)
    order = order_service.create_order(db, event, current_participant, body.item_id, body.quantity)
    return Registration.from_model(order)


@router.get("/events/{event_id}/orders", response_model=List[Registration])
def list_event_orders(
    *,
    db: Session = Depends(get_db),
    event_id: int,
    payment_status: Optional[PaymentStatus] = None,
    current_organizer: Organizer = Depends(deps.get_current_organizer),
) -> Any:
    event = event_lifecycle.get_event(db, event_id)
    orders = order_service.list_event_orders(
        db, event, current_organizer, payment_status.value if payment_status else None,
    )
    return [Registration.from_model(o) for o in orders]


@router.get("/orders/payments", response_model=List[Registration])
def list_payments(
    *,
    db: Session = Depends(get_db),
    current_organizer: Organizer = Depends(deps.get_current_organizer),
) -> Any:
    """All merchandise orders across the organizer's events."""
    orders = order_service.list_organizer_payments(db, current_organizer)
    return [Registration.from_model(o) for o in orders]


@router.get("/orders/{order_id}", response_model=Registration)
def get_order(
    *,
    db: Session = Depends(get_db),
    order_id: int,
    current_participant: Participant = Depends(deps.get_current_participant),
) -> Any:
    order = order_service.get_participant_order(db, order_id, current_participant)
    return Registration.from_model(order)


@router.put("/orders/{order_id}/proof", response_model=Registration)
def upload_payment_proof(
    *,
    db: Session = Depends(get_db),
    order_id: int,
    body: PaymentProofSubmit,
    current_participant: Participant = Depends(deps.get_current_participant),
) -> Any:
    order = order_service.get_order(db, order_id)
    order = order_service.upload_proof(db, order, current_participant, body.proof_url)
    return Registration.from_model(order)


@router.put("/orders/{order_id}/status", response_model=Registration)
def update_order_status(
    *,
    db: Session = Depends(get_db),
    order_id: int,
    body: OrderStatusUpdate,
    background_tasks: BackgroundTasks,
    current_organizer: Organizer = Depends(deps.get_current_organizer),
) -> Any:
    """Organizer approves (``successful``) or rejects a pending order."""
    order = order_service.get_order(db, order_id)
    order = order_service.update_order_status(
        db,
        order,
        current_organizer,
        body.status,
        reason=body.reason,
        item_id=body.item_id,
        quantity=body.quantity,
        background_tasks=background_tasks,
    )
    return Registration.from_model(order)
