# File: campus_events/services/order_service.py
"""
Merchandise purchases and the proof-of-payment approval flow.

Stock is only ever taken through ``inventory.decrement_stock`` and always in
the same transaction as the registration write it pays for, so a failed
write rolls the decrement back with it.
"""
import logging
from typing import List, Optional
from fastapi import BackgroundTasks
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from campus_events import crud
from campus_events.core.config import settings
from campus_events.core.exceptions import (
    NotFound, Forbidden, NotOpen, CapacityReached, OutOfStock,
    InvalidTransition, ValidationFailed, AlreadyExists,
)
from campus_events.models.event import Event
from campus_events.models.merchandise import MerchandiseItem
from campus_events.models.organizer import Organizer
from campus_events.models.participant import Participant
from campus_events.models.registration import Registration, RegistrationStatus, PaymentStatus
from campus_events.services import inventory, notification_service
from campus_events.services.registration_service import check_can_join
from campus_events.services.ticket_service import issue_ticket, attach_ticket

logger = logging.getLogger(__name__)

PROOF_UPLOAD_STATES = [PaymentStatus.AWAITING_PAYMENT.value, PaymentStatus.REJECTED.value]


def _check_merchandise_open(event: Event, participant: Participant) -> None:
    if not event.is_merchandise:
        raise NotOpen("Event is not merchandise type")
    check_can_join(event, participant)


def _get_item(db: Session, event: Event, item_id: Optional[int]) -> MerchandiseItem:
    if item_id is None:
        raise ValidationFailed("itemId required")
    item = crud.event.get_item(db, event_id=event.id, item_id=item_id)
    if not item:
        raise NotFound("Merchandise item not found")
    return item


def _check_quantity(item: MerchandiseItem, quantity: int) -> None:
    if quantity is None or quantity < 1:
        raise ValidationFailed("Quantity must be at least 1")
    limit = item.purchase_limit_per_participant or 0
    if limit > 0 and quantity > limit:
        raise ValidationFailed(f"Purchase limit for {item.name} is {limit} per participant")


def _check_no_existing(db: Session, event: Event, participant: Participant) -> None:
    existing = crud.registration.get_by_pair(db, participant_id=participant.id, event_id=event.id)
    if existing:
        raise AlreadyExists("You already have an order for this event")


def _send_confirmation(background_tasks, participant_email, participant_name, event_name,
                       ticket, item_name, quantity, approved=False):
    notification_service.dispatch(
        background_tasks,
        notification_service.send_ticket_email,
        participant_email,
        participant_name,
        event_name,
        ticket,
        item_name,
        quantity,
        approved,
    )


# ---------------------------
# Direct purchase
# ---------------------------
def purchase(
    db: Session,
    event: Event,
    participant: Participant,
    item_id: int,
    quantity: int = 1,
    background_tasks: Optional[BackgroundTasks] = None,
) -> Registration:
    _check_merchandise_open(event, participant)
    item = _get_item(db, event, item_id)
    _check_quantity(item, quantity)
    _check_no_existing(db, event, participant)

    ticket = issue_ticket(event.id, participant.id, item.id)

    try:
        if not crud.event.claim_seat(db, event_id=event.id):
            db.rollback()
            raise CapacityReached("Registration limit reached")

        if not inventory.decrement_stock(db, event.id, item.id, quantity):
            db.rollback()
            raise OutOfStock("Item out of stock or insufficient stock")

        reg = Registration(
            participant_id=participant.id,
            event_id=event.id,
            status=RegistrationStatus.UPCOMING.value,
            payment_status=PaymentStatus.SUCCESSFUL.value,
            item_id=item.id,
            quantity=quantity,
        )
        attach_ticket(reg, ticket)
        db.add(reg)
        crud.event.lock_form(db, event_id=event.id)
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(f"Concurrent purchase for participant {participant.id} event {event.id}")
        raise AlreadyExists("You already have an order for this event")

    db.refresh(reg)
    db.refresh(item)
    db.refresh(event)
    logger.info(
        f"Purchase completed: registration={reg.id} item={item.id} qty={quantity} ticket={ticket.ticket_id}"
    )

    _send_confirmation(
        background_tasks, participant.email, participant.full_name, event.name,
        ticket, item.name, quantity,
    )
    return reg


# ---------------------------
# Proof-of-payment flow
# ---------------------------
def create_order(
    db: Session,
    event: Event,
    participant: Participant,
    item_id: Optional[int] = None,
    quantity: int = 1,
) -> Registration:
    _check_merchandise_open(event, participant)
    if item_id is not None:
        _check_quantity(_get_item(db, event, item_id), quantity)
    _check_no_existing(db, event, participant)

    order = Registration(
        participant_id=participant.id,
        event_id=event.id,
        status=RegistrationStatus.UPCOMING.value,
        payment_status=PaymentStatus.AWAITING_PAYMENT.value,
        item_id=item_id,
        quantity=quantity if item_id is not None else None,
    )
    try:
        if not crud.event.claim_seat(db, event_id=event.id):
            db.rollback()
            raise CapacityReached("Registration limit reached")
        db.add(order)
        crud.event.lock_form(db, event_id=event.id)
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(f"Concurrent order for participant {participant.id} event {event.id}")
        raise AlreadyExists("You already have an order for this event")

    db.refresh(order)
    logger.info(f"Order created: {order.id} participant={participant.id} event={event.id}")
    return order


def _valid_proof_reference(proof_ref: Optional[str]) -> bool:
    if not proof_ref or not proof_ref.strip():
        return False
    ref = proof_ref.strip()
    if ref.startswith(("http://", "https://")):
        return True
    if ".." in ref.split("/"):
        return False
    return ref.startswith(settings.PAYMENT_PROOF_PREFIX)


def upload_proof(db: Session, order: Registration, participant: Participant, proof_ref: str) -> Registration:
    if order.participant_id != participant.id:
        raise Forbidden("Forbidden")
    if order.payment_status not in PROOF_UPLOAD_STATES:
        raise InvalidTransition(f"Cannot upload payment proof while order is {order.payment_status}")
    if not _valid_proof_reference(proof_ref):
        raise ValidationFailed("Payment proof reference is missing or not a stored upload")

    moved = crud.registration.set_payment_status(
        db,
        registration_id=order.id,
        expected=PROOF_UPLOAD_STATES,
        values={
            "payment_status": PaymentStatus.PENDING_APPROVAL.value,
            "payment_proof_url": proof_ref.strip(),
            "rejection_reason": None,
        },
    )
    if not moved:
        db.rollback()
        db.refresh(order)
        raise InvalidTransition(f"Cannot upload payment proof while order is {order.payment_status}")

    db.commit()
    db.refresh(order)
    logger.info(f"Payment proof uploaded for order {order.id}")
    return order


def update_order_status(
    db: Session,
    order: Registration,
    organizer: Organizer,
    decision: str,
    reason: Optional[str] = None,
    item_id: Optional[int] = None,
    quantity: Optional[int] = None,
    background_tasks: Optional[BackgroundTasks] = None,
) -> Registration:
    event = order.event
    if event.organizer_id != organizer.id:
        raise Forbidden("Forbidden: not event owner")
    if order.payment_status != PaymentStatus.PENDING_APPROVAL.value:
        raise InvalidTransition("Order is not pending approval")

    if decision == PaymentStatus.REJECTED.value:
        return _reject(db, order, organizer, reason)
    if decision == PaymentStatus.SUCCESSFUL.value:
        return _approve(db, order, event, item_id, quantity, background_tasks)
    raise InvalidTransition(f"Unknown decision: {decision}")


def _reject(db: Session, order: Registration, organizer: Organizer, reason: Optional[str]) -> Registration:
    if not reason or not reason.strip():
        raise ValidationFailed("A rejection reason is required")

    moved = crud.registration.set_payment_status(
        db,
        registration_id=order.id,
        expected=[PaymentStatus.PENDING_APPROVAL.value],
        values={"payment_status": PaymentStatus.REJECTED.value, "rejection_reason": reason.strip()},
    )
    if not moved:
        db.rollback()
        raise InvalidTransition("Order is not pending approval")

    db.commit()
    db.refresh(order)
    logger.info(f"Order {order.id} rejected by organizer {organizer.id}")
    return order


def _approve(db, order, event, item_id, quantity, background_tasks) -> Registration:
    item = _get_item(db, event, item_id if item_id is not None else order.item_id)
    quantity = quantity if quantity is not None else (order.quantity or 1)
    _check_quantity(item, quantity)

    participant = order.participant
    ticket = issue_ticket(event.id, participant.id, item.id)

    if not inventory.decrement_stock(db, event.id, item.id, quantity):
        db.rollback()
        raise OutOfStock("Item out of stock or insufficient stock")

    moved = crud.registration.set_payment_status(
        db,
        registration_id=order.id,
        expected=[PaymentStatus.PENDING_APPROVAL.value],
        values={
            "payment_status": PaymentStatus.SUCCESSFUL.value,
            "item_id": item.id,
            "quantity": quantity,
            "ticket_id": ticket.ticket_id,
            "ticket_qr": ticket.qr_png,
            "ticket_qr_content_type": ticket.content_type,
        },
    )
    if not moved:
        # Someone else decided first; undo our decrement with the rest of the transaction
        db.rollback()
        raise InvalidTransition("Order is not pending approval")

    db.commit()
    db.refresh(order)
    db.refresh(item)
    logger.info(f"Order {order.id} approved: item={item.id} qty={quantity} ticket={ticket.ticket_id}")

    _send_confirmation(
        background_tasks, participant.email, participant.full_name, event.name,
        ticket, item.name, quantity, approved=True,
    )
    return order


# ---------------------------
# Read side
# ---------------------------
def get_order(db: Session, order_id: int) -> Registration:
    order = crud.registration.get(db, id=order_id)
    if not order or not order.is_order:
        raise NotFound("Order not found")
    return order


def get_participant_order(db: Session, order_id: int, participant: Participant) -> Registration:
    order = get_order(db, order_id)
    if order.participant_id != participant.id:
        raise Forbidden("Forbidden")
    return order


def list_event_orders(
    db: Session, event: Event, organizer: Organizer, payment_status: Optional[str] = None
) -> List[Registration]:
    if event.organizer_id != organizer.id:
        raise Forbidden("Forbidden: not event owner")
    if not event.is_merchandise:
        return []
    return crud.registration.get_by_event(db, event_id=event.id, payment_status=payment_status)


def list_organizer_payments(db: Session, organizer: Organizer) -> List[Registration]:
    return crud.registration.get_orders_for_organizer(db, organizer_id=organizer.id)
