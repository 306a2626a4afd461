import pytest
from sqlalchemy.exc import IntegrityError

from campus_events import crud
from campus_events.core.exceptions import (
    AlreadyExists, CapacityReached, Forbidden, InvalidTransition, NotFound, NotOpen,
    OutOfStock, ValidationFailed,
)
from campus_events.models import Event, MerchandiseItem, PaymentStatus, RegistrationStatus
from campus_events.services import order_service, registration_service

from conftest import make_merch_event, make_participants

PROOF = "uploads/payment-proofs/receipt-1.png"


def _stock(db, item):
    db.expire_all()
    return db.get(MerchandiseItem, item.id).stock_quantity


class TestPurchase:
    def test_purchase_takes_stock_and_issues_ticket(self, db, merch_event, participant, outbox):
        item = merch_event.merchandise[0]

        order = order_service.purchase(db, merch_event, participant, item_id=item.id, quantity=2)

        assert order.payment_status == PaymentStatus.SUCCESSFUL.value
        assert order.status == RegistrationStatus.UPCOMING.value
        assert order.item_id == item.id
        assert order.quantity == 2
        assert order.ticket_id
        assert item.stock_quantity == 3
        assert merch_event.form_locked is True
        assert outbox["emails"][0]["item_name"] == "Hoodie"
        assert outbox["emails"][0]["quantity"] == 2

    def test_outsider_can_buy_when_open_to_all(self, db, merch_event, outsider):
        order = order_service.purchase(db, merch_event, outsider, item_id=merch_event.merchandise[0].id)

        assert order.payment_status == PaymentStatus.SUCCESSFUL.value

    def test_over_purchase_limit(self, db, merch_event, participant):
        with pytest.raises(ValidationFailed):
            order_service.purchase(db, merch_event, participant, item_id=merch_event.merchandise[0].id, quantity=3)

    def test_quantity_must_be_positive(self, db, merch_event, participant):
        with pytest.raises(ValidationFailed):
            order_service.purchase(db, merch_event, participant, item_id=merch_event.merchandise[0].id, quantity=0)

    def test_unknown_item(self, db, merch_event, participant):
        with pytest.raises(NotFound):
            order_service.purchase(db, merch_event, participant, item_id=9999)

    def test_out_of_stock_writes_nothing(self, db, organizer, participant):
        event = make_merch_event(db, organizer, stock=1, limit=2)
        item = event.merchandise[0]

        with pytest.raises(OutOfStock):
            order_service.purchase(db, event, participant, item_id=item.id, quantity=2)

        assert _stock(db, item) == 1
        assert order_service.list_event_orders(db, event, organizer) == []
        assert db.get(Event, event.id).registered_count == 0

    def test_failed_registration_write_returns_stock(self, db, merch_event, participant, monkeypatch):
        item = merch_event.merchandise[0]

        def conflict(db, *, event_id):
            raise IntegrityError("INSERT INTO registrations", {}, Exception("duplicate key"))

        monkeypatch.setattr(crud.event, "lock_form", conflict)

        with pytest.raises(AlreadyExists):
            order_service.purchase(db, merch_event, participant, item_id=item.id, quantity=2)

        assert _stock(db, item) == 5
        assert db.get(Event, merch_event.id).registered_count == 0
        assert db.get(Event, merch_event.id).form_locked is False

    def test_second_purchase_rejected(self, db, merch_event, participant):
        item = merch_event.merchandise[0]
        order_service.purchase(db, merch_event, participant, item_id=item.id)

        with pytest.raises(AlreadyExists):
            order_service.purchase(db, merch_event, participant, item_id=item.id)

        assert _stock(db, item) == 4

    def test_normal_event_rejected(self, db, normal_event, participant):
        with pytest.raises(NotOpen):
            order_service.purchase(db, normal_event, participant, item_id=1)

    def test_capacity_applies_to_purchases(self, db, organizer):
        event = make_merch_event(db, organizer, registration_limit=1)
        first, second = make_participants(db, 2)
        order_service.purchase(db, event, first, item_id=event.merchandise[0].id)

        with pytest.raises(CapacityReached):
            order_service.purchase(db, event, second, item_id=event.merchandise[0].id)


class TestProofUpload:
    def test_upload_moves_to_pending_approval(self, db, merch_event, participant):
        order = order_service.create_order(db, merch_event, participant, item_id=merch_event.merchandise[0].id)

        assert order.payment_status == PaymentStatus.AWAITING_PAYMENT.value
        assert order.ticket_id is None

        order = order_service.upload_proof(db, order, participant, PROOF)

        assert order.payment_status == PaymentStatus.PENDING_APPROVAL.value
        assert order.payment_proof_url == PROOF

    def test_remote_urls_accepted(self, db, merch_event, participant):
        order = order_service.create_order(db, merch_event, participant)

        order = order_service.upload_proof(db, order, participant, "https://cdn.example.org/proof.jpg")

        assert order.payment_status == PaymentStatus.PENDING_APPROVAL.value

    @pytest.mark.parametrize("ref", ["", "   ", "C:/receipts/1.png", "uploads/payment-proofs/../../etc/passwd"])
    def test_bad_references_rejected(self, db, merch_event, participant, ref):
        order = order_service.create_order(db, merch_event, participant)

        with pytest.raises(ValidationFailed):
            order_service.upload_proof(db, order, participant, ref)

    def test_only_owner_can_upload(self, db, merch_event, participant, other_participant):
        order = order_service.create_order(db, merch_event, participant)

        with pytest.raises(Forbidden):
            order_service.upload_proof(db, order, other_participant, PROOF)

    def test_cannot_upload_while_pending(self, db, merch_event, participant):
        order = order_service.create_order(db, merch_event, participant)
        order_service.upload_proof(db, order, participant, PROOF)

        with pytest.raises(InvalidTransition):
            order_service.upload_proof(db, order, participant, PROOF)

    def test_one_order_per_participant(self, db, merch_event, participant):
        order_service.create_order(db, merch_event, participant)

        with pytest.raises(AlreadyExists):
            order_service.create_order(db, merch_event, participant)


class TestApproval:
    def _pending(self, db, event, participant, quantity=1):
        order = order_service.create_order(
            db, event, participant, item_id=event.merchandise[0].id, quantity=quantity,
        )
        return order_service.upload_proof(db, order, participant, PROOF)

    def test_reject_then_reupload_then_approve(self, db, organizer, merch_event, participant, outbox):
        order = self._pending(db, merch_event, participant)

        order = order_service.update_order_status(db, order, organizer, "rejected", reason="blurry proof")

        assert order.payment_status == PaymentStatus.REJECTED.value
        assert order.rejection_reason == "blurry proof"
        assert order.ticket_id is None

        order = order_service.upload_proof(db, order, participant, "uploads/payment-proofs/receipt-2.png")

        assert order.payment_status == PaymentStatus.PENDING_APPROVAL.value
        assert order.rejection_reason is None

        order = order_service.update_order_status(db, order, organizer, "successful")

        assert order.payment_status == PaymentStatus.SUCCESSFUL.value
        assert order.ticket_id
        assert _stock(db, merch_event.merchandise[0]) == 4
        assert outbox["emails"][-1]["approved"] is True

    def test_reject_requires_reason(self, db, organizer, merch_event, participant):
        order = self._pending(db, merch_event, participant)

        with pytest.raises(ValidationFailed):
            order_service.update_order_status(db, order, organizer, "rejected", reason="  ")

    def test_approve_out_of_stock_leaves_order_pending(self, db, organizer, participant):
        event = make_merch_event(db, organizer, stock=1, limit=2)
        order = self._pending(db, event, participant, quantity=2)

        with pytest.raises(OutOfStock):
            order_service.update_order_status(db, order, organizer, "successful")

        db.refresh(order)
        assert order.payment_status == PaymentStatus.PENDING_APPROVAL.value
        assert _stock(db, event.merchandise[0]) == 1

    def test_approval_can_supply_item_and_quantity(self, db, organizer, merch_event, participant):
        order = order_service.create_order(db, merch_event, participant)
        order = order_service.upload_proof(db, order, participant, PROOF)

        order = order_service.update_order_status(
            db, order, organizer, "successful", item_id=merch_event.merchandise[0].id, quantity=2,
        )

        assert order.item_id == merch_event.merchandise[0].id
        assert order.quantity == 2
        assert _stock(db, merch_event.merchandise[0]) == 3

    def test_approval_without_item_fails(self, db, organizer, merch_event, participant):
        order = order_service.create_order(db, merch_event, participant)
        order = order_service.upload_proof(db, order, participant, PROOF)

        with pytest.raises(ValidationFailed):
            order_service.update_order_status(db, order, organizer, "successful")

    def test_decision_requires_pending_approval(self, db, organizer, merch_event, participant):
        order = order_service.create_order(db, merch_event, participant)

        with pytest.raises(InvalidTransition):
            order_service.update_order_status(db, order, organizer, "successful")

    def test_unknown_decision(self, db, organizer, merch_event, participant):
        order = self._pending(db, merch_event, participant)

        with pytest.raises(InvalidTransition):
            order_service.update_order_status(db, order, organizer, "refunded")

    def test_non_owner_cannot_decide(self, db, other_organizer, merch_event, participant):
        order = self._pending(db, merch_event, participant)

        with pytest.raises(Forbidden):
            order_service.update_order_status(db, order, other_organizer, "successful")


class TestOrderReads:
    def test_event_orders_filter_by_payment_status(self, db, organizer, merch_event):
        buyer, waiter = make_participants(db, 2)
        order_service.purchase(db, merch_event, buyer, item_id=merch_event.merchandise[0].id)
        order_service.create_order(db, merch_event, waiter)

        awaiting = order_service.list_event_orders(
            db, merch_event, organizer, payment_status=PaymentStatus.AWAITING_PAYMENT.value,
        )

        assert [o.participant_id for o in awaiting] == [waiter.id]
        assert len(order_service.list_event_orders(db, merch_event, organizer)) == 2

    def test_organizer_payments_span_events(self, db, organizer, other_organizer, participant):
        mine = make_merch_event(db, organizer)
        theirs = make_merch_event(db, other_organizer)
        order_service.create_order(db, mine, participant)
        order_service.create_order(db, theirs, participant)

        payments = order_service.list_organizer_payments(db, organizer)

        assert [p.event_id for p in payments] == [mine.id]

    def test_participant_order_access(self, db, merch_event, participant, other_participant):
        order = order_service.create_order(db, merch_event, participant)

        assert order_service.get_participant_order(db, order.id, participant).id == order.id
        with pytest.raises(Forbidden):
            order_service.get_participant_order(db, order.id, other_participant)

    def test_normal_registration_is_not_an_order(self, db, normal_event, participant):
        reg, _ = registration_service.register(db, normal_event, participant)

        with pytest.raises(NotFound):
            order_service.get_order(db, reg.id)
