"""
Concurrent callers, one session per thread.

Each worker loads its own copies of the rows it needs; ORM objects are
never shared across sessions.
"""
import threading

from campus_events.core.exceptions import CapacityReached, InvalidTransition, OutOfStock
from campus_events.models import Event, MerchandiseItem, Organizer, Participant, Registration
from campus_events.services import attendance_service, order_service, registration_service

from conftest import make_merch_event, make_normal_event, make_participants

PROOF = "uploads/payment-proofs/receipt.png"


def run_concurrently(session_factory, work, count):
    """Run ``work(session, index)`` in ``count`` threads released together."""
    barrier = threading.Barrier(count, timeout=30)
    results = [None] * count

    def runner(index):
        session = session_factory()
        try:
            barrier.wait()
            results[index] = work(session, index)
        except Exception as e:
            results[index] = e
        finally:
            session.close()

    threads = [threading.Thread(target=runner, args=(i,)) for i in range(count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)
    return results


def _fresh(session_factory, model, id):
    session = session_factory()
    try:
        return session.get(model, id)
    finally:
        session.close()


class TestConcurrentRegistration:
    def test_same_participant_gets_one_registration(self, db, session_factory, normal_event, participant):
        event_id, participant_id = normal_event.id, participant.id

        def work(session, _):
            event = session.get(Event, event_id)
            person = session.get(Participant, participant_id)
            reg, created = registration_service.register(session, event, person)
            return reg.id, created

        results = run_concurrently(session_factory, work, 4)

        assert all(isinstance(r, tuple) for r in results), results
        assert len({reg_id for reg_id, _ in results}) == 1
        assert [created for _, created in results].count(True) == 1
        assert _fresh(session_factory, Event, event_id).registered_count == 1

    def test_last_seat_goes_to_one_participant(self, db, session_factory, organizer):
        event = make_normal_event(db, organizer, registration_limit=1)
        people = make_participants(db, 2)
        event_id = event.id
        ids = [p.id for p in people]

        def work(session, index):
            registration_service.register(
                session, session.get(Event, event_id), session.get(Participant, ids[index]),
            )
            return "ok"

        results = run_concurrently(session_factory, work, 2)

        assert results.count("ok") == 1
        assert len([r for r in results if isinstance(r, CapacityReached)]) == 1
        assert _fresh(session_factory, Event, event_id).registered_count == 1

    def test_limit_holds_under_load(self, db, session_factory, organizer):
        event = make_normal_event(db, organizer, registration_limit=3)
        ids = [p.id for p in make_participants(db, 8)]
        event_id = event.id

        def work(session, index):
            registration_service.register(
                session, session.get(Event, event_id), session.get(Participant, ids[index]),
            )
            return "ok"

        results = run_concurrently(session_factory, work, 8)

        assert results.count("ok") == 3
        assert all(r == "ok" or isinstance(r, CapacityReached) for r in results), results
        assert _fresh(session_factory, Event, event_id).registered_count == 3
        db.expire_all()
        assert db.query(Registration).filter(Registration.event_id == event_id).count() == 3


class TestConcurrentStock:
    def test_last_item_sold_once(self, db, session_factory, organizer):
        event = make_merch_event(db, organizer, stock=1)
        item_id = event.merchandise[0].id
        event_id = event.id
        ids = [p.id for p in make_participants(db, 2)]

        def work(session, index):
            order_service.purchase(
                session, session.get(Event, event_id), session.get(Participant, ids[index]), item_id=item_id,
            )
            return "ok"

        results = run_concurrently(session_factory, work, 2)

        assert results.count("ok") == 1
        assert len([r for r in results if isinstance(r, OutOfStock)]) == 1
        assert _fresh(session_factory, MerchandiseItem, item_id).stock_quantity == 0
        assert _fresh(session_factory, Event, event_id).registered_count == 1

    def test_double_approval_takes_stock_once(self, db, session_factory, organizer, participant, outbox):
        event = make_merch_event(db, organizer, stock=5)
        item_id = event.merchandise[0].id
        order = order_service.create_order(db, event, participant, item_id=item_id)
        order = order_service.upload_proof(db, order, participant, PROOF)
        order_id, organizer_id = order.id, organizer.id

        def work(session, _):
            order_service.update_order_status(
                session,
                order_service.get_order(session, order_id),
                session.get(Organizer, organizer_id),
                "successful",
            )
            return "ok"

        results = run_concurrently(session_factory, work, 3)

        assert results.count("ok") == 1
        assert all(r == "ok" or isinstance(r, InvalidTransition) for r in results), results
        assert _fresh(session_factory, MerchandiseItem, item_id).stock_quantity == 4
        assert len(outbox["emails"]) == 1


class TestConcurrentScan:
    def test_first_scan_wins(self, db, session_factory, organizer, normal_event, participant):
        reg, _ = registration_service.register(db, normal_event, participant)
        ticket_id, event_id, organizer_id = reg.ticket_id, normal_event.id, organizer.id

        def work(session, _):
            outcome = attendance_service.scan(
                session, session.get(Event, event_id), ticket_id, "camera", session.get(Organizer, organizer_id),
            )
            return outcome["result"]

        results = run_concurrently(session_factory, work, 5)

        assert sorted(results) == ["duplicate"] * 4 + ["scanned"]
        db.expire_all()
        assert len(db.get(Registration, reg.id).scan_history) == 5
