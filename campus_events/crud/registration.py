# File: campus_events/crud/registration.py
import logging
from datetime import datetime
from typing import Any, Iterable, List, Optional
from sqlalchemy import update
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.orm.attributes import set_committed_value
from campus_events.core.clock import utcnow
from campus_events.crud.base import CRUDBase
from campus_events.models.event import Event
from campus_events.models.registration import Registration, RegistrationStatus
from campus_events.services.expiry import complete_if_ended

logger = logging.getLogger(__name__)


class CRUDRegistration(CRUDBase[Registration, Any, Any]):
    """Registration reads. Every read path goes through ``_expire``."""

    def _expire(self, db: Session, registrations: Iterable[Registration]) -> None:
        now = utcnow()
        changed = [reg for reg in registrations if complete_if_ended(reg, reg.event, now)]
        if not changed:
            return

        db.execute(
            update(Registration)
            .where(
                Registration.id.in_([reg.id for reg in changed]),
                Registration.status == RegistrationStatus.UPCOMING.value,
            )
            .values(status=RegistrationStatus.COMPLETED.value, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        db.commit()
        for reg in changed:
            set_committed_value(reg, "status", RegistrationStatus.COMPLETED.value)
        logger.info(f"Marked {len(changed)} registration(s) as COMPLETED after event end")

    def _one(self, db: Session, query) -> Optional[Registration]:
        reg = query.first()
        if reg:
            self._expire(db, [reg])
        return reg

    def _many(self, db: Session, query) -> List[Registration]:
        regs = query.all()
        self._expire(db, regs)
        return regs

    def _query(self, db: Session):
        return db.query(Registration).options(joinedload(Registration.event))

    def get(self, db: Session, id: Any) -> Optional[Registration]:
        return self._one(db, self._query(db).filter(Registration.id == id))

    def get_by_pair(self, db: Session, *, participant_id: int, event_id: int) -> Optional[Registration]:
        return self._one(
            db,
            self._query(db).filter(
                Registration.participant_id == participant_id,
                Registration.event_id == event_id,
            ),
        )

    def get_by_ticket(self, db: Session, *, event_id: int, ticket_id: str) -> Optional[Registration]:
        return self._one(
            db,
            self._query(db).filter(
                Registration.event_id == event_id,
                Registration.ticket_id == ticket_id,
            ),
        )

    def get_by_participant(
        self, db: Session, *, participant_id: int, upcoming_only: bool = False
    ) -> List[Registration]:
        regs = self._many(
            db,
            self._query(db)
            .filter(Registration.participant_id == participant_id)
            .order_by(Registration.created_at.desc(), Registration.id.desc()),
        )
        if upcoming_only:
            regs = [reg for reg in regs if reg.status == RegistrationStatus.UPCOMING.value]
        return regs

    def get_by_event(
        self,
        db: Session,
        *,
        event_id: int,
        include_cancelled: bool = True,
        payment_status: Optional[str] = None,
    ) -> List[Registration]:
        query = self._query(db).filter(Registration.event_id == event_id)
        if not include_cancelled:
            query = query.filter(Registration.status != RegistrationStatus.CANCELLED.value)
        if payment_status:
            query = query.filter(Registration.payment_status == payment_status)
        return self._many(db, query.order_by(Registration.created_at.desc(), Registration.id.desc()))

    def get_orders_for_organizer(self, db: Session, *, organizer_id: int) -> List[Registration]:
        query = (
            self._query(db)
            .join(Event, Registration.event_id == Event.id)
            .filter(Event.organizer_id == organizer_id, Registration.payment_status.isnot(None))
            .order_by(Registration.created_at.desc(), Registration.id.desc())
        )
        return self._many(db, query)

    def count_active(self, db: Session, *, event_id: int) -> int:
        return (
            db.query(Registration)
            .filter(
                Registration.event_id == event_id,
                Registration.status != RegistrationStatus.CANCELLED.value,
            )
            .count()
        )

    # ---------------------------
    # Conditional status writes (no commit; callers own the transaction)
    # ---------------------------
    def reactivate(self, db: Session, *, registration_id: int, values: dict) -> bool:
        """CANCELLED -> UPCOMING. False if someone else already moved it."""
        result = db.execute(
            update(Registration)
            .where(
                Registration.id == registration_id,
                Registration.status == RegistrationStatus.CANCELLED.value,
            )
            .values(status=RegistrationStatus.UPCOMING.value, updated_at=utcnow(), **values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def mark_cancelled(self, db: Session, *, registration_id: int) -> bool:
        result = db.execute(
            update(Registration)
            .where(
                Registration.id == registration_id,
                Registration.status != RegistrationStatus.CANCELLED.value,
            )
            .values(
                status=RegistrationStatus.CANCELLED.value,
                ticket_id=None,
                ticket_qr=None,
                ticket_qr_content_type=None,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def set_payment_status(
        self, db: Session, *, registration_id: int, expected: List[str], values: dict
    ) -> bool:
        """Move an order's payment status only if it is still one of ``expected``."""
        result = db.execute(
            update(Registration)
            .where(
                Registration.id == registration_id,
                Registration.payment_status.in_(expected),
            )
            .values(updated_at=utcnow(), **values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def mark_first_scan(
        self, db: Session, *, registration_id: int, scanner_id: int, method: str, ts: datetime
    ) -> bool:
        """Set attended only if it is still false. Exactly one concurrent caller wins."""
        result = db.execute(
            update(Registration)
            .where(Registration.id == registration_id, Registration.attended.is_(False))
            .values(attended=True, first_scan_at=ts, scanned_by=scanner_id, scan_method=method)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1


registration = CRUDRegistration(Registration)
