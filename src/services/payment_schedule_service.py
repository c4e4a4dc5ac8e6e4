"""Payment schedule persistence for generated rent rows."""

import logging
from datetime import date

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.models.payment_schedule import (
    PaymentSchedule,
    PaymentStatus,
    PaymentType,
    ScheduleType,
)
from src.services.errors import DuplicatePaymentError
from src.services.rent_calculations import BillingMonth, PaymentCandidate

logger = logging.getLogger(__name__)


class PaymentScheduleService:
    """Service for rent PaymentSchedule lookups and guarded inserts.

    The existence checks are a fast path. The partial unique index on
    (tenancy_member_id, payment_type, due_month) is what actually prevents a
    second rent row when two runs race for the same member and month.
    """

    def __init__(self, db_session: Session):
        """Initialize with database session."""
        self.db = db_session

    def _rent_query(self, tenancy_id: int, member_id: int):
        return self.db.query(PaymentSchedule.id).filter(
            PaymentSchedule.tenancy_id == tenancy_id,
            PaymentSchedule.tenancy_member_id == member_id,
            PaymentSchedule.payment_type == PaymentType.RENT,
        )

    def rent_exists_for_month(self, tenancy_id: int, member_id: int, month: BillingMonth) -> bool:
        """Check whether a rent row is already due within the given month.

        Args:
            tenancy_id: Tenancy ID
            member_id: Tenancy member ID
            month: Month to check

        Returns:
            True if any rent row for the member has due_date inside the month
        """
        query = self._rent_query(tenancy_id, member_id).filter(
            PaymentSchedule.due_date >= month.start,
            PaymentSchedule.due_date <= month.end,
        )
        return query.first() is not None

    def rent_exists_with_due_date(self, tenancy_id: int, member_id: int, due_date: date) -> bool:
        """Check whether a rent row exists with exactly this due date."""
        query = self._rent_query(tenancy_id, member_id).filter(
            PaymentSchedule.due_date == due_date
        )
        return query.first() is not None

    def create_rent_payment(
        self,
        organization_id: int,
        tenancy_id: int,
        member_id: int,
        candidate: PaymentCandidate,
        strict: bool = False,
    ) -> PaymentSchedule | None:
        """Insert an automated rent row inside a savepoint.

        A uniqueness conflict only rolls back the savepoint, so the caller's
        transaction and earlier inserts stay intact.

        Args:
            organization_id: Owning organization
            tenancy_id: Tenancy ID
            member_id: Tenancy member ID
            candidate: Computed payment to store
            strict: Raise DuplicatePaymentError on conflict instead of returning None

        Returns:
            Created PaymentSchedule, or None if a rent row already exists for that month

        Raises:
            DuplicatePaymentError: On conflict when strict is True
        """
        payment = PaymentSchedule(
            organization_id=organization_id,
            tenancy_id=tenancy_id,
            tenancy_member_id=member_id,
            payment_type=PaymentType.RENT,
            description=candidate.description,
            due_date=candidate.due_date,
            amount_due=candidate.amount_due,
            status=PaymentStatus.PENDING,
            schedule_type=ScheduleType.AUTOMATED,
            covers_from=candidate.covers_from,
            covers_to=candidate.covers_to,
        )

        try:
            with self.db.begin_nested():
                self.db.add(payment)
                self.db.flush()
        except IntegrityError as e:
            logger.warning(
                "Rent payment for member %d due %s already exists (concurrent insert), skipping",
                member_id,
                candidate.due_date,
            )
            if strict:
                raise DuplicatePaymentError(member_id, payment.due_month) from e
            return None

        return payment

    def list_rent_payments(self, member_id: int) -> list[PaymentSchedule]:
        """List rent rows for a member ordered by due date."""
        return (
            self.db.query(PaymentSchedule)
            .filter(
                PaymentSchedule.tenancy_member_id == member_id,
                PaymentSchedule.payment_type == PaymentType.RENT,
            )
            .order_by(PaymentSchedule.due_date.asc())
            .all()
        )


__all__ = ["PaymentScheduleService"]
