"""Unit tests for payment schedule persistence."""

from datetime import date
from decimal import Decimal

import pytest

from src.models import PaymentSchedule, PaymentStatus, PaymentType, ScheduleType
from src.services.errors import DuplicatePaymentError
from src.services.payment_schedule_service import PaymentScheduleService
from src.services.rent_calculations import BillingMonth, PaymentCandidate


def _candidate(due_date: date, amount: str = "433.33") -> PaymentCandidate:
    return PaymentCandidate(
        due_date=due_date,
        amount_due=Decimal(amount),
        description=f"Rent - {BillingMonth.containing(due_date).label}",
        days=30,
        covers_from=due_date,
        covers_to=BillingMonth.containing(due_date).end,
    )


@pytest.fixture
def tenancy(lettings):
    """Rolling tenancy with one member."""
    return lettings.tenancy(start_date=date(2025, 1, 1))


@pytest.fixture
def service(db_session):
    """Create payment schedule service."""
    return PaymentScheduleService(db_session)


class TestPaymentScheduleService:
    """Test rent lookups and guarded inserts."""

    def test_create_rent_payment_sets_automated_fields(self, service, tenancy, db_session):
        """Test inserted row is a pending automated rent row with due_month set."""
        member = tenancy.members[0]
        payment = service.create_rent_payment(
            tenancy.organization_id, tenancy.id, member.id, _candidate(date(2025, 3, 1))
        )
        db_session.commit()

        assert payment.id is not None
        assert payment.payment_type == PaymentType.RENT
        assert payment.status == PaymentStatus.PENDING
        assert payment.schedule_type == ScheduleType.AUTOMATED
        assert payment.due_month == "2025-03"
        assert payment.amount_due == Decimal("433.33")

    def test_rent_exists_for_month(self, service, tenancy, db_session):
        """Test month guard matches any due date inside the month only."""
        member = tenancy.members[0]
        service.create_rent_payment(
            tenancy.organization_id, tenancy.id, member.id, _candidate(date(2025, 3, 15))
        )
        db_session.commit()

        assert service.rent_exists_for_month(tenancy.id, member.id, BillingMonth(2025, 3))
        assert not service.rent_exists_for_month(tenancy.id, member.id, BillingMonth(2025, 4))
        assert service.rent_exists_with_due_date(tenancy.id, member.id, date(2025, 3, 15))
        assert not service.rent_exists_with_due_date(tenancy.id, member.id, date(2025, 3, 1))

    def test_duplicate_month_returns_none(self, service, tenancy, db_session):
        """Test unique index turns a second rent row for the month into a skip."""
        member = tenancy.members[0]
        first = service.create_rent_payment(
            tenancy.organization_id, tenancy.id, member.id, _candidate(date(2025, 3, 1))
        )
        second = service.create_rent_payment(
            tenancy.organization_id, tenancy.id, member.id, _candidate(date(2025, 3, 20), "10.00")
        )
        db_session.commit()

        assert first is not None
        assert second is None
        rows = service.list_rent_payments(member.id)
        assert len(rows) == 1
        assert rows[0].amount_due == Decimal("433.33")

    def test_duplicate_month_strict_raises(self, service, tenancy, db_session):
        """Test strict mode surfaces the conflict."""
        member = tenancy.members[0]
        service.create_rent_payment(
            tenancy.organization_id, tenancy.id, member.id, _candidate(date(2025, 3, 1))
        )

        with pytest.raises(DuplicatePaymentError, match="2025-03"):
            service.create_rent_payment(
                tenancy.organization_id,
                tenancy.id,
                member.id,
                _candidate(date(2025, 3, 1)),
                strict=True,
            )

    def test_conflict_keeps_earlier_inserts_in_transaction(self, service, lettings, db_session):
        """Test a rejected insert only rolls back its own savepoint."""
        tenancy = lettings.tenancy(
            start_date=date(2025, 1, 1), rents=(Decimal("100"), Decimal("120"))
        )
        first_member, second_member = tenancy.members

        service.create_rent_payment(
            tenancy.organization_id, tenancy.id, first_member.id, _candidate(date(2025, 3, 1))
        )
        db_session.commit()

        created = service.create_rent_payment(
            tenancy.organization_id, tenancy.id, second_member.id, _candidate(date(2025, 3, 1))
        )
        rejected = service.create_rent_payment(
            tenancy.organization_id, tenancy.id, first_member.id, _candidate(date(2025, 3, 1))
        )
        db_session.commit()

        assert created is not None
        assert rejected is None
        assert len(service.list_rent_payments(second_member.id)) == 1

    def test_other_payment_types_are_not_unique_per_month(self, service, tenancy, db_session):
        """Test several fees in one month are allowed and ignored by the rent guard."""
        member = tenancy.members[0]
        for amount in ("25.00", "40.00"):
            db_session.add(
                PaymentSchedule(
                    organization_id=tenancy.organization_id,
                    tenancy_id=tenancy.id,
                    tenancy_member_id=member.id,
                    payment_type=PaymentType.FEE,
                    due_date=date(2025, 3, 5),
                    amount_due=Decimal(amount),
                )
            )
        db_session.commit()

        assert not service.rent_exists_for_month(tenancy.id, member.id, BillingMonth(2025, 3))
        assert service.list_rent_payments(member.id) == []

    def test_list_rent_payments_ordered_by_due_date(self, service, tenancy, db_session):
        """Test rows come back oldest first."""
        member = tenancy.members[0]
        for due in (date(2025, 5, 1), date(2025, 3, 1), date(2025, 4, 1)):
            service.create_rent_payment(
                tenancy.organization_id, tenancy.id, member.id, _candidate(due)
            )
        db_session.commit()

        assert [row.due_date for row in service.list_rent_payments(member.id)] == [
            date(2025, 3, 1),
            date(2025, 4, 1),
            date(2025, 5, 1),
        ]
