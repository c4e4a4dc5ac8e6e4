"""Unit tests for the daily rolling rent scheduler."""

import asyncio
from datetime import date, datetime, time, timezone
from decimal import Decimal
from unittest.mock import patch
from zoneinfo import ZoneInfo

import pytest

from src.models import Organization, PaymentSchedule
from src.services.rent_calculations import BillingMonth
from src.services.scheduler import AdvanceScheduler, next_billing_month, seconds_until_next_run

LONDON = ZoneInfo("Europe/London")


class TestNextBillingMonth:
    """Test the month billed by a run on a given day."""

    def test_bills_following_month(self):
        """Test any day of the month bills the next month."""
        assert next_billing_month(date(2025, 2, 1)) == BillingMonth(2025, 3)
        assert next_billing_month(date(2025, 2, 28)) == BillingMonth(2025, 3)

    def test_december_bills_january(self):
        """Test year rollover."""
        assert next_billing_month(date(2025, 12, 31)) == BillingMonth(2026, 1)


class TestSecondsUntilNextRun:
    """Test wait time calculation for the daily run."""

    def test_run_later_today(self):
        """Test run time still ahead today."""
        now = datetime(2025, 6, 1, 0, 0, tzinfo=LONDON)
        assert seconds_until_next_run(now, time(1, 30), LONDON) == 5400

    def test_run_time_now_waits_a_day(self):
        """Test run time equal to now schedules tomorrow."""
        now = datetime(2025, 6, 1, 1, 30, tzinfo=LONDON)
        assert seconds_until_next_run(now, time(1, 30), LONDON) == 86400

    def test_run_time_passed_waits_until_tomorrow(self):
        """Test run time already passed today."""
        now = datetime(2025, 6, 1, 2, 0, tzinfo=LONDON)
        assert seconds_until_next_run(now, time(1, 30), LONDON) == 84600

    def test_clocks_going_forward(self):
        """Test the night BST starts is an hour shorter (noon GMT to 03:00 BST is 14h)."""
        now = datetime(2025, 3, 29, 12, 0, tzinfo=LONDON)
        assert seconds_until_next_run(now, time(3, 0), LONDON) == 14 * 3600

    def test_clocks_going_back(self):
        """Test the night BST ends is an hour longer (noon BST to 03:00 GMT is 16h)."""
        now = datetime(2025, 10, 25, 12, 0, tzinfo=LONDON)
        assert seconds_until_next_run(now, time(3, 0), LONDON) == 16 * 3600

    def test_now_in_other_timezone(self):
        """Test now is converted into the scheduler timezone first."""
        tokyo = ZoneInfo("Asia/Tokyo")
        # 23:00 UTC is 08:00 next day in Tokyo; 01:30 has passed there
        now = datetime(2025, 1, 15, 23, 0, tzinfo=timezone.utc)
        assert seconds_until_next_run(now, time(1, 30), tokyo) == 17.5 * 3600


class TestAdvanceScheduler:
    """Test scheduled runs across organizations."""

    def test_defaults(self, session_factory):
        """Test default run time and timezone."""
        scheduler = AdvanceScheduler(session_factory)
        assert scheduler.run_at == time(1, 30)
        assert scheduler.timezone.key == "Europe/London"

    def test_run_once_bills_next_month_for_active_organizations(
        self, session_factory, db_session, lettings
    ):
        """Test each active organization is billed for the month after today."""
        lettings.tenancy(start_date=date(2025, 1, 1))
        dormant = Organization(name="Dormant Lettings", is_active=False)
        db_session.add(dormant)
        db_session.commit()
        active_id = lettings.organization.id
        db_session.close()

        results = AdvanceScheduler(session_factory).run_once(today=date(2025, 2, 14))

        assert list(results) == [active_id]
        result = results[active_id]
        assert result.success is True
        assert result.target_month == "2025-03"
        assert result.payments_created == 1

        rows = db_session.query(PaymentSchedule).all()
        assert [(row.due_date, row.amount_due) for row in rows] == [
            (date(2025, 3, 1), Decimal("433.33"))
        ]

    def test_run_once_continues_after_failed_organization(
        self, session_factory, db_session, lettings
    ):
        """Test a failing organization does not stop the others."""
        lettings.tenancy(start_date=date(2025, 1, 1))
        active_id = lettings.organization.id
        db_session.close()

        results = AdvanceScheduler(session_factory).run_once(
            today=date(2025, 2, 14), organization_ids=[999, active_id]
        )

        assert results[999].success is False
        assert results[999].error == "Organization 999 not found"
        assert results[active_id].success is True
        assert results[active_id].payments_created == 1

    def test_run_once_is_idempotent(self, session_factory, db_session, lettings):
        """Test a second run on the same day creates nothing."""
        lettings.tenancy(start_date=date(2025, 1, 1))
        active_id = lettings.organization.id
        db_session.close()
        scheduler = AdvanceScheduler(session_factory)

        scheduler.run_once(today=date(2025, 2, 14))
        second = scheduler.run_once(today=date(2025, 2, 15))

        assert second[active_id].payments_created == 0
        assert second[active_id].payments_skipped == 1
        assert db_session.query(PaymentSchedule).count() == 1


class TestRunForever:
    """Test the scheduler loop."""

    @pytest.mark.asyncio
    async def test_loop_survives_failed_run(self, session_factory):
        """Test an exception in one run is logged and the loop keeps going."""
        scheduler = AdvanceScheduler(session_factory)
        sleeps = []

        async def fake_sleep(delay):
            sleeps.append(delay)
            if len(sleeps) == 3:
                raise asyncio.CancelledError

        run_once = patch.object(
            scheduler, "run_once", side_effect=[RuntimeError("database unavailable"), {}]
        )
        with run_once as mock_run_once, patch(
            "src.services.scheduler.asyncio.sleep", side_effect=fake_sleep
        ):
            with pytest.raises(asyncio.CancelledError):
                await scheduler.run_forever()

        assert mock_run_once.call_count == 2
        assert all(delay > 0 for delay in sleeps)
