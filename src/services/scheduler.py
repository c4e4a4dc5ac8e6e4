"""Daily trigger for rolling rent generation.

Once a day, at a fixed local time, bills the month after the current one for
every active organization. Holds no business logic: the same work can be run by
hand with src.cli.generate_rent or the admin API.
"""

import asyncio
import logging
from datetime import date, datetime, time, timedelta, timezone as dt_timezone
from typing import Callable
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from src.models.organization import Organization
from src.services.rent_calculations import BillingMonth
from src.services.rolling_payment_service import GenerationResult, RollingPaymentService

logger = logging.getLogger(__name__)


def next_billing_month(today: date) -> BillingMonth:
    """Month billed by a run on the given day (always the following month)."""
    return BillingMonth.containing(today).next()


def seconds_until_next_run(now: datetime, run_at: time, tz: ZoneInfo) -> float:
    """Seconds from now until the next occurrence of run_at in the given timezone.

    Args:
        now: Current time (timezone-aware)
        run_at: Local time of day to run
        tz: Timezone run_at is expressed in

    Returns:
        Seconds to wait; a run time equal to now is scheduled for tomorrow
    """
    local_now = now.astimezone(tz)
    utc_now = now.astimezone(dt_timezone.utc)
    candidate = datetime.combine(local_now.date(), run_at, tzinfo=tz).astimezone(dt_timezone.utc)
    if candidate <= utc_now:
        tomorrow = local_now.date() + timedelta(days=1)
        candidate = datetime.combine(tomorrow, run_at, tzinfo=tz).astimezone(dt_timezone.utc)
    # Same-tzinfo subtraction ignores DST, so subtract in UTC
    return (candidate - utc_now).total_seconds()


class AdvanceScheduler:
    """Runs rolling rent generation for all active organizations once a day."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        run_at: time = time(1, 30),
        timezone: ZoneInfo | None = None,
    ):
        """Initialize scheduler.

        Args:
            session_factory: Callable returning a new database session
            run_at: Local time of the daily run
            timezone: Timezone of run_at (default: Europe/London)
        """
        self.session_factory = session_factory
        self.run_at = run_at
        self.timezone = timezone or ZoneInfo("Europe/London")

    def _active_organization_ids(self) -> list[int]:
        db = self.session_factory()
        try:
            rows = (
                db.query(Organization.id)
                .filter(Organization.is_active.is_(True))
                .order_by(Organization.id)
                .all()
            )
            return [row[0] for row in rows]
        finally:
            db.close()

    def run_once(
        self,
        today: date | None = None,
        organization_ids: list[int] | None = None,
    ) -> dict[int, GenerationResult]:
        """Generate next month's rent for each organization.

        Each organization runs in its own session; one failing never stops the rest.

        Args:
            today: Reference date (default: today in the scheduler timezone)
            organization_ids: Organizations to run (default: all active)

        Returns:
            GenerationResult per organization ID
        """
        if today is None:
            today = datetime.now(self.timezone).date()
        target = next_billing_month(today)

        if organization_ids is None:
            organization_ids = self._active_organization_ids()

        results: dict[int, GenerationResult] = {}
        for organization_id in organization_ids:
            db = self.session_factory()
            try:
                result = RollingPaymentService(db).generate_rolling_monthly_payments(
                    organization_id, target_month=target
                )
            finally:
                db.close()

            if not result.success:
                logger.error(
                    "Rolling payment generation failed for organization %d: %s",
                    organization_id,
                    result.error,
                )
            elif result.payments_created > 0:
                logger.info(
                    "Rolling payment generation complete for organization %d: %d payment(s) created",
                    organization_id,
                    result.payments_created,
                )
            else:
                logger.info(
                    "Rolling payment generation complete for organization %d: no new payments needed",
                    organization_id,
                )
            results[organization_id] = result

        return results

    async def run_forever(self) -> None:
        """Sleep until the daily run time, run, and repeat until cancelled."""
        logger.info(
            "Rolling payment scheduler activated (daily at %s %s)",
            self.run_at.strftime("%H:%M"),
            self.timezone.key,
        )
        while True:
            delay = seconds_until_next_run(datetime.now(self.timezone), self.run_at, self.timezone)
            logger.debug("Next rolling payment run in %.0f seconds", delay)
            await asyncio.sleep(delay)

            logger.info("Running scheduled rolling monthly payment generation...")
            try:
                await asyncio.to_thread(self.run_once)
            except Exception:
                logger.exception("Error in scheduled rolling payment generation")


__all__ = ["AdvanceScheduler", "next_billing_month", "seconds_until_next_run"]
