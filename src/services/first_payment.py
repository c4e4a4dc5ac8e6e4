"""Consolidated first payment for rolling tenancies that start mid-month.

A tenancy starting on, say, 10 March is first billed on 1 April for 10-31 March
plus all of April. The monthly run must recognise both March and April as part
of that single payment and never bill either on its own.
"""

import logging
from datetime import date
from enum import Enum

from src.services.payment_schedule_service import PaymentScheduleService
from src.services.rent_calculations import BillingMonth, consolidation_window

logger = logging.getLogger(__name__)


class Resolution(str, Enum):
    """How the monthly run should treat a target month."""

    NOT_APPLICABLE = "not_applicable"
    """Outside any consolidation window: bill the month normally"""

    ALREADY_COVERED = "already_covered"
    """The consolidated first payment exists and covers this month"""

    CREATE_CONSOLIDATED = "create_consolidated"
    """Inside the window and the consolidated payment is missing: create it"""


class FirstPaymentResolver:
    """Decides whether a target month belongs to a consolidated first payment."""

    def __init__(self, schedules: PaymentScheduleService):
        self.schedules = schedules

    def resolve(
        self,
        tenancy_id: int,
        member_id: int,
        start_date: date,
        month: BillingMonth,
    ) -> Resolution:
        """Resolve the target month against the member's first payment.

        Whichever of the two window months is processed first creates the
        consolidated payment; the other then finds it by its due date (1st of the
        following month). If that row is later deleted by hand, the next run over
        either month creates it again.
        """
        window = consolidation_window(start_date)
        if window is None or month not in window:
            return Resolution.NOT_APPLICABLE

        _, next_month = window
        if self.schedules.rent_exists_with_due_date(tenancy_id, member_id, next_month.start):
            return Resolution.ALREADY_COVERED

        logger.debug(
            "Member %d: %s falls in first payment window %s-%s, consolidated payment missing",
            member_id,
            month,
            window[0],
            next_month,
        )
        return Resolution.CREATE_CONSOLIDATED


__all__ = ["FirstPaymentResolver", "Resolution", "consolidation_window"]
