"""Rolling monthly rent generation.

Generates rent rows for rolling (month-to-month) tenancies one month ahead, so
tenants can see next month's charge before it falls due.

Per member, in order:
1. Members without a positive rent_pppw are not billed
2. Months inside a mid-month start's first payment window are resolved against
   the consolidated first payment (see first_payment.py)
3. A rent row already due in the target month means the month is done
4. Otherwise the payment is calculated and inserted

Safe to run any number of times, including concurrently for the same
organization: existing rows are skipped and the store's unique index rejects a
racing duplicate, which is counted as skipped.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import NamedTuple

from sqlalchemy import case, func, or_
from sqlalchemy.orm import Session

from src.models.organization import Organization
from src.models.tenancy import BILLABLE_STATUSES, Tenancy
from src.models.tenancy_member import TenancyMember
from src.services.audit_service import AuditService
from src.services.first_payment import FirstPaymentResolver, Resolution
from src.services.payment_schedule_service import PaymentScheduleService
from src.services.rent_calculations import (
    BillingMonth,
    PaymentCandidate,
    calculate_first_month_payment,
    calculate_monthly_payment,
)

logger = logging.getLogger(__name__)


def owes_rent_in(month: BillingMonth):
    """Filter for tenancies with rent that can fall due in the month.

    A tenancy that ended before the month still owes its consolidated first
    payment, due on the 1st, when it started after the 1st of the previous month.
    """
    return or_(
        Tenancy.end_date.is_(None),
        Tenancy.end_date >= month.start,
        Tenancy.start_date > month.previous().start,
    )


class MemberStatus(str, Enum):
    """Outcome of planning one member's rent for a month."""

    INELIGIBLE = "ineligible"
    SKIPPED = "skipped"
    PENDING = "pending"
    CREATED = "created"


@dataclass
class GenerationResult:
    """Counters for one organization's generation run."""

    success: bool
    target_month: str | None = None
    tenancies_processed: int = 0
    tenancies_failed: int = 0
    payments_created: int = 0
    payments_skipped: int = 0
    payments_failed: int = 0
    members_ineligible: int = 0
    error: str | None = None

    def to_dict(self) -> dict:
        """Wire shape returned to API callers."""
        data = {
            "success": self.success,
            "targetMonth": self.target_month,
            "tenanciesProcessed": self.tenancies_processed,
            "tenanciesFailed": self.tenancies_failed,
            "paymentsCreated": self.payments_created,
            "paymentsSkipped": self.payments_skipped,
            "paymentsFailed": self.payments_failed,
            "membersIneligible": self.members_ineligible,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class _TenancyOutcome:
    created: int = 0
    skipped: int = 0
    failed: int = 0
    ineligible: int = 0


class PreviewLine(NamedTuple):
    """A rent row the next run would create."""

    tenancy_id: int
    tenancy_member_id: int
    due_date: date
    amount_due: Decimal
    description: str
    covers_from: date
    covers_to: date


class RollingSummary(NamedTuple):
    """Counts of billable rolling tenancies for monitoring."""

    total_rolling: int
    ongoing: int
    terminating: int
    auto_generate_enabled: int


class RollingPaymentService:
    """Service generating monthly rent rows for rolling tenancies."""

    def __init__(self, db_session: Session):
        """Initialize with database session."""
        self.db = db_session
        self.schedules = PaymentScheduleService(db_session)
        self.resolver = FirstPaymentResolver(self.schedules)

    def get_eligible_tenancies(self, organization_id: int, month: BillingMonth) -> list[Tenancy]:
        """Get rolling tenancies that may owe rent for the month.

        Criteria:
        - is_rolling_monthly and auto_generate_payments are both set
        - status is approval or active
        - open-ended, ending on or after the first day of the month, or
          started mid-way through the previous month (first payment due now)

        The landlord manage_rent gate is applied per tenancy by the caller.
        """
        return (
            self.db.query(Tenancy)
            .filter(
                Tenancy.organization_id == organization_id,
                Tenancy.is_rolling_monthly.is_(True),
                Tenancy.auto_generate_payments.is_(True),
                Tenancy.status.in_(BILLABLE_STATUSES),
                owes_rent_in(month),
            )
            .order_by(Tenancy.id)
            .all()
        )

    def _plan_member(
        self,
        tenancy: Tenancy,
        member: TenancyMember,
        month: BillingMonth,
    ) -> tuple[MemberStatus, PaymentCandidate | None]:
        if not member.rent_pppw or member.rent_pppw <= 0:
            logger.debug("Tenancy %d, member %d: no rent amount, skipping", tenancy.id, member.id)
            return MemberStatus.INELIGIBLE, None

        resolution = self.resolver.resolve(tenancy.id, member.id, tenancy.start_date, month)
        if resolution == Resolution.ALREADY_COVERED:
            logger.debug(
                "Tenancy %d, member %d: %s already covered by first payment, skipping",
                tenancy.id,
                member.id,
                month,
            )
            return MemberStatus.SKIPPED, None

        if self.schedules.rent_exists_for_month(tenancy.id, member.id, month):
            logger.debug(
                "Tenancy %d, member %d: rent for %s already exists, skipping",
                tenancy.id,
                member.id,
                month,
            )
            return MemberStatus.SKIPPED, None

        if resolution == Resolution.CREATE_CONSOLIDATED:
            candidate = calculate_first_month_payment(
                tenancy.start_date, member.rent_pppw, tenancy.end_date
            )
        else:
            candidate = calculate_monthly_payment(
                month, tenancy.start_date, tenancy.end_date, member.rent_pppw
            )

        if candidate is None:
            return MemberStatus.INELIGIBLE, None
        return MemberStatus.PENDING, candidate

    def _generate_for_member(
        self,
        tenancy: Tenancy,
        member: TenancyMember,
        month: BillingMonth,
    ) -> MemberStatus:
        status, candidate = self._plan_member(tenancy, member, month)
        if status != MemberStatus.PENDING:
            return status

        payment = self.schedules.create_rent_payment(
            tenancy.organization_id, tenancy.id, member.id, candidate
        )
        if payment is None:
            return MemberStatus.SKIPPED
        return MemberStatus.CREATED

    def _process_tenancy(self, tenancy: Tenancy, month: BillingMonth) -> _TenancyOutcome | None:
        if not tenancy.property.manages_rent:
            logger.info("Tenancy %d: landlord doesn't manage rent, skipping", tenancy.id)
            return None

        outcome = _TenancyOutcome()
        for member in tenancy.members:
            try:
                with self.db.begin_nested():
                    status = self._generate_for_member(tenancy, member, month)
            except Exception:
                logger.exception(
                    "Tenancy %d, member %d: failed to generate rent for %s",
                    tenancy.id,
                    member.id,
                    month,
                )
                outcome.failed += 1
                continue

            if status == MemberStatus.CREATED:
                outcome.created += 1
            elif status == MemberStatus.SKIPPED:
                outcome.skipped += 1
            else:
                outcome.ineligible += 1

        return outcome

    def generate_rolling_monthly_payments(
        self,
        organization_id: int,
        target_month: BillingMonth | None = None,
        today: date | None = None,
        actor_id: int | None = None,
    ) -> GenerationResult:
        """Generate rent rows for every eligible rolling tenancy member.

        Never raises: member and tenancy failures are counted and the run moves on;
        anything else ends the run with success=False and zero counters, leaving
        the next scheduled run to pick the month up again.

        Args:
            organization_id: Organization to bill
            target_month: Month to bill (default: the month after today)
            today: Reference date for the default target month
            actor_id: Staff user for manual runs (None for scheduled runs)

        Returns:
            GenerationResult with counters for the run
        """
        if target_month is None:
            target_month = BillingMonth.containing(today or date.today()).next()

        logger.info(
            "Generating rolling payments for organization %d, month %s (due %s)",
            organization_id,
            target_month,
            target_month.start,
        )

        result = GenerationResult(success=True, target_month=target_month.key)
        try:
            organization = self.db.get(Organization, organization_id)
            if organization is None:
                logger.error("Organization %d not found", organization_id)
                return GenerationResult(
                    success=False,
                    target_month=target_month.key,
                    error=f"Organization {organization_id} not found",
                )
            if not organization.is_active:
                logger.info("Organization %d is inactive, nothing to generate", organization_id)
                return result

            tenancies = self.get_eligible_tenancies(organization_id, target_month)
            if not tenancies:
                logger.info("No rolling tenancies need payment generation")
                return result

            for tenancy in tenancies:
                tenancy_id = tenancy.id
                try:
                    outcome = self._process_tenancy(tenancy, target_month)
                    self.db.commit()
                except Exception:
                    self.db.rollback()
                    logger.exception("Tenancy %d: failed to generate rolling payments", tenancy_id)
                    result.tenancies_failed += 1
                    continue

                if outcome is None:
                    continue

                if outcome.created > 0:
                    logger.info("Tenancy %d: created %d payment(s)", tenancy_id, outcome.created)

                result.tenancies_processed += 1
                result.payments_created += outcome.created
                result.payments_skipped += outcome.skipped
                result.payments_failed += outcome.failed
                result.members_ineligible += outcome.ineligible

            if result.payments_created > 0:
                AuditService.log_rolling_run(
                    self.db,
                    organization_id,
                    target_month.key,
                    result.payments_created,
                    result.payments_skipped,
                    actor_id,
                )
                self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.exception(
                "Error generating rolling payments for organization %d", organization_id
            )
            return GenerationResult(success=False, target_month=target_month.key, error=str(e))

        logger.info(
            "Rolling payments complete for organization %d: %d created, %d skipped, %d failed",
            organization_id,
            result.payments_created,
            result.payments_skipped,
            result.payments_failed,
        )
        return result

    def preview_month(self, organization_id: int, month: BillingMonth) -> list[PreviewLine]:
        """List the rent rows a run for the month would create, without writing.

        Returns:
            One PreviewLine per member that would be billed
        """
        lines: list[PreviewLine] = []
        for tenancy in self.get_eligible_tenancies(organization_id, month):
            if not tenancy.property.manages_rent:
                continue
            for member in tenancy.members:
                status, candidate = self._plan_member(tenancy, member, month)
                if status != MemberStatus.PENDING:
                    continue
                lines.append(
                    PreviewLine(
                        tenancy_id=tenancy.id,
                        tenancy_member_id=member.id,
                        due_date=candidate.due_date,
                        amount_due=candidate.amount_due,
                        description=candidate.description,
                        covers_from=candidate.covers_from,
                        covers_to=candidate.covers_to,
                    )
                )
        return lines

    def get_rolling_tenancies_summary(self, organization_id: int) -> RollingSummary:
        """Count rolling tenancies in approval/active status for monitoring."""
        total, ongoing, terminating, auto_enabled = (
            self.db.query(
                func.count(Tenancy.id),
                func.sum(case((Tenancy.end_date.is_(None), 1), else_=0)),
                func.sum(case((Tenancy.end_date.is_not(None), 1), else_=0)),
                func.sum(case((Tenancy.auto_generate_payments.is_(True), 1), else_=0)),
            )
            .filter(
                Tenancy.organization_id == organization_id,
                Tenancy.is_rolling_monthly.is_(True),
                Tenancy.status.in_(BILLABLE_STATUSES),
            )
            .one()
        )
        return RollingSummary(
            total_rolling=int(total or 0),
            ongoing=int(ongoing or 0),
            terminating=int(terminating or 0),
            auto_generate_enabled=int(auto_enabled or 0),
        )


__all__ = [
    "GenerationResult",
    "MemberStatus",
    "PreviewLine",
    "RollingPaymentService",
    "RollingSummary",
    "owes_rent_in",
]
