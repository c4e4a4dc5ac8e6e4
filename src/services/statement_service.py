"""Statement figures derived from rolling tenancies."""

import logging
from decimal import Decimal

from sqlalchemy import and_, exists, or_
from sqlalchemy.orm import Session

from src.models.landlord import Landlord
from src.models.payment_schedule import PaymentSchedule, PaymentType
from src.models.property import Property
from src.models.tenancy import BILLABLE_STATUSES, Tenancy
from src.models.tenancy_member import TenancyMember
from src.services.rent_calculations import BillingMonth, estimate_month_rent, round_money
from src.services.rolling_payment_service import owes_rent_in

logger = logging.getLogger(__name__)

# landlord_id filter value selecting properties without a landlord
UNASSIGNED_LANDLORD = -1


class StatementService:
    """Service for landlord statement calculations."""

    def __init__(self, db_session: Session):
        """Initialize with database session."""
        self.db = db_session

    def calculate_rolling_monthly_estimate(
        self,
        organization_id: int,
        year: int,
        month: int,
        landlord_id: int | None = None,
    ) -> Decimal:
        """Estimate rent from rolling tenancies whose rows for the month don't exist yet.

        Uses the generator's own rent math, so once the month is generated the
        stored amounts equal this estimate.

        Args:
            organization_id: Organization to report on
            year: Statement year
            month: Statement month (1-12)
            landlord_id: None for all properties, -1 for properties without a
                landlord, otherwise a landlord ID

        Returns:
            Estimated rent total rounded to pennies

        Raises:
            InvalidBillingMonthError: If month is out of range
        """
        billing_month = BillingMonth(year, month)

        rent_in_month = exists().where(
            PaymentSchedule.tenancy_member_id == TenancyMember.id,
            PaymentSchedule.payment_type == PaymentType.RENT,
            PaymentSchedule.due_date >= billing_month.start,
            PaymentSchedule.due_date <= billing_month.end,
        )

        query = (
            self.db.query(TenancyMember, Tenancy)
            .join(Tenancy, TenancyMember.tenancy_id == Tenancy.id)
            .join(Property, Tenancy.property_id == Property.id)
            .outerjoin(Landlord, Property.landlord_id == Landlord.id)
            .filter(
                Tenancy.organization_id == organization_id,
                Tenancy.is_rolling_monthly.is_(True),
                Tenancy.auto_generate_payments.is_(True),
                Tenancy.status.in_(BILLABLE_STATUSES),
                Tenancy.start_date <= billing_month.end,
                owes_rent_in(billing_month),
                or_(Property.landlord_id.is_(None), Landlord.manage_rent.is_(True)),
                and_(TenancyMember.rent_pppw.is_not(None), TenancyMember.rent_pppw > 0),
                ~rent_in_month,
            )
        )

        if landlord_id == UNASSIGNED_LANDLORD:
            query = query.filter(Property.landlord_id.is_(None))
        elif landlord_id:
            query = query.filter(Property.landlord_id == landlord_id)

        total = Decimal("0")
        for member, tenancy in query.all():
            total += estimate_month_rent(
                billing_month, tenancy.start_date, tenancy.end_date, member.rent_pppw
            )

        logger.debug(
            "Rolling estimate for organization %d, %s (landlord=%s): %s",
            organization_id,
            billing_month,
            landlord_id,
            total,
        )
        return round_money(total)


__all__ = ["StatementService", "UNASSIGNED_LANDLORD"]
