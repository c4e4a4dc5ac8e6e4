"""Rent calculations for rolling monthly tenancies.

Single source of rent math for the monthly generator and the statement estimate:
- Calendar Month (PCM) conversion of weekly rent: rent_pppw * 52 / 12
- Proration of partial months: (billable days / days in month) * monthly rate
- Consolidated first payment for tenancies starting mid-month

The monthly rate is never rounded on its own; rounding to pennies happens once,
on the amount that is emitted.
"""

import math
from calendar import month_name
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import NamedTuple

from dateutil.relativedelta import relativedelta

from src.services.errors import InvalidBillingMonthError

WEEKS_PER_YEAR = Decimal("52")
MONTHS_PER_YEAR = Decimal("12")
PENNY = Decimal("0.01")


@dataclass(frozen=True, order=True)
class BillingMonth:
    """A calendar month that rent is billed for."""

    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise InvalidBillingMonthError(f"Month must be 1-12, got {self.month}")
        if not 1 <= self.year <= 9999:
            raise InvalidBillingMonthError(f"Year out of range: {self.year}")

    @classmethod
    def containing(cls, day: date) -> "BillingMonth":
        return cls(day.year, day.month)

    @classmethod
    def parse(cls, value: str) -> "BillingMonth":
        """Parse a "YYYY-MM" month key."""
        try:
            year, month = value.strip().split("-")
            return cls(int(year), int(month))
        except InvalidBillingMonthError:
            raise
        except (AttributeError, ValueError) as e:
            raise InvalidBillingMonthError(f"Expected month as YYYY-MM, got {value!r}") from e

    @property
    def start(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def end(self) -> date:
        return self.start + relativedelta(months=1) - timedelta(days=1)

    @property
    def days(self) -> int:
        return self.end.day

    @property
    def key(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    @property
    def label(self) -> str:
        return f"{month_name[self.month]} {self.year}"

    def next(self) -> "BillingMonth":
        return BillingMonth.containing(self.start + relativedelta(months=1))

    def previous(self) -> "BillingMonth":
        return BillingMonth.containing(self.start - relativedelta(months=1))

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def __str__(self) -> str:
        return self.key


class RentForDays(NamedTuple):
    """Rent for a run of days within one calendar month."""

    days: int
    weeks: int
    amount: Decimal


class PaymentCandidate(NamedTuple):
    """A rent obligation computed for a member but not yet stored."""

    due_date: date
    amount_due: Decimal
    description: str
    days: int
    covers_from: date
    covers_to: date


def _to_decimal(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def round_money(amount: Decimal) -> Decimal:
    """Round an amount to pennies (half up)."""
    return _to_decimal(amount).quantize(PENNY, rounding=ROUND_HALF_UP)


def calendar_month_rate(rent_pppw) -> Decimal:
    """Convert weekly rent to its calendar-month equivalent (unrounded).

    Args:
        rent_pppw: Rent per person per week

    Returns:
        rent_pppw * 52 / 12

    Raises:
        ValueError: If rent is negative
    """
    weekly = _to_decimal(rent_pppw)
    if weekly < 0:
        raise ValueError(f"Weekly rent cannot be negative: {weekly}")
    return weekly * WEEKS_PER_YEAR / MONTHS_PER_YEAR


def inclusive_days(start: date, end: date) -> int:
    """Number of days from start to end, both included (same day = 1)."""
    return (end - start).days + 1


def calculate_rent_for_days(days: int, rent_pppw, days_in_month: int) -> RentForDays:
    """Calculate rent for a number of days using the Calendar Month method.

    A full month is billed at the fixed monthly rate regardless of its length;
    a partial month is billed as (days / days_in_month) * monthly rate.
    """
    monthly_rate = calendar_month_rate(rent_pppw)
    weeks = math.ceil(days / 7)

    if days == days_in_month:
        amount = round_money(monthly_rate)
    else:
        amount = round_money(Decimal(days) / Decimal(days_in_month) * monthly_rate)

    return RentForDays(days=days, weeks=weeks, amount=amount)


def _check_dates(start_date: date, end_date: date | None) -> None:
    if end_date is not None and end_date < start_date:
        raise ValueError(f"Tenancy end {end_date} is before its start {start_date}")


def calculate_monthly_payment(
    month: BillingMonth,
    start_date: date,
    end_date: date | None,
    rent_pppw,
) -> PaymentCandidate | None:
    """Calculate the rent obligation of one member for one calendar month.

    The billable window is the month clipped to the tenancy. Rolling tenancies are
    always due on the 1st of the month; proration goes into the amount.

    Args:
        month: Month being billed
        start_date: Tenancy start date
        end_date: Tenancy end date (None while open-ended)
        rent_pppw: Rent per person per week

    Returns:
        PaymentCandidate, or None when the tenancy does not overlap the month or
        the amount is not positive
    """
    _check_dates(start_date, end_date)

    if month.end < start_date:
        return None
    if end_date is not None and month.start > end_date:
        return None

    effective_start = max(month.start, start_date)
    effective_end = min(month.end, end_date) if end_date is not None else month.end

    days = inclusive_days(effective_start, effective_end)
    rent = calculate_rent_for_days(days, rent_pppw, month.days)

    if rent.amount <= 0:
        return None

    return PaymentCandidate(
        due_date=month.start,
        amount_due=rent.amount,
        description=f"Rent - {month.label}",
        days=days,
        covers_from=effective_start,
        covers_to=effective_end,
    )


def consolidation_window(start_date: date) -> tuple[BillingMonth, BillingMonth] | None:
    """Months billed together by the first payment of a mid-month start.

    Returns:
        (start month, following month), or None when the tenancy starts on the 1st
    """
    if start_date.day == 1:
        return None
    start_month = BillingMonth.containing(start_date)
    return start_month, start_month.next()


def calculate_first_month_payment(
    start_date: date,
    rent_pppw,
    end_date: date | None = None,
) -> PaymentCandidate | None:
    """Calculate the first rent payment of a rolling tenancy.

    Starting on the 1st: a normal month, due on the start date.

    Starting mid-month: the partial start month plus the whole following month,
    each prorated on its own and summed, due on the 1st of the following month.
    Nothing falls due before move-in.
    """
    window = consolidation_window(start_date)
    if window is None:
        return calculate_monthly_payment(
            BillingMonth.containing(start_date), start_date, end_date, rent_pppw
        )

    start_month, next_month = window
    partial = calculate_monthly_payment(start_month, start_date, end_date, rent_pppw)
    full = calculate_monthly_payment(next_month, start_date, end_date, rent_pppw)

    parts = [p for p in (partial, full) if p is not None]
    if not parts:
        return None

    total = round_money(sum((p.amount_due for p in parts), Decimal("0")))
    if total <= 0:
        return None

    if partial is not None and full is not None:
        description = f"Rent - {start_month.label} (partial) & {next_month.label}"
    elif partial is not None:
        description = f"Rent - {start_month.label} (partial)"
    else:
        description = f"Rent - {next_month.label}"

    return PaymentCandidate(
        due_date=next_month.start,
        amount_due=total,
        description=description,
        days=sum(p.days for p in parts),
        covers_from=parts[0].covers_from,
        covers_to=parts[-1].covers_to,
    )


def calculate_payment_for_month(
    month: BillingMonth,
    start_date: date,
    end_date: date | None,
    rent_pppw,
) -> PaymentCandidate | None:
    """The row the generator creates when it bills this month from scratch.

    For either month of a mid-month start's consolidation window this is the
    consolidated first payment (due in the following month); otherwise it is the
    ordinary monthly payment.
    """
    window = consolidation_window(start_date)
    if window is not None and month in window:
        return calculate_first_month_payment(start_date, rent_pppw, end_date)
    return calculate_monthly_payment(month, start_date, end_date, rent_pppw)


def estimate_month_rent(
    month: BillingMonth,
    start_date: date,
    end_date: date | None,
    rent_pppw,
) -> Decimal:
    """Rent expected to fall due in a month for which no row exists yet.

    Matches what the generator will store: the start month of a mid-month start
    has nothing due, its following month carries the consolidated payment.
    """
    candidate = calculate_payment_for_month(month, start_date, end_date, rent_pppw)
    if candidate is None or not month.contains(candidate.due_date):
        return Decimal("0.00")
    return candidate.amount_due


__all__ = [
    "BillingMonth",
    "PaymentCandidate",
    "RentForDays",
    "calendar_month_rate",
    "calculate_first_month_payment",
    "calculate_monthly_payment",
    "calculate_payment_for_month",
    "calculate_rent_for_days",
    "consolidation_window",
    "estimate_month_rent",
    "inclusive_days",
    "round_money",
]
