"""Payment schedule ORM model: one expected payment from a tenancy member."""

from datetime import date
from decimal import Decimal
from enum import Enum

from sqlalchemy import Date, ForeignKey, Index, Numeric, String, text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from src.models import Base, BaseModel


class PaymentType(str, Enum):
    """Kind of obligation a schedule row represents."""

    RENT = "rent"
    DEPOSIT = "deposit"
    FEE = "fee"
    OTHER = "other"


class PaymentStatus(str, Enum):
    """Settlement status of a schedule row."""

    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"


class ScheduleType(str, Enum):
    """Origin of a schedule row."""

    AUTOMATED = "automated"
    """Created by the rent generator"""

    MANUAL = "manual"
    """Entered by staff"""


class PaymentSchedule(Base, BaseModel):
    """Model representing a scheduled payment for a tenancy member.

    due_month mirrors due_date as "YYYY-MM" so the store can enforce at most one
    rent row per member per calendar month (partial unique index
    uq_payment_schedule_member_type_month).
    """

    __tablename__ = "payment_schedules"

    organization_id: Mapped[int] = mapped_column(
        ForeignKey("organizations.id"),
        nullable=False,
        index=True,
    )
    tenancy_id: Mapped[int] = mapped_column(
        ForeignKey("tenancies.id"),
        nullable=False,
        index=True,
    )
    tenancy_member_id: Mapped[int] = mapped_column(
        ForeignKey("tenancy_members.id"),
        nullable=False,
        index=True,
    )
    payment_type: Mapped[PaymentType] = mapped_column(
        SQLEnum(PaymentType),
        nullable=False,
        default=PaymentType.RENT,
    )
    description: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    due_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        index=True,
    )
    due_month: Mapped[str] = mapped_column(
        String(7),
        nullable=False,
        comment="Calendar month of due_date (YYYY-MM)",
    )
    amount_due: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
    )
    status: Mapped[PaymentStatus] = mapped_column(
        SQLEnum(PaymentStatus),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    schedule_type: Mapped[ScheduleType] = mapped_column(
        SQLEnum(ScheduleType),
        nullable=False,
        default=ScheduleType.MANUAL,
    )
    covers_from: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
        comment="First day of the billed period",
    )
    covers_to: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
        comment="Last day of the billed period",
    )

    # Relationships
    tenancy_member: Mapped["TenancyMember"] = relationship(  # noqa: F821
        "TenancyMember",
        back_populates="payment_schedules",
    )

    __table_args__ = (
        # Rent only: staff may still enter several fees for one member in a month
        Index(
            "uq_payment_schedule_member_type_month",
            "tenancy_member_id",
            "payment_type",
            "due_month",
            unique=True,
            sqlite_where=text("payment_type = 'RENT'"),
            postgresql_where=text("payment_type = 'RENT'"),
        ),
        Index("idx_schedule_tenancy_member_due", "tenancy_id", "tenancy_member_id", "due_date"),
    )

    @validates("due_date")
    def _sync_due_month(self, key: str, value: date) -> date:
        self.due_month = value.strftime("%Y-%m")
        return value

    def __repr__(self) -> str:
        return (
            f"<PaymentSchedule(id={self.id}, tenancy_member_id={self.tenancy_member_id}, "
            f"payment_type={self.payment_type}, due_date={self.due_date}, "
            f"amount_due={self.amount_due}, status={self.status})>"
        )


__all__ = ["PaymentSchedule", "PaymentType", "PaymentStatus", "ScheduleType"]
