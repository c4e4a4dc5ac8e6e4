"""Tenancy ORM model."""

from datetime import date
from enum import Enum

from sqlalchemy import Boolean, Date, ForeignKey, Index
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models import Base, BaseModel


class TenancyStatus(str, Enum):
    """Lifecycle status of a tenancy."""

    PENDING = "pending"
    AWAITING_SIGNATURES = "awaiting_signatures"
    APPROVAL = "approval"
    ACTIVE = "active"
    EXPIRED = "expired"


# Statuses in which rolling rent is billed
BILLABLE_STATUSES = (TenancyStatus.APPROVAL, TenancyStatus.ACTIVE)


class Tenancy(Base, BaseModel):
    """Model representing a tenancy on a property.

    Rolling (month-to-month) tenancies have is_rolling_monthly=True and usually no
    end_date; an end_date is set once notice is served. Only rolling tenancies with
    auto_generate_payments=True are billed by the monthly rent run.
    """

    __tablename__ = "tenancies"

    organization_id: Mapped[int] = mapped_column(
        ForeignKey("organizations.id"),
        nullable=False,
        index=True,
    )
    property_id: Mapped[int] = mapped_column(
        ForeignKey("properties.id"),
        nullable=False,
        index=True,
    )
    start_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        comment="First day of occupation",
    )
    end_date: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
        comment="Last day of occupation (null for open-ended rolling tenancies)",
    )
    status: Mapped[TenancyStatus] = mapped_column(
        SQLEnum(TenancyStatus),
        nullable=False,
        default=TenancyStatus.PENDING,
    )
    is_rolling_monthly: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    auto_generate_payments: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
        comment="Whether the monthly rent run may create rent rows for this tenancy",
    )

    # Relationships
    organization: Mapped["Organization"] = relationship(  # noqa: F821
        "Organization",
        back_populates="tenancies",
    )
    property: Mapped["Property"] = relationship(  # noqa: F821
        "Property",
        back_populates="tenancies",
    )
    members: Mapped[list["TenancyMember"]] = relationship(  # noqa: F821
        "TenancyMember",
        back_populates="tenancy",
        cascade="all, delete-orphan",
        order_by="TenancyMember.id",
    )

    __table_args__ = (
        Index("idx_tenancy_org_rolling", "organization_id", "is_rolling_monthly", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<Tenancy(id={self.id}, organization_id={self.organization_id}, "
            f"property_id={self.property_id}, start_date={self.start_date}, "
            f"end_date={self.end_date}, status={self.status}, "
            f"is_rolling_monthly={self.is_rolling_monthly})>"
        )


__all__ = ["Tenancy", "TenancyStatus", "BILLABLE_STATUSES"]
