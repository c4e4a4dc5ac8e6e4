"""Tenancy member ORM model (one tenant on a tenancy)."""

from decimal import Decimal

from sqlalchemy import ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models import Base, BaseModel


class TenancyMember(Base, BaseModel):
    """Model representing one tenant's share of a tenancy.

    Rent is held per person per week (rent_pppw). Members without a positive
    rent_pppw are never billed.
    """

    __tablename__ = "tenancy_members"

    tenancy_id: Mapped[int] = mapped_column(
        ForeignKey("tenancies.id"),
        nullable=False,
        index=True,
    )
    name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    rent_pppw: Mapped[Decimal | None] = mapped_column(
        Numeric(10, 2),
        nullable=True,
        comment="Rent per person per week",
    )
    payment_option: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
        comment="Payment option chosen at signing (monthly, quarterly, upfront)",
    )

    # Relationships
    tenancy: Mapped["Tenancy"] = relationship(  # noqa: F821
        "Tenancy",
        back_populates="members",
    )
    payment_schedules: Mapped[list["PaymentSchedule"]] = relationship(  # noqa: F821
        "PaymentSchedule",
        back_populates="tenancy_member",
    )

    def __repr__(self) -> str:
        return (
            f"<TenancyMember(id={self.id}, tenancy_id={self.tenancy_id}, "
            f"rent_pppw={self.rent_pppw}, payment_option={self.payment_option!r})>"
        )


__all__ = ["TenancyMember"]
