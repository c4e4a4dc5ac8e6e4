"""Property ORM model for let properties."""

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models import Base, BaseModel


class Property(Base, BaseModel):
    """Model representing a let property, optionally linked to a landlord.

    A property without a landlord is treated as agency-managed: rent is always
    collected for its tenancies.
    """

    __tablename__ = "properties"

    organization_id: Mapped[int] = mapped_column(
        ForeignKey("organizations.id"),
        nullable=False,
        index=True,
    )
    landlord_id: Mapped[int | None] = mapped_column(
        ForeignKey("landlords.id"),
        nullable=True,
        index=True,
        comment="Owning landlord (null for agency-managed properties)",
    )
    address: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    # Relationships
    landlord: Mapped["Landlord | None"] = relationship(  # noqa: F821
        "Landlord",
        back_populates="properties",
        foreign_keys=[landlord_id],
    )
    tenancies: Mapped[list["Tenancy"]] = relationship(  # noqa: F821
        "Tenancy",
        back_populates="property",
    )

    __table_args__ = (Index("idx_property_org_landlord", "organization_id", "landlord_id"),)

    @property
    def manages_rent(self) -> bool:
        """Return True unless the linked landlord has opted out of rent management."""
        if self.landlord is None:
            return True
        return bool(self.landlord.manage_rent)

    def __repr__(self) -> str:
        return (
            f"<Property(id={self.id}, organization_id={self.organization_id}, "
            f"landlord_id={self.landlord_id}, address={self.address!r})>"
        )


__all__ = ["Property"]
