"""Landlord ORM model."""

from sqlalchemy import Boolean, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models import Base, BaseModel


class Landlord(Base, BaseModel):
    """Model representing a property landlord.

    The manage_rent flag gates rent collection: when False the agency does not bill
    tenants of this landlord's properties, so no rent rows are generated for them.
    """

    __tablename__ = "landlords"

    organization_id: Mapped[int] = mapped_column(
        ForeignKey("organizations.id"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    manage_rent: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
        comment="Whether the agency collects rent on this landlord's behalf",
    )

    # Relationships
    properties: Mapped[list["Property"]] = relationship(  # noqa: F821
        "Property",
        back_populates="landlord",
    )

    def __repr__(self) -> str:
        return (
            f"<Landlord(id={self.id}, organization_id={self.organization_id}, "
            f"name={self.name!r}, manage_rent={self.manage_rent})>"
        )


__all__ = ["Landlord"]
