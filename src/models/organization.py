"""Organization ORM model: the letting agency that owns all other records."""

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models import Base, BaseModel


class Organization(Base, BaseModel):
    """Model representing a tenant organization (letting agency).

    Every tenancy, property, landlord and payment schedule row is scoped to exactly
    one organization. The daily rent run iterates active organizations only.
    """

    __tablename__ = "organizations"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="Agency display name",
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
        index=True,
        comment="Inactive organizations are skipped by the scheduler",
    )

    # Relationships
    tenancies: Mapped[list["Tenancy"]] = relationship(  # noqa: F821
        "Tenancy",
        back_populates="organization",
    )

    def __repr__(self) -> str:
        return f"<Organization(id={self.id}, name={self.name!r}, is_active={self.is_active})>"


__all__ = ["Organization"]
