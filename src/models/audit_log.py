"""Audit log model for tracking billing run events."""

from typing import Any

from sqlalchemy import JSON, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from src.models import Base, BaseModel


class AuditLog(Base, BaseModel):
    """Audit log entry for tracking changes made on behalf of an organization.

    Records which entity (entity_type, entity_id) was affected by what (action),
    who triggered it (actor_id, None for the scheduler) and an optional snapshot
    of the outcome (changes).
    """

    __tablename__ = "audit_logs"

    organization_id: Mapped[int] = mapped_column(ForeignKey("organizations.id"), index=True)
    """Organization the event belongs to."""

    entity_type: Mapped[str] = mapped_column(index=False)
    """Entity type being audited: "organization", "payment_schedule", etc."""

    entity_id: Mapped[int] = mapped_column(index=False)
    """Primary key of the entity being audited."""

    action: Mapped[str] = mapped_column(index=False)
    """Action performed: "generate_rolling_payments", etc."""

    actor_id: Mapped[int | None] = mapped_column(nullable=True, index=False)
    """Staff user who triggered the action. None for scheduled runs."""

    changes: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True, index=False)
    """Optional JSON snapshot: {"target_month": "2025-03", "payments_created": 4}."""

    def __repr__(self) -> str:
        return (
            f"<AuditLog(id={self.id}, entity_type={self.entity_type}, entity_id={self.entity_id}, "
            f"action={self.action}, actor_id={self.actor_id}, created_at={self.created_at})>"
        )


__all__ = ["AuditLog"]
