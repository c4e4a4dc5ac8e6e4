"""Audit trail for billing runs."""

from sqlalchemy.orm import Session

from src.models.audit_log import AuditLog

GENERATE_ROLLING_PAYMENTS = "generate_rolling_payments"


class AuditService:
    """Records who triggered billing work for an organization and what it produced."""

    @staticmethod
    def log(
        db: Session,
        organization_id: int,
        entity_type: str,
        entity_id: int,
        action: str,
        actor_id: int | None = None,
        changes: dict | None = None,
    ) -> AuditLog:
        """Add an audit entry to the session; the caller commits.

        Args:
            db: Database session
            organization_id: Organization the event belongs to
            entity_type: "organization", "payment_schedule", etc.
            entity_id: Primary key of the entity
            action: Action performed
            actor_id: Staff user, None when the scheduler ran it
            changes: Optional JSON snapshot of the outcome

        Returns:
            Pending AuditLog object
        """
        entry = AuditLog(
            organization_id=organization_id,
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            actor_id=actor_id,
            changes=changes,
        )
        db.add(entry)
        return entry

    @classmethod
    def log_rolling_run(
        cls,
        db: Session,
        organization_id: int,
        target_month: str,
        payments_created: int,
        payments_skipped: int,
        actor_id: int | None = None,
    ) -> AuditLog:
        """Record a generation run that created rent rows."""
        return cls.log(
            db,
            organization_id,
            "organization",
            organization_id,
            GENERATE_ROLLING_PAYMENTS,
            actor_id,
            {
                "target_month": target_month,
                "payments_created": payments_created,
                "payments_skipped": payments_skipped,
            },
        )

    @staticmethod
    def recent_runs(db: Session, organization_id: int, limit: int = 10) -> list[AuditLog]:
        """Latest generation runs for an organization, newest first."""
        return (
            db.query(AuditLog)
            .filter(
                AuditLog.organization_id == organization_id,
                AuditLog.action == GENERATE_ROLLING_PAYMENTS,
            )
            .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
            .limit(limit)
            .all()
        )


__all__ = ["AuditService", "GENERATE_ROLLING_PAYMENTS"]
