"""Admin API endpoints for rolling rent generation and statement estimates."""

import logging
from datetime import date, datetime
from decimal import Decimal

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from src.models.organization import Organization
from src.services import get_db
from src.services.audit_service import AuditService
from src.services.errors import InvalidBillingMonthError
from src.services.rent_calculations import BillingMonth
from src.services.rolling_payment_service import RollingPaymentService
from src.services.statement_service import StatementService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/organizations/{organization_id}", tags=["rolling-payments"])


class GenerateRequest(BaseModel):
    """Payload for POST /rolling-payments/generate."""

    month: str | None = Field(None, description="Month to bill as YYYY-MM (default: next month)")
    actor_id: int | None = Field(None, description="Staff user triggering the run")


class GenerateResponse(BaseModel):
    """Result of a generation run."""

    success: bool
    targetMonth: str | None
    tenanciesProcessed: int
    tenanciesFailed: int
    paymentsCreated: int
    paymentsSkipped: int
    paymentsFailed: int
    membersIneligible: int
    error: str | None = None


class SummaryResponse(BaseModel):
    """Rolling tenancy counts."""

    total_rolling: int
    ongoing: int
    terminating: int
    auto_generate_enabled: int


class PreviewLineResponse(BaseModel):
    """One rent row the next run would create."""

    tenancy_id: int
    tenancy_member_id: int
    due_date: date
    amount_due: Decimal
    description: str
    covers_from: date
    covers_to: date


class RunResponse(BaseModel):
    """One recorded generation run."""

    created_at: datetime
    actor_id: int | None
    target_month: str | None
    payments_created: int
    payments_skipped: int


class EstimateResponse(BaseModel):
    """Rolling rent estimate for one statement month."""

    year: int
    month: int
    estimate: Decimal


def _require_organization(db: Session, organization_id: int) -> Organization:
    organization = db.get(Organization, organization_id)
    if organization is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Organization not found")
    return organization


def _parse_month(value: str) -> BillingMonth:
    try:
        return BillingMonth.parse(value)
    except InvalidBillingMonthError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e


@router.post("/rolling-payments/generate", response_model=GenerateResponse)
def generate_rolling_payments(
    organization_id: int,
    payload: GenerateRequest | None = Body(None),  # noqa: B008
    db: Session = Depends(get_db),  # noqa: B008
) -> GenerateResponse:
    """
    Manually run rolling rent generation for one organization.

    Returns:
        200: Run counters
        404: Organization not found
        422: Invalid month
        500: Run failed (counters are zero, error explains why)
    """
    _require_organization(db, organization_id)
    payload = payload or GenerateRequest()
    target = _parse_month(payload.month) if payload.month else None

    result = RollingPaymentService(db).generate_rolling_monthly_payments(
        organization_id, target_month=target, actor_id=payload.actor_id
    )
    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=result.error or "Rolling payment generation failed",
        )

    logger.info(
        "Manual rolling payment run for organization %d by actor %s: %d created",
        organization_id,
        payload.actor_id,
        result.payments_created,
    )
    return GenerateResponse(**result.to_dict())


@router.get("/rolling-payments/summary", response_model=SummaryResponse)
def rolling_payments_summary(
    organization_id: int,
    db: Session = Depends(get_db),  # noqa: B008
) -> SummaryResponse:
    """Count rolling tenancies by state for monitoring."""
    _require_organization(db, organization_id)
    summary = RollingPaymentService(db).get_rolling_tenancies_summary(organization_id)
    return SummaryResponse(**summary._asdict())


@router.get("/rolling-payments/preview", response_model=list[PreviewLineResponse])
def rolling_payments_preview(
    organization_id: int,
    month: str = Query(..., description="Month as YYYY-MM"),
    db: Session = Depends(get_db),  # noqa: B008
) -> list[PreviewLineResponse]:
    """List the rows a run for the month would create, without writing them."""
    _require_organization(db, organization_id)
    lines = RollingPaymentService(db).preview_month(organization_id, _parse_month(month))
    return [PreviewLineResponse(**line._asdict()) for line in lines]


@router.get("/rolling-payments/runs", response_model=list[RunResponse])
def rolling_payment_runs(
    organization_id: int,
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),  # noqa: B008
) -> list[RunResponse]:
    """Latest generation runs that created rent rows, newest first."""
    _require_organization(db, organization_id)
    runs = []
    for entry in AuditService.recent_runs(db, organization_id, limit):
        changes = entry.changes or {}
        runs.append(
            RunResponse(
                created_at=entry.created_at,
                actor_id=entry.actor_id,
                target_month=changes.get("target_month"),
                payments_created=changes.get("payments_created", 0),
                payments_skipped=changes.get("payments_skipped", 0),
            )
        )
    return runs


@router.get("/statements/estimate", response_model=EstimateResponse)
def rolling_estimate(
    organization_id: int,
    year: int = Query(...),
    month: int = Query(...),
    landlord_id: int | None = Query(None, description="-1 for properties without a landlord"),
    db: Session = Depends(get_db),  # noqa: B008
) -> EstimateResponse:
    """Estimate rolling rent not yet generated for a statement month."""
    _require_organization(db, organization_id)
    try:
        estimate = StatementService(db).calculate_rolling_monthly_estimate(
            organization_id, year, month, landlord_id
        )
    except InvalidBillingMonthError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    return EstimateResponse(year=year, month=month, estimate=estimate)


__all__ = ["router"]
