"""Tax period routes."""

from datetime import date
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ledgerly.api.dependencies import get_current_active_user, get_db
from ledgerly.domain.services.tax_service import TaxService
from ledgerly.infrastructure.database.models import User

from .schemas import (
    TAX_PERIOD_TYPE_PATTERN,
    FileRequest,
    PayRequest,
    TaxPeriodCreate,
    TaxPeriodResponse,
    TaxPeriodUpdate,
    TaxYearSummaryResponse,
)

router = APIRouter(prefix="/tax", tags=["Tax"])


@router.get("/periods", response_model=list[TaxPeriodResponse])
def list_periods(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    type: Optional[str] = Query(None, pattern=TAX_PERIOD_TYPE_PATTERN),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """List tax periods, latest first."""
    return TaxService(db).list_periods(current_user.business_id, year=year, type=type)


@router.post("/periods", response_model=TaxPeriodResponse, status_code=status.HTTP_201_CREATED)
def create_period(
    data: TaxPeriodCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return TaxService(db).create_period(
        current_user.business_id,
        type=data.type,
        period_start=data.period_start,
        period_end=data.period_end,
        notes=data.notes,
    )


@router.get("/periods/{period_id}", response_model=TaxPeriodResponse)
def get_period(
    period_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return TaxService(db).get_period(current_user.business_id, period_id)


@router.put("/periods/{period_id}", response_model=TaxPeriodResponse)
def update_period(
    period_id: str,
    data: TaxPeriodUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return TaxService(db).update_period(current_user.business_id, period_id, data.model_dump(exclude_unset=True))


@router.post("/periods/{period_id}/calculate", response_model=TaxPeriodResponse)
def calculate_period(
    period_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Compute revenue, expenses, VAT and the income-tax advance for the period."""
    return TaxService(db).calculate_period(current_user.business_id, period_id)


@router.post("/periods/{period_id}/file", response_model=TaxPeriodResponse)
def file_period(
    period_id: str,
    data: Optional[FileRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    filed_date = data.filed_date if data else None
    return TaxService(db).mark_filed(current_user.business_id, period_id, filed_date)


@router.post("/periods/{period_id}/pay", response_model=TaxPeriodResponse)
def pay_period(
    period_id: str,
    data: Optional[PayRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    paid_date = data.paid_date if data else None
    return TaxService(db).mark_paid(current_user.business_id, period_id, paid_date)


@router.get("/summary/{year}", response_model=TaxYearSummaryResponse)
def get_yearly_summary(
    year: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Annual revenue, VAT position and estimated income tax."""
    return TaxService(db).yearly_summary(current_user.business_id, year)


@router.get("/vat-report")
def get_vat_report(
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> dict[str, Any]:
    """Output invoices and input expenses for a VAT return."""
    return TaxService(db).vat_report(current_user.business_id, date_from, date_to)
