"""Financial report routes."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ledgerly.api.dependencies import get_current_active_user, get_db
from ledgerly.domain.services.report_service import ReportService
from ledgerly.infrastructure.database.models import User

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/profit-loss")
def get_profit_loss(
    date_from: Optional[date] = Query(None, alias="from", description="Defaults to the first day of this month"),
    date_to: Optional[date] = Query(None, alias="to", description="Defaults to today"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> dict:
    """
    Profit & loss statement.

    Revenue, expenses by category with deductible amounts, gross and net
    profit, margin and a monthly breakdown.
    """
    return ReportService(db).profit_loss(current_user.business_id, date_from, date_to)


@router.get("/cash-flow")
def get_cash_flow(
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> dict:
    """Opening balance, inflows, outflows and running monthly balance."""
    return ReportService(db).cash_flow(current_user.business_id, date_from, date_to)


@router.get("/client-revenue")
def get_client_revenue(
    date_from: Optional[date] = Query(None, alias="from", description="Defaults to January 1st"),
    date_to: Optional[date] = Query(None, alias="to"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> dict:
    return ReportService(db).client_revenue(current_user.business_id, date_from, date_to)


@router.get("/category-breakdown")
def get_category_breakdown(
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> dict:
    return ReportService(db).category_breakdown(current_user.business_id, date_from, date_to)


@router.get("/tax-summary")
def get_tax_summary(
    year: Optional[int] = Query(None, ge=2000, le=2100, description="Defaults to the current year"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> dict:
    summary = ReportService(db).tax_summary(current_user.business_id, year)
    summary["periods"] = [
        {
            "id": p.id,
            "type": p.type,
            "status": p.status,
            "period_start": p.period_start,
            "period_end": p.period_end,
            "vat_due": p.vat_due,
            "tax_advance": p.tax_advance,
        }
        for p in summary["periods"]
    ]
    return summary


@router.get("/forecast")
def get_forecast(
    months: int = Query(6, ge=1, le=24, description="Months to project"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> dict:
    """Income and expense projection from the last six months plus pending invoices."""
    return ReportService(db).forecast(current_user.business_id, months)
