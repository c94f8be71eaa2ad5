"""Dashboard routes."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ledgerly.api.dependencies import get_current_active_user, get_db
from ledgerly.api.v1.transactions.routes import build_transaction_response
from ledgerly.api.v1.transactions.schemas import TransactionResponse
from ledgerly.domain.services.dashboard_service import DashboardService
from ledgerly.infrastructure.database.models import User

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/summary")
def get_summary(
    date_from: Optional[date] = Query(None, alias="from", description="Defaults to the first day of this month"),
    date_to: Optional[date] = Query(None, alias="to", description="Defaults to today"),
    account_id: Optional[str] = Query(None),
    category_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> dict:
    """Account balances, period income/expenses and category splits."""
    return DashboardService(db).summary(
        current_user.business_id,
        date_from=date_from,
        date_to=date_to,
        account_id=account_id,
        category_id=category_id,
    )


@router.get("/trends")
def get_trends(
    months: int = Query(6, ge=1, le=60),
    group_by: str = Query("month", pattern="^(month|year)$"),
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> list[dict]:
    return DashboardService(db).trends(
        current_user.business_id,
        months=months,
        group_by=group_by,
        date_from=date_from,
        date_to=date_to,
    )


@router.get("/recent-transactions", response_model=list[TransactionResponse])
def get_recent_transactions(
    limit: int = Query(5, ge=1, le=50),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    rows = DashboardService(db).recent_transactions(current_user.business_id, limit)
    return [build_transaction_response(tx) for tx in rows]


@router.get("/fixed-items")
def get_fixed_items(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> dict:
    """Recurring expenses and income, skipping finished installment plans."""
    return DashboardService(db).fixed_items(current_user.business_id)


@router.get("/cash-flow")
def get_cash_flow(
    days: int = Query(30, ge=1, le=365),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> dict:
    """Unpaid invoices due soon and recurring monthly estimates."""
    return DashboardService(db).cash_flow(current_user.business_id, days)


@router.get("/search")
def search(
    q: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> dict:
    return DashboardService(db).search(current_user.business_id, q)
