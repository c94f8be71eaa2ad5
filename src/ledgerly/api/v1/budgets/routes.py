"""Budget routes."""

from datetime import date
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ledgerly.api.dependencies import get_current_active_user, get_db
from ledgerly.core.date_helpers import parse_month
from ledgerly.domain.services.budget_service import BudgetService
from ledgerly.infrastructure.database.models import User

from .schemas import BudgetResponse, BudgetSummaryResponse, BudgetUpsert

router = APIRouter(prefix="/budgets", tags=["Budgets"])

MONTH_PATTERN = r"^\d{4}-\d{2}$"


def build_budget_response(row: dict[str, Any]) -> BudgetResponse:
    budget = row["budget"]
    category = budget.category
    return BudgetResponse(
        id=budget.id,
        category_id=budget.category_id,
        category_name=category.name if category else None,
        category_icon=category.icon if category else None,
        category_color=category.color if category else None,
        amount=row["amount"],
        spent=row["spent"],
        remaining=row["remaining"],
        percent_used=row["percent_used"],
        is_over=row["is_over"],
        created_at=budget.created_at,
    )


@router.get("", response_model=list[BudgetResponse])
def list_budgets(
    month: Optional[str] = Query(None, pattern=MONTH_PATTERN, description="YYYY-MM, defaults to the current month"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Active budgets with spending for the month."""
    ref = parse_month(month, date.today())
    rows = BudgetService(db).list_budgets(current_user.business_id, ref)
    return [build_budget_response(row) for row in rows]


@router.get("/summary", response_model=BudgetSummaryResponse)
def get_budget_summary(
    month: Optional[str] = Query(None, pattern=MONTH_PATTERN, description="YYYY-MM"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return BudgetService(db).summary(current_user.business_id, month)


@router.post("", response_model=BudgetResponse)
def upsert_budget(
    data: BudgetUpsert,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Create or update the budget of a category."""
    service = BudgetService(db)
    budget = service.upsert(current_user.business_id, data.category_id, data.amount)
    row = next(r for r in service.list_budgets(current_user.business_id) if r["budget"].id == budget.id)
    return build_budget_response(row)


@router.delete("/{budget_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_budget(
    budget_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    BudgetService(db).delete(current_user.business_id, budget_id)
    return None
