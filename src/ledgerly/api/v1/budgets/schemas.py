"""Pydantic schemas for budgets."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class BudgetUpsert(BaseModel):
    """Create or replace the monthly budget of a category."""

    category_id: str
    amount: Decimal = Field(..., ge=0)


class BudgetResponse(BaseModel):
    id: str
    category_id: str
    category_name: Optional[str] = None
    category_icon: Optional[str] = None
    category_color: Optional[str] = None
    amount: Decimal
    spent: Decimal
    remaining: Decimal
    percent_used: int
    is_over: bool
    created_at: datetime


class OverBudgetItem(BaseModel):
    category_id: str
    category_name: Optional[str] = None
    amount: Decimal
    spent: Decimal
    over_by: Decimal


class BudgetSummaryResponse(BaseModel):
    month: str
    total_budgeted: Decimal
    total_spent: Decimal
    remaining: Decimal
    percent_used: int
    budget_count: int
    over_budget_count: int
    over_budget: list[OverBudgetItem]
