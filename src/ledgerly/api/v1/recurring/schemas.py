"""Pydantic schemas for recurring patterns."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class RecurringPatternResponse(BaseModel):
    id: str
    description: str
    amount: Decimal
    type: str
    frequency: str
    category_id: Optional[str] = None
    account_id: Optional[str] = None
    last_seen_date: date
    occurrences: int
    is_confirmed: bool
    is_dismissed: bool
    created_at: datetime

    class Config:
        from_attributes = True


class ApplyConfirmedResponse(BaseModel):
    patterns_applied: int
    transactions_updated: int
