"""Pydantic schemas for goals."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ledgerly.core.validators import reject_null


class GoalBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    target_amount: Decimal = Field(..., gt=0)
    current_amount: Decimal = Field(Decimal("0"), ge=0)
    target_date: Optional[date] = None
    monthly_target: Optional[Decimal] = Field(None, ge=0, description="Derived from target_date when omitted")
    icon: Optional[str] = Field(None, max_length=20)
    color: Optional[str] = Field(None, max_length=20)
    priority: int = 0
    currency: str = Field("ILS", min_length=3, max_length=3)
    notes: Optional[str] = None


class GoalCreate(GoalBase):
    pass


class GoalUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    target_amount: Optional[Decimal] = Field(None, gt=0)
    current_amount: Optional[Decimal] = Field(None, ge=0)
    target_date: Optional[date] = None
    monthly_target: Optional[Decimal] = Field(None, ge=0)
    icon: Optional[str] = Field(None, max_length=20)
    color: Optional[str] = Field(None, max_length=20)
    priority: Optional[int] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    notes: Optional[str] = None

    @field_validator("name", "target_amount", "current_amount", "priority", "currency")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class GoalResponse(GoalBase):
    id: str
    is_active: bool
    created_at: datetime
    progress: int
    remaining_amount: Decimal
    months_remaining: Optional[int] = None
