"""Pydantic schemas for savings."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ledgerly.core.validators import reject_null


class SavingBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    target_amount: Optional[Decimal] = Field(None, gt=0)
    current_amount: Decimal = Field(Decimal("0"), ge=0)
    interest_rate: Optional[Decimal] = Field(None, ge=0)
    start_date: Optional[date] = None
    target_date: Optional[date] = None
    currency: str = Field("ILS", min_length=3, max_length=3)
    notes: Optional[str] = None


class SavingCreate(SavingBase):
    pass


class SavingUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    target_amount: Optional[Decimal] = Field(None, gt=0)
    current_amount: Optional[Decimal] = Field(None, ge=0)
    interest_rate: Optional[Decimal] = Field(None, ge=0)
    start_date: Optional[date] = None
    target_date: Optional[date] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    notes: Optional[str] = None

    @field_validator("name", "current_amount", "currency")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class SavingResponse(SavingBase):
    id: str
    is_active: bool
    created_at: datetime
    progress: int = 0
    remaining: Optional[Decimal] = None
