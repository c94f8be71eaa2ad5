"""Pydantic schemas for loans."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ledgerly.core.validators import reject_null


class LoanBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    lender: Optional[str] = Field(None, max_length=255)
    original_amount: Decimal = Field(..., gt=0)
    interest_rate: Optional[Decimal] = Field(None, ge=0, description="Annual rate in percent")
    monthly_payment: Optional[Decimal] = Field(None, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    currency: str = Field("ILS", min_length=3, max_length=3)
    notes: Optional[str] = None


class LoanCreate(LoanBase):
    remaining_amount: Optional[Decimal] = Field(None, ge=0, description="Defaults to the original amount")


class LoanUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    lender: Optional[str] = Field(None, max_length=255)
    original_amount: Optional[Decimal] = Field(None, gt=0)
    remaining_amount: Optional[Decimal] = Field(None, ge=0)
    interest_rate: Optional[Decimal] = Field(None, ge=0)
    monthly_payment: Optional[Decimal] = Field(None, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    notes: Optional[str] = None

    @field_validator("name", "original_amount", "remaining_amount", "currency")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class LoanResponse(LoanBase):
    id: str
    remaining_amount: Decimal
    is_active: bool
    created_at: datetime
    paid_off_percent: int = 0

    class Config:
        from_attributes = True
