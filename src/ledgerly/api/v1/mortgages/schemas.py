"""Pydantic schemas for mortgages."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ledgerly.core.validators import reject_null

TRACK_TYPE_PATTERN = "^(PRIME|FIXED|VARIABLE|CPI_FIXED|CPI_VARIABLE)$"
INDEX_TYPE_PATTERN = "^(NONE|CPI|DOLLAR|EURO)$"


class MortgageTrackBase(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    track_type: str = Field(..., pattern=TRACK_TYPE_PATTERN)
    index_type: Optional[str] = Field(None, pattern=INDEX_TYPE_PATTERN)
    amount: Decimal = Field(..., gt=0)
    interest_rate: Decimal = Field(..., ge=0, le=100, description="Annual rate in percent")
    monthly_payment: Optional[Decimal] = Field(None, ge=0)
    total_payments: Optional[int] = Field(None, ge=1)
    remaining_payments: Optional[int] = Field(None, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    notes: Optional[str] = None


class MortgageTrackCreate(MortgageTrackBase):
    """Track payload, also used to replace a track on update."""

    pass


class MortgageTrackResponse(MortgageTrackBase):
    id: str
    mortgage_id: str
    created_at: datetime

    class Config:
        from_attributes = True


class MortgageBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    bank: Optional[str] = Field(None, max_length=255)
    property_value: Optional[Decimal] = Field(None, ge=0)
    total_amount: Decimal = Field(..., gt=0)
    remaining_amount: Optional[Decimal] = Field(None, ge=0)
    total_monthly: Optional[Decimal] = Field(None, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    currency: str = Field("ILS", min_length=3, max_length=3)
    notes: Optional[str] = None


class MortgageCreate(MortgageBase):
    tracks: list[MortgageTrackCreate] = Field(default_factory=list)


class MortgageUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    bank: Optional[str] = Field(None, max_length=255)
    property_value: Optional[Decimal] = Field(None, ge=0)
    total_amount: Optional[Decimal] = Field(None, gt=0)
    remaining_amount: Optional[Decimal] = Field(None, ge=0)
    total_monthly: Optional[Decimal] = Field(None, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    notes: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("name", "total_amount", "currency", "is_active")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class MortgageResponse(MortgageBase):
    id: str
    is_active: bool
    created_at: datetime
    tracks: list[MortgageTrackResponse] = []
    tracks_amount: Decimal = Decimal("0")
    tracks_monthly_payment: Decimal = Decimal("0")
    weighted_interest_rate: Decimal = Decimal("0")
    monthly_payment: Decimal = Decimal("0")
    paid_off_percent: Optional[int] = None

    class Config:
        from_attributes = True


class MortgageSummaryResponse(BaseModel):
    mortgage_count: int
    track_count: int
    total_amount: Decimal
    total_remaining: Decimal
    total_monthly: Decimal
