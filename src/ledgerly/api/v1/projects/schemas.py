"""Pydantic schemas for projects."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ledgerly.core.validators import reject_null

PROJECT_STATUS_PATTERN = "^(ACTIVE|COMPLETED|ON_HOLD|CANCELLED)$"


class ProjectBase(BaseModel):
    """Base schema for project."""

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    status: str = Field("ACTIVE", pattern=PROJECT_STATUS_PATTERN)
    budget: Optional[Decimal] = Field(None, ge=0)
    hourly_rate: Optional[Decimal] = Field(None, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class ProjectCreate(ProjectBase):
    """Schema for creating a project."""

    client_id: str


class ProjectUpdate(BaseModel):
    """Schema for updating a project."""

    client_id: Optional[str] = None
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[str] = Field(None, pattern=PROJECT_STATUS_PATTERN)
    budget: Optional[Decimal] = Field(None, ge=0)
    hourly_rate: Optional[Decimal] = Field(None, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @field_validator("client_id", "name", "status")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class ProjectResponse(ProjectBase):
    """Schema for project response with budget tracking."""

    id: str
    client_id: str
    client_name: Optional[str] = None
    is_active: bool
    created_at: datetime
    transaction_income: Decimal = Decimal("0.00")
    transaction_expenses: Decimal = Decimal("0.00")
    invoice_revenue: Decimal = Decimal("0.00")
    total_revenue: Decimal = Decimal("0.00")
    budget_used: Decimal = Decimal("0.00")
    budget_remaining: Optional[Decimal] = None
    budget_percent_used: Optional[int] = None
