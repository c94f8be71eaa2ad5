"""Pydantic schemas for categories."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ledgerly.core.validators import reject_null

SLUG_PATTERN = r"^[\w-]+$"


class CategoryBase(BaseModel):
    """Base schema for category."""

    name: str = Field(..., min_length=1, max_length=100)
    icon: Optional[str] = Field(None, max_length=20)
    color: Optional[str] = Field(None, max_length=20)
    is_income: bool = False
    sort_order: int = 0
    exclude_from_expense_total: bool = Field(False, description="Keep out of expense totals (e.g. card settlements)")
    is_tax_deductible: bool = True
    deduction_rate: Decimal = Field(Decimal("100"), ge=0, le=100, description="Deductible percentage")


class CategoryCreate(CategoryBase):
    """Schema for creating a category."""

    slug: Optional[str] = Field(None, max_length=100, pattern=SLUG_PATTERN, description="Defaults to the name")


class CategoryUpdate(BaseModel):
    """Schema for updating a category."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    slug: Optional[str] = Field(None, max_length=100, pattern=SLUG_PATTERN)
    icon: Optional[str] = Field(None, max_length=20)
    color: Optional[str] = Field(None, max_length=20)
    is_income: Optional[bool] = None
    sort_order: Optional[int] = None
    exclude_from_expense_total: Optional[bool] = None
    is_tax_deductible: Optional[bool] = None
    deduction_rate: Optional[Decimal] = Field(None, ge=0, le=100)

    @field_validator(
        "name", "slug", "is_income", "sort_order", "exclude_from_expense_total", "is_tax_deductible", "deduction_rate"
    )
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class CategoryResponse(CategoryBase):
    """Schema for category response."""

    id: str
    slug: str
    is_default: bool
    created_at: datetime

    class Config:
        from_attributes = True
