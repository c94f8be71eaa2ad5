"""Pydantic schemas for transactions."""

import datetime as dt
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ledgerly.core.validators import reject_null


class TransactionBase(BaseModel):
    """Base schema for transaction."""

    account_id: str
    category_id: Optional[str] = None
    client_id: Optional[str] = None
    project_id: Optional[str] = None
    date: dt.date
    description: str = Field(..., min_length=1, max_length=500)
    amount: Decimal = Field(..., description="Signed amount: income > 0, expense < 0")
    currency: str = Field("ILS", min_length=3, max_length=3)
    vat_amount: Optional[Decimal] = Field(None, description="Explicit VAT, skips calculation")
    vat_rate: Optional[Decimal] = Field(None, ge=0, le=100, description="Defaults to the business rate")
    is_vat_included: bool = True
    is_tax_deductible: bool = True
    deduction_rate: Decimal = Field(Decimal("100"), ge=0, le=100)
    is_recurring: bool = False
    installment_current: Optional[int] = Field(None, ge=1)
    installment_total: Optional[int] = Field(None, ge=1)
    installment_total_amount: Optional[Decimal] = None
    notes: Optional[str] = None


class TransactionCreate(TransactionBase):
    """Schema for creating a transaction."""

    pass


class TransactionUpdate(BaseModel):
    """Schema for updating a transaction."""

    account_id: Optional[str] = None
    category_id: Optional[str] = None
    client_id: Optional[str] = None
    project_id: Optional[str] = None
    date: Optional[dt.date] = None
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    amount: Optional[Decimal] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    vat_amount: Optional[Decimal] = None
    vat_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    is_vat_included: Optional[bool] = None
    is_tax_deductible: Optional[bool] = None
    deduction_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    is_recurring: Optional[bool] = None
    installment_current: Optional[int] = Field(None, ge=1)
    installment_total: Optional[int] = Field(None, ge=1)
    installment_total_amount: Optional[Decimal] = None
    notes: Optional[str] = None

    @field_validator(
        "account_id",
        "date",
        "description",
        "amount",
        "currency",
        "is_vat_included",
        "is_tax_deductible",
        "deduction_rate",
        "is_recurring",
    )
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class CategoryUpdateRequest(BaseModel):
    category_id: Optional[str] = None


class TransactionResponse(BaseModel):
    """Schema for transaction response."""

    id: str
    account_id: str
    account_name: Optional[str] = None
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    category_slug: Optional[str] = None
    client_id: Optional[str] = None
    client_name: Optional[str] = None
    project_id: Optional[str] = None
    project_name: Optional[str] = None
    date: dt.date
    display_date: dt.date
    first_payment_date: dt.date
    description: str
    amount: Decimal
    display_amount: Decimal
    currency: str
    vat_amount: Optional[Decimal] = None
    vat_rate: Optional[Decimal] = None
    is_vat_included: bool
    is_tax_deductible: bool
    deduction_rate: Decimal
    is_recurring: bool
    installment_current: Optional[int] = None
    installment_total: Optional[int] = None
    installment_total_amount: Optional[Decimal] = None
    notes: Optional[str] = None
    created_at: datetime


class TransactionListResponse(BaseModel):
    """Paginated transaction list."""

    items: list[TransactionResponse]
    total: int
    page: int
    limit: int
    pages: int


class BulkIdsRequest(BaseModel):
    ids: list[str] = Field(..., min_length=1)


class BulkUpdateRequest(BaseModel):
    ids: list[str] = Field(..., min_length=1)
    category_id: Optional[str] = None
    account_id: Optional[str] = None
    date: Optional[dt.date] = None
    description: Optional[str] = Field(None, min_length=1, max_length=500)

    @field_validator("date", "description")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class BulkResult(BaseModel):
    count: int


class ImportItem(BaseModel):
    """A parsed statement row."""

    date: dt.date
    description: str = Field(..., min_length=1, max_length=500)
    amount: Decimal
    category_slug: Optional[str] = None
    total_amount: Optional[Decimal] = Field(None, description="Full installment plan price")
    installment_current: Optional[int] = Field(None, ge=1)
    installment_total: Optional[int] = Field(None, ge=1)


class ImportRequest(BaseModel):
    account_id: str
    transactions: list[ImportItem]


class ImportResponse(BaseModel):
    imported: int
    items: list[TransactionResponse]
