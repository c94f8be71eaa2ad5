"""Pydantic schemas for invoices."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ledgerly.core.validators import reject_null

INVOICE_STATUS_PATTERN = "^(DRAFT|SENT|VIEWED|PAID|PARTIALLY_PAID|OVERDUE|CANCELLED)$"
INVOICE_TYPE_PATTERN = "^(TAX_INVOICE|RECEIPT|TAX_INVOICE_RECEIPT|PROFORMA|CREDIT_NOTE)$"


class InvoiceItemCreate(BaseModel):
    description: str = Field(..., min_length=1, max_length=500)
    quantity: Decimal = Field(Decimal("1"), gt=0)
    unit_price: Decimal
    sort_order: Optional[int] = None


class InvoiceItemResponse(BaseModel):
    id: str
    description: str
    quantity: Decimal
    unit_price: Decimal
    amount: Decimal
    sort_order: int

    class Config:
        from_attributes = True


class InvoiceCreate(BaseModel):
    """Schema for creating an invoice."""

    client_id: Optional[str] = None
    project_id: Optional[str] = None
    type: str = Field("TAX_INVOICE", pattern=INVOICE_TYPE_PATTERN)
    issue_date: Optional[date] = Field(None, description="Defaults to today")
    due_date: Optional[date] = None
    vat_rate: Optional[Decimal] = Field(None, ge=0, le=100, description="Defaults to the business rate")
    currency: str = Field("ILS", min_length=3, max_length=3)
    language: str = Field("he", max_length=5)
    notes: Optional[str] = None
    items: list[InvoiceItemCreate] = Field(default_factory=list)


class InvoiceUpdate(BaseModel):
    """Schema for updating a DRAFT invoice."""

    client_id: Optional[str] = None
    project_id: Optional[str] = None
    type: Optional[str] = Field(None, pattern=INVOICE_TYPE_PATTERN)
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    vat_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    language: Optional[str] = Field(None, max_length=5)
    notes: Optional[str] = None
    items: Optional[list[InvoiceItemCreate]] = None

    @field_validator("type", "issue_date", "vat_rate", "currency", "language", "items")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class MarkPaidRequest(BaseModel):
    paid_amount: Optional[Decimal] = Field(None, gt=0, description="Defaults to the remaining balance")
    paid_date: Optional[date] = None
    payment_method: Optional[str] = Field(None, max_length=50)
    payment_reference: Optional[str] = Field(None, max_length=100)


class InvoiceResponse(BaseModel):
    """Schema for invoice response."""

    id: str
    invoice_number: str
    type: str
    status: str
    client_id: Optional[str] = None
    client_name: Optional[str] = None
    project_id: Optional[str] = None
    project_name: Optional[str] = None
    issue_date: date
    due_date: Optional[date] = None
    subtotal: Decimal
    vat_rate: Decimal
    vat_amount: Decimal
    total: Decimal
    currency: str
    language: str
    paid_amount: Optional[Decimal] = None
    paid_date: Optional[date] = None
    payment_method: Optional[str] = None
    payment_reference: Optional[str] = None
    sent_at: Optional[datetime] = None
    notes: Optional[str] = None
    is_overdue: bool = False
    items: list[InvoiceItemResponse] = []
    created_at: datetime


class InvoiceBucket(BaseModel):
    count: int
    total: Decimal


class InvoiceSummaryResponse(BaseModel):
    draft: InvoiceBucket
    sent: InvoiceBucket
    overdue: InvoiceBucket
    paid: InvoiceBucket
    partially_paid: InvoiceBucket
    cancelled: InvoiceBucket
    total_outstanding: Decimal


class NextNumberResponse(BaseModel):
    invoice_number: str
