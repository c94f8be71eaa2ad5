"""Pydantic schemas for tax periods and tax reports."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

TAX_PERIOD_TYPE_PATTERN = "^(VAT_MONTHLY|VAT_BIMONTHLY|INCOME_TAX_ADVANCE|ANNUAL)$"


class TaxPeriodCreate(BaseModel):
    type: str = Field(..., pattern=TAX_PERIOD_TYPE_PATTERN)
    period_start: date
    period_end: date
    notes: Optional[str] = None


class TaxPeriodUpdate(BaseModel):
    """Only notes and the income-tax advance can change before filing."""

    notes: Optional[str] = None
    tax_advance: Optional[Decimal] = Field(None, ge=0)


class FileRequest(BaseModel):
    filed_date: Optional[date] = None


class PayRequest(BaseModel):
    paid_date: Optional[date] = None


class TaxPeriodResponse(BaseModel):
    id: str
    type: str
    status: str
    period_start: date
    period_end: date
    revenue: Optional[Decimal] = None
    expenses: Optional[Decimal] = None
    vat_collected: Optional[Decimal] = None
    vat_paid: Optional[Decimal] = None
    vat_due: Optional[Decimal] = None
    tax_advance: Optional[Decimal] = None
    calculated_at: Optional[datetime] = None
    filed_date: Optional[date] = None
    paid_date: Optional[date] = None
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class InvoiceTotals(BaseModel):
    total_issued: int
    total_paid: int
    invoiced_amount: Decimal
    paid_amount: Decimal


class VatTotals(BaseModel):
    collected: Decimal
    paid: Decimal
    net_due: Decimal


class IncomeTaxTotals(BaseModel):
    advances: Decimal
    estimated_annual: Decimal
    estimated_remaining: Decimal


class TaxYearSummaryResponse(BaseModel):
    year: int
    periods: list[TaxPeriodResponse]
    invoices: InvoiceTotals
    revenue: Decimal
    transaction_income: Decimal
    invoice_revenue: Decimal
    expenses: Decimal
    deductible_expenses: Decimal
    profit: Decimal
    vat: VatTotals
    income_tax: IncomeTaxTotals
