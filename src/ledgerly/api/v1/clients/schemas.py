"""Pydantic schemas for clients."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from ledgerly.core.validators import reject_null


class ClientBase(BaseModel):
    """Base schema for client."""

    name: str = Field(..., min_length=1, max_length=255)
    contact_name: Optional[str] = Field(None, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    tax_id: Optional[str] = Field(None, max_length=50, description="Business or VAT number")
    notes: Optional[str] = None
    hourly_rate: Optional[Decimal] = Field(None, ge=0)
    currency: str = Field("ILS", min_length=3, max_length=3)
    color: Optional[str] = Field(None, max_length=20)


class ClientCreate(ClientBase):
    """Schema for creating a client."""

    pass


class ClientUpdate(BaseModel):
    """Schema for updating a client."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    contact_name: Optional[str] = Field(None, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    tax_id: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None
    hourly_rate: Optional[Decimal] = Field(None, ge=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    color: Optional[str] = Field(None, max_length=20)
    is_active: Optional[bool] = None

    @field_validator("name", "currency", "is_active")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class ClientResponse(ClientBase):
    """Schema for client response."""

    id: str
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ClientListItem(ClientResponse):
    project_count: int = 0
    invoice_count: int = 0
    total_revenue: Decimal = Decimal("0.00")


class ClientProjectBrief(BaseModel):
    id: str
    name: str
    status: str
    budget: Optional[Decimal] = None

    class Config:
        from_attributes = True


class ClientInvoiceBrief(BaseModel):
    id: str
    invoice_number: str
    status: str
    issue_date: date
    due_date: Optional[date] = None
    total: Decimal

    class Config:
        from_attributes = True


class ClientDetailResponse(ClientResponse):
    """Client with active projects and the last invoices."""

    projects: list[ClientProjectBrief] = []
    invoices: list[ClientInvoiceBrief] = []
    total_revenue: Decimal = Decimal("0.00")
    total_transaction_revenue: Decimal = Decimal("0.00")
