"""Pydantic schemas for the business profile."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from ledgerly.core.validators import reject_null


class BusinessResponse(BaseModel):
    """Business profile."""

    id: str
    name: str
    business_number: Optional[str] = None
    business_type: Optional[str] = None
    vat_rate: Decimal
    default_currency: str
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BusinessUpdate(BaseModel):
    """Schema for updating the business profile."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    business_number: Optional[str] = Field(None, max_length=50)
    business_type: Optional[str] = Field(None, pattern="^(osek_patur|osek_murshe|company|household)$")
    vat_rate: Optional[Decimal] = Field(None, ge=0, le=100, description="VAT percentage")
    default_currency: Optional[str] = Field(None, min_length=3, max_length=3)
    address: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = None

    @field_validator("name", "vat_rate", "default_currency")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)
