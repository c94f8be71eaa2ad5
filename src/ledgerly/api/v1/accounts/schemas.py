"""Pydantic schemas for accounts."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ledgerly.core.validators import reject_null

ACCOUNT_TYPE_PATTERN = "^(BANK|CREDIT_CARD|INSURANCE|PENSION|INVESTMENT|CASH)$"


class AccountBase(BaseModel):
    """Base schema for account."""

    name: str = Field(..., min_length=1, max_length=255, description="Account name")
    type: str = Field("BANK", pattern=ACCOUNT_TYPE_PATTERN, description="Account type")
    provider: Optional[str] = Field(None, max_length=255, description="Bank or provider name")
    account_number: Optional[str] = Field(None, max_length=50)
    balance: Decimal = Field(Decimal("0"), description="Snapshot balance")
    balance_date: Optional[date] = Field(None, description="Date of the snapshot balance")
    currency: str = Field("ILS", min_length=3, max_length=3)
    linked_bank_account_id: Optional[str] = None
    notes: Optional[str] = None


class AccountCreate(AccountBase):
    """Schema for creating an account."""

    pass


class AccountUpdate(BaseModel):
    """Schema for updating an account."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    type: Optional[str] = Field(None, pattern=ACCOUNT_TYPE_PATTERN)
    provider: Optional[str] = Field(None, max_length=255)
    account_number: Optional[str] = Field(None, max_length=50)
    balance: Optional[Decimal] = None
    balance_date: Optional[date] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    linked_bank_account_id: Optional[str] = None
    notes: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("name", "type", "balance", "currency", "is_active")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class AccountResponse(AccountBase):
    """Schema for account response."""

    id: str
    is_active: bool
    calculated_balance: Optional[Decimal] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AccountBalanceResponse(BaseModel):
    """Reconstructed balance of an account."""

    account_id: str
    snapshot_balance: Decimal
    balance_date: Optional[date] = None
    as_of: Optional[date] = None
    calculated_balance: Decimal
