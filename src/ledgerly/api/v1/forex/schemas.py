"""Pydantic schemas for forex accounts, transfers and rates."""

import datetime as dt
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ledgerly.core.validators import reject_null

TRANSFER_TYPE_PATTERN = "^(BUY|SELL|TRANSFER)$"


class ForexAccountBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    currency: str = Field(..., min_length=3, max_length=3)
    balance: Decimal = Decimal("0")
    provider: Optional[str] = Field(None, max_length=255)
    account_num: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None


class ForexAccountCreate(ForexAccountBase):
    pass


class ForexAccountUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    balance: Optional[Decimal] = None
    provider: Optional[str] = Field(None, max_length=255)
    account_num: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("name", "currency", "balance", "is_active")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class ForexAccountResponse(ForexAccountBase):
    id: str
    is_active: bool
    created_at: datetime
    transfer_count: int = 0

    class Config:
        from_attributes = True


class ForexTransferBase(BaseModel):
    type: str = Field(..., pattern=TRANSFER_TYPE_PATTERN)
    from_currency: str = Field(..., min_length=3, max_length=3)
    to_currency: str = Field(..., min_length=3, max_length=3)
    from_amount: Decimal = Field(..., gt=0)
    to_amount: Decimal = Field(..., gt=0)
    exchange_rate: Decimal = Field(..., gt=0)
    fee: Optional[Decimal] = Field(None, ge=0)
    date: dt.date
    description: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = None


class ForexTransferCreate(ForexTransferBase):
    forex_account_id: Optional[str] = None


class ForexTransferUpdate(BaseModel):
    type: Optional[str] = Field(None, pattern=TRANSFER_TYPE_PATTERN)
    from_currency: Optional[str] = Field(None, min_length=3, max_length=3)
    to_currency: Optional[str] = Field(None, min_length=3, max_length=3)
    from_amount: Optional[Decimal] = Field(None, gt=0)
    to_amount: Optional[Decimal] = Field(None, gt=0)
    exchange_rate: Optional[Decimal] = Field(None, gt=0)
    fee: Optional[Decimal] = Field(None, ge=0)
    date: Optional[dt.date] = None
    description: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = None

    @field_validator("type", "from_currency", "to_currency", "from_amount", "to_amount", "exchange_rate", "date")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class ForexTransferResponse(ForexTransferBase):
    id: str
    forex_account_id: Optional[str] = None
    forex_account_name: Optional[str] = None
    created_at: datetime


class ConversionResponse(BaseModel):
    amount: Decimal
    result: Decimal
    rate: Decimal
    date: str
    from_currency: str = Field(..., alias="from")
    to_currency: str = Field(..., alias="to")

    class Config:
        populate_by_name = True
