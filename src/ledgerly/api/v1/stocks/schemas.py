"""Pydantic schemas for stock portfolios and holdings."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ledgerly.core.validators import reject_null


class PortfolioBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    broker: Optional[str] = Field(None, max_length=255)
    account_num: Optional[str] = Field(None, max_length=50)
    currency: str = Field("ILS", min_length=3, max_length=3)
    notes: Optional[str] = None


class PortfolioCreate(PortfolioBase):
    pass


class PortfolioUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    broker: Optional[str] = Field(None, max_length=255)
    account_num: Optional[str] = Field(None, max_length=50)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    notes: Optional[str] = None

    @field_validator("name", "currency")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class HoldingBase(BaseModel):
    ticker: str = Field(..., min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=255)
    exchange: Optional[str] = Field(None, max_length=50)
    sector: Optional[str] = Field(None, max_length=100)
    shares: Decimal = Field(..., gt=0)
    avg_buy_price: Decimal = Field(..., ge=0)
    currency: str = Field("USD", min_length=3, max_length=3)
    buy_date: Optional[date] = None
    notes: Optional[str] = None


class HoldingCreate(HoldingBase):
    pass


class HoldingUpdate(BaseModel):
    ticker: Optional[str] = Field(None, min_length=1, max_length=20)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    exchange: Optional[str] = Field(None, max_length=50)
    sector: Optional[str] = Field(None, max_length=100)
    shares: Optional[Decimal] = Field(None, gt=0)
    avg_buy_price: Optional[Decimal] = Field(None, ge=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    buy_date: Optional[date] = None
    current_price: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = None

    @field_validator("ticker", "name", "shares", "avg_buy_price", "currency")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class HoldingResponse(HoldingBase):
    """Holding with computed market value and gain."""

    id: str
    portfolio_id: str
    current_price: Optional[Decimal] = None
    price_updated_at: Optional[datetime] = None
    created_at: datetime
    market_value: Decimal
    cost_basis: Decimal
    gain: Decimal
    gain_percent: Decimal


class PortfolioResponse(PortfolioBase):
    """Portfolio with its active holdings and totals."""

    id: str
    is_active: bool
    created_at: datetime
    holdings: list[HoldingResponse] = []
    market_value: Decimal
    cost_basis: Decimal
    gain: Decimal
    gain_percent: Decimal


class RefreshResponse(PortfolioResponse):
    updated: int
    failed: int


class PortfolioTotals(BaseModel):
    id: str
    name: str
    currency: str
    market_value: Decimal
    cost_basis: Decimal
    gain: Decimal
    gain_percent: Decimal
    holding_count: int


class StockSummaryResponse(BaseModel):
    total_value: Decimal
    total_cost: Decimal
    total_gain: Decimal
    total_gain_percent: Decimal
    portfolio_count: int
    holding_count: int
    portfolios: list[PortfolioTotals]


class QuoteResponse(BaseModel):
    ticker: str
    price: Decimal
    change: Decimal
    change_percent: Decimal
    high: Decimal
    low: Decimal
    open: Decimal
    prev_close: Decimal
    provider: str


class SymbolMatch(BaseModel):
    symbol: str
    description: str
    type: Optional[str] = None
