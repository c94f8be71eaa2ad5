"""Stock portfolio and holding models."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import uuid4

from sqlalchemy import ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledgerly.infrastructure.database.base import Base


class StockPortfolio(Base):
    """Brokerage portfolio grouping stock holdings."""

    __tablename__ = "stock_portfolios"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    business_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("businesses.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    broker: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    account_num: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="ILS")
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=datetime.utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(nullable=True, onupdate=datetime.utcnow)

    holdings: Mapped[list["StockHolding"]] = relationship(
        "StockHolding",
        back_populates="portfolio",
        order_by="StockHolding.ticker",
    )

    __table_args__ = (Index("idx_stock_portfolios_business", "business_id"),)

    def __repr__(self) -> str:
        return f"<StockPortfolio(id={self.id}, name={self.name})>"


class StockHolding(Base):
    """Position in a single ticker."""

    __tablename__ = "stock_holdings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    portfolio_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("stock_portfolios.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    ticker: Mapped[str] = mapped_column(String(20), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    exchange: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    sector: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    shares: Mapped[Decimal] = mapped_column(Numeric(18, 6), nullable=False)
    avg_buy_price: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    buy_date: Mapped[Optional[date]] = mapped_column(nullable=True)
    current_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 4), nullable=True)
    price_updated_at: Mapped[Optional[datetime]] = mapped_column(nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=datetime.utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(nullable=True, onupdate=datetime.utcnow)

    portfolio: Mapped[StockPortfolio] = relationship("StockPortfolio", back_populates="holdings")

    def __repr__(self) -> str:
        return f"<StockHolding(ticker={self.ticker}, shares={self.shares})>"
