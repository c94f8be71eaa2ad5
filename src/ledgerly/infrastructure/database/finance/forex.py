"""Foreign-currency account and transfer models."""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import uuid4

from sqlalchemy import ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledgerly.infrastructure.database.base import Base


class ForexTransferType(str, Enum):
    """Direction of a currency exchange."""

    BUY = "BUY"
    SELL = "SELL"
    TRANSFER = "TRANSFER"


class ForexAccount(Base):
    """Balance held in a foreign currency."""

    __tablename__ = "forex_accounts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    business_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("businesses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    balance: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0"))
    provider: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    account_num: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(nullable=False, default=True)
    created_at: Mapped[dt.datetime] = mapped_column(nullable=False, default=dt.datetime.utcnow)
    updated_at: Mapped[Optional[dt.datetime]] = mapped_column(nullable=True, onupdate=dt.datetime.utcnow)

    transfers: Mapped[list["ForexTransfer"]] = relationship(
        "ForexTransfer",
        back_populates="forex_account",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<ForexAccount(name={self.name}, currency={self.currency}, balance={self.balance})>"


class ForexTransfer(Base):
    """Currency exchange between two currencies."""

    __tablename__ = "forex_transfers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    business_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("businesses.id", ondelete="CASCADE"),
        nullable=False,
    )
    forex_account_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("forex_accounts.id", ondelete="SET NULL"),
        nullable=True,
    )
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    from_currency: Mapped[str] = mapped_column(String(3), nullable=False)
    to_currency: Mapped[str] = mapped_column(String(3), nullable=False)
    from_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    to_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    exchange_rate: Mapped[Decimal] = mapped_column(Numeric(14, 6), nullable=False)
    fee: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)
    date: Mapped[dt.date] = mapped_column(nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(nullable=False, default=dt.datetime.utcnow)

    forex_account: Mapped[Optional[ForexAccount]] = relationship("ForexAccount", back_populates="transfers")

    __table_args__ = (Index("idx_forex_transfers_business_date", "business_id", "date"),)

    def __repr__(self) -> str:
        return f"<ForexTransfer({self.from_amount} {self.from_currency} -> {self.to_amount} {self.to_currency})>"
