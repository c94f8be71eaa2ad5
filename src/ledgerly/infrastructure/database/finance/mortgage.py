"""Mortgage and mortgage track models."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import uuid4

from sqlalchemy import ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledgerly.infrastructure.database.base import Base


class MortgageTrackType(str, Enum):
    """Interest scheme of a mortgage track."""

    PRIME = "PRIME"
    FIXED = "FIXED"
    VARIABLE = "VARIABLE"
    CPI_FIXED = "CPI_FIXED"
    CPI_VARIABLE = "CPI_VARIABLE"


class MortgageIndexType(str, Enum):
    """What the track principal is linked to."""

    NONE = "NONE"
    CPI = "CPI"
    DOLLAR = "DOLLAR"
    EURO = "EURO"


class Mortgage(Base):
    """Mortgage on a property, split into one or more tracks."""

    __tablename__ = "mortgages"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    business_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("businesses.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    bank: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    property_value: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    remaining_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)
    total_monthly: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)
    start_date: Mapped[Optional[date]] = mapped_column(nullable=True)
    end_date: Mapped[Optional[date]] = mapped_column(nullable=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="ILS")
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=datetime.utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(nullable=True, onupdate=datetime.utcnow)

    tracks: Mapped[list["MortgageTrack"]] = relationship(
        "MortgageTrack",
        back_populates="mortgage",
        cascade="all, delete-orphan",
        order_by="MortgageTrack.created_at",
    )

    __table_args__ = (Index("idx_mortgages_business", "business_id"),)

    def __repr__(self) -> str:
        return f"<Mortgage(name={self.name}, total={self.total_amount})>"


class MortgageTrack(Base):
    """One repayment track (maslul) of a mortgage."""

    __tablename__ = "mortgage_tracks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    mortgage_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("mortgages.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    track_type: Mapped[str] = mapped_column(String(20), nullable=False)
    index_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    interest_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    monthly_payment: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)
    total_payments: Mapped[Optional[int]] = mapped_column(nullable=True)
    remaining_payments: Mapped[Optional[int]] = mapped_column(nullable=True)
    start_date: Mapped[Optional[date]] = mapped_column(nullable=True)
    end_date: Mapped[Optional[date]] = mapped_column(nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=datetime.utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(nullable=True, onupdate=datetime.utcnow)

    mortgage: Mapped[Mortgage] = relationship("Mortgage", back_populates="tracks")

    def __repr__(self) -> str:
        return f"<MortgageTrack(type={self.track_type}, amount={self.amount})>"
