"""Tax period model."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import uuid4

from sqlalchemy import ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ledgerly.infrastructure.database.base import Base


class TaxPeriodType(str, Enum):
    """Reporting cadences."""

    VAT_MONTHLY = "VAT_MONTHLY"
    VAT_BIMONTHLY = "VAT_BIMONTHLY"
    INCOME_TAX_ADVANCE = "INCOME_TAX_ADVANCE"
    ANNUAL = "ANNUAL"


class TaxPeriodStatus(str, Enum):
    """OPEN -> CALCULATED -> FILED -> PAID."""

    OPEN = "OPEN"
    CALCULATED = "CALCULATED"
    FILED = "FILED"
    PAID = "PAID"


class TaxPeriod(Base):
    """VAT or income-tax reporting period with its calculated figures."""

    __tablename__ = "tax_periods"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    business_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("businesses.id", ondelete="CASCADE"),
        nullable=False,
    )
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=TaxPeriodStatus.OPEN.value)
    period_start: Mapped[date] = mapped_column(nullable=False)
    period_end: Mapped[date] = mapped_column(nullable=False)

    revenue: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)
    expenses: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)
    vat_collected: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)
    vat_paid: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)
    vat_due: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)
    tax_advance: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)

    calculated_at: Mapped[Optional[datetime]] = mapped_column(nullable=True)
    filed_date: Mapped[Optional[date]] = mapped_column(nullable=True)
    paid_date: Mapped[Optional[date]] = mapped_column(nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=datetime.utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(nullable=True, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("idx_tax_periods_business_start", "business_id", "period_start"),
        Index("idx_tax_periods_type", "type"),
    )

    def __repr__(self) -> str:
        return f"<TaxPeriod(type={self.type}, {self.period_start}..{self.period_end}, status={self.status})>"
