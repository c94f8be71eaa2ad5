"""Recurring transaction pattern model."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import uuid4

from sqlalchemy import ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from ledgerly.infrastructure.database.base import Base


class RecurringPattern(Base):
    """Monthly income or expense detected from transaction history."""

    __tablename__ = "recurring_patterns"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    business_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("businesses.id", ondelete="CASCADE"),
        nullable=False,
    )
    description: Mapped[str] = mapped_column(String(500), nullable=False)  # normalized
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    type: Mapped[str] = mapped_column(String(10), nullable=False)  # income, expense
    frequency: Mapped[str] = mapped_column(String(20), nullable=False, default="monthly")
    category_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
    )
    account_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("accounts.id", ondelete="SET NULL"),
        nullable=True,
    )
    last_seen_date: Mapped[date] = mapped_column(nullable=False)
    occurrences: Mapped[int] = mapped_column(nullable=False, default=0)
    is_confirmed: Mapped[bool] = mapped_column(nullable=False, default=False)
    is_dismissed: Mapped[bool] = mapped_column(nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=datetime.utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(nullable=True, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("idx_recurring_patterns_business_desc", "business_id", "description", "type"),
    )

    def __repr__(self) -> str:
        return f"<RecurringPattern(description={self.description!r}, type={self.type})>"
