"""Transaction model."""

import datetime as dt
from datetime import datetime
from decimal import Decimal
from typing import Optional, TYPE_CHECKING
from uuid import uuid4

from sqlalchemy import ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledgerly.infrastructure.database.base import Base

if TYPE_CHECKING:
    from ledgerly.infrastructure.database.finance.account import Account
    from ledgerly.infrastructure.database.finance.category import Category
    from ledgerly.infrastructure.database.finance.client import Client, Project


class Transaction(Base):
    """Money movement on an account.

    Amounts are signed: income is positive, expenses are negative.
    """

    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    business_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("businesses.id", ondelete="CASCADE"),
        nullable=False,
    )
    account_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )
    category_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
    )
    client_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("clients.id", ondelete="SET NULL"),
        nullable=True,
    )
    project_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("projects.id", ondelete="SET NULL"),
        nullable=True,
    )

    date: Mapped[dt.date] = mapped_column(nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="ILS")

    # VAT
    vat_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)
    vat_rate: Mapped[Optional[Decimal]] = mapped_column(Numeric(5, 2), nullable=True)
    is_vat_included: Mapped[bool] = mapped_column(nullable=False, default=True)
    is_tax_deductible: Mapped[bool] = mapped_column(nullable=False, default=True)
    deduction_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=Decimal("100"))

    # Recurrence / installments
    is_recurring: Mapped[bool] = mapped_column(nullable=False, default=False)
    installment_current: Mapped[Optional[int]] = mapped_column(nullable=True)
    installment_total: Mapped[Optional[int]] = mapped_column(nullable=True)
    installment_total_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=datetime.utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(nullable=True, onupdate=datetime.utcnow)

    account: Mapped["Account"] = relationship("Account")
    category: Mapped[Optional["Category"]] = relationship("Category")
    client: Mapped[Optional["Client"]] = relationship("Client", back_populates="transactions")
    project: Mapped[Optional["Project"]] = relationship("Project")

    __table_args__ = (
        Index("idx_transactions_business_date", "business_id", "date"),
        Index("idx_transactions_account", "account_id"),
        Index("idx_transactions_category", "category_id"),
    )

    def __repr__(self) -> str:
        return f"<Transaction(id={self.id}, date={self.date}, amount={self.amount})>"
