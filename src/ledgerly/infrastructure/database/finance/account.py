"""Financial account model."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, TYPE_CHECKING
from uuid import uuid4

from sqlalchemy import ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledgerly.infrastructure.database.base import Base

if TYPE_CHECKING:
    from ledgerly.infrastructure.database.models import Business


class AccountType(str, Enum):
    """Kinds of accounts a business can track."""

    BANK = "BANK"
    CREDIT_CARD = "CREDIT_CARD"
    INSURANCE = "INSURANCE"
    PENSION = "PENSION"
    INVESTMENT = "INVESTMENT"
    CASH = "CASH"


# Account types whose balance is reconstructed and shown
BALANCE_ACCOUNT_TYPES = frozenset(t.value for t in AccountType)


class Account(Base):
    """Bank, card, pension or cash account.

    `balance` is a snapshot taken on `balance_date`; the live balance is the
    snapshot plus every transaction dated after it.
    """

    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    business_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("businesses.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False, default=AccountType.BANK.value)
    provider: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    account_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    balance: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0"))
    balance_date: Mapped[Optional[date]] = mapped_column(nullable=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="ILS")
    linked_bank_account_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("accounts.id", ondelete="SET NULL"),
        nullable=True,
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=datetime.utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(nullable=True, onupdate=datetime.utcnow)

    business: Mapped["Business"] = relationship("Business", back_populates="accounts")
    linked_bank_account: Mapped[Optional["Account"]] = relationship(
        "Account", remote_side="Account.id"
    )

    __table_args__ = (
        Index("idx_accounts_business", "business_id"),
        Index("idx_accounts_type", "type"),
        Index("idx_accounts_active", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<Account(id={self.id}, name={self.name}, type={self.type})>"
