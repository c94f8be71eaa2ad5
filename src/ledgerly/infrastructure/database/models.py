"""Core database models: businesses and users."""

from datetime import datetime
from decimal import Decimal
from typing import Optional, TYPE_CHECKING
from uuid import uuid4

from sqlalchemy import ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledgerly.infrastructure.database.base import Base

if TYPE_CHECKING:
    from ledgerly.infrastructure.database.finance.account import Account


class Business(Base):
    """Business or household that owns all financial data.

    Every domain row carries a business_id; users only ever see rows of
    their own business.
    """

    __tablename__ = "businesses"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    business_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    business_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)  # osek_patur, osek_murshe, company, household
    vat_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=Decimal("17"))
    default_currency: Mapped[str] = mapped_column(String(3), nullable=False, default="ILS")
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=datetime.utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(nullable=True, onupdate=datetime.utcnow)

    users: Mapped[list["User"]] = relationship("User", back_populates="business")
    accounts: Mapped[list["Account"]] = relationship("Account", back_populates="business")

    def __repr__(self) -> str:
        return f"<Business(id={self.id}, name={self.name})>"


class User(Base):
    """System users with authentication."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(nullable=False, default=True)
    business_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("businesses.id", ondelete="CASCADE"),
        nullable=False,
    )
    country_code: Mapped[Optional[str]] = mapped_column(String(2), nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=datetime.utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(nullable=True, onupdate=datetime.utcnow)

    business: Mapped[Business] = relationship("Business", back_populates="users", lazy="joined")

    __table_args__ = (Index("idx_users_business", "business_id"),)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"
