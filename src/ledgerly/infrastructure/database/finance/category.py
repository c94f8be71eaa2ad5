"""Category and categorization rule models."""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import uuid4

from sqlalchemy import ForeignKey, Index, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledgerly.infrastructure.database.base import Base


class Category(Base):
    """Income or expense category."""

    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    business_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("businesses.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False)
    icon: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    color: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    is_income: Mapped[bool] = mapped_column(nullable=False, default=False)
    is_default: Mapped[bool] = mapped_column(nullable=False, default=False)
    sort_order: Mapped[int] = mapped_column(nullable=False, default=0)
    exclude_from_expense_total: Mapped[bool] = mapped_column(nullable=False, default=False)
    is_tax_deductible: Mapped[bool] = mapped_column(nullable=False, default=True)
    deduction_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=Decimal("100"))
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("business_id", "slug", name="uq_categories_business_slug"),
        Index("idx_categories_business", "business_id"),
    )

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, slug={self.slug})>"


class CategoryRule(Base):
    """Pattern that maps a transaction description to a category."""

    __tablename__ = "category_rules"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    business_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("businesses.id", ondelete="CASCADE"),
        nullable=False,
    )
    category_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("categories.id", ondelete="CASCADE"),
        nullable=False,
    )
    pattern: Mapped[str] = mapped_column(String(255), nullable=False)
    pattern_type: Mapped[str] = mapped_column(String(20), nullable=False, default="contains")  # contains, startsWith, regex
    priority: Mapped[int] = mapped_column(nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=datetime.utcnow)

    category: Mapped[Category] = relationship("Category")

    __table_args__ = (Index("idx_category_rules_business_priority", "business_id", "priority"),)

    def __repr__(self) -> str:
        return f"<CategoryRule(pattern={self.pattern!r}, priority={self.priority})>"
