"""Category management and default category seeding."""

import re
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledgerly.core.exceptions import ConflictError, NotFoundError
from ledgerly.core.logging import get_logger
from ledgerly.infrastructure.database.finance import Category

logger = get_logger(__name__)

# (name, slug, is_income, icon, color, exclude_from_expense_total)
DEFAULT_CATEGORIES: list[tuple[str, str, bool, str, str, bool]] = [
    ("Salary", "salary", True, "💰", "#22c55e", False),
    ("Groceries", "groceries", False, "🛒", "#3b82f6", False),
    ("Transport", "transport", False, "🚗", "#f59e0b", False),
    ("Utilities", "utilities", False, "💡", "#8b5cf6", False),
    ("Rent", "rent", False, "🏠", "#ec4899", False),
    ("Insurance", "insurance", False, "🛡️", "#06b6d4", False),
    ("Healthcare", "healthcare", False, "⚕️", "#ef4444", False),
    ("Dining", "dining", False, "🍽️", "#f97316", False),
    ("Shopping", "shopping", False, "🛍️", "#a855f7", False),
    ("Entertainment", "entertainment", False, "🎬", "#eab308", False),
    ("Credit charges", "credit_charges", False, "💳", "#64748b", True),
    ("Other", "other", False, "📦", "#64748b", False),
]

# Slugs produced by statement parsers, with display name and income flag.
KNOWN_SLUGS: dict[str, tuple[str, bool]] = {
    "groceries": ("Groceries", False),
    "transport": ("Transport", False),
    "utilities": ("Utilities", False),
    "rent": ("Rent", False),
    "insurance": ("Insurance", False),
    "healthcare": ("Healthcare", False),
    "dining": ("Dining", False),
    "shopping": ("Shopping", False),
    "entertainment": ("Entertainment", False),
    "other": ("Other", False),
    "salary": ("Salary", True),
    "income": ("Income", True),
    "credit_charges": ("Credit card charges", False),
    "transfers": ("Transfers", False),
    "fees": ("Fees", False),
    "subscriptions": ("Subscriptions", False),
    "education": ("Education", False),
    "pets": ("Pets", False),
    "gifts": ("Gifts", False),
    "childcare": ("Childcare", False),
    "savings": ("Savings", False),
    "pension": ("Pension", False),
    "investment": ("Investment", False),
    "bank_fees": ("Bank fees", False),
    "online_shopping": ("Online shopping", False),
    "loan_payment": ("Loan payment", False),
    "loan_interest": ("Loan interest", False),
    "standing_order": ("Standing order", False),
    "finance": ("Finance", False),
    "unknown": ("Uncategorized", False),
}


def slugify(name: str) -> str:
    """Lower-case a category name and join words with dashes."""
    return re.sub(r"\s+", "-", name.strip().lower())


def slug_to_name(slug: str) -> str:
    """Turn an unknown slug like `home_office` into `Home Office`."""
    return " ".join(part.capitalize() for part in slug.split("_") if part)


class CategoryService:
    """Service for business categories."""

    def __init__(self, db: Session):
        self.db = db

    def ensure_defaults(self, business_id: str) -> int:
        """Seed the default category set when the business has none.

        Returns:
            Number of categories created (0 when categories already exist)
        """
        existing = self.db.execute(
            select(Category.id).where(Category.business_id == business_id).limit(1)
        ).first()
        if existing:
            return 0

        for index, (name, slug, is_income, icon, color, exclude) in enumerate(DEFAULT_CATEGORIES):
            self.db.add(
                Category(
                    business_id=business_id,
                    name=name,
                    slug=slug,
                    is_income=is_income,
                    icon=icon,
                    color=color,
                    exclude_from_expense_total=exclude,
                    is_default=True,
                    sort_order=index,
                )
            )
        self.db.commit()
        logger.info("Seeded default categories", business_id=business_id, count=len(DEFAULT_CATEGORIES))
        return len(DEFAULT_CATEGORIES)

    def list_categories(self, business_id: str, income: Optional[bool] = None) -> list[Category]:
        """List categories, seeding defaults on first access."""
        self.ensure_defaults(business_id)

        query = select(Category).where(Category.business_id == business_id)
        if income is not None:
            query = query.where(Category.is_income == income)
        query = query.order_by(Category.is_income.desc(), Category.sort_order, Category.name)
        return list(self.db.execute(query).scalars().all())

    def get(self, business_id: str, category_id: str) -> Category:
        category = self.db.execute(
            select(Category).where(Category.id == category_id, Category.business_id == business_id)
        ).scalar_one_or_none()
        if not category:
            raise NotFoundError("Category not found")
        return category

    def get_by_slug(self, business_id: str, slug: str) -> Optional[Category]:
        return self.db.execute(
            select(Category).where(Category.business_id == business_id, Category.slug == slug)
        ).scalar_one_or_none()

    def create(self, business_id: str, data: dict[str, Any]) -> Category:
        """Create a category; slug defaults to the slugified name."""
        slug = data.get("slug") or slugify(data["name"])
        if self.get_by_slug(business_id, slug):
            raise ConflictError(f"Category with slug '{slug}' already exists")

        category = Category(
            business_id=business_id,
            name=data["name"],
            slug=slug,
            icon=data.get("icon"),
            color=data.get("color"),
            is_income=data.get("is_income", False),
            sort_order=data.get("sort_order", 0),
            exclude_from_expense_total=data.get("exclude_from_expense_total", False),
            is_tax_deductible=data.get("is_tax_deductible", True),
            deduction_rate=data.get("deduction_rate") if data.get("deduction_rate") is not None else Decimal("100"),
        )
        self.db.add(category)
        self.db.commit()
        self.db.refresh(category)
        return category

    def update(self, business_id: str, category_id: str, data: dict[str, Any]) -> Category:
        category = self.get(business_id, category_id)

        new_slug = data.get("slug")
        if new_slug and new_slug != category.slug:
            other = self.get_by_slug(business_id, new_slug)
            if other and other.id != category.id:
                raise ConflictError(f"Category with slug '{new_slug}' already exists")

        for field, value in data.items():
            setattr(category, field, value)

        self.db.commit()
        self.db.refresh(category)
        return category

    def delete(self, business_id: str, category_id: str) -> None:
        category = self.get(business_id, category_id)
        self.db.delete(category)
        self.db.commit()

    def find_or_create_by_slug(self, business_id: str, slug: str) -> Category:
        """Resolve an import slug to a category, creating it when missing.

        Known slugs get their canonical name and income flag; unknown slugs
        are title-cased and treated as expenses.
        """
        category = self.get_by_slug(business_id, slug)
        if category:
            return category

        name, is_income = KNOWN_SLUGS.get(slug, (slug_to_name(slug), False))
        category = Category(
            business_id=business_id,
            name=name,
            slug=slug,
            is_income=is_income,
            sort_order=len(DEFAULT_CATEGORIES),
        )
        self.db.add(category)
        self.db.flush()
        logger.info("Created category from import slug", business_id=business_id, slug=slug)
        return category
