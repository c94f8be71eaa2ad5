"""Monthly category budgets."""

from datetime import date
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ledgerly.core.date_helpers import add_months, month_key, month_start, parse_month
from ledgerly.core.exceptions import BusinessRuleError, NotFoundError
from ledgerly.core.logging import get_logger
from ledgerly.core.money import ZERO, round_money, round_whole, to_decimal
from ledgerly.infrastructure.database.finance import Budget, Category, Transaction

logger = get_logger(__name__)


def percent_used(spent: Decimal, amount: Decimal) -> int:
    """Whole-percent share of a budget that was spent (0 for empty budgets)."""
    if amount <= 0:
        return 0
    return int(round_whole(spent / amount * 100))


class BudgetService:
    """Service for per-category monthly budgets."""

    def __init__(self, db: Session):
        self.db = db

    def _active_budgets(self, business_id: str) -> list[Budget]:
        return list(
            self.db.execute(
                select(Budget)
                .where(Budget.business_id == business_id, Budget.is_active.is_(True))
                .order_by(Budget.created_at.desc())
            ).unique().scalars().all()
        )

    def spending_by_category(self, business_id: str, category_ids: list[str], month: date) -> dict[str, Decimal]:
        """Absolute sum of negative transactions per category within a month."""
        if not category_ids:
            return {}
        start = month_start(month)
        end = add_months(start, 1)
        rows = self.db.execute(
            select(Transaction.category_id, func.coalesce(func.sum(Transaction.amount), 0))
            .where(
                Transaction.business_id == business_id,
                Transaction.category_id.in_(category_ids),
                Transaction.amount < 0,
                Transaction.date >= start,
                Transaction.date < end,
            )
            .group_by(Transaction.category_id)
        ).all()
        return {category_id: round_money(abs(to_decimal(total))) for category_id, total in rows}

    def list_budgets(self, business_id: str, month: Optional[date] = None) -> list[dict[str, Any]]:
        """Active budgets with spending for the given (default current) month."""
        month = month or date.today()
        budgets = self._active_budgets(business_id)
        spending = self.spending_by_category(business_id, [b.category_id for b in budgets], month)

        result = []
        for budget in budgets:
            amount = to_decimal(budget.amount)
            spent = spending.get(budget.category_id, ZERO)
            result.append(
                {
                    "budget": budget,
                    "amount": round_money(amount),
                    "spent": spent,
                    "remaining": round_money(amount - spent),
                    "percent_used": percent_used(spent, amount),
                    "is_over": spent > amount,
                }
            )
        return result

    def upsert(self, business_id: str, category_id: str, amount: Decimal) -> Budget:
        """Create or update the budget of a category (reactivating it)."""
        if to_decimal(amount) < 0:
            raise BusinessRuleError("Budget amount must be zero or positive")

        category = self.db.execute(
            select(Category).where(Category.id == category_id, Category.business_id == business_id)
        ).scalar_one_or_none()
        if not category:
            raise NotFoundError("Category not found")

        budget = self.db.execute(
            select(Budget).where(Budget.business_id == business_id, Budget.category_id == category_id)
        ).unique().scalar_one_or_none()
        if budget:
            budget.amount = round_money(amount)
            budget.is_active = True
        else:
            budget = Budget(business_id=business_id, category_id=category_id, amount=round_money(amount))
            self.db.add(budget)

        self.db.commit()
        self.db.refresh(budget)
        logger.info("Budget saved", business_id=business_id, category_id=category_id, amount=str(budget.amount))
        return budget

    def delete(self, business_id: str, budget_id: str) -> None:
        budget = self.db.execute(
            select(Budget).where(Budget.id == budget_id, Budget.business_id == business_id)
        ).unique().scalar_one_or_none()
        if not budget:
            raise NotFoundError("Budget not found")
        budget.is_active = False
        self.db.commit()

    def summary(self, business_id: str, month: Optional[str] = None) -> dict[str, Any]:
        """Totals for a YYYY-MM month and the list of categories over budget."""
        ref = parse_month(month, date.today())
        budgets = self._active_budgets(business_id)
        spending = self.spending_by_category(business_id, [b.category_id for b in budgets], ref)

        total_budgeted = ZERO
        total_spent = ZERO
        over_budget = []
        for budget in budgets:
            amount = to_decimal(budget.amount)
            spent = spending.get(budget.category_id, ZERO)
            total_budgeted += amount
            total_spent += spent
            if spent > amount:
                over_budget.append(
                    {
                        "category_id": budget.category_id,
                        "category_name": budget.category.name if budget.category else None,
                        "amount": round_money(amount),
                        "spent": spent,
                        "over_by": round_money(spent - amount),
                    }
                )

        return {
            "month": month_key(ref),
            "total_budgeted": round_money(total_budgeted),
            "total_spent": round_money(total_spent),
            "remaining": round_money(total_budgeted - total_spent),
            "percent_used": percent_used(total_spent, total_budgeted),
            "budget_count": len(budgets),
            "over_budget_count": len(over_budget),
            "over_budget": over_budget,
        }
