"""On-the-fly financial alerts (nothing is persisted)."""

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ledgerly.core.date_helpers import add_months, utc_now
from ledgerly.core.logging import get_logger
from ledgerly.core.money import round_whole, to_decimal
from ledgerly.domain.services.account_service import AccountService
from ledgerly.domain.services.budget_service import BudgetService
from ledgerly.infrastructure.database.finance import (
    Account,
    AccountType,
    Budget,
    Goal,
    RecurringPattern,
    Transaction,
)

logger = get_logger(__name__)

SEVERITY_ORDER = {"critical": 0, "warning": 1, "info": 2}

BUDGET_CRITICAL_RATIO = Decimal("1.2")
LOW_BALANCE_LIMIT = Decimal("500")
CRITICAL_BALANCE_LIMIT = Decimal("100")
GOAL_WINDOW_DAYS = 30
GOAL_CRITICAL_DAYS = 7
GOAL_MIN_PROGRESS = 90
UNUSUAL_WINDOW_DAYS = 7
UNUSUAL_MULTIPLIER = 3
UNUSUAL_MIN_AMOUNT = Decimal("200")
RECURRING_MISSED_DAYS = 40


def _whole(value: Any) -> int:
    return int(round_whole(value))


class AlertService:
    """Builds alerts from budgets, balances, goals, expenses and recurring patterns."""

    def __init__(self, db: Session):
        self.db = db

    def generate(self, business_id: str, today: Optional[date] = None) -> list[dict[str, Any]]:
        """
        Run every check and return alerts ordered critical, warning, info.

        Args:
            business_id: Business scope
            today: Reference day (default: today)

        Returns:
            List of {id, type, severity, data, created_at}
        """
        today = today or date.today()
        now = utc_now()
        alerts: list[dict[str, Any]] = []
        alerts += self._budget_alerts(business_id, today, now)
        alerts += self._low_balance_alerts(business_id, today, now)
        alerts += self._goal_deadline_alerts(business_id, today, now)
        alerts += self._unusual_expense_alerts(business_id, today, now)
        alerts += self._recurring_missed_alerts(business_id, today, now)

        alerts.sort(key=lambda a: SEVERITY_ORDER[a["severity"]])
        logger.debug("Alerts generated", business_id=business_id, count=len(alerts))
        return alerts

    @staticmethod
    def _alert(alert_id: str, type_: str, severity: str, data: dict[str, Any], now: datetime) -> dict[str, Any]:
        return {"id": alert_id, "type": type_, "severity": severity, "data": data, "created_at": now}

    def _budget_alerts(self, business_id: str, today: date, now: datetime) -> list[dict[str, Any]]:
        budgets = self.db.execute(
            select(Budget).where(Budget.business_id == business_id, Budget.is_active.is_(True))
        ).unique().scalars().all()
        spending = BudgetService(self.db).spending_by_category(
            business_id, [b.category_id for b in budgets], today
        )

        alerts = []
        for budget in budgets:
            amount = to_decimal(budget.amount)
            spent = spending.get(budget.category_id)
            if spent is None or spent <= amount:
                continue
            alerts.append(
                self._alert(
                    f"budget-{budget.id}",
                    "budget_exceeded",
                    "critical" if spent > amount * BUDGET_CRITICAL_RATIO else "warning",
                    {
                        "category": budget.category.name if budget.category else None,
                        "spent": _whole(spent),
                        "budget": amount,
                        "percent": _whole(spent / amount * 100) if amount > 0 else None,
                    },
                    now,
                )
            )
        return alerts

    def _low_balance_alerts(self, business_id: str, today: date, now: datetime) -> list[dict[str, Any]]:
        accounts = self.db.execute(
            select(Account).where(
                Account.business_id == business_id,
                Account.is_active.is_(True),
                Account.type.in_([AccountType.BANK.value, AccountType.CASH.value]),
            )
        ).scalars().all()
        account_service = AccountService(self.db)

        alerts = []
        for account in accounts:
            balance = account_service.calculate_balance(account, as_of=today)
            if not (0 <= balance < LOW_BALANCE_LIMIT):
                continue
            alerts.append(
                self._alert(
                    f"balance-{account.id}",
                    "low_balance",
                    "critical" if balance < CRITICAL_BALANCE_LIMIT else "warning",
                    {"account": account.name, "balance": _whole(balance)},
                    now,
                )
            )
        return alerts

    def _goal_deadline_alerts(self, business_id: str, today: date, now: datetime) -> list[dict[str, Any]]:
        goals = self.db.execute(
            select(Goal).where(
                Goal.business_id == business_id,
                Goal.is_active.is_(True),
                Goal.target_date.is_not(None),
            )
        ).scalars().all()

        alerts = []
        for goal in goals:
            days_left = (goal.target_date - today).days
            target = to_decimal(goal.target_amount)
            progress = _whole(to_decimal(goal.current_amount) / target * 100) if target > 0 else 0
            if 0 < days_left <= GOAL_WINDOW_DAYS and progress < GOAL_MIN_PROGRESS:
                alerts.append(
                    self._alert(
                        f"goal-{goal.id}",
                        "goal_deadline",
                        "critical" if days_left <= GOAL_CRITICAL_DAYS else "warning",
                        {"goal": goal.name, "days": days_left, "progress": progress},
                        now,
                    )
                )
        return alerts

    def _unusual_expense_alerts(self, business_id: str, today: date, now: datetime) -> list[dict[str, Any]]:
        """Expenses of the last week that are far above the usual three-month average."""
        window_start = today - timedelta(days=UNUSUAL_WINDOW_DAYS)
        average = self.db.execute(
            select(func.avg(Transaction.amount)).where(
                Transaction.business_id == business_id,
                Transaction.date >= add_months(today, -3),
                Transaction.date < window_start,
                Transaction.amount < 0,
            )
        ).scalar()
        average = abs(to_decimal(average))
        if average == 0:
            return []

        recent = self.db.execute(
            select(Transaction)
            .where(
                Transaction.business_id == business_id,
                Transaction.date >= window_start,
                Transaction.amount < 0,
            )
            .order_by(Transaction.amount)
            .limit(5)
        ).scalars().all()

        alerts = []
        for tx in recent:
            amount = abs(to_decimal(tx.amount))
            if amount > average * UNUSUAL_MULTIPLIER and amount > UNUSUAL_MIN_AMOUNT:
                alerts.append(
                    self._alert(
                        f"unusual-{tx.id}",
                        "unusual_expense",
                        "info",
                        {"amount": _whole(amount), "description": tx.description, "average": _whole(average)},
                        now,
                    )
                )
        return alerts

    def _recurring_missed_alerts(self, business_id: str, today: date, now: datetime) -> list[dict[str, Any]]:
        patterns = self.db.execute(
            select(RecurringPattern).where(
                RecurringPattern.business_id == business_id,
                RecurringPattern.is_confirmed.is_(True),
                RecurringPattern.is_dismissed.is_(False),
                RecurringPattern.frequency == "monthly",
            )
        ).scalars().all()

        alerts = []
        for pattern in patterns:
            days_since = (today - pattern.last_seen_date).days
            if days_since > RECURRING_MISSED_DAYS:
                alerts.append(
                    self._alert(
                        f"recurring-{pattern.id}",
                        "recurring_missed",
                        "info",
                        {"description": pattern.description, "days_since": days_since},
                        now,
                    )
                )
        return alerts
