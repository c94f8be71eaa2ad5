"""Dashboard aggregations: balances, period totals, trends and fixed items."""

from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session, joinedload

from ledgerly.core.date_helpers import add_months, month_key, month_start
from ledgerly.core.logging import get_logger
from ledgerly.core.money import ZERO, round_money, to_decimal
from ledgerly.domain.services.account_service import AccountService
from ledgerly.infrastructure.database.finance import (
    Account,
    AccountType,
    Category,
    Client,
    Invoice,
    InvoiceStatus,
    Transaction,
)

logger = get_logger(__name__)

# Only bank accounts count towards the headline balance
TOTAL_BALANCE_TYPES = frozenset({AccountType.BANK.value})

UNPAID_STATUSES = (
    InvoiceStatus.SENT.value,
    InvoiceStatus.VIEWED.value,
    InvoiceStatus.PARTIALLY_PAID.value,
    InvoiceStatus.OVERDUE.value,
)

SEARCH_LIMIT = 10


def installment_end_date(tx: Transaction) -> Optional[date]:
    """
    Date of the final payment of an installment plan.

    The plan ends (installment_total - installment_current) months after
    this payment. Returns None for regular transactions.
    """
    current = tx.installment_current or 0
    total = tx.installment_total or 0
    if total < 1 or current < 1:
        return None
    return add_months(tx.date, max(total - current, 0))


class DashboardService:
    """Read-only aggregations for the dashboard screens."""

    def __init__(self, db: Session):
        self.db = db
        self.accounts = AccountService(db)

    def _excluded_category_ids(self, business_id: str) -> set[str]:
        rows = self.db.execute(
            select(Category.id).where(
                Category.business_id == business_id,
                Category.exclude_from_expense_total.is_(True),
            )
        ).scalars().all()
        return set(rows)

    def _by_category(self, totals: dict[str, Decimal]) -> list[dict[str, Any]]:
        if not totals:
            return []
        categories = {
            c.id: c
            for c in self.db.execute(select(Category).where(Category.id.in_(list(totals)))).scalars().all()
        }
        rows = []
        for category_id, total in totals.items():
            category = categories.get(category_id)
            rows.append(
                {
                    "category_id": category_id,
                    "category_name": category.name if category else None,
                    "category_slug": category.slug if category else None,
                    "category_color": category.color if category else None,
                    "category_icon": category.icon if category else None,
                    "total": round_money(total),
                }
            )
        return sorted(rows, key=lambda r: r["total"], reverse=True)

    def summary(
        self,
        business_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        account_id: Optional[str] = None,
        category_id: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        Balances and period totals.

        Args:
            business_id: Business scope
            date_from: Period start (default: first day of the current month)
            date_to: Period end and balance cut-off (default: today)
            account_id: Restrict to one account
            category_id: Restrict transactions to one category

        Returns:
            Dict with total_balance, income, expenses, fixed sums, accounts,
            spending/income by category and transaction_count
        """
        today = date.today()
        date_from = date_from or month_start(today)
        date_to = date_to or today
        excluded = self._excluded_category_ids(business_id)

        account_query = select(Account).where(Account.business_id == business_id, Account.is_active.is_(True))
        if account_id:
            account_query = account_query.where(Account.id == account_id)
        accounts = list(self.db.execute(account_query.order_by(Account.name)).scalars().all())
        balances = self.accounts.balances(accounts, as_of=date_to)

        tx_query = select(Transaction).where(
            Transaction.business_id == business_id,
            Transaction.date >= date_from,
            Transaction.date <= date_to,
        )
        if account_id:
            tx_query = tx_query.where(Transaction.account_id == account_id)
        if category_id:
            tx_query = tx_query.where(Transaction.category_id == category_id)
        transactions = self.db.execute(tx_query.order_by(Transaction.date)).scalars().all()

        income = ZERO
        expenses = ZERO
        fixed_income = ZERO
        fixed_expenses = ZERO
        spending: dict[str, Decimal] = defaultdict(lambda: ZERO)
        earning: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for tx in transactions:
            amount = to_decimal(tx.amount)
            if amount > 0:
                income += amount
                if tx.is_recurring:
                    fixed_income += amount
                if tx.category_id:
                    earning[tx.category_id] += amount
            elif amount < 0 and tx.category_id not in excluded:
                expenses += abs(amount)
                if tx.is_recurring:
                    fixed_expenses += abs(amount)
                if tx.category_id:
                    spending[tx.category_id] += abs(amount)

        total_balance = sum(
            (balances[a.id] for a in accounts if a.type in TOTAL_BALANCE_TYPES and balances[a.id] is not None),
            ZERO,
        )

        return {
            "period": {"from": date_from, "to": date_to},
            "total_balance": round_money(total_balance),
            "income": round_money(income),
            "expenses": round_money(expenses),
            "fixed_expenses_sum": round_money(fixed_expenses),
            "fixed_income_sum": round_money(fixed_income),
            "accounts": [
                {
                    "id": a.id,
                    "name": a.name,
                    "type": a.type,
                    "currency": a.currency,
                    "balance": balances[a.id],
                }
                for a in accounts
            ],
            "spending_by_category": self._by_category(spending),
            "income_by_category": self._by_category(earning),
            "transaction_count": len(transactions),
        }

    def trends(
        self,
        business_id: str,
        months: int = 6,
        group_by: str = "month",
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[dict[str, Any]]:
        """Income, expenses and net per month or year over the last `months` months."""
        today = date.today()
        date_to = date_to or today
        date_from = date_from or add_months(month_start(date_to), -(months - 1))
        excluded = self._excluded_category_ids(business_id)

        transactions = self.db.execute(
            select(Transaction).where(
                Transaction.business_id == business_id,
                Transaction.date >= date_from,
                Transaction.date <= date_to,
            )
        ).scalars().all()

        buckets: dict[str, dict[str, Decimal]] = defaultdict(lambda: {"income": ZERO, "expenses": ZERO})
        for tx in transactions:
            key = month_key(tx.date) if group_by == "month" else str(tx.date.year)
            amount = to_decimal(tx.amount)
            if amount > 0:
                buckets[key]["income"] += amount
            elif amount < 0 and tx.category_id not in excluded:
                buckets[key]["expenses"] += abs(amount)

        return [
            {
                "period": period,
                "income": round_money(data["income"]),
                "expenses": round_money(data["expenses"]),
                "net": round_money(data["income"] - data["expenses"]),
            }
            for period, data in sorted(buckets.items())
        ]

    def recent_transactions(self, business_id: str, limit: int = 5) -> list[Transaction]:
        return list(
            self.db.execute(
                select(Transaction)
                .options(joinedload(Transaction.category), joinedload(Transaction.account))
                .where(Transaction.business_id == business_id)
                .order_by(Transaction.date.desc(), Transaction.created_at.desc())
                .limit(limit)
            ).unique().scalars().all()
        )

    def fixed_items(self, business_id: str, today: Optional[date] = None) -> dict[str, Any]:
        """Recurring expenses (minus finished installment plans) and recurring income."""
        today = today or date.today()
        rows = self.db.execute(
            select(Transaction)
            .options(joinedload(Transaction.category))
            .where(Transaction.business_id == business_id, Transaction.is_recurring.is_(True))
            .order_by(Transaction.date.desc())
        ).unique().scalars().all()

        expenses = []
        income = []
        for tx in rows:
            amount = to_decimal(tx.amount)
            if amount < 0:
                end_date = installment_end_date(tx)
                if end_date is not None and end_date < today:
                    continue
                has_plan = end_date is not None
                expenses.append(
                    {
                        "id": tx.id,
                        "description": tx.description,
                        "amount": round_money(abs(amount)),
                        "category_name": tx.category.name if tx.category else None,
                        "installment_current": tx.installment_current if has_plan else None,
                        "installment_total": tx.installment_total if has_plan else None,
                        "expected_end_date": end_date,
                    }
                )
            elif amount > 0:
                income.append(
                    {
                        "id": tx.id,
                        "description": tx.description,
                        "amount": round_money(amount),
                        "category_name": tx.category.name if tx.category else None,
                        "installment_current": None,
                        "installment_total": None,
                        "expected_end_date": None,
                    }
                )

        return {
            "expenses": expenses,
            "income": income,
            "total_expenses": round_money(sum((e["amount"] for e in expenses), ZERO)),
            "total_income": round_money(sum((i["amount"] for i in income), ZERO)),
        }

    def cash_flow(self, business_id: str, days: int = 30, today: Optional[date] = None) -> dict[str, Any]:
        """Expected money movement over the next `days` days."""
        today = today or date.today()
        horizon = today + timedelta(days=days)

        invoices = self.db.execute(
            select(Invoice)
            .options(joinedload(Invoice.client))
            .where(
                Invoice.business_id == business_id,
                Invoice.status.in_(UNPAID_STATUSES),
                Invoice.due_date.is_not(None),
                Invoice.due_date <= horizon,
            )
            .order_by(Invoice.due_date)
        ).unique().scalars().all()

        upcoming = [
            {
                "invoice_id": inv.id,
                "invoice_number": inv.invoice_number,
                "client_name": inv.client.name if inv.client else None,
                "due_date": inv.due_date,
                "amount": round_money(to_decimal(inv.total) - to_decimal(inv.paid_amount)),
                "is_overdue": inv.due_date < today,
            }
            for inv in invoices
        ]

        fixed = self.fixed_items(business_id, today)
        expected_inflows = sum((u["amount"] for u in upcoming), ZERO)
        return {
            "days": days,
            "upcoming_inflows": upcoming,
            "expected_inflows": round_money(expected_inflows),
            "recurring_monthly_income": fixed["total_income"],
            "recurring_monthly_expenses": fixed["total_expenses"],
            "net_expected": round_money(expected_inflows + fixed["total_income"] - fixed["total_expenses"]),
        }

    def search(self, business_id: str, q: str) -> dict[str, Any]:
        """Free-text lookup over transactions, clients and invoices."""
        term = (q or "").strip()
        if not term:
            return {"transactions": [], "clients": [], "invoices": []}
        pattern = f"%{term}%"

        transactions = self.db.execute(
            select(Transaction)
            .where(Transaction.business_id == business_id, Transaction.description.ilike(pattern))
            .order_by(Transaction.date.desc())
            .limit(SEARCH_LIMIT)
        ).scalars().all()
        clients = self.db.execute(
            select(Client)
            .where(
                Client.business_id == business_id,
                Client.is_active.is_(True),
                or_(Client.name.ilike(pattern), Client.email.ilike(pattern)),
            )
            .order_by(Client.name)
            .limit(SEARCH_LIMIT)
        ).scalars().all()
        invoices = self.db.execute(
            select(Invoice)
            .where(
                Invoice.business_id == business_id,
                or_(Invoice.invoice_number.ilike(pattern), Invoice.notes.ilike(pattern)),
            )
            .order_by(Invoice.issue_date.desc())
            .limit(SEARCH_LIMIT)
        ).scalars().all()

        logger.debug("Dashboard search", business_id=business_id, q=term)
        return {
            "transactions": [
                {"id": t.id, "date": t.date, "description": t.description, "amount": round_money(t.amount)}
                for t in transactions
            ],
            "clients": [{"id": c.id, "name": c.name, "email": c.email} for c in clients],
            "invoices": [
                {
                    "id": i.id,
                    "invoice_number": i.invoice_number,
                    "status": i.status,
                    "total": round_money(i.total),
                    "issue_date": i.issue_date,
                }
                for i in invoices
            ],
        }
