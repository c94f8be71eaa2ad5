"""Reporting engine: profit & loss, cash flow, breakdowns and forecasting."""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session, joinedload

from ledgerly.core.date_helpers import add_months, month_end, month_key, month_start
from ledgerly.core.logging import get_logger
from ledgerly.core.money import ZERO, round_money, round_whole, to_decimal
from ledgerly.domain.services.invoice_service import OUTSTANDING_STATUSES
from ledgerly.domain.services.tax_service import TaxService
from ledgerly.infrastructure.database.finance import (
    Account,
    AccountType,
    Category,
    Invoice,
    InvoiceStatus,
    Project,
    ProjectStatus,
    Transaction,
)

logger = get_logger(__name__)

UNCATEGORIZED = "Uncategorized"
HISTORY_MONTHS = 6
TREND_THRESHOLD = Decimal("50")

# Invoices expected to be paid in the coming months
PENDING_STATUSES = (
    InvoiceStatus.SENT.value,
    InvoiceStatus.VIEWED.value,
    InvoiceStatus.PARTIALLY_PAID.value,
)


def linear_regression(values: list[Decimal]) -> tuple[Decimal, Decimal]:
    """
    Least-squares fit of values over x = 0..n-1.

    Returns:
        (slope, intercept); a flat line through the mean when n < 2 or x has no spread

    Examples:
        >>> linear_regression([Decimal(1), Decimal(3), Decimal(5)])
        (Decimal('2'), Decimal('1'))
    """
    n = len(values)
    if n == 0:
        return ZERO, ZERO
    if n < 2:
        return ZERO, values[0]

    sum_x = Decimal(sum(range(n)))
    sum_y = sum(values, ZERO)
    sum_xy = sum((Decimal(i) * v for i, v in enumerate(values)), ZERO)
    sum_xx = Decimal(sum(i * i for i in range(n)))

    denominator = n * sum_xx - sum_x * sum_x
    if denominator == 0:
        return ZERO, sum_y / n

    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n
    return slope, intercept


def trend_direction(slope: Decimal) -> str:
    if slope > TREND_THRESHOLD:
        return "growing"
    if slope < -TREND_THRESHOLD:
        return "declining"
    return "stable"


def forecast_confidence(data_points: int, months_ahead: int) -> str:
    """Confidence label from history length and distance into the future."""
    if data_points >= 5:
        return "high" if months_ahead <= 3 else "medium"
    return "medium" if months_ahead <= 2 else "low"


def share(part: Decimal, whole: Decimal) -> Decimal:
    """Percentage of whole with two decimals (0 when whole is empty)."""
    if whole <= 0:
        return Decimal("0.00")
    return round_money(part / whole * 100)


def monthly_buckets(transactions: Iterable[Transaction]) -> dict[str, dict[str, Decimal]]:
    """Income and expenses per YYYY-MM, sorted by month."""
    buckets: dict[str, dict[str, Decimal]] = defaultdict(lambda: {"income": ZERO, "expenses": ZERO})
    for tx in transactions:
        amount = to_decimal(tx.amount)
        bucket = buckets[month_key(tx.date)]
        if amount > 0:
            bucket["income"] += amount
        else:
            bucket["expenses"] += abs(amount)
    return dict(sorted(buckets.items()))


class ReportService:
    """Aggregations over transactions and invoices for a business."""

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def default_range(date_from: Optional[date], date_to: Optional[date]) -> tuple[date, date]:
        today = date.today()
        return date_from or month_start(today), date_to or today

    def _transactions(self, business_id: str, date_from: date, date_to: date) -> list[Transaction]:
        return list(
            self.db.execute(
                select(Transaction)
                .where(
                    Transaction.business_id == business_id,
                    Transaction.date >= date_from,
                    Transaction.date <= date_to,
                )
                .order_by(Transaction.date)
            ).scalars().all()
        )

    def _categories(self, business_id: str) -> dict[str, Category]:
        rows = self.db.execute(select(Category).where(Category.business_id == business_id)).scalars().all()
        return {c.id: c for c in rows}

    def _paid_invoices(self, business_id: str, date_from: date, date_to: date) -> list[Invoice]:
        return list(
            self.db.execute(
                select(Invoice)
                .options(joinedload(Invoice.client))
                .where(
                    Invoice.business_id == business_id,
                    Invoice.status == InvoiceStatus.PAID.value,
                    Invoice.paid_date >= date_from,
                    Invoice.paid_date <= date_to,
                )
            ).unique().scalars().all()
        )

    @staticmethod
    def _breakdown(buckets: dict[str, dict[str, Decimal]]) -> list[dict[str, Any]]:
        return [
            {
                "month": month,
                "income": round_money(data["income"]),
                "expenses": round_money(data["expenses"]),
                "profit": round_money(data["income"] - data["expenses"]),
            }
            for month, data in buckets.items()
        ]

    # ------------------------------------------------------------------
    # Profit & loss
    # ------------------------------------------------------------------

    def profit_loss(
        self, business_id: str, date_from: Optional[date] = None, date_to: Optional[date] = None
    ) -> dict[str, Any]:
        """
        Revenue vs. operating expenses for a period.

        Revenue is the larger of paid invoice subtotals and positive
        transactions. Expenses are grouped per category, skipping categories
        excluded from expense totals.
        """
        date_from, date_to = self.default_range(date_from, date_to)
        transactions = self._transactions(business_id, date_from, date_to)
        categories = self._categories(business_id)
        invoices = self._paid_invoices(business_id, date_from, date_to)

        invoice_revenue = sum((to_decimal(inv.subtotal) for inv in invoices), ZERO)
        invoice_vat = sum((to_decimal(inv.vat_amount) for inv in invoices), ZERO)
        transaction_income = sum((to_decimal(t.amount) for t in transactions if to_decimal(t.amount) > 0), ZERO)
        total_revenue = max(invoice_revenue, transaction_income)

        groups: dict[str, dict[str, Any]] = {}
        total_expenses = ZERO
        for tx in transactions:
            amount = to_decimal(tx.amount)
            if amount >= 0:
                continue
            category = categories.get(tx.category_id) if tx.category_id else None
            if category and category.exclude_from_expense_total:
                continue

            absolute = abs(amount)
            group = groups.setdefault(
                tx.category_id or "__uncategorized",
                {"name": category.name if category else UNCATEGORIZED, "total": ZERO, "deductible": ZERO},
            )
            group["total"] += absolute

            category_deductible = category.is_tax_deductible if category else True
            if tx.is_tax_deductible and category_deductible:
                rate = to_decimal(category.deduction_rate) if category and category.deduction_rate else Decimal("100")
                group["deductible"] += absolute * rate / 100
            total_expenses += absolute

        operating_expenses = [
            {
                "category": group["name"],
                "total": round_money(group["total"]),
                "deductible": round_money(group["deductible"]),
                "percentage": share(group["total"], total_expenses),
            }
            for group in sorted(groups.values(), key=lambda g: g["total"], reverse=True)
        ]
        total_deductible = sum((g["deductible"] for g in groups.values()), ZERO)

        net_profit = total_revenue - total_expenses
        return {
            "period": {"from": date_from, "to": date_to},
            "revenue": {
                "invoice_revenue": round_money(invoice_revenue),
                "invoice_vat": round_money(invoice_vat),
                "transaction_income": round_money(transaction_income),
                "total_revenue": round_money(total_revenue),
            },
            "gross_profit": round_money(total_revenue),
            "operating_expenses": operating_expenses,
            "total_operating_expenses": round_money(total_expenses),
            "total_deductible_expenses": round_money(total_deductible),
            "net_profit": round_money(net_profit),
            "profit_margin": share(net_profit, total_revenue) if total_revenue > 0 else Decimal("0.00"),
            "monthly_breakdown": self._breakdown(monthly_buckets(transactions)),
        }

    # ------------------------------------------------------------------
    # Cash flow
    # ------------------------------------------------------------------

    def opening_balance(self, business_id: str, before: date) -> Decimal:
        """Bank balances reconstructed up to (not including) a date."""
        accounts = self.db.execute(
            select(Account).where(
                Account.business_id == business_id,
                Account.is_active.is_(True),
                Account.type == AccountType.BANK.value,
            )
        ).scalars().all()

        total = ZERO
        for account in accounts:
            query = select(func.coalesce(func.sum(Transaction.amount), 0)).where(
                Transaction.account_id == account.id,
                Transaction.date < before,
            )
            if account.balance_date is not None:
                query = query.where(Transaction.date > account.balance_date)
            total += to_decimal(account.balance) + to_decimal(self.db.execute(query).scalar())
        return total

    def cash_flow(
        self, business_id: str, date_from: Optional[date] = None, date_to: Optional[date] = None
    ) -> dict[str, Any]:
        """Opening balance, inflows, outflows by category and a running monthly balance."""
        date_from, date_to = self.default_range(date_from, date_to)
        opening = self.opening_balance(business_id, date_from)
        transactions = self._transactions(business_id, date_from, date_to)
        categories = self._categories(business_id)
        invoices = self._paid_invoices(business_id, date_from, date_to)

        invoice_inflow = sum((to_decimal(inv.total) for inv in invoices), ZERO)
        other_income = sum((to_decimal(t.amount) for t in transactions if to_decimal(t.amount) > 0), ZERO)
        total_inflows = max(invoice_inflow, other_income)

        groups: dict[str, dict[str, Any]] = {}
        total_outflows = ZERO
        for tx in transactions:
            amount = to_decimal(tx.amount)
            if amount >= 0:
                continue
            category = categories.get(tx.category_id) if tx.category_id else None
            group = groups.setdefault(
                tx.category_id or "__uncategorized",
                {"name": category.name if category else UNCATEGORIZED, "total": ZERO},
            )
            group["total"] += abs(amount)
            total_outflows += abs(amount)

        monthly = []
        running = opening
        for month, data in monthly_buckets(transactions).items():
            net = data["income"] - data["expenses"]
            running += net
            monthly.append(
                {
                    "month": month,
                    "inflows": round_money(data["income"]),
                    "outflows": round_money(data["expenses"]),
                    "net": round_money(net),
                    "running_balance": round_money(running),
                }
            )

        return {
            "period": {"from": date_from, "to": date_to},
            "opening_balance": round_money(opening),
            "inflows": {
                "invoice_payments": round_money(invoice_inflow),
                "other_income": round_money(other_income),
                "total": round_money(total_inflows),
            },
            "outflows": {
                "by_category": [
                    {
                        "category": group["name"],
                        "total": round_money(group["total"]),
                        "percentage": share(group["total"], total_outflows),
                    }
                    for group in sorted(groups.values(), key=lambda g: g["total"], reverse=True)
                ],
                "total": round_money(total_outflows),
            },
            "net_cash_flow": round_money(total_inflows - total_outflows),
            "closing_balance": round_money(opening + total_inflows - total_outflows),
            "monthly_breakdown": monthly,
        }

    # ------------------------------------------------------------------
    # Client revenue
    # ------------------------------------------------------------------

    def client_revenue(
        self, business_id: str, date_from: Optional[date] = None, date_to: Optional[date] = None
    ) -> dict[str, Any]:
        """Paid invoices per client with payment speed and outstanding amounts."""
        today = date.today()
        date_from = date_from or date(today.year, 1, 1)
        date_to = date_to or today
        invoices = self._paid_invoices(business_id, date_from, date_to)

        groups: dict[Optional[str], dict[str, Any]] = {}
        for inv in invoices:
            group = groups.setdefault(
                inv.client_id,
                {
                    "client_id": inv.client_id,
                    "client_name": inv.client.name if inv.client else "No Client",
                    "client_color": inv.client.color if inv.client else None,
                    "total": ZERO,
                    "before_vat": ZERO,
                    "count": 0,
                    "payment_days": 0,
                    "timed": 0,
                },
            )
            group["total"] += to_decimal(inv.total)
            group["before_vat"] += to_decimal(inv.subtotal)
            group["count"] += 1
            if inv.issue_date and inv.paid_date:
                group["payment_days"] += max(0, (inv.paid_date - inv.issue_date).days)
                group["timed"] += 1

        outstanding: dict[Optional[str], Decimal] = defaultdict(lambda: ZERO)
        pending = self.db.execute(
            select(Invoice).where(
                Invoice.business_id == business_id,
                Invoice.status.in_(OUTSTANDING_STATUSES),
            )
        ).scalars().all()
        for inv in pending:
            outstanding[inv.client_id] += to_decimal(inv.total) - to_decimal(inv.paid_amount)

        total_revenue = sum((g["total"] for g in groups.values()), ZERO)
        clients = [
            {
                "client_id": g["client_id"],
                "client_name": g["client_name"],
                "client_color": g["client_color"],
                "total_revenue": round_money(g["total"]),
                "total_before_vat": round_money(g["before_vat"]),
                "invoice_count": g["count"],
                "average_invoice_size": round_money(g["total"] / g["count"]) if g["count"] else Decimal("0.00"),
                "average_payment_days": (
                    int(round_whole(Decimal(g["payment_days"]) / g["timed"])) if g["timed"] else None
                ),
                "revenue_percentage": share(g["total"], total_revenue),
                "outstanding_amount": round_money(outstanding.get(g["client_id"], ZERO)),
            }
            for g in sorted(groups.values(), key=lambda g: g["total"], reverse=True)
        ]

        return {
            "period": {"from": date_from, "to": date_to},
            "total_revenue": round_money(total_revenue),
            "client_count": len(clients),
            "clients": clients,
        }

    # ------------------------------------------------------------------
    # Category breakdown
    # ------------------------------------------------------------------

    def category_breakdown(
        self, business_id: str, date_from: Optional[date] = None, date_to: Optional[date] = None
    ) -> dict[str, Any]:
        date_from, date_to = self.default_range(date_from, date_to)
        transactions = self._transactions(business_id, date_from, date_to)
        categories = self._categories(business_id)

        expense_groups: dict[Optional[str], dict[str, Any]] = {}
        income_groups: dict[Optional[str], dict[str, Any]] = {}
        for tx in transactions:
            amount = to_decimal(tx.amount)
            if amount == 0:
                continue
            target = income_groups if amount > 0 else expense_groups
            group = target.setdefault(tx.category_id, {"total": ZERO, "count": 0})
            group["total"] += abs(amount)
            group["count"] += 1

        def rows(groups: dict[Optional[str], dict[str, Any]], total: Decimal) -> list[dict[str, Any]]:
            result = []
            for category_id, group in groups.items():
                category = categories.get(category_id) if category_id else None
                result.append(
                    {
                        "category_id": category_id,
                        "category_name": category.name if category else UNCATEGORIZED,
                        "category_slug": category.slug if category else None,
                        "category_icon": category.icon if category else None,
                        "category_color": category.color if category else None,
                        "total": round_money(group["total"]),
                        "count": group["count"],
                        "average": round_money(group["total"] / group["count"]),
                        "percentage": share(group["total"], total),
                    }
                )
            return sorted(result, key=lambda r: r["total"], reverse=True)

        total_expenses = sum((g["total"] for g in expense_groups.values()), ZERO)
        total_income = sum((g["total"] for g in income_groups.values()), ZERO)
        return {
            "period": {"from": date_from, "to": date_to},
            "expenses": {"total": round_money(total_expenses), "categories": rows(expense_groups, total_expenses)},
            "income": {"total": round_money(total_income), "categories": rows(income_groups, total_income)},
        }

    def tax_summary(self, business_id: str, year: Optional[int] = None) -> dict[str, Any]:
        return TaxService(self.db).yearly_summary(business_id, year or date.today().year)

    # ------------------------------------------------------------------
    # Forecast
    # ------------------------------------------------------------------

    def forecast(self, business_id: str, months: int = 6, today: Optional[date] = None) -> dict[str, Any]:
        """
        Project income and expenses for the coming months.

        History is the last six full months bucketed by month. With at least
        two months of data each series is extrapolated by linear regression;
        otherwise the plain average is used. Pending invoices due in a
        forecast month are added to its projected income.
        """
        today = today or date.today()
        current_month = month_start(today)
        history_start = add_months(current_month, -HISTORY_MONTHS)
        history = monthly_buckets(
            self.db.execute(
                select(Transaction).where(
                    Transaction.business_id == business_id,
                    Transaction.date >= history_start,
                    Transaction.date < current_month,
                )
            ).scalars().all()
        )
        historical = self._breakdown(history)
        n = len(history)

        pipeline = self._project_pipeline(business_id)

        if n < 2:
            avg_income = sum((d["income"] for d in history.values()), ZERO) / n if n else ZERO
            avg_expenses = sum((d["expenses"] for d in history.values()), ZERO) / n if n else ZERO
            forecast = []
            for i in range(1, months + 1):
                forecast.append(
                    {
                        "month": month_key(add_months(current_month, i - 1)),
                        "projected_income": round_money(avg_income),
                        "projected_expenses": round_money(avg_expenses),
                        "projected_profit": round_money(avg_income - avg_expenses),
                        "invoice_boost": Decimal("0.00"),
                        "confidence": "low",
                    }
                )
            return {
                "historical_months": historical,
                "forecast": forecast,
                "trends": None,
                "pipeline": pipeline,
                "methodology": "average",
                "data_points": n,
            }

        income_slope, income_intercept = linear_regression([d["income"] for d in history.values()])
        expense_slope, expense_intercept = linear_regression([d["expenses"] for d in history.values()])

        pending = self.db.execute(
            select(Invoice).where(
                Invoice.business_id == business_id,
                Invoice.status.in_(PENDING_STATUSES),
                Invoice.due_date.is_not(None),
            )
        ).scalars().all()

        forecast = []
        for i in range(1, months + 1):
            period_start = add_months(current_month, i - 1)
            period_end = month_end(period_start)
            x = n + i - 1

            projected_income = max(ZERO, income_slope * x + income_intercept)
            projected_expenses = max(ZERO, expense_slope * x + expense_intercept)
            boost = sum(
                (
                    to_decimal(inv.total) - to_decimal(inv.paid_amount)
                    for inv in pending
                    if period_start <= inv.due_date <= period_end
                ),
                ZERO,
            )
            projected_income += boost

            forecast.append(
                {
                    "month": month_key(period_start),
                    "projected_income": round_money(projected_income),
                    "projected_expenses": round_money(projected_expenses),
                    "projected_profit": round_money(projected_income - projected_expenses),
                    "invoice_boost": round_money(boost),
                    "confidence": forecast_confidence(n, i),
                }
            )

        logger.info("Forecast computed", business_id=business_id, data_points=n, months=months)
        return {
            "historical_months": historical,
            "forecast": forecast,
            "trends": {
                "income_slope": round_money(income_slope),
                "expense_slope": round_money(expense_slope),
                "income_direction": trend_direction(income_slope),
                "expense_direction": trend_direction(expense_slope),
            },
            "pipeline": pipeline,
            "methodology": "linear_regression",
            "data_points": n,
        }

    def _project_pipeline(self, business_id: str) -> dict[str, Any]:
        """Budgets of active projects not yet invoiced."""
        projects = self.db.execute(
            select(Project).where(
                Project.business_id == business_id,
                Project.is_active.is_(True),
                Project.status == ProjectStatus.ACTIVE.value,
                Project.budget.is_not(None),
            )
        ).scalars().all()
        return {
            "project_count": len(projects),
            "total_budget": round_money(sum((to_decimal(p.budget) for p in projects), ZERO)),
            "projects": [
                {
                    "id": p.id,
                    "name": p.name,
                    "budget": round_money(p.budget),
                    "start_date": p.start_date,
                    "end_date": p.end_date,
                }
                for p in projects
            ],
        }
