"""Tax periods, VAT reporting and income tax estimation."""

from datetime import date
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session, joinedload

from ledgerly.core.date_helpers import utc_now, year_bounds
from ledgerly.core.exceptions import BusinessRuleError, NotFoundError
from ledgerly.core.logging import get_logger
from ledgerly.core.money import ZERO, round_money, to_decimal
from ledgerly.infrastructure.database.finance import (
    Invoice,
    InvoiceStatus,
    TaxPeriod,
    TaxPeriodStatus,
    TaxPeriodType,
    Transaction,
)
from ledgerly.infrastructure.database.models import Business

logger = get_logger(__name__)

DEFAULT_VAT_RATE = Decimal("17")
TAX_ADVANCE_RATE = Decimal("0.04")

# Annual income brackets (upper limit, marginal rate); None is unbounded.
INCOME_TAX_BRACKETS: list[tuple[Optional[Decimal], Decimal]] = [
    (Decimal("84120"), Decimal("0.10")),
    (Decimal("120720"), Decimal("0.14")),
    (Decimal("193800"), Decimal("0.20")),
    (Decimal("269280"), Decimal("0.31")),
    (Decimal("560280"), Decimal("0.35")),
    (Decimal("721560"), Decimal("0.47")),
    (None, Decimal("0.50")),
]

# Invoice statuses whose VAT has been charged to the client
VAT_CHARGED_STATUSES = (
    InvoiceStatus.SENT.value,
    InvoiceStatus.PAID.value,
    InvoiceStatus.PARTIALLY_PAID.value,
)

LOCKED_STATUSES = (TaxPeriodStatus.FILED.value, TaxPeriodStatus.PAID.value)


def estimate_income_tax(annual_profit: Any) -> Decimal:
    """
    Progressive income tax on an annual profit.

    Examples:
        >>> estimate_income_tax(100000)
        Decimal('10635.20')
    """
    profit = to_decimal(annual_profit)
    if profit <= 0:
        return Decimal("0.00")

    tax = ZERO
    remaining = profit
    previous_limit = ZERO
    for limit, rate in INCOME_TAX_BRACKETS:
        span = remaining if limit is None else min(remaining, limit - previous_limit)
        if span <= 0:
            break
        tax += span * rate
        remaining -= span
        if limit is not None:
            previous_limit = limit
    return round_money(tax)


def included_vat(amount: Any, rate: Any) -> Decimal:
    """VAT component of a VAT-inclusive amount: |amount| * r / (100 + r)."""
    rate = to_decimal(rate)
    return round_money(abs(to_decimal(amount)) * rate / (100 + rate))


class TaxService:
    """Service for VAT and income tax periods."""

    def __init__(self, db: Session):
        self.db = db

    def _business(self, business_id: str) -> Optional[Business]:
        return self.db.get(Business, business_id)

    def _vat_rate(self, business_id: str) -> Decimal:
        business = self._business(business_id)
        if business and business.vat_rate is not None:
            return to_decimal(business.vat_rate)
        return DEFAULT_VAT_RATE

    def _expense_vat(self, tx: Transaction, rate: Decimal) -> Decimal:
        if tx.vat_amount is not None:
            return abs(to_decimal(tx.vat_amount))
        if tx.is_vat_included:
            return included_vat(tx.amount, rate)
        return ZERO

    # ------------------------------------------------------------------
    # Periods
    # ------------------------------------------------------------------

    def list_periods(self, business_id: str, year: Optional[int] = None, type: Optional[str] = None) -> list[TaxPeriod]:
        query = select(TaxPeriod).where(TaxPeriod.business_id == business_id)
        if type:
            query = query.where(TaxPeriod.type == type)
        if year:
            start, end = year_bounds(year)
            query = query.where(TaxPeriod.period_start >= start, TaxPeriod.period_start <= end)
        query = query.order_by(TaxPeriod.period_start.desc())
        return list(self.db.execute(query).scalars().all())

    def get_period(self, business_id: str, period_id: str) -> TaxPeriod:
        period = self.db.execute(
            select(TaxPeriod).where(TaxPeriod.id == period_id, TaxPeriod.business_id == business_id)
        ).scalar_one_or_none()
        if not period:
            raise NotFoundError("Tax period not found")
        return period

    def create_period(
        self,
        business_id: str,
        type: str,
        period_start: date,
        period_end: date,
        notes: Optional[str] = None,
    ) -> TaxPeriod:
        """Open a new period; same-type periods may not overlap."""
        if type not in {t.value for t in TaxPeriodType}:
            raise BusinessRuleError(f"Invalid tax period type: {type}")
        if period_end <= period_start:
            raise BusinessRuleError("Period end must be after period start")

        overlap = self.db.execute(
            select(TaxPeriod.id).where(
                TaxPeriod.business_id == business_id,
                TaxPeriod.type == type,
                TaxPeriod.period_start <= period_end,
                TaxPeriod.period_end >= period_start,
            )
        ).first()
        if overlap:
            raise BusinessRuleError("A tax period of this type already exists for the overlapping date range")

        period = TaxPeriod(
            business_id=business_id,
            type=type,
            period_start=period_start,
            period_end=period_end,
            notes=notes,
            status=TaxPeriodStatus.OPEN.value,
        )
        self.db.add(period)
        self.db.commit()
        self.db.refresh(period)
        logger.info("Tax period created", period_id=period.id, type=type, start=str(period_start))
        return period

    def update_period(self, business_id: str, period_id: str, data: dict[str, Any]) -> TaxPeriod:
        """Only notes and tax_advance are editable, and only before filing."""
        period = self.get_period(business_id, period_id)
        if period.status in LOCKED_STATUSES:
            raise BusinessRuleError("Cannot update a filed or paid tax period")

        if "notes" in data:
            period.notes = data["notes"] or None
        if "tax_advance" in data:
            period.tax_advance = data["tax_advance"]

        self.db.commit()
        self.db.refresh(period)
        return period

    def calculate_period(self, business_id: str, period_id: str) -> TaxPeriod:
        """
        Compute revenue, expenses and VAT figures for a period.

        Output VAT comes from invoices charged in the period, input VAT from
        deductible expense transactions. Revenue is the larger of invoice
        subtotals and positive transactions.
        """
        period = self.get_period(business_id, period_id)
        if period.status in LOCKED_STATUSES:
            raise BusinessRuleError("Cannot recalculate a filed or paid tax period")

        start, end = period.period_start, period.period_end
        invoices = self.db.execute(
            select(Invoice).where(
                Invoice.business_id == business_id,
                Invoice.issue_date >= start,
                Invoice.issue_date <= end,
                Invoice.status.in_(VAT_CHARGED_STATUSES),
            )
        ).scalars().all()
        vat_collected = sum((to_decimal(inv.vat_amount) for inv in invoices), ZERO)
        invoice_revenue = sum((to_decimal(inv.subtotal) for inv in invoices), ZERO)

        rate = self._vat_rate(business_id)
        expense_rows = self.db.execute(
            select(Transaction).where(
                Transaction.business_id == business_id,
                Transaction.date >= start,
                Transaction.date <= end,
                Transaction.amount < 0,
                Transaction.is_tax_deductible.is_(True),
            )
        ).scalars().all()
        expenses = ZERO
        vat_paid = ZERO
        for tx in expense_rows:
            expenses += abs(to_decimal(tx.amount))
            vat_paid += self._expense_vat(tx, rate)

        transaction_income = to_decimal(
            self.db.execute(
                select(func.coalesce(func.sum(Transaction.amount), 0)).where(
                    Transaction.business_id == business_id,
                    Transaction.date >= start,
                    Transaction.date <= end,
                    Transaction.amount > 0,
                )
            ).scalar()
        )
        revenue = max(invoice_revenue, transaction_income)

        existing_advance = to_decimal(period.tax_advance)
        period.revenue = round_money(revenue)
        period.expenses = round_money(expenses)
        period.vat_collected = round_money(vat_collected)
        period.vat_paid = round_money(vat_paid)
        period.vat_due = round_money(vat_collected - vat_paid)
        period.tax_advance = existing_advance if existing_advance > 0 else round_money(revenue * TAX_ADVANCE_RATE)
        period.status = TaxPeriodStatus.CALCULATED.value
        period.calculated_at = utc_now()

        self.db.commit()
        self.db.refresh(period)
        logger.info(
            "Tax period calculated",
            period_id=period.id,
            revenue=str(period.revenue),
            vat_due=str(period.vat_due),
        )
        return period

    def mark_filed(self, business_id: str, period_id: str, filed_date: Optional[date] = None) -> TaxPeriod:
        period = self.get_period(business_id, period_id)
        if period.status == TaxPeriodStatus.OPEN.value:
            raise BusinessRuleError("Tax period must be calculated before filing")
        if period.status in LOCKED_STATUSES:
            raise BusinessRuleError("Tax period is already filed")

        period.status = TaxPeriodStatus.FILED.value
        period.filed_date = filed_date or date.today()
        self.db.commit()
        self.db.refresh(period)
        logger.info("Tax period filed", period_id=period.id, filed_date=str(period.filed_date))
        return period

    def mark_paid(self, business_id: str, period_id: str, paid_date: Optional[date] = None) -> TaxPeriod:
        period = self.get_period(business_id, period_id)
        if period.status != TaxPeriodStatus.FILED.value:
            raise BusinessRuleError("Only filed tax periods can be marked as paid")

        period.status = TaxPeriodStatus.PAID.value
        period.paid_date = paid_date or date.today()
        self.db.commit()
        self.db.refresh(period)
        logger.info("Tax period paid", period_id=period.id, paid_date=str(period.paid_date))
        return period

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def _sum_transactions(self, business_id: str, start: date, end: date, *conditions) -> Decimal:
        return to_decimal(
            self.db.execute(
                select(func.coalesce(func.sum(Transaction.amount), 0)).where(
                    Transaction.business_id == business_id,
                    Transaction.date >= start,
                    Transaction.date <= end,
                    *conditions,
                )
            ).scalar()
        )

    def yearly_summary(self, business_id: str, year: int) -> dict[str, Any]:
        """Annual totals, VAT position and estimated income tax."""
        start, end = year_bounds(year)

        periods = list(
            self.db.execute(
                select(TaxPeriod)
                .where(
                    TaxPeriod.business_id == business_id,
                    TaxPeriod.period_start >= start,
                    TaxPeriod.period_end <= end,
                )
                .order_by(TaxPeriod.period_start)
            ).scalars().all()
        )

        issued = self.db.execute(
            select(Invoice).where(
                Invoice.business_id == business_id,
                Invoice.issue_date >= start,
                Invoice.issue_date <= end,
                Invoice.status != InvoiceStatus.CANCELLED.value,
            )
        ).scalars().all()
        paid = [inv for inv in issued if inv.status == InvoiceStatus.PAID.value]

        invoice_revenue = sum((to_decimal(inv.subtotal) for inv in paid), ZERO)
        transaction_income = self._sum_transactions(business_id, start, end, Transaction.amount > 0)
        expenses = abs(self._sum_transactions(business_id, start, end, Transaction.amount < 0))
        deductible = abs(
            self._sum_transactions(
                business_id, start, end, Transaction.amount < 0, Transaction.is_tax_deductible.is_(True)
            )
        )

        revenue = max(invoice_revenue, transaction_income)
        profit = revenue - deductible
        estimated_tax = estimate_income_tax(profit)
        advances = sum((to_decimal(p.tax_advance) for p in periods), ZERO)

        return {
            "year": year,
            "periods": periods,
            "invoices": {
                "total_issued": len(issued),
                "total_paid": len(paid),
                "invoiced_amount": round_money(sum((to_decimal(inv.subtotal) for inv in issued), ZERO)),
                "paid_amount": round_money(sum((to_decimal(inv.paid_amount) for inv in paid), ZERO)),
            },
            "revenue": round_money(revenue),
            "transaction_income": round_money(transaction_income),
            "invoice_revenue": round_money(invoice_revenue),
            "expenses": round_money(expenses),
            "deductible_expenses": round_money(deductible),
            "profit": round_money(profit),
            "vat": {
                "collected": round_money(sum((to_decimal(p.vat_collected) for p in periods), ZERO)),
                "paid": round_money(sum((to_decimal(p.vat_paid) for p in periods), ZERO)),
                "net_due": round_money(sum((to_decimal(p.vat_due) for p in periods), ZERO)),
            },
            "income_tax": {
                "advances": round_money(advances),
                "estimated_annual": estimated_tax,
                "estimated_remaining": round_money(max(ZERO, estimated_tax - advances)),
            },
        }

    def vat_report(self, business_id: str, date_from: Optional[date], date_to: Optional[date]) -> dict[str, Any]:
        """Output VAT from invoices and input VAT from deductible expenses."""
        if not date_from or not date_to:
            raise BusinessRuleError('Both "from" and "to" query parameters are required')

        business = self._business(business_id)
        rate = self._vat_rate(business_id)

        invoices = self.db.execute(
            select(Invoice)
            .options(joinedload(Invoice.client))
            .where(
                Invoice.business_id == business_id,
                Invoice.issue_date >= date_from,
                Invoice.issue_date <= date_to,
                Invoice.status.in_(VAT_CHARGED_STATUSES),
            )
            .order_by(Invoice.issue_date)
        ).unique().scalars().all()

        output_rows = []
        output_base = ZERO
        output_vat = ZERO
        for inv in invoices:
            output_base += to_decimal(inv.subtotal)
            output_vat += to_decimal(inv.vat_amount)
            output_rows.append(
                {
                    "id": inv.id,
                    "invoice_number": inv.invoice_number,
                    "issue_date": inv.issue_date,
                    "client_name": inv.client.name if inv.client else None,
                    "client_tax_id": inv.client.tax_id if inv.client else None,
                    "subtotal": to_decimal(inv.subtotal),
                    "vat_amount": to_decimal(inv.vat_amount),
                    "total": to_decimal(inv.total),
                    "status": inv.status,
                }
            )

        expenses = self.db.execute(
            select(Transaction)
            .options(joinedload(Transaction.category))
            .where(
                Transaction.business_id == business_id,
                Transaction.date >= date_from,
                Transaction.date <= date_to,
                Transaction.amount < 0,
                Transaction.is_tax_deductible.is_(True),
            )
            .order_by(Transaction.date)
        ).unique().scalars().all()

        input_rows = []
        input_base = ZERO
        input_vat = ZERO
        for tx in expenses:
            amount = abs(to_decimal(tx.amount))
            vat = self._expense_vat(tx, rate)
            base = amount - vat
            input_base += base
            input_vat += vat
            input_rows.append(
                {
                    "id": tx.id,
                    "date": tx.date,
                    "description": tx.description,
                    "amount": to_decimal(tx.amount),
                    "vat_amount": vat,
                    "base_amount": round_money(base),
                    "category": tx.category.name if tx.category else None,
                }
            )

        return {
            "period": {"from": date_from, "to": date_to},
            "business": {
                "name": business.name if business else None,
                "business_number": business.business_number if business else None,
                "vat_rate": rate,
            },
            "output": {
                "invoices": output_rows,
                "total_base": round_money(output_base),
                "total_vat": round_money(output_vat),
            },
            "input": {
                "expenses": input_rows,
                "total_base": round_money(input_base),
                "total_vat": round_money(input_vat),
            },
            "net_vat_due": round_money(output_vat - input_vat),
        }
