"""Unit tests for dashboard fixed items and cash flow."""

from datetime import date
from decimal import Decimal

import pytest

from ledgerly.domain.services.dashboard_service import DashboardService, installment_end_date
from ledgerly.infrastructure.database.finance import Invoice, InvoiceStatus, Transaction

TODAY = date(2024, 6, 15)


@pytest.fixture
def recurring(make_transaction, expense_category, income_category):
    """Recurring rows around TODAY: one finished installment plan, one running."""
    make_transaction(-300, date(2024, 1, 10), "Old laptop", is_recurring=True,
                     installment_current=3, installment_total=6)
    make_transaction(-200, date(2024, 5, 10), "Phone", is_recurring=True,
                     installment_current=2, installment_total=12, category_id=expense_category.id)
    make_transaction(-100, date(2024, 6, 1), "Hosting", is_recurring=True)
    make_transaction(5000, date(2024, 6, 1), "Retainer", is_recurring=True, category_id=income_category.id)
    make_transaction(-999, date(2024, 6, 2), "One-off")


def _invoice(db_session, business, number: str, status: str, due: date, total: str, paid=None) -> Invoice:
    invoice = Invoice(
        business_id=business.id,
        invoice_number=number,
        issue_date=date(2024, 5, 1),
        due_date=due,
        status=status,
        total=Decimal(total),
        paid_amount=Decimal(paid) if paid is not None else None,
    )
    db_session.add(invoice)
    db_session.commit()
    return invoice


class TestInstallmentEndDate:
    """Tests for installment plan end dates."""

    def test_remaining_months_added(self):
        """Test the final payment is the remaining count of months ahead."""
        tx = Transaction(date=date(2024, 1, 31), installment_current=2, installment_total=3)

        assert installment_end_date(tx) == date(2024, 2, 29)

    def test_regular_transaction(self):
        """Test rows without a plan have no end date."""
        assert installment_end_date(Transaction(date=date(2024, 1, 1))) is None


class TestFixedItems:
    """Tests for DashboardService.fixed_items."""

    def test_finished_plans_excluded(self, db_session, business, recurring):
        """Test plans whose final payment is past are dropped."""
        data = DashboardService(db_session).fixed_items(business.id, TODAY)

        descriptions = sorted(e["description"] for e in data["expenses"])
        assert descriptions == ["Hosting", "Phone"]
        assert data["total_expenses"] == Decimal("300.00")

    def test_plan_fields(self, db_session, business, recurring):
        """Test running plans report their progress and end date."""
        data = DashboardService(db_session).fixed_items(business.id, TODAY)

        phone = next(e for e in data["expenses"] if e["description"] == "Phone")
        assert phone["amount"] == Decimal("200.00")
        assert phone["category_name"] == "Software"
        assert phone["installment_total"] == 12
        assert phone["expected_end_date"] == date(2025, 3, 10)
        hosting = next(e for e in data["expenses"] if e["description"] == "Hosting")
        assert hosting["expected_end_date"] is None
        assert hosting["installment_current"] is None

    def test_recurring_income(self, db_session, business, recurring):
        """Test recurring income is listed separately."""
        data = DashboardService(db_session).fixed_items(business.id, TODAY)

        assert [i["description"] for i in data["income"]] == ["Retainer"]
        assert data["income"][0]["category_name"] == "Sales"
        assert data["total_income"] == Decimal("5000.00")


class TestCashFlow:
    """Tests for DashboardService.cash_flow."""

    def test_unpaid_invoices_within_horizon(self, db_session, business, recurring):
        """Test inflows are open balances of unpaid invoices due inside the window."""
        _invoice(db_session, business, "3001", InvoiceStatus.SENT.value, date(2024, 6, 20), "1170", paid="170")
        _invoice(db_session, business, "3002", InvoiceStatus.OVERDUE.value, date(2024, 6, 1), "500")
        _invoice(db_session, business, "3003", InvoiceStatus.PAID.value, date(2024, 6, 20), "800")
        _invoice(db_session, business, "3004", InvoiceStatus.SENT.value, date(2024, 8, 30), "900")

        data = DashboardService(db_session).cash_flow(business.id, days=30, today=TODAY)

        assert [u["invoice_number"] for u in data["upcoming_inflows"]] == ["3002", "3001"]
        assert [u["is_overdue"] for u in data["upcoming_inflows"]] == [True, False]
        assert data["upcoming_inflows"][1]["amount"] == Decimal("1000.00")
        assert data["expected_inflows"] == Decimal("1500.00")
        assert data["recurring_monthly_income"] == Decimal("5000.00")
        assert data["recurring_monthly_expenses"] == Decimal("300.00")
        assert data["net_expected"] == Decimal("6200.00")

    def test_empty(self, db_session, business):
        """Test a business with no data expects nothing."""
        data = DashboardService(db_session).cash_flow(business.id, days=7, today=TODAY)

        assert data["days"] == 7
        assert data["upcoming_inflows"] == []
        assert data["net_expected"] == Decimal("0.00")
