"""Unit tests for TaxService and income tax helpers."""

from datetime import date
from decimal import Decimal

import pytest

from ledgerly.core.exceptions import BusinessRuleError
from ledgerly.domain.services.invoice_service import InvoiceService
from ledgerly.domain.services.tax_service import TaxService, estimate_income_tax, included_vat
from ledgerly.infrastructure.database.finance import Client, Invoice, InvoiceStatus


class TestIncomeTaxBrackets:
    """Tests for progressive income tax estimation."""

    @pytest.mark.parametrize(
        "profit,expected",
        [
            (0, Decimal("0.00")),
            (-5000, Decimal("0.00")),
            (50000, Decimal("5000.00")),
            (84120, Decimal("8412.00")),
            (100000, Decimal("10635.20")),
        ],
    )
    def test_estimate_income_tax(self, profit, expected):
        """Test tax across the first brackets."""
        assert estimate_income_tax(profit) == expected

    def test_top_bracket_is_unbounded(self):
        """Test income above the last limit is taxed at the top rate."""
        at_limit = estimate_income_tax(721560)
        above = estimate_income_tax(821560)

        assert above - at_limit == Decimal("50000.00")

    def test_included_vat(self):
        """Test VAT extraction from a VAT-inclusive amount."""
        assert included_vat(Decimal("-117"), Decimal("17")) == Decimal("17.00")
        assert included_vat(Decimal("100"), Decimal("0")) == Decimal("0.00")


class TestTaxPeriods:
    """Tests for the tax period lifecycle."""

    def test_create_rejects_invalid_type(self, db_session, business):
        """Test unknown period types are rejected."""
        with pytest.raises(BusinessRuleError):
            TaxService(db_session).create_period(business.id, "WEEKLY", date(2024, 1, 1), date(2024, 1, 31))

    def test_create_rejects_reversed_range(self, db_session, business):
        """Test the end must be after the start."""
        with pytest.raises(BusinessRuleError):
            TaxService(db_session).create_period(business.id, "VAT_MONTHLY", date(2024, 1, 31), date(2024, 1, 1))

    def test_create_rejects_overlap(self, db_session, business):
        """Test same-type periods may not overlap."""
        service = TaxService(db_session)
        service.create_period(business.id, "VAT_BIMONTHLY", date(2024, 1, 1), date(2024, 2, 29))

        with pytest.raises(BusinessRuleError):
            service.create_period(business.id, "VAT_BIMONTHLY", date(2024, 2, 1), date(2024, 3, 31))

        # A different type may cover the same range
        other = service.create_period(business.id, "INCOME_TAX_ADVANCE", date(2024, 1, 1), date(2024, 2, 29))
        assert other.status == "OPEN"

    def test_calculate_period(self, db_session, business, make_transaction):
        """Test VAT collected from invoices and VAT paid from expenses."""
        invoices = InvoiceService(db_session)
        invoice = invoices.create(
            business.id,
            {
                "items": [{"description": "Consulting", "quantity": 1, "unit_price": Decimal("1100")}],
                "issue_date": date(2024, 3, 5),
            },
        )
        invoices.send(business.id, invoice.id)
        make_transaction(-117, date(2024, 3, 10), "Laptop stand")
        make_transaction(500, date(2024, 3, 12), "Cash sale")

        service = TaxService(db_session)
        period = service.create_period(business.id, "VAT_MONTHLY", date(2024, 3, 1), date(2024, 3, 31))
        calculated = service.calculate_period(business.id, period.id)

        assert calculated.status == "CALCULATED"
        assert calculated.revenue == Decimal("1100.00")
        assert calculated.expenses == Decimal("117.00")
        assert calculated.vat_collected == Decimal("187.00")
        assert calculated.vat_paid == Decimal("17.00")
        assert calculated.vat_due == Decimal("170.00")
        assert calculated.tax_advance == Decimal("44.00")

    def test_file_requires_calculation(self, db_session, business):
        """Test OPEN periods cannot be filed."""
        service = TaxService(db_session)
        period = service.create_period(business.id, "VAT_MONTHLY", date(2024, 3, 1), date(2024, 3, 31))

        with pytest.raises(BusinessRuleError):
            service.mark_filed(business.id, period.id)

    def test_file_then_pay_locks_period(self, db_session, business):
        """Test filed periods can be paid and no longer recalculated."""
        service = TaxService(db_session)
        period = service.create_period(business.id, "VAT_MONTHLY", date(2024, 3, 1), date(2024, 3, 31))
        service.calculate_period(business.id, period.id)

        filed = service.mark_filed(business.id, period.id, filed_date=date(2024, 4, 15))
        assert filed.status == "FILED"
        assert filed.filed_date == date(2024, 4, 15)

        with pytest.raises(BusinessRuleError):
            service.calculate_period(business.id, period.id)
        with pytest.raises(BusinessRuleError):
            service.update_period(business.id, period.id, {"notes": "late"})

        paid = service.mark_paid(business.id, period.id)
        assert paid.status == "PAID"

    def test_pay_requires_filing(self, db_session, business):
        """Test only FILED periods can be paid."""
        service = TaxService(db_session)
        period = service.create_period(business.id, "VAT_MONTHLY", date(2024, 3, 1), date(2024, 3, 31))
        service.calculate_period(business.id, period.id)

        with pytest.raises(BusinessRuleError):
            service.mark_paid(business.id, period.id)


class TestYearlySummary:
    """Tests for the annual tax summary."""

    def test_profit_uses_deductible_expenses(self, db_session, business, make_transaction):
        """Test non-deductible expenses do not reduce profit."""
        make_transaction(100000, date(2024, 2, 1), "Client payment")
        make_transaction(-10000, date(2024, 3, 1), "Office rent")
        make_transaction(-2000, date(2024, 4, 1), "Private dinner", is_tax_deductible=False)

        summary = TaxService(db_session).yearly_summary(business.id, 2024)

        assert summary["revenue"] == Decimal("100000.00")
        assert summary["expenses"] == Decimal("12000.00")
        assert summary["deductible_expenses"] == Decimal("10000.00")
        assert summary["profit"] == Decimal("90000.00")
        assert summary["income_tax"]["estimated_annual"] == estimate_income_tax(90000)

    def test_vat_report_requires_range(self, db_session, business):
        """Test both dates are required."""
        with pytest.raises(BusinessRuleError):
            TaxService(db_session).vat_report(business.id, date(2024, 1, 1), None)


class TestVatReport:
    """Tests for the VAT report."""

    @pytest.fixture
    def march(self, db_session, business, make_transaction, expense_category):
        """Invoices and expenses around March 2024."""
        acme = Client(business_id=business.id, name="Acme", tax_id="514000000")
        db_session.add(acme)
        db_session.flush()
        for number, status, issued in (
            ("4001", InvoiceStatus.SENT.value, date(2024, 3, 5)),
            ("4002", InvoiceStatus.DRAFT.value, date(2024, 3, 6)),
            ("4003", InvoiceStatus.PAID.value, date(2024, 4, 1)),
        ):
            db_session.add(
                Invoice(
                    business_id=business.id,
                    client_id=acme.id,
                    invoice_number=number,
                    status=status,
                    issue_date=issued,
                    subtotal=Decimal("1000"),
                    vat_amount=Decimal("170"),
                    total=Decimal("1170"),
                )
            )
        db_session.commit()

        make_transaction(-1170, date(2024, 3, 10), "Laptop", category_id=expense_category.id)
        make_transaction(-500, date(2024, 3, 11), "Accountant", vat_amount=Decimal("-50"))
        make_transaction(-300, date(2024, 3, 12), "Course", is_vat_included=False)
        make_transaction(-200, date(2024, 3, 13), "Private dinner", is_tax_deductible=False)
        make_transaction(999, date(2024, 3, 14), "Client payment")

    def test_output_vat_from_charged_invoices(self, db_session, business, march):
        """Test drafts and invoices outside the range are left out."""
        report = TaxService(db_session).vat_report(business.id, date(2024, 3, 1), date(2024, 3, 31))

        rows = report["output"]["invoices"]
        assert [r["invoice_number"] for r in rows] == ["4001"]
        assert rows[0]["client_name"] == "Acme"
        assert rows[0]["client_tax_id"] == "514000000"
        assert report["output"]["total_base"] == Decimal("1000.00")
        assert report["output"]["total_vat"] == Decimal("170.00")

    def test_input_vat_from_deductible_expenses(self, db_session, business, march):
        """Test stored, included and excluded VAT on expenses."""
        report = TaxService(db_session).vat_report(business.id, date(2024, 3, 1), date(2024, 3, 31))

        rows = {r["description"]: r for r in report["input"]["expenses"]}
        assert sorted(rows) == ["Accountant", "Course", "Laptop"]
        assert rows["Laptop"]["vat_amount"] == Decimal("170.00")
        assert rows["Laptop"]["category"] == "Software"
        assert rows["Accountant"]["vat_amount"] == Decimal("50")
        assert rows["Accountant"]["base_amount"] == Decimal("450.00")
        assert rows["Course"]["vat_amount"] == Decimal("0")
        assert report["input"]["total_base"] == Decimal("1750.00")
        assert report["input"]["total_vat"] == Decimal("220.00")

    def test_net_vat_and_header(self, db_session, business, march):
        """Test the net amount and the business header."""
        report = TaxService(db_session).vat_report(business.id, date(2024, 3, 1), date(2024, 3, 31))

        assert report["net_vat_due"] == Decimal("-50.00")
        assert report["business"]["name"] == "Test Studio"
        assert report["business"]["vat_rate"] == Decimal("17")
        assert report["period"] == {"from": date(2024, 3, 1), "to": date(2024, 3, 31)}
