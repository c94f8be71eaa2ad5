"""Unit tests for InvoiceService."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from ledgerly.core.exceptions import BusinessRuleError, NotFoundError
from ledgerly.domain.services.invoice_service import (
    InvoiceService,
    calculate_totals,
    is_overdue,
)
from ledgerly.infrastructure.database.finance import Invoice


def _create(service: InvoiceService, business_id: str, **overrides) -> Invoice:
    data = {
        "items": [
            {"description": "Design work", "quantity": Decimal("2"), "unit_price": Decimal("500")},
            {"description": "Hosting", "quantity": Decimal("1"), "unit_price": Decimal("100")},
        ],
        "issue_date": date(2024, 3, 1),
        "due_date": date(2024, 3, 31),
    }
    data.update(overrides)
    return service.create(business_id, data)


class TestCalculateTotals:
    """Tests for invoice total calculation."""

    def test_totals_with_vat(self):
        """Test subtotal, VAT and total for several lines."""
        totals = calculate_totals(
            [
                {"quantity": Decimal("2"), "unit_price": Decimal("500")},
                {"quantity": Decimal("1"), "unit_price": Decimal("100")},
            ],
            Decimal("17"),
        )

        assert totals["subtotal"] == Decimal("1100.00")
        assert totals["vat_amount"] == Decimal("187.00")
        assert totals["total"] == Decimal("1287.00")

    def test_line_amounts_rounded_to_cents(self):
        """Test each line is rounded before summing."""
        totals = calculate_totals(
            [{"quantity": Decimal("0.333"), "unit_price": Decimal("10")}],
            Decimal("0"),
        )

        assert totals["subtotal"] == Decimal("3.33")
        assert totals["vat_amount"] == Decimal("0.00")
        assert totals["total"] == Decimal("3.33")


class TestInvoiceNumbering:
    """Tests for sequential invoice numbers."""

    def test_first_number(self, db_session, business):
        """Test the first invoice of a business is INV-0001."""
        assert InvoiceService(db_session).next_invoice_number(business.id) == "INV-0001"

    def test_numbers_increment(self, db_session, business):
        """Test numbers follow the highest existing one."""
        service = InvoiceService(db_session)
        first = _create(service, business.id)
        second = _create(service, business.id)

        assert first.invoice_number == "INV-0001"
        assert second.invoice_number == "INV-0002"
        assert service.next_invoice_number(business.id) == "INV-0003"


class TestInvoiceLifecycle:
    """Tests for invoice status transitions."""

    def test_create_requires_items(self, db_session, business):
        """Test an invoice without items is rejected."""
        with pytest.raises(BusinessRuleError):
            InvoiceService(db_session).create(business.id, {"items": []})

    def test_create_uses_business_vat_rate(self, db_session, business):
        """Test VAT rate defaults to the business rate."""
        invoice = _create(InvoiceService(db_session), business.id)

        assert invoice.status == "DRAFT"
        assert invoice.vat_rate == Decimal("17")
        assert invoice.total == Decimal("1287.00")
        assert len(invoice.items) == 2

    def test_send_then_pay_in_full(self, db_session, business):
        """Test DRAFT -> SENT -> PAID with the remaining balance as default."""
        service = InvoiceService(db_session)
        invoice = _create(service, business.id)

        sent = service.send(business.id, invoice.id)
        assert sent.status == "SENT"
        assert sent.sent_at is not None

        paid = service.mark_paid(business.id, invoice.id)
        assert paid.status == "PAID"
        assert paid.paid_amount == Decimal("1287.00")

    def test_partial_payments_accumulate(self, db_session, business):
        """Test partial payments add up until the invoice is paid."""
        service = InvoiceService(db_session)
        invoice = _create(service, business.id)
        service.send(business.id, invoice.id)

        partial = service.mark_paid(business.id, invoice.id, paid_amount=Decimal("287"))
        assert partial.status == "PARTIALLY_PAID"
        assert partial.paid_amount == Decimal("287.00")

        paid = service.mark_paid(business.id, invoice.id, paid_amount=Decimal("1000"))
        assert paid.status == "PAID"
        assert paid.paid_amount == Decimal("1287.00")

    def test_cannot_pay_draft(self, db_session, business):
        """Test a DRAFT invoice cannot be paid."""
        service = InvoiceService(db_session)
        invoice = _create(service, business.id)

        with pytest.raises(BusinessRuleError):
            service.mark_paid(business.id, invoice.id)

    def test_cannot_send_twice(self, db_session, business):
        """Test only DRAFT invoices can be sent."""
        service = InvoiceService(db_session)
        invoice = _create(service, business.id)
        service.send(business.id, invoice.id)

        with pytest.raises(BusinessRuleError):
            service.send(business.id, invoice.id)

    def test_cannot_cancel_paid(self, db_session, business):
        """Test a PAID invoice cannot be cancelled."""
        service = InvoiceService(db_session)
        invoice = _create(service, business.id)
        service.send(business.id, invoice.id)
        service.mark_paid(business.id, invoice.id)

        with pytest.raises(BusinessRuleError):
            service.cancel(business.id, invoice.id)

    def test_cannot_edit_sent(self, db_session, business):
        """Test only DRAFT invoices can be edited."""
        service = InvoiceService(db_session)
        invoice = _create(service, business.id)
        service.send(business.id, invoice.id)

        with pytest.raises(BusinessRuleError):
            service.update(business.id, invoice.id, {"notes": "changed"})

    def test_update_vat_rate_recomputes_totals(self, db_session, business):
        """Test a VAT change alone recomputes VAT from the stored subtotal."""
        service = InvoiceService(db_session)
        invoice = _create(service, business.id)

        updated = service.update(business.id, invoice.id, {"vat_rate": Decimal("0")})

        assert updated.subtotal == Decimal("1100.00")
        assert updated.vat_amount == Decimal("0.00")
        assert updated.total == Decimal("1100.00")

    def test_delete_only_draft(self, db_session, business):
        """Test sent invoices cannot be deleted but drafts can."""
        service = InvoiceService(db_session)
        sent = _create(service, business.id)
        service.send(business.id, sent.id)
        draft = _create(service, business.id)

        with pytest.raises(BusinessRuleError):
            service.delete(business.id, sent.id)

        service.delete(business.id, draft.id)
        with pytest.raises(NotFoundError):
            service.get(business.id, draft.id)

    def test_duplicate_keeps_payment_term(self, db_session, business):
        """Test a duplicate is a new DRAFT with the same term and items."""
        service = InvoiceService(db_session)
        invoice = _create(service, business.id)
        service.send(business.id, invoice.id)

        copy = service.duplicate(business.id, invoice.id)

        assert copy.id != invoice.id
        assert copy.status == "DRAFT"
        assert copy.invoice_number == "INV-0002"
        assert copy.issue_date == date.today()
        assert copy.due_date == date.today() + timedelta(days=30)
        assert len(copy.items) == 2
        assert copy.total == invoice.total

    def test_other_business_cannot_see_invoice(self, db_session, business, other_user):
        """Test invoices are scoped to their business."""
        service = InvoiceService(db_session)
        invoice = _create(service, business.id)

        with pytest.raises(NotFoundError):
            service.get(other_user.business_id, invoice.id)


class TestInvoiceSummary:
    """Tests for status buckets."""

    def test_overdue_detection(self, db_session, business):
        """Test a sent invoice past its due date counts as overdue."""
        service = InvoiceService(db_session)
        invoice = _create(service, business.id)
        sent = service.send(business.id, invoice.id)

        assert is_overdue(sent, today=date(2024, 4, 1))
        assert not is_overdue(sent, today=date(2024, 3, 15))

        summary = service.summary(business.id, today=date(2024, 4, 1))
        assert summary["overdue"]["count"] == 1
        assert summary["sent"]["count"] == 0
        assert summary["total_outstanding"] == Decimal("1287.00")

    def test_summary_buckets(self, db_session, business):
        """Test drafts, paid and cancelled invoices land in their buckets."""
        service = InvoiceService(db_session)
        _create(service, business.id)
        paid = _create(service, business.id)
        service.send(business.id, paid.id)
        service.mark_paid(business.id, paid.id)
        cancelled = _create(service, business.id)
        service.cancel(business.id, cancelled.id)

        summary = service.summary(business.id, today=date(2024, 3, 15))

        assert summary["draft"]["count"] == 1
        assert summary["paid"]["count"] == 1
        assert summary["paid"]["total"] == Decimal("1287.00")
        assert summary["cancelled"]["count"] == 1
        assert summary["total_outstanding"] == Decimal("0.00")
