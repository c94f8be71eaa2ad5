"""Invoice service: numbering, totals and status transitions."""

import re
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from ledgerly.core.date_helpers import utc_now
from ledgerly.core.exceptions import BusinessRuleError, NotFoundError
from ledgerly.core.logging import get_logger
from ledgerly.core.money import ZERO, round_money, to_decimal
from ledgerly.infrastructure.database.finance import (
    Client,
    Invoice,
    InvoiceItem,
    InvoiceStatus,
    InvoiceType,
    Project,
)
from ledgerly.infrastructure.database.models import Business

logger = get_logger(__name__)

DEFAULT_VAT_RATE = Decimal("17")
INVOICE_NUMBER_PATTERN = re.compile(r"INV-(\d+)")

# Statuses that still expect money from the client
OUTSTANDING_STATUSES = (
    InvoiceStatus.SENT.value,
    InvoiceStatus.VIEWED.value,
    InvoiceStatus.PARTIALLY_PAID.value,
    InvoiceStatus.OVERDUE.value,
)


def calculate_totals(items: list[dict[str, Any]], vat_rate: Any) -> dict[str, Decimal]:
    """
    Compute line amounts, subtotal, VAT and total for invoice items.

    Each line amount is round(quantity * unit_price, 2); VAT is applied to
    the subtotal and rounded to cents.
    """
    subtotal = ZERO
    for item in items:
        subtotal += round_money(to_decimal(item.get("quantity", 1)) * to_decimal(item["unit_price"]))
    return totals_from_subtotal(subtotal, vat_rate)


def totals_from_subtotal(subtotal: Any, vat_rate: Any) -> dict[str, Decimal]:
    subtotal = round_money(subtotal)
    vat_amount = round_money(subtotal * to_decimal(vat_rate) / 100)
    return {
        "subtotal": subtotal,
        "vat_amount": vat_amount,
        "total": round_money(subtotal + vat_amount),
    }


def is_overdue(invoice: Invoice, today: Optional[date] = None) -> bool:
    """A sent invoice whose due date has passed."""
    today = today or date.today()
    return (
        invoice.status == InvoiceStatus.SENT.value
        and invoice.due_date is not None
        and invoice.due_date < today
    )


class InvoiceService:
    """Service for issuing and tracking invoices."""

    def __init__(self, db: Session):
        self.db = db

    def next_invoice_number(self, business_id: str) -> str:
        """INV-%04d following the highest existing number of the business."""
        numbers = self.db.execute(
            select(Invoice.invoice_number).where(Invoice.business_id == business_id)
        ).scalars().all()

        highest = 0
        for number in numbers:
            match = INVOICE_NUMBER_PATTERN.search(number or "")
            if match:
                highest = max(highest, int(match.group(1)))
        return f"INV-{highest + 1:04d}"

    def get(self, business_id: str, invoice_id: str) -> Invoice:
        invoice = self.db.execute(
            select(Invoice)
            .options(
                joinedload(Invoice.client),
                joinedload(Invoice.project),
                joinedload(Invoice.items),
            )
            .where(Invoice.id == invoice_id, Invoice.business_id == business_id)
        ).unique().scalar_one_or_none()
        if not invoice:
            raise NotFoundError("Invoice not found")
        return invoice

    def list_invoices(
        self,
        business_id: str,
        status: Optional[str] = None,
        client_id: Optional[str] = None,
        type: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[Invoice]:
        query = (
            select(Invoice)
            .options(joinedload(Invoice.client), joinedload(Invoice.project), joinedload(Invoice.items))
            .where(Invoice.business_id == business_id)
        )
        if status:
            query = query.where(Invoice.status == status)
        if client_id:
            query = query.where(Invoice.client_id == client_id)
        if type:
            query = query.where(Invoice.type == type)
        if date_from:
            query = query.where(Invoice.issue_date >= date_from)
        if date_to:
            query = query.where(Invoice.issue_date <= date_to)
        query = query.order_by(Invoice.issue_date.desc(), Invoice.created_at.desc())
        return list(self.db.execute(query).unique().scalars().all())

    def _check_links(self, business_id: str, client_id: Optional[str], project_id: Optional[str]) -> None:
        if client_id:
            found = self.db.execute(
                select(Client.id).where(Client.id == client_id, Client.business_id == business_id)
            ).first()
            if not found:
                raise NotFoundError("Client not found")
        if project_id:
            found = self.db.execute(
                select(Project.id).where(Project.id == project_id, Project.business_id == business_id)
            ).first()
            if not found:
                raise NotFoundError("Project not found")

    @staticmethod
    def _build_items(items: list[dict[str, Any]]) -> list[InvoiceItem]:
        built = []
        for index, item in enumerate(items):
            quantity = to_decimal(item.get("quantity", 1))
            unit_price = to_decimal(item["unit_price"])
            built.append(
                InvoiceItem(
                    description=item["description"],
                    quantity=quantity,
                    unit_price=unit_price,
                    amount=round_money(quantity * unit_price),
                    sort_order=item.get("sort_order") if item.get("sort_order") is not None else index,
                )
            )
        return built

    def _business_vat_rate(self, business_id: str) -> Decimal:
        business = self.db.get(Business, business_id)
        if business and business.vat_rate is not None:
            return to_decimal(business.vat_rate)
        return DEFAULT_VAT_RATE

    def create(self, business_id: str, data: dict[str, Any]) -> Invoice:
        items = data.get("items") or []
        if not items:
            raise BusinessRuleError("Invoice must have at least one item")
        self._check_links(business_id, data.get("client_id"), data.get("project_id"))

        vat_rate = (
            to_decimal(data["vat_rate"]) if data.get("vat_rate") is not None else self._business_vat_rate(business_id)
        )
        totals = calculate_totals(items, vat_rate)

        invoice = Invoice(
            business_id=business_id,
            client_id=data.get("client_id"),
            project_id=data.get("project_id"),
            invoice_number=self.next_invoice_number(business_id),
            type=data.get("type") or InvoiceType.TAX_INVOICE.value,
            status=InvoiceStatus.DRAFT.value,
            issue_date=data.get("issue_date") or date.today(),
            due_date=data.get("due_date"),
            vat_rate=vat_rate,
            currency=data.get("currency") or "ILS",
            language=data.get("language") or "he",
            notes=data.get("notes"),
            items=self._build_items(items),
            **totals,
        )
        self.db.add(invoice)
        self.db.commit()
        logger.info("Invoice created", invoice_id=invoice.id, invoice_number=invoice.invoice_number, total=str(invoice.total))
        return self.get(business_id, invoice.id)

    def update(self, business_id: str, invoice_id: str, data: dict[str, Any]) -> Invoice:
        """
        Edit a DRAFT invoice.

        New items replace the old ones and totals are recomputed; a vat_rate
        change alone recomputes VAT and total from the stored subtotal.
        """
        invoice = self.get(business_id, invoice_id)
        if invoice.status != InvoiceStatus.DRAFT.value:
            raise BusinessRuleError("Only DRAFT invoices can be edited")

        self._check_links(business_id, data.get("client_id"), data.get("project_id"))

        items = data.pop("items", None)
        for field, value in data.items():
            setattr(invoice, field, value)

        vat_rate = to_decimal(invoice.vat_rate)
        if items:
            invoice.items.clear()
            self.db.flush()
            invoice.items.extend(self._build_items(items))
            totals = calculate_totals(items, vat_rate)
        elif "vat_rate" in data:
            totals = totals_from_subtotal(invoice.subtotal, vat_rate)
        else:
            totals = None

        if totals:
            invoice.subtotal = totals["subtotal"]
            invoice.vat_amount = totals["vat_amount"]
            invoice.total = totals["total"]

        self.db.commit()
        return self.get(business_id, invoice.id)

    def send(self, business_id: str, invoice_id: str) -> Invoice:
        invoice = self.get(business_id, invoice_id)
        if invoice.status != InvoiceStatus.DRAFT.value:
            raise BusinessRuleError("Only DRAFT invoices can be marked as SENT")
        invoice.status = InvoiceStatus.SENT.value
        invoice.sent_at = utc_now()
        self.db.commit()
        logger.info("Invoice sent", invoice_id=invoice.id, invoice_number=invoice.invoice_number)
        return self.get(business_id, invoice.id)

    def mark_paid(
        self,
        business_id: str,
        invoice_id: str,
        paid_amount: Optional[Decimal] = None,
        paid_date: Optional[date] = None,
        payment_method: Optional[str] = None,
        payment_reference: Optional[str] = None,
    ) -> Invoice:
        """
        Record a (possibly partial) payment.

        The amount defaults to the remaining balance and accumulates with
        previous payments. Fully covered invoices become PAID.
        """
        invoice = self.get(business_id, invoice_id)
        if invoice.status == InvoiceStatus.CANCELLED.value:
            raise BusinessRuleError("Cannot mark a cancelled invoice as paid")
        if invoice.status == InvoiceStatus.DRAFT.value:
            raise BusinessRuleError("Invoice must be sent before marking as paid")

        total = to_decimal(invoice.total)
        already_paid = to_decimal(invoice.paid_amount)
        amount = to_decimal(paid_amount) if paid_amount is not None else max(total - already_paid, ZERO)
        total_paid = round_money(already_paid + amount)

        invoice.paid_amount = total_paid
        invoice.paid_date = paid_date or date.today()
        invoice.status = (
            InvoiceStatus.PAID.value if total_paid >= total else InvoiceStatus.PARTIALLY_PAID.value
        )
        if payment_method is not None:
            invoice.payment_method = payment_method
        if payment_reference is not None:
            invoice.payment_reference = payment_reference

        self.db.commit()
        logger.info("Invoice payment recorded", invoice_id=invoice.id, status=invoice.status, paid_amount=str(total_paid))
        return self.get(business_id, invoice.id)

    def cancel(self, business_id: str, invoice_id: str) -> Invoice:
        invoice = self.get(business_id, invoice_id)
        if invoice.status == InvoiceStatus.PAID.value:
            raise BusinessRuleError("Cannot cancel a paid invoice. Issue a credit note instead.")
        invoice.status = InvoiceStatus.CANCELLED.value
        self.db.commit()
        logger.info("Invoice cancelled", invoice_id=invoice.id)
        return self.get(business_id, invoice.id)

    def duplicate(self, business_id: str, invoice_id: str) -> Invoice:
        """Copy an invoice as a new DRAFT issued today, keeping its payment term."""
        original = self.get(business_id, invoice_id)
        today = date.today()

        due_date = None
        if original.due_date is not None:
            due_date = today + timedelta(days=(original.due_date - original.issue_date).days)

        copy = Invoice(
            business_id=business_id,
            client_id=original.client_id,
            project_id=original.project_id,
            invoice_number=self.next_invoice_number(business_id),
            type=original.type,
            status=InvoiceStatus.DRAFT.value,
            issue_date=today,
            due_date=due_date,
            subtotal=original.subtotal,
            vat_rate=original.vat_rate,
            vat_amount=original.vat_amount,
            total=original.total,
            currency=original.currency,
            language=original.language,
            notes=original.notes,
            items=[
                InvoiceItem(
                    description=item.description,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    amount=item.amount,
                    sort_order=item.sort_order,
                )
                for item in original.items
            ],
        )
        self.db.add(copy)
        self.db.commit()
        logger.info("Invoice duplicated", source_id=original.id, invoice_id=copy.id)
        return self.get(business_id, copy.id)

    def delete(self, business_id: str, invoice_id: str) -> None:
        invoice = self.get(business_id, invoice_id)
        if invoice.status != InvoiceStatus.DRAFT.value:
            raise BusinessRuleError("Only DRAFT invoices can be deleted")
        self.db.delete(invoice)
        self.db.commit()
        logger.info("Invoice deleted", invoice_id=invoice_id)

    def summary(self, business_id: str, today: Optional[date] = None) -> dict[str, Any]:
        """Counts and totals per status bucket plus the outstanding amount."""
        today = today or date.today()
        invoices = self.db.execute(
            select(Invoice).where(Invoice.business_id == business_id)
        ).scalars().all()

        buckets = {
            name: {"count": 0, "total": ZERO}
            for name in ("draft", "sent", "overdue", "paid", "partially_paid", "cancelled")
        }

        def add(name: str, amount: Decimal) -> None:
            buckets[name]["count"] += 1
            buckets[name]["total"] += amount

        for invoice in invoices:
            total = to_decimal(invoice.total)
            if invoice.status == InvoiceStatus.DRAFT.value:
                add("draft", total)
            elif invoice.status == InvoiceStatus.SENT.value:
                add("overdue" if is_overdue(invoice, today) else "sent", total)
            elif invoice.status == InvoiceStatus.OVERDUE.value:
                add("overdue", total)
            elif invoice.status == InvoiceStatus.PAID.value:
                add("paid", to_decimal(invoice.paid_amount) if invoice.paid_amount is not None else total)
            elif invoice.status == InvoiceStatus.PARTIALLY_PAID.value:
                add("partially_paid", to_decimal(invoice.paid_amount))
            elif invoice.status == InvoiceStatus.CANCELLED.value:
                add("cancelled", total)

        for bucket in buckets.values():
            bucket["total"] = round_money(bucket["total"])

        result: dict[str, Any] = dict(buckets)
        result["total_outstanding"] = round_money(
            buckets["sent"]["total"] + buckets["overdue"]["total"] + buckets["partially_paid"]["total"]
        )
        return result
