"""Invoice routes."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ledgerly.api.dependencies import get_current_active_user, get_db
from ledgerly.domain.services.invoice_service import InvoiceService, is_overdue
from ledgerly.infrastructure.database.finance import Invoice
from ledgerly.infrastructure.database.models import User

from .schemas import (
    INVOICE_STATUS_PATTERN,
    INVOICE_TYPE_PATTERN,
    InvoiceCreate,
    InvoiceItemResponse,
    InvoiceResponse,
    InvoiceSummaryResponse,
    InvoiceUpdate,
    MarkPaidRequest,
    NextNumberResponse,
)

router = APIRouter(prefix="/invoices", tags=["Invoices"])


def build_invoice_response(invoice: Invoice) -> InvoiceResponse:
    return InvoiceResponse(
        id=invoice.id,
        invoice_number=invoice.invoice_number,
        type=invoice.type,
        status=invoice.status,
        client_id=invoice.client_id,
        client_name=invoice.client.name if invoice.client else None,
        project_id=invoice.project_id,
        project_name=invoice.project.name if invoice.project else None,
        issue_date=invoice.issue_date,
        due_date=invoice.due_date,
        subtotal=invoice.subtotal,
        vat_rate=invoice.vat_rate,
        vat_amount=invoice.vat_amount,
        total=invoice.total,
        currency=invoice.currency,
        language=invoice.language,
        paid_amount=invoice.paid_amount,
        paid_date=invoice.paid_date,
        payment_method=invoice.payment_method,
        payment_reference=invoice.payment_reference,
        sent_at=invoice.sent_at,
        notes=invoice.notes,
        is_overdue=is_overdue(invoice),
        items=[InvoiceItemResponse.model_validate(item) for item in invoice.items],
        created_at=invoice.created_at,
    )


@router.get("", response_model=list[InvoiceResponse])
def list_invoices(
    status: Optional[str] = Query(None, pattern=INVOICE_STATUS_PATTERN),
    client_id: Optional[str] = Query(None),
    type: Optional[str] = Query(None, pattern=INVOICE_TYPE_PATTERN),
    date_from: Optional[date] = Query(None, alias="from", description="Issued on or after"),
    date_to: Optional[date] = Query(None, alias="to", description="Issued on or before"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """List invoices, newest issue date first."""
    invoices = InvoiceService(db).list_invoices(
        current_user.business_id,
        status=status,
        client_id=client_id,
        type=type,
        date_from=date_from,
        date_to=date_to,
    )
    return [build_invoice_response(i) for i in invoices]


@router.get("/summary", response_model=InvoiceSummaryResponse)
def get_invoice_summary(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Counts and totals per status plus the outstanding amount."""
    return InvoiceService(db).summary(current_user.business_id)


@router.get("/next-number", response_model=NextNumberResponse)
def get_next_number(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return NextNumberResponse(invoice_number=InvoiceService(db).next_invoice_number(current_user.business_id))


@router.get("/{invoice_id}", response_model=InvoiceResponse)
def get_invoice(
    invoice_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return build_invoice_response(InvoiceService(db).get(current_user.business_id, invoice_id))


@router.post("", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
def create_invoice(
    data: InvoiceCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Create a DRAFT invoice with the next number; totals come from the items."""
    invoice = InvoiceService(db).create(current_user.business_id, data.model_dump())
    return build_invoice_response(invoice)


@router.put("/{invoice_id}", response_model=InvoiceResponse)
def update_invoice(
    invoice_id: str,
    data: InvoiceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Edit a DRAFT invoice."""
    invoice = InvoiceService(db).update(current_user.business_id, invoice_id, data.model_dump(exclude_unset=True))
    return build_invoice_response(invoice)


@router.post("/{invoice_id}/send", response_model=InvoiceResponse)
def send_invoice(
    invoice_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return build_invoice_response(InvoiceService(db).send(current_user.business_id, invoice_id))


@router.post("/{invoice_id}/mark-paid", response_model=InvoiceResponse)
def mark_invoice_paid(
    invoice_id: str,
    data: Optional[MarkPaidRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Record a full or partial payment."""
    data = data or MarkPaidRequest()
    invoice = InvoiceService(db).mark_paid(
        current_user.business_id,
        invoice_id,
        paid_amount=data.paid_amount,
        paid_date=data.paid_date,
        payment_method=data.payment_method,
        payment_reference=data.payment_reference,
    )
    return build_invoice_response(invoice)


@router.post("/{invoice_id}/cancel", response_model=InvoiceResponse)
def cancel_invoice(
    invoice_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return build_invoice_response(InvoiceService(db).cancel(current_user.business_id, invoice_id))


@router.post("/{invoice_id}/duplicate", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
def duplicate_invoice(
    invoice_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Copy an invoice as a new DRAFT."""
    return build_invoice_response(InvoiceService(db).duplicate(current_user.business_id, invoice_id))


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_invoice(
    invoice_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Delete a DRAFT invoice."""
    InvoiceService(db).delete(current_user.business_id, invoice_id)
    return None
