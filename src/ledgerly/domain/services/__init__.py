"""Domain services."""

from ledgerly.domain.services.invoice_service import InvoiceService
from ledgerly.domain.services.report_service import ReportService
from ledgerly.domain.services.tax_service import TaxService
from ledgerly.domain.services.transaction_service import TransactionService

__all__ = ["InvoiceService", "ReportService", "TaxService", "TransactionService"]
