"""Finance domain database models.

- Account: bank, card, pension and cash accounts (snapshot balance)
- Category / CategoryRule: categorization and learned rules
- Transaction: signed money movements
- Client / Project: billable customers and work
- Invoice / InvoiceItem: invoicing
- Budget: monthly category limits
- TaxPeriod: VAT and income-tax periods
- StockPortfolio / StockHolding: stock positions
- Goal, Loan, Saving: planning
- Mortgage / MortgageTrack: mortgages split into tracks
- ForexAccount / ForexTransfer: foreign currency
- RecurringPattern: detected monthly transactions
"""

from ledgerly.infrastructure.database.finance.account import Account, AccountType, BALANCE_ACCOUNT_TYPES
from ledgerly.infrastructure.database.finance.category import Category, CategoryRule
from ledgerly.infrastructure.database.finance.client import Client, Project, ProjectStatus
from ledgerly.infrastructure.database.finance.transaction import Transaction
from ledgerly.infrastructure.database.finance.invoice import Invoice, InvoiceItem, InvoiceStatus, InvoiceType
from ledgerly.infrastructure.database.finance.budget import Budget
from ledgerly.infrastructure.database.finance.tax_period import TaxPeriod, TaxPeriodStatus, TaxPeriodType
from ledgerly.infrastructure.database.finance.stock import StockHolding, StockPortfolio
from ledgerly.infrastructure.database.finance.goal import Goal
from ledgerly.infrastructure.database.finance.loan import Loan
from ledgerly.infrastructure.database.finance.mortgage import (
    Mortgage,
    MortgageIndexType,
    MortgageTrack,
    MortgageTrackType,
)
from ledgerly.infrastructure.database.finance.saving import Saving
from ledgerly.infrastructure.database.finance.forex import ForexAccount, ForexTransfer, ForexTransferType
from ledgerly.infrastructure.database.finance.recurring import RecurringPattern

__all__ = [
    "Account",
    "AccountType",
    "BALANCE_ACCOUNT_TYPES",
    "Category",
    "CategoryRule",
    "Client",
    "Project",
    "ProjectStatus",
    "Transaction",
    "Invoice",
    "InvoiceItem",
    "InvoiceStatus",
    "InvoiceType",
    "Budget",
    "TaxPeriod",
    "TaxPeriodStatus",
    "TaxPeriodType",
    "StockPortfolio",
    "StockHolding",
    "Goal",
    "Loan",
    "Mortgage",
    "MortgageTrack",
    "MortgageTrackType",
    "MortgageIndexType",
    "Saving",
    "ForexAccount",
    "ForexTransfer",
    "ForexTransferType",
    "RecurringPattern",
]
