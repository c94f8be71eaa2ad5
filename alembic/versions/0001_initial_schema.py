"""initial_schema

Create the Ledgerly schema:
- businesses, users
- accounts, categories, category_rules, transactions
- clients, projects, invoices, invoice_items
- budgets, tax_periods, recurring_patterns
- goals, loans, savings
- stock_portfolios, stock_holdings
- forex_accounts, forex_transfers

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-17

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column("id", sa.String(36), primary_key=True)


def _business_fk() -> sa.Column:
    return sa.Column(
        "business_id", sa.String(36), sa.ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False
    )


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    """Create all tables."""

    # 1. businesses / users
    op.create_table(
        "businesses",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("business_number", sa.String(50), nullable=True),
        sa.Column("business_type", sa.String(50), nullable=True),
        sa.Column("vat_rate", sa.Numeric(5, 2), nullable=False, server_default="17"),
        sa.Column("default_currency", sa.String(3), nullable=False, server_default="ILS"),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _business_fk(),
        sa.Column("country_code", sa.String(2), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("idx_users_business", "users", ["business_id"])

    # 2. accounts
    op.create_table(
        "accounts",
        _id(),
        _business_fk(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("type", sa.String(20), nullable=False, server_default="BANK"),
        sa.Column("provider", sa.String(255), nullable=True),
        sa.Column("account_number", sa.String(50), nullable=True),
        sa.Column("balance", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("balance_date", sa.Date(), nullable=True),
        sa.Column("currency", sa.String(3), nullable=False, server_default="ILS"),
        sa.Column(
            "linked_bank_account_id",
            sa.String(36),
            sa.ForeignKey("accounts.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("idx_accounts_business", "accounts", ["business_id"])
    op.create_index("idx_accounts_type", "accounts", ["type"])
    op.create_index("idx_accounts_active", "accounts", ["is_active"])

    # 3. categories / rules
    op.create_table(
        "categories",
        _id(),
        _business_fk(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("slug", sa.String(100), nullable=False),
        sa.Column("icon", sa.String(20), nullable=True),
        sa.Column("color", sa.String(20), nullable=True),
        sa.Column("is_income", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("exclude_from_expense_total", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_tax_deductible", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("deduction_rate", sa.Numeric(5, 2), nullable=False, server_default="100"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("business_id", "slug", name="uq_categories_business_slug"),
    )
    op.create_index("idx_categories_business", "categories", ["business_id"])

    op.create_table(
        "category_rules",
        _id(),
        _business_fk(),
        sa.Column(
            "category_id", sa.String(36), sa.ForeignKey("categories.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("pattern", sa.String(255), nullable=False),
        sa.Column("pattern_type", sa.String(20), nullable=False, server_default="contains"),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_category_rules_business_priority", "category_rules", ["business_id", "priority"])

    # 4. clients / projects
    op.create_table(
        "clients",
        _id(),
        _business_fk(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("contact_name", sa.String(255), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("tax_id", sa.String(50), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("hourly_rate", sa.Numeric(14, 2), nullable=True),
        sa.Column("currency", sa.String(3), nullable=False, server_default="ILS"),
        sa.Column("color", sa.String(20), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("idx_clients_business", "clients", ["business_id"])
    op.create_index("idx_clients_active", "clients", ["is_active"])

    op.create_table(
        "projects",
        _id(),
        _business_fk(),
        sa.Column("client_id", sa.String(36), sa.ForeignKey("clients.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="ACTIVE"),
        sa.Column("budget", sa.Numeric(14, 2), nullable=True),
        sa.Column("hourly_rate", sa.Numeric(14, 2), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("idx_projects_client", "projects", ["client_id"])

    # 5. transactions
    op.create_table(
        "transactions",
        _id(),
        _business_fk(),
        sa.Column("account_id", sa.String(36), sa.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("category_id", sa.String(36), sa.ForeignKey("categories.id", ondelete="SET NULL"), nullable=True),
        sa.Column("client_id", sa.String(36), sa.ForeignKey("clients.id", ondelete="SET NULL"), nullable=True),
        sa.Column("project_id", sa.String(36), sa.ForeignKey("projects.id", ondelete="SET NULL"), nullable=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("description", sa.String(500), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="ILS"),
        sa.Column("vat_amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("vat_rate", sa.Numeric(5, 2), nullable=True),
        sa.Column("is_vat_included", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_tax_deductible", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("deduction_rate", sa.Numeric(5, 2), nullable=False, server_default="100"),
        sa.Column("is_recurring", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("installment_current", sa.Integer(), nullable=True),
        sa.Column("installment_total", sa.Integer(), nullable=True),
        sa.Column("installment_total_amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("idx_transactions_business_date", "transactions", ["business_id", "date"])
    op.create_index("idx_transactions_account", "transactions", ["account_id"])
    op.create_index("idx_transactions_category", "transactions", ["category_id"])

    # 6. invoices
    op.create_table(
        "invoices",
        _id(),
        _business_fk(),
        sa.Column("client_id", sa.String(36), sa.ForeignKey("clients.id", ondelete="SET NULL"), nullable=True),
        sa.Column("project_id", sa.String(36), sa.ForeignKey("projects.id", ondelete="SET NULL"), nullable=True),
        sa.Column("invoice_number", sa.String(30), nullable=False),
        sa.Column("type", sa.String(30), nullable=False, server_default="TAX_INVOICE"),
        sa.Column("status", sa.String(20), nullable=False, server_default="DRAFT"),
        sa.Column("issue_date", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("subtotal", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("vat_rate", sa.Numeric(5, 2), nullable=False, server_default="17"),
        sa.Column("vat_amount", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("total", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("currency", sa.String(3), nullable=False, server_default="ILS"),
        sa.Column("language", sa.String(5), nullable=False, server_default="he"),
        sa.Column("paid_amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("paid_date", sa.Date(), nullable=True),
        sa.Column("payment_method", sa.String(50), nullable=True),
        sa.Column("payment_reference", sa.String(100), nullable=True),
        sa.Column("sent_at", sa.DateTime(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("business_id", "invoice_number", name="uq_invoices_business_number"),
    )
    op.create_index("idx_invoices_business_status", "invoices", ["business_id", "status"])
    op.create_index("idx_invoices_issue_date", "invoices", ["issue_date"])

    op.create_table(
        "invoice_items",
        _id(),
        sa.Column("invoice_id", sa.String(36), sa.ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False),
        sa.Column("description", sa.String(500), nullable=False),
        sa.Column("quantity", sa.Numeric(12, 3), nullable=False, server_default="1"),
        sa.Column("unit_price", sa.Numeric(14, 2), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
    )

    # 7. budgets / tax periods / recurring patterns
    op.create_table(
        "budgets",
        _id(),
        _business_fk(),
        sa.Column(
            "category_id", sa.String(36), sa.ForeignKey("categories.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.UniqueConstraint("business_id", "category_id", name="uq_budgets_business_category"),
    )

    op.create_table(
        "tax_periods",
        _id(),
        _business_fk(),
        sa.Column("type", sa.String(30), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="OPEN"),
        sa.Column("period_start", sa.Date(), nullable=False),
        sa.Column("period_end", sa.Date(), nullable=False),
        sa.Column("revenue", sa.Numeric(14, 2), nullable=True),
        sa.Column("expenses", sa.Numeric(14, 2), nullable=True),
        sa.Column("vat_collected", sa.Numeric(14, 2), nullable=True),
        sa.Column("vat_paid", sa.Numeric(14, 2), nullable=True),
        sa.Column("vat_due", sa.Numeric(14, 2), nullable=True),
        sa.Column("tax_advance", sa.Numeric(14, 2), nullable=True),
        sa.Column("calculated_at", sa.DateTime(), nullable=True),
        sa.Column("filed_date", sa.Date(), nullable=True),
        sa.Column("paid_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("idx_tax_periods_business_start", "tax_periods", ["business_id", "period_start"])
    op.create_index("idx_tax_periods_type", "tax_periods", ["type"])

    op.create_table(
        "recurring_patterns",
        _id(),
        _business_fk(),
        sa.Column("description", sa.String(500), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("type", sa.String(10), nullable=False),
        sa.Column("frequency", sa.String(20), nullable=False, server_default="monthly"),
        sa.Column("category_id", sa.String(36), sa.ForeignKey("categories.id", ondelete="SET NULL"), nullable=True),
        sa.Column("account_id", sa.String(36), sa.ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True),
        sa.Column("last_seen_date", sa.Date(), nullable=False),
        sa.Column("occurrences", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_confirmed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_dismissed", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index(
        "idx_recurring_patterns_business_desc", "recurring_patterns", ["business_id", "description", "type"]
    )

    # 8. goals / loans / savings
    op.create_table(
        "goals",
        _id(),
        _business_fk(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("target_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("current_amount", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("target_date", sa.Date(), nullable=True),
        sa.Column("monthly_target", sa.Numeric(14, 2), nullable=True),
        sa.Column("icon", sa.String(20), nullable=True),
        sa.Column("color", sa.String(20), nullable=True),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("currency", sa.String(3), nullable=False, server_default="ILS"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        "loans",
        _id(),
        _business_fk(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("lender", sa.String(255), nullable=True),
        sa.Column("original_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("remaining_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("interest_rate", sa.Numeric(6, 3), nullable=True),
        sa.Column("monthly_payment", sa.Numeric(14, 2), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("currency", sa.String(3), nullable=False, server_default="ILS"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        "savings",
        _id(),
        _business_fk(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("target_amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("current_amount", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("interest_rate", sa.Numeric(6, 3), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("target_date", sa.Date(), nullable=True),
        sa.Column("currency", sa.String(3), nullable=False, server_default="ILS"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    # 9. stocks
    op.create_table(
        "stock_portfolios",
        _id(),
        _business_fk(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("broker", sa.String(255), nullable=True),
        sa.Column("account_num", sa.String(50), nullable=True),
        sa.Column("currency", sa.String(3), nullable=False, server_default="ILS"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("idx_stock_portfolios_business", "stock_portfolios", ["business_id"])

    op.create_table(
        "stock_holdings",
        _id(),
        sa.Column(
            "portfolio_id",
            sa.String(36),
            sa.ForeignKey("stock_portfolios.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("ticker", sa.String(20), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("exchange", sa.String(50), nullable=True),
        sa.Column("sector", sa.String(100), nullable=True),
        sa.Column("shares", sa.Numeric(18, 6), nullable=False),
        sa.Column("avg_buy_price", sa.Numeric(14, 4), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="USD"),
        sa.Column("buy_date", sa.Date(), nullable=True),
        sa.Column("current_price", sa.Numeric(14, 4), nullable=True),
        sa.Column("price_updated_at", sa.DateTime(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    # 10. forex
    op.create_table(
        "forex_accounts",
        _id(),
        _business_fk(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("balance", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("provider", sa.String(255), nullable=True),
        sa.Column("account_num", sa.String(50), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        "forex_transfers",
        _id(),
        _business_fk(),
        sa.Column(
            "forex_account_id",
            sa.String(36),
            sa.ForeignKey("forex_accounts.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("from_currency", sa.String(3), nullable=False),
        sa.Column("to_currency", sa.String(3), nullable=False),
        sa.Column("from_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("to_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("exchange_rate", sa.Numeric(14, 6), nullable=False),
        sa.Column("fee", sa.Numeric(14, 2), nullable=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_forex_transfers_business_date", "forex_transfers", ["business_id", "date"])


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    for table in (
        "forex_transfers",
        "forex_accounts",
        "stock_holdings",
        "stock_portfolios",
        "savings",
        "loans",
        "goals",
        "recurring_patterns",
        "tax_periods",
        "budgets",
        "invoice_items",
        "invoices",
        "transactions",
        "projects",
        "clients",
        "category_rules",
        "categories",
        "accounts",
        "users",
        "businesses",
    ):
        op.drop_table(table)
