"""add_mortgages

Create mortgages and mortgage_tracks.

Revision ID: 0002_add_mortgages
Revises: 0001_initial_schema
Create Date: 2026-10-17

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0002_add_mortgages"
down_revision: Union[str, None] = "0001_initial_schema"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "mortgages",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "business_id", sa.String(36), sa.ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("bank", sa.String(255), nullable=True),
        sa.Column("property_value", sa.Numeric(14, 2), nullable=True),
        sa.Column("total_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("remaining_amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("total_monthly", sa.Numeric(14, 2), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("currency", sa.String(3), nullable=False, server_default="ILS"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("idx_mortgages_business", "mortgages", ["business_id"], unique=False)

    op.create_table(
        "mortgage_tracks",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "mortgage_id", sa.String(36), sa.ForeignKey("mortgages.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("track_type", sa.String(20), nullable=False),
        sa.Column("index_type", sa.String(20), nullable=True),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("interest_rate", sa.Numeric(5, 2), nullable=False),
        sa.Column("monthly_payment", sa.Numeric(14, 2), nullable=True),
        sa.Column("total_payments", sa.Integer(), nullable=True),
        sa.Column("remaining_payments", sa.Integer(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_mortgage_tracks_mortgage_id", "mortgage_tracks", ["mortgage_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_mortgage_tracks_mortgage_id", table_name="mortgage_tracks")
    op.drop_table("mortgage_tracks")
    op.drop_index("idx_mortgages_business", table_name="mortgages")
    op.drop_table("mortgages")
