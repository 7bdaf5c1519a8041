"""initial ledger schema

Revision ID: 202603010900
Revises:
Create Date: 2026-03-01 09:00:00.000000

"""

from alembic import op
import sqlalchemy as sa


revision = "202603010900"
down_revision = None
branch_labels = None
depends_on = None

ENTRY_KIND = sa.Enum("INCOME", "EXPENSE", name="entrykind")
PAYMENT_MODE = sa.Enum(
    "CASH",
    "UPI",
    "CARD",
    "BANK",
    "WALLET",
    "NET_BANKING",
    "OTHER",
    name="paymentmode",
)


def upgrade():
    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("profile_id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("kind", ENTRY_KIND, nullable=False),
        sa.Column(
            "color", sa.String(length=9), nullable=False, server_default="#cbd5e1"
        ),
        sa.Column("icon", sa.String(length=50), nullable=False, server_default="Tag"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index(
        "ix_categories_profile_kind", "categories", ["profile_id", "kind"]
    )

    op.create_table(
        "entries",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("profile_id", sa.String(length=64), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("recorded_at", sa.DateTime(), nullable=False),
        sa.Column("kind", ENTRY_KIND, nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("category_id", sa.Integer(), nullable=False),
        sa.Column("category_name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column(
            "quantity", sa.Numeric(12, 3), nullable=False, server_default="1"
        ),
        sa.Column("unit", sa.String(length=20), nullable=False, server_default="unit"),
        sa.Column("payment_mode", PAYMENT_MODE, nullable=False, server_default="CASH"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("amount_cents >= 0", name="ck_entries_amount_positive"),
    )
    op.create_index("ix_entries_profile_date", "entries", ["profile_id", "date"])
    op.create_index(
        "ix_entries_profile_kind_date", "entries", ["profile_id", "kind", "date"]
    )

    op.create_table(
        "opening_balance_lines",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("profile_id", sa.String(length=64), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("entry_id", sa.String(length=32), nullable=False),
        sa.Column("source", sa.String(length=100), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint(
            "profile_id",
            "year",
            "month",
            "entry_id",
            name="uq_opening_balance_month_entry",
        ),
        sa.CheckConstraint("month BETWEEN 1 AND 12", name="ck_opening_balance_month"),
    )
    op.create_index(
        "ix_opening_balance_profile_month",
        "opening_balance_lines",
        ["profile_id", "year", "month"],
    )


def downgrade():
    op.drop_index(
        "ix_opening_balance_profile_month", table_name="opening_balance_lines"
    )
    op.drop_table("opening_balance_lines")
    op.drop_index("ix_entries_profile_kind_date", table_name="entries")
    op.drop_index("ix_entries_profile_date", table_name="entries")
    op.drop_table("entries")
    op.drop_index("ix_categories_profile_kind", table_name="categories")
    op.drop_table("categories")
