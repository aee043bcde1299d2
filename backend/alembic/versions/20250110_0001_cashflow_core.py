"""Business settings, daily snapshots and periodic cost ledgers."""

from __future__ import annotations

from alembic import context, op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "20250110_0001"
down_revision = None
branch_labels = None
depends_on = None


SPREAD_MODE = sa.Enum("EXACT", "SPREAD", name="expenses_spread_mode")


def _dialect_name() -> str:
    bind = op.get_bind()
    if bind is not None:
        return bind.dialect.name
    ctx = context.get_context()
    return ctx.dialect.name if ctx is not None else ""


def upgrade() -> None:
    dialect_name = _dialect_name()
    uuid_type = sa.String(length=36)
    list_type = sa.JSON()
    if dialect_name == "postgresql":
        uuid_type = postgresql.UUID(as_uuid=True)
        list_type = postgresql.JSONB()

    op.create_table(
        "business_settings",
        sa.Column("id", uuid_type, primary_key=True),
        sa.Column("business_id", sa.String(length=64), nullable=False),
        sa.Column("store_url", sa.String(length=255), nullable=True),
        sa.Column("consumer_key", sa.String(length=255), nullable=True),
        sa.Column("consumer_secret", sa.String(length=255), nullable=True),
        sa.Column("webhook_secret", sa.Text(), nullable=True),
        sa.Column("vat_rate", sa.Numeric(9, 4), nullable=False, server_default="0"),
        sa.Column("credit_card_rate", sa.Numeric(9, 4), nullable=False, server_default="0"),
        sa.Column("materials_rate", sa.Numeric(9, 4), nullable=False, server_default="0"),
        sa.Column("shipping_cost", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("expenses_spread_mode", SPREAD_MODE, nullable=False, server_default="EXACT"),
        sa.Column("valid_order_statuses", list_type, nullable=False),
        sa.Column(
            "manual_shipping_per_item", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column("free_shipping_methods", list_type, nullable=False),
        sa.Column(
            "charge_shipping_on_free_orders", sa.Boolean(), nullable=False, server_default=sa.true()
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        "ix_business_settings_business_id", "business_settings", ["business_id"], unique=True
    )

    money = sa.Numeric(14, 2)
    op.create_table(
        "daily_financial_snapshots",
        sa.Column("id", uuid_type, primary_key=True),
        sa.Column("business_id", sa.String(length=64), nullable=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("revenue", money, nullable=False, server_default="0"),
        sa.Column("orders_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("items_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("google_ads_cost", money, nullable=False, server_default="0"),
        sa.Column("facebook_ads_cost", money, nullable=False, server_default="0"),
        sa.Column("tiktok_ads_cost", money, nullable=False, server_default="0"),
        sa.Column("shipping_cost", money, nullable=False, server_default="0"),
        sa.Column("materials_cost", money, nullable=False, server_default="0"),
        sa.Column("credit_card_fees", money, nullable=False, server_default="0"),
        sa.Column("vat", money, nullable=False, server_default="0"),
        sa.Column("total_expenses", money, nullable=False, server_default="0"),
        sa.Column("profit", money, nullable=False, server_default="0"),
        sa.Column("roi", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("business_id", "date", name="uq_daily_snapshots_business_date"),
    )
    op.create_index("daily_snapshots_date_idx", "daily_financial_snapshots", ["date"])

    op.create_table(
        "employee_salaries",
        sa.Column("id", uuid_type, primary_key=True),
        sa.Column("business_id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=150), nullable=False),
        sa.Column("salary", money, nullable=False, server_default="0"),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint(
            "business_id", "name", "month", "year", name="uq_employee_salaries_name_month"
        ),
    )
    op.create_index(
        "employee_salaries_period_idx", "employee_salaries", ["business_id", "year", "month"]
    )

    for table_name, with_vat in (("vat_expenses", True), ("no_vat_expenses", False)):
        columns = [
            sa.Column("id", uuid_type, primary_key=True),
            sa.Column("business_id", sa.String(length=64), nullable=False),
            sa.Column("expense_date", sa.Date(), nullable=False),
            sa.Column("description", sa.Text(), nullable=False),
            sa.Column("amount", money, nullable=False),
            sa.Column("supplier_name", sa.String(length=150), nullable=True),
            sa.Column("category", sa.String(length=100), nullable=True),
            sa.Column("is_recurring", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        ]
        if with_vat:
            columns.append(sa.Column("vat_amount", money, nullable=False, server_default="0"))
        op.create_table(table_name, *columns)
        op.create_index(
            f"{table_name}_business_date_idx", table_name, ["business_id", "expense_date"]
        )

    op.create_table(
        "customer_refunds",
        sa.Column("id", uuid_type, primary_key=True),
        sa.Column("business_id", sa.String(length=64), nullable=False),
        sa.Column("refund_date", sa.Date(), nullable=False),
        sa.Column("amount", money, nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("order_id", sa.String(length=64), nullable=True),
        sa.Column("customer_name", sa.String(length=150), nullable=True),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        "customer_refunds_business_date_idx", "customer_refunds", ["business_id", "refund_date"]
    )


def downgrade() -> None:
    op.drop_index("customer_refunds_business_date_idx", table_name="customer_refunds")
    op.drop_table("customer_refunds")
    for table_name in ("no_vat_expenses", "vat_expenses"):
        op.drop_index(f"{table_name}_business_date_idx", table_name=table_name)
        op.drop_table(table_name)
    op.drop_index("employee_salaries_period_idx", table_name="employee_salaries")
    op.drop_table("employee_salaries")
    op.drop_index("daily_snapshots_date_idx", table_name="daily_financial_snapshots")
    op.drop_table("daily_financial_snapshots")
    op.drop_index("ix_business_settings_business_id", table_name="business_settings")
    op.drop_table("business_settings")
    SPREAD_MODE.drop(op.get_bind(), checkfirst=True)
