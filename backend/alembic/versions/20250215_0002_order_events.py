"""Order audit trail, webhook dedup markers, manual item costs and metrics."""

from __future__ import annotations

from alembic import context, op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "20250215_0002"
down_revision = "20250110_0001"
branch_labels = None
depends_on = None


CHANGE_TYPE = sa.Enum(
    "CREATED",
    "UPDATED",
    "STATUS_CHANGED",
    "TOTAL_CHANGED",
    "DELETED",
    name="order_change_type",
)


def _dialect_name() -> str:
    bind = op.get_bind()
    if bind is not None:
        return bind.dialect.name
    ctx = context.get_context()
    return ctx.dialect.name if ctx is not None else ""


def upgrade() -> None:
    uuid_type = sa.String(length=36)
    if _dialect_name() == "postgresql":
        uuid_type = postgresql.UUID(as_uuid=True)

    op.create_table(
        "order_item_costs",
        sa.Column("id", uuid_type, primary_key=True),
        sa.Column("business_id", sa.String(length=64), nullable=False),
        sa.Column("order_id", sa.String(length=64), nullable=False),
        sa.Column("line_item_id", sa.String(length=64), nullable=False),
        sa.Column("product_name", sa.String(length=255), nullable=True),
        sa.Column("order_date", sa.Date(), nullable=False),
        sa.Column("shipping_cost", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint(
            "business_id", "order_id", "line_item_id", name="uq_order_item_costs_line"
        ),
    )
    op.create_index(
        "order_item_costs_business_date_idx", "order_item_costs", ["business_id", "order_date"]
    )

    op.create_table(
        "order_changes",
        sa.Column("id", uuid_type, primary_key=True),
        sa.Column("business_id", sa.String(length=64), nullable=False),
        sa.Column("order_id", sa.String(length=64), nullable=False),
        sa.Column("order_number", sa.String(length=64), nullable=True),
        sa.Column("order_date", sa.Date(), nullable=True),
        sa.Column("change_type", CHANGE_TYPE, nullable=False),
        sa.Column("old_values", sa.JSON(), nullable=True),
        sa.Column("new_values", sa.JSON(), nullable=True),
        sa.Column("summary", sa.Text(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        "order_changes_business_order_idx",
        "order_changes",
        ["business_id", "order_id", "created_at"],
    )
    op.create_index("order_changes_unread_idx", "order_changes", ["business_id", "is_read"])

    op.create_table(
        "processed_webhook_deliveries",
        sa.Column("id", uuid_type, primary_key=True),
        sa.Column("business_id", sa.String(length=64), nullable=False),
        sa.Column("order_id", sa.String(length=64), nullable=False),
        sa.Column("topic", sa.String(length=64), nullable=False),
        sa.Column("delivery_id", sa.String(length=128), nullable=True),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint(
            "business_id", "order_id", "topic", name="uq_processed_webhook_order_topic"
        ),
    )
    op.create_index(
        "processed_webhook_deliveries_age_idx", "processed_webhook_deliveries", ["processed_at"]
    )

    op.create_table(
        "operational_metric_events",
        sa.Column("event_id", uuid_type, primary_key=True),
        sa.Column("business_id", sa.String(length=64), nullable=True),
        sa.Column("day", sa.Date(), nullable=True),
        sa.Column("event_type", sa.String(length=64), nullable=False),
        sa.Column("outcome", sa.String(length=16), nullable=False),
        sa.Column("duration_ms", sa.Numeric(12, 3), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("recorded_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        "operational_metric_events_business_day_idx",
        "operational_metric_events",
        ["business_id", "day"],
    )
    op.create_index(
        "ix_operational_metric_events_event_type", "operational_metric_events", ["event_type"]
    )


def downgrade() -> None:
    op.drop_index(
        "ix_operational_metric_events_event_type", table_name="operational_metric_events"
    )
    op.drop_index(
        "operational_metric_events_business_day_idx", table_name="operational_metric_events"
    )
    op.drop_table("operational_metric_events")
    op.drop_index("processed_webhook_deliveries_age_idx", table_name="processed_webhook_deliveries")
    op.drop_table("processed_webhook_deliveries")
    op.drop_index("order_changes_unread_idx", table_name="order_changes")
    op.drop_index("order_changes_business_order_idx", table_name="order_changes")
    op.drop_table("order_changes")
    CHANGE_TYPE.drop(op.get_bind(), checkfirst=True)
    op.drop_index("order_item_costs_business_date_idx", table_name="order_item_costs")
    op.drop_table("order_item_costs")
