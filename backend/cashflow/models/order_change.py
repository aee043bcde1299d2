"""Audit trail of order events received from the commerce platform."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    Index,
    JSON,
    String,
    Text,
    UniqueConstraint,
    func,
)

from ..database import Base
from ..db_types import GUID


class OrderChangeType(str, enum.Enum):
    """Kinds of order change recorded in the audit trail."""

    CREATED = "created"
    UPDATED = "updated"
    STATUS_CHANGED = "status_changed"
    TOTAL_CHANGED = "total_changed"
    DELETED = "deleted"


class OrderChangeRecord(Base):
    """Append-only entry describing what changed on a platform order."""

    __tablename__ = "order_changes"

    id = Column(GUID(), primary_key=True, default=lambda: str(uuid.uuid4()))
    business_id = Column(String(64), nullable=False)
    order_id = Column(String(64), nullable=False)
    order_number = Column(String(64), nullable=True)
    order_date = Column(Date, nullable=True)
    change_type = Column(Enum(OrderChangeType, name="order_change_type"), nullable=False)
    old_values = Column(JSON, nullable=True)
    new_values = Column(JSON, nullable=True)
    summary = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        nullable=False,
    )


class ProcessedWebhookDelivery(Base):
    """Marks an additive webhook event as already applied."""

    __tablename__ = "processed_webhook_deliveries"
    __table_args__ = (
        UniqueConstraint(
            "business_id", "order_id", "topic", name="uq_processed_webhook_order_topic"
        ),
    )

    id = Column(GUID(), primary_key=True, default=lambda: str(uuid.uuid4()))
    business_id = Column(String(64), nullable=False)
    order_id = Column(String(64), nullable=False)
    topic = Column(String(64), nullable=False)
    delivery_id = Column(String(128), nullable=True)
    processed_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        nullable=False,
    )


Index(
    "order_changes_business_order_idx",
    OrderChangeRecord.business_id,
    OrderChangeRecord.order_id,
    OrderChangeRecord.created_at,
)
Index("order_changes_unread_idx", OrderChangeRecord.business_id, OrderChangeRecord.is_read)
Index("processed_webhook_deliveries_age_idx", ProcessedWebhookDelivery.processed_at)
