"""One row per sync run or webhook delivery handled by the engine."""

from __future__ import annotations

import uuid

from sqlalchemy import Column, Date, DateTime, Index, JSON, Numeric, String, Text, func
from sqlalchemy.dialects.sqlite import JSON as SQLiteJSON

from ..database import Base
from ..db_types import GUID


class OperationalMetricEvent(Base):
    """Timing and outcome of one engine operation on a business day.

    ``day`` is the snapshot day the operation touched; range syncs store the
    first day of the range and keep both bounds in ``tags``.
    """

    __tablename__ = "operational_metric_events"
    __table_args__ = (
        Index("operational_metric_events_business_day_idx", "business_id", "day"),
    )

    id = Column("event_id", GUID(), primary_key=True, default=lambda: str(uuid.uuid4()))
    business_id = Column(String(64), nullable=True)
    day = Column(Date, nullable=True)
    event_type = Column(String(64), nullable=False, index=True)
    outcome = Column(String(16), nullable=False)
    duration_ms = Column(Numeric(12, 3), nullable=True)
    tags = Column(JSON().with_variant(SQLiteJSON(), "sqlite"), nullable=False, default=dict)
    error = Column(Text, nullable=True)
    recorded_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
