"""Per-day financial snapshot rows."""

from __future__ import annotations

import uuid

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    func,
)

from ..database import Base
from ..db_types import GUID

MONEY = Numeric(14, 2)


class DailyFinancialSnapshot(Base):
    """Revenue, costs and derived profit of one business for one day.

    ``business_id`` is nullable only for rows written before businesses were
    introduced; those legacy rows are adopted by the first scoped sync of
    their date. Rows are recomputed, never deleted.
    """

    __tablename__ = "daily_financial_snapshots"
    __table_args__ = (
        UniqueConstraint("business_id", "date", name="uq_daily_snapshots_business_date"),
    )

    id = Column(GUID(), primary_key=True, default=lambda: str(uuid.uuid4()))
    business_id = Column(String(64), nullable=True)
    date = Column(Date, nullable=False)

    revenue = Column(MONEY, nullable=False, default=0)
    orders_count = Column(Integer, nullable=False, default=0)
    items_count = Column(Integer, nullable=False, default=0)

    google_ads_cost = Column(MONEY, nullable=False, default=0)
    facebook_ads_cost = Column(MONEY, nullable=False, default=0)
    tiktok_ads_cost = Column(MONEY, nullable=False, default=0)

    shipping_cost = Column(MONEY, nullable=False, default=0)
    materials_cost = Column(MONEY, nullable=False, default=0)
    credit_card_fees = Column(MONEY, nullable=False, default=0)
    vat = Column(MONEY, nullable=False, default=0)

    total_expenses = Column(MONEY, nullable=False, default=0)
    profit = Column(MONEY, nullable=False, default=0)
    roi = Column(Numeric(12, 2), nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


Index("daily_snapshots_date_idx", DailyFinancialSnapshot.date)
