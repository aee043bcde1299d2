"""Manual per-item shipping overrides."""

from __future__ import annotations

import uuid

from sqlalchemy import Column, Date, DateTime, Index, Numeric, String, UniqueConstraint, func

from ..database import Base
from ..db_types import GUID


class OrderItemCost(Base):
    """Shipping cost entered by hand for one line item of a platform order."""

    __tablename__ = "order_item_costs"
    __table_args__ = (
        UniqueConstraint(
            "business_id", "order_id", "line_item_id", name="uq_order_item_costs_line"
        ),
    )

    id = Column(GUID(), primary_key=True, default=lambda: str(uuid.uuid4()))
    business_id = Column(String(64), nullable=False)
    order_id = Column(String(64), nullable=False)
    line_item_id = Column(String(64), nullable=False)
    product_name = Column(String(255), nullable=True)
    order_date = Column(Date, nullable=False)
    shipping_cost = Column(Numeric(14, 2), nullable=False, default=0)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


Index("order_item_costs_business_date_idx", OrderItemCost.business_id, OrderItemCost.order_date)
