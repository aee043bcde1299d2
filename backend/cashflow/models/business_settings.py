"""Per-business configuration for rates, shipping policy and platform access."""

from __future__ import annotations

import enum
import uuid

from sqlalchemy import Boolean, Column, DateTime, Enum, Numeric, String, Text, func

from ..database import Base
from ..db_types import GUID, StringList

DEFAULT_VALID_ORDER_STATUSES = ("processing",)
DEFAULT_FREE_SHIPPING_METHODS = ("local_pickup",)


class ExpensesSpreadMode(str, enum.Enum):
    """How periodic costs are attributed to individual days."""

    EXACT = "exact"
    SPREAD = "spread"


class BusinessSettings(Base):
    """One configuration row per business."""

    __tablename__ = "business_settings"

    id = Column(GUID(), primary_key=True, default=lambda: str(uuid.uuid4()))
    business_id = Column(String(64), nullable=False, unique=True, index=True)

    store_url = Column(String(255), nullable=True)
    consumer_key = Column(String(255), nullable=True)
    consumer_secret = Column(String(255), nullable=True)
    webhook_secret = Column(Text, nullable=True)

    # Rates are stored either as a percentage (>= 1) or as a fraction (< 1).
    vat_rate = Column(Numeric(9, 4), nullable=False, default=0)
    credit_card_rate = Column(Numeric(9, 4), nullable=False, default=0)
    materials_rate = Column(Numeric(9, 4), nullable=False, default=0)
    shipping_cost = Column(Numeric(14, 2), nullable=False, default=0)

    expenses_spread_mode = Column(
        Enum(ExpensesSpreadMode, name="expenses_spread_mode"),
        nullable=False,
        default=ExpensesSpreadMode.EXACT,
    )
    valid_order_statuses = Column(
        StringList(), nullable=False, default=lambda: list(DEFAULT_VALID_ORDER_STATUSES)
    )
    manual_shipping_per_item = Column(Boolean, nullable=False, default=False)
    free_shipping_methods = Column(
        StringList(), nullable=False, default=lambda: list(DEFAULT_FREE_SHIPPING_METHODS)
    )
    charge_shipping_on_free_orders = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
