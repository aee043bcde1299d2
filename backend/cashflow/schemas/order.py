from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..models import OrderChangeType


class OrderItemCostEntry(BaseModel):
    line_item_id: str = Field(..., min_length=1, max_length=64)
    product_name: Optional[str] = Field(None, max_length=255)
    shipping_cost: Decimal = Field(..., ge=0)


class OrderItemCostsUpdate(BaseModel):
    """Replace the manual shipping costs of an order's line items."""

    business_id: str = Field(..., min_length=1, max_length=64)
    order_id: str = Field(..., min_length=1, max_length=64)
    order_date: date
    items: List[OrderItemCostEntry] = Field(..., min_length=1)


class OrderItemCostRead(BaseModel):
    id: str
    business_id: str
    order_id: str
    line_item_id: str
    product_name: Optional[str] = None
    order_date: date
    shipping_cost: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderItemCostListResponse(BaseModel):
    items: List[OrderItemCostRead]
    total_shipping: Decimal


class OrderChangeRead(BaseModel):
    id: str
    business_id: str
    order_id: str
    order_number: Optional[str] = None
    order_date: Optional[date] = None
    change_type: OrderChangeType
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None
    summary: str
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderChangeListResponse(BaseModel):
    items: List[OrderChangeRead]
    unread_count: int = Field(..., ge=0)


class MarkReadRequest(BaseModel):
    business_id: str = Field(..., min_length=1, max_length=64)
    change_ids: List[str] = Field(default_factory=list)
    mark_all: bool = False

    @model_validator(mode="after")
    def _require_target(self) -> "MarkReadRequest":
        if not self.mark_all and not self.change_ids:
            raise ValueError("change_ids or mark_all is required")
        return self


class MarkReadResponse(BaseModel):
    updated: int
    message: str
