"""Builders and fakes shared by the test modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from backend.cashflow import models
from backend.cashflow.services.commerce import (
    CommercePlatformClient,
    PlatformCredentials,
    PlatformOrder,
)
from backend.cashflow.services.errors import UpstreamError
from backend.cashflow.services.snapshot_builder import derive_totals

BUSINESS_ID = "shop-1"


def order_payload(
    order_id: Any,
    total: str,
    *,
    status: str = "processing",
    created: str = "2024-03-10T10:00:00",
    quantity: int = 1,
    shipping_method: Optional[str] = "flat_rate",
    shipping_total: str = "0",
    number: Optional[str] = None,
) -> Dict[str, Any]:
    """Build an order body shaped like the platform's REST and webhook payloads."""

    payload: Dict[str, Any] = {
        "id": order_id,
        "number": number or str(order_id),
        "status": status,
        "total": total,
        "shipping_total": shipping_total,
        "date_created": created,
        "line_items": [{"id": f"{order_id}-1", "name": "Mug", "quantity": quantity}],
        "shipping_lines": [],
    }
    if shipping_method:
        payload["shipping_lines"] = [
            {"method_id": shipping_method, "method_title": shipping_method, "total": shipping_total}
        ]
    return payload


def make_order(order_id: Any, total: str, **kwargs: Any) -> PlatformOrder:
    return PlatformOrder.from_payload(order_payload(order_id, total, **kwargs))


def snapshot_row(
    db_session: Session, day: date, business_id: Optional[str] = BUSINESS_ID, **figures: Any
) -> models.DailyFinancialSnapshot:
    """Persist a snapshot whose totals are derived the way the engine derives them."""

    row = models.DailyFinancialSnapshot(
        business_id=business_id, date=day, **derive_totals(**figures).as_dict()
    )
    db_session.add(row)
    db_session.commit()
    return row


@dataclass
class FakeCommerceClient(CommercePlatformClient):
    """In-memory stand-in for the commerce platform."""

    orders: Dict[date, List[PlatformOrder]] = field(default_factory=dict)
    failing_days: set = field(default_factory=set)
    failing_variations: Dict[str, str] = field(default_factory=dict)
    order_requests: List[tuple] = field(default_factory=list)
    price_updates: List[tuple] = field(default_factory=list)
    stock_updates: List[tuple] = field(default_factory=list)
    credentials: List[PlatformCredentials] = field(default_factory=list)

    def add_order(self, day: date, order: PlatformOrder) -> None:
        self.orders.setdefault(day, []).append(order)

    def list_orders(self, start: date, end: date, statuses: Sequence[str]) -> List[PlatformOrder]:
        self.order_requests.append((start, end, tuple(statuses)))
        if start in self.failing_days:
            raise UpstreamError("Commerce platform request failed", "HTTP 503", status_code=503)
        # The platform filters by status on its side.
        return [
            order
            for day, orders in self.orders.items()
            if start <= day <= end
            for order in orders
            if order.status in statuses
        ]

    def _maybe_fail(self, variation_id: str) -> None:
        reason = self.failing_variations.get(variation_id)
        if reason:
            raise UpstreamError(reason)

    def update_variation_price(self, product_id, variation_id, price, price_type="regular"):
        self._maybe_fail(variation_id)
        self.price_updates.append((product_id, variation_id, Decimal(str(price)), price_type))
        return {"id": variation_id}

    def update_variation_stock(self, product_id, variation_id, quantity):
        self._maybe_fail(variation_id)
        self.stock_updates.append((product_id, variation_id, quantity))
        return {"id": variation_id}

    def factory(self, credentials: PlatformCredentials) -> "FakeCommerceClient":
        self.credentials.append(credentials)
        return self
