"""Client for the commerce platform that supplies orders and hosts the catalog."""

from __future__ import annotations

import abc
import logging
import os
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, List, Optional, Sequence

import httpx

from .errors import ConfigurationError, UpstreamError

LOGGER = logging.getLogger(__name__)

HTTP_TIMEOUT_ENV = "COMMERCE_HTTP_TIMEOUT"
DEFAULT_HTTP_TIMEOUT = 15.0
ORDERS_PER_PAGE = 100
MAX_ORDER_PAGES = 50


def _decimal(value: Any) -> Decimal:
    try:
        return Decimal(str(value or 0))
    except InvalidOperation:
        return Decimal("0")


def _parse_datetime(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def read_http_timeout() -> float:
    raw = os.getenv(HTTP_TIMEOUT_ENV)
    if raw is None:
        return DEFAULT_HTTP_TIMEOUT
    try:
        value = float(raw)
    except ValueError:
        LOGGER.warning("Ignoring invalid %s value %r", HTTP_TIMEOUT_ENV, raw)
        return DEFAULT_HTTP_TIMEOUT
    if value <= 0:
        LOGGER.warning("Ignoring non-positive %s value %r", HTTP_TIMEOUT_ENV, raw)
        return DEFAULT_HTTP_TIMEOUT
    return value


@dataclass(frozen=True)
class LineItem:
    id: str
    name: str
    quantity: int
    product_id: Optional[str] = None
    variation_id: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "LineItem":
        try:
            quantity = int(payload.get("quantity") or 0)
        except (TypeError, ValueError):
            quantity = 0
        return cls(
            id=str(payload.get("id", "")),
            name=str(payload.get("name") or ""),
            # A missing or unparsable quantity still represents one unit sold.
            quantity=quantity or 1,
            product_id=str(payload["product_id"]) if payload.get("product_id") else None,
            variation_id=str(payload["variation_id"]) if payload.get("variation_id") else None,
        )


@dataclass(frozen=True)
class ShippingLine:
    method_id: str
    method_title: str = ""
    total: Decimal = Decimal("0")

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "ShippingLine":
        return cls(
            method_id=str(payload.get("method_id") or "").strip().lower(),
            method_title=str(payload.get("method_title") or ""),
            total=_decimal(payload.get("total")),
        )


@dataclass(frozen=True)
class PlatformOrder:
    """An order as reported by the commerce platform."""

    id: str
    status: str
    total: Decimal
    shipping_total: Decimal = Decimal("0")
    number: Optional[str] = None
    date_created: Optional[datetime] = None
    line_items: List[LineItem] = field(default_factory=list)
    shipping_lines: List[ShippingLine] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "PlatformOrder":
        """Parse an order body from the REST API or a webhook delivery."""

        if payload.get("id") in (None, ""):
            raise ValueError("order payload has no id")
        return cls(
            id=str(payload["id"]),
            status=str(payload.get("status") or "").strip().lower(),
            total=_decimal(payload.get("total")),
            shipping_total=_decimal(payload.get("shipping_total")),
            number=str(payload["number"]) if payload.get("number") else None,
            date_created=_parse_datetime(payload.get("date_created")),
            line_items=[LineItem.from_payload(item) for item in payload.get("line_items") or []],
            shipping_lines=[
                ShippingLine.from_payload(line) for line in payload.get("shipping_lines") or []
            ],
        )

    @property
    def order_date(self) -> Optional[date]:
        return self.date_created.date() if self.date_created else None

    @property
    def items_count(self) -> int:
        return sum(item.quantity for item in self.line_items)


@dataclass(frozen=True)
class PlatformCredentials:
    store_url: str
    consumer_key: str
    consumer_secret: str

    @classmethod
    def from_values(
        cls,
        store_url: Optional[str],
        consumer_key: Optional[str],
        consumer_secret: Optional[str],
    ) -> "PlatformCredentials":
        store_url = (store_url or "").strip()
        consumer_key = (consumer_key or "").strip()
        consumer_secret = (consumer_secret or "").strip()
        if not store_url or not consumer_key or not consumer_secret:
            raise ConfigurationError(
                "Commerce platform is not configured",
                "store URL, consumer key and consumer secret are required",
            )
        return cls(store_url.rstrip("/"), consumer_key, consumer_secret)


class CommercePlatformClient(abc.ABC):
    """Interface implemented by commerce platform adapters."""

    @abc.abstractmethod
    def list_orders(
        self, start: date, end: date, statuses: Sequence[str]
    ) -> List[PlatformOrder]:
        """Return every order created between ``start`` and ``end`` inclusive."""

    @abc.abstractmethod
    def update_variation_price(
        self,
        product_id: str,
        variation_id: str,
        price: Decimal,
        price_type: str = "regular",
    ) -> dict[str, Any]:
        """Set the regular or sale price of one product variation."""

    @abc.abstractmethod
    def update_variation_stock(
        self, product_id: str, variation_id: str, quantity: int
    ) -> dict[str, Any]:
        """Set the managed stock quantity of one product variation."""


class WooCommerceClient(CommercePlatformClient):
    """WooCommerce REST API v3 adapter."""

    def __init__(
        self,
        credentials: PlatformCredentials,
        *,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.credentials = credentials
        self.timeout = timeout if timeout is not None else read_http_timeout()
        self._transport = transport

    @property
    def base_url(self) -> str:
        return f"{self.credentials.store_url}/wp-json/wc/v3"

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        auth = (self.credentials.consumer_key, self.credentials.consumer_secret)
        try:
            with httpx.Client(
                auth=auth, timeout=self.timeout, transport=self._transport
            ) as client:
                response = client.request(method, f"{self.base_url}/{path}", **kwargs)
        except httpx.HTTPError as exc:
            raise UpstreamError("Could not reach the commerce platform", str(exc)) from exc

        if response.status_code >= 400:
            raise UpstreamError(
                "Commerce platform rejected the request",
                _error_message(response),
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(
                "Commerce platform returned an invalid response",
                status_code=response.status_code,
            ) from exc

    def list_orders(
        self, start: date, end: date, statuses: Sequence[str]
    ) -> List[PlatformOrder]:
        # ``after`` is exclusive, so anchor it at the last second of the previous day.
        params: dict[str, Any] = {
            "after": f"{(start - timedelta(days=1)).isoformat()}T23:59:59",
            "before": f"{end.isoformat()}T23:59:59",
            "per_page": ORDERS_PER_PAGE,
            "dates_are_gmt": "false",
        }
        if statuses:
            params["status"] = ",".join(statuses)

        orders: List[PlatformOrder] = []
        for page in range(1, MAX_ORDER_PAGES + 1):
            batch = self._request("GET", "orders", params={**params, "page": page})
            if not isinstance(batch, list):
                raise UpstreamError("Commerce platform returned an invalid order list")
            orders.extend(PlatformOrder.from_payload(item) for item in batch)
            if len(batch) < ORDERS_PER_PAGE:
                break
        else:
            LOGGER.warning(
                "Reached the page limit (%s pages, %s orders) for %s..%s",
                MAX_ORDER_PAGES,
                len(orders),
                start,
                end,
            )
        LOGGER.info("Fetched %s orders for %s..%s", len(orders), start, end)
        return orders

    def update_variation_price(
        self,
        product_id: str,
        variation_id: str,
        price: Decimal,
        price_type: str = "regular",
    ) -> dict[str, Any]:
        field_name = "sale_price" if price_type == "sale" else "regular_price"
        return self._request(
            "PUT",
            f"products/{product_id}/variations/{variation_id}",
            json={field_name: f"{Decimal(price):.2f}"},
        )

    def update_variation_stock(
        self, product_id: str, variation_id: str, quantity: int
    ) -> dict[str, Any]:
        return self._request(
            "PUT",
            f"products/{product_id}/variations/{variation_id}",
            json={"manage_stock": True, "stock_quantity": int(quantity)},
        )


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return response.text


CommerceClientFactory = Callable[[PlatformCredentials], CommercePlatformClient]


def build_commerce_client(credentials: PlatformCredentials) -> CommercePlatformClient:
    return WooCommerceClient(credentials)

