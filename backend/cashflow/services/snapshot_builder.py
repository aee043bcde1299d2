"""Computation of a business's financial snapshot for a single day.

Every figure that ends up in ``daily_financial_snapshots`` passes through
:class:`SnapshotFigures`, whose constructor derives ``total_expenses``,
``profit`` and ``roi`` from the cost fields. Nothing else computes them.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Optional, Sequence, Tuple

from .. import models
from .commerce import PlatformOrder
from .errors import ConfigurationError

ZERO = Decimal("0")
CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def to_decimal(value: Any) -> Decimal:
    return Decimal(str(value or 0))


def to_money(value: Any) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def normalize_rate(value: Any) -> Decimal:
    """Return ``value`` as a fraction; values of 1 or more are percentages."""

    rate = to_decimal(value)
    if rate >= 1:
        return rate / HUNDRED
    return rate


def profit_percent(profit: Any, revenue: Any) -> Decimal:
    """Profit as a percentage of revenue.

    Zero revenue yields ``-100`` for a loss and ``0`` otherwise. This is the
    only ROI / margin convention used across the application.
    """

    profit = to_decimal(profit)
    revenue = to_decimal(revenue)
    if revenue != 0:
        return profit / revenue * HUNDRED
    if profit < 0:
        return -HUNDRED
    return ZERO


@dataclass(frozen=True)
class RateCard:
    """Typed, immutable view of a business's settings for one operation."""

    business_id: str
    vat_rate: Decimal = ZERO
    credit_card_rate: Decimal = ZERO
    materials_rate: Decimal = ZERO
    shipping_cost: Decimal = ZERO
    expenses_spread_mode: models.ExpensesSpreadMode = models.ExpensesSpreadMode.EXACT
    valid_order_statuses: Tuple[str, ...] = models.DEFAULT_VALID_ORDER_STATUSES
    manual_shipping_per_item: bool = False
    free_shipping_methods: Tuple[str, ...] = models.DEFAULT_FREE_SHIPPING_METHODS
    charge_shipping_on_free_orders: bool = True

    @classmethod
    def from_settings(cls, settings: Optional[models.BusinessSettings]) -> "RateCard":
        if settings is None:
            raise ConfigurationError("Business settings are not configured")
        return cls(
            business_id=settings.business_id,
            vat_rate=normalize_rate(settings.vat_rate),
            credit_card_rate=normalize_rate(settings.credit_card_rate),
            materials_rate=normalize_rate(settings.materials_rate),
            shipping_cost=to_decimal(settings.shipping_cost),
            expenses_spread_mode=models.ExpensesSpreadMode(
                settings.expenses_spread_mode or models.ExpensesSpreadMode.EXACT
            ),
            valid_order_statuses=tuple(settings.valid_order_statuses or ())
            or models.DEFAULT_VALID_ORDER_STATUSES,
            manual_shipping_per_item=bool(settings.manual_shipping_per_item),
            free_shipping_methods=tuple(settings.free_shipping_methods or ()),
            charge_shipping_on_free_orders=bool(settings.charge_shipping_on_free_orders),
        )

    def counts(self, order: PlatformOrder) -> bool:
        return order.status in self.valid_order_statuses


@dataclass(frozen=True)
class SnapshotFigures:
    """The stored figures of one day; totals are derived on construction."""

    revenue: Decimal = ZERO
    orders_count: int = 0
    items_count: int = 0
    google_ads_cost: Decimal = ZERO
    facebook_ads_cost: Decimal = ZERO
    tiktok_ads_cost: Decimal = ZERO
    shipping_cost: Decimal = ZERO
    materials_cost: Decimal = ZERO
    credit_card_fees: Decimal = ZERO
    vat: Decimal = ZERO
    total_expenses: Decimal = field(init=False)
    profit: Decimal = field(init=False)
    roi: Decimal = field(init=False)

    COST_FIELDS = (
        "google_ads_cost",
        "facebook_ads_cost",
        "tiktok_ads_cost",
        "shipping_cost",
        "materials_cost",
        "credit_card_fees",
        "vat",
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "revenue", to_money(self.revenue))
        for name in self.COST_FIELDS:
            object.__setattr__(self, name, to_money(getattr(self, name)))
        total = sum((getattr(self, name) for name in self.COST_FIELDS), ZERO)
        profit = self.revenue - total
        object.__setattr__(self, "total_expenses", total)
        object.__setattr__(self, "profit", profit)
        object.__setattr__(self, "roi", to_money(profit_percent(profit, self.revenue)))

    @classmethod
    def from_snapshot(cls, snapshot: Optional[models.DailyFinancialSnapshot]) -> "SnapshotFigures":
        if snapshot is None:
            return cls()
        return cls(
            revenue=snapshot.revenue,
            orders_count=snapshot.orders_count or 0,
            items_count=snapshot.items_count or 0,
            google_ads_cost=snapshot.google_ads_cost,
            facebook_ads_cost=snapshot.facebook_ads_cost,
            tiktok_ads_cost=snapshot.tiktok_ads_cost,
            shipping_cost=snapshot.shipping_cost,
            materials_cost=snapshot.materials_cost,
            credit_card_fees=snapshot.credit_card_fees,
            vat=snapshot.vat,
        )

    def inputs(self) -> dict[str, Any]:
        return {item.name: getattr(self, item.name) for item in dataclasses.fields(self) if item.init}

    def replace(self, **changes: Any) -> "SnapshotFigures":
        return derive_totals(**{**self.inputs(), **changes})

    def as_dict(self) -> dict[str, Any]:
        return {item.name: getattr(self, item.name) for item in dataclasses.fields(self)}


def derive_totals(**fields: Any) -> SnapshotFigures:
    """Build figures from their inputs; total expenses, profit and ROI are always derived."""

    unknown = set(fields) - {item.name for item in dataclasses.fields(SnapshotFigures) if item.init}
    if unknown:
        raise TypeError(f"Not an input field: {', '.join(sorted(unknown))}")
    return SnapshotFigures(**fields)


@dataclass(frozen=True)
class DailySnapshotDraft:
    """A computed snapshot that has not been persisted yet."""

    business_id: str
    day: date
    figures: SnapshotFigures

    def values(self) -> dict[str, Any]:
        return {"business_id": self.business_id, "date": self.day, **self.figures.as_dict()}


def is_pickup_order(order: PlatformOrder, free_methods: Sequence[str]) -> bool:
    """Orders without shipping lines, or shipped only by free methods, carry no shipping."""

    if not order.shipping_lines:
        return True
    return all(line.method_id in free_methods for line in order.shipping_lines)


def order_shipping_cost(order: PlatformOrder, rates: RateCard) -> Decimal:
    if is_pickup_order(order, rates.free_shipping_methods):
        return ZERO
    if rates.shipping_cost > 0:
        if rates.charge_shipping_on_free_orders or order.shipping_total > 0:
            return rates.shipping_cost
        return ZERO
    return order.shipping_total


def shipping_for_orders(
    orders: Iterable[PlatformOrder],
    rates: RateCard,
    manual_shipping: Optional[Decimal] = None,
) -> Decimal:
    if rates.manual_shipping_per_item:
        return to_decimal(manual_shipping)
    return sum((order_shipping_cost(order, rates) for order in orders), ZERO)


def _with_orders(
    base: SnapshotFigures,
    *,
    revenue: Decimal,
    orders_count: int,
    items_count: int,
    shipping: Decimal,
    rates: RateCard,
) -> SnapshotFigures:
    return base.replace(
        revenue=revenue,
        orders_count=orders_count,
        items_count=items_count,
        shipping_cost=shipping,
        materials_cost=revenue * rates.materials_rate,
        credit_card_fees=revenue * rates.credit_card_rate,
        vat=revenue * rates.vat_rate,
    )


def build(
    business_id: str,
    day: date,
    orders: Iterable[PlatformOrder],
    existing_snapshot: Optional[models.DailyFinancialSnapshot],
    settings: Optional[RateCard | models.BusinessSettings],
    *,
    manual_shipping: Optional[Decimal] = None,
) -> DailySnapshotDraft:
    """Compute the full snapshot of ``day`` from the orders placed on it.

    Advertising costs are manual inputs: they are copied from
    ``existing_snapshot`` and never derived from orders.
    """

    rates = settings if isinstance(settings, RateCard) else RateCard.from_settings(settings)
    counted = [order for order in orders if rates.counts(order)]
    revenue = sum((order.total for order in counted), ZERO)

    previous = SnapshotFigures.from_snapshot(existing_snapshot)
    carried = SnapshotFigures(
        google_ads_cost=previous.google_ads_cost,
        facebook_ads_cost=previous.facebook_ads_cost,
        tiktok_ads_cost=previous.tiktok_ads_cost,
    )
    figures = _with_orders(
        carried,
        revenue=revenue,
        orders_count=len(counted),
        items_count=sum(order.items_count for order in counted),
        shipping=shipping_for_orders(counted, rates, manual_shipping),
        rates=rates,
    )
    return DailySnapshotDraft(business_id=business_id, day=day, figures=figures)


def apply_order_increment(
    existing_snapshot: Optional[models.DailyFinancialSnapshot],
    order: PlatformOrder,
    rates: RateCard,
    *,
    business_id: str,
    day: date,
    manual_shipping: Optional[Decimal] = None,
) -> DailySnapshotDraft:
    """Add one newly created, counted order to the stored figures of its day."""

    previous = SnapshotFigures.from_snapshot(existing_snapshot)
    revenue = previous.revenue + order.total
    if rates.manual_shipping_per_item:
        shipping = to_decimal(manual_shipping)
    else:
        shipping = previous.shipping_cost + order_shipping_cost(order, rates)
    figures = _with_orders(
        previous,
        revenue=revenue,
        orders_count=previous.orders_count + 1,
        items_count=previous.items_count + order.items_count,
        shipping=shipping,
        rates=rates,
    )
    return DailySnapshotDraft(business_id=business_id, day=day, figures=figures)
