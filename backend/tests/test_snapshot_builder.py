from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from backend.cashflow import models
from backend.cashflow.services.errors import ConfigurationError
from backend.cashflow.services.snapshot_builder import (
    RateCard,
    SnapshotFigures,
    apply_order_increment,
    build,
    derive_totals,
    normalize_rate,
    order_shipping_cost,
    profit_percent,
)
from backend.tests.factories import make_order

DAY = date(2024, 3, 10)


def _rates(**overrides) -> RateCard:
    values = {
        "business_id": "shop-1",
        "vat_rate": Decimal("0.17"),
        "credit_card_rate": Decimal("0.025"),
        "materials_rate": Decimal("0.30"),
        "valid_order_statuses": ("processing", "completed"),
    }
    values.update(overrides)
    return RateCard(**values)


def test_build_derives_costs_from_counted_orders_only() -> None:
    orders = [
        make_order(1, "600", quantity=2, shipping_method="local_pickup"),
        make_order(2, "400", status="completed", shipping_method="local_pickup"),
        make_order(3, "999", status="cancelled"),
    ]

    draft = build("shop-1", DAY, orders, None, _rates())
    figures = draft.figures

    assert figures.revenue == Decimal("1000.00")
    assert figures.orders_count == 2
    assert figures.items_count == 3
    assert figures.materials_cost == Decimal("300.00")
    assert figures.credit_card_fees == Decimal("25.00")
    assert figures.vat == Decimal("170.00")
    assert figures.shipping_cost == Decimal("0")
    assert figures.total_expenses == Decimal("495.00")
    assert figures.profit == Decimal("505.00")
    assert figures.roi == Decimal("50.5")


def test_build_accepts_percentage_rates_from_settings() -> None:
    settings = models.BusinessSettings(
        business_id="shop-1",
        vat_rate=Decimal("17"),
        credit_card_rate=Decimal("2.5"),
        materials_rate=Decimal("30"),
        shipping_cost=Decimal("0"),
        valid_order_statuses=["processing"],
        free_shipping_methods=["local_pickup"],
    )

    draft = build("shop-1", DAY, [make_order(1, "1000", shipping_method=None)], None, settings)

    assert draft.figures.total_expenses == Decimal("495.00")
    assert draft.values()["business_id"] == "shop-1"
    assert draft.values()["date"] == DAY


def test_build_carries_manual_ad_costs_forward() -> None:
    existing = models.DailyFinancialSnapshot(
        business_id="shop-1",
        date=DAY,
        revenue=Decimal("50"),
        orders_count=1,
        google_ads_cost=Decimal("100"),
        facebook_ads_cost=Decimal("20"),
        tiktok_ads_cost=Decimal("5"),
        materials_cost=Decimal("15"),
    )

    draft = build("shop-1", DAY, [make_order(1, "1000", shipping_method=None)], existing, _rates())

    assert draft.figures.google_ads_cost == Decimal("100.00")
    assert draft.figures.facebook_ads_cost == Decimal("20.00")
    assert draft.figures.tiktok_ads_cost == Decimal("5.00")
    assert draft.figures.revenue == Decimal("1000.00")
    assert draft.figures.total_expenses == Decimal("620.00")
    assert draft.figures.profit == Decimal("380.00")


def test_build_without_orders_keeps_ad_costs_and_reports_a_loss() -> None:
    existing = models.DailyFinancialSnapshot(google_ads_cost=Decimal("40"))

    figures = build("shop-1", DAY, [], existing, _rates()).figures

    assert figures.revenue == Decimal("0")
    assert figures.profit == Decimal("-40.00")
    assert figures.roi == Decimal("-100")


def test_build_requires_settings() -> None:
    with pytest.raises(ConfigurationError):
        build("shop-1", DAY, [], None, None)


@pytest.mark.parametrize(
    "raw, expected",
    [
        (Decimal("17"), Decimal("0.17")),
        (Decimal("0.17"), Decimal("0.17")),
        (Decimal("1"), Decimal("0.01")),
        (None, Decimal("0")),
    ],
)
def test_normalize_rate_treats_values_of_one_or_more_as_percentages(raw, expected) -> None:
    assert normalize_rate(raw) == expected


@pytest.mark.parametrize(
    "profit, revenue, expected",
    [
        (Decimal("50"), Decimal("200"), Decimal("25")),
        (Decimal("-50"), Decimal("0"), Decimal("-100")),
        (Decimal("0"), Decimal("0"), Decimal("0")),
        (Decimal("-20"), Decimal("100"), Decimal("-20")),
    ],
)
def test_profit_percent_sentinels(profit, revenue, expected) -> None:
    assert profit_percent(profit, revenue) == expected


def test_flat_shipping_rate_skips_pickup_and_optionally_free_orders() -> None:
    rates = _rates(shipping_cost=Decimal("5"), charge_shipping_on_free_orders=False)

    pickup = make_order(1, "100", shipping_method="local_pickup")
    no_lines = make_order(2, "100", shipping_method=None)
    free = make_order(3, "100", shipping_method="free_shipping", shipping_total="0")
    paid = make_order(4, "100", shipping_method="flat_rate", shipping_total="8")

    assert order_shipping_cost(pickup, rates) == Decimal("0")
    assert order_shipping_cost(no_lines, rates) == Decimal("0")
    assert order_shipping_cost(free, rates) == Decimal("0")
    assert order_shipping_cost(paid, rates) == Decimal("5")

    charged = _rates(shipping_cost=Decimal("5"))
    assert order_shipping_cost(free, charged) == Decimal("5")


def test_shipping_falls_back_to_order_shipping_total_without_flat_rate() -> None:
    order = make_order(1, "100", shipping_method="flat_rate", shipping_total="7.25")

    assert order_shipping_cost(order, _rates()) == Decimal("7.25")


def test_manual_shipping_replaces_computed_shipping() -> None:
    rates = _rates(manual_shipping_per_item=True, shipping_cost=Decimal("5"))
    order = make_order(1, "100", shipping_method="flat_rate", shipping_total="9")

    draft = build("shop-1", DAY, [order], None, rates, manual_shipping=Decimal("3.40"))

    assert draft.figures.shipping_cost == Decimal("3.40")


def test_apply_order_increment_adds_one_order_to_existing_figures() -> None:
    existing = models.DailyFinancialSnapshot(
        revenue=Decimal("1000"),
        orders_count=2,
        items_count=3,
        google_ads_cost=Decimal("10"),
        shipping_cost=Decimal("4"),
    )
    rates = _rates(shipping_cost=Decimal("5"))
    order = make_order(9, "200", quantity=4, shipping_method="flat_rate", shipping_total="5")

    figures = apply_order_increment(
        existing, order, rates, business_id="shop-1", day=DAY
    ).figures

    assert figures.revenue == Decimal("1200.00")
    assert figures.orders_count == 3
    assert figures.items_count == 7
    assert figures.shipping_cost == Decimal("9.00")
    assert figures.materials_cost == Decimal("360.00")
    assert figures.google_ads_cost == Decimal("10.00")
    assert figures.profit == figures.revenue - figures.total_expenses


def test_replace_rederives_totals() -> None:
    figures = derive_totals(revenue=Decimal("100"), vat=Decimal("17"))

    updated = figures.replace(google_ads_cost=Decimal("33"))

    assert updated.total_expenses == Decimal("50.00")
    assert updated.profit == Decimal("50.00")
    assert updated.roi == Decimal("50.00")


def test_derive_totals_rejects_derived_fields() -> None:
    with pytest.raises(TypeError):
        derive_totals(revenue=Decimal("10"), profit=Decimal("999"))


def test_figures_round_money_half_up() -> None:
    figures = SnapshotFigures(revenue=Decimal("10.005"), vat=Decimal("1.125"))

    assert figures.revenue == Decimal("10.01")
    assert figures.vat == Decimal("1.13")
    assert figures.profit == Decimal("8.88")
