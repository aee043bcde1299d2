from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from backend.cashflow import models
from backend.cashflow.services.errors import ValidationError
from backend.cashflow.services.statistics import (
    StatisticsEngine,
    previous_period,
    resolve_period,
    trend,
)
from backend.tests.factories import BUSINESS_ID, snapshot_row


def _seed_march(db_session) -> None:
    snapshot_row(
        db_session, date(2024, 3, 2), revenue=Decimal("400"), orders_count=4
    )
    snapshot_row(
        db_session,
        date(2024, 3, 4),
        revenue=Decimal("200"),
        orders_count=2,
        google_ads_cost=Decimal("50"),
    )
    snapshot_row(
        db_session,
        date(2024, 3, 5),
        revenue=Decimal("300"),
        orders_count=3,
        google_ads_cost=Decimal("250"),
    )
    snapshot_row(db_session, date(2024, 3, 6), revenue=Decimal("300"), orders_count=1)


def test_summarize_reports_totals_trends_and_extremes(db_session, business_settings):
    _seed_march(db_session)

    report = StatisticsEngine.summarize(db_session, BUSINESS_ID, date(2024, 3, 4), date(2024, 3, 6))

    assert report.days_with_data == 3
    assert report.total_revenue == Decimal("800.00")
    assert report.total_profit == Decimal("500.00")
    assert report.total_orders == 6
    assert report.total_expenses == Decimal("300.00")
    assert report.average_order_value == Decimal("133.33")
    assert report.average_daily_revenue == Decimal("266.67")
    assert report.average_daily_profit == Decimal("166.67")
    assert report.average_roi == Decimal("62.50")
    assert report.profit_margin == Decimal("62.50")
    assert report.expenses_breakdown.google_ads == Decimal("300")

    assert report.trends.revenue == Decimal("100.00")
    assert report.trends.profit == Decimal("25.00")
    assert report.trends.orders == Decimal("50.00")
    assert report.trends.roi == Decimal("-37.50")

    # Revenue ties keep the earliest day.
    assert report.best_day.date == date(2024, 3, 5)
    assert report.worst_day.date == date(2024, 3, 4)
    assert report.most_profitable_day.date == date(2024, 3, 6)
    assert [point.date for point in report.daily_data] == [
        date(2024, 3, 4),
        date(2024, 3, 5),
        date(2024, 3, 6),
    ]


def test_summarize_deducts_periodic_costs(db_session, business_settings):
    _seed_march(db_session)
    db_session.add(
        models.EmployeeSalary(
            business_id=BUSINESS_ID, name="Ari", salary=Decimal("3100"), month=3, year=2024
        )
    )
    db_session.commit()

    report = StatisticsEngine.summarize(db_session, BUSINESS_ID, date(2024, 3, 4), date(2024, 3, 6))

    assert report.external_costs.employee_cost == Decimal("300.00")
    assert report.total_profit == Decimal("200.00")
    assert report.total_expenses == Decimal("600.00")
    assert report.trends.profit == Decimal("100.00")


def test_summarize_without_data_has_no_extremes(db_session):
    report = StatisticsEngine.summarize(db_session, BUSINESS_ID, date(2024, 1, 1), date(2024, 1, 31))

    assert report.days_with_data == 0
    assert report.best_day is None
    assert report.average_roi == Decimal("0")
    assert report.trends.revenue == Decimal("0")


def test_summarize_rejects_reversed_range(db_session):
    with pytest.raises(ValidationError):
        StatisticsEngine.summarize(db_session, BUSINESS_ID, date(2024, 3, 2), date(2024, 3, 1))


def test_trend_uses_magnitude_of_previous_value():
    assert trend(Decimal("-50"), Decimal("-100")) == Decimal("50")
    assert trend(Decimal("10"), Decimal("0")) == Decimal("0")


def test_period_helpers():
    today = date(2024, 5, 15)

    assert resolve_period("week", today) == (date(2024, 5, 8), today)
    assert resolve_period("month", today) == (date(2024, 5, 1), today)
    assert resolve_period("quarter", today) == (date(2024, 4, 1), today)
    assert resolve_period("year", today) == (date(2024, 1, 1), today)
    with pytest.raises(ValidationError):
        resolve_period("decade", today)
    assert previous_period(date(2024, 3, 4), date(2024, 3, 6)) == (date(2024, 3, 1), date(2024, 3, 3))


def test_statistics_endpoint(client, db_session, business_settings):
    _seed_march(db_session)

    response = client.get(
        "/statistics",
        params={"business_id": BUSINESS_ID, "start_date": "2024-03-04", "end_date": "2024-03-06"},
    )

    assert response.status_code == 200
    payload = response.json()
    assert Decimal(payload["total_revenue"]) == Decimal("800")
    assert payload["best_day"]["date"] == "2024-03-05"
    assert len(payload["daily_data"]) == 3


@pytest.mark.parametrize(
    "params",
    [
        {"start_date": "2024-03-04"},
        {"period": "decade"},
        {"start_date": "2024-03-06", "end_date": "2024-03-04"},
    ],
)
def test_statistics_endpoint_rejects_bad_windows(client, params):
    response = client.get("/statistics", params={"business_id": BUSINESS_ID, **params})

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "validation_error"
