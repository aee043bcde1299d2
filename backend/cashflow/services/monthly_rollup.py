"""Month-level profit and loss built from the stored daily snapshots."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Optional

from sqlalchemy.orm import Session

from .. import models
from .business_settings import BusinessSettingsService
from .cost_allocation import DailyCostContribution, allocate, days_in_range, month_bounds
from .daily_snapshots import DailySnapshotService
from .periodic_costs import collect_periodic_costs
from .snapshot_builder import profit_percent, to_decimal

ZERO = Decimal("0")
CENT = Decimal("0.01")
TENTH = Decimal("0.1")


@dataclass
class MonthlyBreakdown:
    google_ads: Decimal = ZERO
    facebook_ads: Decimal = ZERO
    tiktok_ads: Decimal = ZERO
    shipping_cost: Decimal = ZERO
    materials_cost: Decimal = ZERO
    credit_card_fees: Decimal = ZERO
    vat: Decimal = ZERO
    expenses_vat: Decimal = ZERO
    expenses_no_vat: Decimal = ZERO
    employee_cost: Decimal = ZERO
    refunds: Decimal = ZERO


@dataclass
class MonthlyTotals:
    revenue: Decimal = ZERO
    orders_count: int = 0
    items_count: int = 0
    profit: Decimal = ZERO
    profit_percent: Decimal = ZERO
    total_expenses: Decimal = ZERO


@dataclass
class MonthlySummary:
    month: int
    year: int
    start_date: date
    end_date: date
    summary: MonthlyTotals = field(default_factory=MonthlyTotals)
    breakdown: MonthlyBreakdown = field(default_factory=MonthlyBreakdown)


class MonthlyRollupBuilder:
    """Replay a month of snapshots, filling snapshot-less days from periodic costs.

    Days with a stored snapshot contribute exactly what the daily view shows.
    Days without one still carry salaries, expenses and refunds as allocated
    by the business's spread mode, so their profit is the negative of those
    costs. Values are rounded only when the summary is produced.
    """

    @classmethod
    def rollup(cls, db: Session, business_id: str, month: int, year: int) -> MonthlySummary:
        start, end = month_bounds(month, year)
        settings = BusinessSettingsService.get(db, business_id)
        mode = (
            settings.expenses_spread_mode
            if settings is not None and settings.expenses_spread_mode
            else models.ExpensesSpreadMode.EXACT
        )
        snapshots = {
            row.date: row for row in DailySnapshotService.list_range(db, business_id, start, end)
        }
        contributions = allocate(
            collect_periodic_costs(db, business_id, start, end), start, end, mode
        )
        return cls.combine(month, year, start, end, snapshots, contributions)

    @staticmethod
    def combine(
        month: int,
        year: int,
        start: date,
        end: date,
        snapshots: Dict[date, models.DailyFinancialSnapshot],
        contributions: Dict[date, DailyCostContribution],
    ) -> MonthlySummary:
        totals = MonthlyTotals()
        breakdown = MonthlyBreakdown()

        for day in days_in_range(start, end):
            snapshot: Optional[models.DailyFinancialSnapshot] = snapshots.get(day)
            if snapshot is not None:
                totals.revenue += to_decimal(snapshot.revenue)
                totals.orders_count += snapshot.orders_count or 0
                totals.items_count += snapshot.items_count or 0
                totals.total_expenses += to_decimal(snapshot.total_expenses)
                totals.profit += to_decimal(snapshot.profit)
                breakdown.google_ads += to_decimal(snapshot.google_ads_cost)
                breakdown.facebook_ads += to_decimal(snapshot.facebook_ads_cost)
                breakdown.tiktok_ads += to_decimal(snapshot.tiktok_ads_cost)
                breakdown.shipping_cost += to_decimal(snapshot.shipping_cost)
                breakdown.materials_cost += to_decimal(snapshot.materials_cost)
                breakdown.credit_card_fees += to_decimal(snapshot.credit_card_fees)
                breakdown.vat += to_decimal(snapshot.vat)
                continue

            share = contributions.get(day) or DailyCostContribution()
            breakdown.expenses_vat += share.expenses_vat
            breakdown.expenses_no_vat += share.expenses_no_vat
            breakdown.employee_cost += share.employee_cost
            breakdown.refunds += share.refunds
            totals.total_expenses += share.total
            totals.profit -= share.total

        totals.profit_percent = profit_percent(totals.profit, totals.revenue).quantize(
            TENTH, rounding=ROUND_HALF_UP
        )
        for name in ("revenue", "profit", "total_expenses"):
            setattr(totals, name, getattr(totals, name).quantize(CENT, rounding=ROUND_HALF_UP))
        for item in fields(breakdown):
            value = getattr(breakdown, item.name)
            setattr(breakdown, item.name, value.quantize(CENT, rounding=ROUND_HALF_UP))

        return MonthlySummary(
            month=month,
            year=year,
            start_date=start,
            end_date=end,
            summary=totals,
            breakdown=breakdown,
        )
