"""Period statistics over stored daily snapshots."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from .. import models
from .business_settings import BusinessSettingsService
from .cost_allocation import DailyCostContribution, allocate, total_contribution
from .daily_snapshots import DailySnapshotService
from .errors import ValidationError
from .periodic_costs import collect_periodic_costs
from .snapshot_builder import profit_percent, to_decimal

ZERO = Decimal("0")
CENT = Decimal("0.01")
HUNDRED = Decimal("100")

PERIODS = ("week", "month", "quarter", "year")


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def resolve_period(period: str, today: date) -> Tuple[date, date]:
    """Translate a named period ending today into a date range."""

    if period == "week":
        return today - timedelta(days=7), today
    if period == "month":
        return today.replace(day=1), today
    if period == "quarter":
        first_month = (today.month - 1) // 3 * 3 + 1
        return date(today.year, first_month, 1), today
    if period == "year":
        return date(today.year, 1, 1), today
    raise ValidationError("period", f"must be one of {', '.join(PERIODS)}")


def previous_period(start: date, end: date) -> Tuple[date, date]:
    """The equal-length range that ends the day before ``start``."""

    length = (end - start).days + 1
    previous_end = start - timedelta(days=1)
    return previous_end - timedelta(days=length - 1), previous_end


def trend(current: Decimal, previous: Decimal) -> Decimal:
    if previous == 0:
        return ZERO
    return (current - previous) / abs(previous) * HUNDRED


@dataclass
class ExpenseBreakdown:
    google_ads: Decimal = ZERO
    facebook_ads: Decimal = ZERO
    tiktok_ads: Decimal = ZERO
    shipping: Decimal = ZERO
    materials: Decimal = ZERO
    credit_card_fees: Decimal = ZERO
    vat: Decimal = ZERO


@dataclass
class ExternalCosts:
    employee_cost: Decimal = ZERO
    expenses_vat: Decimal = ZERO
    expenses_no_vat: Decimal = ZERO
    refunds: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.employee_cost + self.expenses_vat + self.expenses_no_vat + self.refunds


@dataclass
class Trends:
    revenue: Decimal = ZERO
    profit: Decimal = ZERO
    orders: Decimal = ZERO
    roi: Decimal = ZERO


@dataclass
class DailyPoint:
    date: date
    revenue: Decimal
    profit: Decimal
    orders: int
    expenses: Decimal


@dataclass
class DayExtreme:
    date: date
    value: Decimal


@dataclass
class StatisticsReport:
    period_start: date
    period_end: date
    total_revenue: Decimal = ZERO
    total_profit: Decimal = ZERO
    total_orders: int = 0
    total_expenses: Decimal = ZERO
    average_order_value: Decimal = ZERO
    average_daily_revenue: Decimal = ZERO
    average_daily_profit: Decimal = ZERO
    average_roi: Decimal = ZERO
    profit_margin: Decimal = ZERO
    days_with_data: int = 0
    expenses_breakdown: ExpenseBreakdown = field(default_factory=ExpenseBreakdown)
    external_costs: ExternalCosts = field(default_factory=ExternalCosts)
    trends: Trends = field(default_factory=Trends)
    daily_data: List[DailyPoint] = field(default_factory=list)
    best_day: Optional[DayExtreme] = None
    worst_day: Optional[DayExtreme] = None
    most_profitable_day: Optional[DayExtreme] = None


@dataclass
class _PeriodTotals:
    revenue: Decimal
    orders: int
    stored_profit: Decimal
    stored_expenses: Decimal
    external: ExternalCosts

    @property
    def profit(self) -> Decimal:
        return self.stored_profit - self.external.total

    @property
    def roi(self) -> Decimal:
        return profit_percent(self.profit, self.revenue)


class StatisticsEngine:
    """Aggregates snapshots plus the periodic costs they do not embed."""

    @classmethod
    def summarize(cls, db: Session, business_id: str, start: date, end: date) -> StatisticsReport:
        if end < start:
            raise ValidationError("end_date", "must not be before start_date")

        settings = BusinessSettingsService.get(db, business_id)
        mode = (
            settings.expenses_spread_mode
            if settings is not None and settings.expenses_spread_mode
            else models.ExpensesSpreadMode.EXACT
        )

        snapshots = DailySnapshotService.list_range(db, business_id, start, end)
        current = cls._totals(snapshots, cls._external(db, business_id, start, end, mode))

        prev_start, prev_end = previous_period(start, end)
        previous = cls._totals(
            DailySnapshotService.list_range(db, business_id, prev_start, prev_end),
            cls._external(db, business_id, prev_start, prev_end, mode),
        )
        return cls.build_report(start, end, snapshots, current, previous)

    @staticmethod
    def _external(
        db: Session, business_id: str, start: date, end: date, mode
    ) -> ExternalCosts:
        share: DailyCostContribution = total_contribution(
            allocate(collect_periodic_costs(db, business_id, start, end), start, end, mode).values()
        )
        return ExternalCosts(
            employee_cost=share.employee_cost,
            expenses_vat=share.expenses_vat,
            expenses_no_vat=share.expenses_no_vat,
            refunds=share.refunds,
        )

    @staticmethod
    def _totals(
        snapshots: Sequence[models.DailyFinancialSnapshot], external: ExternalCosts
    ) -> _PeriodTotals:
        return _PeriodTotals(
            revenue=sum((to_decimal(row.revenue) for row in snapshots), ZERO),
            orders=sum(row.orders_count or 0 for row in snapshots),
            stored_profit=sum((to_decimal(row.profit) for row in snapshots), ZERO),
            stored_expenses=sum((to_decimal(row.total_expenses) for row in snapshots), ZERO),
            external=external,
        )

    @staticmethod
    def build_report(
        start: date,
        end: date,
        snapshots: Sequence[models.DailyFinancialSnapshot],
        current: _PeriodTotals,
        previous: _PeriodTotals,
    ) -> StatisticsReport:
        days = len(snapshots)
        report = StatisticsReport(period_start=start, period_end=end, days_with_data=days)
        report.total_revenue = _money(current.revenue)
        report.total_orders = current.orders
        report.total_profit = _money(current.profit)
        report.total_expenses = _money(current.stored_expenses + current.external.total)
        if current.orders:
            report.average_order_value = _money(current.revenue / current.orders)
        if days:
            report.average_daily_revenue = _money(current.revenue / days)
            report.average_daily_profit = _money(current.profit / days)
        report.average_roi = _money(current.roi)
        report.profit_margin = _money(profit_percent(current.profit, current.revenue))

        breakdown = report.expenses_breakdown
        for row in snapshots:
            breakdown.google_ads += to_decimal(row.google_ads_cost)
            breakdown.facebook_ads += to_decimal(row.facebook_ads_cost)
            breakdown.tiktok_ads += to_decimal(row.tiktok_ads_cost)
            breakdown.shipping += to_decimal(row.shipping_cost)
            breakdown.materials += to_decimal(row.materials_cost)
            breakdown.credit_card_fees += to_decimal(row.credit_card_fees)
            breakdown.vat += to_decimal(row.vat)

        report.external_costs = ExternalCosts(
            employee_cost=_money(current.external.employee_cost),
            expenses_vat=_money(current.external.expenses_vat),
            expenses_no_vat=_money(current.external.expenses_no_vat),
            refunds=_money(current.external.refunds),
        )
        report.trends = Trends(
            revenue=_money(trend(current.revenue, previous.revenue)),
            profit=_money(trend(current.profit, previous.profit)),
            orders=_money(trend(Decimal(current.orders), Decimal(previous.orders))),
            roi=_money(trend(current.roi, previous.roi)),
        )

        best = worst = most_profitable = None
        for row in snapshots:
            revenue = to_decimal(row.revenue)
            profit = to_decimal(row.profit)
            report.daily_data.append(
                DailyPoint(
                    date=row.date,
                    revenue=revenue,
                    profit=profit,
                    orders=row.orders_count or 0,
                    expenses=to_decimal(row.total_expenses),
                )
            )
            # Strict comparisons keep the earliest date on ties.
            if best is None or revenue > best.value:
                best = DayExtreme(row.date, revenue)
            if worst is None or revenue < worst.value:
                worst = DayExtreme(row.date, revenue)
            if most_profitable is None or profit > most_profitable.value:
                most_profitable = DayExtreme(row.date, profit)
        report.best_day = best
        report.worst_day = worst
        report.most_profitable_day = most_profitable
        return report
