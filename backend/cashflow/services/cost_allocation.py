"""Allocation of periodic costs (salaries, expenses, refunds) to single days."""

from __future__ import annotations

from calendar import monthrange
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Sequence

from ..models import ExpensesSpreadMode

ZERO = Decimal("0")


@dataclass(frozen=True)
class DatedCost:
    """An amount attached to its intrinsic date."""

    day: date
    amount: Decimal


@dataclass(frozen=True)
class MonthlySalary:
    """A salary owed for a whole ``(month, year)``."""

    month: int
    year: int
    amount: Decimal


@dataclass
class PeriodicCosts:
    """The manual cost ledgers of one business, detached from the database."""

    salaries: List[MonthlySalary] = field(default_factory=list)
    vat_expenses: List[DatedCost] = field(default_factory=list)
    no_vat_expenses: List[DatedCost] = field(default_factory=list)
    refunds: List[DatedCost] = field(default_factory=list)

    @classmethod
    def from_rows(
        cls,
        *,
        salaries: Iterable = (),
        vat_expenses: Iterable = (),
        no_vat_expenses: Iterable = (),
        refunds: Iterable = (),
    ) -> "PeriodicCosts":
        return cls(
            salaries=[
                MonthlySalary(row.month, row.year, _amount(row.salary)) for row in salaries
            ],
            vat_expenses=[DatedCost(row.expense_date, _amount(row.amount)) for row in vat_expenses],
            no_vat_expenses=[
                DatedCost(row.expense_date, _amount(row.amount)) for row in no_vat_expenses
            ],
            refunds=[DatedCost(row.refund_date, _amount(row.amount)) for row in refunds],
        )


@dataclass(frozen=True)
class DailyCostContribution:
    """Share of the periodic costs that lands on one day."""

    expenses_vat: Decimal = ZERO
    expenses_no_vat: Decimal = ZERO
    employee_cost: Decimal = ZERO
    refunds: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.expenses_vat + self.expenses_no_vat + self.employee_cost + self.refunds


def _amount(value) -> Decimal:
    return Decimal(str(value or 0))


def days_in_range(start: date, end: date) -> List[date]:
    """Every date from ``start`` to ``end`` inclusive; empty when reversed."""

    if end < start:
        return []
    return [start + timedelta(days=offset) for offset in range((end - start).days + 1)]


def month_bounds(month: int, year: int) -> tuple[date, date]:
    if month < 1 or month > 12:
        raise ValueError("month must be between 1 and 12")
    _, last_day = monthrange(year, month)
    return date(year, month, 1), date(year, month, last_day)


def daily_salary_cost(salaries: Iterable[MonthlySalary], month: int, year: int) -> Decimal:
    """Salaries of ``(month, year)`` divided by the number of days in that month."""

    total = sum((s.amount for s in salaries if s.month == month and s.year == year), ZERO)
    if not total:
        return ZERO
    _, days = monthrange(year, month)
    return total / days


def _sum_by_day(costs: Iterable[DatedCost], start: date, end: date) -> Dict[date, Decimal]:
    totals: Dict[date, Decimal] = defaultdict(lambda: ZERO)
    for cost in costs:
        if start <= cost.day <= end:
            totals[cost.day] += cost.amount
    return totals


def _spread(by_day: Dict[date, Decimal], day_count: int) -> Decimal:
    total = sum(by_day.values(), ZERO)
    if not total:
        return ZERO
    return total / day_count


def allocate(
    costs: PeriodicCosts,
    start: date,
    end: date,
    mode: ExpensesSpreadMode | str = ExpensesSpreadMode.EXACT,
) -> Dict[date, DailyCostContribution]:
    """Return the periodic-cost contribution of every day in ``[start, end]``.

    In ``exact`` mode expenses and refunds land on their own date. In
    ``spread`` mode the in-range total of each category is divided evenly
    over all days of the range. Salaries are always prorated by the length
    of their month.
    """

    days: Sequence[date] = days_in_range(start, end)
    if not days:
        return {}

    mode = ExpensesSpreadMode(mode)
    vat_by_day = _sum_by_day(costs.vat_expenses, start, end)
    no_vat_by_day = _sum_by_day(costs.no_vat_expenses, start, end)
    refunds_by_day = _sum_by_day(costs.refunds, start, end)

    salary_by_month: Dict[tuple[int, int], Decimal] = {}
    for day in days:
        key = (day.month, day.year)
        if key not in salary_by_month:
            salary_by_month[key] = daily_salary_cost(costs.salaries, *key)

    if mode is ExpensesSpreadMode.SPREAD:
        day_count = len(days)
        vat_share = _spread(vat_by_day, day_count)
        no_vat_share = _spread(no_vat_by_day, day_count)
        refund_share = _spread(refunds_by_day, day_count)
        return {
            day: DailyCostContribution(
                expenses_vat=vat_share,
                expenses_no_vat=no_vat_share,
                employee_cost=salary_by_month[(day.month, day.year)],
                refunds=refund_share,
            )
            for day in days
        }

    return {
        day: DailyCostContribution(
            expenses_vat=vat_by_day.get(day, ZERO),
            expenses_no_vat=no_vat_by_day.get(day, ZERO),
            employee_cost=salary_by_month[(day.month, day.year)],
            refunds=refunds_by_day.get(day, ZERO),
        )
        for day in days
    }


def total_contribution(contributions: Iterable[DailyCostContribution]) -> DailyCostContribution:
    """Field-wise sum of several daily contributions."""

    expenses_vat = expenses_no_vat = employee_cost = refunds = ZERO
    for item in contributions:
        expenses_vat += item.expenses_vat
        expenses_no_vat += item.expenses_no_vat
        employee_cost += item.employee_cost
        refunds += item.refunds
    return DailyCostContribution(expenses_vat, expenses_no_vat, employee_cost, refunds)
