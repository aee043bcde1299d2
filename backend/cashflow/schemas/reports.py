from __future__ import annotations

from datetime import date
from datetime import date as date_type
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class MonthlyTotalsRead(BaseModel):
    revenue: Decimal
    orders_count: int
    items_count: int
    profit: Decimal
    profit_percent: Decimal
    total_expenses: Decimal

    model_config = ConfigDict(from_attributes=True)


class MonthlyBreakdownRead(BaseModel):
    google_ads: Decimal
    facebook_ads: Decimal
    tiktok_ads: Decimal
    shipping_cost: Decimal
    materials_cost: Decimal
    credit_card_fees: Decimal
    vat: Decimal
    expenses_vat: Decimal
    expenses_no_vat: Decimal
    employee_cost: Decimal
    refunds: Decimal

    model_config = ConfigDict(from_attributes=True)


class MonthlySummaryResponse(BaseModel):
    month: int
    year: int
    start_date: date
    end_date: date
    summary: MonthlyTotalsRead
    breakdown: MonthlyBreakdownRead

    model_config = ConfigDict(from_attributes=True)


class ExpenseBreakdownRead(BaseModel):
    google_ads: Decimal
    facebook_ads: Decimal
    tiktok_ads: Decimal
    shipping: Decimal
    materials: Decimal
    credit_card_fees: Decimal
    vat: Decimal

    model_config = ConfigDict(from_attributes=True)


class ExternalCostsRead(BaseModel):
    employee_cost: Decimal
    expenses_vat: Decimal
    expenses_no_vat: Decimal
    refunds: Decimal

    model_config = ConfigDict(from_attributes=True)


class TrendsRead(BaseModel):
    revenue: Decimal
    profit: Decimal
    orders: Decimal
    roi: Decimal

    model_config = ConfigDict(from_attributes=True)


class DailyPointRead(BaseModel):
    date: date
    revenue: Decimal
    profit: Decimal
    orders: int
    expenses: Decimal

    model_config = ConfigDict(from_attributes=True)


class DayExtremeRead(BaseModel):
    date: date
    value: Decimal

    model_config = ConfigDict(from_attributes=True)


class StatisticsResponse(BaseModel):
    period_start: date
    period_end: date
    total_revenue: Decimal
    total_profit: Decimal
    total_orders: int
    total_expenses: Decimal
    average_order_value: Decimal
    average_daily_revenue: Decimal
    average_daily_profit: Decimal
    average_roi: Decimal
    profit_margin: Decimal
    days_with_data: int
    expenses_breakdown: ExpenseBreakdownRead
    external_costs: ExternalCostsRead
    trends: TrendsRead
    daily_data: List[DailyPointRead]
    best_day: Optional[DayExtremeRead] = None
    worst_day: Optional[DayExtremeRead] = None
    most_profitable_day: Optional[DayExtremeRead] = None

    model_config = ConfigDict(from_attributes=True)


class WebhookAck(BaseModel):
    status: str
    message: str
    topic: Optional[str] = None
    order_id: Optional[str] = None
    date: Optional[date_type] = None

    model_config = ConfigDict(from_attributes=True)
