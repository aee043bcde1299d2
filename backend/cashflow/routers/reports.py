"""Routers for monthly summaries and period statistics."""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .. import schemas
from ..database import get_db
from ..services import CashflowError, MonthlyRollupBuilder, StatisticsEngine, ValidationError
from ..services.statistics import PERIODS, resolve_period
from .dependencies import http_error

monthly_router = APIRouter()
statistics_router = APIRouter()


@monthly_router.get("", response_model=schemas.MonthlySummaryResponse)
def monthly_summary(
    business_id: str = Query(..., min_length=1, max_length=64),
    month: int = Query(..., ge=1, le=12),
    year: int = Query(..., ge=2000, le=2100),
    db: Session = Depends(get_db),
) -> schemas.MonthlySummaryResponse:
    try:
        summary = MonthlyRollupBuilder.rollup(db, business_id, month, year)
    except CashflowError as exc:
        raise http_error(exc) from exc
    return schemas.MonthlySummaryResponse.model_validate(summary)


def _resolve_window(
    period: Optional[str], start_date: Optional[date], end_date: Optional[date]
) -> tuple[date, date]:
    if start_date and end_date:
        return start_date, end_date
    if start_date or end_date:
        raise ValidationError("start_date", "start_date and end_date must be given together")
    return resolve_period(period or "month", date.today())


@statistics_router.get("", response_model=schemas.StatisticsResponse)
def statistics(
    business_id: str = Query(..., min_length=1, max_length=64),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    period: Optional[str] = Query(None, description=f"One of {', '.join(PERIODS)}"),
    db: Session = Depends(get_db),
) -> schemas.StatisticsResponse:
    """Return totals, trends and extremes for an explicit range or a named period."""

    try:
        start, end = _resolve_window(period, start_date, end_date)
        report = StatisticsEngine.summarize(db, business_id, start, end)
    except CashflowError as exc:
        raise http_error(exc) from exc
    return schemas.StatisticsResponse.model_validate(report)
