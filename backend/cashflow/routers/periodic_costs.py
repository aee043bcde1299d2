"""Routers for salaries, expenses and refunds."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from .. import schemas
from ..database import get_db
from ..services import CashflowError, ExpenseService, RefundService, SalaryService
from ..services.periodic_costs import totals_by_date
from .dependencies import http_error, not_found

employees_router = APIRouter()
expenses_router = APIRouter()
refunds_router = APIRouter()


def _check_range(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date and end_date and start_date > end_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "start_date cannot be after end_date", "code": "validation_error"},
        )


@employees_router.get("", response_model=schemas.EmployeeListResponse)
def list_employees(
    business_id: str = Query(..., min_length=1, max_length=64),
    month: int = Query(..., ge=1, le=12),
    year: int = Query(..., ge=2000, le=2100),
    db: Session = Depends(get_db),
) -> schemas.EmployeeListResponse:
    rows = SalaryService.list_for_month(db, business_id, month, year)
    total, days, daily = SalaryService.summarize(rows, month, year)
    return schemas.EmployeeListResponse(
        items=[schemas.EmployeeSalaryRead.model_validate(row) for row in rows],
        total_salary=total,
        days_in_month=days,
        daily_cost=daily,
    )


@employees_router.post("", response_model=schemas.EmployeeSalaryRead)
def save_employee(
    payload: schemas.EmployeeSalaryCreate,
    response: Response,
    db: Session = Depends(get_db),
) -> schemas.EmployeeSalaryRead:
    """Create an entry, or update it when ``id`` is given."""

    try:
        entry, created = SalaryService.save(db, payload)
    except CashflowError as exc:
        raise http_error(exc) from exc
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return schemas.EmployeeSalaryRead.model_validate(entry)


@employees_router.delete("/{salary_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_employee(salary_id: str, db: Session = Depends(get_db)) -> None:
    entry = SalaryService.get(db, salary_id)
    if entry is None:
        raise not_found("Employee entry not found")
    SalaryService.delete(db, entry)


@employees_router.post("/copy", response_model=schemas.CopyResponse)
def copy_employees(
    payload: schemas.CopyMonthRequest, db: Session = Depends(get_db)
) -> schemas.CopyResponse:
    try:
        copied = SalaryService.copy_previous_month(db, payload.business_id, payload.month, payload.year)
    except CashflowError as exc:
        raise http_error(exc) from exc
    return schemas.CopyResponse(
        copied=copied, message=f"Copied {copied} employees into {payload.month:02d}/{payload.year}"
    )


@expenses_router.get("", response_model=schemas.ExpenseListResponse)
def list_expenses(
    business_id: str = Query(..., min_length=1, max_length=64),
    kind: schemas.ExpenseKind = Query(schemas.ExpenseKind.VAT),
    start_date: Optional[date] = Query(None, description="Return expenses on or after this date"),
    end_date: Optional[date] = Query(None, description="Return expenses on or before this date"),
    db: Session = Depends(get_db),
) -> schemas.ExpenseListResponse:
    _check_range(start_date, end_date)
    rows = ExpenseService.list_expenses(
        db, business_id, kind, start_date=start_date, end_date=end_date
    )
    return schemas.ExpenseListResponse(
        kind=kind,
        items=[schemas.ExpenseRead.model_validate(row) for row in rows],
        total=sum((Decimal(str(row.amount or 0)) for row in rows), Decimal("0")),
        totals_by_date=totals_by_date(rows, "expense_date"),
    )


@expenses_router.post("", response_model=schemas.ExpenseRead, status_code=status.HTTP_201_CREATED)
def create_expense(
    payload: schemas.ExpenseCreate, db: Session = Depends(get_db)
) -> schemas.ExpenseRead:
    return schemas.ExpenseRead.model_validate(ExpenseService.create_expense(db, payload))


@expenses_router.post("/copy", response_model=schemas.CopyResponse)
def copy_expenses(
    payload: schemas.ExpenseCopyRequest, db: Session = Depends(get_db)
) -> schemas.CopyResponse:
    if (payload.from_month, payload.from_year) == (payload.to_month, payload.to_year):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "source and target month must differ", "code": "validation_error"},
        )
    copied = ExpenseService.copy_month(
        db,
        payload.business_id,
        from_month=payload.from_month,
        from_year=payload.from_year,
        to_month=payload.to_month,
        to_year=payload.to_year,
    )
    return schemas.CopyResponse(
        copied=copied,
        message=f"Copied {copied} expenses into {payload.to_month:02d}/{payload.to_year}",
    )


@expenses_router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_expense(
    expense_id: str,
    kind: schemas.ExpenseKind = Query(schemas.ExpenseKind.VAT),
    db: Session = Depends(get_db),
) -> None:
    expense = ExpenseService.get_expense(db, kind, expense_id)
    if expense is None:
        raise not_found("Expense not found")
    ExpenseService.delete_expense(db, expense)


@refunds_router.get("", response_model=schemas.RefundListResponse)
def list_refunds(
    business_id: str = Query(..., min_length=1, max_length=64),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
) -> schemas.RefundListResponse:
    _check_range(start_date, end_date)
    rows = RefundService.list_refunds(db, business_id, start_date=start_date, end_date=end_date)
    return schemas.RefundListResponse(
        items=[schemas.RefundRead.model_validate(row) for row in rows],
        total=sum((Decimal(str(row.amount or 0)) for row in rows), Decimal("0")),
        totals_by_date=totals_by_date(rows, "refund_date"),
    )


@refunds_router.post("", response_model=schemas.RefundRead, status_code=status.HTTP_201_CREATED)
def create_refund(payload: schemas.RefundCreate, db: Session = Depends(get_db)) -> schemas.RefundRead:
    return schemas.RefundRead.model_validate(RefundService.create_refund(db, payload))


@refunds_router.delete("/{refund_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_refund(refund_id: str, db: Session = Depends(get_db)) -> None:
    refund = RefundService.get_refund(db, refund_id)
    if refund is None:
        raise not_found("Refund not found")
    RefundService.delete_refund(db, refund)
