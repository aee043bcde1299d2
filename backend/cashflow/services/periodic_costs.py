"""Manual cost ledgers: salaries, VAT and non-VAT expenses, customer refunds."""

from __future__ import annotations

import logging
from calendar import monthrange
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Type, Union

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models, schemas
from .cost_allocation import MonthlySalary, PeriodicCosts, daily_salary_cost, month_bounds
from .errors import ValidationError

LOGGER = logging.getLogger(__name__)

ExpenseModel = Union[models.VatExpense, models.NoVatExpense]


def previous_month(month: int, year: int) -> Tuple[int, int]:
    if month == 1:
        return 12, year - 1
    return month - 1, year


def totals_by_date(rows: Iterable, attribute: str) -> Dict[date, Decimal]:
    totals: Dict[date, Decimal] = defaultdict(lambda: Decimal("0"))
    for row in rows:
        totals[getattr(row, attribute)] += Decimal(str(row.amount or 0))
    return dict(sorted(totals.items()))


class SalaryService:
    """Monthly employee salaries."""

    @staticmethod
    def list_for_month(
        db: Session, business_id: str, month: int, year: int
    ) -> List[models.EmployeeSalary]:
        return (
            db.query(models.EmployeeSalary)
            .filter(
                models.EmployeeSalary.business_id == business_id,
                models.EmployeeSalary.month == month,
                models.EmployeeSalary.year == year,
            )
            .order_by(models.EmployeeSalary.name.asc())
            .all()
        )

    @staticmethod
    def summarize(
        rows: Sequence[models.EmployeeSalary], month: int, year: int
    ) -> Tuple[Decimal, int, Decimal]:
        """Return ``(total_salary, days_in_month, daily_cost)``."""

        total = sum((Decimal(str(row.salary or 0)) for row in rows), Decimal("0"))
        _, days = monthrange(year, month)
        daily = daily_salary_cost([MonthlySalary(month, year, total)], month, year)
        return total, days, daily

    @staticmethod
    def get(db: Session, salary_id: str) -> Optional[models.EmployeeSalary]:
        return db.query(models.EmployeeSalary).filter(models.EmployeeSalary.id == salary_id).first()

    @classmethod
    def save(cls, db: Session, data: schemas.EmployeeSalaryCreate) -> Tuple[models.EmployeeSalary, bool]:
        """Create an entry, or update the one named by ``data.id``.

        Returns the row and whether it was newly created.
        """

        if data.id:
            entry = cls.get(db, data.id)
            if entry is None or entry.business_id != data.business_id:
                raise ValidationError("id", "employee entry not found")
            created = False
        else:
            duplicate = (
                db.query(models.EmployeeSalary.id)
                .filter(
                    models.EmployeeSalary.business_id == data.business_id,
                    models.EmployeeSalary.name == data.name,
                    models.EmployeeSalary.month == data.month,
                    models.EmployeeSalary.year == data.year,
                )
                .first()
            )
            if duplicate is not None:
                raise ValidationError("name", "an employee with this name already exists this month")
            entry = models.EmployeeSalary(business_id=data.business_id)
            db.add(entry)
            created = True

        entry.name = data.name
        entry.salary = data.salary
        entry.month = data.month
        entry.year = data.year
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            raise ValidationError(
                "name", "an employee with this name already exists this month"
            ) from exc
        db.refresh(entry)
        return entry, created

    @staticmethod
    def delete(db: Session, entry: models.EmployeeSalary) -> None:
        db.delete(entry)
        db.commit()

    @classmethod
    def copy_previous_month(cls, db: Session, business_id: str, month: int, year: int) -> int:
        """Copy last month's salaries into ``(month, year)``, skipping existing names."""

        prev_month, prev_year = previous_month(month, year)
        previous = cls.list_for_month(db, business_id, prev_month, prev_year)
        if not previous:
            raise ValidationError("month", "no employees found in the previous month")

        existing = {row.name for row in cls.list_for_month(db, business_id, month, year)}
        copied = 0
        for row in previous:
            if row.name in existing:
                continue
            db.add(
                models.EmployeeSalary(
                    business_id=business_id,
                    name=row.name,
                    salary=row.salary,
                    month=month,
                    year=year,
                )
            )
            copied += 1
        db.commit()
        LOGGER.info(
            "Copied %s salaries for business %s into %02d/%s", copied, business_id, month, year
        )
        return copied


class ExpenseService:
    """VAT-bearing and VAT-free expenses."""

    @staticmethod
    def model_for(kind: schemas.ExpenseKind | str) -> Type[ExpenseModel]:
        if schemas.ExpenseKind(kind) is schemas.ExpenseKind.VAT:
            return models.VatExpense
        return models.NoVatExpense

    @classmethod
    def list_expenses(
        cls,
        db: Session,
        business_id: str,
        kind: schemas.ExpenseKind | str,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[ExpenseModel]:
        model = cls.model_for(kind)
        query = db.query(model).filter(model.business_id == business_id)
        if start_date:
            query = query.filter(model.expense_date >= start_date)
        if end_date:
            query = query.filter(model.expense_date <= end_date)
        return query.order_by(model.expense_date.asc(), model.created_at.asc()).all()

    @classmethod
    def create_expense(cls, db: Session, data: schemas.ExpenseCreate) -> ExpenseModel:
        payload = data.model_dump(exclude={"kind", "vat_amount"})
        model = cls.model_for(data.kind)
        expense = model(**payload)
        if model is models.VatExpense:
            expense.vat_amount = data.vat_amount
        db.add(expense)
        db.commit()
        db.refresh(expense)
        return expense

    @classmethod
    def get_expense(
        cls, db: Session, kind: schemas.ExpenseKind | str, expense_id: str
    ) -> Optional[ExpenseModel]:
        model = cls.model_for(kind)
        return db.query(model).filter(model.id == expense_id).first()

    @staticmethod
    def delete_expense(db: Session, expense: ExpenseModel) -> None:
        db.delete(expense)
        db.commit()

    @classmethod
    def copy_month(
        cls,
        db: Session,
        business_id: str,
        *,
        from_month: int,
        from_year: int,
        to_month: int,
        to_year: int,
    ) -> int:
        """Duplicate both expense ledgers of one month into another.

        Each copy keeps its day of month, clamped to the length of the target month.
        """

        source_start, source_end = month_bounds(from_month, from_year)
        _, target_days = monthrange(to_year, to_month)
        copied = 0
        for kind in schemas.ExpenseKind:
            model = cls.model_for(kind)
            for expense in cls.list_expenses(
                db, business_id, kind, start_date=source_start, end_date=source_end
            ):
                clone = model(
                    business_id=business_id,
                    expense_date=date(to_year, to_month, min(expense.expense_date.day, target_days)),
                    description=expense.description,
                    amount=expense.amount,
                    supplier_name=expense.supplier_name,
                    category=expense.category,
                    is_recurring=expense.is_recurring,
                )
                if model is models.VatExpense:
                    clone.vat_amount = expense.vat_amount
                db.add(clone)
                copied += 1
        db.commit()
        return copied


class RefundService:
    """Customer refunds."""

    @staticmethod
    def list_refunds(
        db: Session,
        business_id: str,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[models.CustomerRefund]:
        query = db.query(models.CustomerRefund).filter(
            models.CustomerRefund.business_id == business_id
        )
        if start_date:
            query = query.filter(models.CustomerRefund.refund_date >= start_date)
        if end_date:
            query = query.filter(models.CustomerRefund.refund_date <= end_date)
        return query.order_by(
            models.CustomerRefund.refund_date.asc(), models.CustomerRefund.created_at.asc()
        ).all()

    @staticmethod
    def create_refund(db: Session, data: schemas.RefundCreate) -> models.CustomerRefund:
        refund = models.CustomerRefund(**data.model_dump())
        db.add(refund)
        db.commit()
        db.refresh(refund)
        return refund

    @staticmethod
    def get_refund(db: Session, refund_id: str) -> Optional[models.CustomerRefund]:
        return db.query(models.CustomerRefund).filter(models.CustomerRefund.id == refund_id).first()

    @staticmethod
    def delete_refund(db: Session, refund: models.CustomerRefund) -> None:
        db.delete(refund)
        db.commit()


def _month_filters(start: date, end: date):
    """SQL conditions selecting the salary months touched by ``[start, end]``."""

    conditions = []
    month, year = start.month, start.year
    while (year, month) <= (end.year, end.month):
        conditions.append(
            (models.EmployeeSalary.month == month) & (models.EmployeeSalary.year == year)
        )
        month, year = (1, year + 1) if month == 12 else (month + 1, year)
    return conditions


def collect_periodic_costs(db: Session, business_id: str, start: date, end: date) -> PeriodicCosts:
    """Load every ledger entry relevant to ``[start, end]``."""

    if end < start:
        return PeriodicCosts()

    salaries = (
        db.query(models.EmployeeSalary)
        .filter(models.EmployeeSalary.business_id == business_id)
        .filter(or_(*_month_filters(start, end)))
        .all()
    )
    return PeriodicCosts.from_rows(
        salaries=salaries,
        vat_expenses=ExpenseService.list_expenses(
            db, business_id, schemas.ExpenseKind.VAT, start_date=start, end_date=end
        ),
        no_vat_expenses=ExpenseService.list_expenses(
            db, business_id, schemas.ExpenseKind.NO_VAT, start_date=start, end_date=end
        ),
        refunds=RefundService.list_refunds(db, business_id, start_date=start, end_date=end),
    )
