"""Manually entered costs that are joined into the daily view at read time."""

from __future__ import annotations

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)

from ..database import Base
from ..db_types import GUID


class EmployeeSalary(Base):
    """Monthly salary of one employee, prorated across the days of its month."""

    __tablename__ = "employee_salaries"
    __table_args__ = (
        UniqueConstraint(
            "business_id", "name", "month", "year", name="uq_employee_salaries_name_month"
        ),
    )

    id = Column(GUID(), primary_key=True, default=lambda: str(uuid.uuid4()))
    business_id = Column(String(64), nullable=False)
    name = Column(String(150), nullable=False)
    salary = Column(Numeric(14, 2), nullable=False, default=0)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class _ExpenseColumns:
    id = Column(GUID(), primary_key=True, default=lambda: str(uuid.uuid4()))
    business_id = Column(String(64), nullable=False)
    expense_date = Column(Date, nullable=False)
    description = Column(Text, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    supplier_name = Column(String(150), nullable=True)
    category = Column(String(100), nullable=True)
    is_recurring = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class VatExpense(_ExpenseColumns, Base):
    """Expense whose invoice includes deductible VAT."""

    __tablename__ = "vat_expenses"

    vat_amount = Column(Numeric(14, 2), nullable=False, default=0)


class NoVatExpense(_ExpenseColumns, Base):
    """Expense without VAT."""

    __tablename__ = "no_vat_expenses"


class CustomerRefund(Base):
    """Money returned to a customer on a given date."""

    __tablename__ = "customer_refunds"

    id = Column(GUID(), primary_key=True, default=lambda: str(uuid.uuid4()))
    business_id = Column(String(64), nullable=False)
    refund_date = Column(Date, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    description = Column(Text, nullable=True)
    order_id = Column(String(64), nullable=True)
    customer_name = Column(String(150), nullable=True)
    reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


Index("employee_salaries_period_idx", EmployeeSalary.business_id, EmployeeSalary.year, EmployeeSalary.month)
Index("vat_expenses_business_date_idx", VatExpense.business_id, VatExpense.expense_date)
Index("no_vat_expenses_business_date_idx", NoVatExpense.business_id, NoVatExpense.expense_date)
Index("customer_refunds_business_date_idx", CustomerRefund.business_id, CustomerRefund.refund_date)
