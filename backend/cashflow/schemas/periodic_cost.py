from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EmployeeSalaryBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    salary: Decimal = Field(..., ge=0, description="Salary owed for the whole month")
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=2000, le=2100)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value


class EmployeeSalaryCreate(EmployeeSalaryBase):
    business_id: str = Field(..., min_length=1, max_length=64)
    id: Optional[str] = Field(None, description="Existing entry to update")


class EmployeeSalaryRead(EmployeeSalaryBase):
    id: str
    business_id: str

    model_config = ConfigDict(from_attributes=True)


class EmployeeListResponse(BaseModel):
    items: List[EmployeeSalaryRead]
    total_salary: Decimal
    days_in_month: int
    daily_cost: Decimal


class CopyMonthRequest(BaseModel):
    """Copy last month's entries into ``(month, year)``."""

    business_id: str = Field(..., min_length=1, max_length=64)
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=2000, le=2100)


class CopyResponse(BaseModel):
    copied: int
    message: str


class ExpenseKind(str, Enum):
    VAT = "vat"
    NO_VAT = "no_vat"


class ExpenseBase(BaseModel):
    expense_date: date
    description: str = Field(..., min_length=1)
    amount: Decimal = Field(..., ge=0)
    supplier_name: Optional[str] = Field(None, max_length=150)
    category: Optional[str] = Field(None, max_length=100)
    is_recurring: bool = False


class ExpenseCreate(ExpenseBase):
    business_id: str = Field(..., min_length=1, max_length=64)
    kind: ExpenseKind = ExpenseKind.VAT
    vat_amount: Decimal = Field(Decimal("0"), ge=0)


class ExpenseRead(ExpenseBase):
    id: str
    business_id: str
    vat_amount: Optional[Decimal] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ExpenseListResponse(BaseModel):
    kind: ExpenseKind
    items: List[ExpenseRead]
    total: Decimal
    totals_by_date: Dict[date, Decimal] = Field(default_factory=dict)


class ExpenseCopyRequest(BaseModel):
    business_id: str = Field(..., min_length=1, max_length=64)
    from_month: int = Field(..., ge=1, le=12)
    from_year: int = Field(..., ge=2000, le=2100)
    to_month: int = Field(..., ge=1, le=12)
    to_year: int = Field(..., ge=2000, le=2100)


class RefundBase(BaseModel):
    refund_date: date
    amount: Decimal = Field(..., ge=0)
    description: Optional[str] = None
    order_id: Optional[str] = Field(None, max_length=64)
    customer_name: Optional[str] = Field(None, max_length=150)
    reason: Optional[str] = None


class RefundCreate(RefundBase):
    business_id: str = Field(..., min_length=1, max_length=64)


class RefundRead(RefundBase):
    id: str
    business_id: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class RefundListResponse(BaseModel):
    items: List[RefundRead]
    total: Decimal
    totals_by_date: Dict[date, Decimal] = Field(default_factory=dict)
