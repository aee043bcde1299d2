"""Expose SQLAlchemy models for convenient imports."""

from .business_settings import (
    DEFAULT_FREE_SHIPPING_METHODS,
    DEFAULT_VALID_ORDER_STATUSES,
    BusinessSettings,
    ExpensesSpreadMode,
)
from .daily_snapshot import DailyFinancialSnapshot
from .operational_metric import OperationalMetricEvent
from .order_change import OrderChangeRecord, OrderChangeType, ProcessedWebhookDelivery
from .order_item_cost import OrderItemCost
from .periodic_cost import CustomerRefund, EmployeeSalary, NoVatExpense, VatExpense

__all__ = [
    "DEFAULT_FREE_SHIPPING_METHODS",
    "DEFAULT_VALID_ORDER_STATUSES",
    "BusinessSettings",
    "ExpensesSpreadMode",
    "DailyFinancialSnapshot",
    "OperationalMetricEvent",
    "OrderChangeRecord",
    "OrderChangeType",
    "ProcessedWebhookDelivery",
    "OrderItemCost",
    "CustomerRefund",
    "EmployeeSalary",
    "NoVatExpense",
    "VatExpense",
]
