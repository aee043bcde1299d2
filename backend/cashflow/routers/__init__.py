"""Routers package."""

from .business_settings import router as business_settings_router
from .cashflow import router as cashflow_router
from .catalog import router as catalog_router
from .orders import item_costs_router as order_item_costs_router
from .orders import order_changes_router
from .periodic_costs import employees_router, expenses_router, refunds_router
from .reports import monthly_router as monthly_summary_router
from .reports import statistics_router
from .sync import router as sync_router
from .webhooks import router as webhooks_router

__all__ = [
    "business_settings_router",
    "cashflow_router",
    "catalog_router",
    "order_item_costs_router",
    "order_changes_router",
    "employees_router",
    "expenses_router",
    "refunds_router",
    "monthly_summary_router",
    "statistics_router",
    "sync_router",
    "webhooks_router",
]
