"""Service layer encapsulating business logic for API routers."""

from .batch import BatchResult, run_batch
from .business_settings import BusinessSettingsService
from .catalog import CatalogService
from .commerce import (
    CommercePlatformClient,
    PlatformCredentials,
    PlatformOrder,
    WooCommerceClient,
    build_commerce_client,
)
from .daily_snapshots import DailySnapshotService, SnapshotLockRegistry
from .errors import CashflowError, ConfigurationError, UpstreamError, ValidationError
from .monthly_rollup import MonthlyRollupBuilder, MonthlySummary
from .observability import ObservabilityService
from .order_changes import OrderChangeService, OrderItemCostService
from .periodic_costs import ExpenseService, RefundService, SalaryService
from .statistics import StatisticsEngine, StatisticsReport
from .sync import BulkSyncResult, SyncOrchestrator, SyncResult
from .webhooks import WebhookEventProcessor, WebhookOutcome, WebhookStatus

__all__ = [
    "BatchResult",
    "run_batch",
    "BusinessSettingsService",
    "CatalogService",
    "CommercePlatformClient",
    "PlatformCredentials",
    "PlatformOrder",
    "WooCommerceClient",
    "build_commerce_client",
    "DailySnapshotService",
    "SnapshotLockRegistry",
    "CashflowError",
    "ConfigurationError",
    "UpstreamError",
    "ValidationError",
    "MonthlyRollupBuilder",
    "MonthlySummary",
    "ObservabilityService",
    "OrderChangeService",
    "OrderItemCostService",
    "ExpenseService",
    "RefundService",
    "SalaryService",
    "StatisticsEngine",
    "StatisticsReport",
    "BulkSyncResult",
    "SyncOrchestrator",
    "SyncResult",
    "WebhookEventProcessor",
    "WebhookOutcome",
    "WebhookStatus",
]
