"""Expose Pydantic schemas for convenient imports."""

from .business_settings import (
    BusinessSettingsBase,
    BusinessSettingsRead,
    BusinessSettingsUpdate,
)
from .catalog import (
    BatchWriteResponse,
    PriceType,
    VariationPriceBatch,
    VariationPriceItem,
    VariationStockBatch,
    VariationStockItem,
)
from .order import (
    MarkReadRequest,
    MarkReadResponse,
    OrderChangeListResponse,
    OrderChangeRead,
    OrderItemCostEntry,
    OrderItemCostListResponse,
    OrderItemCostRead,
    OrderItemCostsUpdate,
)
from .periodic_cost import (
    CopyMonthRequest,
    CopyResponse,
    EmployeeListResponse,
    EmployeeSalaryBase,
    EmployeeSalaryCreate,
    EmployeeSalaryRead,
    ExpenseBase,
    ExpenseCopyRequest,
    ExpenseCreate,
    ExpenseKind,
    ExpenseListResponse,
    ExpenseRead,
    RefundBase,
    RefundCreate,
    RefundListResponse,
    RefundRead,
)
from .reports import (
    DailyPointRead,
    DayExtremeRead,
    ExpenseBreakdownRead,
    ExternalCostsRead,
    MonthlyBreakdownRead,
    MonthlySummaryResponse,
    MonthlyTotalsRead,
    StatisticsResponse,
    TrendsRead,
    WebhookAck,
)
from .snapshot import (
    CashflowResponse,
    DailySnapshotRead,
    ManualCostUpdate,
    SyncFailureRead,
    SyncRangeRequest,
    SyncRangeResponse,
    SyncRequest,
    SyncResponse,
)

__all__ = [
    "BusinessSettingsBase",
    "BusinessSettingsRead",
    "BusinessSettingsUpdate",
    "BatchWriteResponse",
    "PriceType",
    "VariationPriceBatch",
    "VariationPriceItem",
    "VariationStockBatch",
    "VariationStockItem",
    "MarkReadRequest",
    "MarkReadResponse",
    "OrderChangeListResponse",
    "OrderChangeRead",
    "OrderItemCostEntry",
    "OrderItemCostListResponse",
    "OrderItemCostRead",
    "OrderItemCostsUpdate",
    "CopyMonthRequest",
    "CopyResponse",
    "EmployeeListResponse",
    "EmployeeSalaryBase",
    "EmployeeSalaryCreate",
    "EmployeeSalaryRead",
    "ExpenseBase",
    "ExpenseCopyRequest",
    "ExpenseCreate",
    "ExpenseKind",
    "ExpenseListResponse",
    "ExpenseRead",
    "RefundBase",
    "RefundCreate",
    "RefundListResponse",
    "RefundRead",
    "DailyPointRead",
    "DayExtremeRead",
    "ExpenseBreakdownRead",
    "ExternalCostsRead",
    "MonthlyBreakdownRead",
    "MonthlySummaryResponse",
    "MonthlyTotalsRead",
    "StatisticsResponse",
    "TrendsRead",
    "WebhookAck",
    "CashflowResponse",
    "DailySnapshotRead",
    "ManualCostUpdate",
    "SyncFailureRead",
    "SyncRangeRequest",
    "SyncRangeResponse",
    "SyncRequest",
    "SyncResponse",
]
