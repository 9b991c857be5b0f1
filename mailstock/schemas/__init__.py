"""Pydantic schemas for API requests and responses."""

from mailstock.schemas.category import (
    CategoryConfigCreate,
    CategoryConfigResponse,
    CategoryInfo,
    CategoryResolution,
)
from mailstock.schemas.events import (
    BatchResult,
    EventBatch,
    EventResult,
    ItemArrived,
    ItemDeleted,
    ItemStateChanged,
    LedgerEvent,
    ReconciliationRequest,
    ReconciliationResult,
)
from mailstock.schemas.item import (
    CategoryStats,
    ItemActivityResponse,
    LedgerStats,
    LocationStats,
    TrackedItemResponse,
)
from mailstock.schemas.settings import ReadAsTreatedSetting
from mailstock.schemas.weekly import (
    HistoricalWeekRow,
    HistoryImportRequest,
    ImportResult,
    ManualAdjustmentRequest,
    StockResponse,
    WeeklyAggregateResponse,
    WeeklyHistoryPage,
    WeekReport,
)

__all__ = [
    "CategoryInfo",
    "CategoryConfigCreate",
    "CategoryConfigResponse",
    "CategoryResolution",
    "ItemArrived",
    "ItemStateChanged",
    "ItemDeleted",
    "LedgerEvent",
    "EventBatch",
    "EventResult",
    "BatchResult",
    "ReconciliationRequest",
    "ReconciliationResult",
    "TrackedItemResponse",
    "ItemActivityResponse",
    "CategoryStats",
    "LocationStats",
    "LedgerStats",
    "ReadAsTreatedSetting",
    "HistoricalWeekRow",
    "HistoryImportRequest",
    "ImportResult",
    "ManualAdjustmentRequest",
    "StockResponse",
    "WeeklyAggregateResponse",
    "WeeklyHistoryPage",
    "WeekReport",
]
