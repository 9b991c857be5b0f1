"""Tracked item schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

from mailstock.models.enums import ActivityType, Category, ItemStatus


class TrackedItemResponse(BaseModel):
    """Ledger state of one item."""

    model_config = ConfigDict(from_attributes=True)

    identity: str
    location: str
    category: Category
    status: ItemStatus
    arrived_at: datetime
    arrival_week: str
    is_read: bool
    treated_at: datetime | None
    treated_week: str | None
    is_treated: bool
    deleted_at: datetime | None


class ItemActivityResponse(BaseModel):
    """One entry of an item's activity trail."""

    model_config = ConfigDict(from_attributes=True)

    identity: str
    activity_type: ActivityType
    occurred_at: datetime
    details: dict[str, Any] | None


class CategoryStats(BaseModel):
    """Live item counts of one category."""

    category: Category
    label: str
    total: int
    unread: int
    untreated: int


class LocationStats(BaseModel):
    """Live item counts of one source location."""

    location: str
    total: int
    unread: int
    last_arrival: datetime | None


class LedgerStats(BaseModel):
    """Snapshot of the item ledger, independent of weekly rows."""

    total_items: int
    unread: int
    untreated: int
    received_today: int
    treated_today: int
    # Mean hours from arrival to treatment, one decimal
    average_treatment_hours: float
    by_category: list[CategoryStats]
    by_location: list[LocationStats]
    recent: list[TrackedItemResponse]
