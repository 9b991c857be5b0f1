"""SQLAlchemy models."""

from mailstock.models.app_setting import AppSetting
from mailstock.models.category_config import CategoryConfig
from mailstock.models.item_activity import ItemActivity
from mailstock.models.tracked_item import TrackedItem
from mailstock.models.weekly_aggregate import WeeklyAggregate

__all__ = [
    "AppSetting",
    "CategoryConfig",
    "ItemActivity",
    "TrackedItem",
    "WeeklyAggregate",
]
