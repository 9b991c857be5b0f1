"""Weekly aggregation of ledger state into per-category counters."""

import logging
from collections.abc import Callable, Iterable
from datetime import UTC, datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from mailstock.models.enums import Category
from mailstock.models.tracked_item import TrackedItem
from mailstock.models.weekly_aggregate import WeeklyAggregate
from mailstock.services.calendar import WeekInfo, week_of

logger = logging.getLogger(__name__)


def get_or_create_weekly_row(
    db: Session, week: WeekInfo, category: Category, now: datetime
) -> WeeklyAggregate:
    """Fetch the row for (week, category), creating a zeroed one if absent."""
    row = (
        db.query(WeeklyAggregate)
        .filter(
            WeeklyAggregate.week_identifier == week.identifier,
            WeeklyAggregate.category == category,
        )
        .first()
    )
    if row is None:
        row = WeeklyAggregate(
            week_identifier=week.identifier,
            category=category,
            year=week.year,
            week_number=week.week_number,
            week_start=week.start_date,
            week_end=week.end_date,
            received_count=0,
            treated_count=0,
            manual_adjustment_total=0,
            last_updated_at=now,
        )
        db.add(row)
        db.flush()
    return row


def set_counter(row: WeeklyAggregate, field: str, value: int) -> bool:
    """Assign a clamped counter only if it differs. Returns True on change."""
    value = max(0, int(value))
    if getattr(row, field) == value:
        return False
    setattr(row, field, value)
    return True


class WeeklyAggregator:
    """Recomputes a week's received/treated counts from the ledger.

    Counts are derived from scratch on every call rather than bumped per
    event, so duplicate reports of the same change from several producers
    cannot be counted twice. Rows are written only when a value changes, which
    makes a repeated recompute leave every stored value untouched.
    """

    def __init__(
        self,
        db: Session,
        categories: Iterable[Category] = tuple(Category),
        timezone: str = "UTC",
        clock: Callable[[], datetime] | None = None,
    ):
        self.db = db
        self.categories = tuple(categories)
        self.timezone = timezone
        self.clock = clock or (lambda: datetime.now(UTC))

    def current_week(self) -> WeekInfo:
        return week_of(self.clock(), self.timezone)

    def recompute_current_week(self) -> list[WeeklyAggregate]:
        return self.recompute_week(self.current_week())

    def recompute_week(self, week: WeekInfo) -> list[WeeklyAggregate]:
        """Upsert one row per category for week with counts taken from the ledger."""
        received = self._count_by_category(TrackedItem.arrival_week, week.identifier)
        treated = self._count_by_category(TrackedItem.treated_week, week.identifier)
        now = self.clock()

        rows = []
        for category in self.categories:
            row = get_or_create_weekly_row(self.db, week, category, now)
            changed = set_counter(row, "received_count", received.get(category, 0))
            changed |= set_counter(row, "treated_count", treated.get(category, 0))
            # The manual total is a signed running sum owned by adjustments
            if row.manual_adjustment_total is None:
                row.manual_adjustment_total = 0
                changed = True
            if changed:
                row.last_updated_at = now
                logger.info(
                    f"Weekly {week.identifier}/{category.value}: "
                    f"received={row.received_count} treated={row.treated_count}"
                )
            rows.append(row)

        self.db.flush()
        return rows

    def _count_by_category(self, week_column, week_identifier: str) -> dict[Category, int]:
        results = (
            self.db.query(TrackedItem.category, func.count(TrackedItem.id))
            .filter(week_column == week_identifier)
            .group_by(TrackedItem.category)
            .all()
        )
        return {Category(category): count for category, count in results}
