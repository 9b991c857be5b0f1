"""Manual adjustments: out-of-band signed corrections per (week, category)."""

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from sqlalchemy.orm import Session

from mailstock.exceptions import UnknownCategoryError
from mailstock.models.enums import Category
from mailstock.models.weekly_aggregate import WeeklyAggregate
from mailstock.services.aggregator import get_or_create_weekly_row
from mailstock.services.calendar import week_from_identifier
from mailstock.services.category_resolver import lookup_category

logger = logging.getLogger(__name__)


class ManualAdjustmentStore:
    """Adds signed deltas to a week's manual adjustment total. No ledger access.

    The total is a plain running sum, so the order of deltas never matters. It
    may be negative; carry-over floors the resulting stock, not the total.
    """

    def __init__(self, db: Session, clock: Callable[[], datetime] | None = None):
        self.db = db
        self.clock = clock or (lambda: datetime.now(UTC))

    def adjust(self, week_identifier: str, category: str | Category, delta: int) -> WeeklyAggregate:
        week = week_from_identifier(week_identifier)
        resolved = lookup_category(category)
        if resolved is None:
            raise UnknownCategoryError(category)

        now = self.clock()
        row = get_or_create_weekly_row(self.db, week, resolved, now)
        total = (row.manual_adjustment_total or 0) + int(delta)
        if total != row.manual_adjustment_total:
            row.manual_adjustment_total = total
            row.last_updated_at = now
        self.db.flush()
        logger.info(
            f"Manual adjustment {delta:+d} on {week.identifier}/{resolved.value}, total={total}"
        )
        return row
