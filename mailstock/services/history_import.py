"""Seeding and overwriting historical weeks directly, bypassing the ledger."""

import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError
from sqlalchemy.orm import Session

from mailstock.exceptions import InvalidWeekError
from mailstock.models.enums import Category
from mailstock.schemas.weekly import HistoricalWeekRow, ImportResult, ImportRowError
from mailstock.services.aggregator import get_or_create_weekly_row, set_counter
from mailstock.services.calendar import WeekInfo, week_for
from mailstock.services.category_resolver import CategoryResolver

logger = logging.getLogger(__name__)


class HistoryImporter:
    """Writes imported weekly totals over existing rows.

    Rows sharing a (week, category) within one batch are summed first, then
    written as the week's values.
    """

    def __init__(
        self,
        db: Session,
        resolver: CategoryResolver,
        clock: Callable[[], datetime] | None = None,
    ):
        self.db = db
        self.resolver = resolver
        self.clock = clock or (lambda: datetime.now(UTC))

    def import_rows(self, rows: Iterable[Mapping[str, Any]]) -> ImportResult:
        result = ImportResult()
        totals: dict[tuple[WeekInfo, Category], list[int]] = {}

        for index, raw in enumerate(rows):
            try:
                row = HistoricalWeekRow.model_validate(raw)
                week = self._week(row)
            except (ValidationError, InvalidWeekError) as e:
                reason = _describe(e)
                logger.warning(f"Skipping historical row {index}: {reason}")
                result.skipped += 1
                result.errors.append(ImportRowError(index=index, reason=reason))
                continue

            category = self.resolver.resolve(row.category)
            bucket = totals.setdefault((week, category), [0, 0, 0])
            bucket[0] += row.received
            bucket[1] += row.treated
            bucket[2] += row.manual_adjustment
            result.accepted += 1

        now = self.clock()
        for (week, category), (received, treated, adjustment) in sorted(
            totals.items(), key=lambda kv: (kv[0][0], kv[0][1].value)
        ):
            row = get_or_create_weekly_row(self.db, week, category, now)
            changed = set_counter(row, "received_count", received)
            changed |= set_counter(row, "treated_count", treated)
            if row.manual_adjustment_total != adjustment:
                row.manual_adjustment_total = adjustment
                changed = True
            if changed:
                row.last_updated_at = now
        self.db.flush()

        result.weeks_written = len({week for week, _ in totals})
        logger.info(
            f"Historical import: {result.accepted} accepted, {result.skipped} skipped, "
            f"{result.weeks_written} weeks written"
        )
        return result

    def _week(self, row: HistoricalWeekRow) -> WeekInfo:
        week = week_for(row.year, row.week_number)
        if row.week_start is not None and (
            row.week_start != week.start_date or row.week_end != week.end_date
        ):
            raise InvalidWeekError(
                week.identifier,
                f"bounds {row.week_start}..{row.week_end} do not match "
                f"{week.start_date}..{week.end_date}",
            )
        return week


def _describe(error: Exception) -> str:
    if isinstance(error, ValidationError):
        return "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'row'}: {err['msg']}"
            for err in error.errors()
        )
    return str(error)
