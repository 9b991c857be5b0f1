"""Read models for reporting consumers: week reports, history pages and ledger stats."""

import math
from collections.abc import Iterable
from datetime import UTC, datetime, time, timedelta
from zoneinfo import ZoneInfo

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from mailstock.models.enums import Category
from mailstock.models.tracked_item import TrackedItem
from mailstock.models.weekly_aggregate import WeeklyAggregate
from mailstock.schemas.item import (
    CategoryStats,
    LedgerStats,
    LocationStats,
    TrackedItemResponse,
)
from mailstock.schemas.weekly import (
    CategoryWeekReport,
    WeekEvolution,
    WeekReport,
    WeeklyHistoryPage,
)
from mailstock.services.calendar import WeekInfo, to_utc, week_for
from mailstock.services.carry_over import CarryOverCalculator, roll_forward


class WeeklyReportService:
    """Builds carry-aware week reports from stored weekly rows. Read-only."""

    def __init__(self, db: Session, categories: Iterable[Category] = tuple(Category)):
        self.db = db
        self.categories = tuple(categories)
        self.carry_over = CarryOverCalculator(db, self.categories)

    def week_report(self, week: WeekInfo) -> WeekReport:
        """Report for a single week, stock starting from the carry before it."""
        return self._reports([week])[0]

    def history_page(self, page: int, page_size: int) -> WeeklyHistoryPage:
        """Page through distinct stored weeks, most recent first."""
        distinct_weeks = (
            self.db.query(WeeklyAggregate.year, WeeklyAggregate.week_number)
            .distinct()
            .order_by(WeeklyAggregate.year.desc(), WeeklyAggregate.week_number.desc())
        )
        total_weeks = distinct_weeks.order_by(None).count()
        keys = distinct_weeks.offset((page - 1) * page_size).limit(page_size).all()

        # Replay needs the oldest week first; the page is returned newest first
        weeks = sorted(week_for(year, week_number) for year, week_number in keys)
        reports = self._reports(weeks) if weeks else []
        reports.reverse()

        return WeeklyHistoryPage(
            page=page,
            page_size=page_size,
            total_weeks=total_weeks,
            total_pages=math.ceil(total_weeks / page_size),
            weeks=reports,
        )

    def _reports(self, weeks: list[WeekInfo]) -> list[WeekReport]:
        """Reports for consecutive stored weeks given in ascending order."""
        first = weeks[0]
        stock = self.carry_over.stock_before(first.year, first.week_number)
        rows = (
            self.db.query(WeeklyAggregate)
            .filter(WeeklyAggregate.week_identifier.in_([week.identifier for week in weeks]))
            .order_by(WeeklyAggregate.year, WeeklyAggregate.week_number, WeeklyAggregate.id)
            .all()
        )
        timeline = dict(roll_forward(stock, rows, self.categories))

        reports = []
        for week in weeks:
            key = (week.year, week.week_number)
            week_stock = timeline.get(key) or {c: (stock[c], stock[c]) for c in self.categories}
            stock = {category: end for category, (_, end) in week_stock.items()}
            week_rows = {
                Category(row.category): row for row in rows if (row.year, row.week_number) == key
            }

            categories = []
            for category in self.categories:
                row = week_rows.get(category)
                start, end = week_stock[category]
                categories.append(
                    CategoryWeekReport(
                        category=category,
                        label=category.label,
                        received=max(0, row.received_count) if row else 0,
                        treated=max(0, row.treated_count) if row else 0,
                        manual_adjustment=row.manual_adjustment_total if row else 0,
                        stock_start=start,
                        stock_end=end,
                    )
                )

            total_received = sum(c.received for c in categories)
            reports.append(
                WeekReport(
                    week_identifier=week.identifier,
                    display=week.display,
                    year=week.year,
                    week_number=week.week_number,
                    week_start=week.start_date,
                    week_end=week.end_date,
                    categories=categories,
                    total_received=total_received,
                    total_treated=sum(c.treated for c in categories),
                    total_stock_end=sum(c.stock_end for c in categories),
                    evolution=_evolution(total_received, self._received_total(week.previous())),
                )
            )
        return reports

    def _received_total(self, week: WeekInfo) -> int | None:
        rows = (
            self.db.query(WeeklyAggregate.received_count)
            .filter(WeeklyAggregate.week_identifier == week.identifier)
            .all()
        )
        if not rows:
            return None
        return sum(max(0, received) for (received,) in rows)


def _evolution(current: int, previous: int | None) -> WeekEvolution:
    """Week-over-week change in received totals; stable when there is no previous week."""
    if previous is None:
        return WeekEvolution()
    absolute = current - previous
    percent = round(absolute / previous * 100, 1) if previous > 0 else 0.0
    trend = "up" if absolute > 0 else "down" if absolute < 0 else "stable"
    return WeekEvolution(absolute=absolute, percent=percent, trend=trend)


def ledger_stats(
    db: Session,
    now: datetime,
    categories: Iterable[Category] = tuple(Category),
    timezone: str = "UTC",
    recent_limit: int = 20,
) -> LedgerStats:
    """Counts over live ledger items. "Today" is the calendar day of now in timezone."""
    tz = ZoneInfo(timezone)
    day_start = datetime.combine(to_utc(now).astimezone(tz).date(), time.min, tzinfo=tz)
    today_start = day_start.astimezone(UTC)
    today_end = (day_start + timedelta(days=1)).astimezone(UTC)

    live = TrackedItem.deleted_at.is_(None)
    unread = func.sum(case((TrackedItem.is_read.is_(False), 1), else_=0))
    untreated = func.sum(case((TrackedItem.treated_at.is_(None), 1), else_=0))

    per_category = {
        Category(category): (total, unread_count or 0, untreated_count or 0)
        for category, total, unread_count, untreated_count in db.query(
            TrackedItem.category, func.count(TrackedItem.id), unread, untreated
        )
        .filter(live)
        .group_by(TrackedItem.category)
        .all()
    }
    by_category = []
    for category in categories:
        total, unread_count, untreated_count = per_category.get(category, (0, 0, 0))
        by_category.append(
            CategoryStats(
                category=category,
                label=category.label,
                total=total,
                unread=unread_count,
                untreated=untreated_count,
            )
        )

    by_location = [
        LocationStats(
            location=location,
            total=total,
            unread=unread_count or 0,
            last_arrival=to_utc(last_arrival) if last_arrival else None,
        )
        for location, total, unread_count, last_arrival in db.query(
            TrackedItem.location,
            func.count(TrackedItem.id),
            unread,
            func.max(TrackedItem.arrived_at),
        )
        .filter(live)
        .group_by(TrackedItem.location)
        .order_by(func.count(TrackedItem.id).desc(), TrackedItem.location)
        .all()
    ]

    received_today = (
        db.query(TrackedItem)
        .filter(live, TrackedItem.arrived_at >= today_start, TrackedItem.arrived_at < today_end)
        .count()
    )
    # Deletion treats an item, so deleted items count here
    treated_today = (
        db.query(TrackedItem)
        .filter(TrackedItem.treated_at >= today_start, TrackedItem.treated_at < today_end)
        .count()
    )

    durations = [
        (to_utc(treated_at) - to_utc(arrived_at)).total_seconds() / 3600
        for arrived_at, treated_at in db.query(TrackedItem.arrived_at, TrackedItem.treated_at)
        .filter(TrackedItem.treated_at.is_not(None))
        .all()
        if to_utc(treated_at) > to_utc(arrived_at)
    ]
    average = round(sum(durations) / len(durations), 1) if durations else 0.0

    recent = (
        db.query(TrackedItem)
        .filter(live)
        .order_by(TrackedItem.arrived_at.desc(), TrackedItem.id.desc())
        .limit(recent_limit)
        .all()
    )

    return LedgerStats(
        total_items=sum(stats.total for stats in by_category),
        unread=sum(stats.unread for stats in by_category),
        untreated=sum(stats.untreated for stats in by_category),
        received_today=received_today,
        treated_today=treated_today,
        average_treatment_hours=average,
        by_category=by_category,
        by_location=by_location,
        recent=[TrackedItemResponse.model_validate(item) for item in recent],
    )
