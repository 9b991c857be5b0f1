"""ISO-8601 calendar week assignment.

Weeks start on Monday and week 1 is the week containing January 4th, so the
ISO year of a date near the new year can differ from its calendar year. The
same functions are used for arrival and treated attribution.
"""

import re
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo

from mailstock.exceptions import InvalidWeekError

WEEK_IDENTIFIER_RE = re.compile(r"^(\d{4})-W(\d{2})$")


@dataclass(frozen=True, order=True)
class WeekInfo:
    """An ISO week with its Monday..Sunday bounds."""

    year: int
    week_number: int
    start_date: date
    end_date: date

    @property
    def identifier(self) -> str:
        return f"{self.year}-W{self.week_number:02d}"

    @property
    def display(self) -> str:
        return f"S{self.week_number} - {self.year}"

    def next(self) -> "WeekInfo":
        return week_of_date(self.start_date + timedelta(days=7))

    def previous(self) -> "WeekInfo":
        return week_of_date(self.start_date - timedelta(days=7))


def to_utc(timestamp: datetime) -> datetime:
    """Normalize a timestamp to aware UTC. Naive values are taken as UTC."""
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=UTC)
    return timestamp.astimezone(UTC)


def weeks_in_year(year: int) -> int:
    """Number of ISO weeks (52 or 53) in an ISO year."""
    # December 28th is always in the last ISO week of its year
    return date(year, 12, 28).isocalendar()[1]


def week_for(year: int, week_number: int) -> WeekInfo:
    """Build the WeekInfo for an ISO (year, week) pair."""
    if not 1 <= week_number <= 53:
        raise InvalidWeekError((year, week_number), "week number must be between 1 and 53")
    if week_number > weeks_in_year(year):
        raise InvalidWeekError((year, week_number), f"ISO year {year} has only 52 weeks")
    start = date.fromisocalendar(year, week_number, 1)
    return WeekInfo(year, week_number, start, start + timedelta(days=6))


def week_of_date(day: date) -> WeekInfo:
    iso_year, iso_week, _ = day.isocalendar()
    return week_for(iso_year, iso_week)


def week_of(timestamp: datetime, tz: str = "UTC") -> WeekInfo:
    """Return the ISO week containing the timestamp, as seen in the given timezone."""
    local = to_utc(timestamp).astimezone(ZoneInfo(tz))
    return week_of_date(local.date())


def week_from_identifier(identifier: str) -> WeekInfo:
    """Parse a "YYYY-Www" identifier."""
    match = WEEK_IDENTIFIER_RE.match(identifier.strip()) if identifier else None
    if not match:
        raise InvalidWeekError(identifier, "expected format YYYY-Www")
    return week_for(int(match.group(1)), int(match.group(2)))
