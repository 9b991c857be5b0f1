"""Carry-over (stock) replay over stored weekly rows."""

from collections.abc import Iterable, Mapping
from itertools import groupby

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from mailstock.models.enums import Category
from mailstock.models.weekly_aggregate import WeeklyAggregate


def carry_forward(stock: int, received: int, treated: int, adjustment: int) -> int:
    """One week of stock accounting, floored at zero.

    The manual adjustment is a signed outflow alongside treated items; a negative
    total gives stock back. Stored received and treated counts below zero are
    read as zero.
    """
    inflow = max(0, received or 0)
    outflow = max(0, treated or 0) + (adjustment or 0)
    return max(0, stock + inflow - outflow)


def roll_forward(
    opening: Mapping[Category, int],
    rows: Iterable[WeeklyAggregate],
    categories: Iterable[Category] = tuple(Category),
) -> list[tuple[tuple[int, int], dict[Category, tuple[int, int]]]]:
    """Replay rows week by week from an opening stock.

    Rows must be ordered by (year, week_number). Returns, for each week, the
    (start, end) stock per category. The zero floor is applied after every
    week, so a week that would drive the stock negative resets it before the
    next week's net is applied.
    """
    categories = tuple(categories)
    stock = {category: max(0, opening.get(category, 0)) for category in categories}
    timeline = []
    for key, week_rows in groupby(rows, key=lambda r: (r.year, r.week_number)):
        by_category = {Category(row.category): row for row in week_rows}
        week_stock = {}
        for category in categories:
            start = stock[category]
            row = by_category.get(category)
            if row is None:
                end = start
            else:
                end = carry_forward(
                    start, row.received_count, row.treated_count, row.manual_adjustment_total
                )
            week_stock[category] = (start, end)
            stock[category] = end
        timeline.append((key, week_stock))
    return timeline


class CarryOverCalculator:
    """Computes the backlog per category immediately before a given week."""

    def __init__(self, db: Session, categories: Iterable[Category] = tuple(Category)):
        self.db = db
        self.categories = tuple(categories)

    def stock_before(self, year: int, week_number: int) -> dict[Category, int]:
        rows = (
            self.db.query(WeeklyAggregate)
            .filter(
                or_(
                    WeeklyAggregate.year < year,
                    and_(WeeklyAggregate.year == year, WeeklyAggregate.week_number < week_number),
                )
            )
            .order_by(WeeklyAggregate.year, WeeklyAggregate.week_number, WeeklyAggregate.id)
            .all()
        )
        stock = dict.fromkeys(self.categories, 0)
        for _, week_stock in roll_forward(stock, rows, self.categories):
            stock = {category: end for category, (_, end) in week_stock.items()}
        return stock
