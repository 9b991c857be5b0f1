"""Tests for current-week recomputation."""

from datetime import UTC, datetime, timedelta

from mailstock.models.enums import Category
from mailstock.models.weekly_aggregate import WeeklyAggregate
from mailstock.schemas.events import ItemArrived, ItemDeleted, ItemStateChanged

MONDAY = datetime(2025, 3, 10, 9, 0, tzinfo=UTC)
PREVIOUS_WEEK = datetime(2025, 3, 5, 9, 0, tzinfo=UTC)


def snapshot(db, week_identifier):
    rows = (
        db.query(WeeklyAggregate)
        .filter(WeeklyAggregate.week_identifier == week_identifier)
        .order_by(WeeklyAggregate.category)
        .all()
    )
    return [
        (
            Category(row.category).value,
            row.received_count,
            row.treated_count,
            row.manual_adjustment_total,
            row.last_updated_at,
        )
        for row in rows
    ]


def counts(db, week_identifier):
    return {
        Category(row.category): (row.received_count, row.treated_count)
        for row in db.query(WeeklyAggregate).filter_by(week_identifier=week_identifier)
    }


def test_recompute_counts_per_category(db, inventory, current_week):
    """Received and treated counts are grouped by category."""
    inventory.apply_event(ItemArrived(identity="d1", location="declarations", timestamp=MONDAY))
    inventory.apply_event(ItemArrived(identity="d2", location="Déclaration", timestamp=MONDAY))
    inventory.apply_event(ItemArrived(identity="r1", location="Règlements", timestamp=MONDAY))
    inventory.apply_event(ItemStateChanged(identity="d1", treated=True))

    result = counts(db, current_week)

    assert result[Category.DECLARATIONS] == (2, 1)
    assert result[Category.REGLEMENTS] == (1, 0)
    assert result[Category.MAILS_SIMPLES] == (0, 0)


def test_recompute_is_idempotent(db, inventory, clock, current_week):
    """A second recompute with no ledger change leaves every stored value identical."""
    inventory.apply_event(ItemArrived(identity="d1", location="declarations", timestamp=MONDAY))
    inventory.recompute_current_week()
    before = snapshot(db, current_week)

    clock.now = clock.now + timedelta(hours=1)
    inventory.recompute_current_week()
    inventory.recompute_current_week()

    assert snapshot(db, current_week) == before


def test_duplicate_arrivals_count_once(db, inventory, current_week):
    """N duplicate arrival events raise received by exactly one."""
    for _ in range(4):
        inventory.apply_event(
            ItemArrived(identity="d1", location="declarations", timestamp=MONDAY)
        )

    assert counts(db, current_week)[Category.DECLARATIONS] == (1, 0)


def test_treated_attributed_to_treated_week(db, inventory, current_week):
    """An item received last week and treated this week counts as treated this week only."""
    inventory.apply_event(
        ItemArrived(identity="old", location="reglements", timestamp=PREVIOUS_WEEK)
    )
    inventory.apply_event(ItemDeleted(identity="old", timestamp=MONDAY))

    assert counts(db, current_week)[Category.REGLEMENTS] == (0, 1)
    # Historical weeks are not recomputed implicitly
    assert counts(db, "2025-W10") == {}


def test_deleted_items_still_count_as_received(db, inventory, current_week):
    """Deletion resolves an item but its arrival still counts."""
    inventory.apply_event(ItemArrived(identity="m1", location="Inbox", timestamp=MONDAY))
    inventory.apply_event(ItemDeleted(identity="m1", timestamp=MONDAY + timedelta(hours=1)))

    assert counts(db, current_week)[Category.MAILS_SIMPLES] == (1, 1)


def test_reclassification_moves_received_count(db, inventory, current_week):
    """Moving an item moves its current-week count to the new category."""
    inventory.apply_event(ItemArrived(identity="m1", location="Inbox", timestamp=MONDAY))
    inventory.apply_event(ItemStateChanged(identity="m1", location="declarations"))

    result = counts(db, current_week)
    assert result[Category.MAILS_SIMPLES] == (0, 0)
    assert result[Category.DECLARATIONS] == (1, 0)


def test_manual_adjustment_preserved(db, inventory, current_week):
    """Recompute leaves the manual adjustment total alone."""
    inventory.adjust_manual(current_week, "declarations", 4)
    inventory.apply_event(ItemArrived(identity="d1", location="declarations", timestamp=MONDAY))

    row = db.query(WeeklyAggregate).filter_by(
        week_identifier=current_week, category=Category.DECLARATIONS
    ).one()
    assert row.manual_adjustment_total == 4
    assert row.received_count == 1


def test_corrupted_counters_corrected(db, inventory, current_week):
    """Negative stored counts are repaired on recompute; the signed manual total is kept."""
    inventory.recompute_current_week()
    row = db.query(WeeklyAggregate).filter_by(
        week_identifier=current_week, category=Category.REGLEMENTS
    ).one()
    row.received_count = -7
    row.treated_count = -2
    row.manual_adjustment_total = -3
    db.commit()

    inventory.recompute_current_week()

    db.refresh(row)
    assert (row.received_count, row.treated_count, row.manual_adjustment_total) == (0, 0, -3)


def test_rebuild_historical_week(db, inventory):
    """A past week changes only through an explicit rebuild."""
    inventory.apply_event(
        ItemArrived(identity="old", location="declarations", timestamp=PREVIOUS_WEEK)
    )
    assert counts(db, "2025-W10") == {}

    inventory.rebuild_week("2025-W10")

    assert counts(db, "2025-W10")[Category.DECLARATIONS] == (1, 0)
