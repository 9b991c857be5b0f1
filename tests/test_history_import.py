"""Tests for historical imports and manual adjustments."""

from datetime import timedelta

import pytest

from mailstock.exceptions import InvalidWeekError, UnknownCategoryError
from mailstock.models.enums import Category
from mailstock.models.weekly_aggregate import WeeklyAggregate


def stored(db, week_identifier, category):
    return (
        db.query(WeeklyAggregate)
        .filter_by(week_identifier=week_identifier, category=category)
        .one()
    )


def test_import_accepts_valid_rows(db, inventory):
    result = inventory.import_history(
        [
            {"year": 2024, "week_number": 50, "category": "Déclarations", "received": 12,
             "treated": 4},
            {"year": 2024, "week_number": 50, "category": "Règlements", "received": 3},
            {"year": 2024, "week_number": 51, "category": "MailSimple", "received": 8,
             "treated": 8, "manual_adjustment": 1},
        ]
    )

    assert (result.accepted, result.skipped, result.weeks_written) == (3, 0, 2)
    row = stored(db, "2024-W50", Category.DECLARATIONS)
    assert (row.received_count, row.treated_count) == (12, 4)
    assert row.week_start.isoformat() == "2024-12-09"
    assert row.week_end.isoformat() == "2024-12-15"
    assert stored(db, "2024-W51", Category.MAILS_SIMPLES).manual_adjustment_total == 1


def test_import_skips_malformed_rows(db, inventory, caplog):
    """Bad rows are reported by index; the rest of the batch is written."""
    result = inventory.import_history(
        [
            {"year": 2024, "week_number": 54, "category": "declarations"},
            {"year": 2024, "week_number": 10, "category": "  "},
            {"year": 2024, "week_number": 10},
            {"year": 2024, "week_number": 10, "category": "declarations", "received": -1},
            {"year": 2021, "week_number": 53, "category": "declarations"},
            {"year": 2024, "week_number": 10, "category": "declarations", "received": 2},
        ]
    )

    assert result.accepted == 1
    assert result.skipped == 5
    assert [error.index for error in result.errors] == [0, 1, 2, 3, 4]
    assert "Skipping historical row" in caplog.text
    assert db.query(WeeklyAggregate).count() == 1


def test_import_rejects_mismatched_bounds(db, inventory):
    result = inventory.import_history(
        [
            {"year": 2025, "week_number": 1, "category": "declarations",
             "week_start": "2025-01-01", "week_end": "2025-01-07"},
            {"year": 2025, "week_number": 1, "category": "declarations",
             "week_start": "2024-12-30"},
            {"year": 2025, "week_number": 1, "category": "declarations", "received": 1,
             "week_start": "2024-12-30", "week_end": "2025-01-05"},
        ]
    )

    assert result.skipped == 2
    assert "do not match" in result.errors[0].reason
    assert stored(db, "2025-W01", Category.DECLARATIONS).received_count == 1


def test_import_unknown_category_uses_default(db, inventory):
    """A named but unknown category lands in the default category."""
    result = inventory.import_history(
        [{"year": 2024, "week_number": 3, "category": "Factures", "received": 6}]
    )

    assert result.accepted == 1
    assert stored(db, "2024-W03", Category.MAILS_SIMPLES).received_count == 6


def test_import_sums_duplicates_and_overwrites(db, inventory):
    """Rows for one (week, category) are summed, then replace the stored values."""
    inventory.import_history(
        [{"year": 2024, "week_number": 20, "category": "reglements", "received": 50,
          "treated": 50, "manual_adjustment": 9}]
    )
    inventory.import_history(
        [
            {"year": 2024, "week_number": 20, "category": "reglements", "received": 3},
            {"year": 2024, "week_number": 20, "category": "Règlement", "received": 4,
             "treated": 2},
        ]
    )

    row = stored(db, "2024-W20", Category.REGLEMENTS)
    assert (row.received_count, row.treated_count, row.manual_adjustment_total) == (7, 2, 0)


def test_import_does_not_touch_ledger(db, inventory):
    from mailstock.models.tracked_item import TrackedItem

    inventory.import_history([{"year": 2024, "week_number": 1, "category": "declarations",
                               "received": 10}])

    assert db.query(TrackedItem).count() == 0


def test_adjustment_accumulates(db, inventory, current_week):
    inventory.adjust_manual(current_week, "declarations", 5)
    row = inventory.adjust_manual(current_week, Category.DECLARATIONS, -2)

    assert row.manual_adjustment_total == 3
    assert row.received_count == 0


def test_adjustment_is_a_signed_running_sum(db, inventory, current_week):
    """The total is the plain sum of deltas, whatever their order."""
    inventory.adjust_manual(current_week, "reglements", -5)
    row = inventory.adjust_manual(current_week, "reglements", 5)
    assert row.manual_adjustment_total == 0

    inventory.adjust_manual(current_week, "declarations", 5)
    row = inventory.adjust_manual(current_week, "declarations", -5)
    assert row.manual_adjustment_total == 0

    row = inventory.adjust_manual(current_week, "declarations", -3)
    assert row.manual_adjustment_total == -3


def test_adjustment_on_historical_week(db, inventory):
    """Adjusting an unseen week creates its row with zero counters."""
    row = inventory.adjust_manual("2023-W52", "Mails simples", 1)

    assert row.category == Category.MAILS_SIMPLES
    assert row.week_start.isoformat() == "2023-12-25"
    assert row.received_count == 0


def test_adjustment_unknown_category(db, inventory, current_week):
    with pytest.raises(UnknownCategoryError):
        inventory.adjust_manual(current_week, "factures", 1)
    assert db.query(WeeklyAggregate).count() == 0


def test_adjustment_invalid_week(inventory):
    with pytest.raises(InvalidWeekError):
        inventory.adjust_manual("2025-W60", "declarations", 1)


def test_noop_adjustment_keeps_timestamp(db, inventory, clock, current_week):
    row = inventory.adjust_manual(current_week, "declarations", 0)
    first = row.last_updated_at
    clock.now = clock.now + timedelta(minutes=5)

    row = inventory.adjust_manual(current_week, "declarations", 0)

    assert row.last_updated_at == first
