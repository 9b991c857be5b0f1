"""Tests for engine transactions and configuration writes."""

import logging
import threading
from datetime import UTC, datetime
from unittest.mock import patch

import pytest
from sqlalchemy.orm import sessionmaker

from mailstock.config import get_settings
from mailstock.exceptions import UnknownCategoryError
from mailstock.models.app_setting import AppSetting
from mailstock.models.category_config import CategoryConfig
from mailstock.models.enums import Category
from mailstock.models.item_activity import ItemActivity
from mailstock.models.tracked_item import TrackedItem
from mailstock.models.weekly_aggregate import WeeklyAggregate
from mailstock.schemas.events import ItemArrived
from mailstock.services.engine import EngineConfig, InventoryEngine, load_engine_config

ARRIVAL = datetime(2025, 3, 10, 9, 0, tzinfo=UTC)


def arrived(identity="msg-1", location="Déclarations"):
    return ItemArrived(identity=identity, location=location, timestamp=ARRIVAL)


def test_engine_accepts_any_lock(db, clock):
    """A plain, non-reentrant lock works as the writer lock."""
    engine = InventoryEngine(db, EngineConfig(), clock=clock, lock=threading.Lock())

    assert engine.apply_event(arrived()).outcome == "created"


def test_failed_recompute_rolls_back_ledger_change(db, inventory):
    """A ledger upsert and its recompute commit together or not at all."""
    with (
        patch.object(
            inventory.aggregator, "recompute_current_week", side_effect=RuntimeError("boom")
        ),
        pytest.raises(RuntimeError),
    ):
        inventory.apply_event(arrived())

    assert db.query(TrackedItem).count() == 0
    assert db.query(ItemActivity).count() == 0
    assert db.query(WeeklyAggregate).count() == 0

    result = inventory.apply_event(arrived())

    assert result.outcome == "created"
    assert db.query(TrackedItem).count() == 1


def test_lost_insert_race_is_reapplied(db, inventory, clock, caplog):
    """A writer whose insert loses to another session's commit re-applies once."""
    caplog.set_level(logging.INFO, logger="mailstock.services.engine")
    inventory.apply_event(arrived("dup"))

    other_session = sessionmaker(autocommit=False, autoflush=False, bind=db.get_bind())()
    other = InventoryEngine(other_session, EngineConfig(), clock=clock)
    real_get = other.ledger.get
    calls = []

    def stale_get(identity):
        # First read misses the row the other session already committed
        calls.append(identity)
        return None if len(calls) == 1 else real_get(identity)

    try:
        with patch.object(other.ledger, "get", side_effect=stale_get):
            result = other.apply_event(arrived("dup"))
    finally:
        other_session.close()

    assert result.outcome == "unchanged"
    assert len(calls) == 2
    assert db.query(TrackedItem).filter_by(identity="dup").count() == 1
    assert "re-applying" in caplog.text


def test_map_location(db, inventory):
    config = inventory.map_location("Inbox/Taxes", "Déclarations", display_name="Taxes")
    assert config.category == Category.DECLARATIONS

    config = inventory.map_location("Inbox/Taxes", Category.REGLEMENTS)

    assert config.display_name == "Taxes"
    assert db.query(CategoryConfig).count() == 1
    stored = load_engine_config(db, get_settings())
    assert stored.category_map == {"Inbox/Taxes": "reglements"}


def test_map_location_unknown_category(db, inventory):
    with pytest.raises(UnknownCategoryError):
        inventory.map_location("Inbox/Taxes", "factures")
    assert db.query(CategoryConfig).count() == 0


def test_map_location_failure_rolls_back(db, inventory):
    with patch.object(db, "flush", side_effect=RuntimeError("boom")), pytest.raises(RuntimeError):
        inventory.map_location("Inbox/Taxes", "declarations")

    assert db.query(CategoryConfig).count() == 0


def test_unmap_location(db, inventory):
    inventory.map_location("Inbox/Taxes", "declarations")

    assert inventory.unmap_location("Inbox/Taxes") is True
    assert inventory.unmap_location("Inbox/Taxes") is False
    assert db.query(CategoryConfig).count() == 0


def test_set_read_as_treated(db, inventory):
    inventory.set_read_as_treated(True)
    assert load_engine_config(db, get_settings()).read_as_treated is True

    inventory.set_read_as_treated(False)

    assert load_engine_config(db, get_settings()).read_as_treated is False
    assert db.query(AppSetting).count() == 1
