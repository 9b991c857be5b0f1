"""Celery tasks feeding the ledger from background producers."""

import logging
import threading
from datetime import datetime

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from mailstock.celery_app import app as celery_app
from mailstock.config import get_settings
from mailstock.database import SessionLocal
from mailstock.schemas.events import ledger_event_adapter
from mailstock.services.engine import InventoryEngine, load_engine_config

logger = logging.getLogger(__name__)

# One writer lock per worker process
_worker_lock = threading.RLock()


def _build_engine(db: Session) -> InventoryEngine:
    return InventoryEngine(db, load_engine_config(db, get_settings()), lock=_worker_lock)


@celery_app.task(bind=True, max_retries=3)
def apply_item_event(self, payload: dict) -> dict:
    """Apply one queued item event.

    Args:
        payload: JSON form of an ItemArrived, ItemStateChanged or ItemDeleted event

    Returns:
        dict with the ledger outcome
    """
    event = ledger_event_adapter.validate_python(payload)
    db: Session = SessionLocal()
    try:
        result = _build_engine(db).apply_event(event)
        logger.info(f"Applied {event.kind} for {event.identity}: {result.outcome}")
        return result.model_dump()

    except (OperationalError, IntegrityError) as e:
        logger.error(f"Database error applying event for {event.identity}: {e}", exc_info=True)
        if self.request.retries < self.max_retries:
            raise self.retry(exc=e, countdown=10) from e
        raise

    finally:
        db.close()


@celery_app.task(bind=True, max_retries=3)
def ingest_item_events(self, payloads: list[dict]) -> dict:
    """Apply a batch of queued events in one transaction."""
    events = [ledger_event_adapter.validate_python(payload) for payload in payloads]
    db: Session = SessionLocal()
    try:
        result = _build_engine(db).ingest_batch(events)
        return result.model_dump()

    except (OperationalError, IntegrityError) as e:
        logger.error(f"Database error ingesting {len(events)} events: {e}", exc_info=True)
        if self.request.retries < self.max_retries:
            raise self.retry(exc=e, countdown=30) from e
        raise

    finally:
        db.close()


@celery_app.task
def recompute_current_week() -> dict:
    """Recompute the current week from the ledger.

    This task runs periodically via celery-beat.
    """
    db: Session = SessionLocal()
    try:
        engine = _build_engine(db)
        rows = engine.recompute_current_week()
        week = engine.current_week()
        return {
            "week_identifier": week.identifier,
            "categories": {
                row.category.value: {
                    "received": row.received_count,
                    "treated": row.treated_count,
                }
                for row in rows
            },
        }
    finally:
        db.close()


@celery_app.task
def reconcile_location(
    location: str, present_identities: list[str], observed_at: str | None = None
) -> dict:
    """Mark items that left a location as treated, from a periodic folder poll."""
    db: Session = SessionLocal()
    try:
        at = datetime.fromisoformat(observed_at) if observed_at else None
        result = _build_engine(db).reconcile_location(location, present_identities, at)
        return result.model_dump()
    finally:
        db.close()
