"""FastAPI dependencies for the database and the inventory engine."""

import threading
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from mailstock.config import get_settings
from mailstock.database import get_db
from mailstock.services.engine import InventoryEngine, load_engine_config


def get_write_lock(request: Request) -> threading.RLock:
    """Process-wide writer lock created at startup."""
    lock = getattr(request.app.state, "write_lock", None)
    if lock is None:
        lock = request.app.state.write_lock = threading.RLock()
    return lock


def get_engine(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
) -> InventoryEngine:
    """Get an inventory engine bound to the request's session."""
    config = load_engine_config(db, get_settings())
    clock = getattr(request.app.state, "clock", None)
    return InventoryEngine(db, config, clock=clock, lock=get_write_lock(request))
