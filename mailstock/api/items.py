"""Ledger item lookup endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from mailstock.api.dependencies import get_engine
from mailstock.schemas.item import ItemActivityResponse, LedgerStats, TrackedItemResponse
from mailstock.services.engine import InventoryEngine

router = APIRouter(prefix="/api/v1", tags=["items"])


@router.get("/items/stats", response_model=LedgerStats)
def get_ledger_stats(
    engine: Annotated[InventoryEngine, Depends(get_engine)],
    recent_limit: int = Query(default=20, ge=1, le=100),
):
    """Get live item counts per category and location, with the most recent arrivals."""
    return engine.get_ledger_stats(recent_limit=recent_limit)


@router.get("/items/{identity}", response_model=TrackedItemResponse)
def get_item(
    identity: str,
    engine: Annotated[InventoryEngine, Depends(get_engine)],
):
    """Get the ledger state of an item."""
    item = engine.ledger.get(identity)
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found")
    return item


@router.get("/items/{identity}/activity", response_model=list[ItemActivityResponse])
def get_item_activity(
    identity: str,
    engine: Annotated[InventoryEngine, Depends(get_engine)],
):
    """Get the activity trail of an identity, including reconciliation gaps."""
    return engine.ledger.activity(identity)
