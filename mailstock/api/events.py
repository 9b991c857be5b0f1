"""Item event ingestion endpoints used by mail producers."""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, HTTPException, status
from pydantic import ValidationError

from mailstock.api.dependencies import get_engine
from mailstock.schemas.events import (
    BatchResult,
    EventBatch,
    EventResult,
    ReconciliationRequest,
    ReconciliationResult,
    ledger_event_adapter,
)
from mailstock.services.engine import InventoryEngine

router = APIRouter(prefix="/api/v1", tags=["events"])


def parse_event(payload: dict[str, Any]):
    """Validate a payload against the canonical event schema."""
    try:
        return ledger_event_adapter.validate_python(payload)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.errors(include_url=False, include_context=False),
        ) from e


@router.post("/events", response_model=EventResult)
def ingest_event(
    payload: Annotated[dict[str, Any], Body()],
    engine: Annotated[InventoryEngine, Depends(get_engine)],
):
    """Apply one item event and recompute the current week."""
    return engine.apply_event(parse_event(payload))


@router.post("/events/batch", response_model=BatchResult)
def ingest_batch(
    batch: EventBatch,
    engine: Annotated[InventoryEngine, Depends(get_engine)],
):
    """Apply a batch of events (e.g. an initial folder scan) in one transaction."""
    return engine.ingest_batch(batch.events)


@router.post("/events/async", status_code=status.HTTP_202_ACCEPTED)
def enqueue_event(payload: Annotated[dict[str, Any], Body()]):
    """Queue an event for background processing."""
    from mailstock.tasks.ledger import apply_item_event

    event = parse_event(payload)
    apply_item_event.delay(event.model_dump(mode="json"))
    return {"status": "queued", "identity": event.identity}


@router.post("/reconciliation", response_model=ReconciliationResult)
def reconcile(
    request: ReconciliationRequest,
    engine: Annotated[InventoryEngine, Depends(get_engine)],
):
    """Mark items no longer present in a location as treated."""
    return engine.reconcile_location(
        request.location, request.present_identities, request.observed_at
    )
