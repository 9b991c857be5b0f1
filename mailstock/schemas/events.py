"""Canonical item event schemas accepted at the ledger boundary.

Producers (initial folder scan, live event stream, reconciliation poll) translate
their own payloads into these models before handing them to the engine.
"""

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field, TypeAdapter


class ItemArrived(BaseModel):
    """An item was observed in a monitored location."""

    kind: Literal["arrived"] = "arrived"
    identity: str = Field(..., min_length=1, max_length=512)
    location: str = Field(..., min_length=1, max_length=1024)
    timestamp: datetime
    is_read: bool = False


class ItemStateChanged(BaseModel):
    """Read state, location or treated flag of a known item changed."""

    kind: Literal["state_changed"] = "state_changed"
    identity: str = Field(..., min_length=1, max_length=512)
    is_read: bool | None = None
    location: str | None = Field(None, min_length=1, max_length=1024)
    treated: bool | None = None
    # When the change was observed; defaults to the engine clock
    timestamp: datetime | None = None


class ItemDeleted(BaseModel):
    """An item was deleted at the source."""

    kind: Literal["deleted"] = "deleted"
    identity: str = Field(..., min_length=1, max_length=512)
    timestamp: datetime


LedgerEvent = Annotated[ItemArrived | ItemStateChanged | ItemDeleted, Field(discriminator="kind")]

ledger_event_adapter = TypeAdapter(LedgerEvent)


class EventBatch(BaseModel):
    """A batch of events applied in one transaction (e.g. an initial scan)."""

    events: list[LedgerEvent] = Field(..., max_length=10000)


class ReconciliationRequest(BaseModel):
    """Identities currently present in a location, reported by a periodic poll."""

    location: str = Field(..., min_length=1, max_length=1024)
    present_identities: list[str]
    observed_at: datetime | None = None


class EventResult(BaseModel):
    """Outcome of applying one event."""

    identity: str
    outcome: str
    week_identifier: str


class BatchResult(BaseModel):
    """Outcome counts of a batch."""

    created: int = 0
    updated: int = 0
    unchanged: int = 0
    ignored: int = 0
    week_identifier: str


class ReconciliationResult(BaseModel):
    """Items marked treated because they left the location."""

    location: str
    treated: list[str]
    week_identifier: str
