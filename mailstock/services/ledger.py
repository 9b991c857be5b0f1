"""Item ledger: identity-keyed lifecycle state reconciled from many producers."""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from sqlalchemy.orm import Session

from mailstock.exceptions import InvalidTransitionError
from mailstock.models.enums import ActivityType, ItemStatus
from mailstock.models.item_activity import ItemActivity
from mailstock.models.tracked_item import TrackedItem
from mailstock.schemas.events import ItemArrived, ItemDeleted, ItemStateChanged
from mailstock.services.calendar import to_utc, week_of
from mailstock.services.category_resolver import CategoryResolver, normalize_location

logger = logging.getLogger(__name__)


class UpsertOutcome(str, Enum):
    """Result of applying one observation to the ledger."""

    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    IGNORED = "ignored"


@dataclass(frozen=True)
class ObservedAttributes:
    """What a producer observed about an item at a point in time.

    None means "not reported"; only reported attributes are applied.
    """

    observed_at: datetime
    arrival: bool = False
    location: str | None = None
    is_read: bool | None = None
    treated: bool | None = None
    deleted: bool = False


def observed_from_event(
    event: ItemArrived | ItemStateChanged | ItemDeleted, now: datetime
) -> ObservedAttributes:
    """Translate a canonical event into ledger observations."""
    if isinstance(event, ItemArrived):
        return ObservedAttributes(
            observed_at=event.timestamp,
            arrival=True,
            location=event.location,
            is_read=event.is_read,
        )
    if isinstance(event, ItemDeleted):
        return ObservedAttributes(observed_at=event.timestamp, deleted=True)
    return ObservedAttributes(
        observed_at=event.timestamp or now,
        location=event.location,
        is_read=event.is_read,
        treated=event.treated,
    )


class ItemLedger:
    """Single source of truth for per-item state.

    Mutations only flush; the caller owns the transaction so a ledger change
    and the matching aggregate recompute commit together.
    """

    def __init__(
        self,
        db: Session,
        resolver: CategoryResolver,
        read_as_treated: bool = False,
        timezone: str = "UTC",
        clock: Callable[[], datetime] | None = None,
    ):
        self.db = db
        self.resolver = resolver
        self.read_as_treated = read_as_treated
        self.timezone = timezone
        self.clock = clock or (lambda: datetime.now(UTC))

    def get(self, identity: str) -> TrackedItem | None:
        return self.db.query(TrackedItem).filter(TrackedItem.identity == identity).first()

    def activity(self, identity: str) -> list[ItemActivity]:
        return (
            self.db.query(ItemActivity)
            .filter(ItemActivity.identity == identity)
            .order_by(ItemActivity.occurred_at, ItemActivity.id)
            .all()
        )

    def apply(self, event: ItemArrived | ItemStateChanged | ItemDeleted) -> UpsertOutcome:
        return self.upsert(event.identity, observed_from_event(event, self.clock()))

    def upsert(self, identity: str, observed: ObservedAttributes) -> UpsertOutcome:
        """Create or update the item for identity.

        Only an arrival creates an item. Any other observation of an unknown
        identity is a reconciliation gap: producers are not ordered, so a later
        arrival may still bring the item in.
        """
        observed_at = to_utc(observed.observed_at)
        item = self.get(identity)

        if item is None:
            if not observed.arrival:
                self._record_gap(identity, observed, observed_at)
                return UpsertOutcome.IGNORED
            self._create(identity, observed, observed_at)
            return UpsertOutcome.CREATED

        if item.status == ItemStatus.DELETED:
            logger.debug(f"Item {identity} is deleted, ignoring later observation")
            return UpsertOutcome.UNCHANGED

        changed = self._apply_changes(item, observed, observed_at)
        if changed:
            self.db.flush()
            return UpsertOutcome.UPDATED
        return UpsertOutcome.UNCHANGED

    def missing_from(self, location: str, present_identities: Iterable[str]) -> list[TrackedItem]:
        """Live, untreated items filed at location that the producer no longer reports.

        Locations are compared in normalized form, so separator style, trailing
        separators, case and accents do not matter.
        """
        present = set(present_identities)
        candidates = (
            self.db.query(TrackedItem)
            .filter(
                TrackedItem.location_key == normalize_location(location),
                TrackedItem.deleted_at.is_(None),
                TrackedItem.treated_at.is_(None),
            )
            .order_by(TrackedItem.id)
            .all()
        )
        return [item for item in candidates if item.identity not in present]

    def _create(self, identity: str, observed: ObservedAttributes, observed_at: datetime) -> None:
        category = self.resolver.resolve(observed.location)
        item = TrackedItem(
            identity=identity,
            location=observed.location or "",
            location_key=normalize_location(observed.location or ""),
            category=category,
            status=ItemStatus.READ if observed.is_read else ItemStatus.ARRIVED,
            arrived_at=observed_at,
            arrival_week=week_of(observed_at, self.timezone).identifier,
            is_read=bool(observed.is_read),
            is_treated=False,
        )
        self.db.add(item)
        self._record(
            identity,
            ActivityType.ARRIVED,
            observed_at,
            {"location": item.location, "category": category.value},
        )
        logger.info(f"Item {identity} arrived in {category.value} ({item.arrival_week})")

        # Arriving already read is not an unread->read transition, so the
        # read-as-treated policy does not apply here.
        if observed.treated:
            self._stamp_treated(item, observed_at, reason="explicit")
        if observed.deleted:
            self._delete(item, observed_at)
        self.db.flush()

    def _apply_changes(
        self, item: TrackedItem, observed: ObservedAttributes, observed_at: datetime
    ) -> bool:
        changed = False

        if observed.location is not None and observed.location != item.location:
            previous_category = item.category
            item.location = observed.location
            item.location_key = normalize_location(observed.location)
            item.category = self.resolver.resolve(observed.location)
            changed = True
            if item.category != previous_category:
                self._record(
                    item.identity,
                    ActivityType.RECLASSIFIED,
                    observed_at,
                    {"from": previous_category.value, "to": item.category.value},
                )

        if observed.is_read is not None and observed.is_read != item.is_read:
            item.is_read = observed.is_read
            changed = True
            self._record(
                item.identity,
                ActivityType.READ if observed.is_read else ActivityType.UNREAD,
                observed_at,
            )
            if observed.is_read and self.read_as_treated and item.treated_at is None:
                self._stamp_treated(item, observed_at, reason="read")

        if observed.treated is not None:
            if observed.treated and item.treated_at is None:
                self._stamp_treated(item, observed_at, reason="explicit")
                changed = True
            elif observed.treated != item.is_treated:
                # treated_at is monotonic; only the legacy flag follows the producer
                item.is_treated = observed.treated
                changed = True
                if not observed.treated:
                    self._record(item.identity, ActivityType.UNTREATED_FLAG, observed_at)

        if observed.deleted:
            self._delete(item, observed_at)
            changed = True

        self._transition(item)
        return changed

    def _stamp_treated(self, item: TrackedItem, at: datetime, reason: str) -> None:
        if item.treated_at is not None:
            return
        # Producer clocks may disagree; treatment never precedes arrival
        treated_at = max(at, to_utc(item.arrived_at))
        item.treated_at = treated_at
        item.treated_week = week_of(treated_at, self.timezone).identifier
        item.is_treated = True
        self._record(
            item.identity,
            ActivityType.TREATED,
            treated_at,
            {"reason": reason, "week": item.treated_week},
        )
        self._transition(item)
        logger.info(f"Item {item.identity} treated ({reason}) in {item.treated_week}")

    def _delete(self, item: TrackedItem, at: datetime) -> None:
        if item.is_deleted:
            return
        self._stamp_treated(item, at, reason="deleted")
        item.soft_delete(max(at, to_utc(item.arrived_at)))
        self._record(item.identity, ActivityType.DELETED, at)
        self._transition(item)

    def _transition(self, item: TrackedItem) -> None:
        """Derive the tagged status from the item's fields and check the move."""
        if item.is_deleted:
            target = ItemStatus.DELETED
        elif item.treated_at is not None:
            target = ItemStatus.TREATED
        elif item.is_read:
            target = ItemStatus.READ
        else:
            target = ItemStatus.ARRIVED

        current = ItemStatus(item.status) if item.status is not None else ItemStatus.ARRIVED
        if not current.can_transition_to(target):
            raise InvalidTransitionError(item.identity, current.value, target.value)
        item.status = target

    def _record_gap(
        self, identity: str, observed: ObservedAttributes, observed_at: datetime
    ) -> None:
        details = {
            "location": observed.location,
            "is_read": observed.is_read,
            "treated": observed.treated,
            "deleted": observed.deleted,
        }
        logger.warning(
            f"Reconciliation gap: observation for unknown item {identity} dropped ({details})"
        )
        self._record(identity, ActivityType.GAP, observed_at, details)
        self.db.flush()

    def _record(
        self,
        identity: str,
        activity_type: ActivityType,
        occurred_at: datetime,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.db.add(
            ItemActivity(
                identity=identity,
                activity_type=activity_type,
                occurred_at=occurred_at,
                details=details,
                recorded_at=self.clock(),
            )
        )
