"""Inventory engine: the single owner of the ledger and weekly rows.

Every mutation runs under the engine lock inside one database transaction, so a
ledger change is never visible without its current-week recompute (and the
other way round). All operations are idempotent and safe to retry.
"""

import logging
import threading
from collections.abc import Callable, Iterable, Mapping
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mailstock.config import Settings
from mailstock.exceptions import UnknownCategoryError
from mailstock.models.app_setting import READ_AS_TREATED_KEY, AppSetting
from mailstock.models.category_config import CategoryConfig
from mailstock.models.enums import Category
from mailstock.models.weekly_aggregate import WeeklyAggregate
from mailstock.schemas.events import (
    BatchResult,
    EventResult,
    ItemArrived,
    ItemDeleted,
    ItemStateChanged,
    ReconciliationResult,
)
from mailstock.schemas.item import LedgerStats
from mailstock.schemas.weekly import ImportResult, WeeklyHistoryPage, WeekReport
from mailstock.services.adjustments import ManualAdjustmentStore
from mailstock.services.aggregator import WeeklyAggregator
from mailstock.services.calendar import WeekInfo, to_utc, week_for, week_from_identifier
from mailstock.services.carry_over import CarryOverCalculator
from mailstock.services.category_resolver import CategoryResolver, lookup_category
from mailstock.services.history_import import HistoryImporter
from mailstock.services.ledger import ItemLedger, ObservedAttributes, UpsertOutcome
from mailstock.services.reporting import WeeklyReportService, ledger_stats

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class EngineConfig:
    """Configuration injected into the engine."""

    category_map: dict[str, str] = field(default_factory=dict)
    default_category: Category = Category.MAILS_SIMPLES
    read_as_treated: bool = False
    timezone: str = "UTC"


def load_engine_config(db: Session, settings: Settings) -> EngineConfig:
    """Build the engine configuration from settings and the persisted tables."""
    default = lookup_category(settings.default_category)
    if default is None:
        raise UnknownCategoryError(settings.default_category)

    category_map = {
        config.location: Category(config.category).value
        for config in db.query(CategoryConfig).order_by(CategoryConfig.id).all()
    }
    read_as_treated = settings.count_read_as_treated
    stored = db.query(AppSetting).filter(AppSetting.key == READ_AS_TREATED_KEY).first()
    if stored is not None:
        read_as_treated = stored.value.strip().lower() in TRUE_VALUES

    return EngineConfig(
        category_map=category_map,
        default_category=default,
        read_as_treated=read_as_treated,
        timezone=settings.report_timezone,
    )


class InventoryEngine:
    """Composes resolver, ledger, aggregator, adjustments and carry-over."""

    def __init__(
        self,
        db: Session,
        config: EngineConfig | None = None,
        clock: Callable[[], datetime] | None = None,
        lock: AbstractContextManager[Any] | None = None,
    ):
        self.db = db
        self.config = config or EngineConfig()
        self.clock = clock or (lambda: datetime.now(UTC))
        self.lock = lock or threading.RLock()
        self.categories = tuple(Category)

        self.resolver = CategoryResolver(self.config.category_map, self.config.default_category)
        self.ledger = ItemLedger(
            db,
            self.resolver,
            read_as_treated=self.config.read_as_treated,
            timezone=self.config.timezone,
            clock=self.clock,
        )
        self.aggregator = WeeklyAggregator(
            db, self.categories, timezone=self.config.timezone, clock=self.clock
        )
        self.adjustments = ManualAdjustmentStore(db, clock=self.clock)
        self.carry_over = CarryOverCalculator(db, self.categories)
        self.reports = WeeklyReportService(db, self.categories)
        self.importer = HistoryImporter(db, self.resolver, clock=self.clock)

    @contextmanager
    def transaction(self):
        """Serialize writers and commit or roll back as one unit."""
        with self.lock:
            try:
                yield
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise

    def _write(self, operation: Callable[[], T]) -> T:
        """Run operation in one transaction, re-applying it once after a lost race.

        Writers in other processes hold their own lock, so two of them may
        insert the same identity or (week, category) row. The loser's commit
        fails on the unique constraint; after the rollback the second pass reads
        the committed row and resolves to an update or a no-op.
        """
        try:
            with self.transaction():
                return operation()
        except IntegrityError as e:
            logger.info(f"Concurrent writer won a unique key, re-applying: {e.orig}")
            with self.transaction():
                return operation()

    # Ledger operations

    def apply_event(self, event: ItemArrived | ItemStateChanged | ItemDeleted) -> EventResult:
        """Upsert one event and recompute the current week atomically."""

        def operation() -> UpsertOutcome:
            outcome = self.ledger.apply(event)
            if outcome != UpsertOutcome.IGNORED:
                self.aggregator.recompute_current_week()
            return outcome

        outcome = self._write(operation)
        return EventResult(
            identity=event.identity,
            outcome=outcome.value,
            week_identifier=self.aggregator.current_week().identifier,
        )

    def upsert(self, identity: str, observed: ObservedAttributes) -> UpsertOutcome:
        def operation() -> UpsertOutcome:
            outcome = self.ledger.upsert(identity, observed)
            if outcome != UpsertOutcome.IGNORED:
                self.aggregator.recompute_current_week()
            return outcome

        return self._write(operation)

    def ingest_batch(
        self, events: Iterable[ItemArrived | ItemStateChanged | ItemDeleted]
    ) -> BatchResult:
        """Apply a batch (e.g. an initial folder scan) with a single recompute."""
        events = list(events)

        def operation() -> dict[UpsertOutcome, int]:
            counts = dict.fromkeys(UpsertOutcome, 0)
            for event in events:
                counts[self.ledger.apply(event)] += 1
            self.aggregator.recompute_current_week()
            return counts

        counts = self._write(operation)
        logger.info(
            f"Batch applied: {counts[UpsertOutcome.CREATED]} created, "
            f"{counts[UpsertOutcome.UPDATED]} updated, "
            f"{counts[UpsertOutcome.IGNORED]} ignored"
        )
        return BatchResult(
            created=counts[UpsertOutcome.CREATED],
            updated=counts[UpsertOutcome.UPDATED],
            unchanged=counts[UpsertOutcome.UNCHANGED],
            ignored=counts[UpsertOutcome.IGNORED],
            week_identifier=self.aggregator.current_week().identifier,
        )

    def reconcile_location(
        self,
        location: str,
        present_identities: Iterable[str],
        observed_at: datetime | None = None,
    ) -> ReconciliationResult:
        """Mark items that left a monitored location as treated."""
        at = to_utc(observed_at) if observed_at else self.clock()
        present = list(present_identities)

        def operation() -> list[str]:
            missing = [item.identity for item in self.ledger.missing_from(location, present)]
            for identity in missing:
                self.ledger.upsert(identity, ObservedAttributes(observed_at=at, treated=True))
            self.aggregator.recompute_current_week()
            return missing

        treated = self._write(operation)
        if treated:
            logger.info(f"Reconciliation of '{location}': {len(treated)} item(s) left, treated")
        return ReconciliationResult(
            location=location,
            treated=treated,
            week_identifier=self.aggregator.current_week().identifier,
        )

    # Weekly rows

    def recompute_current_week(self) -> list[WeeklyAggregate]:
        return self._write(self.aggregator.recompute_current_week)

    def rebuild_week(self, week_identifier: str) -> list[WeeklyAggregate]:
        """Explicitly rederive a (possibly historical) week from the ledger."""
        week = week_from_identifier(week_identifier)
        rows = self._write(lambda: self.aggregator.recompute_week(week))
        logger.info(f"Rebuilt {week.identifier} from the ledger")
        return rows

    def adjust_manual(
        self, week_identifier: str, category: str | Category, delta: int
    ) -> WeeklyAggregate:
        return self._write(lambda: self.adjustments.adjust(week_identifier, category, delta))

    def import_history(self, rows: Iterable[Mapping[str, Any]]) -> ImportResult:
        rows = list(rows)
        return self._write(lambda: self.importer.import_rows(rows))

    # Configuration

    def map_location(
        self, location: str, category: str | Category, display_name: str | None = None
    ) -> CategoryConfig:
        """Persist the category of a location.

        Engines built afterwards resolve with it. Existing items keep their
        category until their location is observed again.
        """
        resolved = lookup_category(category)
        if resolved is None:
            raise UnknownCategoryError(category)

        def operation() -> CategoryConfig:
            config = (
                self.db.query(CategoryConfig).filter(CategoryConfig.location == location).first()
            )
            if config:
                config.category = resolved
                if display_name is not None:
                    config.display_name = display_name
            else:
                config = CategoryConfig(
                    location=location, category=resolved, display_name=display_name
                )
                self.db.add(config)
            self.db.flush()
            return config

        config = self._write(operation)
        self.db.refresh(config)
        logger.info(f"Location {location!r} mapped to {resolved.value}")
        return config

    def unmap_location(self, location: str) -> bool:
        """Remove a location mapping. Returns False when none was stored."""

        def operation() -> bool:
            config = (
                self.db.query(CategoryConfig).filter(CategoryConfig.location == location).first()
            )
            if config is None:
                return False
            self.db.delete(config)
            return True

        return self._write(operation)

    def set_read_as_treated(self, enabled: bool) -> None:
        """Store the read-as-treated policy for engines built afterwards."""
        value = "true" if enabled else "false"

        def operation() -> None:
            stored = self.db.query(AppSetting).filter(AppSetting.key == READ_AS_TREATED_KEY).first()
            if stored:
                stored.value = value
            else:
                self.db.add(
                    AppSetting(
                        key=READ_AS_TREATED_KEY,
                        value=value,
                        description="Count the first read of an untreated item as treated",
                    )
                )

        self._write(operation)
        logger.info(f"Read-as-treated policy set to {value}")

    # Reporting (read-only)

    def current_week(self) -> WeekInfo:
        return self.aggregator.current_week()

    def stock_before(self, year: int, week_number: int) -> dict[Category, int]:
        week = week_for(year, week_number)
        return self.carry_over.stock_before(week.year, week.week_number)

    def get_weekly_aggregate(self, week_identifier: str) -> WeekReport:
        return self.reports.week_report(week_from_identifier(week_identifier))

    def get_weekly_history_page(self, page: int, page_size: int) -> WeeklyHistoryPage:
        return self.reports.history_page(page, page_size)

    def get_current_week_snapshot(self) -> WeekReport:
        return self.reports.week_report(self.current_week())

    def get_ledger_stats(self, recent_limit: int = 20) -> LedgerStats:
        return ledger_stats(
            self.db,
            self.clock(),
            self.categories,
            timezone=self.config.timezone,
            recent_limit=recent_limit,
        )
