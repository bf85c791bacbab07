"""
Engine wiring the registry, timeline and derived views over one store.

Typical usage:
    engine = HealthKeyEngine(FileKeyValueStore(Path("~/.healthkey").expanduser()))
    engine.load()
    engine.tap("water")
    lines = engine.aggregator.summarize(engine.today())
"""
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Optional

from aws_lambda_powertools import Logger

from healthkey.services.calendar_export import CalendarExporter
from healthkey.services.constants import DOUBLE_TAP_THRESHOLD, PAIRING_WINDOW
from healthkey.services.day_meta import DayMetaStore
from healthkey.services.registry import CategoryRegistry
from healthkey.services.storage import KeyValueStore
from healthkey.services.summary import DayAggregator
from healthkey.services.tap_pairing import TapOutcome, TapPairingController
from healthkey.services.timeline import TimelineStore
from healthkey.services.utils import Clock, today, utc_now

logger = Logger()


class HealthKeyEngine:
    """
    All timeline components sharing one key-value store.

    Args:
        store: Persistence backend
        tz: Timezone that defines calendar days
        clock: Source of the current instant
        double_tap_threshold: Passed to the tap-pairing controller
        pairing_window: Passed to the tap-pairing controller
    """

    def __init__(
        self,
        store: KeyValueStore,
        tz: tzinfo = timezone.utc,
        clock: Clock = utc_now,
        double_tap_threshold: Optional[timedelta] = DOUBLE_TAP_THRESHOLD,
        pairing_window: timedelta = PAIRING_WINDOW
    ):
        self.store = store
        self.tz = tz
        self.clock = clock
        self.registry = CategoryRegistry(store)
        self.timeline = TimelineStore(store, self.registry, tz=tz)
        self.day_metas = DayMetaStore(store, tz=tz, clock=clock)
        self.controller = TapPairingController(
            self.timeline,
            clock=clock,
            double_tap_threshold=double_tap_threshold,
            pairing_window=pairing_window
        )
        self.aggregator = DayAggregator(self.timeline, self.registry, self.day_metas)
        self.exporter = CalendarExporter(self.timeline, self.registry, clock=clock)

    def load(self) -> "HealthKeyEngine":
        """Load the catalog first so migrated events can be checked against it."""
        self.registry.load()
        self.timeline.load()
        self.day_metas.load()
        return self

    def today(self) -> date:
        return today(self.clock, self.tz)

    def tap(self, event_type_id: str, at: Optional[datetime] = None) -> TapOutcome:
        return self.controller.tap(event_type_id, at)

    def delete_event_type(self, event_type_id: str) -> int:
        """
        Delete a user-defined event type and every event logged with it.

        Args:
            event_type_id: Event type to delete

        Returns:
            Number of deleted log events

        Raises:
            UnknownEventTypeError: If the event type does not exist
            ProtectedEntityError: If the event type is built-in
            StorageError: If a write fails; events are removed before the
                definition, so nothing is left pointing at a missing type
        """
        self.registry.check_deletable_event_type(event_type_id)
        removed = self.timeline.delete_by_event_type(event_type_id)
        self.registry.delete_event_type(event_type_id)
        if self.controller.pending and self.controller.pending.event_type_id == event_type_id:
            self.controller.reset()
        logger.info("Cascaded event type deletion", extra={
            "event_type_id": event_type_id,
            "removed_events": removed
        })
        return removed
