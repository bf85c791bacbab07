"""
Service module for the event timeline.

The timeline store owns every ``LogEvent`` and is the only writer of the
events snapshot. Each mutation builds the new collection, persists it and
only then makes it current, so a failed write leaves the store untouched
and a successful call is never lost.

Typical usage:
    timeline = TimelineStore(store, registry, tz=ZoneInfo("Asia/Shanghai"))
    timeline.load()
    event_id = timeline.append("water", datetime.now(timezone.utc))
    timeline.patch(event_id, {"extra": {"waterMl": 300}})
    for event in timeline.for_day(date.today(), SortOrder.DESCENDING):
        print(event.event_type_id, event.start_time)
"""
from datetime import date, datetime, timezone, tzinfo
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Set, Union

from aws_lambda_powertools import Logger

from healthkey.models.event import EventPatch, ExtraFields, LogEvent
from healthkey.services.constants import EVENTS_KEY, LEGACY_EVENTS_KEY
from healthkey.services.exceptions import (
    AlreadyClosedError,
    InvalidIntervalError,
    NotFoundError,
    UnknownEventTypeError,
)
from healthkey.services.migration import migrate_events
from healthkey.services.registry import CategoryRegistry
from healthkey.services.storage import KeyValueStore, read_snapshot, write_snapshot
from healthkey.services.utils import ensure_aware, local_date, new_id

logger = Logger()


class SortOrder(Enum):
    """Ordering of a day view by start time."""
    ASCENDING = "ascending"  # Detail view
    DESCENDING = "descending"  # Today view, most recent first


class DayView:
    """
    Events of one local calendar day.

    Iterating reads the store's current events each time, so a view can be
    iterated again after the timeline changed.
    """

    def __init__(self, timeline: "TimelineStore", day: date, order: SortOrder):
        self.timeline = timeline
        self.day = day
        self.order = order

    def __iter__(self) -> Iterator[LogEvent]:
        matching = [
            event for event in self.timeline.events()
            if local_date(event.start_time, self.timeline.tz) == self.day
        ]
        matching.sort(
            key=lambda e: e.start_time,
            reverse=self.order == SortOrder.DESCENDING
        )
        return iter(matching)

    def __bool__(self) -> bool:
        return any(True for _ in self)

    def __len__(self) -> int:
        return sum(1 for _ in self)


class TimelineStore:
    """Ordered, write-through collection of log events."""

    def __init__(
        self,
        store: KeyValueStore,
        registry: CategoryRegistry,
        tz: tzinfo = timezone.utc
    ):
        self.store = store
        self.registry = registry
        self.tz = tz
        self._events: Dict[str, LogEvent] = {}

    def load(self) -> "TimelineStore":
        """
        Load and migrate the persisted events.

        Falls back to the legacy events key when no current snapshot exists.
        Unreadable records are dropped by the migration and reported in the
        logs.

        Returns:
            The store itself, for chaining
        """
        snapshot = read_snapshot(self.store, EVENTS_KEY)
        source = EVENTS_KEY
        if snapshot is None:
            snapshot = read_snapshot(self.store, LEGACY_EVENTS_KEY)
            source = LEGACY_EVENTS_KEY
        if snapshot is None:
            self._events = {}
            return self

        result = migrate_events(snapshot, self.tz)
        if result.dropped or result.corrected:
            logger.warning("Events migrated with losses", extra={
                "source_key": source,
                "dropped": result.dropped,
                "corrected": result.corrected
            })
        self._events = {event.id: event for event in result.events}
        logger.info("Loaded timeline", extra={
            "source_key": source,
            "event_count": len(self._events)
        })
        return self

    def _commit(self, events: Dict[str, LogEvent]) -> None:
        """Persist the whole collection, then make it current."""
        write_snapshot(self.store, EVENTS_KEY, serialize_events(events.values()))
        self._events = events

    # Reads

    def events(self) -> List[LogEvent]:
        """All events in insertion order."""
        return list(self._events.values())

    def get(self, event_id: str) -> LogEvent:
        """
        Get an event by id.

        Raises:
            NotFoundError: If the event does not exist
        """
        try:
            return self._events[event_id]
        except KeyError:
            raise NotFoundError(f"Unknown event: {event_id}")

    def for_day(self, day: date, order: SortOrder = SortOrder.DESCENDING) -> DayView:
        """
        Events whose start time falls on ``day`` in local time.

        Args:
            day: Local calendar day
            order: DESCENDING for the today view, ASCENDING for the detail view

        Returns:
            Restartable view over the day's events
        """
        return DayView(self, day, order)

    def dates_with_events(self) -> Set[date]:
        """Local days that have at least one event."""
        return {local_date(event.start_time, self.tz) for event in self._events.values()}

    # Mutations

    def append(self, event_type_id: str, start_time: datetime) -> str:
        """
        Record a new open event.

        Args:
            event_type_id: Registered event type
            start_time: Start instant; naive values are read in local time

        Returns:
            Id of the new event

        Raises:
            UnknownEventTypeError: If the event type is not registered
        """
        if not self.registry.has_event_type(event_type_id):
            raise UnknownEventTypeError(f"Unknown event type: {event_type_id}")

        event = LogEvent(
            id=new_id("e"),
            event_type_id=event_type_id,
            start_time=ensure_aware(start_time, self.tz)
        )
        events = dict(self._events)
        events[event.id] = event
        self._commit(events)
        logger.debug("Appended event", extra={
            "event_id": event.id,
            "event_type_id": event_type_id
        })
        return event.id

    def close(self, event_id: str, end_time: datetime) -> LogEvent:
        """
        Set the end time of an open event.

        An end time earlier than the start is ignored with a warning and the
        event is returned unchanged; fix such entries with ``patch``.

        Raises:
            NotFoundError: If the event does not exist
            AlreadyClosedError: If the event already has an end time
        """
        event = self.get(event_id)
        if event.end_time is not None:
            raise AlreadyClosedError(f"Event already closed: {event_id}")

        end_time = ensure_aware(end_time, self.tz)
        if end_time < event.start_time:
            logger.warning("Ignored close before start time", extra={
                "event_id": event_id,
                "start_time": event.start_time.isoformat(),
                "end_time": end_time.isoformat()
            })
            return event

        closed = event.model_copy(update={"end_time": end_time})
        events = dict(self._events)
        events[event_id] = closed
        self._commit(events)
        return closed

    def patch(self, event_id: str, fields: Union[EventPatch, Mapping[str, Any]]) -> LogEvent:
        """
        Update the times, extras or note of an event.

        Only provided fields change. Extras are merged over the current
        extras; an explicit ``None`` clears a field and ``extra=None`` clears
        them all.

        Args:
            event_id: Event to update
            fields: EventPatch or mapping with ``start_time``, ``end_time``,
                ``extra`` and ``note`` keys

        Returns:
            The updated event

        Raises:
            NotFoundError: If the event does not exist
            InvalidIntervalError: If the result would end before it starts
        """
        event = self.get(event_id)
        if not isinstance(fields, EventPatch):
            fields = EventPatch.model_validate(dict(fields))
        provided = fields.model_fields_set

        start_time = event.start_time
        end_time = event.end_time
        if "start_time" in provided:
            if fields.start_time is None:
                raise InvalidIntervalError("start_time cannot be removed")
            start_time = ensure_aware(fields.start_time, self.tz)
        if "end_time" in provided:
            end_time = ensure_aware(fields.end_time, self.tz) if fields.end_time is not None else None
        if end_time is not None and end_time < start_time:
            raise InvalidIntervalError(
                f"End time {end_time.isoformat()} is before start time {start_time.isoformat()}"
            )

        extra = merge_extra(event.extra, fields)
        updated = LogEvent(
            id=event.id,
            event_type_id=event.event_type_id,
            start_time=start_time,
            end_time=end_time,
            extra=extra
        )
        events = dict(self._events)
        events[event_id] = updated
        self._commit(events)
        return updated

    def delete(self, event_id: str) -> None:
        """
        Permanently remove an event.

        Raises:
            NotFoundError: If the event does not exist
        """
        self.get(event_id)
        events = {k: v for k, v in self._events.items() if k != event_id}
        self._commit(events)
        logger.info("Deleted event", extra={"event_id": event_id})

    def delete_by_event_type(self, event_type_id: str) -> int:
        """
        Remove every event of a type.

        Returns:
            Number of deleted events
        """
        events = {k: v for k, v in self._events.items() if v.event_type_id != event_type_id}
        removed = len(self._events) - len(events)
        if removed:
            self._commit(events)
        return removed


def merge_extra(current: Optional[ExtraFields], fields: EventPatch) -> Optional[ExtraFields]:
    """
    Merge the extras and note of a patch over the current extras.

    Returns:
        Merged extras, or None when nothing remains
    """
    provided = fields.model_fields_set
    if "extra" not in provided and "note" not in provided:
        return current

    merged: Dict[str, Any] = current.model_dump() if current else {}
    if "extra" in provided:
        if fields.extra is None:
            merged = {}
        else:
            changed = fields.extra.model_fields_set | set(fields.extra.model_extra or {})
            patched = fields.extra.model_dump()
            merged.update({k: patched[k] for k in changed})
    if "note" in provided:
        merged["note"] = fields.note

    merged = {k: v for k, v in merged.items() if v is not None}
    if not merged:
        return None
    return ExtraFields.model_validate(merged)


def serialize_events(events) -> List[Dict[str, Any]]:
    """Events in the persisted snapshot shape."""
    return [event.model_dump(mode="json", exclude_none=True) for event in events]
