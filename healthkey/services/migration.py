"""
Service module for normalizing persisted log events.

Older versions of the app stored events as ``{id, eventDefId, timestamp,
extras}`` with separate urine/stool color fields. This module turns records
of any known version into current ``LogEvent`` objects.

Typical usage:
    result = migrate_events(json.loads(raw))
    if result.dropped:
        logger.warning("Dropped unreadable events", extra={"dropped": result.dropped})
    events = result.events
"""
from dataclasses import dataclass, field
from datetime import timezone, tzinfo
from typing import Any, Dict, List, Optional, Tuple

from aws_lambda_powertools import Logger
from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from healthkey.models.event import ExtraFields, LogEvent
from healthkey.services.utils import new_id, parse_instant

logger = Logger()

EVENT_TYPE_ALIASES = ("event_type_id", "eventTypeId", "eventDefId", "eventType", "type")
START_ALIASES = ("start_time", "startTime", "timestamp", "time", "start")
END_ALIASES = ("end_time", "endTime", "end")
EXTRA_ALIASES = ("extra", "extras")
COLOR_ALIASES = ("excretion_color", "excretionColor", "urineColor", "stoolColor", "color")
NOTE_ALIASES = ("note", "notes")

KNOWN_KEYS = {"id", *EVENT_TYPE_ALIASES, *START_ALIASES, *END_ALIASES, *EXTRA_ALIASES}


@dataclass
class MigrationResult:
    """Outcome of a migration run."""
    events: List[LogEvent] = field(default_factory=list)
    dropped: int = 0  # Records without a usable start instant or event type
    corrected: int = 0  # Records whose end time preceded the start and was removed


def _first_present(record: Dict[str, Any], aliases) -> Any:
    return _first_alias(record, aliases)[1]


def _first_alias(record: Dict[str, Any], aliases) -> Tuple[Optional[str], Any]:
    """The first alias with a usable value, and that value."""
    for alias in aliases:
        value = record.get(alias)
        if value is not None and value != "":
            return alias, value
    return None, None


def _normalize_extra(record: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Collect extras from every place older versions kept them.

    Unrecognized top-level keys are moved into the extras so that no stored
    information is lost.
    """
    extra: Dict[str, Any] = {}
    for alias in EXTRA_ALIASES:
        value = record.get(alias)
        if isinstance(value, dict):
            extra.update(value)

    for key, value in record.items():
        if key not in KNOWN_KEYS:
            extra.setdefault(key, value)

    # Only the alias that is used is consumed; a second color (urine and
    # stool on one record) stays under its own key.
    color_alias, color = _first_alias(extra, COLOR_ALIASES)
    if color_alias is not None:
        extra.pop(color_alias)
        extra["excretion_color"] = color
    note_alias, note = _first_alias(extra, NOTE_ALIASES)
    if note_alias is not None:
        extra.pop(note_alias)
        extra["note"] = str(note)

    return extra or None


def _validate_extra(extra: Dict[str, Any], event_id: str) -> ExtraFields:
    """Validate extras, discarding individual fields that cannot be parsed."""
    try:
        return ExtraFields.model_validate(extra)
    except ValidationError as e:
        invalid = {str(error["loc"][0]) for error in e.errors() if error["loc"]}
        logger.warning("Discarded invalid extra fields", extra={
            "event_id": event_id,
            "fields": sorted(invalid)
        })
        return ExtraFields.model_validate({
            k: v for k, v in extra.items()
            if k not in invalid and to_camel(k) not in invalid
        })


def migrate_record(record: Any, tz: tzinfo = timezone.utc) -> Optional[LogEvent]:
    """
    Convert a single persisted record into a ``LogEvent``.

    Args:
        record: Raw record of any known schema version
        tz: Timezone assumed for naive timestamps

    Returns:
        Migrated event, or None if the record has no usable start instant or
        event type
    """
    if not isinstance(record, dict):
        return None

    start = parse_instant(_first_present(record, START_ALIASES), tz)
    event_type_id = _first_present(record, EVENT_TYPE_ALIASES)
    if start is None or event_type_id is None:
        return None

    end = parse_instant(_first_present(record, END_ALIASES), tz)
    event_id = record.get("id")
    if not isinstance(event_id, str) or not event_id.strip():
        event_id = new_id("e")

    payload: Dict[str, Any] = {
        "id": event_id,
        "event_type_id": str(event_type_id),
        "start_time": start,
        "end_time": end,
    }
    extra = _normalize_extra(record)
    if extra is not None:
        payload["extra"] = _validate_extra(extra, event_id)
    return LogEvent.model_validate(payload)


def migrate_events(raw: Any, tz: tzinfo = timezone.utc) -> MigrationResult:
    """
    Normalize a persisted collection of events.

    Running the migration on already-current data returns an equal
    collection.

    Args:
        raw: Decoded snapshot; a list of records or a dict with an ``events`` list
        tz: Timezone assumed for naive timestamps

    Returns:
        MigrationResult with the valid events and drop/correction counts

    Example:
        >>> result = migrate_events([{"eventDefId": "water", "timestamp": "2024-05-01T08:00:00Z"}])
        >>> result.events[0].event_type_id
        'water'
    """
    if isinstance(raw, dict):
        raw = raw.get("events", [])
    if not isinstance(raw, list):
        return MigrationResult()

    result = MigrationResult()
    seen_ids = set()
    for index, record in enumerate(raw):
        if isinstance(record, dict):
            record = dict(record)
            start = parse_instant(_first_present(record, START_ALIASES), tz)
            end = parse_instant(_first_present(record, END_ALIASES), tz)
            if start is not None and end is not None and end < start:
                logger.warning("Removed end time earlier than start time", extra={
                    "record_index": index,
                    "event_id": record.get("id")
                })
                for alias in END_ALIASES:
                    record.pop(alias, None)
                result.corrected += 1

        try:
            event = migrate_record(record, tz)
        except ValidationError as e:
            logger.warning("Invalid event record dropped", extra={
                "record_index": index,
                "error": str(e),
                "error_type": e.__class__.__name__
            })
            event = None

        if event is None:
            result.dropped += 1
            continue

        if event.id in seen_ids:
            event = event.model_copy(update={"id": new_id("e")})
        seen_ids.add(event.id)
        result.events.append(event)

    if result.dropped or result.corrected:
        logger.info("Event migration finished", extra={
            "migrated": len(result.events),
            "dropped": result.dropped,
            "corrected": result.corrected
        })
    return result
