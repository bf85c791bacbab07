"""
Tests for loading legacy and current event records.
"""
import json
from datetime import datetime, timedelta, timezone

from healthkey.models.event import DirectColor, SeverityColor
from healthkey.services.migration import migrate_events, migrate_record
from healthkey.services.storage import dump_snapshot
from healthkey.services.timeline import serialize_events

def test_migrate_legacy_record():
    """Test a v2 record with eventDefId, timestamp and extras."""
    result = migrate_events([{
        "id": "e1",
        "eventDefId": "water",
        "timestamp": "2024-05-01T08:00:00Z",
        "extras": {"waterMl": 300, "notes": "after run"}
    }])

    assert result.dropped == 0
    event = result.events[0]
    assert event.id == "e1"
    assert event.event_type_id == "water"
    assert event.start_time == datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)
    assert event.end_time is None
    assert event.extra.water_ml == 300
    assert event.extra.note == "after run"

def test_migrate_epoch_milliseconds():
    """Test numeric timestamps in milliseconds."""
    event = migrate_record({"id": "e1", "type": "pee", "timestamp": 1714550400000})
    assert event.start_time == datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)

def test_migrate_naive_timestamp_uses_timezone():
    """Test naive timestamps are read in the given timezone."""
    tz = timezone(timedelta(hours=8))
    event = migrate_record({"id": "e1", "type": "pee", "time": "2024-05-01T08:00:00"}, tz)
    assert event.start_time.utcoffset() == timedelta(hours=8)

def test_numeric_color_becomes_severity():
    """Test legacy numeric urine colors become clamped severities."""
    result = migrate_events([
        {"id": "e1", "type": "pee", "timestamp": "2024-05-01T08:00:00Z", "urineColor": 40},
        {"id": "e2", "type": "poop", "timestamp": "2024-05-01T09:00:00Z", "extras": {"stoolColor": 250}},
    ])
    assert result.events[0].extra.excretion_color == SeverityColor(value=40)
    assert result.events[1].extra.excretion_color == SeverityColor(value=100)

def test_string_color_becomes_direct():
    """Test string colors become direct color tokens."""
    event = migrate_record({
        "id": "e1", "type": "pee", "timestamp": "2024-05-01T08:00:00Z",
        "extras": {"color": "#ffeb3b"}
    })
    assert event.extra.excretion_color == DirectColor(token="#ffeb3b")

def test_unknown_keys_are_kept_in_extra():
    """Test unrecognized top-level keys move into the extras."""
    event = migrate_record({
        "id": "e1", "type": "laugh", "timestamp": "2024-05-01T08:00:00Z", "mood": "great"
    })
    assert event.extra.model_extra == {"mood": "great"}

def test_records_without_start_or_type_are_dropped():
    """Test unusable records are dropped and counted."""
    result = migrate_events([
        {"id": "e1", "type": "pee"},
        {"id": "e2", "timestamp": "2024-05-01T08:00:00Z"},
        {"id": "e3", "type": "pee", "timestamp": "not a date"},
        "garbage",
        {"id": "e4", "type": "pee", "timestamp": "2024-05-01T08:00:00Z"},
    ])
    assert result.dropped == 4
    assert [e.id for e in result.events] == ["e4"]

def test_end_before_start_is_removed():
    """Test an end time earlier than the start is removed and counted."""
    result = migrate_events([{
        "id": "e1", "type": "sleep_start",
        "start_time": "2024-05-01T08:00:00Z",
        "end_time": "2024-05-01T07:00:00Z"
    }])
    assert result.corrected == 1
    assert result.dropped == 0
    assert result.events[0].end_time is None

def test_invalid_extra_field_is_discarded():
    """Test a single invalid extra field does not drop the event."""
    event = migrate_record({
        "id": "e1", "type": "water", "timestamp": "2024-05-01T08:00:00Z",
        "extras": {"waterMl": -5, "note": "kept"}
    })
    assert event.extra.water_ml is None
    assert event.extra.note == "kept"

def test_duplicate_ids_are_regenerated():
    """Test duplicate ids get a fresh id."""
    result = migrate_events([
        {"id": "dup", "type": "pee", "timestamp": "2024-05-01T08:00:00Z"},
        {"id": "dup", "type": "poop", "timestamp": "2024-05-01T09:00:00Z"},
    ])
    ids = [e.id for e in result.events]
    assert ids[0] == "dup"
    assert ids[1] != "dup"
    assert len(set(ids)) == 2

def test_accepts_wrapped_snapshot():
    """Test a dict snapshot with an events list."""
    result = migrate_events({"events": [{"id": "e1", "type": "pee", "timestamp": 1714550400}]})
    assert len(result.events) == 1

def test_migration_is_idempotent():
    """Test migrating current data reproduces it byte for byte."""
    legacy = [
        {"id": "e1", "eventDefId": "water", "timestamp": "2024-05-01T08:00:00Z",
         "extras": {"waterMl": 300}},
        {"id": "e2", "eventDefId": "pee", "timestamp": 1714554000000, "urineColor": 55,
         "mood": "ok"},
        {"id": "e3", "eventDefId": "sleep_start", "start": "2024-05-01T22:00:00+08:00",
         "end": "2024-05-02T06:30:00+08:00", "extras": {"sleepDepth": 70, "color": "#abcdef"}},
    ]
    first = dump_snapshot(serialize_events(migrate_events(legacy).events))
    second = dump_snapshot(serialize_events(migrate_events(json.loads(first)).events))
    assert first == second

def test_both_legacy_colors_are_kept():
    """Test a record with urine and stool colors loses neither."""
    event = migrate_record({
        "id": "e1", "type": "poop", "timestamp": "2024-05-01T08:00:00Z",
        "extras": {"urineColor": "#ffeb3b", "stoolColor": "#795548", "notes": "n1", "note": "n2"}
    })
    assert event.extra.excretion_color == DirectColor(token="#ffeb3b")
    assert event.extra.model_extra == {"stoolColor": "#795548", "notes": "n1"}
    assert event.extra.note == "n2"

    again = migrate_events(serialize_events([event])).events[0]
    assert again == event
