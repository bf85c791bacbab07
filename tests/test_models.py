"""
Tests for the data models.
"""
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from healthkey.models.event import (
    DirectColor,
    EventPatch,
    ExtraFields,
    LogEvent,
    SeverityColor,
    coerce_color_value,
)

START = datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)

def test_coerce_color_value():
    """Test legacy color representations are normalized."""
    assert coerce_color_value(40) == SeverityColor(value=40)
    assert coerce_color_value(-3.6) == SeverityColor(value=0)
    assert coerce_color_value("72") == SeverityColor(value=72)
    assert coerce_color_value(" #795548 ") == DirectColor(token="#795548")
    assert coerce_color_value(True) is True

def test_extra_fields_accept_camel_case():
    """Test camelCase aliases and unknown keys are accepted."""
    extra = ExtraFields.model_validate({"waterMl": 250, "satietyPercent": 80, "mood": "ok"})
    assert extra.water_ml == 250
    assert extra.satiety_percent == 80
    assert extra.model_extra == {"mood": "ok"}

def test_extra_fields_bounds():
    """Test range checks on percentages and volumes."""
    with pytest.raises(ValidationError):
        ExtraFields(satiety_percent=101)
    with pytest.raises(ValidationError):
        ExtraFields(water_ml=-1)

def test_extra_fields_color_variants():
    """Test tagged colors validate from dicts and raw values."""
    assert ExtraFields(excretion_color={"kind": "direct", "token": "#fff"}).excretion_color == DirectColor(token="#fff")
    assert ExtraFields(excretion_color=130).excretion_color == SeverityColor(value=100)
    with pytest.raises(ValidationError):
        ExtraFields(excretion_color=float("nan"))

def test_log_event_interval():
    """Test an end before the start is rejected."""
    with pytest.raises(ValidationError):
        LogEvent(id="e1", event_type_id="sleep_start", start_time=START, end_time=START - timedelta(seconds=1))

    event = LogEvent(id="e1", event_type_id="sleep_start", start_time=START, end_time=START)
    assert not event.is_open
    assert event.note is None

def test_event_patch_tracks_provided_fields():
    """Test omitted and explicit None fields are distinguished."""
    assert EventPatch.model_validate({"endTime": None}).model_fields_set == {"end_time"}
    assert EventPatch().model_fields_set == set()
    with pytest.raises(ValidationError):
        EventPatch.model_validate({"eventTypeId": "water"})
