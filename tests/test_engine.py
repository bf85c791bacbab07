"""
Tests for the engine wiring.
"""
from datetime import date

import pytest

from healthkey.services.engine import HealthKeyEngine
from healthkey.services.constants import EVENTS_KEY, REGISTRY_KEY
from healthkey.services.exceptions import ProtectedEntityError, StorageError, UnknownEventTypeError
from healthkey.services.tap_pairing import TapResult

def test_delete_event_type_cascades(engine):
    """Test deleting an event type removes its events and blocks new ones."""
    coffee = engine.registry.add_event_type("咖啡", "diet")
    engine.tap(coffee.id)
    engine.controller.reset()
    engine.tap(coffee.id)
    kept = engine.tap("water")

    assert engine.delete_event_type(coffee.id) == 2

    assert all(e.event_type_id != coffee.id for e in engine.timeline.events())
    assert [e.id for e in engine.timeline.events()] == [kept.event_id]
    assert all(d.id != coffee.id for d in engine.registry.event_types)
    with pytest.raises(UnknownEventTypeError):
        engine.timeline.append(coffee.id, engine.clock())

def test_delete_event_type_clears_pending(engine):
    """Test a pending tap on a deleted type is forgotten."""
    coffee = engine.registry.add_event_type("咖啡", "diet")
    engine.tap(coffee.id)
    engine.delete_event_type(coffee.id)
    assert engine.controller.pending is None

def test_delete_builtin_event_type_refused(engine):
    """Test built-in types and their events are kept."""
    engine.tap("water")
    with pytest.raises(ProtectedEntityError):
        engine.delete_event_type("water")
    assert len(engine.timeline.events()) == 1

def test_state_survives_reload(engine, store, tz, clock):
    """Test a fresh engine over the same store sees the same data."""
    category = engine.registry.add_category("情绪", "#c8d6e5")
    mood = engine.registry.add_event_type("平静", category.id)
    engine.tap(mood.id)
    engine.day_metas.push_today({"steps": 1200})

    reloaded = HealthKeyEngine(store, tz=tz, clock=clock).load()

    assert reloaded.registry.get_event_type(mood.id).category_id == category.id
    assert len(reloaded.timeline.events()) == 1
    assert reloaded.day_metas.get(date(2024, 5, 1)).steps == 1200
    assert reloaded.aggregator.summarize(date(2024, 5, 1))[0].text == "平静 1 次"

def test_tap_pairing_through_engine(engine):
    """Test taps go through the controller."""
    assert engine.tap("sleep_start").result == TapResult.OPENED
    engine.clock.advance(minutes=30)
    assert engine.tap("sleep_start").result == TapResult.CLOSED
    assert engine.today() == date(2024, 5, 1)

def test_delete_event_type_failed_events_write(engine, store, monkeypatch):
    """Test a failed events write keeps both the type and its events."""
    coffee = engine.registry.add_event_type("咖啡", "diet")
    engine.tap(coffee.id)
    save = store.save

    def fail_events(key, data):
        if key == EVENTS_KEY:
            raise OSError("disk full")
        save(key, data)
    monkeypatch.setattr(store, "save", fail_events)

    with pytest.raises(StorageError):
        engine.delete_event_type(coffee.id)

    assert engine.registry.has_event_type(coffee.id)
    assert [e.event_type_id for e in engine.timeline.events()] == [coffee.id]

def test_delete_event_type_failed_registry_write(engine, store, monkeypatch):
    """Test a failed registry write leaves no events of a missing type."""
    coffee = engine.registry.add_event_type("咖啡", "diet")
    engine.tap(coffee.id)
    save = store.save

    def fail_registry(key, data):
        if key == REGISTRY_KEY:
            raise OSError("disk full")
        save(key, data)
    monkeypatch.setattr(store, "save", fail_registry)

    with pytest.raises(StorageError):
        engine.delete_event_type(coffee.id)

    assert engine.registry.has_event_type(coffee.id)
    assert engine.timeline.events() == []
