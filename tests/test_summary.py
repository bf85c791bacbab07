"""
Tests for day summaries.
"""
from datetime import date, datetime, timedelta

import pytest

from healthkey.models.day_meta import WeatherSnapshot
from healthkey.services.day_meta import DayMetaStore
from healthkey.services.summary import DayAggregator
from healthkey.utils.formatters import NO_WEATHER_TEXT

@pytest.fixture
def day_metas(store, tz, clock) -> DayMetaStore:
    return DayMetaStore(store, tz=tz, clock=clock)

@pytest.fixture
def aggregator(timeline, registry, day_metas) -> DayAggregator:
    return DayAggregator(timeline, registry, day_metas)

def test_empty_day(aggregator):
    """Test an empty day has no summary lines."""
    assert aggregator.summarize(date(2024, 5, 1)) == []

def test_summary_order_and_text(aggregator, timeline, tz):
    """Test lines follow category order and fragments follow event type order."""
    base = datetime(2024, 5, 1, 8, 0, tzinfo=tz)
    timeline.append("pee", base)
    timeline.append("water", base + timedelta(minutes=1))
    timeline.append("breakfast", base + timedelta(minutes=2))
    timeline.append("water", base + timedelta(minutes=3))

    lines = aggregator.summarize(date(2024, 5, 1))

    assert [line.category_id for line in lines] == ["diet", "excretion"]
    assert lines[0].category_label == "饮食"
    assert lines[0].text == "早餐 1 次 · 喝水 2 次"
    assert lines[0].count == 3
    assert lines[1].text == "排尿 1 次"

def test_summary_skips_unknown_types(aggregator, timeline, registry, tz):
    """Test events of removed types are left out."""
    coffee = registry.add_event_type("咖啡", "diet")
    timeline.append(coffee.id, datetime(2024, 5, 1, 8, 0, tzinfo=tz))
    registry.delete_event_type(coffee.id)

    assert aggregator.summarize(date(2024, 5, 1)) == []

def test_sleep_pair_counted_once(engine):
    """Test two sleep taps produce one closed interval counted once."""
    engine.tap("sleep_start")
    engine.clock.advance(minutes=10)
    engine.tap("sleep_start")

    lines = engine.aggregator.summarize(date(2024, 5, 1))
    assert len(lines) == 1
    assert lines[0].text == "入睡 1 次"
    assert lines[0].count == 1

def test_overview(aggregator, day_metas, timeline, tz):
    """Test the overview combines day meta and summary."""
    timeline.append("water", datetime(2024, 5, 1, 8, 0, tzinfo=tz))
    day_metas.push_today({"steps": 8000})
    day_metas.set_weather(date(2024, 5, 1), WeatherSnapshot(temperature_c=23.5, humidity=60))

    overview = aggregator.overview(date(2024, 5, 1))

    assert overview.weekday == "周三"
    assert overview.steps == 8000
    assert overview.weather_text == "23.5°C · 湿度 60%"
    assert overview.lines[0].text == "喝水 1 次"

def test_overview_without_meta(aggregator):
    """Test the overview of an unknown day."""
    overview = aggregator.overview(date(2024, 5, 5))
    assert overview.weekday == "周日"
    assert overview.weather_text == NO_WEATHER_TEXT
    assert overview.steps is None
    assert overview.lines == []
