"""
Tests for color resolution and text formatters.
"""
from datetime import date

from healthkey.models.day_meta import WeatherSnapshot
from healthkey.models.event import DirectColor, ExtraFields, SeverityColor
from healthkey.services.colors import resolve_color, severity_to_hex
from healthkey.utils.formatters import (
    NO_WEATHER_TEXT,
    format_count,
    format_extra_lines,
    format_weather_summary,
    format_weekday,
)

def test_severity_gradient_endpoints():
    """Test the severity gradient endpoints."""
    assert severity_to_hex(0) == "#fff59d"
    assert severity_to_hex(100) == "#5d4037"
    assert severity_to_hex(150) == "#5d4037"

def test_severity_gradient_midpoint():
    """Test the gradient is linear."""
    assert severity_to_hex(50) == "#ae9a6a"

def test_resolve_color():
    """Test direct tokens pass through and severities are mapped."""
    assert resolve_color(DirectColor(token="#795548")) == "#795548"
    assert resolve_color(SeverityColor(value=0)) == "#fff59d"
    assert resolve_color(None) is None

def test_format_weather_summary():
    """Test the weather line."""
    weather = WeatherSnapshot(temperature_c=23.46, humidity=60, pressure_hpa=1013.2, description="晴")
    assert format_weather_summary(weather) == "23.5°C · 湿度 60% · 气压 1013 hPa · 晴"
    assert format_weather_summary(None) == NO_WEATHER_TEXT
    assert format_weather_summary(WeatherSnapshot()) == NO_WEATHER_TEXT

def test_format_weekday():
    """Test weekday labels start on Monday."""
    assert format_weekday(date(2024, 4, 29)) == "周一"
    assert format_weekday(date(2024, 5, 5)) == "周日"

def test_format_count():
    assert format_count("喝水", 3) == "喝水 3 次"

def test_format_extra_lines():
    """Test extras render in a fixed order."""
    extra = ExtraFields(
        note="ok",
        sleep_depth=70,
        satiety_percent=80,
        water_ml=300,
        activity_intensity=40,
        excretion_color=DirectColor(token="#ffeb3b"),
        is_abnormal=False
    )
    assert format_extra_lines(extra) == [
        "饱腹感: 80%",
        "喝水: 300 ml",
        "活动强度: 40%",
        "睡眠深度: 70%",
        "颜色: #ffeb3b",
        "异常: 否",
        "备注: ok",
    ]
    assert format_extra_lines(None) == []

def test_format_extra_lines_keeps_unknown_keys():
    """Test keys preserved from older records are described after the known fields."""
    extra = ExtraFields.model_validate({"isAbnormal": True, "note": "x", "stoolColor": "#795548"})
    assert format_extra_lines(extra) == ["异常: 是", "备注: x", "stoolColor: #795548"]
