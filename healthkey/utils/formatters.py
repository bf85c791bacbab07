"""
Text formatting functions for day summaries and exports.
"""
from datetime import date
from typing import List, Optional

from healthkey.models.day_meta import WeatherSnapshot
from healthkey.models.event import ExtraFields
from healthkey.services.colors import resolve_color
from healthkey.services.constants import COUNT_UNIT, EXTRA_FIELD_LABELS, WEEKDAY_LABELS

NO_WEATHER_TEXT = "天气数据暂无"


def format_weather_summary(weather: Optional[WeatherSnapshot]) -> str:
    """
    Format a short weather line such as ``23.5°C · 湿度 60% · 气压 1013 hPa``.

    Args:
        weather: Weather snapshot of the day, if any

    Returns:
        Formatted line, or a placeholder when nothing is known
    """
    if weather is None:
        return NO_WEATHER_TEXT
    parts = []
    if weather.temperature_c is not None:
        parts.append(f"{weather.temperature_c:.1f}°C")
    if weather.humidity is not None:
        parts.append(f"湿度 {weather.humidity:g}%")
    if weather.pressure_hpa is not None:
        parts.append(f"气压 {round(weather.pressure_hpa)} hPa")
    if weather.description:
        parts.append(weather.description)
    return " · ".join(parts) or NO_WEATHER_TEXT


def format_weekday(day: date) -> str:
    return WEEKDAY_LABELS[day.weekday()]


def format_count(label: str, count: int) -> str:
    return f"{label} {count} {COUNT_UNIT}"


def format_extra_lines(extra: Optional[ExtraFields]) -> List[str]:
    """
    Render the present extra fields, one line each, in a fixed order.

    Keys kept from older records follow the known fields as ``key: value``.

    Example:
        >>> format_extra_lines(ExtraFields(water_ml=300, note="after run"))
        ['喝水: 300 ml', '备注: after run']
    """
    if extra is None:
        return []
    lines = []
    if extra.satiety_percent is not None:
        lines.append(f"{EXTRA_FIELD_LABELS['satiety_percent']}: {extra.satiety_percent}%")
    if extra.water_ml is not None:
        lines.append(f"{EXTRA_FIELD_LABELS['water_ml']}: {extra.water_ml} ml")
    if extra.activity_intensity is not None:
        lines.append(f"{EXTRA_FIELD_LABELS['activity_intensity']}: {extra.activity_intensity}%")
    if extra.sleep_depth is not None:
        lines.append(f"{EXTRA_FIELD_LABELS['sleep_depth']}: {extra.sleep_depth}%")
    if extra.excretion_color is not None:
        lines.append(f"{EXTRA_FIELD_LABELS['excretion_color']}: {resolve_color(extra.excretion_color)}")
    if extra.is_abnormal is not None:
        lines.append(f"{EXTRA_FIELD_LABELS['is_abnormal']}: {'是' if extra.is_abnormal else '否'}")
    if extra.note:
        lines.append(f"{EXTRA_FIELD_LABELS['note']}: {extra.note}")
    for key, value in (extra.model_extra or {}).items():
        if value is not None and value != "":
            lines.append(f"{key}: {value}")
    return lines
