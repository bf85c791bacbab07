"""
Per-day ambient attributes (steps, weather, cycle phase).
"""
from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WeatherSnapshot(BaseModel):
    """
    Weather reading stored as an opaque day attribute.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    temperature_c: Optional[float] = None
    humidity: Optional[float] = None
    pressure_hpa: Optional[float] = None
    description: Optional[str] = None


class DayMeta(BaseModel):
    """
    Ambient attributes of one calendar day, filled incrementally.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    date: date
    steps: Optional[int] = Field(None, ge=0)
    weather: Optional[WeatherSnapshot] = None
    cycle_phase: Optional[str] = None


class DayMetaUpdate(BaseModel):
    """Inbound push of day attributes for today, e.g. ``{"steps": 8000}``."""
    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    steps: Optional[int] = Field(None, ge=0)
    cycle_phase: Optional[str] = None
