"""
Log event model definition for timeline entries and their extra detail.
"""
import math
from datetime import datetime
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class SeverityColor(BaseModel):
    """Legacy excretion color stored as a 0-100 severity."""
    kind: Literal["severity"] = "severity"
    value: int = Field(..., ge=0, le=100)


class DirectColor(BaseModel):
    """Excretion color stored as a direct color token such as ``#ffeb3b``."""
    kind: Literal["direct"] = "direct"
    token: str = Field(..., min_length=1)


ColorValue = Annotated[Union[SeverityColor, DirectColor], Field(discriminator="kind")]


def coerce_color_value(raw: Any) -> Any:
    """
    Normalize the legacy excretion color representations.

    Numbers become a clamped ``SeverityColor`` and strings a ``DirectColor``.
    Anything else is returned untouched for pydantic to validate.

    Example:
        >>> coerce_color_value(130)
        SeverityColor(kind='severity', value=100)
        >>> coerce_color_value("#795548")
        DirectColor(kind='direct', token='#795548')
    """
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)):
        if not math.isfinite(raw):
            return raw
        return SeverityColor(kind="severity", value=max(0, min(100, int(round(raw)))))
    if isinstance(raw, str):
        token = raw.strip()
        try:
            return coerce_color_value(float(token))
        except ValueError:
            return DirectColor(kind="direct", token=token)
    return raw


class ExtraFields(BaseModel):
    """
    Sparse, optional detail attached to a log event.

    Field names are snake_case; camelCase aliases used by older records
    (``waterMl``, ``satietyPercent``, ...) are accepted on input. Unknown keys
    are kept so that nothing a previous version stored is lost.
    """
    model_config = ConfigDict(
        extra="allow",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    satiety_percent: Optional[int] = Field(None, ge=0, le=100)
    water_ml: Optional[int] = Field(None, ge=0)
    activity_intensity: Optional[int] = Field(None, ge=0, le=100)
    sleep_depth: Optional[int] = Field(None, ge=0, le=100)
    excretion_color: Optional[ColorValue] = None
    is_abnormal: Optional[bool] = None
    note: Optional[str] = None

    @field_validator("excretion_color", mode="before")
    @classmethod
    def _normalize_color(cls, value: Any) -> Any:
        return coerce_color_value(value)


class LogEvent(BaseModel):
    """
    One concrete occurrence on the timeline.

    An open event has no ``end_time``. The calendar day of an event is
    derived from ``start_time`` in local time.
    """
    id: str = Field(..., min_length=1)
    event_type_id: str = Field(..., min_length=1)
    start_time: datetime
    end_time: Optional[datetime] = None
    extra: Optional[ExtraFields] = None

    @model_validator(mode="after")
    def _check_interval(self) -> "LogEvent":
        if self.end_time is not None and self.end_time < self.start_time:
            raise ValueError("end_time must not be earlier than start_time")
        return self

    @property
    def is_open(self) -> bool:
        """Check if the event still has no recorded end."""
        return self.end_time is None

    @property
    def note(self) -> Optional[str]:
        return self.extra.note if self.extra else None


class EventPatch(BaseModel):
    """
    Partial update for a log event.

    Only the fields that were explicitly provided are applied, so passing
    ``end_time=None`` reopens an event while omitting it leaves it alone.
    ``extra`` is merged over the current extras.
    """
    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    extra: Optional[ExtraFields] = None
    note: Optional[str] = None
