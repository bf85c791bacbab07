"""
Shared utility functions for the timeline services.

These helpers handle the clock, identifier generation and the mapping of
instants to local calendar days.
"""
import os
import uuid
from datetime import date, datetime, timezone, tzinfo
from pathlib import Path
from typing import Callable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: the current instant in UTC."""
    return datetime.now(timezone.utc)


def local_timezone() -> tzinfo:
    """
    Timezone of the host system.

    Resolves an IANA zone from ``TZ`` or the ``/etc/localtime`` link so that
    days are bucketed correctly across DST changes. Hosts that expose
    neither get their current fixed UTC offset.
    """
    candidates = [os.environ.get("TZ", "").lstrip(":")]
    localtime = Path("/etc/localtime")
    if localtime.is_symlink():
        target = str(localtime.resolve())
        if "zoneinfo/" in target:
            candidates.append(target.split("zoneinfo/", 1)[1])
    for name in candidates:
        if not name:
            continue
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError, OSError):
            continue
    return datetime.now().astimezone().tzinfo


def new_id(prefix: str) -> str:
    """
    Generate a fresh identifier.

    Example:
        >>> new_id("e").startswith("e_")
        True
    """
    return f"{prefix}_{uuid.uuid4().hex}"


def ensure_aware(moment: datetime, tz: tzinfo) -> datetime:
    """
    Attach ``tz`` to naive datetimes, leaving aware ones untouched.

    Args:
        moment: Datetime to normalize
        tz: Timezone assumed for naive values

    Returns:
        Timezone-aware datetime
    """
    if moment.tzinfo is None or moment.tzinfo.utcoffset(moment) is None:
        return moment.replace(tzinfo=tz)
    return moment


def local_date(moment: datetime, tz: tzinfo) -> date:
    """Calendar day of ``moment`` in the given timezone."""
    return ensure_aware(moment, tz).astimezone(tz).date()


def parse_day(value: str) -> date:
    """
    Parse a ``YYYY-MM-DD`` string.

    Raises:
        ValueError: If the value is not a valid ISO date
    """
    return date.fromisoformat(value.strip())


def today(clock: Clock, tz: tzinfo) -> date:
    """Local calendar day of the clock's current instant."""
    return local_date(clock(), tz)


def parse_instant(raw, tz: tzinfo) -> Optional[datetime]:
    """
    Parse a persisted instant.

    Accepts ISO 8601 strings (including a trailing ``Z``), datetimes and
    epoch timestamps in seconds or milliseconds. Naive values are placed in
    ``tz``.

    Returns:
        Aware datetime, or None if the value is unusable
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, datetime):
        return ensure_aware(raw, tz)
    if isinstance(raw, (int, float)):
        seconds = raw / 1000 if abs(raw) > 1e11 else raw
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return ensure_aware(datetime.fromisoformat(text), tz)
        except ValueError:
            return None
    return None
