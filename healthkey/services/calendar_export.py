"""
iCalendar export of a day's events.

Each log event becomes one VEVENT. Open events get a short default duration
so the file stays valid without suggesting a long interval.

Typical usage:
    exporter = CalendarExporter(timeline, registry)
    data = exporter.export_day(date(2024, 5, 1))
    Path(exporter.filename(date(2024, 5, 1))).write_bytes(data)
"""
from datetime import date, datetime, timedelta, timezone
from typing import List

from aws_lambda_powertools import Logger

from healthkey.models.event import LogEvent
from healthkey.services.constants import CALENDAR_MEDIA_TYPE, CALENDAR_PRODID, DEFAULT_EVENT_DURATION
from healthkey.services.exceptions import EmptyDayError, UnknownEventTypeError
from healthkey.services.registry import CategoryRegistry
from healthkey.services.timeline import SortOrder, TimelineStore
from healthkey.services.utils import Clock, utc_now
from healthkey.utils.formatters import format_extra_lines

logger = Logger()

MEDIA_TYPE = CALENDAR_MEDIA_TYPE
MAX_LINE_OCTETS = 75


def escape_text(value: str) -> str:
    """Escape a TEXT value (RFC 5545 section 3.3.11); newlines become ``\\n``."""
    return (
        value.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
        .replace("\r", "\\n")
    )


def fold_line(line: str) -> str:
    """
    Fold a content line at 75 octets without splitting UTF-8 characters.

    Continuation lines start with a single space.
    """
    if len(line.encode("utf-8")) <= MAX_LINE_OCTETS:
        return line
    parts: List[str] = []
    current = ""
    current_size = 0
    limit = MAX_LINE_OCTETS
    for char in line:
        size = len(char.encode("utf-8"))
        if current_size + size > limit:
            parts.append(current)
            current = ""
            current_size = 0
            limit = MAX_LINE_OCTETS - 1  # Room for the leading space
        current += char
        current_size += size
    parts.append(current)
    return "\r\n ".join(parts)


def format_utc(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


class CalendarExporter:
    """Serializes a day of the timeline as an iCalendar file."""

    def __init__(
        self,
        timeline: TimelineStore,
        registry: CategoryRegistry,
        clock: Clock = utc_now,
        default_duration: timedelta = DEFAULT_EVENT_DURATION
    ):
        self.timeline = timeline
        self.registry = registry
        self.clock = clock
        self.default_duration = default_duration

    @staticmethod
    def filename(day: date) -> str:
        return f"healthkey-{day.isoformat()}.ics"

    def _title(self, event: LogEvent) -> str:
        try:
            return self.registry.get_event_type(event.event_type_id).label
        except UnknownEventTypeError:
            return event.event_type_id

    def _event_lines(self, event: LogEvent, stamp: str) -> List[str]:
        end_time = event.end_time or event.start_time + self.default_duration
        lines = [
            "BEGIN:VEVENT",
            f"UID:{event.id}@healthkey",
            f"DTSTAMP:{stamp}",
            f"DTSTART:{format_utc(event.start_time)}",
            f"DTEND:{format_utc(end_time)}",
            f"SUMMARY:{escape_text(self._title(event))}",
        ]
        description = format_extra_lines(event.extra)
        if description:
            lines.append(f"DESCRIPTION:{escape_text(chr(10).join(description))}")
        lines.append("END:VEVENT")
        return lines

    def export_day(self, day: date) -> bytes:
        """
        Export the events of a day.

        Args:
            day: Local calendar day

        Returns:
            UTF-8 encoded iCalendar data with CRLF line endings

        Raises:
            EmptyDayError: If the day has no events
        """
        events = list(self.timeline.for_day(day, SortOrder.ASCENDING))
        if not events:
            raise EmptyDayError(f"No events on {day.isoformat()}")

        stamp = format_utc(self.clock())
        lines = [
            "BEGIN:VCALENDAR",
            "VERSION:2.0",
            f"PRODID:{CALENDAR_PRODID}",
            "CALSCALE:GREGORIAN",
            "METHOD:PUBLISH",
        ]
        for event in events:
            lines.extend(self._event_lines(event, stamp))
        lines.append("END:VCALENDAR")

        logger.info("Exported day", extra={
            "day": day.isoformat(),
            "event_count": len(events)
        })
        return ("\r\n".join(fold_line(line) for line in lines) + "\r\n").encode("utf-8")
