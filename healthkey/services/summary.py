"""
Day-level summaries of the timeline.

Typical usage:
    aggregator = DayAggregator(timeline, registry, day_metas)
    for line in aggregator.summarize(date(2024, 5, 1)):
        print(f"{line.category_label}: {line.text}")
"""
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

from aws_lambda_powertools import Logger

from healthkey.services.constants import SUMMARY_SEPARATOR
from healthkey.services.day_meta import DayMetaStore
from healthkey.services.exceptions import UnknownCategoryError, UnknownEventTypeError
from healthkey.services.registry import CategoryRegistry
from healthkey.services.timeline import SortOrder, TimelineStore
from healthkey.utils.formatters import format_count, format_weather_summary, format_weekday

logger = Logger()


@dataclass(frozen=True)
class SummaryLine:
    """Counts of one category on one day, e.g. ``早餐 1 次 · 喝水 3 次``."""
    category_id: str
    category_label: str
    text: str
    count: int


@dataclass
class DayOverview:
    """Everything shown on the daily card."""
    date: date
    weekday: str
    weather_text: str
    steps: Optional[int] = None
    cycle_phase: Optional[str] = None
    lines: List[SummaryLine] = field(default_factory=list)


class DayAggregator:
    """Computes per-category counts for a day."""

    def __init__(
        self,
        timeline: TimelineStore,
        registry: CategoryRegistry,
        day_metas: Optional[DayMetaStore] = None
    ):
        self.timeline = timeline
        self.registry = registry
        self.day_metas = day_metas

    def summarize(self, day: date) -> List[SummaryLine]:
        """
        Summarize the events of a day per category.

        Events whose event type no longer exists are left out.

        Args:
            day: Local calendar day

        Returns:
            One line per category with events, in registry category order;
            empty when the day has no events
        """
        counts: Dict[str, Counter] = defaultdict(Counter)
        skipped = 0
        for event in self.timeline.for_day(day, SortOrder.ASCENDING):
            try:
                definition = self.registry.get_event_type(event.event_type_id)
                self.registry.get_category(definition.category_id)
            except (UnknownEventTypeError, UnknownCategoryError):
                skipped += 1
                continue
            counts[definition.category_id][definition.id] += 1

        if skipped:
            logger.debug("Skipped events with unknown types", extra={
                "day": day.isoformat(),
                "skipped": skipped
            })

        lines = []
        for category in self.registry.categories:
            per_type = counts.get(category.id)
            if not per_type:
                continue
            fragments = [
                format_count(definition.label, per_type[definition.id])
                for definition in self.registry.event_types_for(category.id)
                if per_type[definition.id]
            ]
            lines.append(SummaryLine(
                category_id=category.id,
                category_label=category.label,
                text=SUMMARY_SEPARATOR.join(fragments),
                count=sum(per_type.values())
            ))
        return lines

    def overview(self, day: date) -> DayOverview:
        """Combine the day meta with the category summary."""
        meta = self.day_metas.get(day) if self.day_metas else None
        return DayOverview(
            date=day,
            weekday=format_weekday(day),
            weather_text=format_weather_summary(meta.weather if meta else None),
            steps=meta.steps if meta else None,
            cycle_phase=meta.cycle_phase if meta else None,
            lines=self.summarize(day)
        )
