"""
Service module for per-day ambient attributes.

Day metas are created lazily the first time a day is touched and filled in
as data arrives: steps and cycle phase are pushed from outside, weather is
fetched on demand. A failed weather fetch leaves the weather absent.

Typical usage:
    day_metas = DayMetaStore(store, tz=tz)
    day_metas.load()
    day_metas.push_today({"steps": 8000})
    day_metas.refresh_weather(OpenMeteoClient(), 31.2, 121.5)
"""
from datetime import date, timezone, tzinfo
from typing import Any, Dict, Mapping, Optional, Protocol, Union

import requests
from aws_lambda_powertools import Logger
from pydantic import ValidationError

from healthkey.models.day_meta import DayMeta, DayMetaUpdate, WeatherSnapshot
from healthkey.services.constants import DAYMETA_KEY
from healthkey.services.storage import KeyValueStore, read_snapshot, write_snapshot
from healthkey.services.utils import Clock, today, utc_now

logger = Logger()


class WeatherFetcher(Protocol):
    def fetch_current(self, latitude: float, longitude: float) -> WeatherSnapshot:
        ...


class DayMetaStore:
    """Keyed, write-through store of DayMeta records."""

    def __init__(self, store: KeyValueStore, tz: tzinfo = timezone.utc, clock: Clock = utc_now):
        self.store = store
        self.tz = tz
        self.clock = clock
        self._metas: Dict[date, DayMeta] = {}

    def load(self) -> "DayMetaStore":
        """Load persisted day metas, skipping records that do not validate."""
        snapshot = read_snapshot(self.store, DAYMETA_KEY)
        metas: Dict[date, DayMeta] = {}
        for record in snapshot if isinstance(snapshot, list) else []:
            try:
                meta = DayMeta.model_validate(record)
            except ValidationError as e:
                logger.warning("Invalid day meta record skipped", extra={
                    "error": str(e),
                    "error_type": e.__class__.__name__
                })
                continue
            metas[meta.date] = meta
        self._metas = metas
        return self

    def _commit(self, metas: Dict[date, DayMeta]) -> None:
        ordered = sorted(metas.values(), key=lambda m: m.date)
        write_snapshot(self.store, DAYMETA_KEY, [m.model_dump(mode="json", exclude_none=True) for m in ordered])
        self._metas = metas

    def today(self) -> date:
        return today(self.clock, self.tz)

    def get(self, day: date) -> Optional[DayMeta]:
        """Day meta of ``day`` without creating it."""
        return self._metas.get(day)

    def touch(self, day: date) -> DayMeta:
        """Get the day meta of ``day``, creating and persisting it if needed."""
        meta = self._metas.get(day)
        if meta is not None:
            return meta
        meta = DayMeta(date=day)
        self._commit({**self._metas, day: meta})
        return meta

    def _merge(self, day: date, changes: Dict[str, Any]) -> DayMeta:
        current = self._metas.get(day) or DayMeta(date=day)
        updated = current.model_copy(update=changes)
        self._commit({**self._metas, day: updated})
        return updated

    def push_today(self, update: Union[DayMetaUpdate, Mapping[str, Any]]) -> DayMeta:
        """
        Merge an external attribute push into today's day meta.

        Only the attributes present in the push are written; everything else
        already stored for the day is kept.

        Args:
            update: DayMetaUpdate or mapping such as ``{"steps": 8000}`` or
                ``{"cyclePhase": "luteal"}``

        Returns:
            Today's updated day meta
        """
        if not isinstance(update, DayMetaUpdate):
            update = DayMetaUpdate.model_validate(dict(update))
        changes = update.model_dump(exclude_unset=True, exclude_none=True)
        day = self.today()
        meta = self._merge(day, changes)
        logger.info("Merged day attributes", extra={
            "day": day.isoformat(),
            "attributes": sorted(changes)
        })
        return meta

    def set_weather(self, day: date, weather: Optional[WeatherSnapshot]) -> DayMeta:
        return self._merge(day, {"weather": weather})

    def refresh_weather(self, fetcher: WeatherFetcher, latitude: float, longitude: float) -> Optional[DayMeta]:
        """
        Fetch and store today's weather unless it is already known.

        Fetch failures are logged and leave the weather absent.

        Returns:
            Today's day meta, or None if the fetch failed
        """
        day = self.today()
        meta = self.touch(day)
        if meta.weather is not None:
            return meta
        try:
            weather = fetcher.fetch_current(latitude, longitude)
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.warning("Weather fetch failed", extra={
                "day": day.isoformat(),
                "error": str(e),
                "error_type": e.__class__.__name__
            })
            return None
        return self.set_weather(day, weather)
