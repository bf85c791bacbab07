"""
Tap-pairing controller.

A plain "log now" button doubles as a start/stop toggle: the first tap on an
event type opens an event, a repeated tap on the same type closes it. The
controller remembers only the most recent tap, across all types.

Typical usage:
    controller = TapPairingController(timeline)
    controller.tap("sleep_start")          # opens the event
    outcome = controller.tap("sleep_start")  # closes it
    if outcome.advisory:
        show(outcome.advisory)
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from aws_lambda_powertools import Logger

from healthkey.services.constants import DOUBLE_TAP_THRESHOLD, PAIRING_WINDOW
from healthkey.services.exceptions import (
    AlreadyClosedError,
    HealthKeyError,
    NotFoundError,
    PairingWindowExceededError,
)
from healthkey.services.timeline import TimelineStore
from healthkey.services.utils import Clock, ensure_aware, utc_now

logger = Logger()

ALREADY_CLOSED_MESSAGE = "这条记录已经有结束时间了，如需修改请手动编辑。"
WINDOW_EXCEEDED_MESSAGE = "距离开始已超过 {minutes} 分钟，请手动编辑这条记录的结束时间。"


class TapResult(Enum):
    """How a tap was interpreted."""
    OPENED = "opened"
    CLOSED = "closed"
    ALREADY_CLOSED = "already_closed"
    WINDOW_EXCEEDED = "window_exceeded"


@dataclass(frozen=True)
class PendingTap:
    """The last single tap, waiting for a possible second tap."""
    event_type_id: str
    log_event_id: str
    time: datetime


@dataclass(frozen=True)
class TapOutcome:
    """
    Result of a tap.

    When the tap was not applied, ``advisory`` holds the user-facing message
    and ``error`` the condition that prevented it.
    """
    result: TapResult
    event_id: str
    advisory: Optional[str] = None
    error: Optional[HealthKeyError] = None


class TapPairingController:
    """
    Turns repeated tap signals into open/close operations on the timeline.

    Args:
        timeline: Store the events are written to
        clock: Source of the current instant, used when a tap has no time
        double_tap_threshold: Maximum gap between the taps of a pair; None
            keeps the pending tap until it is paired or replaced, leaving the
            pairing window as the only limit
        pairing_window: Maximum duration an interval can be closed with
    """

    def __init__(
        self,
        timeline: TimelineStore,
        clock: Clock = utc_now,
        double_tap_threshold: Optional[timedelta] = DOUBLE_TAP_THRESHOLD,
        pairing_window: timedelta = PAIRING_WINDOW
    ):
        self.timeline = timeline
        self.clock = clock
        self.double_tap_threshold = double_tap_threshold
        self.pairing_window = pairing_window
        self.pending: Optional[PendingTap] = None

    def reset(self) -> None:
        """Forget the pending tap."""
        self.pending = None

    def _is_second_tap(self, event_type_id: str, at: datetime) -> bool:
        pending = self.pending
        if pending is None or pending.event_type_id != event_type_id:
            return False
        if self.double_tap_threshold is not None and at - pending.time > self.double_tap_threshold:
            return False
        return True

    def tap(self, event_type_id: str, at: Optional[datetime] = None) -> TapOutcome:
        """
        Handle a "log this event type" signal.

        Args:
            event_type_id: Tapped event type
            at: Time of the tap, defaults to the clock

        Returns:
            TapOutcome describing what happened

        Raises:
            UnknownEventTypeError: If a single tap names an unregistered type
        """
        at = ensure_aware(at or self.clock(), self.timeline.tz)

        if not self._is_second_tap(event_type_id, at):
            return self._single_tap(event_type_id, at)

        pending = self.pending
        try:
            open_event = self.timeline.get(pending.log_event_id)
        except NotFoundError:
            logger.info("Pending event no longer exists, starting a new one", extra={
                "event_id": pending.log_event_id
            })
            return self._single_tap(event_type_id, at)

        self.pending = None
        if open_event.end_time is not None:
            return TapOutcome(
                TapResult.ALREADY_CLOSED, open_event.id, ALREADY_CLOSED_MESSAGE,
                AlreadyClosedError(ALREADY_CLOSED_MESSAGE)
            )

        elapsed = at - open_event.start_time
        if elapsed < timedelta(0):
            logger.info("Tap earlier than the pending start, starting a new event", extra={
                "event_id": open_event.id
            })
            return self._single_tap(event_type_id, at)
        if elapsed > self.pairing_window:
            advisory = WINDOW_EXCEEDED_MESSAGE.format(
                minutes=int(self.pairing_window.total_seconds() // 60)
            )
            logger.info("Pairing window exceeded", extra={
                "event_id": open_event.id,
                "elapsed_seconds": int(elapsed.total_seconds())
            })
            return TapOutcome(
                TapResult.WINDOW_EXCEEDED, open_event.id, advisory, PairingWindowExceededError(advisory)
            )

        self.timeline.close(open_event.id, at)
        return TapOutcome(TapResult.CLOSED, open_event.id)

    def _single_tap(self, event_type_id: str, at: datetime) -> TapOutcome:
        event_id = self.timeline.append(event_type_id, at)
        self.pending = PendingTap(event_type_id=event_type_id, log_event_id=event_id, time=at)
        return TapOutcome(TapResult.OPENED, event_id)
