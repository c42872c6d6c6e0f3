from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional, Protocol

from .calendar import PresentableCalendar
from .errors import CommunicationError

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...

    def done(self) -> bool: ...


class Scheduler(Protocol):
    def schedule(self, delay_seconds: float, callback: Callable[[], None]) -> TimerHandle: ...


class _ThreadTimerHandle:
    def __init__(self, timer: threading.Timer) -> None:
        self._timer = timer

    def cancel(self) -> None:
        # no effect once the callback has started
        self._timer.cancel()

    def done(self) -> bool:
        return self._timer.finished.is_set()


class TimerScheduler:
    """Runs each callback once on its own daemon ``threading.Timer`` thread."""

    def __init__(self, name: str = "livecal-wakeup") -> None:
        self.name = name

    def schedule(self, delay_seconds: float, callback: Callable[[], None]) -> TimerHandle:
        # an early wake-up just recomputes and re-arms
        delay = min(max(0.0, delay_seconds), threading.TIMEOUT_MAX)
        timer = threading.Timer(delay, callback)
        timer.name = self.name
        timer.daemon = True
        timer.start()
        return _ThreadTimerHandle(timer)


@dataclass(eq=False)
class PendingWakeup:
    target: datetime
    handle: Optional[TimerHandle] = field(default=None, repr=False)

    def cancel(self) -> None:
        if self.handle is not None and not self.handle.done():
            self.handle.cancel()


def next_wakeup(calendar: PresentableCalendar, instant: datetime) -> Optional[datetime]:
    """Return the first event boundary after ``instant``, or None if there is none.

    The calendar is queried without a text filter so that boundaries of hidden
    events still trigger a refresh. When one event ends exactly as another
    starts both candidates are equal and a single wake-up covers them.
    """
    candidate: Optional[datetime] = None
    if calendar.is_event_present(instant):
        current = calendar.get_current_event(instant)
        if current is None:
            raise CommunicationError(
                "Calendar reports an event at the reference instant but returned none."
            )
        candidate = current.end

    upcoming = calendar.get_next_event(instant)
    if upcoming is not None and (candidate is None or upcoming.start < candidate):
        candidate = upcoming.start
    return candidate


class Rescheduler:
    """Keeps at most one wake-up armed for the next event boundary.

    Not thread-safe on its own; the owning controller serializes calls.
    """

    def __init__(self, scheduler: Scheduler) -> None:
        self._scheduler = scheduler
        self.pending: Optional[PendingWakeup] = None

    def cancel(self) -> None:
        pending = self.pending
        self.pending = None
        if pending is not None:
            pending.cancel()

    def reschedule(
        self,
        calendar: Optional[PresentableCalendar],
        instant: datetime,
        callback: Callable[[PendingWakeup], None],
    ) -> Optional[PendingWakeup]:
        self.cancel()
        if calendar is None:
            return None

        try:
            target = next_wakeup(calendar, instant)
        except CommunicationError as exc:
            logger.warning("Could not schedule next update of states: %s", exc)
            return None

        if target is None:
            logger.debug("No upcoming event boundary; waiting for calendar updates.")
            return None

        delay = max(0.0, (target - instant).total_seconds())
        wakeup = PendingWakeup(target=target)
        wakeup.handle = self._scheduler.schedule(delay, lambda: callback(wakeup))
        self.pending = wakeup
        logger.debug("Scheduled update in %.0f seconds (at %s)", delay, target.isoformat())
        return wakeup
