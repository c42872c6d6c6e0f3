from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import List, Optional, Protocol

from .calendar import PresentableCalendar

logger = logging.getLogger(__name__)


class BridgeStatus(Enum):
    ONLINE = "online"
    OFFLINE = "offline"
    UNKNOWN = "unknown"


class CalendarUpdateListener(Protocol):
    def calendar_updated(self) -> None: ...

    def bridge_status_changed(self, status: BridgeStatus) -> None: ...


class CalendarBridge:
    """Holds the most recently loaded calendar and tells listeners about changes.

    Whoever fetches or parses the calendar source hands the result to
    ``update_calendar``; this class never does I/O itself.
    """

    def __init__(
        self,
        calendar: Optional[PresentableCalendar] = None,
        status: BridgeStatus = BridgeStatus.ONLINE,
    ) -> None:
        self._lock = threading.Lock()
        self._calendar = calendar
        self._status = status
        self._listeners: List[CalendarUpdateListener] = []

    @property
    def status(self) -> BridgeStatus:
        return self._status

    def get_runtime_calendar(self) -> Optional[PresentableCalendar]:
        return self._calendar

    def add_listener(self, listener: CalendarUpdateListener) -> None:
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def remove_listener(self, listener: CalendarUpdateListener) -> None:
        with self._lock:
            self._listeners = [l for l in self._listeners if l is not listener]

    def update_calendar(self, calendar: PresentableCalendar) -> None:
        with self._lock:
            self._calendar = calendar
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener.calendar_updated()
            except Exception:
                logger.exception("Calendar update listener %r failed", listener)

    def set_status(self, status: BridgeStatus) -> None:
        with self._lock:
            if status == self._status:
                return
            self._status = status
            listeners = list(self._listeners)
        logger.info("Calendar bridge is now %s", status.value)
        for listener in listeners:
            try:
                listener.bridge_status_changed(status)
            except Exception:
                logger.exception("Bridge status listener %r failed", listener)
