from __future__ import annotations

import logging
import threading
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from .bridge import BridgeStatus, CalendarBridge
from .calendar import PresentableCalendar
from .clock import reference_instant, utc_now
from .config import LiveEventConfig
from .errors import CommunicationError, ConfigurationError
from .filters import select_filter
from .models import LiveState
from .publish import StatePublisher, Status, StatusDetail
from .resolver import resolve
from .scheduler import PendingWakeup, Rescheduler, Scheduler, TimerScheduler

logger = logging.getLogger(__name__)

REFRESH = "REFRESH"
MISSING_BRIDGE = "This live event requires a calendar bridge to work."


class ControllerState(Enum):
    UNINITIALIZED = "uninitialized"
    WAITING = "waiting"             # bridge not online yet
    READY = "ready"
    CONFIG_ERROR = "config_error"
    DISPOSED = "disposed"


class LiveEventController:
    """Publishes the current and next calendar event and wakes up at each boundary.

    Every entry point (initialize, refresh, calendar_updated, bridge status
    changes, timer wake-ups and dispose) runs under one lock, so a timer firing
    while the calendar is being replaced is simply serialized behind it.
    """

    def __init__(
        self,
        bridge: Optional[CalendarBridge],
        publisher: StatePublisher,
        config: LiveEventConfig,
        scheduler: Optional[Scheduler] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._bridge = bridge
        self._publisher = publisher
        self._config = config
        self._clock = clock
        self._lock = threading.RLock()
        self._rescheduler = Rescheduler(scheduler or TimerScheduler())
        self._calendar: Optional[PresentableCalendar] = None
        self._offset = 0
        self.state = ControllerState.UNINITIALIZED
        self.live_state: Optional[LiveState] = None

    @property
    def pending_wakeup(self) -> Optional[PendingWakeup]:
        return self._rescheduler.pending

    def initialize(self) -> None:
        with self._lock:
            if self.state is ControllerState.DISPOSED:
                logger.debug("Ignoring initialize on a disposed controller.")
                return

            if self._bridge is None:
                self._config_error(MISSING_BRIDGE)
                return

            cfg = self._config
            self._offset = cfg.offset_seconds if cfg.offset_seconds is not None else 0
            if cfg.filter_field is not None and cfg.filter_type is None and cfg.filter_value is None:
                logger.warning("Event field is set but not match type. This will ignore the filter.")

            try:
                select_filter(cfg.filter_field, cfg.filter_type, cfg.filter_value)
            except ConfigurationError as exc:
                self._config_error(str(exc))
                return

            if self._bridge.status is not BridgeStatus.ONLINE:
                self.state = ControllerState.WAITING
                self._publisher.update_status(Status.OFFLINE, StatusDetail.BRIDGE_OFFLINE)
                return

            self.state = ControllerState.READY
            self._publisher.update_status(Status.UNKNOWN)
            self._retrieve_calendar()
            self._run_cycle()

    def dispose(self) -> None:
        with self._lock:
            if self.state is ControllerState.DISPOSED:
                return
            self.state = ControllerState.DISPOSED
            self._rescheduler.cancel()
            self._calendar = None
            self.live_state = None

    def refresh(self) -> None:
        with self._lock:
            if not self._accepts_cycles():
                return
            self._run_cycle()

    def calendar_updated(self) -> None:
        with self._lock:
            if not self._accepts_cycles():
                return
            self._retrieve_calendar()
            self._run_cycle()

    def handle_command(self, channel: str, command: str) -> None:
        if command == REFRESH:
            self.refresh()
        else:
            logger.debug("Ignoring command %r for channel %s", command, channel)

    def bridge_status_changed(self, status: BridgeStatus) -> None:
        with self._lock:
            if self.state in (ControllerState.UNINITIALIZED, ControllerState.DISPOSED):
                return
            if status is BridgeStatus.OFFLINE:
                self._rescheduler.cancel()
                self._publisher.update_status(Status.OFFLINE, StatusDetail.BRIDGE_OFFLINE)
            elif status is BridgeStatus.ONLINE:
                if self.state is ControllerState.WAITING:
                    self.state = ControllerState.READY
                self._retrieve_calendar()
                self._run_cycle()
            else:
                self._rescheduler.cancel()
                self._publisher.update_status(Status.UNKNOWN)

    def _on_wakeup(self, wakeup: PendingWakeup) -> None:
        with self._lock:
            if self.state is ControllerState.DISPOSED or self._rescheduler.pending is not wakeup:
                logger.debug("Ignoring stale wake-up for %s", wakeup.target.isoformat())
                return
            self._rescheduler.pending = None
            try:
                self._run_cycle()
            except Exception:
                logger.exception("Scheduled live event update failed")

    def _accepts_cycles(self) -> bool:
        if self.state in (ControllerState.READY, ControllerState.CONFIG_ERROR):
            return True
        logger.debug("Ignoring update request while %s.", self.state.value)
        return False

    def _retrieve_calendar(self) -> None:
        if self._bridge is None:
            logger.debug("Bridge not instantiated!")
            return
        self._calendar = self._bridge.get_runtime_calendar()

    def _config_error(self, message: str) -> None:
        self.state = ControllerState.CONFIG_ERROR
        self._rescheduler.cancel()
        self._publisher.update_status(Status.OFFLINE, StatusDetail.CONFIGURATION_ERROR, message)

    def _run_cycle(self) -> None:
        if self._bridge is None:
            self._config_error(MISSING_BRIDGE)
            return
        if self._bridge.status is BridgeStatus.UNKNOWN:
            self._rescheduler.cancel()
            self._publisher.update_status(Status.UNKNOWN)
            return
        if self._bridge.status is not BridgeStatus.ONLINE:
            self._rescheduler.cancel()
            self._publisher.update_status(Status.OFFLINE, StatusDetail.BRIDGE_OFFLINE)
            return

        # one instant for both resolution and rescheduling
        instant = reference_instant(self._offset, self._clock())
        cfg = self._config
        try:
            text_filter = select_filter(cfg.filter_field, cfg.filter_type, cfg.filter_value)
        except ConfigurationError as exc:
            self._config_error(str(exc))
            return

        try:
            state = resolve(self._calendar, instant, text_filter)
        except CommunicationError as exc:
            self._rescheduler.cancel()
            self._publisher.update_status(Status.OFFLINE, StatusDetail.COMMUNICATION_ERROR, str(exc))
            return

        self.state = ControllerState.READY
        self.live_state = state
        self._publisher.update_status(Status.ONLINE)
        self._publisher.publish(state.current, state.next)
        self._rescheduler.reschedule(self._calendar, instant, self._on_wakeup)
