from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Optional, Protocol
from zoneinfo import ZoneInfo

from .models import Event

logger = logging.getLogger(__name__)

ON = "ON"
OFF = "OFF"

CHANNEL_CURRENT_PRESENCE = "current_presence"
CURRENT_PREFIX = "current_"
NEXT_PREFIX = "next_"
EVENT_CHANNELS = ("title", "start", "end", "description", "location", "comment", "contact")


class Status(Enum):
    ONLINE = "online"
    OFFLINE = "offline"
    UNKNOWN = "unknown"


class StatusDetail(Enum):
    NONE = "none"
    CONFIGURATION_ERROR = "configuration_error"
    COMMUNICATION_ERROR = "communication_error"
    BRIDGE_OFFLINE = "bridge_offline"


class StatePublisher(Protocol):
    def publish(self, current: Optional[Event], upcoming: Optional[Event]) -> None: ...

    def update_status(
        self, status: Status, detail: StatusDetail = StatusDetail.NONE, message: Optional[str] = None
    ) -> None: ...


ChannelListener = Callable[[str, Any], None]


class ChannelPublisher:
    """Exposes current/next events as flat named channels.

    Datetimes are rendered as ISO strings in ``tz``; a channel without a value
    holds None (undefined).
    """

    def __init__(self, tz: Optional[ZoneInfo] = None, on_change: Optional[ChannelListener] = None) -> None:
        self.tz = tz
        self.on_change = on_change
        self.channels: Dict[str, Any] = {}
        self.status = Status.UNKNOWN
        self.status_detail = StatusDetail.NONE
        self.status_message: Optional[str] = None

    def _fmt(self, dt: datetime) -> str:
        return (dt.astimezone(self.tz) if self.tz else dt).isoformat()

    def _event_payload(self, e: Optional[Event]) -> Dict[str, Any]:
        if e is None:
            return {name: None for name in EVENT_CHANNELS}
        return {
            "title": e.title,
            "start": self._fmt(e.start),
            "end": self._fmt(e.end),
            "description": e.description,
            "location": e.location,
            "comment": e.comment,
            "contact": e.contact,
        }

    def _update(self, channel: str, value: Any) -> None:
        self.channels[channel] = value
        if self.on_change is not None:
            self.on_change(channel, value)

    def publish(self, current: Optional[Event], upcoming: Optional[Event]) -> None:
        self._update(CHANNEL_CURRENT_PRESENCE, ON if current is not None else OFF)
        for name, value in self._event_payload(current).items():
            self._update(CURRENT_PREFIX + name, value)
        for name, value in self._event_payload(upcoming).items():
            self._update(NEXT_PREFIX + name, value)

    def update_status(
        self, status: Status, detail: StatusDetail = StatusDetail.NONE, message: Optional[str] = None
    ) -> None:
        if (status, detail, message) != (self.status, self.status_detail, self.status_message):
            logger.info("Status %s (%s)%s", status.value, detail.value, f": {message}" if message else "")
        self.status = status
        self.status_detail = detail
        self.status_message = message
