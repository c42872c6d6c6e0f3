from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional, Protocol

from .filters import EventTextFilter
from .models import Event


class PresentableCalendar(Protocol):
    """Read-only temporal queries the live event controller relies on."""

    def is_event_present(self, instant: datetime) -> bool: ...

    def get_current_event(
        self, instant: datetime, text_filter: Optional[EventTextFilter] = None
    ) -> Optional[Event]: ...

    def get_next_event(
        self, instant: datetime, text_filter: Optional[EventTextFilter] = None
    ) -> Optional[Event]: ...


def _current_sort_key(indexed: tuple[int, Event]):
    # latest start wins, then earliest end, then input order
    i, e = indexed
    return (-e.start.timestamp(), e.end, i)


def _next_sort_key(indexed: tuple[int, Event]):
    i, e = indexed
    return (e.start, e.end, i)


class EventCalendar:
    """In-memory calendar over an already expanded list of events."""

    def __init__(self, events: Iterable[Event] = ()) -> None:
        self._events: List[Event] = list(events)

    @property
    def events(self) -> List[Event]:
        return list(self._events)

    def _candidates(self, text_filter: Optional[EventTextFilter]) -> List[tuple[int, Event]]:
        return [
            (i, e) for i, e in enumerate(self._events)
            if text_filter is None or text_filter.matches(e)
        ]

    def is_event_present(self, instant: datetime) -> bool:
        return any(e.contains(instant) for e in self._events)

    def get_current_event(
        self, instant: datetime, text_filter: Optional[EventTextFilter] = None
    ) -> Optional[Event]:
        running = [(i, e) for i, e in self._candidates(text_filter) if e.contains(instant)]
        if not running:
            return None
        return min(running, key=_current_sort_key)[1]

    def get_next_event(
        self, instant: datetime, text_filter: Optional[EventTextFilter] = None
    ) -> Optional[Event]:
        upcoming = [(i, e) for i, e in self._candidates(text_filter) if e.start > instant]
        if not upcoming:
            return None
        return min(upcoming, key=_next_sort_key)[1]
