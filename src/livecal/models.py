from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

@dataclass(frozen=True)
class Event:
    title: str
    start: datetime             # timezone-aware
    end: datetime               # timezone-aware, never before start
    description: Optional[str] = None
    location: Optional[str] = None
    comment: Optional[str] = None
    contact: Optional[str] = None

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"Event {self.title!r} ends before it starts")

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant < self.end


@dataclass(frozen=True)
class LiveState:
    """Result of one resolution cycle; rebuilt every cycle, never diffed."""
    current: Optional[Event] = None
    next: Optional[Event] = None
