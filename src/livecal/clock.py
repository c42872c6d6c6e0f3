from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def reference_instant(offset_seconds: int, now: Optional[datetime] = None) -> datetime:
    """Return wall-clock time shifted by ``offset_seconds``.

    A positive offset looks ahead: with +3600 an event is reported as current
    one hour before it really starts.
    """
    base = now if now is not None else utc_now()
    return base + timedelta(seconds=offset_seconds)
