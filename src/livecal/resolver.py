from __future__ import annotations

from datetime import datetime
from typing import Optional

from .calendar import PresentableCalendar
from .errors import CommunicationError
from .filters import EventTextFilter
from .models import LiveState


def resolve(
    calendar: Optional[PresentableCalendar],
    instant: datetime,
    text_filter: Optional[EventTextFilter] = None,
) -> LiveState:
    """Look up the current and next event at ``instant``.

    An empty LiveState is a valid answer ("nothing scheduled"); a calendar that
    has not been retrieved yet is a communication failure instead.
    """
    if calendar is None:
        raise CommunicationError("Calendar has not been retrieved yet.")
    return LiveState(
        current=calendar.get_current_event(instant, text_filter),
        next=calendar.get_next_event(instant, text_filter),
    )
