from datetime import datetime, timedelta, timezone
import threading

import pytest

from livecal.calendar import EventCalendar
from livecal.errors import CommunicationError
from livecal.models import Event
from livecal.scheduler import Rescheduler, TimerScheduler, next_wakeup

UTC = timezone.utc


def _at(hour: int, minute: int = 0, second: int = 0) -> datetime:
    return datetime(2026, 2, 5, hour, minute, second, tzinfo=UTC)


class FakeHandle:
    def __init__(self) -> None:
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    def done(self) -> bool:
        return self.fired or self.cancelled


class FakeScheduler:
    def __init__(self) -> None:
        self.calls = []

    def schedule(self, delay_seconds, callback):
        handle = FakeHandle()
        self.calls.append((delay_seconds, callback, handle))
        return handle


class InconsistentCalendar(EventCalendar):
    def is_event_present(self, instant):
        return True


def test_next_wakeup_is_end_of_current_event():
    cal = EventCalendar([Event("Meeting", _at(10), _at(11))])

    assert next_wakeup(cal, _at(10, 30)) == _at(11)


def test_next_wakeup_prefers_earlier_start_of_next_event():
    cal = EventCalendar([Event("Focus", _at(9), _at(12)), Event("Call", _at(10), _at(10, 30))])

    assert next_wakeup(cal, _at(9, 30)) == _at(10)


def test_back_to_back_events_share_one_boundary():
    cal = EventCalendar([Event("A", _at(10), _at(11)), Event("B", _at(11), _at(12))])

    assert next_wakeup(cal, _at(10, 59, 59)) == _at(11)
    assert next_wakeup(cal, _at(11)) == _at(12)


def test_no_events_means_no_wakeup():
    assert next_wakeup(EventCalendar(), _at(10)) is None
    assert next_wakeup(EventCalendar([Event("Past", _at(8), _at(9))]), _at(10)) is None


def test_next_wakeup_never_decreases_over_time():
    cal = EventCalendar([
        Event("Focus", _at(9), _at(13)),
        Event("Call", _at(10), _at(10, 30)),
        Event("Lunch", _at(12), _at(13)),
        Event("Review", _at(12, 30), _at(14)),
    ])
    previous = None
    t = _at(8)
    while t <= _at(15):
        w = next_wakeup(cal, t)
        if previous is not None and w is not None:
            assert w >= previous
        if w is not None:
            assert w > t
            previous = w
        t += timedelta(minutes=5)


def test_inconsistent_calendar_raises_communication_error():
    with pytest.raises(CommunicationError):
        next_wakeup(InconsistentCalendar(), _at(10))


def test_reschedule_arms_timer_with_delay_to_boundary():
    fake = FakeScheduler()
    rescheduler = Rescheduler(fake)
    cal = EventCalendar([Event("Meeting", _at(10), _at(11))])

    wakeup = rescheduler.reschedule(cal, _at(10, 30), lambda w: None)

    assert wakeup is rescheduler.pending
    assert wakeup.target == _at(11)
    assert [c[0] for c in fake.calls] == [1800.0]


def test_reschedule_cancels_previous_timer_and_keeps_one():
    fake = FakeScheduler()
    rescheduler = Rescheduler(fake)
    cal = EventCalendar([Event("Meeting", _at(10), _at(11))])

    rescheduler.reschedule(cal, _at(10, 30), lambda w: None)
    rescheduler.reschedule(cal, _at(10, 30), lambda w: None)

    assert len(fake.calls) == 2
    assert fake.calls[0][2].cancelled
    assert not fake.calls[1][2].cancelled
    assert rescheduler.pending.handle is fake.calls[1][2]


def test_reschedule_without_boundary_clears_pending():
    fake = FakeScheduler()
    rescheduler = Rescheduler(fake)
    rescheduler.reschedule(EventCalendar([Event("Meeting", _at(10), _at(11))]), _at(10), lambda w: None)

    assert rescheduler.reschedule(EventCalendar(), _at(10), lambda w: None) is None
    assert rescheduler.pending is None
    assert fake.calls[0][2].cancelled


def test_reschedule_does_not_arm_when_calendar_is_inconsistent(caplog):
    fake = FakeScheduler()
    rescheduler = Rescheduler(fake)

    assert rescheduler.reschedule(InconsistentCalendar(), _at(10), lambda w: None) is None
    assert fake.calls == []
    assert "Could not schedule" in caplog.text


def test_cancelling_a_fired_wakeup_is_a_noop():
    fake = FakeScheduler()
    rescheduler = Rescheduler(fake)
    rescheduler.reschedule(EventCalendar([Event("Meeting", _at(10), _at(11))]), _at(10), lambda w: None)
    handle = fake.calls[0][2]
    handle.fired = True

    rescheduler.cancel()

    assert not handle.cancelled
    assert rescheduler.pending is None


def test_timer_scheduler_runs_callback_on_timer_thread():
    fired = threading.Event()
    handle = TimerScheduler().schedule(0.01, fired.set)

    assert fired.wait(2.0)
    handle.cancel()


def test_timer_scheduler_cancel_prevents_callback():
    fired = threading.Event()
    handle = TimerScheduler().schedule(5.0, fired.set)

    handle.cancel()

    assert not fired.wait(0.05)
