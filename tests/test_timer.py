import pytest

from lastfm_lite.timer import PausableTimer, TimerResetError, TimerState


def test_fires_once_after_duration(scheduler):
    fired = []
    timer = scheduler.timer()
    timer.start(1500, lambda: fired.append(scheduler.now))

    assert timer.is_active
    scheduler.advance(1.4)
    assert fired == []
    scheduler.advance(0.2)
    assert fired == [1.5]
    assert timer.state is TimerState.FIRED
    scheduler.advance(10)
    assert fired == [1.5]


def test_zero_duration_never_fires_inside_start(scheduler):
    fired = []
    timer = scheduler.timer()
    timer.start(0, lambda: fired.append(True))
    assert fired == []
    scheduler.advance(0)
    assert fired == [True]


def test_stop_cancels_without_firing(scheduler):
    fired = []
    timer = scheduler.timer()
    timer.start(1000, lambda: fired.append(True))
    timer.stop()

    scheduler.advance(5)
    assert fired == []
    assert timer.state is TimerState.IDLE
    assert timer.remaining_ms == 0


def test_restart_discards_previous_run(scheduler):
    fired = []
    timer = scheduler.timer()
    timer.start(1000, lambda: fired.append("first"))
    scheduler.advance(0.5)
    timer.start(1000, lambda: fired.append("second"))

    scheduler.advance(0.6)
    assert fired == []
    scheduler.advance(0.5)
    assert fired == ["second"]


def test_pause_returns_remaining_and_resume_continues(scheduler):
    fired = []
    timer = scheduler.timer()
    timer.start(10_000, lambda: fired.append(scheduler.now))
    scheduler.advance(4)

    remaining = timer.pause()
    assert remaining == pytest.approx(6000)
    assert timer.state is TimerState.PAUSED
    assert not timer.is_active

    scheduler.advance(100)
    assert fired == []

    timer.resume()
    scheduler.advance(5.9)
    assert fired == []
    scheduler.advance(0.2)
    assert fired == [pytest.approx(110)]


def test_add_milliseconds_extends_paused_remainder(scheduler):
    fired = []
    timer = scheduler.timer()
    timer.start(10_000, lambda: fired.append("old"))
    scheduler.advance(4)
    timer.pause()

    timer.add_milliseconds(5000, lambda: fired.append("new"))
    assert timer.is_active
    scheduler.advance(10.9)
    assert fired == []
    scheduler.advance(0.2)
    assert fired == ["new"]


def test_add_milliseconds_never_goes_negative(scheduler):
    fired = []
    timer = scheduler.timer()
    timer.add_milliseconds(-5000, lambda: fired.append(True))
    scheduler.advance(0)
    assert fired == [True]


@pytest.mark.parametrize("duration", [float("nan"), float("inf"), "soon"])
def test_invalid_duration_raises(scheduler, duration):
    timer = scheduler.timer()
    with pytest.raises(TimerResetError):
        timer.start(duration, lambda: None)
    assert timer.state is TimerState.IDLE


def test_scheduler_failure_is_reported_as_reset_error():
    def broken(delay, fn):
        raise RuntimeError("can't start new thread")

    timer = PausableTimer(schedule=broken)
    with pytest.raises(TimerResetError):
        timer.start(1000, lambda: None)
    assert timer.state is TimerState.IDLE
