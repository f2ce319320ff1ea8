"""Shared fakes: a virtual-clock scheduler, an inline executor and a recording reporter."""

from __future__ import annotations

from concurrent.futures import Future

import pytest

from lastfm_lite.config import Settings
from lastfm_lite.reporter import SCROBBLE, Outcome
from lastfm_lite.timer import PausableTimer


class _Handle:
    def __init__(self, when: float, seq: int, fn) -> None:
        self.when = when
        self.seq = seq
        self.fn = fn
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Runs scheduled callbacks only when the test advances the clock."""

    def __init__(self) -> None:
        self.now = 0.0
        self._tasks: list[_Handle] = []
        self._seq = 0

    def clock(self) -> float:
        return self.now

    def schedule(self, delay: float, fn) -> _Handle:
        handle = _Handle(self.now + delay, self._seq, fn)
        self._seq += 1
        self._tasks.append(handle)
        return handle

    def pending(self) -> int:
        return sum(1 for t in self._tasks if not t.cancelled)

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [t for t in self._tasks if not t.cancelled and t.when <= target]
            if not due:
                break
            task = min(due, key=lambda t: (t.when, t.seq))
            self._tasks.remove(task)
            self.now = task.when
            task.fn()
        self.now = target

    def timer(self) -> PausableTimer:
        return PausableTimer(schedule=self.schedule, clock=self.clock)


class InlineExecutor:
    """Runs submitted work immediately on the calling thread."""

    def __init__(self) -> None:
        self.submitted = 0

    def submit(self, fn, *args, **kwargs) -> Future:
        self.submitted += 1
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future

    def shutdown(self, wait: bool = True) -> None:
        return


class RecordingReporter:
    """Stands in for LastFMReporter; every scrobble succeeds unless told otherwise."""

    def __init__(self) -> None:
        self.now_playing: list[tuple[str, str, str, int]] = []
        self.scrobbles: list[tuple[str, str, str]] = []
        self.timestamps: list[int] = []
        self.scrobble_error = None
        self.resolve_later = False
        self.pending: list[Future] = []

    def notify_now_playing(self, data, duration):
        self.now_playing.append((data.artist, data.title, data.album, duration))
        return None

    def notify_scrobble(self, data, timestamp, duration=0):
        self.scrobbles.append((data.artist, data.title, data.album))
        self.timestamps.append(timestamp)
        future: Future = Future()
        outcome = Outcome(SCROBBLE, data, self.scrobble_error)
        if self.resolve_later:
            self.pending.append(future)
            future.outcome = outcome  # type: ignore[attr-defined]
        else:
            future.set_result(outcome)
        return future


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supported_song_services=frozenset({"mpd", "airplay"}),
        supported_streaming_services=frozenset({"webradio"}),
        scrobble_threshold=50,
        stream_scrobble_threshold=60,
        api_key="key",
        api_secret="secret",
        username="user",
        auth_token="token",
    )


@pytest.fixture
def recording_reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def inline_executor() -> InlineExecutor:
    return InlineExecutor()
