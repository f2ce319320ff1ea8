"""
Pausable countdown timer.

States: idle -> running -> paused -> running -> fired -> idle (stop).
The remaining time is tracked against a monotonic deadline, so pausing
captures exactly what is left and a resume continues from there.

The scheduler is injectable: ``schedule(delay_seconds, fn)`` must return an
object with ``cancel()``. The default runs each countdown on a daemon
``threading.Timer``.
"""

from __future__ import annotations

import enum
import logging
import math
import threading
import time
from typing import Any, Callable

log = logging.getLogger("timer")

Callback = Callable[[], None]


class TimerResetError(Exception):
    """The countdown could not be (re)started."""


class TimerState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    FIRED = "fired"


def thread_schedule(delay: float, fn: Callback) -> threading.Timer:
    t = threading.Timer(delay, fn)
    t.daemon = True
    t.start()
    return t


class PausableTimer:
    def __init__(self, schedule: Callable[[float, Callback], Any] = thread_schedule,
                 clock: Callable[[], float] = time.monotonic):
        self._schedule = schedule
        self._clock = clock
        self._lock = threading.Lock()
        self._state = TimerState.IDLE
        self._handle: Any = None
        self._callback: Callback | None = None
        self._deadline = 0.0       # clock() value at which the run completes
        self._remaining_ms = 0.0   # valid while paused
        self._generation = 0
        self.started_at: float | None = None

    # -------- introspection --------
    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is TimerState.RUNNING

    @property
    def remaining_ms(self) -> float:
        with self._lock:
            return self._remaining_locked()

    def _remaining_locked(self) -> float:
        if self._state is TimerState.RUNNING:
            return max(0.0, (self._deadline - self._clock()) * 1000.0)
        if self._state is TimerState.PAUSED:
            return self._remaining_ms
        return 0.0

    # -------- control --------
    def start(self, duration_ms: float, on_complete: Callback) -> None:
        """Start a fresh run; a run already in flight is discarded without firing."""
        try:
            duration_ms = float(duration_ms)
        except (TypeError, ValueError) as e:
            raise TimerResetError(f"invalid duration: {duration_ms!r}") from e
        if not math.isfinite(duration_ms):
            raise TimerResetError(f"invalid duration: {duration_ms!r}")

        with self._lock:
            self._cancel_locked()
            self._arm_locked(max(0.0, duration_ms), on_complete)
            self.started_at = time.time()
        log.debug("started countdown of %.0f ms", duration_ms)

    def stop(self) -> None:
        with self._lock:
            self._cancel_locked()
            self._state = TimerState.IDLE
            self._remaining_ms = 0.0
            self._callback = None
            self.started_at = None

    def pause(self) -> float:
        """Halt counting and return the remaining milliseconds."""
        with self._lock:
            if self._state is not TimerState.RUNNING:
                return self._remaining_locked()
            remaining = self._remaining_locked()
            self._cancel_locked()
            self._state = TimerState.PAUSED
            self._remaining_ms = remaining
        log.debug("paused countdown with %.0f ms remaining", remaining)
        return remaining

    def resume(self, on_complete: Callback | None = None) -> None:
        with self._lock:
            if self._state is not TimerState.PAUSED:
                return
            callback = on_complete or self._callback
            if callback is None:
                raise TimerResetError("no callback to resume with")
            remaining = self._remaining_ms
            self._arm_locked(remaining, callback)
        log.debug("resumed countdown with %.0f ms remaining", remaining)

    def add_milliseconds(self, delta_ms: float, on_complete: Callback) -> None:
        """Grow (or shrink) the pending duration by ``delta_ms`` and run to completion."""
        with self._lock:
            remaining = self._remaining_locked()
            self._cancel_locked()
            self._arm_locked(max(0.0, remaining + float(delta_ms)), on_complete)
        log.debug("countdown adjusted by %.0f ms (now %.0f ms)", delta_ms, remaining + delta_ms)

    # -------- internals --------
    def _arm_locked(self, duration_ms: float, on_complete: Callback) -> None:
        self._generation += 1
        generation = self._generation
        self._callback = on_complete
        self._deadline = self._clock() + duration_ms / 1000.0
        self._remaining_ms = 0.0
        try:
            self._handle = self._schedule(duration_ms / 1000.0, lambda: self._expire(generation))
        except RuntimeError as e:
            self._state = TimerState.IDLE
            self._handle = None
            raise TimerResetError(f"could not schedule countdown: {e}") from e
        self._state = TimerState.RUNNING

    def _cancel_locked(self) -> None:
        self._generation += 1
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _expire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._state is not TimerState.RUNNING:
                return
            self._state = TimerState.FIRED
            self._handle = None
            callback = self._callback
        if callback is not None:
            callback()
