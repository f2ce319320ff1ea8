from __future__ import annotations

import logging
import threading
from typing import Callable

from lastfm_lite.state import PlayerState

log = logging.getLogger("events")

Listener = Callable[[PlayerState], None]


class PushStateChannel:
    """Named in-process channel delivering PlayerState pushes to listeners, in order."""

    def __init__(self, name: str = "pushState"):
        self.name = name
        self._lock = threading.Lock()
        self._listeners: list[Listener] = []

    def on(self, listener: Listener):
        with self._lock:
            self._listeners.append(listener)

    def off(self, listener: Listener | None = None):
        """Remove one listener, or all of them when none is given."""
        with self._lock:
            if listener is None:
                self._listeners.clear()
            elif listener in self._listeners:
                self._listeners.remove(listener)

    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def emit(self, state: PlayerState):
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(state)
            except Exception:
                log.exception("%s listener failed for %s", self.name, state)
