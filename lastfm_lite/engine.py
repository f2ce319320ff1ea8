"""
Scrobble decision engine.

Consumes PlayerState pushes one at a time and decides when to send
"now playing" and when to arm, resume, extend or stop the countdown that
ends in a scrobble. All session memory lives on the engine instance:

- previous_state: the last push, used to spot track changes, duration
  corrections and duplicate pushes
- previous_scrobble: the last scrobbled track, cleared once the rest of
  that track would have played out
- time_to_play: remainder captured when playback pauses
- listen_started_at: wall-clock start of the listen being counted down,
  sent as the scrobble timestamp

Timer and outcome callbacks arrive on other threads; every entry point
takes the same re-entrant lock, so only one mutation is ever in flight.
"""

from __future__ import annotations

import functools
import logging
import threading
import time
from concurrent.futures import Future
from typing import Callable

from lastfm_lite.config import Settings
from lastfm_lite.events import PushStateChannel
from lastfm_lite.normalize import format_scrobble_data
from lastfm_lite.reporter import LastFMReporter
from lastfm_lite.state import PAUSE, PLAY, STOP, PlayerState, PreviousScrobble, ScrobbleData
from lastfm_lite.timer import PausableTimer, TimerResetError, TimerState

log = logging.getLogger("engine")


class ScrobbleEngine:
    def __init__(self, settings: Settings, reporter: LastFMReporter,
                 timer_factory: Callable[[], PausableTimer] = PausableTimer,
                 wall_clock: Callable[[], float] = time.time):
        self.settings = settings
        self.reporter = reporter
        self._timer_factory = timer_factory
        self._wall_clock = wall_clock
        self._lock = threading.RLock()
        self._channel: PushStateChannel | None = None
        self._session = 0
        self.timer: PausableTimer | None = None
        self.memory_timer: PausableTimer | None = None
        self.reset_state()

    # -------------------------
    # Lifecycle
    # -------------------------
    def reset_state(self):
        with self._lock:
            for t in (self.timer, self.memory_timer):
                if t is not None:
                    t.stop()
            self._session += 1
            self.previous_state: PlayerState | None = None
            self.previous_scrobble = PreviousScrobble()
            self.scrobble_data = ScrobbleData()
            self.time_to_play = 0.0
            self.listen_started_at: float | None = None
            self.timer = self._timer_factory()
            self.memory_timer = self._timer_factory()

    def start(self, channel: PushStateChannel):
        s = self.settings
        log.info("Scrobbler initiated!")
        log.info("Extended logging: %s | scrobbling enabled: %s | clean titles: %s | "
                 "try scrobble stream/radio plays: %s",
                 s.debug_logging, s.scrobble, s.clean_titles, s.scrobble_from_stream)
        log.debug("Supported song services: %s", sorted(s.supported_song_services))
        log.debug("Supported streaming services: %s", sorted(s.supported_streaming_services))
        with self._lock:
            self._channel = channel
            channel.on(self.handle_state)

    def stop(self):
        with self._lock:
            if self._channel is not None:
                log.debug("Removing listeners: %s", self._channel.listener_count())
                self._channel.off()
                self._channel = None
            self.reset_state()

    # -------------------------
    # Thresholds
    # -------------------------
    def threshold_ms(self, state: PlayerState) -> float:
        s = self.settings
        if state.service in s.supported_song_services:
            return state.duration * (s.scrobble_threshold / 100) * 1000
        if s.scrobble_from_stream and state.service in s.supported_streaming_services:
            return s.stream_scrobble_threshold * 1000
        return 0

    # -------------------------
    # Event processing
    # -------------------------
    def handle_state(self, state: PlayerState):
        with self._lock:
            s = self.settings
            threshold_ms = self.threshold_ms(state)
            initializing = self.previous_state is None
            previous = self.previous_state or state

            log.debug("New state has been pushed; status: %s | service: %s | duration: %s | "
                      "title: %s | previous title: %s%s",
                      state.status, state.service, state.duration, state.title, previous.title,
                      " | Initializing: true" if initializing else "")
            log.debug("[timer] state: %s | started at: %s", self.timer.state.value, self.timer.started_at)

            self.scrobble_data = format_scrobble_data(state, s.clean_titles, s.supported_streaming_services)

            if state.status == PLAY:
                if s.scrobble:
                    self._on_play(state, previous, initializing, threshold_ms)
            elif state.status == PAUSE:
                if self.timer.is_active:
                    self.time_to_play = self.timer.pause()
            elif state.status == STOP:
                log.debug("Stopping timer, song has ended.")
                if self.timer.is_active:
                    self.timer.stop()
                self.time_to_play = 0.0

            self.previous_state = state

    def _on_play(self, state: PlayerState, previous: PlayerState, initializing: bool, threshold_ms: float):
        s = self.settings
        log.debug("Playback detected, evaluating parameters for scrobbling...")

        if state.service in s.supported_song_services or state.service in s.supported_streaming_services:
            self.reporter.notify_now_playing(self.scrobble_data, state.duration)

        same_track = previous.artist == state.artist and previous.title == state.title
        duration_changed = previous.duration != state.duration
        resumed = previous.status in (PAUSE, STOP)
        not_yet_scrobbled = not self.previous_scrobble.matches(self.scrobble_data)

        if (
            (same_track and (resumed or initializing or duration_changed))
            or (self.timer is not None and not self.timer.is_active and not_yet_scrobbled)
        ):
            log.debug("Continuing playback or different song.")
            late_duration = (
                same_track and duration_changed and not initializing
                and previous.duration > 0 and self.timer.state is TimerState.PAUSED
            )
            if state.duration > 0:
                log.debug("timeToPlay for current track: %s", self.time_to_play)
                if late_duration:
                    self._extend_timer(state, previous, threshold_ms)
                elif self.time_to_play > 0:
                    self._continue_timer(state, threshold_ms)
                elif threshold_ms > 0:
                    log.debug("Starting new timer for %.0f ms [%s - %s].", threshold_ms, state.artist, state.title)
                    self._start_listen(threshold_ms, state)
                else:
                    log.debug("Can not scrobble; state object: %s", state.snapshot())
            elif state.service in s.supported_streaming_services and threshold_ms > 0:
                log.debug("Starting new timer for %.0f ms [%s: %s].", threshold_ms, state.service, state.title)
                self._start_listen(threshold_ms, state)
        elif same_track and not duration_changed:
            log.debug("Same state, different update... no action required.")
        else:
            log.debug("Could not process current state: %s", state.snapshot())

    # -------------------------
    # Timer handling
    # -------------------------
    def stop_and_start_timer(self, length_ms: float, state: PlayerState, threshold_ms: float) -> bool:
        """(Re)start the scrobble countdown; False when the restart did not take effect."""
        try:
            self.timer.stop()
            self.timer.start(length_ms, functools.partial(self._on_threshold_reached, state, threshold_ms))
        except TimerResetError as e:
            log.error("An error occurred during timer reset; %s", e)
            log.info("STATE; %s", state.snapshot())
            self.timer.stop()
            return False
        return True

    def _start_listen(self, threshold_ms: float, state: PlayerState):
        if self.stop_and_start_timer(threshold_ms, state, threshold_ms):
            self.listen_started_at = self._wall_clock()

    def _continue_timer(self, state: PlayerState, threshold_ms: float):
        callback = functools.partial(self._on_threshold_reached, state, threshold_ms)
        if self.timer.state is TimerState.PAUSED:
            log.debug("Resuming scrobble timer with %.0f ms left [%s - %s].",
                      self.time_to_play, state.artist, state.title)
            try:
                self.timer.resume(callback)
            except TimerResetError as e:
                log.error("An error occurred during timer reset; %s", e)
                log.info("STATE; %s", state.snapshot())
                self.timer.stop()
            return
        log.debug("Continuing scrobble, starting new timer for the remainder of %.0f ms [%s - %s].",
                  self.time_to_play, state.artist, state.title)
        self.stop_and_start_timer(self.time_to_play, state, threshold_ms)

    def _extend_timer(self, state: PlayerState, previous: PlayerState, threshold_ms: float):
        # Some players (AirPlay) report the real duration only after playback started
        addition = (state.duration - previous.duration) * (self.settings.scrobble_threshold / 100) * 1000
        log.info("Updating timer, previous duration is obsolete; adding %.0f milliseconds.", addition)
        self.timer.add_milliseconds(addition, functools.partial(self._on_threshold_reached, state, threshold_ms))
        self.time_to_play = 0.0

    def _on_threshold_reached(self, state: PlayerState, threshold_ms: float):
        with self._lock:
            # Superseded by a restart or stop while this callback was waiting on the lock
            if self.timer.state is not TimerState.FIRED:
                return
            log.debug("Scrobbling from timer.")
            self.scrobble(state, threshold_ms)
            self.timer.stop()
            self.time_to_play = 0.0

    # -------------------------
    # Scrobbling and its memory
    # -------------------------
    def scrobble(self, state: PlayerState, threshold_ms: float):
        s = self.settings
        if not s.scrobble:
            return
        data = format_scrobble_data(state, s.clean_titles, s.supported_streaming_services)
        log.debug("Previous scrobble: %s", self.previous_scrobble)

        started_at = self.listen_started_at
        if started_at is None:
            started_at = self._wall_clock() - threshold_ms / 1000
        future = self.reporter.notify_scrobble(data, timestamp=int(started_at), duration=state.duration)
        if future is not None:
            # Remembered while in flight so a repeat push cannot re-arm the same listen
            identity = PreviousScrobble(artist=data.artist, title=data.title)
            self.previous_scrobble = identity
            self.memory_timer.stop()
            future.add_done_callback(functools.partial(
                self._scrobble_finished, self._session, identity, state.duration, threshold_ms))

    def _scrobble_finished(self, session: int, identity: PreviousScrobble, duration: int,
                           threshold_ms: float, future: Future):
        ok = not future.cancelled() and future.result().ok
        with self._lock:
            # Outcome of an earlier session or an already replaced memory
            if session != self._session or self.previous_scrobble != identity:
                return
            if not ok:
                self.previous_scrobble = PreviousScrobble()
                return
            self.memory_timer.stop()
            if duration > 0:
                self.memory_timer.start(max(0.0, duration * 1000 - threshold_ms), self._clear_scrobble_memory)

    def _clear_scrobble_memory(self):
        with self._lock:
            log.debug("Clearing scrobble memory for %s", self.previous_scrobble)
            self.previous_scrobble = PreviousScrobble()
            self.memory_timer.stop()
