"""
Fire-and-forget reporting of "now playing" and scrobbles to Last.fm.

Each notification runs on a single background worker, in submission order:
authenticate (or reuse the cached session), apply Last.fm's metadata
correction on a copy of the data, then make the primary call. The task
never raises; it resolves to an ``Outcome`` that an observer logs (and,
for scrobbles, optionally toasts).
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Callable

from lastfm_lite.config import Settings
from lastfm_lite.lastfm_client import (
    LastFMAuthError, LastFMClient, LastFMCorrectionError, LastFMError,
)
from lastfm_lite.notifier import Alerts
from lastfm_lite.state import ScrobbleData

log = logging.getLogger("reporter")

NOW_PLAYING = "now playing"
SCROBBLE = "scrobble"


@dataclass
class Outcome:
    action: str
    data: ScrobbleData
    error: LastFMError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class LastFMReporter:
    def __init__(self, settings: Settings, alerts: Alerts | None = None,
                 executor: Executor | None = None,
                 client_factory: Callable[..., LastFMClient] = LastFMClient):
        self.settings = settings
        self.alerts = alerts or Alerts()
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="lastfm")
        self._client_factory = client_factory
        self._lock = threading.Lock()
        self._client: LastFMClient | None = None
        self._client_credentials: tuple[str, ...] | None = None

    # -------- public API --------
    def notify_now_playing(self, data: ScrobbleData, duration: int) -> Future | None:
        def call(client: LastFMClient, d: ScrobbleData):
            client.update_now_playing(artist=d.artist, title=d.title, album=d.album, duration=duration)
        return self._submit(NOW_PLAYING, data, call)

    def notify_scrobble(self, data: ScrobbleData, timestamp: int, duration: int = 0) -> Future | None:
        def call(client: LastFMClient, d: ScrobbleData):
            client.scrobble(artist=d.artist, title=d.title, album=d.album,
                            timestamp=timestamp, duration=duration)
        return self._submit(SCROBBLE, data, call)

    def shutdown(self, wait: bool = True):
        self._executor.shutdown(wait=wait)

    # -------- internals --------
    def _submit(self, action: str, data: ScrobbleData, call) -> Future | None:
        missing = self.settings.missing_credentials()
        if missing:
            for name in missing:
                log.error('configuration error; "%s" is not set.', name)
            return None
        if not data.artist or not data.title:
            log.debug("Skipping %s; artist or title missing: %s", action, data)
            return None

        future = self._executor.submit(self._run, action, replace(data), call)
        future.add_done_callback(self._observe)
        return future

    def _session(self) -> LastFMClient:
        credentials = self.settings.credentials()
        with self._lock:
            if self._client is not None and self._client_credentials == credentials:
                return self._client
            log.debug("Trying to authenticate...")
            api_key, api_secret, username, auth_token = credentials
            self._client = self._client_factory(api_key, api_secret, username, auth_token)
            self._client_credentials = credentials
            return self._client

    def _forget_session(self):
        with self._lock:
            self._client = None
            self._client_credentials = None

    def _run(self, action: str, data: ScrobbleData, call) -> Outcome:
        try:
            client = self._session()
        except LastFMAuthError as e:
            self._forget_session()
            return Outcome(action, data, e)

        self._apply_correction(client, data)

        try:
            call(client, data)
        except LastFMError as e:
            if isinstance(e, LastFMAuthError):
                self._forget_session()
            return Outcome(action, data, e)
        return Outcome(action, data)

    def _apply_correction(self, client: LastFMClient, data: ScrobbleData):
        try:
            artist, title = client.get_correction(artist=data.artist, title=data.title)
        except LastFMCorrectionError as e:
            log.info("Correction request failed with error: %s", e)
            return
        if artist and artist != data.artist:
            log.info("Corrected artist from: %s to: %s", data.artist, artist)
            data.artist = artist
        if title and title != data.title:
            log.info("Corrected track title from: %s to: %s", data.title, title)
            data.title = title

    def _observe(self, future: Future):
        if future.cancelled():
            return
        outcome: Outcome = future.result()
        d = outcome.data
        if outcome.ok:
            if outcome.action == SCROBBLE:
                log.info("Scrobbled: %s — %s%s", d.artist, d.title, f" [{d.album}]" if d.album else "")
                if self.settings.push_toast_on_scrobble:
                    self.alerts.toast_scrobble(d.artist, d.title, d.album)
            else:
                log.debug('Updated "now playing" | artist: %s | title: %s', d.artist, d.title)
            return

        if isinstance(outcome.error, LastFMAuthError):
            log.error("%s failed (auth): %s", outcome.action, outcome.error)
            self.alerts.send("ERROR", "Last.fm authentication failed", str(outcome.error),
                             {"artist": d.artist, "title": d.title})
        else:
            log.warning("%s failed: %s", outcome.action, outcome.error)
