"""
Gotify sink: POST /message with an application token.

Env:
- GOTIFY_URL (e.g., http://nas:8080)
- GOTIFY_TOKEN (App token)
- GOTIFY_PRIORITY (1..10; default 5)
- GOTIFY_MIN_LEVEL (DEBUG|INFO|WARNING|ERROR|CRITICAL; default INFO)
"""

from __future__ import annotations
import os
import logging
import requests

from lastfm_lite.notifier import APP_TAG, LEVELS, level_allows

log = logging.getLogger("notifier")


class GotifyNotifier:
    def __init__(self, url: str | None, token: str | None, min_level: str = "INFO",
                 default_priority: int = 5, app_tag: str = APP_TAG):
        self.url = url.rstrip("/") if url else None
        self.token = token.strip() if token else None
        self.min_level = LEVELS.get(min_level.upper(), 20)
        self.default_priority = default_priority
        self.app_tag = app_tag

    def send(self, level: str, title: str, message: str, extra: dict | None = None,
             priority: int | None = None):
        if not self.url or not self.token or not level_allows(level, self.min_level):
            return

        body = {
            "title": f"{self.app_tag}: {title}",
            "message": message if not extra else f"{message}\n\n{extra}",
            "priority": priority if priority is not None else self.default_priority,
        }
        try:
            requests.post(f"{self.url}/message", json=body,
                          headers={"X-Gotify-Key": self.token}, timeout=5)
        except requests.RequestException as e:
            log.debug("Gotify send failed: %s", e)


def from_env() -> GotifyNotifier:
    try:
        prio = int(os.getenv("GOTIFY_PRIORITY", "5"))
    except ValueError:
        prio = 5
    return GotifyNotifier(
        os.getenv("GOTIFY_URL"),
        os.getenv("GOTIFY_TOKEN"),
        min_level=os.getenv("GOTIFY_MIN_LEVEL", "INFO"),
        default_priority=prio,
        app_tag=os.getenv("APP_TAG", APP_TAG),
    )
