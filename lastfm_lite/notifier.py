"""
User-visible notifications ("toasts").

- WebhookNotifier POSTs a JSON body to NOTIFY_WEBHOOK_URL.
- Alerts fans a message out to every configured sink; each sink ignores
  messages below its minimum level or when it is not configured.
- Best-effort: delivery failures are logged at DEBUG and never raised.
"""

from __future__ import annotations
import os
import logging
import requests

LEVELS = {
    "DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40, "CRITICAL": 50
}
APP_TAG = "Last.fm"

log = logging.getLogger("notifier")


def level_allows(level: str, min_level: int) -> bool:
    return LEVELS.get(level.upper(), 30) >= min_level


class WebhookNotifier:
    def __init__(self, webhook_url: str | None, min_level: str = "INFO", app_tag: str = APP_TAG):
        self.webhook_url = webhook_url.strip() if webhook_url else None
        self.min_level = LEVELS.get(min_level.upper(), 20)
        self.app_tag = app_tag

    def send(self, level: str, title: str, message: str, extra: dict | None = None):
        if not self.webhook_url or not level_allows(level, self.min_level):
            return

        payload = {
            "level": level.upper(),
            "title": f"{self.app_tag}: {title}",
            "message": message,
            "extra": extra or {},
        }
        try:
            requests.post(self.webhook_url, json=payload, timeout=5)
        except requests.RequestException as e:
            log.debug("Webhook send failed: %s", e)


class Alerts:
    """Fan-out over notifier sinks."""

    def __init__(self, *sinks):
        self.sinks = list(sinks)

    def send(self, level: str, title: str, message: str, extra: dict | None = None):
        for sink in self.sinks:
            try:
                sink.send(level, title, message, extra)
            except Exception as e:
                log.debug("%s failed: %s", type(sink).__name__, e)

    def toast_scrobble(self, artist: str, title: str, album: str | None):
        album = album or "[unknown album]"
        self.send("INFO", "Scrobble successful", f"Scrobbled: {artist} - {title} ({album}).")


def from_env() -> WebhookNotifier:
    return WebhookNotifier(
        webhook_url=os.getenv("NOTIFY_WEBHOOK_URL"),
        min_level=os.getenv("NOTIFY_MIN_LEVEL", "INFO"),
        app_tag=os.getenv("APP_TAG", APP_TAG),
    )
