"""
Runtime settings, loaded from environment variables.

The engine reads these on every decision and never writes them, so a
caller may flip a field (e.g. ``scrobble``) on a live instance.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

import pylast

DEFAULT_SONG_SERVICES = (
    "mpd,airplay,volspotconnect,volspotconnect2,spop,radio_paradise,80s80s,"
    "localmusic,tidal,qobuz,deezer,spotify"
)
DEFAULT_STREAMING_SERVICES = "webradio,tunein,radioparadise"

_TRUE = {"1", "true", "yes", "on"}


def parse_services(raw: str | None) -> frozenset[str]:
    if not raw:
        return frozenset()
    return frozenset(s.strip().lower() for s in raw.split(",") if s.strip())


def derive_auth_token(password: str) -> str:
    """MD5 hex digest of the password, as pylast expects for ``password_hash``."""
    return pylast.md5(password)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in _TRUE


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


@dataclass
class Settings:
    scrobble: bool = True
    supported_song_services: frozenset[str] = field(
        default_factory=lambda: parse_services(DEFAULT_SONG_SERVICES))
    supported_streaming_services: frozenset[str] = field(
        default_factory=lambda: parse_services(DEFAULT_STREAMING_SERVICES))
    scrobble_threshold: int = 50          # percent of track duration
    stream_scrobble_threshold: int = 60   # seconds, for live sources
    clean_titles: bool = False
    scrobble_from_stream: bool = False
    push_toast_on_scrobble: bool = False
    debug_logging: bool = False

    api_key: str = ""
    api_secret: str = ""
    username: str = ""
    auth_token: str = ""

    bluos_host: str = "127.0.0.1"
    bluos_port: int = 11000
    poll_interval: int = 3
    long_poll_timeout: int = 100
    log_level: str = "INFO"

    def __post_init__(self):
        self.scrobble_threshold = min(100, max(0, int(self.scrobble_threshold)))

    def credentials(self) -> tuple[str, str, str, str]:
        return (self.api_key, self.api_secret, self.username, self.auth_token)

    def missing_credentials(self) -> list[str]:
        names = ("API_KEY", "API_SECRET", "username", "authToken")
        return [name for name, value in zip(names, self.credentials()) if not value]

    @classmethod
    def from_env(cls) -> "Settings":
        auth_token = os.getenv("LASTFM_PASSWORD_MD5", "")
        if not auth_token and os.getenv("LASTFM_PASSWORD"):
            auth_token = derive_auth_token(os.environ["LASTFM_PASSWORD"])

        return cls(
            scrobble=_env_bool("SCROBBLE", True),
            supported_song_services=parse_services(
                os.getenv("SUPPORTED_SONG_SERVICES", DEFAULT_SONG_SERVICES)),
            supported_streaming_services=parse_services(
                os.getenv("SUPPORTED_STREAMING_SERVICES", DEFAULT_STREAMING_SERVICES)),
            scrobble_threshold=_env_int("SCROBBLE_THRESHOLD", 50),
            stream_scrobble_threshold=max(0, _env_int("STREAM_SCROBBLE_THRESHOLD", 60)),
            clean_titles=_env_bool("CLEAN_TITLES", False),
            scrobble_from_stream=_env_bool("SCROBBLE_FROM_STREAM", False),
            push_toast_on_scrobble=_env_bool("PUSH_TOAST_ON_SCROBBLE", False),
            debug_logging=_env_bool("DEBUG_LOGGING", False),
            api_key=os.getenv("LASTFM_API_KEY", "").strip(),
            api_secret=os.getenv("LASTFM_API_SECRET", "").strip(),
            username=os.getenv("LASTFM_USERNAME", "").strip(),
            auth_token=auth_token.strip(),
            bluos_host=os.getenv("BLUOS_HOST", "127.0.0.1"),
            bluos_port=_env_int("BLUOS_PORT", 11000),
            poll_interval=max(1, _env_int("POLL_INTERVAL", 3)),
            long_poll_timeout=max(1, _env_int("LONG_POLL_TIMEOUT", 100)),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
