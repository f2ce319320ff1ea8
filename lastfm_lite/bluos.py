import logging
import requests
import xml.etree.ElementTree as ET
from dataclasses import dataclass

from lastfm_lite.state import PAUSE, PLAY, STOP, PlayerState

log = logging.getLogger("bluos")

# BluOS reports "stream" while a radio/stream source is playing
_STATUS_MAP = {"play": PLAY, "stream": PLAY, "pause": PAUSE}


@dataclass
class BluOSStatus:
    title: str | None
    artist: str | None
    album: str | None
    service: str | None
    duration: int | None  # seconds
    state: str | None     # 'play', 'stream', 'pause', 'stop', 'connecting'
    etag: str | None = None

    def to_player_state(self) -> PlayerState:
        return PlayerState(
            status=_STATUS_MAP.get(self.state or "", STOP),
            service=(self.service or "").lower(),
            artist=self.artist or "",
            title=self.title or "",
            album=self.album,
            duration=self.duration or 0,
        )


class BluOSClient:
    """
    Reads /Status from a BluOS player.
    With an etag the request long-polls: the player answers when the status changes
    or after `long_poll` seconds, so every answer is a pushState for the engine.
    """
    def __init__(self, host: str, port: int = 11000, timeout: int = 5, long_poll: int = 100):
        self.base = f"http://{host}:{port}"
        self.timeout = timeout
        self.long_poll = long_poll

    def _findtext_any(self, root: ET.Element, *tags: str):
        for t in tags:
            el = root.find(f".//{t}")
            if el is not None and el.text:
                return el.text.strip()
        return None

    def _to_int(self, s):
        if s is None: return None
        try:
            return int(float(s))
        except ValueError:
            return None

    def parse_status(self, text: str) -> BluOSStatus | None:
        try:
            root = ET.fromstring(text)
        except ET.ParseError as e:
            log.debug("Status XML parse failed: %s", e)
            return None

        # title appears as <name> and also as <title1>; fallbacks included
        title  = self._findtext_any(root, "name", "title1", "title", "song")
        artist = self._findtext_any(root, "artist", "title2")
        album  = self._findtext_any(root, "album", "title3")
        service = self._findtext_any(root, "service")
        duration = self._findtext_any(root, "totlen", "duration", "total", "trackLength", "length")

        state = self._findtext_any(root, "state", "status", "mode")
        return BluOSStatus(
            title=title,
            artist=artist,
            album=album,
            service=service,
            duration=self._to_int(duration),
            state=state.lower() if state else None,
            etag=root.get("etag"),
        )

    def get_status(self, etag: str | None = None) -> BluOSStatus | None:
        params = {}
        timeout = self.timeout
        if etag:
            params = {"timeout": self.long_poll, "etag": etag}
            timeout = self.long_poll + self.timeout
        try:
            resp = requests.get(f"{self.base}/Status", params=params, timeout=timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            log.debug("Status request failed: %s", e)
            return None
        return self.parse_status(resp.text)
