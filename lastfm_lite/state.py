from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any

PLAY = "play"
PAUSE = "pause"
STOP = "stop"

# -------------------------
# Snapshot pushed by the player for every state change
# -------------------------
@dataclass(frozen=True)
class PlayerState:
    status: str
    service: str = ""
    artist: str = ""
    title: str = ""
    album: str | None = None
    duration: int = 0  # seconds, 0 means unknown / live

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "PlayerState":
        """Build a state from a pushState-style dict; missing fields become empty."""
        try:
            duration = int(float(payload.get("duration") or 0))
        except (TypeError, ValueError):
            duration = 0
        return cls(
            status=str(payload.get("status") or STOP).lower(),
            service=str(payload.get("service") or "").lower(),
            artist=payload.get("artist") or "",
            title=payload.get("title") or "",
            album=payload.get("album"),
            duration=max(0, duration),
        )

    def snapshot(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ScrobbleData:
    artist: str = ""
    title: str = ""
    album: str = ""


@dataclass(frozen=True)
class PreviousScrobble:
    """Identity of the last track that was scrobbled; empty once the memory is cleared."""
    artist: str = ""
    title: str = ""

    def matches(self, data: ScrobbleData) -> bool:
        if not self.artist and not self.title:
            return False
        return self.artist == data.artist and self.title == data.title
