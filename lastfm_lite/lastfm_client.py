import pylast
import logging

log = logging.getLogger("lastfm")

# Custom error classes so callers can branch
class LastFMError(Exception): ...
class LastFMAuthError(LastFMError): ...
class LastFMRateLimitError(LastFMError): ...
class LastFMNetworkError(LastFMError): ...
class LastFMUnknownError(LastFMError): ...
class LastFMCorrectionError(LastFMError): ...

# 4=Auth failed, 9=Invalid session, 10=Invalid API key, 14=Token expired, 26=Suspended key
_AUTH_CODES = {4, 9, 10, 14, 26}
_RATE_LIMIT_CODES = {29}


def _error_code(e: pylast.WSError) -> int | None:
    try:
        return int(e.get_id())
    except (TypeError, ValueError):
        return None


def _map_error(e: Exception) -> LastFMError:
    if isinstance(e, pylast.WSError):
        code = _error_code(e)
        if code in _AUTH_CODES:
            return LastFMAuthError(str(e))
        if code in _RATE_LIMIT_CODES:
            return LastFMRateLimitError(str(e))
        return LastFMUnknownError(f"Last.fm API error {code}: {e}")
    return LastFMNetworkError(str(e))


class LastFMClient:
    """Thin wrapper over pylast: one instance is one authenticated session."""

    def __init__(self, api_key: str, api_secret: str, username: str, password_hash: str):
        # pylast performs auth.getMobileSession when given username + password hash
        try:
            self.network = pylast.LastFMNetwork(
                api_key=api_key,
                api_secret=api_secret,
                username=username,
                password_hash=password_hash,
            )
        except Exception as e:
            err = _map_error(e)
            if isinstance(err, LastFMAuthError):
                raise err from e
            raise LastFMAuthError(f"authentication failed: {err}") from e
        log.debug("Authenticated with Last.fm as %s", username)

    def get_correction(self, *, artist: str, title: str) -> tuple[str | None, str | None]:
        """Return Last.fm's canonical (artist, title); either may be None when unknown."""
        try:
            corrected_artist = self.network.get_artist(artist).get_correction()
            corrected_title = self.network.get_track(artist, title).get_correction()
        except Exception as e:
            raise LastFMCorrectionError(str(_map_error(e))) from e
        return corrected_artist or None, corrected_title or None

    def update_now_playing(self, *, artist: str, title: str, album: str | None, duration: int | None):
        """Push a Now Playing update."""
        try:
            self.network.update_now_playing(
                artist=artist, title=title, album=album or None, duration=duration or None
            )
        except Exception as e:
            raise _map_error(e) from e

    def scrobble(self, *, artist: str, title: str, album: str | None, timestamp: int,
                 duration: int | None = None):
        """Submit a scrobble to Last.fm with a start timestamp (unix seconds)."""
        try:
            self.network.scrobble(
                artist=artist, title=title, album=album or None,
                duration=duration or None, timestamp=timestamp,
            )
        except Exception as e:
            raise _map_error(e) from e
