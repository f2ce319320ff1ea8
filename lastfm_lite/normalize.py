"""
Derives the artist/title/album that get reported from a raw PlayerState.

- Optional title cleanup strips remaster, album-version, edition and
  explicit annotations.
- Streams that only carry a single "Artist - Track" title are split into
  artist and title.
"""

from __future__ import annotations

import logging
import re

from lastfm_lite.state import PlayerState, ScrobbleData

log = logging.getLogger("engine")

_CLEANUP_RULES = (
    # "- 2011 Remaster", "Remastered Version", "(Remastered 2009)"
    re.compile(r"([/-] )?([(\[]?\d+[)\]]?)? ?remastere?d? ?(version)?([(\[]?\d+[)\]]?)?"
               r"| [(\[].*remastere?d?.*[)\]]", re.IGNORECASE),
    # "- Album Version", "(Album Version Edit)"
    re.compile(r" ([/-] .*)? ?album version.*| [(\[].*?album version.*?[)\]]", re.IGNORECASE),
    # "(25th Edition)", "[Bonus Track Edition]"
    re.compile(r" [(\[](\d+|bonus track) edition[)\]]", re.IGNORECASE),
    # "- Explicit", "(Explicit Version)"
    re.compile(r" ([/-] )? ?explicit ?(.*?version)?| [(\[].*?explicit.*?[)\]]", re.IGNORECASE),
)


class ParseError(ValueError):
    """A single-field title could not be split into artist and title."""


def clean_title(title: str) -> str:
    for rule in _CLEANUP_RULES:
        title = rule.sub("", title, count=1)
    return title.strip()


def split_artist_title(title: str) -> tuple[str, str]:
    artist, found, rest = title.partition("-")
    if not found:
        raise ParseError(f"no separator in {title!r}")
    artist, rest = artist.strip(), rest.strip()
    if not artist or not rest:
        raise ParseError(f"empty segment after splitting {title!r}")
    return artist, rest


def format_scrobble_data(state: PlayerState, clean_titles: bool,
                         streaming_services: frozenset[str] | set[str]) -> ScrobbleData:
    title = state.title or ""
    album = state.album or ""
    data = ScrobbleData(
        artist=state.artist or "",
        title=clean_title(title) if clean_titles else title,
        album=clean_title(album) if clean_titles and album else album,
    )

    single_field = bool(data.title) and not data.artist
    if (single_field or state.service in streaming_services) and "-" in data.title:
        try:
            data.artist, data.title = split_artist_title(data.title)
            data.album = ""
        except ParseError as e:
            log.error("an error occurred during parse; %s", e)
            log.info("STATE; %s", state.snapshot())
    return data
