import logging

import pytest

from lastfm_lite.normalize import ParseError, clean_title, format_scrobble_data, split_artist_title
from lastfm_lite.state import PlayerState

STREAMS = frozenset({"webradio"})


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Track Name (2011 Remastered Version)", "Track Name"),
        ("Let It Be - Remastered 2009", "Let It Be"),
        ("Song - Album Version", "Song"),
        ("Song (Album Version Edit)", "Song"),
        ("Record (Bonus Track Edition)", "Record"),
        ("Record [2 Edition]", "Record"),
        ("Song (Explicit)", "Song"),
        ("Plain Title", "Plain Title"),
    ],
)
def test_clean_title(raw, expected):
    assert clean_title(raw) == expected


def test_stream_title_is_split_into_artist_and_title():
    state = PlayerState(status="play", service="webradio", title="Daft Punk - One More Time", album="Radio FM")
    data = format_scrobble_data(state, clean_titles=False, streaming_services=STREAMS)
    assert (data.artist, data.title, data.album) == ("Daft Punk", "One More Time", "")


def test_missing_artist_triggers_split_for_any_service():
    state = PlayerState(status="play", service="mpd", title="Moby - Porcelain")
    data = format_scrobble_data(state, clean_titles=False, streaming_services=STREAMS)
    assert (data.artist, data.title) == ("Moby", "Porcelain")


def test_song_with_artist_is_not_split():
    state = PlayerState(status="play", service="mpd", artist="a-ha", title="Take On Me - Live", album="X")
    data = format_scrobble_data(state, clean_titles=False, streaming_services=STREAMS)
    assert (data.artist, data.title, data.album) == ("a-ha", "Take On Me - Live", "X")


def test_clean_titles_applies_to_title_and_album():
    state = PlayerState(status="play", service="mpd", artist="Queen",
                        title="Bohemian Rhapsody (2011 Remastered Version)",
                        album="A Night at the Opera (Bonus Track Edition)")
    data = format_scrobble_data(state, clean_titles=True, streaming_services=STREAMS)
    assert data.title == "Bohemian Rhapsody"
    assert data.album == "A Night at the Opera"


def test_absent_album_becomes_empty_string():
    state = PlayerState(status="play", service="mpd", artist="A", title="T", album=None)
    assert format_scrobble_data(state, True, STREAMS).album == ""


def test_malformed_split_is_logged_and_data_left_alone(caplog):
    state = PlayerState(status="play", service="webradio", artist="", title="Station -", album="Live")
    with caplog.at_level(logging.INFO, logger="engine"):
        data = format_scrobble_data(state, clean_titles=False, streaming_services=STREAMS)
    assert (data.artist, data.title, data.album) == ("", "Station -", "Live")
    assert "error occurred during parse" in caplog.text
    assert "STATE;" in caplog.text


def test_split_without_separator_raises():
    with pytest.raises(ParseError):
        split_artist_title("No separator here")


@pytest.mark.parametrize("raw, expected", [
    ("Underworld - Born Slippy - Nuxx", ("Underworld", "Born Slippy - Nuxx")),
    ("Jay-Z - Encore", ("Jay", "Z - Encore")),
    ("Bonobo-Kerala", ("Bonobo", "Kerala")),
])
def test_split_happens_at_the_first_hyphen(raw, expected):
    assert split_artist_title(raw) == expected
