"""Last.fm scrobbler driven by player pushState events."""

__version__ = "0.3.0"
