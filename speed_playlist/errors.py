from __future__ import annotations

from typing import Optional

from speed_playlist.models import Track


class SpeedPlaylistError(Exception):
    """Base class for every error raised by speed_playlist."""


class IndexOutOfRange(SpeedPlaylistError, IndexError):
    def __init__(self, index: int, length: int) -> None:
        super().__init__(f"track index {index} out of range for playlist of {length}")
        self.index = index
        self.length = length


class NoPreviewAvailable(SpeedPlaylistError):
    def __init__(self, index: int, track: Optional[Track] = None) -> None:
        title = track.title if track else "?"
        super().__init__(f"No preview available for this song: #{index} {title}")
        self.index = index
        self.track = track


class PlaybackError(SpeedPlaylistError):
    """Audio output failed (download, decode or mixer fault)."""


class FetchError(SpeedPlaylistError):
    """Playlist endpoint unreachable or returned something unusable."""


class LocationError(SpeedPlaylistError):
    """No speed sample could be read."""
