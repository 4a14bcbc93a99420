from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple


@dataclass(frozen=True, slots=True)
class Track:
    id: int
    title: str
    artist: str
    link: str
    preview: Optional[str] = None

    @property
    def playable(self) -> bool:
        return bool(self.preview)

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> "Track":
        preview = raw.get("preview") or None
        if preview is not None and not isinstance(preview, str):
            raise TypeError(f"preview must be a string, got {type(preview).__name__}")
        return cls(
            id=int(raw["id"]),
            title=str(raw.get("title") or ""),
            artist=str(raw.get("artist") or ""),
            link=str(raw.get("link") or ""),
            preview=preview,
        )


Playlist = Tuple[Track, ...]


class PlaybackStatus(str, Enum):
    STOPPED = "stopped"
    PLAYING = "playing"
    PAUSED = "paused"


@dataclass(frozen=True, slots=True)
class PlaybackSession:
    """Read-only view of the controller's session, safe to hand to the UI."""

    playlist: Playlist = ()
    current_index: Optional[int] = None
    status: PlaybackStatus = PlaybackStatus.STOPPED

    @property
    def current_track(self) -> Optional[Track]:
        if self.current_index is None:
            return None
        return self.playlist[self.current_index]
