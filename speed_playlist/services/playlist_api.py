from __future__ import annotations

import logging

import requests

from speed_playlist.config import FETCH_TIMEOUT_SEC, USER_AGENT
from speed_playlist.errors import FetchError
from speed_playlist.models import Playlist, Track

logger = logging.getLogger(__name__)


def format_speed(speed: float) -> str:
    """Path segment for a speed value: integers without a trailing .0."""
    speed = max(0.0, float(speed))
    if speed.is_integer():
        return str(int(speed))
    return f"{speed:.2f}".rstrip("0").rstrip(".")


class PlaylistFetcher:
    """GET {endpoint}/{speed} returning a JSON array of songs."""

    def __init__(self, endpoint: str, timeout: int = FETCH_TIMEOUT_SEC) -> None:
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout

    def url_for(self, speed: float) -> str:
        return f"{self.endpoint}/{format_speed(speed)}"

    def fetch(self, speed: float) -> Playlist:
        if not self.endpoint:
            raise FetchError("No playlist endpoint configured")

        url = self.url_for(speed)
        logger.debug(f"send speed: {speed:.2f} -> {url}")
        headers = {"accept": "application/json", "user-agent": USER_AGENT}
        try:
            r = requests.get(url, headers=headers, timeout=self.timeout)
            r.raise_for_status()
            data = r.json()
        except requests.RequestException as e:
            raise FetchError(f"Error fetching playlist: {e}") from e
        except ValueError as e:
            raise FetchError(f"Playlist response is not JSON: {e}") from e

        if not isinstance(data, list):
            raise FetchError(f"Expected a JSON array, got {type(data).__name__}")

        tracks: list[Track] = []
        seen: set[int] = set()
        for raw in data:
            if not isinstance(raw, dict):
                raise FetchError(f"Malformed playlist item: {raw!r}")
            try:
                t = Track.from_api(raw)
            except (KeyError, TypeError, ValueError) as e:
                raise FetchError(f"Malformed playlist item {raw!r}: {e}") from e
            if t.id in seen:
                logger.warning(f"Duplicate track id {t.id} in playlist, dropped")
                continue
            seen.add(t.id)
            tracks.append(t)

        logger.debug(f"playlist for {speed:.2f} mph: {len(tracks)} tracks")
        return tuple(tracks)
