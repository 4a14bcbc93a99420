from __future__ import annotations

import logging
import threading
from dataclasses import asdict
from typing import Callable

from speed_playlist.services.location import SpeedSource
from speed_playlist.services.playlist_api import PlaylistFetcher

logger = logging.getLogger(__name__)


class Pollers:
    """
    Runs speed sampling and playlist fetching in background threads and
    emits UI events via callback.

    Events:
      {"type": "speed", "speed": float}
      {"type": "playlist", "speed": float, "tracks": [dict, ...]}
      {"type": "log", "msg": str}
    """

    def __init__(
        self,
        emit_event: Callable[[dict], None],
        speed_source: SpeedSource,
        fetcher: PlaylistFetcher,
        location_interval: float,
        fetch_interval: float,
    ) -> None:
        self.emit_event = emit_event
        self.speed_source = speed_source
        self.fetcher = fetcher
        self.location_interval = float(location_interval)
        self.fetch_interval = float(fetch_interval)

        self.speed: float = 0.0

        self._stop_event = threading.Event()
        self._stop_event.set()
        self._refresh_event = threading.Event()
        self._threads: list[threading.Thread] = []

    def start(self) -> None:
        if self.is_running():
            return
        # each run gets its own events, so loops of an earlier run still see theirs set
        stop_event = threading.Event()
        refresh_event = threading.Event()
        self._stop_event = stop_event
        self._refresh_event = refresh_event
        self._threads = []

        for target, args, name in (
            (self._loop_location, (stop_event,), "location-loop"),
            (self._loop_playlist, (stop_event, refresh_event), "playlist-loop"),
        ):
            th = threading.Thread(target=target, args=args, daemon=True, name=name)
            th.start()
            self._threads.append(th)

    def stop(self) -> None:
        self._stop_event.set()
        self._refresh_event.set()

    def is_running(self) -> bool:
        return not self._stop_event.is_set()

    def request_refresh(self) -> None:
        self._refresh_event.set()

    def sample_speed(self) -> None:
        self.speed = self.speed_source.current_speed()
        self.emit_event({"type": "speed", "speed": self.speed})

    def fetch_playlist(self) -> None:
        speed = self.speed
        tracks = self.fetcher.fetch(speed)
        self.emit_event(
            {"type": "playlist", "speed": speed, "tracks": [asdict(t) for t in tracks]}
        )

    def _loop_location(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            try:
                self.sample_speed()
            except Exception as e:
                logger.warning(f"speed sample failed: {e}")
                self.emit_event({"type": "log", "msg": f"❌ location error: {e}"})
            stop_event.wait(self.location_interval)

    def _loop_playlist(self, stop_event: threading.Event, refresh_event: threading.Event) -> None:
        while not stop_event.is_set():
            refresh_event.clear()
            try:
                self.fetch_playlist()
            except Exception as e:
                logger.warning(f"playlist fetch failed: {e}")
                self.emit_event({"type": "log", "msg": f"❌ playlist error: {e}"})
            refresh_event.wait(self.fetch_interval)
