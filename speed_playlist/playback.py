from __future__ import annotations

import logging
import queue as thread_queue
import threading
import time
from pathlib import Path
from typing import Callable, Optional

from speed_playlist.config import DEFAULT_VOLUME
from speed_playlist.downloader import PreviewDownloader
from speed_playlist.errors import PlaybackError

try:
    import pygame  # type: ignore
except Exception:
    pygame = None

logger = logging.getLogger(__name__)

# get_busy() can read False right after play(); ignore completions before this
START_GRACE_SEC = 1.2


class AudioPlayer:
    """
    pygame.mixer based AudioRenderer.

    `play()` never downloads on the calling thread: a preview that is not on
    disk yet is fetched by a worker thread and started by the next `poll()`.
    pygame has no completion callback either, so `poll()` must be called
    periodically (the UI watchdog does it). It starts fetched previews,
    reports fetch/decode failures to `on_error` and fires the pending
    `on_finished` once when the mixer goes idle while not paused.
    """

    def __init__(self, downloader: PreviewDownloader, volume: float = DEFAULT_VOLUME) -> None:
        self.downloader = downloader
        self.on_error: Optional[Callable[[PlaybackError], None]] = None
        self._ready = False
        self._paused = False
        self._volume = float(volume)
        self._on_finished: Optional[Callable[[], None]] = None
        self._started_ts = 0.0

        # every play()/stop() bumps the request id; fetch results for older ids are dropped
        self._request = 0
        self._loading = False
        self._fetched: "thread_queue.Queue[tuple[int, Optional[Path], Optional[PlaybackError]]]" = (
            thread_queue.Queue()
        )
        self._fetch_thread: Optional[threading.Thread] = None
        self._init()

    def _init(self) -> None:
        if pygame is None:
            logger.error("pygame is not installed, audio disabled")
            return
        try:
            pygame.mixer.init()
            pygame.mixer.music.set_volume(self._volume)
            self._ready = True
        except Exception as e:
            logger.error(f"pygame mixer init failed: {e}")
            self._ready = False

    def is_ready(self) -> bool:
        return bool(self._ready)

    def is_paused(self) -> bool:
        return bool(self._paused)

    def is_loading(self) -> bool:
        return bool(self._loading)

    def is_playing(self) -> bool:
        if not self._ready:
            return False
        return bool(pygame.mixer.music.get_busy())

    def set_volume(self, volume: float) -> None:
        self._volume = float(volume)
        if self._ready:
            pygame.mixer.music.set_volume(self._volume)

    def play(self, uri: str, on_finished: Callable[[], None]) -> None:
        if not self._ready:
            raise PlaybackError("Audio not available (pygame missing or failed init)")
        self.stop()
        self._on_finished = on_finished

        local = self.downloader.cached(uri)
        if local is not None:
            self._start(local)
            return

        self._loading = True
        self._fetch_thread = threading.Thread(
            target=self._fetch,
            args=(uri, self._request),
            daemon=True,
            name="preview-fetch",
        )
        self._fetch_thread.start()

    def _fetch(self, uri: str, request: int) -> None:
        try:
            self._fetched.put((request, self.downloader.fetch(uri), None))
        except PlaybackError as e:
            self._fetched.put((request, None, e))

    def _start(self, path: Path) -> None:
        try:
            pygame.mixer.music.load(str(path))
            pygame.mixer.music.set_volume(self._volume)
            pygame.mixer.music.play()
            if self._paused:
                pygame.mixer.music.pause()
        except pygame.error as e:
            raise PlaybackError(f"Cannot play {path.name}: {e}") from e
        self._started_ts = time.monotonic()

    def pause(self) -> None:
        if not self._ready:
            return
        self._paused = True
        if not self._loading:
            pygame.mixer.music.pause()

    def resume(self) -> None:
        if not self._ready:
            return
        self._paused = False
        if not self._loading:
            pygame.mixer.music.unpause()
            self._started_ts = time.monotonic()

    def stop(self) -> None:
        self._request += 1
        self._on_finished = None
        self._loading = False
        self._paused = False
        if not self._ready:
            return
        pygame.mixer.music.stop()

    def poll(self) -> None:
        self._drain_fetched()
        if self._on_finished is None or self._paused or self._loading:
            return
        if (time.monotonic() - self._started_ts) < START_GRACE_SEC:
            return
        if self.is_playing():
            return
        callback, self._on_finished = self._on_finished, None
        callback()

    def _drain_fetched(self) -> None:
        try:
            while True:
                request, path, error = self._fetched.get_nowait()
                if request != self._request or not self._loading:
                    logger.debug("Dropping preview fetched for a superseded request")
                    continue
                self._loading = False
                if error is None:
                    try:
                        self._start(path)
                        continue
                    except PlaybackError as e:
                        error = e
                self._on_finished = None
                self._report(error)
        except thread_queue.Empty:
            pass

    def _report(self, error: PlaybackError) -> None:
        if self.on_error is not None:
            self.on_error(error)
        else:
            logger.error(f"playback: {error}")

    def shutdown(self) -> None:
        self._request += 1
        self._on_finished = None
        self._loading = False
        if not self._ready:
            return
        try:
            pygame.mixer.music.stop()
            pygame.mixer.quit()
        except pygame.error as e:
            logger.debug(f"mixer shutdown: {e}")
        self._ready = False
