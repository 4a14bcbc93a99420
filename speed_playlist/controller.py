from __future__ import annotations

import logging
from functools import partial
from typing import Callable, Iterable, Optional, Protocol

from speed_playlist.errors import (
    IndexOutOfRange,
    NoPreviewAvailable,
    PlaybackError,
    SpeedPlaylistError,
)
from speed_playlist.models import PlaybackSession, PlaybackStatus, Playlist, Track

logger = logging.getLogger(__name__)


class AudioRenderer(Protocol):
    def play(self, uri: str, on_finished: Callable[[], None]) -> None: ...

    def pause(self) -> None: ...

    def resume(self) -> None: ...

    def stop(self) -> None: ...


class PlaybackController:
    """
    Sequencing state machine for a single playlist.

    Design guarantees:
    - The session lives here and nowhere else; commands and track_finished
      are the only things that mutate it
    - The renderer is stopped before every new play request
    - A completion for anything but the current play request is dropped
    - Commands raise; errors hit while handling track_finished go to on_error

    All calls must come from one thread (the UI thread in the app).
    """

    def __init__(
        self,
        renderer: AudioRenderer,
        *,
        auto_skip: bool = False,
        on_change: Optional[Callable[[PlaybackSession], None]] = None,
        on_error: Optional[Callable[[SpeedPlaylistError], None]] = None,
    ) -> None:
        self.renderer = renderer
        self.auto_skip = auto_skip
        self.on_change = on_change
        self.on_error = on_error

        self._playlist: Playlist = ()
        self._index: Optional[int] = None
        self._status = PlaybackStatus.STOPPED
        # bumped on every renderer request; completions carry the value they were issued with
        self._generation = 0
        self._disposed = False

    @property
    def session(self) -> PlaybackSession:
        return PlaybackSession(self._playlist, self._index, self._status)

    # ======================================================================
    # COMMANDS
    # ======================================================================

    def load_playlist(self, tracks: Iterable[Track]) -> None:
        if self._disposed:
            return
        if self._status is not PlaybackStatus.STOPPED:
            self.renderer.stop()
        self._generation += 1
        self._playlist = tuple(tracks)
        self._index = None
        self._status = PlaybackStatus.STOPPED
        logger.info(f"Playlist loaded: {len(self._playlist)} tracks")
        self._changed()

    def play(self, index: int) -> None:
        if self._disposed:
            return
        if not 0 <= index < len(self._playlist):
            raise IndexOutOfRange(index, len(self._playlist))

        if index == self._index and self._status is PlaybackStatus.PAUSED:
            self.resume()
            return

        target = self._resolve(index, step=1)
        if target is None:
            raise NoPreviewAvailable(index, self._playlist[index])
        self._start(target)

    def pause(self) -> None:
        if self._disposed or self._status is not PlaybackStatus.PLAYING:
            return
        self.renderer.pause()
        self._status = PlaybackStatus.PAUSED
        self._changed()

    def resume(self) -> None:
        if self._disposed or self._status is not PlaybackStatus.PAUSED:
            return
        self.renderer.resume()
        self._status = PlaybackStatus.PLAYING
        self._changed()

    def stop(self) -> None:
        """Stop output but keep the selection, so play(current_index) retries it."""
        if self._disposed or self._status is PlaybackStatus.STOPPED:
            return
        self.renderer.stop()
        self._generation += 1
        self._status = PlaybackStatus.STOPPED
        self._changed()

    def next(self) -> None:
        if self._disposed:
            return
        start = 0 if self._index is None else self._index + 1
        if start >= len(self._playlist):
            logger.debug("next: already at the last track")
            return
        target = self._resolve(start, step=1)
        if target is None:
            logger.debug("next: no playable track ahead")
            return
        self._start(target)

    def previous(self) -> None:
        if self._disposed or self._index is None or self._index <= 0:
            return
        target = self._resolve(self._index - 1, step=-1)
        if target is None:
            logger.debug("previous: no playable track behind")
            return
        self._start(target)

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._generation += 1
        self.renderer.stop()
        self._playlist = ()
        self._index = None
        self._status = PlaybackStatus.STOPPED

    # ======================================================================
    # EVENTS
    # ======================================================================

    def track_finished(self, index: int) -> None:
        if self._disposed:
            return
        if self._status is PlaybackStatus.STOPPED or index != self._index:
            logger.debug(f"Discarding stale completion for #{index} (current: {self._index})")
            return

        nxt = index + 1
        if nxt >= len(self._playlist):
            logger.info("End of playlist")
            self._halt(None)
            return

        try:
            target = self._resolve(nxt, step=1)
            if target is None:
                logger.info("No playable track left in playlist")
                self._halt(None)
                return
            self._start(target)
        except NoPreviewAvailable as e:
            self._halt(nxt)
            self._report(e)
        except PlaybackError as e:
            self._report(e)

    def _renderer_finished(self, index: int, generation: int) -> None:
        if generation != self._generation:
            logger.debug(f"Discarding completion from superseded request for #{index}")
            return
        self.track_finished(index)

    # ======================================================================
    # INTERNAL HELPERS
    # ======================================================================

    def _resolve(self, index: int, *, step: int) -> Optional[int]:
        """First playable index from `index` walking by `step`.

        Without auto_skip an unplayable track raises NoPreviewAvailable.
        """
        track = self._playlist[index]
        if track.playable:
            return index
        if not self.auto_skip:
            raise NoPreviewAvailable(index, track)

        i = index + step
        while 0 <= i < len(self._playlist):
            if self._playlist[i].playable:
                logger.info(f"Skipping {abs(i - index)} track(s) without preview")
                return i
            i += step
        return None

    def _start(self, index: int) -> None:
        self.renderer.stop()
        self._generation += 1
        track = self._playlist[index]
        self._index = index
        try:
            self.renderer.play(
                track.preview, partial(self._renderer_finished, index, self._generation)
            )
        except PlaybackError:
            self._status = PlaybackStatus.STOPPED
            self._changed()
            raise

        self._status = PlaybackStatus.PLAYING
        logger.info(f"Playing #{index}: {track.title} - {track.artist}")
        self._changed()

    def _halt(self, index: Optional[int]) -> None:
        self.renderer.stop()
        self._generation += 1
        self._index = index
        self._status = PlaybackStatus.STOPPED
        self._changed()

    def _report(self, exc: SpeedPlaylistError) -> None:
        if self.on_error is not None:
            self.on_error(exc)
        else:
            logger.error(f"Playback halted: {exc}")

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change(self.session)
