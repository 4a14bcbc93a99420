from __future__ import annotations

import logging
import queue as thread_queue
import threading
import webbrowser
from pathlib import Path
from typing import Callable, Optional

from speed_playlist.config import DEFAULT_VOLUME, Settings
from speed_playlist.controller import PlaybackController
from speed_playlist.downloader import PreviewDownloader
from speed_playlist.errors import SpeedPlaylistError
from speed_playlist.models import PlaybackSession, PlaybackStatus, Track
from speed_playlist.paths import TEMP_DIR
from speed_playlist.playback import AudioPlayer
from speed_playlist.pollers import Pollers
from speed_playlist.services.location import FixedSpeedSource, GpsdSpeedSource, SpeedSource
from speed_playlist.services.playlist_api import PlaylistFetcher
from speed_playlist.storage import load_json, save_json

logger = logging.getLogger(__name__)


def build_speed_source(settings: Settings) -> SpeedSource:
    if settings.fixed_speed is not None:
        return FixedSpeedSource(settings.fixed_speed)
    return GpsdSpeedSource(settings.gpsd_host, settings.gpsd_port)


class AppController:
    """
    UI-THREAD GLUE AROUND PlaybackController.

    Design guarantees:
    - PlaybackController is the SINGLE source of truth for playback
    - Background threads only post events; everything else runs on the UI thread
    - Preferences are written only on explicit user intent
    """

    def __init__(
        self,
        settings: Settings,
        config_file: Path,
        on_ui_update: Callable[[], None],
        on_log: Callable[[str], None],
        on_status_text: Callable[[str], None],
        on_now_playing: Callable[[str, str], None],
        on_speed: Callable[[float], None],
        on_error: Callable[[SpeedPlaylistError], None],
        *,
        player=None,
        pollers: Optional[Pollers] = None,
        temp_dir: Path = TEMP_DIR,
        prefetch: bool = True,
    ) -> None:
        self.settings = settings
        self.config_file = config_file

        self.on_ui_update = on_ui_update
        self.on_log = on_log
        self.on_status_text = on_status_text
        self.on_now_playing = on_now_playing
        self.on_speed = on_speed
        self.on_error = on_error

        self.ui_events: "thread_queue.Queue[dict]" = thread_queue.Queue()
        self._closing = False
        self.speed: float = 0.0

        self.prefs: dict = {}
        self._load_prefs()

        self.downloader = PreviewDownloader(temp_dir)
        self.player = player or AudioPlayer(self.downloader, volume=self.volume)
        self.player.on_error = self._on_player_error

        self.playback = PlaybackController(
            self.player,
            auto_skip=self.auto_skip,
            on_change=self._on_session_change,
            on_error=self._on_playback_error,
        )

        self.pollers = pollers or Pollers(
            emit_event=self.ui_events.put,
            speed_source=build_speed_source(settings),
            fetcher=PlaylistFetcher(settings.endpoint),
            location_interval=settings.location_interval,
            fetch_interval=settings.fetch_interval,
        )

        self._prefetch_uris: tuple[str, ...] = ()
        self._prefetch_wakeup = threading.Event()
        self._prefetch_thread: Optional[threading.Thread] = None
        if prefetch:
            self._prefetch_thread = threading.Thread(
                target=self._prefetch_loop,
                daemon=True,
                name="prefetch-loop",
            )
            self._prefetch_thread.start()

        self._update_now_playing(self.playback.session)

    # ======================================================================
    # PREFERENCES
    # ======================================================================

    def _load_prefs(self) -> None:
        self.prefs = load_json(
            self.config_file,
            {"volume": DEFAULT_VOLUME, "auto_skip": self.settings.auto_skip},
        )
        # --auto-skip / SPEED_PLAYLIST_AUTO_SKIP win over the saved checkbox state
        if self.settings.auto_skip:
            self.prefs["auto_skip"] = True

    @property
    def volume(self) -> float:
        return float(self.prefs.get("volume", DEFAULT_VOLUME))

    @property
    def auto_skip(self) -> bool:
        return bool(self.prefs.get("auto_skip", self.settings.auto_skip))

    def save_prefs(self) -> None:
        if self._closing:
            return
        save_json(self.config_file, self.prefs)

    def set_volume(self, volume: float) -> None:
        self.prefs["volume"] = max(0.0, min(1.0, float(volume)))
        self.player.set_volume(self.volume)

    def set_auto_skip(self, enabled: bool) -> None:
        self.prefs["auto_skip"] = bool(enabled)
        self.playback.auto_skip = bool(enabled)
        self.save_prefs()

    # ======================================================================
    # START / STOP
    # ======================================================================

    def start(self) -> None:
        self.pollers.start()
        self.on_status_text("Polling: ON")
        self.on_log("▶ polling started")

    def stop(self) -> None:
        self.pollers.stop()
        self.on_status_text("Polling: OFF")
        self.on_log("⏹ polling stopped")

    def refresh_playlist(self) -> None:
        if not self.pollers.is_running():
            self.start()
            return
        self.pollers.request_refresh()
        self.on_log("↻ playlist refresh requested")

    # ======================================================================
    # EVENT PUMP
    # ======================================================================

    def process_ui_events(self) -> None:
        if self._closing:
            return

        try:
            while True:
                ev = self.ui_events.get_nowait()
                et = ev.get("type")

                if et == "log":
                    self.on_log(str(ev.get("msg", "")))

                elif et == "speed":
                    self.speed = float(ev.get("speed", 0.0))
                    self.on_speed(self.speed)

                elif et == "playlist":
                    tracks = tuple(Track(**raw) for raw in ev.get("tracks", []))
                    self._apply_playlist(tracks, float(ev.get("speed", self.speed)))

                elif et == "prefetch_failed":
                    self.on_log(f"❌ preview download: {ev.get('error')}")

        except thread_queue.Empty:
            pass

    def _apply_playlist(self, tracks: tuple[Track, ...], speed: float) -> None:
        # periodic refetches of an unchanged list must not reset playback
        if tracks == self.playback.session.playlist:
            return
        self.playback.load_playlist(tracks)
        self.on_log(f"🎵 {len(tracks)} tracks for {round(speed)} mph")
        self.on_status_text("Playlist updated")

    # ======================================================================
    # WATCHDOG
    # ======================================================================

    def watchdog(self) -> None:
        if self._closing:
            return
        self.player.poll()

    # ======================================================================
    # PLAYBACK
    # ======================================================================

    def _guard(self, action: Callable[[], None]) -> None:
        if self._closing:
            return
        try:
            action()
        except SpeedPlaylistError as e:
            self._on_playback_error(e)

    def play_pause(self) -> None:
        session = self.playback.session
        if session.status is PlaybackStatus.PLAYING:
            self._guard(self.playback.pause)
        elif session.status is PlaybackStatus.PAUSED:
            self._guard(self.playback.resume)
        elif not session.playlist:
            self.on_status_text("Playlist empty")
        else:
            index = session.current_index or 0
            self._guard(lambda: self.playback.play(index))

    def play_index(self, index: int) -> None:
        self._guard(lambda: self.playback.play(index))

    def next_track(self) -> None:
        self._guard(self.playback.next)

    def prev_track(self) -> None:
        self._guard(self.playback.previous)

    def open_link(self, index: int) -> None:
        playlist = self.playback.session.playlist
        if 0 <= index < len(playlist) and playlist[index].link:
            webbrowser.open(playlist[index].link)

    def open_current_link(self) -> None:
        session = self.playback.session
        if session.current_index is not None:
            self.open_link(session.current_index)

    # ======================================================================
    # SESSION CALLBACKS
    # ======================================================================

    def _on_session_change(self, session: PlaybackSession) -> None:
        self._prefetch_uris = self._window_uris(session)
        self._prefetch_wakeup.set()
        if session.status is PlaybackStatus.PLAYING:
            self._cleanup_temp_window()
        self._update_now_playing(session)
        self.on_status_text(session.status.value.capitalize())
        self.on_ui_update()

    def _on_player_error(self, exc: SpeedPlaylistError) -> None:
        # preview fetch or decode failed after play() returned
        self.playback.stop()
        self._on_playback_error(exc)

    def _on_playback_error(self, exc: SpeedPlaylistError) -> None:
        logger.warning(f"playback: {exc}")
        self.on_log(f"❌ {exc}")
        self.on_error(exc)

    def _update_now_playing(self, session: PlaybackSession) -> None:
        t = session.current_track
        if not t:
            self.on_now_playing("—", f"{len(session.playlist)} tracks in playlist")
            return
        self.on_now_playing(
            f"{session.current_index}: {t.title} - {t.artist}",
            f"Status: {session.status.value}",
        )

    # ======================================================================
    # PREVIEW PREFETCH
    # ======================================================================

    @staticmethod
    def _window_uris(session: PlaybackSession) -> tuple[str, ...]:
        """Previews of the current track and the next one."""
        start = 0 if session.current_index is None else session.current_index
        return tuple(t.preview for t in session.playlist[start : start + 2] if t.preview)

    def _prefetch_loop(self) -> None:
        while not self._closing:
            self._prefetch_wakeup.wait(timeout=1.0)
            self._prefetch_wakeup.clear()
            for uri in self._prefetch_uris:
                if self._closing:
                    return
                if self.downloader.path_for(uri).exists():
                    continue
                try:
                    self.downloader.fetch(uri)
                except Exception as e:
                    self.ui_events.put({"type": "prefetch_failed", "uri": uri, "error": str(e)})

    def _cleanup_temp_window(self) -> None:
        session = self.playback.session
        if session.current_index is None:
            return
        lo = max(0, session.current_index - 1)
        keep_paths = {
            str(self.downloader.path_for(t.preview).resolve())
            for t in session.playlist[lo : session.current_index + 2]
            if t.preview
        }
        self.downloader.cleanup_keep(keep_paths)

    # ======================================================================
    # CLOSE
    # ======================================================================

    def close(self) -> None:
        if self._closing:
            return
        self.save_prefs()
        self._closing = True
        self._prefetch_wakeup.set()
        self.pollers.stop()
        self.playback.dispose()
        self.player.shutdown()
