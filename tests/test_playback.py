"""Unit tests for speed_playlist/playback.py with pygame replaced by a recorder."""

import threading
import time
from pathlib import Path
from types import SimpleNamespace

import pytest

from conftest import make_track
from speed_playlist import playback
from speed_playlist.controller import PlaybackController
from speed_playlist.errors import PlaybackError
from speed_playlist.models import PlaybackStatus
from speed_playlist.playback import AudioPlayer


A = "https://cdn.test/a.mp3"
B = "https://cdn.test/b.mp3"


class FakePygameError(Exception):
    pass


class FakeMusic:
    def __init__(self):
        self.calls = []
        self.busy = False
        self.fail_load = False

    def load(self, path):
        if self.fail_load:
            raise FakePygameError("Unrecognized audio format")
        self.calls.append(("load", path))

    def set_volume(self, volume):
        self.calls.append(("volume", volume))

    def play(self):
        self.calls.append(("play",))
        self.busy = True

    def pause(self):
        self.calls.append(("pause",))

    def unpause(self):
        self.calls.append(("unpause",))

    def stop(self):
        self.calls.append(("stop",))
        self.busy = False

    def get_busy(self):
        return self.busy


class FakeDownloader:
    """Previews in `on_disk` are cached; others go through fetch(), gated by `gate`."""

    def __init__(self, on_disk=()):
        self.on_disk = set(on_disk)
        self.fetched = []
        self.gate = threading.Event()
        self.gate.set()
        self.error = None

    @staticmethod
    def path(uri):
        return Path("/tmp/previews") / (uri.rsplit("/", 1)[-1])

    def cached(self, uri):
        return self.path(uri) if uri in self.on_disk else None

    def fetch(self, uri):
        self.gate.wait(5)
        self.fetched.append(uri)
        if self.error:
            raise self.error
        self.on_disk.add(uri)
        return self.path(uri)


class Clock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


@pytest.fixture
def music(monkeypatch):
    music = FakeMusic()
    mixer = SimpleNamespace(init=lambda: None, quit=lambda: None, music=music)
    monkeypatch.setattr(playback, "pygame", SimpleNamespace(mixer=mixer, error=FakePygameError))
    return music


@pytest.fixture
def clock(monkeypatch):
    clock = Clock()
    monkeypatch.setattr(playback, "time", SimpleNamespace(monotonic=clock))
    return clock


@pytest.fixture
def player(music, clock):
    return AudioPlayer(FakeDownloader(on_disk={A}), volume=0.5)


def finish_fetch(player):
    player._fetch_thread.join(timeout=5)
    player.poll()


class TestAudioPlayer:
    """Tests for AudioPlayer play/pause/resume/stop."""

    def test_play_cached_file_starts_at_once(self, player, music):
        player.play(A, lambda: None)
        assert player.downloader.fetched == []
        assert not player.is_loading()
        assert ("load", str(Path("/tmp/previews/a.mp3"))) in music.calls
        assert music.calls[-1] == ("play",)
        assert player.is_playing()

    def test_pause_resume(self, player, music):
        player.play("https://cdn.test/a.mp3", lambda: None)
        player.pause()
        assert player.is_paused()
        player.resume()
        assert not player.is_paused()
        assert ("pause",) in music.calls and ("unpause",) in music.calls

    def test_decode_error_becomes_playback_error(self, player, music):
        music.fail_load = True
        with pytest.raises(PlaybackError, match="Unrecognized audio format"):
            player.play("https://cdn.test/a.mp3", lambda: None)

    def test_without_pygame(self, monkeypatch):
        monkeypatch.setattr(playback, "pygame", None)
        p = AudioPlayer(FakeDownloader())
        assert not p.is_ready()
        with pytest.raises(PlaybackError):
            p.play("https://cdn.test/a.mp3", lambda: None)
        p.stop()
        p.pause()

    def test_set_volume(self, player, music):
        player.set_volume(0.25)
        assert music.calls[-1] == ("volume", 0.25)


class TestPoll:
    """Tests for AudioPlayer.poll() completion detection."""

    def test_fires_once_when_idle(self, player, music, clock):
        fired = []
        player.play("https://cdn.test/a.mp3", lambda: fired.append(1))
        music.busy = False
        clock.now += 5
        player.poll()
        player.poll()
        assert fired == [1]

    def test_grace_period(self, player, music, clock):
        fired = []
        player.play("https://cdn.test/a.mp3", lambda: fired.append(1))
        music.busy = False
        clock.now += 0.5
        player.poll()
        assert fired == []

    def test_still_busy(self, player, music, clock):
        fired = []
        player.play("https://cdn.test/a.mp3", lambda: fired.append(1))
        clock.now += 5
        player.poll()
        assert fired == []

    def test_paused_does_not_fire(self, player, music, clock):
        fired = []
        player.play("https://cdn.test/a.mp3", lambda: fired.append(1))
        player.pause()
        music.busy = False
        clock.now += 5
        player.poll()
        assert fired == []

    def test_stop_drops_callback(self, player, music, clock):
        fired = []
        player.play("https://cdn.test/a.mp3", lambda: fired.append(1))
        player.stop()
        clock.now += 5
        player.poll()
        assert fired == []


class TestBackgroundFetch:
    """Tests for previews that are not on disk when play() is called."""

    def test_play_returns_while_download_is_slow(self, player, music):
        """A stalled download must not hold up play() or the controller."""
        player.downloader.gate.clear()
        controller = PlaybackController(player)
        controller.load_playlist([make_track(1, preview=B)])

        t0 = time.perf_counter()
        controller.play(0)
        took = time.perf_counter() - t0

        assert took < 0.5
        assert controller.session.status is PlaybackStatus.PLAYING
        assert player.is_loading()
        assert ("play",) not in music.calls

        player.downloader.gate.set()
        finish_fetch(player)
        assert not player.is_loading()
        assert ("load", str(Path("/tmp/previews/b.mp3"))) in music.calls
        assert music.calls[-1] == ("play",)

    def test_loading_does_not_count_as_finished(self, player, music, clock):
        fired = []
        player.downloader.gate.clear()
        player.play(B, lambda: fired.append(1))
        clock.now += 5
        player.poll()
        assert fired == []

        player.downloader.gate.set()
        finish_fetch(player)
        music.busy = False
        clock.now += 5
        player.poll()
        assert fired == [1]

    def test_fetch_error_goes_to_on_error(self, player, music, clock):
        errors, fired = [], []
        player.on_error = errors.append
        player.downloader.error = PlaybackError("Cannot download preview: 404")
        player.play(B, lambda: fired.append(1))
        finish_fetch(player)

        assert [str(e) for e in errors] == ["Cannot download preview: 404"]
        assert not player.is_loading()
        clock.now += 5
        player.poll()
        assert fired == []

    def test_decode_error_after_fetch_goes_to_on_error(self, player, music):
        errors = []
        player.on_error = errors.append
        music.fail_load = True
        player.play(B, lambda: None)
        finish_fetch(player)
        assert len(errors) == 1
        assert "Unrecognized audio format" in str(errors[0])

    def test_superseded_fetch_is_dropped(self, player, music):
        player.downloader.gate.clear()
        player.play(B, lambda: None)
        slow = player._fetch_thread
        player.play(A, lambda: None)

        player.downloader.gate.set()
        slow.join(timeout=5)
        player.poll()

        loads = [c[1] for c in music.calls if c[0] == "load"]
        assert loads == [str(Path("/tmp/previews/a.mp3"))]

    def test_stop_while_loading(self, player, music):
        player.downloader.gate.clear()
        player.play(B, lambda: None)
        player.stop()
        player.downloader.gate.set()
        finish_fetch(player)
        assert not any(c[0] == "load" for c in music.calls)

    def test_paused_while_loading_starts_paused(self, player, music):
        player.downloader.gate.clear()
        player.play(B, lambda: None)
        player.pause()
        assert ("pause",) not in music.calls

        player.downloader.gate.set()
        finish_fetch(player)
        assert music.calls[-2:] == [("play",), ("pause",)]
        assert player.is_paused()

        player.resume()
        assert music.calls[-1] == ("unpause",)
