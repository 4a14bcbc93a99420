"""Shared fixtures: a recording renderer and small playlists."""

import pytest

from speed_playlist.controller import PlaybackController
from speed_playlist.errors import PlaybackError
from speed_playlist.models import Track


class FakeRenderer:
    """Records every call; completion callbacks are kept for the test to fire."""

    def __init__(self):
        self.calls = []
        self.callbacks = []
        self.fail_uris = set()

    def play(self, uri, on_finished):
        if uri in self.fail_uris:
            raise PlaybackError(f"cannot decode {uri}")
        self.calls.append(("play", uri))
        self.callbacks.append(on_finished)

    def pause(self):
        self.calls.append(("pause",))

    def resume(self):
        self.calls.append(("resume",))

    def stop(self):
        self.calls.append(("stop",))

    def finish_last(self):
        self.callbacks[-1]()

    def plays(self):
        return [c[1] for c in self.calls if c[0] == "play"]


def make_track(i, preview="default"):
    if preview == "default":
        preview = f"https://cdn.test/{i}.mp3"
    return Track(
        id=i,
        title=f"Song {i}",
        artist=f"Artist {i}",
        link=f"https://music.test/track/{i}",
        preview=preview,
    )


@pytest.fixture
def renderer():
    return FakeRenderer()


@pytest.fixture
def tracks():
    return tuple(make_track(i) for i in range(1, 5))


@pytest.fixture
def errors():
    return []


@pytest.fixture
def controller(renderer, errors):
    return PlaybackController(renderer, on_error=errors.append)
