import sys
from pathlib import Path

import pytest

# Ensure tests can import the package regardless of how pytest is invoked.
ROOT = Path(__file__).resolve().parents[1]
ROOT_STR = str(ROOT)
if ROOT_STR not in sys.path:
    sys.path.insert(0, ROOT_STR)

from playmorph.formats import ProviderRegistry  # noqa: E402
from playmorph.playlist import Content, Media, Playlist, Sequence  # noqa: E402


@pytest.fixture
def registry() -> ProviderRegistry:
    return ProviderRegistry()


@pytest.fixture
def two_tracks() -> Playlist:
    playlist = Playlist()
    playlist.add(Media(Content("http://example.org/a.mp3", length=1024, type="audio/mpeg")))
    playlist.add(Media(Content("http://example.org/b.ogg", title="Second")))
    return playlist


def uris(playlist: Playlist) -> list[str]:
    return [media.source.uri for media in playlist.media()]


def sequence_of(*names: str, repeat_count: int = 1) -> Sequence:
    return Sequence([Media(Content(f"http://example.org/{n}")) for n in names], repeat_count=repeat_count)
