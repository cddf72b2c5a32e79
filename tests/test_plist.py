from __future__ import annotations

import plistlib
from datetime import datetime

import pytest

from conftest import uris

from playmorph.errors import MalformedInputError
from playmorph.formats.FormatPlist import PlistProvider
from playmorph.playlist import Content, Media, Playlist

LIBRARY = b"""<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE plist PUBLIC "-//Apple//DTD PLIST 1.0//EN" "http://www.apple.com/DTDs/PropertyList-1.0.dtd">
<plist version="1.0">
<dict>
  <key>Major Version</key><integer>1</integer>
  <key>Tracks</key>
  <dict>
    <key>1</key>
    <dict>
      <key>Track ID</key><integer>1</integer>
      <key>Name</key><string>Tom & Jerry</string>
      <key>Kind</key><string>MPEG audio file</string>
      <key>Size</key><integer>4096</integer>
      <key>Total Time</key><integer>183000</integer>
      <key>Date Modified</key><date>2023-01-02T03:04:05Z</date>
      <key>Location</key><string>file://localhost/Music/tom.mp3</string>
    </dict>
    <key>2</key>
    <dict>
      <key>Track ID</key><integer>2</integer>
      <key>Name</key><string>Stream without location</string>
    </dict>
  </dict>
  <key>Playlists</key>
  <array>
    <dict>
      <key>Name</key><string>Library</string>
    </dict>
    <dict>
      <key>Name</key><string>First</string>
      <key>Playlist Items</key>
      <array>
        <dict><key>Track ID</key><integer>1</integer></dict>
        <dict><key>Track ID</key><integer>2</integer></dict>
        <dict><key>Track ID</key><integer>99</integer></dict>
        <dict><key>Track ID</key><integer>1</integer></dict>
      </array>
    </dict>
    <dict>
      <key>Name</key><string>Ignored</string>
      <key>Playlist Items</key>
      <array>
        <dict><key>Track ID</key><integer>1</integer></dict>
      </array>
    </dict>
  </array>
</dict>
</plist>
"""


def test_parse_first_playlist_only() -> None:
    playlist = PlistProvider().parse(LIBRARY)

    assert uris(playlist) == ["file://localhost/Music/tom.mp3"] * 2
    source = next(playlist.media()).source
    assert source.title == "Tom & Jerry"
    assert source.length == 4096
    assert source.duration == 183000
    assert source.last_modified == datetime(2023, 1, 2, 3, 4, 5)


def test_parse_binary_property_list() -> None:
    library = plistlib.loads(LIBRARY.replace(b"Tom & Jerry", b"Tom"))
    data = plistlib.dumps(library, fmt=plistlib.FMT_BINARY)
    provider = PlistProvider()

    assert provider.accepts(data[:512])
    assert uris(provider.parse(data)) == ["file://localhost/Music/tom.mp3"] * 2


def test_parse_without_playlists_is_empty() -> None:
    data = plistlib.dumps({"Tracks": {}})

    assert PlistProvider().parse(data).is_empty()


def test_parse_rejects_non_dictionary() -> None:
    with pytest.raises(MalformedInputError, match="not a dictionary"):
        PlistProvider().read(plistlib.dumps(["a", "b"]))


def test_parse_rejects_broken_document() -> None:
    with pytest.raises(MalformedInputError):
        PlistProvider().read(b"<plist><dict><key>a</key>")


def test_render_shares_tracks_between_items() -> None:
    shared = Content("http://example.org/a.mp3", length=10, duration=2000)
    playlist = Playlist()
    playlist.add(Media(shared, repeat_count=2))
    playlist.add(Media(Content("file:///music/b.mp3", last_modified=datetime(2020, 2, 2))))
    playlist.add(Media(shared))

    library = plistlib.loads(PlistProvider(generator="tester").render(playlist))

    assert library["Major Version"] == 1
    assert library["Application Version"] == "tester"
    assert set(library["Tracks"]) == {"2", "3"}
    assert library["Tracks"]["2"] == {
        "Track ID": 2,
        "Name": "a.mp3",
        "Size": 10,
        "Total Time": 2000,
        "Location": "http://example.org/a.mp3",
    }
    assert library["Tracks"]["3"]["Date Modified"] == datetime(2020, 2, 2)

    (exported,) = library["Playlists"]
    assert exported["Playlist ID"] == 1
    assert exported["All Items"] is True
    assert [item["Track ID"] for item in exported["Playlist Items"]] == [2, 2, 3, 2]


def test_render_with_other_encoding_round_trips() -> None:
    playlist = Playlist()
    playlist.add(Media(Content("file:///music/caf%C3%A9.mp3", title="Café")))
    provider = PlistProvider()

    data = provider.render(playlist, "ISO-8859-1")

    assert data.startswith(b'<?xml version="1.0" encoding="ISO-8859-1"?>')
    parsed = provider.parse(data, "ISO-8859-1")
    assert next(parsed.media()).source.title == "Café"


def test_render_escapes_characters_outside_the_encoding() -> None:
    playlist = Playlist()
    playlist.add(Media(Content("http://example.org/日本.mp3")))
    provider = PlistProvider()

    data = provider.render(playlist, "ISO-8859-1")

    assert b"&#26085;&#26412;" in data
    assert uris(provider.parse(data, "ISO-8859-1")) == ["http://example.org/日本.mp3"]
