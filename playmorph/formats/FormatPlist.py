from __future__ import annotations

import logging
import plistlib
from datetime import datetime, timezone
from typing import Any, Optional
from xml.parsers.expat import ExpatError

from ..contenttype import ContentType
from ..errors import MalformedInputError
from ..export import IdentifierFactory, derive_title, unroll
from ..playlist import Content, Media, Playlist, Sequence
from . import FormatProvider, root_tag
from .codec import DEFAULT_ENCODING, decode_text, sanitize_ampersands, to_int, to_utf8

log = logging.getLogger(__name__)

_BINARY_MAGIC = b"bplist"


def _int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return to_int(value)
    return None


def _plist_date(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class PlistProvider(FormatProvider):
    id = "plist"
    description = "iTunes Library File"
    content_types = (
        ContentType((".plist", ".xml"), ("text/xml", "application/x-plist"), description),
    )

    def __init__(self, generator: str = "playmorph"):
        self.generator = generator

    def accepts(self, head: bytes) -> bool:
        return head.startswith(_BINARY_MAGIC) or root_tag(head) == "plist"

    def read(self, data: bytes, encoding: Optional[str] = None) -> dict:
        if not data.startswith(_BINARY_MAGIC):
            data = to_utf8(sanitize_ampersands(decode_text(data, encoding)))
        try:
            document = plistlib.loads(data)
        except (plistlib.InvalidFileException, ExpatError, ValueError) as e:
            raise MalformedInputError(f"Invalid property list: {e}") from e
        if not isinstance(document, dict):
            raise MalformedInputError("Not an iTunes library: top-level object is not a dictionary")
        return document

    def to_playlist(self, document: dict) -> Playlist:
        playlist = Playlist()
        tracks = document.get("Tracks")
        playlists = document.get("Playlists")
        if not isinstance(tracks, dict) or not isinstance(playlists, list):
            return playlist.normalize()

        # only the first playlist is imported, the others are ignored
        candidates = [
            p for p in playlists
            if isinstance(p, dict) and isinstance(p.get("Playlist Items"), list)
        ]
        if not candidates:
            return playlist.normalize()
        if len(candidates) > 1:
            log.debug(f"Ignoring {len(candidates) - 1} additional playlist(s)")

        sequence = Sequence()
        for item in candidates[0]["Playlist Items"]:
            if not isinstance(item, dict):
                continue
            track_id = _int(item.get("Track ID"))
            track = tracks.get(str(track_id)) if track_id is not None else None
            if not isinstance(track, dict):
                log.debug(f"Skipping unknown track id {item.get('Track ID')!r}")
                continue
            content = _content_from_track(track)
            if content is None:
                log.debug(f"Skipping track {track_id} without location")
                continue
            sequence.add(Media(content))

        playlist.add(sequence)
        return playlist.normalize()

    def from_playlist(self, playlist: Playlist) -> dict:
        records = unroll(playlist, self.id)
        ids = IdentifierFactory()

        tracks: dict[str, dict] = {}
        track_ids: dict[int, int] = {}
        items: list[dict] = []
        playlist_id = ids.next_int()

        for media in records:
            source = media.source
            key = id(source)
            if key not in track_ids:
                track_id = ids.next_int()
                track_ids[key] = track_id
                tracks[str(track_id)] = _track_from_content(track_id, source)
            items.append({"Track ID": track_ids[key]})

        return {
            "Major Version": 1,
            "Minor Version": 1,
            "Application Version": self.generator,
            "Tracks": tracks,
            "Playlists": [
                {
                    "Name": f"Playlist generated by {self.generator}",
                    "Playlist ID": playlist_id,
                    "All Items": True,
                    "Playlist Items": items,
                },
            ],
        }

    def write(self, document: dict, encoding: Optional[str] = None) -> bytes:
        data = plistlib.dumps(document, fmt=plistlib.FMT_XML, sort_keys=False)
        enc = encoding or DEFAULT_ENCODING
        if enc.lower().replace("_", "-") in {"utf-8", "utf8"}:
            return data
        text = data.decode("utf-8").replace('encoding="UTF-8"', f'encoding="{enc}"', 1)
        return text.encode(enc, errors="xmlcharrefreplace")


def _content_from_track(track: dict) -> Optional[Content]:
    location = track.get("Location")
    if not isinstance(location, str) or not location.strip():
        return None

    content = Content(location.strip())
    name = track.get("Name")
    if isinstance(name, str):
        content.title = name
    content.duration = _int(track.get("Total Time"))
    size = _int(track.get("Size"))
    if size is not None and size >= 0:
        content.length = size
    modified = track.get("Date Modified")
    if isinstance(modified, datetime):
        content.last_modified = modified
    return content


def _track_from_content(track_id: int, source: Content) -> dict:
    track: dict[str, Any] = {"Track ID": track_id, "Name": derive_title(source)}
    if source.length is not None and source.length >= 0:
        track["Size"] = source.length
    if source.duration is not None and source.duration >= 0:
        track["Total Time"] = source.duration
    if source.last_modified is not None:
        track["Date Modified"] = _plist_date(source.last_modified)
    track["Location"] = source.uri
    return track
