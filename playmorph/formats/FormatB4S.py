from __future__ import annotations

import logging
import xml.etree.ElementTree as ET

from ..contenttype import ContentType
from ..export import derive_title, unroll
from ..playlist import Content, Media, Playlist
from . import XMLFormatProvider
from .codec import child, child_text, children, to_int

log = logging.getLogger(__name__)


def _playstring(value: str) -> str:
    return value.strip().replace("\\", "/")


class B4SProvider(XMLFormatProvider):
    id = "b4s"
    root_name = "WinampXML"
    description = "Winamp 3+ Playlist (B4S)"
    content_types = (
        ContentType((".b4s",), ("text/xml",), description),
    )

    def __init__(self, label: str = "playmorph playlist"):
        self.label = label

    def to_playlist(self, document: ET.Element) -> Playlist:
        playlist = Playlist()
        playlist_elem = child(document, "playlist")
        if playlist_elem is None:
            return playlist.normalize()

        limit = to_int(playlist_elem.get("num_entries"))
        count = 0
        for entry in children(playlist_elem, "entry"):
            if limit is not None and limit >= 0 and count >= limit:
                log.warning("Ignoring extra B4S entry")
                continue
            count += 1

            playstring = _playstring(entry.get("Playstring") or "")
            if not playstring:
                log.debug("Skipping B4S entry without Playstring")
                continue

            content = Content(playstring, title=child_text(entry, "Name"))
            length = to_int(child_text(entry, "Length"))
            if length is not None and length >= 0:
                content.duration = length
            playlist.add(Media(content))

        return playlist.normalize()

    def from_playlist(self, playlist: Playlist) -> ET.Element:
        records = unroll(playlist, self.id)

        root = ET.Element("WinampXML")
        playlist_elem = ET.SubElement(root, "playlist", num_entries=str(len(records)), label=self.label)
        for media in records:
            source = media.source
            entry = ET.SubElement(playlist_elem, "entry", Playstring=_playstring(source.uri))
            ET.SubElement(entry, "Name").text = derive_title(source)
            if source.duration is not None and source.duration >= 0:
                ET.SubElement(entry, "Length").text = str(source.duration)

        return root
