import logging
import xml.etree.ElementTree as ET
from typing import Optional

from ..contenttype import ContentType
from ..export import unroll
from ..playlist import Content, Media, Playlist
from . import XMLFormatProvider
from .codec import child, child_text, children, to_int

log = logging.getLogger(__name__)

_NS = "http://xspf.org/ns/0/"


class XSPFProvider(XMLFormatProvider):
    id = "xspf"
    root_name = "playlist"
    description = "XML Shareable Playlist Format (XSPF)"
    content_types = (
        ContentType((".xspf",), ("application/xspf+xml",), description),
    )

    def __init__(self, creator: str = "playmorph"):
        self.creator = creator

    def to_playlist(self, document: ET.Element) -> Playlist:
        playlist = Playlist()
        track_list = child(document, "trackList")
        if track_list is None:
            return playlist.normalize()

        for track_elem in children(track_list, "track"):
            location = _first_location(track_elem)
            if not location:
                log.debug("Skipping XSPF track without location")
                continue

            content = Content(location, title=child_text(track_elem, "title"))
            duration = to_int(child_text(track_elem, "duration"))
            if duration is not None and duration >= 0:
                content.duration = duration
            playlist.add(Media(content))

        return playlist.normalize()

    def from_playlist(self, playlist: Playlist) -> ET.Element:
        records = unroll(playlist, self.id)

        root = ET.Element("playlist", version="1", xmlns=_NS)
        ET.SubElement(root, "creator").text = self.creator
        track_list = ET.SubElement(root, "trackList")

        for media in records:
            source = media.source
            track_elem = ET.SubElement(track_list, "track")
            ET.SubElement(track_elem, "location").text = source.uri
            if source.title:
                ET.SubElement(track_elem, "title").text = source.title
            if source.duration is not None and source.duration > 0:
                ET.SubElement(track_elem, "duration").text = str(source.duration)

        return root


def _first_location(track_elem: ET.Element) -> Optional[str]:
    # several <location> elements are alternatives for the same resource
    for location in children(track_elem, "location"):
        if location.text and location.text.strip():
            return location.text.strip()
    return None
