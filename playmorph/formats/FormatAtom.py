from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from datetime import datetime, timezone

from ..contenttype import ContentType
from ..export import IdentifierFactory, derive_title, unroll
from ..playlist import Content, Media, Playlist
from . import XMLFormatProvider
from .codec import child_text, children, to_int

log = logging.getLogger(__name__)

ATOM_NS = "http://www.w3.org/2005/Atom"


def _timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat(timespec="seconds")


class AtomProvider(XMLFormatProvider):
    id = "atom"
    root_name = "feed"
    description = "Atom Document"
    content_types = (
        ContentType((".atom", ".xml"), ("application/atom+xml",), description),
    )

    def __init__(self, generator: str = "playmorph"):
        self.generator = generator

    def to_playlist(self, document: ET.Element) -> Playlist:
        playlist = Playlist()

        for entry in children(document, "entry"):
            title = child_text(entry, "title")
            for link in children(entry, "link"):
                href = (link.get("href") or "").strip()
                if not href or link.get("rel") != "enclosure":
                    continue
                content = Content(
                    href,
                    length=to_int(link.get("length")),
                    type=link.get("type") or None,
                    title=title,
                )
                playlist.add(Media(content))

        return playlist.normalize()

    def from_playlist(self, playlist: Playlist) -> ET.Element:
        records = unroll(playlist, self.id)
        ids = IdentifierFactory()
        now = _timestamp(datetime.now(timezone.utc))

        feed = ET.Element("feed", xmlns=ATOM_NS)
        ET.SubElement(feed, "title").text = f"{self.generator} Atom playlist"
        ET.SubElement(feed, "updated").text = now
        ET.SubElement(feed, "id").text = ids.next_urn()
        ET.SubElement(feed, "generator").text = self.generator

        for media in records:
            source = media.source
            entry = ET.SubElement(feed, "entry")
            ET.SubElement(entry, "title").text = derive_title(source)

            link = ET.SubElement(entry, "link", rel="enclosure", href=source.uri)
            if source.type:
                link.set("type", source.type)
            if source.length is not None:
                link.set("length", str(source.length))

            updated = _timestamp(source.last_modified) if source.last_modified else now
            ET.SubElement(entry, "updated").text = updated
            ET.SubElement(entry, "published").text = now
            ET.SubElement(entry, "id").text = ids.next_urn()

        return feed
