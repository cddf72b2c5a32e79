from __future__ import annotations

import logging
import math
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Optional

from ..contenttype import ContentType
from ..export import derive_title, unroll
from ..playlist import Content, Media, Playlist, Sequence
from . import XMLFormatProvider
from .codec import child, child_text, children, to_int

log = logging.getLogger(__name__)

MEDIA_NS = "http://search.yahoo.com/mrss/"

ET.register_namespace("media", MEDIA_NS)


def _media(name: str) -> str:
    return f"{{{MEDIA_NS}}}{name}"


class RSSProvider(XMLFormatProvider):
    id = "rss"
    root_name = "rss"
    description = "RSS Document"
    content_types = (
        ContentType((".rss", ".xml"), ("application/rss+xml",), description),
    )

    def __init__(self, use_media: bool = False, generator: str = "playmorph"):
        self.use_media = use_media
        self.generator = generator

    def to_playlist(self, document: ET.Element) -> Playlist:
        playlist = Playlist()
        channel = child(document, "channel")
        if channel is None:
            return playlist.normalize()

        for item in children(channel, "item"):
            title = child_text(item, "title")
            enclosure = child(item, "enclosure")
            url = enclosure.get("url", "").strip() if enclosure is not None else ""

            if url:
                content = Content(
                    url,
                    length=to_int(enclosure.get("length")),
                    type=enclosure.get("type") or None,
                    title=title,
                )
                playlist.add(Media(content))
                continue

            for group in children(item, "group", MEDIA_NS):
                content = select_alternative(list(children(group, "content", MEDIA_NS)))
                if content is None:
                    log.debug("Skipping media:group without a usable media:content")
                    continue
                content.title = content.title or title
                playlist.add(Sequence([Media(content)]))

            for media_content in children(item, "content", MEDIA_NS):
                content = content_from_media(media_content)
                if content is None:
                    log.debug("Skipping media:content without URL")
                    continue
                content.title = content.title or title
                playlist.add(Media(content))

        return playlist.normalize()

    def from_playlist(self, playlist: Playlist) -> ET.Element:
        records = unroll(playlist, self.id)
        now = format_datetime(datetime.now(timezone.utc))

        root = ET.Element("rss", version="2.0")
        channel = ET.SubElement(root, "channel")
        ET.SubElement(channel, "title").text = f"{self.generator} RSS playlist"
        ET.SubElement(channel, "description").text = "A list of media contents"
        ET.SubElement(channel, "link").text = "about:blank"
        ET.SubElement(channel, "language").text = "en"
        ET.SubElement(channel, "pubDate").text = now
        ET.SubElement(channel, "lastBuildDate").text = now
        ET.SubElement(channel, "generator").text = self.generator

        for media in records:
            source = media.source
            item = ET.SubElement(channel, "item")
            ET.SubElement(item, "title").text = derive_title(source)
            if self.use_media:
                _add_media_content(item, source)
            else:
                _add_enclosure(item, source)

        return root


def select_alternative(alternatives: list[ET.Element]) -> Optional[Content]:
    """Pick one rendition of a media:group.

    The first alternative flagged isDefault="true" wins; without one, the
    first usable alternative in document order is taken. The others are
    ignored.
    """
    for media_content in alternatives:
        if media_content.get("isDefault", "").strip().lower() == "true":
            content = content_from_media(media_content)
            if content is not None:
                return content
    for media_content in alternatives:
        content = content_from_media(media_content)
        if content is not None:
            return content
    return None


def content_from_media(media_content: ET.Element) -> Optional[Content]:
    url = (media_content.get("url") or "").strip()
    with_dimensions = True
    if not url:
        player = child(media_content, "player", MEDIA_NS)
        url = (player.get("url") or "").strip() if player is not None else ""
        with_dimensions = False
    if not url:
        return None

    content = Content(url, type=media_content.get("type") or None)
    content.length = to_int(media_content.get("fileSize"))
    content.duration = _seconds_to_ms(media_content.get("duration"))
    if with_dimensions:
        content.width = to_int(media_content.get("width"))
        content.height = to_int(media_content.get("height"))
    content.title = child_text(media_content, "title", MEDIA_NS)
    return content


def _seconds_to_ms(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        return None
    if not math.isfinite(seconds) or seconds < 0:
        return None
    return int(round(seconds * 1000))


def _add_enclosure(item: ET.Element, source: Content):
    enclosure = ET.SubElement(item, "enclosure", url=source.uri)
    enclosure.set("length", str(source.length if source.length is not None else 0))
    if source.type:
        enclosure.set("type", source.type)


def _add_media_content(item: ET.Element, source: Content):
    media_content = ET.SubElement(item, _media("content"), url=source.uri)
    if source.length is not None:
        media_content.set("fileSize", str(source.length))
    if source.type:
        media_content.set("type", source.type)
    media_content.set("isDefault", "true")
    if source.duration is not None:
        media_content.set("duration", str((source.duration + 999) // 1000))
    if source.width is not None:
        media_content.set("width", str(source.width))
    if source.height is not None:
        media_content.set("height", str(source.height))
