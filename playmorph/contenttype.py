from __future__ import annotations

import logging
import threading
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from importlib import resources
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Optional
from urllib.parse import unquote, urlsplit

if TYPE_CHECKING:
    from .formats import ProviderRegistry

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContentType:
    extensions: tuple[str, ...]
    mime_types: tuple[str, ...]
    description: Optional[str] = None

    def matches_extension(self, extension: str) -> bool:
        ext = extension.lower()
        return any(e.lower() == ext for e in self.extensions)

    def matches_mime_type(self, mime_type: str) -> bool:
        mime = mime_type.split(";", 1)[0].strip().lower()
        return any(m.lower() == mime for m in self.mime_types)


def extension_of(name_or_uri: str) -> Optional[str]:
    name = name_or_uri.strip().replace("\\", "/")
    parts = urlsplit(name)
    path = parts.path if (parts.scheme or parts.netloc) else name.split("?", 1)[0].split("#", 1)[0]
    last = PurePosixPath(unquote(path)).name
    idx = last.rfind(".")
    if idx < 0 or idx == len(last) - 1:
        return None
    return last[idx:].lower()


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _text(elem: ET.Element, name: str) -> Optional[str]:
    for child in elem:
        if _local(child.tag) == name and child.text:
            return child.text.strip() or None
    return None


def load_web_app(source) -> dict[str, str]:
    """Read the <mime-mapping> table of a servlet web.xml document."""
    root = ET.parse(source).getroot()
    mappings: dict[str, str] = {}
    for mapping in root:
        if _local(mapping.tag) != "mime-mapping":
            continue
        extension = _text(mapping, "extension")
        mime_type = _text(mapping, "mime-type")
        if not extension or not mime_type:
            continue
        mappings.setdefault(extension.lower(), mime_type)
    return mappings


def _bundled_web_app() -> dict[str, str]:
    with resources.files("playmorph.data").joinpath("web.xml").open("rb") as f:
        return load_web_app(f)


class ContentTypeRegistry:
    def __init__(self, providers: Optional[ProviderRegistry] = None, web_xml: Optional[Path] = None):
        self._providers = providers
        self._web_xml = web_xml
        self._mappings: Optional[dict[str, str]] = None
        self._lock = threading.Lock()

    @property
    def mappings(self) -> dict[str, str]:
        if self._mappings is None:
            with self._lock:
                if self._mappings is None:
                    self._mappings = self._load()
        return self._mappings

    def _load(self) -> dict[str, str]:
        try:
            if self._web_xml is not None:
                return load_web_app(self._web_xml)
            return _bundled_web_app()
        except (OSError, ET.ParseError) as e:
            log.warning(f"Could not load MIME mapping table: {e}")
            return {}

    def reload(self):
        with self._lock:
            self._mappings = self._load()

    def lookup(self, name_or_uri: str) -> Optional[ContentType]:
        ext = extension_of(name_or_uri)
        if ext is None:
            return None

        if self._providers is not None:
            for provider in self._providers.providers:
                for content_type in provider.content_types:
                    if content_type.matches_extension(ext):
                        return content_type

        mime_type = self.mappings.get(ext[1:])
        if mime_type is None:
            return None
        return ContentType(extensions=(ext,), mime_types=(mime_type,))
