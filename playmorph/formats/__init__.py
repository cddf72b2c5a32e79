from __future__ import annotations

import logging
import re
import threading
import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

from ..contenttype import ContentType, extension_of
from ..playlist import Playlist
from .codec import encode_xml, expect_root, parse_xml

log = logging.getLogger(__name__)

SNIFF_BYTES = 512

_ROOT_TAG = re.compile(rb"<(?![?!/])([A-Za-z_][\w.:-]*)")


def root_tag(head: bytes) -> Optional[str]:
    head = re.sub(rb"<!--.*?-->", b"", head, flags=re.S)
    match = _ROOT_TAG.search(head)
    if match is None:
        return None
    return match.group(1).decode("ascii", errors="ignore").rsplit(":", 1)[-1]


class FormatProvider(ABC):
    id: str = ""
    description: str = ""
    content_types: tuple[ContentType, ...] = ()

    @abstractmethod
    def accepts(self, head: bytes) -> bool:
        ...

    @abstractmethod
    def read(self, data: bytes, encoding: Optional[str] = None) -> Any:
        ...

    @abstractmethod
    def to_playlist(self, document: Any) -> Playlist:
        ...

    @abstractmethod
    def from_playlist(self, playlist: Playlist) -> Any:
        ...

    @abstractmethod
    def write(self, document: Any, encoding: Optional[str] = None) -> bytes:
        ...

    def parse(self, data: bytes, encoding: Optional[str] = None) -> Playlist:
        return self.to_playlist(self.read(data, encoding))

    def render(self, playlist: Playlist, encoding: Optional[str] = None) -> bytes:
        return self.write(self.from_playlist(playlist), encoding)

    def claims_extension(self, extension: str) -> bool:
        return any(ct.matches_extension(extension) for ct in self.content_types)

    def claims_mime_type(self, mime_type: str) -> bool:
        return any(ct.matches_mime_type(mime_type) for ct in self.content_types)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id!r}>"


class XMLFormatProvider(FormatProvider):
    root_name: str = ""

    def accepts(self, head: bytes) -> bool:
        return root_tag(head) == self.root_name

    def read(self, data: bytes, encoding: Optional[str] = None) -> ET.Element:
        return expect_root(parse_xml(data, encoding), self.root_name, self.id)

    def write(self, document: ET.Element, encoding: Optional[str] = None) -> bytes:
        return encode_xml(document, encoding)


def default_providers() -> list[FormatProvider]:
    from .FormatAtom import AtomProvider
    from .FormatB4S import B4SProvider
    from .FormatPlist import PlistProvider
    from .FormatRSS import RSSProvider
    from .FormatXSPF import XSPFProvider

    # order matters for shared extensions such as ".xml"
    return [XSPFProvider(), RSSProvider(), AtomProvider(), B4SProvider(), PlistProvider()]


class ProviderRegistry:
    def __init__(self, loader: Callable[[], Iterable[FormatProvider]] = default_providers):
        self._loader = loader
        self._providers: Optional[tuple[FormatProvider, ...]] = None
        self._lock = threading.Lock()

    @property
    def providers(self) -> tuple[FormatProvider, ...]:
        if self._providers is None:
            with self._lock:
                if self._providers is None:
                    self._providers = tuple(self._loader())
                    log.debug(f"Loaded {len(self._providers)} format provider(s): {self.ids()}")
        return self._providers

    def reload(self):
        with self._lock:
            self._providers = tuple(self._loader())

    def register(self, provider: FormatProvider):
        current = self.providers
        with self._lock:
            self._providers = current + (provider,)

    def ids(self) -> list[str]:
        return [p.id for p in self.providers]

    def find_by_id(self, provider_id: str) -> Optional[FormatProvider]:
        wanted = provider_id.strip().lower()
        for provider in self.providers:
            if provider.id == wanted:
                return provider
        return None

    def find_by_extension(self, name_or_uri: str) -> Optional[FormatProvider]:
        ext = extension_of(name_or_uri)
        if ext is None:
            return None
        for provider in self.providers:
            if provider.claims_extension(ext):
                return provider
        return None

    def find_by_content_type(self, mime_type: str) -> Optional[FormatProvider]:
        for provider in self.providers:
            if provider.claims_mime_type(mime_type):
                return provider
        return None

    def sniff(self, data: bytes) -> Optional[FormatProvider]:
        head = data[:SNIFF_BYTES]
        for provider in self.providers:
            if provider.accepts(head):
                return provider
        return None

    def read(self, data: bytes, name: Optional[str] = None, encoding: Optional[str] = None) -> Optional[Playlist]:
        provider = self.sniff(data)
        if provider is None and name:
            provider = self.find_by_extension(name)
        if provider is None:
            return None
        log.info(f"Reading {name or 'input'} as {provider.id}")
        return provider.parse(data, encoding)


def read_playlist_file(path: Path, registry: ProviderRegistry) -> Optional[Playlist]:
    return registry.read(path.read_bytes(), name=path.name)
