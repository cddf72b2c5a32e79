"""Shared export walk: unrolls a generic playlist into the flat record list
every format provider renders, rejecting what the target cannot express."""

from __future__ import annotations

import itertools
import uuid
from pathlib import PurePosixPath
from typing import Optional
from urllib.parse import unquote, urlsplit

from .errors import StructuralError
from .playlist import Component, Content, Media, Parallel, Playlist, Sequence

INDEFINITE_REPEAT = "indefinite repeat not representable"
CONCURRENT_MEDIA = "concurrent media not representable"
TIMED_MEDIA = "timed media not representable"


def unroll(playlist: Playlist, format_id: Optional[str] = None) -> list[Media]:
    records: list[Media] = []
    _walk(playlist.root_sequence, "/", records, format_id)
    return records


def flatten(playlist: Playlist) -> list[str]:
    return [media.source.uri for media in unroll(playlist)]


def _walk(component: Component, path: str, records: list[Media], format_id: Optional[str]):
    if isinstance(component, Sequence):
        if component.repeat_count < 0:
            raise StructuralError(INDEFINITE_REPEAT, path, component, format_id)
        for _ in range(component.repeat_count):
            for index, child in enumerate(component.components):
                _walk(child, _child_path(path, index), records, format_id)

    elif isinstance(component, Parallel):
        raise StructuralError(CONCURRENT_MEDIA, path, component, format_id)

    elif isinstance(component, Media):
        if component.duration is not None:
            raise StructuralError(TIMED_MEDIA, path, component, format_id)
        if component.repeat_count < 0:
            raise StructuralError(INDEFINITE_REPEAT, path, component, format_id)
        records.extend([component] * component.repeat_count)

    else:
        raise TypeError(f"Unknown playlist component: {component!r}")


def _child_path(path: str, index: int) -> str:
    return f"{path.rstrip('/')}/{index}"


def derive_title(content: Content) -> str:
    if content.title:
        return content.title
    uri = content.uri
    parts = urlsplit(uri.replace("\\", "/"))
    # opaque URIs (urn:isbn:..., mailto:...) carry no path
    if parts.scheme and not parts.netloc and not parts.path.startswith("/"):
        return uri
    name = PurePosixPath(unquote(parts.path)).name
    return name or uri


class IdentifierFactory:
    """Opaque identifiers, unique within a single export run."""

    def __init__(self):
        self._counter = itertools.count(1)

    def next_int(self) -> int:
        return next(self._counter)

    def next_urn(self) -> str:
        return uuid.uuid4().urn
