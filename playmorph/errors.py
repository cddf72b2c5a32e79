from __future__ import annotations

from typing import Optional


class PlaymorphError(Exception):
    pass


class StructuralError(PlaymorphError):
    """The playlist holds a construct the target format cannot express."""

    def __init__(self, rule: str, path: str, node: object, format_id: Optional[str] = None):
        self.rule = rule
        self.path = path
        self.node = node
        self.format_id = format_id
        kind = type(node).__name__.lower()
        prefix = f"{format_id} playlist: " if format_id else ""
        super().__init__(f"{prefix}{rule} at {path} ({kind})")


UnsupportedStructureError = StructuralError


class MalformedInputError(PlaymorphError):
    pass


class MetadataProbeError(PlaymorphError):
    pass
