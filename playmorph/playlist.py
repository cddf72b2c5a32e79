from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterator, Optional, Union

INDEFINITE = -1


@dataclass
class Content:
    uri: str
    length: Optional[int] = None
    duration: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None
    type: Optional[str] = None
    last_modified: Optional[datetime] = None
    title: Optional[str] = None

    def has_unknown_metadata(self) -> bool:
        return self.width is None or self.height is None or self.duration is None

    def __str__(self) -> str:
        return self.uri


class _Repeatable:
    # repeat_count: -1 loops forever, 0 skips the component, n >= 1 plays it n times
    def __setattr__(self, name, value):
        if name == "repeat_count" and value < INDEFINITE:
            raise ValueError(f"Invalid repeat count: {value}")
        super().__setattr__(name, value)


@dataclass
class Media(_Repeatable):
    source: Content
    repeat_count: int = 1
    duration: Optional[int] = None


@dataclass
class Sequence(_Repeatable):
    components: list[Component] = field(default_factory=list)
    repeat_count: int = 1
    duration: Optional[int] = None

    def add(self, component: Component) -> Component:
        self.components.append(component)
        return component

    def __len__(self) -> int:
        return len(self.components)

    def __iter__(self):
        return iter(self.components)


@dataclass
class Parallel(_Repeatable):
    components: list[Component] = field(default_factory=list)
    repeat_count: int = 1
    duration: Optional[int] = None

    def add(self, component: Component) -> Component:
        self.components.append(component)
        return component

    def __len__(self) -> int:
        return len(self.components)

    def __iter__(self):
        return iter(self.components)


Component = Union[Media, Sequence, Parallel]


@dataclass
class Playlist:
    root_sequence: Sequence = field(default_factory=Sequence)

    def __post_init__(self):
        if self.root_sequence is None:
            raise ValueError("A playlist always has a root sequence")

    def add(self, component: Component) -> Component:
        return self.root_sequence.add(component)

    def normalize(self) -> Playlist:
        normalize(self.root_sequence)
        return self

    def is_empty(self) -> bool:
        return not self.root_sequence.components

    def media(self) -> Iterator[Media]:
        return iter_media(self.root_sequence)

    def describe(self) -> str:
        lines: list[str] = []
        _describe(self.root_sequence, 0, lines)
        return "\n".join(lines)


def iter_media(component: Component) -> Iterator[Media]:
    if isinstance(component, Media):
        yield component
    elif isinstance(component, (Sequence, Parallel)):
        for child in component.components:
            yield from iter_media(child)
    else:
        raise TypeError(f"Unknown playlist component: {component!r}")


def normalize(component: Component) -> Component:
    if isinstance(component, Media):
        return component
    if not isinstance(component, (Sequence, Parallel)):
        raise TypeError(f"Unknown playlist component: {component!r}")

    kept: list[Component] = []
    for child in component.components:
        normalize(child)
        if child.repeat_count == 0:
            continue
        if isinstance(child, (Sequence, Parallel)) and not child.components:
            continue
        kept.append(child)
    component.components = kept

    if isinstance(component, Sequence) and len(kept) == 1 and isinstance(kept[0], Sequence):
        _collapse(component, kept[0])
    return component


def _collapse(parent: Sequence, child: Sequence):
    if parent.duration is not None and child.duration is not None:
        return
    parent.components = child.components
    parent.repeat_count = _combine_repeat(parent.repeat_count, child.repeat_count)
    if parent.duration is None:
        parent.duration = child.duration


def _combine_repeat(outer: int, inner: int) -> int:
    if outer == INDEFINITE or inner == INDEFINITE:
        return INDEFINITE
    return outer * inner


def _describe(component: Component, indent: int, lines: list[str]):
    pad = " " * indent
    if isinstance(component, Media):
        head = f"MEDIA(x{component.repeat_count}"
        if component.duration is not None:
            head += f", {component.duration}ms"
        lines.append(f"{pad}{head}): {_describe_content(component.source)}")
    elif isinstance(component, (Sequence, Parallel)):
        kind = "SEQUENCE" if isinstance(component, Sequence) else "PARALLEL"
        lines.append(f"{pad}{kind}(x{component.repeat_count})")
        for child in component.components:
            _describe(child, indent + 2, lines)
    else:
        raise TypeError(f"Unknown playlist component: {component!r}")


def _describe_content(content: Content) -> str:
    details = []
    if content.length is not None:
        details.append(f"length={content.length} bytes")
    if content.duration is not None:
        details.append(f"duration={content.duration}ms")
    if content.width is not None and content.height is not None:
        details.append(f"{content.width}x{content.height}")
    if content.type:
        details.append(f"type={content.type}")
    if not details:
        return content.uri
    return f"{content.uri} [{', '.join(details)}]"
