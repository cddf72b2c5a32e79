from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from typing import Iterator, Optional

from ..errors import MalformedInputError

DEFAULT_ENCODING = "UTF-8"

_BARE_AMPERSAND = re.compile(r"&(?![A-Za-z][A-Za-z0-9._-]*;|#[0-9]+;|#[xX][0-9A-Fa-f]+;)")
_DECLARED_ENCODING = re.compile(r"""(^\s*<\?xml[^>]*?\bencoding=["'])[^"']*(["'])""")


def sanitize_ampersands(text: str) -> str:
    return _BARE_AMPERSAND.sub("&amp;", text)


def to_utf8(text: str) -> bytes:
    # keep the declared encoding in step with the bytes
    return _DECLARED_ENCODING.sub(r"\1UTF-8\2", text, count=1).encode("utf-8")


def decode_text(data: bytes, encoding: Optional[str] = None) -> str:
    enc = encoding or DEFAULT_ENCODING
    if enc.lower().replace("_", "-") in {"utf-8", "utf8"}:
        enc = "utf-8-sig"
    try:
        return data.decode(enc)
    except (UnicodeDecodeError, LookupError) as e:
        raise MalformedInputError(f"Cannot decode input as {encoding or DEFAULT_ENCODING}: {e}") from e


def parse_xml(data: bytes, encoding: Optional[str] = None) -> ET.Element:
    text = sanitize_ampersands(decode_text(data, encoding))
    try:
        return ET.fromstring(text)
    except ET.ParseError as e:
        raise MalformedInputError(f"Invalid XML document: {e}") from e


def encode_xml(root: ET.Element, encoding: Optional[str] = None) -> bytes:
    enc = encoding or DEFAULT_ENCODING
    ET.indent(root)
    return ET.tostring(root, encoding=enc, xml_declaration=True)


def split_tag(tag: str) -> tuple[Optional[str], str]:
    if tag.startswith("{"):
        ns, _, local = tag[1:].partition("}")
        return ns, local
    return None, tag


def local_name(tag: str) -> str:
    return split_tag(tag)[1]


def children(elem: ET.Element, name: str, namespace: Optional[str] = None) -> Iterator[ET.Element]:
    for child in elem:
        if not isinstance(child.tag, str):
            continue
        ns, local = split_tag(child.tag)
        if local != name:
            continue
        if namespace is not None and ns != namespace:
            continue
        yield child


def child(elem: ET.Element, name: str, namespace: Optional[str] = None) -> Optional[ET.Element]:
    return next(children(elem, name, namespace), None)


def child_text(elem: ET.Element, name: str, namespace: Optional[str] = None) -> Optional[str]:
    found = child(elem, name, namespace)
    if found is None or found.text is None:
        return None
    return found.text.strip() or None


def to_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def expect_root(root: ET.Element, name: str, format_id: str) -> ET.Element:
    if local_name(root.tag) != name:
        raise MalformedInputError(f"Not a {format_id} document: root element is <{local_name(root.tag)}>")
    return root
