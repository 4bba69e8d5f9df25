"""WKT tokenizer, parser and generator for the supported geometry subset.

Coordinates stay decimal text from input to output so that an edit session
never rounds user input. The empty string is the blank coordinate: it is a
legal value ("user left this field empty") and is never turned into zero.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Sequence

from .models import GeometryType


BLANK = ""

CoordinatePair = tuple[str, str]

_NUMBER_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_TAG_RE = re.compile(r"\s*([A-Za-z]+)\s*\(")
_SRID_WRAPPED_RE = re.compile(
    r"^'(?:" + "|".join(t.value for t in GeometryType) + r")\(.*\)',[0-9]*$",
    re.IGNORECASE | re.DOTALL,
)
_BARE_WKT_RE = re.compile(
    r"^(?:" + "|".join(t.value for t in GeometryType) + r")\(.*\)$",
    re.IGNORECASE | re.DOTALL,
)

# Nesting depth of the coordinate payload: 1 = list of pairs,
# 2 = list of pair lists, 3 = list of lists of pair lists.
_PAYLOAD_DEPTH = {
    GeometryType.POINT: 1,
    GeometryType.LINESTRING: 1,
    GeometryType.MULTIPOINT: 1,
    GeometryType.POLYGON: 2,
    GeometryType.MULTILINESTRING: 2,
    GeometryType.MULTIPOLYGON: 3,
}


class ParseError(ValueError):
    """Raised for malformed WKT; no partial geometry is ever returned."""


@dataclass(frozen=True, slots=True)
class Geometry:
    """Parsed geometry value.

    ``parts`` nests like the WKT payload: a tuple of pairs for POINT,
    LINESTRING and MULTIPOINT, tuples of those for POLYGON and
    MULTILINESTRING, one level more for MULTIPOLYGON, and a tuple of member
    ``Geometry`` values for GEOMETRYCOLLECTION.
    """

    tag: GeometryType
    parts: tuple[Any, ...]


def is_blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


def parse_tag(wkt: str) -> GeometryType:
    """Return the geometry tag of ``wkt`` or raise ``ParseError``."""
    match = _TAG_RE.match(wkt)
    if match is None:
        raise ParseError(f"Expected 'TAG(' at start of WKT: {_preview(wkt)}")
    name = match.group(1).upper()
    try:
        return GeometryType(name)
    except ValueError:
        raise ParseError(f"Unknown geometry tag '{match.group(1)}'") from None


def parse_wkt(wkt: str) -> Geometry:
    tag = parse_tag(wkt)
    payload = _strip_envelope(wkt)
    if tag is GeometryType.GEOMETRYCOLLECTION:
        members: list[Geometry] = []
        for member_wkt in split_collection(payload):
            if parse_tag(member_wkt) is GeometryType.GEOMETRYCOLLECTION:
                raise ParseError("Nested GEOMETRYCOLLECTION values are not supported")
            members.append(parse_wkt(member_wkt))
        return Geometry(tag=tag, parts=tuple(members))
    return Geometry(tag=tag, parts=_parse_payload(tag, payload))


def parse_coordinates(wkt: str, tag: GeometryType | str) -> tuple[Any, ...]:
    """Parse ``wkt`` as a value of ``tag`` and return its coordinate parts."""
    expected = GeometryType.from_tag(tag)
    geometry = parse_wkt(wkt)
    if geometry.tag is not expected:
        raise ParseError(f"Expected {expected.value} value, got {geometry.tag.value}")
    return geometry.parts


def iter_pairs(geometry: Geometry) -> list[CoordinatePair]:
    """Flatten every coordinate pair of ``geometry`` in document order."""
    if geometry.tag is GeometryType.GEOMETRYCOLLECTION:
        out: list[CoordinatePair] = []
        for member in geometry.parts:
            out.extend(iter_pairs(member))
        return out
    return _flatten(geometry.parts, _PAYLOAD_DEPTH[geometry.tag])


def generate_wkt(tag: GeometryType | str, parts: Sequence[Any]) -> str:
    """Inverse of ``parse_coordinates``; blank fields are written as ``""``."""
    geometry_type = GeometryType.from_tag(tag)
    if geometry_type is GeometryType.GEOMETRYCOLLECTION:
        body = ",".join(generate_wkt(member.tag, member.parts) for member in parts)
    else:
        body = _format_payload(parts, _PAYLOAD_DEPTH[geometry_type])
    return f"{geometry_type.value}({body})"


def format_pair(pair: Sequence[str | None]) -> str:
    x = BLANK if is_blank(pair[0]) else str(pair[0]).strip()
    y = BLANK if len(pair) < 2 or is_blank(pair[1]) else str(pair[1]).strip()
    return f"{x} {y}"


def split_srid(value: str) -> dict[str, Any]:
    """Strip the ``'WKT',SRID`` wrapper a GIS column value may carry.

    Bare WKT yields srid 0; anything unrecognised yields an empty wkt.
    """
    text = value.strip()
    if _SRID_WRAPPED_RE.match(text):
        last_comma = text.rfind(",")
        srid_text = text[last_comma + 1 :].strip()
        return {
            "srid": int(srid_text) if srid_text else 0,
            "wkt": text[1 : last_comma - 1].strip(),
        }
    if _BARE_WKT_RE.match(text):
        return {"srid": 0, "wkt": text}
    return {"srid": 0, "wkt": ""}


def split_collection(payload: str) -> list[str]:
    """Split a GEOMETRYCOLLECTION payload into its member WKT strings."""
    members: list[str] = []
    depth = 0
    start = 0
    for idx, ch in enumerate(payload):
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                raise ParseError("Unbalanced parentheses in GEOMETRYCOLLECTION")
        elif ch == "," and depth == 0:
            members.append(payload[start:idx].strip())
            start = idx + 1
    if depth != 0:
        raise ParseError("Unbalanced parentheses in GEOMETRYCOLLECTION")
    tail = payload[start:].strip()
    if tail or members:
        members.append(tail)
    if any(not member for member in members):
        raise ParseError("Empty member in GEOMETRYCOLLECTION")
    return members


def _strip_envelope(wkt: str) -> str:
    text = wkt.strip()
    open_idx = text.find("(")
    if not text.endswith(")"):
        raise ParseError(f"WKT must end with ')': {_preview(wkt)}")
    depth = 0
    for idx in range(open_idx, len(text)):
        ch = text[idx]
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0 and idx != len(text) - 1:
                raise ParseError(f"Unexpected text after geometry: {_preview(wkt)}")
            if depth < 0:
                break
    if depth != 0:
        raise ParseError(f"Unbalanced parentheses in WKT: {_preview(wkt)}")
    return text[open_idx + 1 : -1]


def _parse_payload(tag: GeometryType, payload: str) -> tuple[Any, ...]:
    if payload == "":
        return ()
    tree, pos = _parse_sequence(payload, 0)
    if pos != len(payload):
        raise ParseError(f"Unbalanced parentheses in {tag.value} payload")

    depth = _PAYLOAD_DEPTH[tag]
    if tag is GeometryType.MULTIPOINT:
        # MULTIPOINT((1 2),(3 4)) is the OGC form of MULTIPOINT(1 2,3 4).
        tree = [_unwrap_single(item) for item in tree]
    parts = _shape(tree, depth, tag)
    if tag is GeometryType.POINT and len(parts) > 1:
        raise ParseError("POINT takes exactly one coordinate pair")
    return parts


def _parse_sequence(text: str, pos: int) -> tuple[list[Any], int]:
    """Parse ``item (',' item)*`` where an item is a group or raw pair text."""
    items: list[Any] = []
    while True:
        while pos < len(text) and text[pos] in " \t\r\n" and _next_non_space(text, pos) == "(":
            pos += 1
        if pos < len(text) and text[pos] == "(":
            inner, pos = _parse_sequence(text, pos + 1)
            if pos >= len(text) or text[pos] != ")":
                raise ParseError("Unbalanced parentheses in WKT payload")
            pos += 1
            while pos < len(text) and text[pos] in " \t\r\n":
                pos += 1
            items.append(inner)
        else:
            end = pos
            while end < len(text) and text[end] not in ",()":
                end += 1
            if end < len(text) and text[end] == "(":
                raise ParseError("Unexpected '(' inside coordinate pair")
            items.append(text[pos:end])
            pos = end
        if pos < len(text) and text[pos] == ",":
            pos += 1
            continue
        return items, pos


def _next_non_space(text: str, pos: int) -> str:
    while pos < len(text) and text[pos] in " \t\r\n":
        pos += 1
    return text[pos] if pos < len(text) else ""


def _unwrap_single(item: Any) -> Any:
    if isinstance(item, list):
        if len(item) != 1 or isinstance(item[0], list):
            raise ParseError("MULTIPOINT members must be single coordinate pairs")
        return item[0]
    return item


def _shape(tree: list[Any], depth: int, tag: GeometryType) -> tuple[Any, ...]:
    if depth == 1:
        out: list[CoordinatePair] = []
        for item in tree:
            if isinstance(item, list):
                raise ParseError(f"Unexpected '(' in {tag.value} coordinates")
            out.append(_parse_pair(item))
        return tuple(out)
    groups: list[tuple[Any, ...]] = []
    for item in tree:
        if not isinstance(item, list):
            if item.strip():
                raise ParseError(f"Expected '(' in {tag.value} payload")
            raise ParseError(f"Empty part in {tag.value} payload")
        groups.append(_shape(item, depth - 1, tag) if item != [""] else ())
    return tuple(groups)


def _parse_pair(text: str) -> CoordinatePair:
    # A lone value is x unless whitespace precedes it: "5 " -> ("5", ""), " 5" -> ("", "5").
    tokens = text.split()
    if len(tokens) > 2:
        raise ParseError(f"Expected 'x y' coordinate pair, got '{text.strip()}'")
    if len(tokens) == 2:
        x, y = tokens
    elif not tokens:
        x, y = BLANK, BLANK
    elif text[:1].isspace():
        x, y = BLANK, tokens[0]
    else:
        x, y = tokens[0], BLANK
    for token in (x, y):
        if not token:
            continue
        if not _NUMBER_RE.fullmatch(token):
            raise ParseError(f"Non-numeric coordinate '{token}'")
        if not math.isfinite(float(token)):
            raise ParseError(f"Coordinate '{token}' is out of range")
    return (x, y)


def _flatten(parts: Sequence[Any], depth: int) -> list[CoordinatePair]:
    if depth == 1:
        return list(parts)
    out: list[CoordinatePair] = []
    for part in parts:
        out.extend(_flatten(part, depth - 1))
    return out


def _format_payload(parts: Sequence[Any], depth: int) -> str:
    if depth == 1:
        return ",".join(format_pair(pair) for pair in parts)
    return ",".join(f"({_format_payload(part, depth - 1)})" for part in parts)


def _preview(text: str, limit: int = 40) -> str:
    text = text.strip()
    return text if len(text) <= limit else text[:limit] + "..."
