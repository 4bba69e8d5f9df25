"""Round trip between WKT values and the GIS editor's parameter map.

The map is keyed by geometry index, then by geometry tag, then by field:

    {"srid": 4326, 0: {"POINT": {"x": "5", "y": ""}}}

A single-part editor works on the whole value (index -1): the value may still
carry its ``'WKT',SRID`` wrapper and the tag is implied by the value. A
GEOMETRYCOLLECTION editor works on one member at a time and records the
member's ``gis_type`` next to its fields.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Callable, Mapping, Sequence

from .models import GeometryType, UnsupportedVariant
from .wkt import (
    BLANK,
    CoordinatePair,
    ParseError,
    format_pair,
    generate_wkt,
    is_blank,
    parse_wkt,
    split_srid,
)


WHOLE_VALUE = -1

_LOGGER = logging.getLogger("gisviz.editor")

# Minimum number of coordinate slots the editor form always offers.
_MIN_LINE_POINTS = 2
_MIN_RING_POINTS = 4
_MIN_MULTI_POINTS = 1
_MIN_PARTS = 1
_MIN_COLLECTION_MEMBERS = 0


def to_editor_params(value: str, index: int = WHOLE_VALUE) -> dict[Any, Any]:
    """Build editor parameters from a column value or one collection member."""
    if index == WHOLE_VALUE:
        data = split_srid(value)
        if not data["wkt"]:
            raise ParseError(f"Unrecognised GIS value: {value.strip()[:40]!r}")
        geometry = parse_wkt(data["wkt"])
        params: dict[Any, Any] = {"srid": data["srid"]}
        if geometry.tag is GeometryType.GEOMETRYCOLLECTION:
            params[GeometryType.GEOMETRYCOLLECTION.value] = {"geom_count": len(geometry.parts)}
            for member_idx, member in enumerate(geometry.parts):
                params[member_idx] = {
                    "gis_type": member.tag.value,
                    member.tag.value: fields_from_parts(member.tag, member.parts),
                }
            return params
        params[0] = {geometry.tag.value: fields_from_parts(geometry.tag, geometry.parts)}
        return params

    geometry = parse_wkt(value)
    if geometry.tag is GeometryType.GEOMETRYCOLLECTION:
        raise ParseError("A collection member cannot itself be a GEOMETRYCOLLECTION")
    return {
        index: {
            "gis_type": geometry.tag.value,
            geometry.tag.value: fields_from_parts(geometry.tag, geometry.parts),
        }
    }


def from_editor_params(
    gis_data: Mapping[Any, Any],
    index: int,
    empty: str = BLANK,
    tag: GeometryType | str | None = None,
) -> str:
    """Generate WKT for the geometry stored at ``index`` of ``gis_data``."""
    geometry_type = GeometryType.from_tag(tag) if tag is not None else resolve_tag(gis_data, index)
    if geometry_type is GeometryType.GEOMETRYCOLLECTION:
        collection = _mapping(_get(gis_data, GeometryType.GEOMETRYCOLLECTION.value))
        geom_count = _count(collection.get("geom_count"), _MIN_COLLECTION_MEMBERS)
        members = [
            from_editor_params(
                gis_data,
                member_idx,
                empty,
                tag=resolve_tag(gis_data, member_idx, member=True),
            )
            for member_idx in range(geom_count)
        ]
        return f"{GeometryType.GEOMETRYCOLLECTION.value}({','.join(members)})"
    fields = _mapping(_get(_mapping(_get(gis_data, index)), geometry_type.value))
    return wkt_from_fields(geometry_type, fields, empty)


def resolve_tag(
    gis_data: Mapping[Any, Any],
    index: int,
    *,
    member: bool = False,
) -> GeometryType:
    """Find the geometry tag of an editor entry.

    Looks at the entry's ``gis_type``, then the map-level ``gis_type``, then
    a single tag-named key inside the entry. A collection member never
    resolves to GEOMETRYCOLLECTION.
    """
    entry = _mapping(_get(gis_data, index))
    candidates = [entry.get("gis_type")]
    if not member:
        candidates.append(gis_data.get("gis_type"))
    for candidate in candidates:
        if isinstance(candidate, str) and candidate.strip():
            resolved = GeometryType.from_tag(candidate)
            if member and resolved is GeometryType.GEOMETRYCOLLECTION:
                raise UnsupportedVariant("Nested GEOMETRYCOLLECTION members are not supported")
            return resolved
    if not member and GeometryType.GEOMETRYCOLLECTION.value in gis_data:
        return GeometryType.GEOMETRYCOLLECTION
    tagged = [key for key in entry if isinstance(key, str) and key.upper() in _TAG_NAMES]
    if len(tagged) == 1:
        return GeometryType.from_tag(tagged[0])
    raise UnsupportedVariant(f"Cannot determine geometry type of editor entry {index}")


def fields_from_parts(tag: GeometryType, parts: Sequence[Any]) -> dict[Any, Any]:
    """Editor fields for one geometry's coordinate parts."""
    builder = _FIELD_BUILDERS.get(tag)
    if builder is None:
        raise UnsupportedVariant(f"No editor fields for {tag.value}")
    return builder(parts)


def wkt_from_fields(tag: GeometryType, fields: Mapping[Any, Any], empty: str = BLANK) -> str:
    writer = _WKT_WRITERS.get(tag)
    if writer is None:
        raise UnsupportedVariant(f"No WKT writer for {tag.value}")
    return writer(fields, empty)


def shape_to_wkt(tag: GeometryType | str, row_data: Mapping[str, Any]) -> str:
    """WKT for one shapefile record (``{x, y}`` or ``{parts: [{points: ...}]}``)."""
    geometry_type = GeometryType.from_tag(tag)
    if geometry_type is GeometryType.POINT:
        return generate_wkt(geometry_type, ((_shape_value(row_data, "x"), _shape_value(row_data, "y")),))
    if geometry_type is GeometryType.MULTIPOINT:
        points = row_data.get("points") or []
        return generate_wkt(geometry_type, tuple(_shape_pair(point) for point in points))

    rings = [tuple(_shape_pair(point) for point in part.get("points", [])) for part in row_data.get("parts") or []]
    if geometry_type is GeometryType.LINESTRING:
        return generate_wkt(geometry_type, rings[0] if rings else ())
    if geometry_type in (GeometryType.MULTILINESTRING, GeometryType.POLYGON):
        return generate_wkt(geometry_type, tuple(rings))
    if geometry_type is GeometryType.MULTIPOLYGON:
        return generate_wkt(geometry_type, _group_rings_into_polygons(rings))
    raise UnsupportedVariant(f"Shapefile records cannot describe {geometry_type.value}")


def _point_fields(parts: Sequence[CoordinatePair]) -> dict[Any, Any]:
    x, y = parts[0] if parts else (BLANK, BLANK)
    return {"x": x, "y": y}


def _points_fields(points: Sequence[CoordinatePair]) -> dict[Any, Any]:
    fields: dict[Any, Any] = {"no_of_points": len(points)}
    for idx, (x, y) in enumerate(points):
        fields[idx] = {"x": x, "y": y}
    return fields


def _lines_fields(lines: Sequence[Sequence[CoordinatePair]]) -> dict[Any, Any]:
    fields: dict[Any, Any] = {"no_of_lines": len(lines)}
    for idx, line in enumerate(lines):
        fields[idx] = _points_fields(line)
    return fields


def _polygons_fields(polygons: Sequence[Sequence[Sequence[CoordinatePair]]]) -> dict[Any, Any]:
    fields: dict[Any, Any] = {"no_of_polygons": len(polygons)}
    for idx, polygon in enumerate(polygons):
        fields[idx] = _lines_fields(polygon)
    return fields


def _point_wkt(fields: Mapping[Any, Any], empty: str) -> str:
    # A point has no optional slots, so `empty` does not apply.
    _ = empty
    return f"POINT({format_pair((_field(fields, 'x', BLANK), _field(fields, 'y', BLANK)))})"


def _read_points(fields: Mapping[Any, Any], minimum: int, empty: str) -> list[str]:
    count = _count(fields.get("no_of_points"), minimum)
    out: list[str] = []
    for idx in range(count):
        point = _mapping(_get(fields, idx))
        out.append(format_pair((_field(point, "x", empty), _field(point, "y", empty))))
    return out


def _read_lines(fields: Mapping[Any, Any], min_points: int, empty: str) -> list[str]:
    count = _count(fields.get("no_of_lines"), _MIN_PARTS)
    return [
        "(" + ",".join(_read_points(_mapping(_get(fields, idx)), min_points, empty)) + ")"
        for idx in range(count)
    ]


def _linestring_wkt(fields: Mapping[Any, Any], empty: str) -> str:
    return f"LINESTRING({','.join(_read_points(fields, _MIN_LINE_POINTS, empty))})"


def _multipoint_wkt(fields: Mapping[Any, Any], empty: str) -> str:
    return f"MULTIPOINT({','.join(_read_points(fields, _MIN_MULTI_POINTS, empty))})"


def _polygon_wkt(fields: Mapping[Any, Any], empty: str) -> str:
    return f"POLYGON({','.join(_read_lines(fields, _MIN_RING_POINTS, empty))})"


def _multilinestring_wkt(fields: Mapping[Any, Any], empty: str) -> str:
    return f"MULTILINESTRING({','.join(_read_lines(fields, _MIN_LINE_POINTS, empty))})"


def _multipolygon_wkt(fields: Mapping[Any, Any], empty: str) -> str:
    count = _count(fields.get("no_of_polygons"), _MIN_PARTS)
    polygons = [
        "(" + ",".join(_read_lines(_mapping(_get(fields, idx)), _MIN_RING_POINTS, empty)) + ")"
        for idx in range(count)
    ]
    return f"MULTIPOLYGON({','.join(polygons)})"


_FIELD_BUILDERS: dict[GeometryType, Callable[[Sequence[Any]], dict[Any, Any]]] = {
    GeometryType.POINT: _point_fields,
    GeometryType.LINESTRING: _points_fields,
    GeometryType.MULTIPOINT: _points_fields,
    GeometryType.POLYGON: _lines_fields,
    GeometryType.MULTILINESTRING: _lines_fields,
    GeometryType.MULTIPOLYGON: _polygons_fields,
}

_WKT_WRITERS: dict[GeometryType, Callable[[Mapping[Any, Any], str], str]] = {
    GeometryType.POINT: _point_wkt,
    GeometryType.LINESTRING: _linestring_wkt,
    GeometryType.MULTIPOINT: _multipoint_wkt,
    GeometryType.POLYGON: _polygon_wkt,
    GeometryType.MULTILINESTRING: _multilinestring_wkt,
    GeometryType.MULTIPOLYGON: _multipolygon_wkt,
}

_TAG_NAMES = frozenset(item.value for item in GeometryType)


def _get(mapping: Mapping[Any, Any], key: Any) -> Any:
    """Look up ``key`` accepting both int and str indices (form/JSON input)."""
    if key in mapping:
        return mapping[key]
    if isinstance(key, int) and str(key) in mapping:
        return mapping[str(key)]
    if isinstance(key, str) and key.lstrip("-").isdigit() and int(key) in mapping:
        return mapping[int(key)]
    return None


def _mapping(value: Any) -> Mapping[Any, Any]:
    return value if isinstance(value, Mapping) else {}


def _field(fields: Mapping[Any, Any], name: str, empty: str) -> str:
    value = fields.get(name)
    if is_blank(value):
        return empty
    return str(value).strip()


def _count(value: Any, minimum: int) -> int:
    if isinstance(value, bool):
        return minimum
    if isinstance(value, int):
        return max(value, minimum)
    if isinstance(value, str) and value.strip().isdigit():
        return max(int(value.strip()), minimum)
    return minimum


def _shape_value(row_data: Mapping[str, Any], key: str) -> str:
    value = row_data.get(key)
    return BLANK if value is None else str(value)


def _shape_pair(point: Mapping[str, Any]) -> CoordinatePair:
    return (_shape_value(point, "x"), _shape_value(point, "y"))


def _group_rings_into_polygons(
    rings: Sequence[tuple[CoordinatePair, ...]],
) -> tuple[tuple[tuple[CoordinatePair, ...], ...], ...]:
    """Group shapefile rings: clockwise rings are outer, the rest are holes.

    Each hole joins the first outer ring containing its first vertex; a hole
    no outer ring contains is kept as a polygon of its own.
    """
    linear_ring, polygon_factory, point_factory = _require_shapely_geometry()
    outers: list[list[tuple[CoordinatePair, ...]]] = []
    outer_shapes: list[Any] = []
    holes: list[tuple[CoordinatePair, ...]] = []
    for ring in rings:
        coords = [(float(x), float(y)) for x, y in ring if not is_blank(x) and not is_blank(y)]
        if len(coords) < 3:
            _LOGGER.warning("Skipping shapefile ring with fewer than 3 vertices")
            continue
        if linear_ring(coords).is_ccw:
            holes.append(ring)
        else:
            outers.append([ring])
            outer_shapes.append(polygon_factory(coords))

    for hole in holes:
        first = next((pair for pair in hole if not is_blank(pair[0]) and not is_blank(pair[1])), None)
        owner = None
        if first is not None:
            probe = point_factory(float(first[0]), float(first[1]))
            owner = next(
                (idx for idx, shape in enumerate(outer_shapes) if shape.contains(probe)),
                None,
            )
        if owner is None:
            outers.append([hole])
        else:
            outers[owner].append(hole)
    return tuple(tuple(polygon) for polygon in outers)


@lru_cache(maxsize=1)
def _require_shapely_geometry() -> tuple[Any, Any, Any]:
    try:
        from shapely.geometry import LinearRing, Point, Polygon
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("shapely is required for shapefile ring grouping") from exc
    return (LinearRing, Polygon, Point)
