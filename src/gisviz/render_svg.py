"""SVG markup output for scaled geometries."""

from __future__ import annotations

import random
from html import escape
from typing import Callable, Sequence

from .labels import drawable_points, is_drawn
from .models import Connection, RenderGeometry
from .scale import PixelPair, format_number, is_drawable
from .style import (
    SVG_POINT_RADIUS,
    SVG_POLYGON_FILL_OPACITY,
    SVG_POLYGON_STROKE_WIDTH,
    SVG_STROKE_WIDTH,
    clean_label,
    normalize_hex_color,
)


IdSource = Callable[[], object]


def random_id_source() -> object:
    return random.randint(0, 2**31 - 1)


def geometry_markup(
    geometry: RenderGeometry,
    label: str,
    color: str,
    id_source: IdSource = random_id_source,
) -> str:
    """SVG elements for one row; empty when the row has nothing to draw."""
    stroke = normalize_hex_color(color)
    text = clean_label(label)

    elements: list[str] = []
    for shape in geometry.shapes:
        if not is_drawn(geometry, shape):
            continue
        if geometry.connection is Connection.MARKER:
            for point in shape[0]:
                if is_drawable(point):
                    elements.append(_circle(point, text, stroke, id_source))
        elif geometry.connection is Connection.PATH:
            elements.append(_polyline(shape[0], text, stroke, id_source))
        else:
            elements.append(_polygon_path(shape, text, stroke, id_source))
    return "".join(elements)


def svg_document(body: str, width: float, height: float) -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8" standalone="no"?>\n'
        f'<svg version="1.1" xmlns="http://www.w3.org/2000/svg" '
        f'width="{format_number(width)}" height="{format_number(height)}">'
        f'<g id="groupPanel">{body}</g></svg>'
    )


def _circle(point: PixelPair, text: str, stroke: str, id_source: IdSource) -> str:
    options = _identity(text, id_source) + [
        ("class", "point vector"),
        ("fill", "white"),
        ("stroke", stroke),
        ("stroke-width", str(SVG_STROKE_WIDTH)),
    ]
    return (
        f'<circle cx="{format_number(float(point[0]))}" cy="{format_number(float(point[1]))}" '  # type: ignore[arg-type]
        f'r="{SVG_POINT_RADIUS}"{_attributes(options)}/>'
    )


def _polyline(points: Sequence[PixelPair], text: str, stroke: str, id_source: IdSource) -> str:
    coords = " ".join(f"{format_number(x)},{format_number(y)}" for x, y in drawable_points(points))
    options = _identity(text, id_source) + [
        ("class", "linestring vector"),
        ("fill", "none"),
        ("stroke", stroke),
        ("stroke-width", str(SVG_STROKE_WIDTH)),
    ]
    return f'<polyline points="{coords}"{_attributes(options)}/>'


def _polygon_path(
    rings: Sequence[Sequence[PixelPair]],
    text: str,
    fill: str,
    id_source: IdSource,
) -> str:
    commands: list[str] = []
    for ring in rings:
        points = drawable_points(ring)
        if len(points) < 3:
            continue
        head, *tail = points
        segment = f"M {format_number(head[0])} {format_number(head[1])}"
        segment += "".join(f" L {format_number(x)} {format_number(y)}" for x, y in tail)
        commands.append(segment + " Z")
    options = _identity(text, id_source) + [
        ("class", "polygon vector"),
        ("stroke", "black"),
        ("stroke-width", format_number(SVG_POLYGON_STROKE_WIDTH)),
        ("fill", fill),
        ("fill-rule", "evenodd"),
        ("fill-opacity", format_number(SVG_POLYGON_FILL_OPACITY)),
    ]
    return f'<path d="{" ".join(commands)}"{_attributes(options)}/>'


def _identity(text: str, id_source: IdSource) -> list[tuple[str, str]]:
    return [("name", text), ("id", f"{text}{id_source()}")]


def _attributes(options: Sequence[tuple[str, str]]) -> str:
    return "".join(f' {name}="{escape(value, quote=True)}"' for name, value in options)
