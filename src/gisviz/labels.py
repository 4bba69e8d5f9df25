"""Where a row's label goes, and whether a row draws anything at all."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Sequence

from .models import Connection, RenderGeometry
from .scale import PixelPair, is_drawable


_LOGGER = logging.getLogger("gisviz.labels")


def drawable_points(points: Sequence[PixelPair]) -> list[tuple[float, float]]:
    return [(float(x), float(y)) for x, y in points if x is not None and y is not None]


def is_drawn(geometry: RenderGeometry, shape: Sequence[Sequence[PixelPair]]) -> bool:
    """True when ``shape`` yields a primitive: a marker, a 2+ vertex path or a 3+ vertex ring."""
    if geometry.connection is Connection.MARKER:
        return any(is_drawable(point) for point in shape[0]) if shape else False
    if geometry.connection is Connection.PATH:
        return bool(shape) and len(drawable_points(shape[0])) >= 2
    return bool(shape) and len(drawable_points(shape[0])) >= 3


def label_anchor(geometry: RenderGeometry) -> tuple[float, float] | None:
    """Anchor of the row label, or None when the row has nothing to draw.

    Markers and paths are labelled at their first drawable vertex, polygons
    at a point inside their first drawable outer ring.
    """
    for shape in geometry.shapes:
        if not is_drawn(geometry, shape):
            continue
        points = drawable_points(shape[0])
        if geometry.connection is Connection.RING:
            return _interior_point(points)
        return points[0]
    return None


def _interior_point(ring: list[tuple[float, float]]) -> tuple[float, float]:
    polygon_factory = _require_shapely_polygon()
    try:
        point = polygon_factory(ring).representative_point()
    except Exception as exc:
        _LOGGER.debug("Falling back to first vertex for polygon label: %s", exc)
        return ring[0]
    if point.is_empty:
        return ring[0]
    return (float(point.x), float(point.y))


@lru_cache(maxsize=1)
def _require_shapely_polygon() -> Any:
    try:
        from shapely.geometry import Polygon
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("shapely is required for polygon label placement") from exc
    return Polygon
