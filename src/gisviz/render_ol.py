"""OpenLayers script output.

Coordinates are emitted raw (not canvas-scaled); the viewer re-projects every
vertex from the row's SRID into the map projection. When a server-side SRID
is configured the coordinates are re-projected here with pyproj instead and
the script declares that SRID.
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from typing import Any, Sequence

from .labels import is_drawn
from .models import Connection, GeometryType, RenderGeometry
from .style import SVG_POLYGON_FILL_OPACITY, clean_label, normalize_hex_color


DEFAULT_SRID = 4326

_LOGGER = logging.getLogger("gisviz.render_ol")

_MULTI_CLASS = {
    GeometryType.MULTIPOINT: "MultiPoint",
    GeometryType.MULTILINESTRING: "MultiLineString",
    GeometryType.MULTIPOLYGON: "MultiPolygon",
}


def normalize_srid(srid: int | None) -> int:
    return DEFAULT_SRID if not srid else int(srid)


def point_style(label: str, color: str) -> dict[str, Any]:
    return {
        "pointRadius": 3,
        "fillColor": "#ffffff",
        "strokeColor": color,
        "strokeWidth": 2,
        "label": label,
        "labelYOffset": -8,
        "fontSize": 10,
    }


def line_style(label: str, color: str) -> dict[str, Any]:
    return {"strokeColor": color, "strokeWidth": 2, "label": label, "fontSize": 10}


def polygon_style(label: str, color: str) -> dict[str, Any]:
    return {
        "strokeColor": "#000000",
        "strokeWidth": 0.5,
        "fillColor": color,
        "fillOpacity": SVG_POLYGON_FILL_OPACITY,
        "label": label,
        "fontSize": 10,
    }


def map_script(features: str, *, element_id: str = "openlayersmap") -> str:
    """Wrap feature statements in a viewer with a vector layer zoomed to ``bound``."""
    return (
        "var options = {projection: new OpenLayers.Projection(\"EPSG:900913\"), "
        "displayProjection: new OpenLayers.Projection(\"EPSG:4326\"), units: \"m\", "
        "numZoomLevels: 18, maxResolution: 156543.0339, "
        "maxExtent: new OpenLayers.Bounds(-20037508, -20037508, 20037508, 20037508)};"
        f"var map = new OpenLayers.Map({json.dumps(element_id)}, options);"
        "var layerNone = new OpenLayers.Layer.Boxes(\"None\", {isBaseLayer: true});"
        "var layerOSM = new OpenLayers.Layer.OSM();"
        "map.addLayers([layerOSM, layerNone]);"
        "var vectorLayer = new OpenLayers.Layer.Vector(\"Data\");"
        "var bound;"
        f"{features}"
        "map.addLayer(vectorLayer);"
        "if (bound) {map.zoomToExtent(bound);}"
        "if (map.getZoom() < 2) {map.zoomTo(2);}"
        "map.addControl(new OpenLayers.Control.LayerSwitcher());"
        "map.addControl(new OpenLayers.Control.MousePosition());"
    )


def bounds_script(
    srid: int,
    extent: tuple[float, float, float, float],
    *,
    server_srid: int | None = None,
) -> str:
    """Statement extending the shared ``bound`` with the batch extent."""
    projector = _Projector(normalize_srid(srid), server_srid)
    min_x, min_y, max_x, max_y = extent
    corners = (projector.pair(min_x, min_y), projector.pair(max_x, max_y))
    return "bound = new OpenLayers.Bounds(); " + " ".join(
        f"bound.extend(new OpenLayers.LonLat({x}, {y}).transform({projector.declared()}, "
        "map.getProjectionObject()));"
        for x, y in corners
    )


def geometry_script(
    geometry: RenderGeometry,
    srid: int,
    label: str,
    color: str,
    *,
    server_srid: int | None = None,
) -> str:
    """Script adding one row as a vector feature; empty when nothing is drawable."""
    stroke = normalize_hex_color(color)
    shapes = [shape for shape in geometry.shapes if is_drawn(geometry, shape)]
    if not shapes:
        return ""

    projector = _Projector(normalize_srid(srid), server_srid)
    text = clean_label(label)
    if geometry.connection is Connection.MARKER:
        style = point_style(text, stroke)
    elif geometry.connection is Connection.PATH:
        style = line_style(text, stroke)
    else:
        style = polygon_style(text, stroke)

    if geometry.tag is GeometryType.POINT:
        x, y = _complete(shapes[0][0], projector)[0]
        feature = (
            f"(new OpenLayers.Geometry.Point({x}, {y}).transform({projector.declared()}, "
            "map.getProjectionObject()))"
        )
    elif geometry.connection is Connection.MARKER:
        points = [pair for shape in shapes for pair in shape[0]]
        feature = f"new OpenLayers.Geometry.MultiPoint({_points_array(points, projector)})"
    else:
        builders = [_shape_geometry(geometry.connection, shape, projector) for shape in shapes]
        multi_class = _MULTI_CLASS.get(geometry.tag)
        feature = (
            f"new OpenLayers.Geometry.{multi_class}(new Array({', '.join(builders)}))"
            if multi_class is not None
            else builders[0]
        )

    return (
        f"vectorLayer.addFeatures(new OpenLayers.Feature.Vector({feature}, null, "
        f"{json.dumps(style)}));"
    )


class _Projector:
    """Formats raw vertices, re-projecting them when a server SRID is set."""

    def __init__(self, srid: int, server_srid: int | None) -> None:
        self.srid = srid
        self.server_srid = server_srid if server_srid and server_srid != srid else None

    def declared(self) -> str:
        target = self.server_srid if self.server_srid is not None else self.srid
        return f'new OpenLayers.Projection("EPSG:{target}")'

    def pair(self, x: Any, y: Any) -> tuple[str, str]:
        if self.server_srid is None:
            return (_text(x), _text(y))
        transformer = _require_pyproj_transformer(self.srid, self.server_srid)
        px, py = transformer.transform(float(x), float(y))
        return (_format_coordinate(px), _format_coordinate(py))


def _shape_geometry(
    connection: Connection,
    shape: Sequence[Sequence[Any]],
    projector: _Projector,
) -> str:
    if connection is Connection.PATH:
        return f"new OpenLayers.Geometry.LineString({_points_array(shape[0], projector)})"
    rings = [
        f"new OpenLayers.Geometry.LinearRing({_points_array(ring, projector)})"
        for ring in shape
        if len(_complete(ring, projector)) >= 3
    ]
    return f"new OpenLayers.Geometry.Polygon(new Array({', '.join(rings)}))"


def _points_array(points: Sequence[Any], projector: _Projector) -> str:
    items = [
        f"(new OpenLayers.Geometry.Point({x}, {y})).transform({projector.declared()}, "
        "map.getProjectionObject())"
        for x, y in _complete(points, projector)
    ]
    return f"new Array({', '.join(items)})"


def _complete(points: Sequence[Any], projector: _Projector) -> list[tuple[str, str]]:
    return [projector.pair(x, y) for x, y in points if x is not None and y is not None]


def _text(value: Any) -> str:
    if isinstance(value, float):
        return _format_coordinate(value)
    return str(value).strip()


def _format_coordinate(value: float) -> str:
    text = f"{value:.8f}".rstrip("0").rstrip(".")
    return "0" if text in {"-0", ""} else text


@lru_cache(maxsize=16)
def _require_pyproj_transformer(source_srid: int, target_srid: int) -> Any:
    try:
        from pyproj import Transformer
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("pyproj is required for server-side re-projection") from exc
    _LOGGER.debug("Creating transformer EPSG:%d -> EPSG:%d", source_srid, target_srid)
    return Transformer.from_crs(f"EPSG:{source_srid}", f"EPSG:{target_srid}", always_xy=True)
