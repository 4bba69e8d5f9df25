"""Geometry variant registry.

Every supported tag maps to one shared, immutable ``VariantHandler``. The
handlers carry no per-call state, so a single instance serves every row of
every batch, from any thread.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Mapping, Sequence

from . import render_ol, render_pdf, render_png, render_svg
from .editor import WHOLE_VALUE, from_editor_params, shape_to_wkt, to_editor_params
from .models import Connection, GeometryType, RenderGeometry, UnsupportedVariant
from .scale import BoundingBox, PixelPair, ScaleRecord, scan, to_number, transform
from .wkt import BLANK, Geometry, ParseError, iter_pairs, parse_tag, parse_wkt


_LOGGER = logging.getLogger("gisviz.geometry")

_PairMapper = Callable[[Sequence[Any]], tuple[PixelPair, ...]]


@dataclass(frozen=True, slots=True)
class VariantHandler:
    """Operations shared by every geometry variant, parameterised by tag."""

    tag: GeometryType
    connection: Connection | None

    def parse(self, wkt: str) -> Geometry:
        geometry = parse_wkt(wkt)
        if geometry.tag is not self.tag:
            raise ParseError(f"Expected {self.tag.value} value, got {geometry.tag.value}")
        return geometry

    def scan_row(self, wkt: str, box: BoundingBox | None = None) -> BoundingBox:
        """Fold this row's coordinates into ``box`` (a fresh box when omitted)."""
        return scan(iter_pairs(self.parse(wkt)), box if box is not None else BoundingBox())

    def scaled_geometries(self, wkt: str, scale: ScaleRecord) -> list[RenderGeometry]:
        return _render_geometries(self.parse(wkt), lambda pairs: tuple(transform(pairs, scale)))

    def raw_geometries(self, wkt: str) -> list[RenderGeometry]:
        return _render_geometries(self.parse(wkt), _raw_pairs)

    def prepare_row_as_png(
        self,
        wkt: str,
        label: str,
        color: str,
        scale: ScaleRecord,
        image: Any,
    ) -> Any:
        for geometry in self.scaled_geometries(wkt, scale):
            image = render_png.draw_geometry(image, geometry, label, color)
        return image

    def prepare_row_as_pdf(
        self,
        wkt: str,
        label: str,
        color: str,
        scale: ScaleRecord,
        ax: Any,
    ) -> Any:
        for geometry in self.scaled_geometries(wkt, scale):
            ax = render_pdf.draw_geometry(ax, geometry, label, color)
        return ax

    def prepare_row_as_svg(
        self,
        wkt: str,
        label: str,
        color: str,
        scale: ScaleRecord,
        sink: str = "",
        *,
        id_source: render_svg.IdSource = render_svg.random_id_source,
    ) -> str:
        markup = "".join(
            render_svg.geometry_markup(geometry, label, color, id_source)
            for geometry in self.scaled_geometries(wkt, scale)
        )
        if not markup:
            _LOGGER.debug("No drawable coordinates in %s row; SVG unchanged", self.tag.value)
        return sink + markup

    def prepare_row_as_ol(
        self,
        wkt: str,
        srid: int,
        label: str,
        color: str,
        scale: ScaleRecord,
        sink: str = "",
        *,
        server_srid: int | None = None,
    ) -> str:
        features = "".join(
            render_ol.geometry_script(geometry, srid, label, color, server_srid=server_srid)
            for geometry in self.raw_geometries(wkt)
        )
        if not features:
            _LOGGER.debug("No drawable coordinates in %s row; script unchanged", self.tag.value)
            return sink
        bounds = render_ol.bounds_script(srid, scale.source_extent, server_srid=server_srid)
        return sink + bounds + features

    def generate_wkt(self, gis_data: Mapping[Any, Any], index: int, empty: str = BLANK) -> str:
        return from_editor_params(gis_data, index, empty, tag=self.tag)

    def generate_params(self, value: str, index: int = WHOLE_VALUE) -> dict[Any, Any]:
        params = to_editor_params(value, index)
        if GeometryType.GEOMETRYCOLLECTION.value in params:
            found = GeometryType.GEOMETRYCOLLECTION
        else:
            entry = params[0 if index == WHOLE_VALUE else index]
            found = GeometryType.from_tag(next(key for key in entry if key != "gis_type"))
        # A collection editor works on its members one index at a time.
        member_of_collection = self.tag is GeometryType.GEOMETRYCOLLECTION and index != WHOLE_VALUE
        if found is not self.tag and not member_of_collection:
            raise ParseError(f"Expected {self.tag.value} value, got {found.value}")
        return params

    def get_shape(self, row_data: Mapping[str, Any]) -> str:
        return shape_to_wkt(self.tag, row_data)


def _raw_pairs(pairs: Sequence[Any]) -> tuple[PixelPair, ...]:
    # Raw output keeps decimal text; blanks become None like scaled output.
    out: list[Any] = []
    for pair in pairs:
        x = pair[0] if to_number(pair[0]) is not None else None
        y = pair[1] if len(pair) > 1 and to_number(pair[1]) is not None else None
        out.append((x, y))
    return tuple(out)


def _render_geometries(geometry: Geometry, mapper: _PairMapper) -> list[RenderGeometry]:
    if geometry.tag is GeometryType.GEOMETRYCOLLECTION:
        out: list[RenderGeometry] = []
        for member in geometry.parts:
            out.extend(_render_geometries(member, mapper))
        return out

    parts = geometry.parts
    tag = geometry.tag
    connection = get_handler(tag).connection
    if connection is None:
        raise UnsupportedVariant(f"{tag.value} has no drawing connection")
    if tag is GeometryType.POINT:
        shapes = ((mapper(parts),),) if parts else ()
    elif tag is GeometryType.MULTIPOINT:
        shapes = tuple((mapper((pair,)),) for pair in parts)
    elif tag is GeometryType.LINESTRING:
        shapes = ((mapper(parts),),)
    elif tag is GeometryType.MULTILINESTRING:
        shapes = tuple((mapper(line),) for line in parts)
    elif tag is GeometryType.POLYGON:
        shapes = (tuple(mapper(ring) for ring in parts),)
    else:
        shapes = tuple(tuple(mapper(ring) for ring in polygon) for polygon in parts)
    return [RenderGeometry(tag=tag, connection=connection, shapes=shapes)]


_HANDLERS: Mapping[GeometryType, VariantHandler] = MappingProxyType(
    {
        GeometryType.POINT: VariantHandler(GeometryType.POINT, Connection.MARKER),
        GeometryType.MULTIPOINT: VariantHandler(GeometryType.MULTIPOINT, Connection.MARKER),
        GeometryType.LINESTRING: VariantHandler(GeometryType.LINESTRING, Connection.PATH),
        GeometryType.MULTILINESTRING: VariantHandler(GeometryType.MULTILINESTRING, Connection.PATH),
        GeometryType.POLYGON: VariantHandler(GeometryType.POLYGON, Connection.RING),
        GeometryType.MULTIPOLYGON: VariantHandler(GeometryType.MULTIPOLYGON, Connection.RING),
        GeometryType.GEOMETRYCOLLECTION: VariantHandler(GeometryType.GEOMETRYCOLLECTION, None),
    }
)


def get_handler(tag: GeometryType | str) -> VariantHandler:
    """Shared handler for ``tag``; unknown tags raise ``UnsupportedVariant``."""
    geometry_type = GeometryType.from_tag(tag)
    handler = _HANDLERS.get(geometry_type)
    if handler is None:  # pragma: no cover
        raise UnsupportedVariant(f"Unsupported geometry tag: {tag!r}")
    return handler


def handler_for_wkt(wkt: str) -> VariantHandler:
    """Handler for the tag a WKT value starts with."""
    return get_handler(parse_tag(wkt))


def supported_tags() -> tuple[GeometryType, ...]:
    return tuple(_HANDLERS)
