"""Raster output: draws scaled geometries onto a Pillow image."""

from __future__ import annotations

from typing import Sequence

from PIL import Image, ImageDraw

from .labels import drawable_points, is_drawn, label_anchor
from .models import Connection, RenderGeometry
from .scale import PixelPair, is_drawable
from .style import BLACK, PNG_POINT_DIAMETER_PX, WHITE, clean_label, parse_hex_color


def new_canvas(width_px: int, height_px: int, background: str = "white") -> Image.Image:
    return Image.new("RGB", (width_px, height_px), background)


def draw_geometry(
    image: Image.Image,
    geometry: RenderGeometry,
    label: str,
    color: str,
) -> Image.Image:
    """Draw one row onto ``image``; rows without drawable vertices leave it untouched."""
    rgb = parse_hex_color(color)
    anchor = label_anchor(geometry)
    if anchor is None:
        return image

    draw = ImageDraw.Draw(image)
    for shape in geometry.shapes:
        if not is_drawn(geometry, shape):
            continue
        if geometry.connection is Connection.MARKER:
            for point in shape[0]:
                if is_drawable(point):
                    _draw_marker(draw, point, rgb)
        elif geometry.connection is Connection.PATH:
            draw.line(drawable_points(shape[0]), fill=rgb, width=1)
        else:
            _draw_polygon(draw, shape, rgb)

    text = clean_label(label)
    if text:
        draw.text(anchor, text, fill=BLACK)
    return image


def _draw_marker(draw: ImageDraw.ImageDraw, point: PixelPair, rgb: tuple[int, int, int]) -> None:
    x, y = float(point[0]), float(point[1])  # type: ignore[arg-type]
    radius = PNG_POINT_DIAMETER_PX / 2.0
    draw.ellipse((x - radius, y - radius, x + radius, y + radius), outline=rgb)


def _draw_polygon(
    draw: ImageDraw.ImageDraw,
    rings: Sequence[Sequence[PixelPair]],
    rgb: tuple[int, int, int],
) -> None:
    for ring_idx, ring in enumerate(rings):
        points = drawable_points(ring)
        if len(points) < 3:
            continue
        # Holes are knocked out in white, matching the vector outputs.
        draw.polygon(points, fill=rgb if ring_idx == 0 else WHITE, outline=BLACK)
