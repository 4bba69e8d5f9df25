"""Colour decoding and the fixed marker/label styling shared by renderers."""

from __future__ import annotations

import re
from itertools import cycle
from typing import Iterator, Sequence


_HEX_COLOR_RE = re.compile(r"#[0-9A-Fa-f]{6}")

DEFAULT_PALETTE = (
    "#B02EE0",
    "#E0642E",
    "#E0D62E",
    "#2E97E0",
    "#BCE02E",
    "#E02E75",
    "#5CE02E",
    "#E0B02E",
    "#0022E0",
    "#726CB1",
    "#481A36",
    "#BAC658",
    "#127224",
    "#825119",
    "#238C74",
    "#4C489B",
    "#87C9BF",
)

BLACK = (0, 0, 0)
WHITE = (255, 255, 255)

# Raster marker diameter, vector-document marker radius and label font size.
PNG_POINT_DIAMETER_PX = 7
PDF_POINT_RADIUS = 2.0
PDF_POINT_LINE_WIDTH = 1.25
PDF_LINE_WIDTH = 1.5
PDF_POLYGON_EDGE_WIDTH = 0.5
PDF_LABEL_FONT_SIZE = 7

SVG_POINT_RADIUS = 3
SVG_STROKE_WIDTH = 2
SVG_POLYGON_STROKE_WIDTH = 0.5
SVG_POLYGON_FILL_OPACITY = 0.8


def parse_hex_color(value: str) -> tuple[int, int, int]:
    """Decode ``#RRGGBB`` into an ``(r, g, b)`` byte triple."""
    text = value.strip() if isinstance(value, str) else ""
    if not _HEX_COLOR_RE.fullmatch(text):
        raise ValueError(f"Expected colour as '#RRGGBB', got {value!r}")
    return (int(text[1:3], 16), int(text[3:5], 16), int(text[5:7], 16))


def normalize_hex_color(value: str) -> str:
    r, g, b = parse_hex_color(value)
    return f"#{r:02X}{g:02X}{b:02X}"


def to_unit_rgb(value: str) -> tuple[float, float, float]:
    """Colour as matplotlib-style floats in ``[0, 1]``."""
    r, g, b = parse_hex_color(value)
    return (r / 255.0, g / 255.0, b / 255.0)


def palette_cycle(palette: Sequence[str] = DEFAULT_PALETTE) -> Iterator[str]:
    if not palette:
        raise ValueError("Colour palette must not be empty")
    return cycle(palette)


def clean_label(label: str | None) -> str:
    return label.strip() if isinstance(label, str) else ""
