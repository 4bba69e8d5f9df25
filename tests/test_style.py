from __future__ import annotations

import itertools

import pytest

from gisviz.models import OutputFormat, Row
from gisviz.style import DEFAULT_PALETTE, normalize_hex_color, palette_cycle, parse_hex_color, to_unit_rgb


def test_parse_hex_color() -> None:
    assert parse_hex_color("#B02EE0") == (176, 46, 224)
    assert normalize_hex_color(" #b02ee0 ") == "#B02EE0"
    assert to_unit_rgb("#FF0000") == (1.0, 0.0, 0.0)


@pytest.mark.parametrize("value", ["red", "#FFF", "B02EE0", "#GG0000", ""])
def test_invalid_colors_raise(value: str) -> None:
    with pytest.raises(ValueError):
        parse_hex_color(value)


def test_palette_cycles() -> None:
    colors = list(itertools.islice(palette_cycle(), len(DEFAULT_PALETTE) + 1))
    assert colors[-1] == DEFAULT_PALETTE[0]
    with pytest.raises(ValueError):
        palette_cycle(())


def test_output_format_aliases() -> None:
    assert OutputFormat.parse("JS") is OutputFormat.OL
    assert OutputFormat.parse(" svg ") is OutputFormat.SVG
    with pytest.raises(ValueError):
        OutputFormat.parse("gif")


def test_row_from_mapping_validates() -> None:
    assert Row.from_mapping({"wkt": " POINT(1 2) ", "srid": "4326"}) == Row(wkt="POINT(1 2)", srid=4326)
    with pytest.raises(ValueError):
        Row.from_mapping({"wkt": ""})
    with pytest.raises(ValueError):
        Row.from_mapping({"wkt": "POINT(1 2)", "srid": -3})
