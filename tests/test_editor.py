from __future__ import annotations

import pytest

from gisviz.editor import (
    WHOLE_VALUE,
    from_editor_params,
    resolve_tag,
    shape_to_wkt,
    to_editor_params,
)
from gisviz.models import GeometryType, UnsupportedVariant
from gisviz.wkt import ParseError


def test_point_round_trip_keeps_blank() -> None:
    wkt = from_editor_params({0: {"POINT": {"x": "5", "y": ""}}}, 0)
    assert wkt == "POINT(5 )"
    assert to_editor_params(wkt)[0]["POINT"] == {"x": "5", "y": ""}


def test_point_ignores_empty_substitute() -> None:
    assert from_editor_params({0: {"POINT": {"x": "", "y": "7"}}}, 0, empty="0") == "POINT( 7)"


def test_whole_value_unwraps_srid() -> None:
    params = to_editor_params("'LINESTRING(1 2,3 4)',4326", WHOLE_VALUE)
    assert params == {
        "srid": 4326,
        0: {
            "LINESTRING": {
                "no_of_points": 2,
                0: {"x": "1", "y": "2"},
                1: {"x": "3", "y": "4"},
            }
        },
    }


def test_whole_value_rejects_garbage() -> None:
    with pytest.raises(ParseError):
        to_editor_params("hello")


def test_part_mode_records_gis_type() -> None:
    params = to_editor_params("LINESTRING(4 6,7 10)", 1)
    assert params[1]["gis_type"] == "LINESTRING"
    assert params[1]["LINESTRING"]["no_of_points"] == 2


def test_collection_round_trip() -> None:
    value = "GEOMETRYCOLLECTION(POINT(4 6),LINESTRING(4 6,7 10))"
    params = to_editor_params(value)
    assert params["GEOMETRYCOLLECTION"] == {"geom_count": 2}
    assert params[0]["gis_type"] == "POINT"
    assert from_editor_params(params, WHOLE_VALUE) == value
    assert from_editor_params(params, 1) == "LINESTRING(4 6,7 10)"


def test_empty_collection_round_trip() -> None:
    params = to_editor_params("GEOMETRYCOLLECTION()")
    assert params == {"srid": 0, "GEOMETRYCOLLECTION": {"geom_count": 0}}
    assert from_editor_params(params, WHOLE_VALUE) == "GEOMETRYCOLLECTION()"


def test_linestring_pads_to_minimum_points() -> None:
    gis_data = {0: {"LINESTRING": {"no_of_points": 1, 0: {"x": "1", "y": "2"}}}}
    assert from_editor_params(gis_data, 0) == "LINESTRING(1 2, )"
    assert from_editor_params(gis_data, 0, empty="0") == "LINESTRING(1 2,0 0)"


def test_polygon_pads_rings_to_four_points() -> None:
    gis_data = {0: {"gis_type": "POLYGON", "POLYGON": {"no_of_lines": 1, 0: {"no_of_points": 2}}}}
    assert from_editor_params(gis_data, 0, empty="0") == "POLYGON((0 0,0 0,0 0,0 0))"


def test_multipolygon_fields_round_trip() -> None:
    value = "MULTIPOLYGON(((0 0,4 0,4 4,0 0)),((5 5,6 5,6 6,5 5),(5.2 5.2,5.4 5.2,5.4 5.4,5.2 5.2)))"
    params = to_editor_params(value)
    fields = params[0]["MULTIPOLYGON"]
    assert fields["no_of_polygons"] == 2
    assert fields[1]["no_of_lines"] == 2
    assert from_editor_params(params, 0) == value


def test_string_keys_from_form_input() -> None:
    gis_data = {"0": {"MULTIPOINT": {"no_of_points": "2", "0": {"x": "1", "y": "2"}, "1": {"x": "3", "y": "4"}}}}
    assert from_editor_params(gis_data, 0) == "MULTIPOINT(1 2,3 4)"


def test_resolve_tag_prefers_entry_gis_type() -> None:
    gis_data = {"gis_type": "POINT", 2: {"gis_type": "POLYGON"}}
    assert resolve_tag(gis_data, 2) is GeometryType.POLYGON
    assert resolve_tag(gis_data, 0) is GeometryType.POINT


def test_resolve_tag_without_hints_fails() -> None:
    with pytest.raises(UnsupportedVariant):
        resolve_tag({0: {}}, 0)


def test_collection_member_cannot_be_collection() -> None:
    gis_data = {
        "GEOMETRYCOLLECTION": {"geom_count": 1},
        0: {"gis_type": "GEOMETRYCOLLECTION"},
    }
    with pytest.raises(UnsupportedVariant):
        from_editor_params(gis_data, WHOLE_VALUE)


def test_shape_point_and_line() -> None:
    assert shape_to_wkt("POINT", {"x": 10, "y": None}) == "POINT(10 )"
    row = {"parts": [{"points": [{"x": 0, "y": 0}, {"x": 5, "y": 5}]}]}
    assert shape_to_wkt("LINESTRING", row) == "LINESTRING(0 0,5 5)"


def test_shape_multipolygon_groups_holes_with_outer_rings() -> None:
    row = {
        "parts": [
            {"points": [{"x": 0, "y": 0}, {"x": 0, "y": 10}, {"x": 10, "y": 10}, {"x": 10, "y": 0}, {"x": 0, "y": 0}]},
            {"points": [{"x": 20, "y": 20}, {"x": 20, "y": 30}, {"x": 30, "y": 30}, {"x": 30, "y": 20}, {"x": 20, "y": 20}]},
            {"points": [{"x": 2, "y": 2}, {"x": 4, "y": 2}, {"x": 4, "y": 4}, {"x": 2, "y": 4}, {"x": 2, "y": 2}]},
        ]
    }
    assert shape_to_wkt("MULTIPOLYGON", row) == (
        "MULTIPOLYGON(((0 0,0 10,10 10,10 0,0 0),(2 2,4 2,4 4,2 4,2 2)),"
        "((20 20,20 30,30 30,30 20,20 20)))"
    )


def test_shape_rejects_collection() -> None:
    with pytest.raises(UnsupportedVariant):
        shape_to_wkt("GEOMETRYCOLLECTION", {})
