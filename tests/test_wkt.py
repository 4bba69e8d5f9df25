from __future__ import annotations

import pytest

from gisviz.models import GeometryType
from gisviz.wkt import (
    Geometry,
    ParseError,
    generate_wkt,
    iter_pairs,
    parse_coordinates,
    parse_wkt,
    split_collection,
    split_srid,
)


def test_parse_point() -> None:
    geometry = parse_wkt("POINT(30 10)")
    assert geometry == Geometry(tag=GeometryType.POINT, parts=(("30", "10"),))


def test_parse_point_keeps_blank_components() -> None:
    assert parse_coordinates("POINT(5 )", "POINT") == (("5", ""),)
    assert parse_coordinates("POINT( 5)", "POINT") == (("", "5"),)
    assert parse_coordinates("POINT( )", "POINT") == (("", ""),)


def test_parse_blank_axis_ignores_extra_whitespace() -> None:
    assert parse_coordinates("POINT(  5)", "POINT") == (("", "5"),)
    assert parse_coordinates("POINT(5  )", "POINT") == (("5", ""),)
    assert parse_coordinates("POINT(\t5)", "POINT") == (("", "5"),)
    assert parse_coordinates("LINESTRING(1 2,  3   4)", "LINESTRING") == (("1", "2"), ("3", "4"))


def test_parse_rejects_three_values_in_pair() -> None:
    with pytest.raises(ParseError):
        parse_wkt("POINT(1 2 3)")


@pytest.mark.parametrize("wkt", ["POINT(1e400 1)", "POINT(1 -1e400)", "LINESTRING(0 0,1e999 2)"])
def test_parse_rejects_overflowing_coordinates(wkt: str) -> None:
    with pytest.raises(ParseError):
        parse_wkt(wkt)


def test_parse_empty_payload() -> None:
    assert parse_coordinates("LINESTRING()", GeometryType.LINESTRING) == ()


def test_parse_lowercase_tag_is_normalised() -> None:
    assert parse_wkt("point(1 2)").tag is GeometryType.POINT


def test_parse_polygon_with_hole() -> None:
    parts = parse_coordinates("POLYGON((0 0,4 0,4 4,0 0),(1 1,2 1,2 2,1 1))", "POLYGON")
    assert len(parts) == 2
    assert parts[0][1] == ("4", "0")
    assert parts[1][-1] == ("1", "1")


def test_parse_multipoint_accepts_both_forms() -> None:
    plain = parse_coordinates("MULTIPOINT(1 2,3 4)", "MULTIPOINT")
    wrapped = parse_coordinates("MULTIPOINT((1 2),(3 4))", "MULTIPOINT")
    assert plain == wrapped == (("1", "2"), ("3", "4"))


def test_parse_multipolygon_depth() -> None:
    parts = parse_coordinates(
        "MULTIPOLYGON(((0 0,1 0,1 1,0 0)),((5 5,6 5,6 6,5 5),(5.2 5.2,5.4 5.2,5.4 5.4,5.2 5.2)))",
        "MULTIPOLYGON",
    )
    assert len(parts) == 2
    assert len(parts[1]) == 2
    assert parts[1][1][0] == ("5.2", "5.2")


def test_parse_collection_members() -> None:
    geometry = parse_wkt("GEOMETRYCOLLECTION(POINT(4 6),LINESTRING(4 6,7 10))")
    assert [member.tag for member in geometry.parts] == [GeometryType.POINT, GeometryType.LINESTRING]
    assert iter_pairs(geometry) == [("4", "6"), ("4", "6"), ("7", "10")]


@pytest.mark.parametrize(
    "value",
    [
        "POINT(1 x)",
        "POINT(1 2",
        "POINT(1 2) trailing",
        "POINT(1 2)(3 4)",
        "FOO(1 2)",
        "POINT 1 2",
        "POINT(1 2 3)",
        "POINT(1 2,3 4)",
        "LINESTRING((1 2),(3 4))",
        "GEOMETRYCOLLECTION(GEOMETRYCOLLECTION(POINT(1 2)))",
    ],
)
def test_malformed_wkt_raises(value: str) -> None:
    with pytest.raises(ParseError):
        parse_wkt(value)


def test_parse_coordinates_rejects_other_tag() -> None:
    with pytest.raises(ParseError):
        parse_coordinates("LINESTRING(1 2,3 4)", "POINT")


def test_generate_then_parse_round_trip() -> None:
    pairs = (("1", "2"), ("3.5", "-4"), ("1e3", ".5"))
    wkt = generate_wkt("LINESTRING", pairs)
    assert wkt == "LINESTRING(1 2,3.5 -4,1e3 .5)"
    parsed = parse_coordinates(wkt, "LINESTRING")
    assert [(float(x), float(y)) for x, y in parsed] == [(float(x), float(y)) for x, y in pairs]


def test_generate_polygon_matches_input_text() -> None:
    wkt = "POLYGON((0 0,4 0,4 4,0 0),(1 1,2 1,2 2,1 1))"
    assert generate_wkt(GeometryType.POLYGON, parse_coordinates(wkt, "POLYGON")) == wkt


def test_generate_keeps_blank_slots() -> None:
    assert generate_wkt("POINT", (("5", ""),)) == "POINT(5 )"
    assert generate_wkt("LINESTRING", (("", "1"), ("2", "3"))) == "LINESTRING( 1,2 3)"


def test_generate_collection() -> None:
    geometry = parse_wkt("GEOMETRYCOLLECTION(POINT(4 6),LINESTRING(4 6,7 10))")
    assert generate_wkt(geometry.tag, geometry.parts) == "GEOMETRYCOLLECTION(POINT(4 6),LINESTRING(4 6,7 10))"


def test_split_srid() -> None:
    assert split_srid("'POINT(1 2)',4326") == {"srid": 4326, "wkt": "POINT(1 2)"}
    assert split_srid("POINT(1 2)") == {"srid": 0, "wkt": "POINT(1 2)"}
    assert split_srid("not a geometry") == {"srid": 0, "wkt": ""}


def test_split_collection_top_level_commas_only() -> None:
    assert split_collection("POINT(1 2),LINESTRING(1 2,3 4)") == ["POINT(1 2)", "LINESTRING(1 2,3 4)"]
    assert split_collection("") == []
