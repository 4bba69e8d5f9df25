"""Domain models shared across pipeline modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from .scale import PixelPair, ScaleRecord


class UnsupportedVariant(ValueError):
    """Raised when a geometry tag outside the supported set is requested."""


class GeometryType(str, Enum):
    """Closed set of supported WKT geometry tags."""

    POINT = "POINT"
    LINESTRING = "LINESTRING"
    POLYGON = "POLYGON"
    MULTIPOINT = "MULTIPOINT"
    MULTILINESTRING = "MULTILINESTRING"
    MULTIPOLYGON = "MULTIPOLYGON"
    GEOMETRYCOLLECTION = "GEOMETRYCOLLECTION"

    @classmethod
    def from_tag(cls, tag: GeometryType | str) -> GeometryType:
        if isinstance(tag, GeometryType):
            return tag
        if not isinstance(tag, str):
            raise UnsupportedVariant(f"Unsupported geometry tag: {tag!r}")
        try:
            return cls(tag.strip().upper())
        except ValueError:
            raise UnsupportedVariant(f"Unsupported geometry tag: {tag!r}") from None


class Connection(str, Enum):
    """How the coordinate pairs of a variant are joined when drawn."""

    MARKER = "marker"
    PATH = "path"
    RING = "ring"


@dataclass(frozen=True, slots=True)
class RenderGeometry:
    """Coordinates of one geometry ready for a renderer.

    ``shapes`` holds one entry per drawable unit (a point of a MULTIPOINT,
    a line of a MULTILINESTRING, a polygon of a MULTIPOLYGON); each unit is a
    tuple of coordinate sequences (a single one except for polygon rings).
    Pixel renderers receive canvas coordinates, the web-map renderer receives
    raw coordinates.
    """

    tag: GeometryType
    connection: Connection
    shapes: tuple[tuple[tuple[PixelPair, ...], ...], ...]


class OutputFormat(str, Enum):
    PNG = "png"
    PDF = "pdf"
    SVG = "svg"
    OL = "ol"

    @classmethod
    def parse(cls, value: str) -> OutputFormat:
        normalized = value.strip().casefold()
        if normalized == "js":
            normalized = "ol"
        for item in cls:
            if item.value == normalized:
                return item
        raise ValueError(
            f"Unknown output format '{value}'; expected one of: "
            + ", ".join(item.value for item in cls)
        )


def _optional_str(value: Any, field_name: str) -> str:
    if value is None:
        return ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if not isinstance(value, str):
        raise ValueError(f"Expected string for '{field_name}'")
    return value


@dataclass(frozen=True, slots=True)
class Row:
    """One geometry value of a batch plus its label and colour."""

    wkt: str
    label: str = ""
    color: str | None = None
    srid: int = 0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Row:
        wkt = data.get("wkt")
        if not isinstance(wkt, str) or not wkt.strip():
            raise ValueError("Expected non-empty string for 'wkt'")
        color_raw = data.get("color")
        color = _optional_str(color_raw, "color").strip() or None
        srid_raw = data.get("srid", 0)
        if srid_raw is None or (isinstance(srid_raw, str) and not srid_raw.strip()):
            srid = 0
        elif isinstance(srid_raw, int) and not isinstance(srid_raw, bool):
            srid = srid_raw
        elif isinstance(srid_raw, str) and srid_raw.strip().isdigit():
            srid = int(srid_raw.strip())
        else:
            raise ValueError("Expected non-negative integer for 'srid'")
        if srid < 0:
            raise ValueError("Expected non-negative integer for 'srid'")
        return cls(
            wkt=wkt.strip(),
            label=_optional_str(data.get("label"), "label"),
            color=color,
            srid=srid,
        )


@dataclass(frozen=True, slots=True)
class RowRenderRequest:
    """Everything a renderer needs for one row; built per row, used once."""

    wkt: str
    label: str
    color: str
    scale: ScaleRecord
    output_format: OutputFormat
    srid: int = 0


@dataclass(slots=True)
class VisualizationReport:
    output_path: str | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    infos: list[str] = field(default_factory=list)
    summary: dict[str, int] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)

    def add_info(self, msg: str) -> None:
        self.infos.append(msg)
