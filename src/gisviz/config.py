"""Typed configuration loader for `config.yaml`."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, cast

import yaml

from .style import DEFAULT_PALETTE, normalize_hex_color


def _mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"Expected mapping for '{field_name}'")
    return cast(Mapping[str, Any], value)


def _str(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected non-empty string for '{field_name}'")
    return value.strip()


def _int(value: Any, field_name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"Expected integer for '{field_name}'")
    return value


def _optional_int(value: Any, field_name: str) -> int | None:
    if value is None:
        return None
    return _int(value, field_name)


def _float(value: Any, field_name: str) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    raise ValueError(f"Expected float for '{field_name}'")


def _color_list(value: Any, field_name: str) -> tuple[str, ...]:
    if not isinstance(value, list) or not value:
        raise ValueError(f"Expected non-empty list for '{field_name}'")
    out: list[str] = []
    for idx, item in enumerate(value):
        try:
            out.append(normalize_hex_color(_str(item, f"{field_name}[{idx}]")))
        except ValueError as exc:
            raise ValueError(f"Invalid colour for '{field_name}[{idx}]': {exc}") from exc
    return tuple(out)


def _optional_path(value: Any, field_name: str, root_dir: Path) -> Path | None:
    if value is None:
        return None
    p = Path(_str(value, field_name))
    return p if p.is_absolute() else root_dir / p


@dataclass(frozen=True, slots=True)
class ImageConfig:
    width_px: int = 600
    height_px: int = 450
    border_px: float = 15.0
    background: str = "white"

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> ImageConfig:
        defaults = cls()
        width_px = _int(raw.get("width_px", defaults.width_px), "image.width_px")
        height_px = _int(raw.get("height_px", defaults.height_px), "image.height_px")
        border_px = _float(raw.get("border_px", defaults.border_px), "image.border_px")
        if width_px <= 0 or height_px <= 0:
            raise ValueError("image.width_px and image.height_px must be > 0")
        if border_px < 0:
            raise ValueError("image.border_px must be >= 0")
        if 2 * border_px >= min(width_px, height_px):
            raise ValueError("image.border_px leaves no room to draw")
        return cls(
            width_px=width_px,
            height_px=height_px,
            border_px=border_px,
            background=_str(raw.get("background", defaults.background), "image.background"),
        )


@dataclass(frozen=True, slots=True)
class StyleConfig:
    palette: tuple[str, ...] = DEFAULT_PALETTE

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> StyleConfig:
        palette_raw = raw.get("palette")
        if palette_raw is None:
            return cls()
        return cls(palette=_color_list(palette_raw, "style.palette"))


@dataclass(frozen=True, slots=True)
class WebMapConfig:
    default_srid: int = 0
    server_srid: int | None = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> WebMapConfig:
        default_srid = _int(raw.get("default_srid", 0), "web_map.default_srid")
        server_srid = _optional_int(raw.get("server_srid"), "web_map.server_srid")
        if default_srid < 0:
            raise ValueError("web_map.default_srid must be >= 0")
        if server_srid is not None and server_srid <= 0:
            raise ValueError("web_map.server_srid must be > 0 when provided")
        return cls(default_srid=default_srid, server_srid=server_srid)


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    log_file: Path | None = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], root_dir: Path) -> LoggingConfig:
        return cls(log_file=_optional_path(raw.get("log_file"), "logging.log_file", root_dir))


@dataclass(frozen=True, slots=True)
class VisualizationConfig:
    source_path: Path | None
    image: ImageConfig
    style: StyleConfig
    web_map: WebMapConfig
    logging: LoggingConfig

    @classmethod
    def default(cls) -> VisualizationConfig:
        return cls(
            source_path=None,
            image=ImageConfig(),
            style=StyleConfig(),
            web_map=WebMapConfig(),
            logging=LoggingConfig(),
        )

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], source_path: Path) -> VisualizationConfig:
        root_dir = source_path.parent.resolve()
        return cls(
            source_path=source_path.resolve(),
            image=ImageConfig.from_mapping(_mapping(raw.get("image"), "image")),
            style=StyleConfig.from_mapping(_mapping(raw.get("style"), "style")),
            web_map=WebMapConfig.from_mapping(_mapping(raw.get("web_map"), "web_map")),
            logging=LoggingConfig.from_mapping(_mapping(raw.get("logging"), "logging"), root_dir),
        )


def load_config(path: str | Path | None, *, required: bool = False) -> VisualizationConfig:
    """Load and validate the YAML config file into typed settings.

    A missing file falls back to ``VisualizationConfig.default()`` unless
    ``required`` is set.
    """
    if path is None:
        return VisualizationConfig.default()
    cfg_path = Path(path).resolve()
    if not cfg_path.exists():
        if required:
            raise FileNotFoundError(f"Config file not found: {cfg_path}")
        return VisualizationConfig.default()
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise ValueError("Top-level config must be a YAML mapping")
    return VisualizationConfig.from_mapping(cast(Mapping[str, Any], raw), cfg_path)
