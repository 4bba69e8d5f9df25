from __future__ import annotations

from pathlib import Path

import pytest

from gisviz.config import VisualizationConfig, load_config
from gisviz.style import DEFAULT_PALETTE


def test_missing_config_falls_back_to_defaults(tmp_path: Path) -> None:
    cfg = load_config(tmp_path / "missing.yaml")
    assert cfg == VisualizationConfig.default()
    assert cfg.image.border_px == 15.0
    assert cfg.style.palette == DEFAULT_PALETTE


def test_missing_required_config_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml", required=True)


def test_load_config_sections(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(
        "image:\n"
        "  width_px: 300\n"
        "  height_px: 200\n"
        "  border_px: 5\n"
        "style:\n"
        "  palette: ['#ff0000', '#00FF00']\n"
        "web_map:\n"
        "  default_srid: 4326\n"
        "  server_srid: 3857\n"
        "logging:\n"
        "  log_file: logs/run.log\n",
        encoding="utf-8",
    )
    cfg = load_config(path)
    assert cfg.source_path == path.resolve()
    assert (cfg.image.width_px, cfg.image.height_px, cfg.image.border_px) == (300, 200, 5.0)
    assert cfg.image.background == "white"
    assert cfg.style.palette == ("#FF0000", "#00FF00")
    assert cfg.web_map.server_srid == 3857
    assert cfg.logging.log_file == tmp_path.resolve() / "logs" / "run.log"


def test_empty_config_file_uses_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")
    cfg = load_config(path)
    assert cfg.image == VisualizationConfig.default().image


@pytest.mark.parametrize(
    "text",
    [
        "- not a mapping\n",
        "image:\n  width_px: wide\n",
        "image:\n  width_px: 20\n  height_px: 20\n  border_px: 10\n",
        "style:\n  palette: ['red']\n",
        "style:\n  palette: []\n",
        "web_map:\n  server_srid: -1\n",
    ],
)
def test_invalid_config_raises(tmp_path: Path, text: str) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)
