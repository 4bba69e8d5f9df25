from __future__ import annotations

import json
from pathlib import Path

import pytest

from gisviz.cli import main


@pytest.fixture
def rows_file(tmp_path: Path) -> Path:
    path = tmp_path / "rows.yaml"
    path.write_text(
        "- wkt: POINT(30 10)\n"
        "  label: Lighthouse\n"
        "- wkt: LINESTRING(30 10,10 30,40 40)\n",
        encoding="utf-8",
    )
    return path


def test_render_svg(tmp_path: Path, rows_file: Path) -> None:
    output = tmp_path / "out.svg"
    code = main(
        ["render", "--config", str(tmp_path / "missing.yaml"), "--input", str(rows_file), "--output", str(output)]
    )
    assert code == 0
    assert "<circle " in output.read_text(encoding="utf-8")


def test_render_with_explicit_format(tmp_path: Path, rows_file: Path) -> None:
    output = tmp_path / "map.txt"
    code = main(
        [
            "render",
            "--config",
            str(tmp_path / "missing.yaml"),
            "--input",
            str(rows_file),
            "--format",
            "ol",
            "--output",
            str(output),
        ]
    )
    assert code == 0
    assert "vectorLayer.addFeatures(" in output.read_text(encoding="utf-8")


def test_render_missing_input_fails(tmp_path: Path) -> None:
    code = main(
        [
            "render",
            "--config",
            str(tmp_path / "missing.yaml"),
            "--input",
            str(tmp_path / "nope.yaml"),
            "--output",
            str(tmp_path / "out.svg"),
        ]
    )
    assert code == 1


def test_params_prints_json(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = main(["params", "--config", str(tmp_path / "missing.yaml"), "'POINT(5 )',4326"])
    assert code == 0
    assert json.loads(capsys.readouterr().out) == {"0": {"POINT": {"x": "5", "y": ""}}, "srid": 4326}


def test_params_rejects_bad_value(tmp_path: Path) -> None:
    assert main(["params", "--config", str(tmp_path / "missing.yaml"), "POINT(1 x)"]) == 1


def test_wkt_from_params_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    params = tmp_path / "params.json"
    params.write_text(json.dumps({"srid": 0, "0": {"POINT": {"x": "5", "y": ""}}}), encoding="utf-8")
    code = main(["wkt", "--config", str(tmp_path / "missing.yaml"), "--params", str(params), "--index", "0"])
    assert code == 0
    assert capsys.readouterr().out.strip() == "POINT(5 )"


def test_params_then_wkt_round_trip(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    config = str(tmp_path / "missing.yaml")
    params = tmp_path / "params.json"
    value = "GEOMETRYCOLLECTION(POINT(4 6),LINESTRING(4 6,7 10))"
    assert main(["params", "--config", config, value, "--output", str(params)]) == 0
    capsys.readouterr()
    assert main(["wkt", "--config", config, "--params", str(params), "--index", "-1"]) == 0
    assert capsys.readouterr().out.strip() == value
