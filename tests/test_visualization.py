from __future__ import annotations

import itertools
from pathlib import Path

import matplotlib.pyplot as plt

from gisviz.config import VisualizationConfig
from gisviz.models import OutputFormat, Row
from gisviz.style import DEFAULT_PALETTE
from gisviz.visualization import Visualization, format_report_lines, run_visualization


def _mixed_rows() -> list[Row]:
    return [
        Row(wkt="POINT(0 0)", label="origin"),
        Row(wkt="LINESTRING(0 0,10 10)", label="diagonal"),
        Row(wkt="POLYGON((0 0,10 0,10 10,0 0))", label="triangle", color="#123abc"),
        Row(wkt="POINT( )", label="unfinished"),
    ]


def test_scale_data_covers_all_rows() -> None:
    visualization = Visualization(_mixed_rows())
    scale = visualization.scale_data()
    assert scale.source_extent == (0.0, 0.0, 10.0, 10.0)
    assert scale.flip_y is True
    # Border of 15 px on a 600x450 canvas: 420 px of height for 10 units.
    assert scale.scale_x == scale.scale_y == 42.0
    assert visualization.scale_data() is scale


def test_overflowing_row_does_not_disturb_the_batch() -> None:
    counter = itertools.count(1)
    rows = [Row(wkt="POINT(1e400 1)"), Row(wkt="POINT(3 4)", label="A")]
    visualization = Visualization(rows, id_source=lambda: next(counter))
    scale = visualization.scale_data()
    assert [index for index, _ in visualization.row_errors] == [0]
    assert scale.source_extent == (3.0, 4.0, 3.0, 4.0)
    svg = visualization.as_svg()
    assert "nan" not in svg
    assert '<circle cx="300" cy="225"' in svg


def test_prepared_rows_runs_the_scan_pass() -> None:
    visualization = Visualization(_mixed_rows())
    assert [item.index for item in visualization.prepared_rows] == [0, 1, 2, 3]
    assert [item.drawable for item in visualization.prepared_rows] == [True, True, True, False]
    assert Visualization([]).prepared_rows == []


def test_svg_document_has_one_element_per_drawable_row() -> None:
    counter = itertools.count(1)
    svg = Visualization(_mixed_rows(), id_source=lambda: next(counter)).as_svg()
    assert svg.startswith('<?xml version="1.0"')
    assert 'width="600" height="450"' in svg
    assert svg.count("<circle ") == 1
    assert svg.count("<polyline ") == 1
    assert svg.count("<path ") == 1
    assert "unfinished" not in svg


def test_rows_without_color_cycle_through_palette() -> None:
    svg = Visualization(_mixed_rows()).as_svg()
    assert f'stroke="{DEFAULT_PALETTE[0]}"' in svg
    assert f'stroke="{DEFAULT_PALETTE[1]}"' in svg
    assert 'fill="#123ABC"' in svg


def test_invalid_rows_are_skipped_and_recorded() -> None:
    rows = [Row(wkt="POINT(1 x)"), Row(wkt="POINT(1 2)", color="red"), Row(wkt="POINT(3 4)")]
    visualization = Visualization(rows)
    visualization.scale_data()
    assert [index for index, _ in visualization.row_errors] == [0, 1]
    assert visualization.as_svg().count("<circle ") == 1


def test_png_and_pdf_outputs() -> None:
    visualization = Visualization(_mixed_rows())
    image = visualization.as_png()
    assert image.size == (600, 450)

    fig = visualization.as_pdf_figure(title="Batch")
    ax = fig.axes[0]
    # triangle polygon + point circle
    assert len(ax.patches) == 2
    assert len(ax.lines) == 1
    plt.close(fig)


def test_ol_script_wraps_features() -> None:
    script = Visualization(_mixed_rows()).as_ol()
    assert script.startswith("var options = ")
    assert script.count("vectorLayer.addFeatures(") == 3
    assert "map.zoomToExtent(bound);" in script


def test_to_file_writes_each_format(tmp_path: Path) -> None:
    visualization = Visualization(_mixed_rows())
    png = visualization.to_file(tmp_path / "out.png", OutputFormat.PNG)
    pdf = visualization.to_file(tmp_path / "out.pdf", "pdf")
    svg = visualization.to_file(tmp_path / "out.svg", "svg")
    script = visualization.to_file(tmp_path / "out.js", "js")
    assert png.read_bytes().startswith(b"\x89PNG")
    assert pdf.read_bytes().startswith(b"%PDF")
    assert svg.read_text(encoding="utf-8").endswith("</svg>")
    assert "OpenLayers" in script.read_text(encoding="utf-8")


def test_run_visualization_reports_rows(tmp_path: Path) -> None:
    output = tmp_path / "nested" / "out.svg"
    report = run_visualization(VisualizationConfig.default(), _mixed_rows(), output, "svg")
    assert report.ok
    assert output.exists()
    assert report.summary == {
        "rows_total": 4,
        "rows_rendered": 3,
        "rows_incomplete": 1,
        "rows_failed": 0,
    }
    assert any("Rows without a complete coordinate pair" in msg for msg in report.warnings)
    assert format_report_lines(report)[-1] == "[OK] Visualization completed with no errors."


def test_run_visualization_collects_row_errors(tmp_path: Path) -> None:
    rows = [Row(wkt="POINT(1 2)"), Row(wkt="CIRCLE(1 2)")]
    report = run_visualization(VisualizationConfig.default(), rows, tmp_path / "out.svg", OutputFormat.SVG)
    assert not report.ok
    assert report.errors[0].startswith("Row 1:")
    assert (tmp_path / "out.svg").exists()


def test_run_visualization_rejects_unknown_format(tmp_path: Path) -> None:
    report = run_visualization(VisualizationConfig.default(), _mixed_rows(), tmp_path / "out.gif", "gif")
    assert not report.ok
    assert not (tmp_path / "out.gif").exists()
