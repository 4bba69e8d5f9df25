"""Batch pipeline: one scan pass, one frozen scale, one canvas per output format."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

from . import render_ol, render_pdf, render_png, render_svg
from .config import VisualizationConfig
from .geometry import handler_for_wkt
from .models import OutputFormat, Row, RowRenderRequest, VisualizationReport
from .scale import BoundingBox, PaddingPolicy, ScaleRecord, freeze
from .style import normalize_hex_color, palette_cycle


_LOGGER = logging.getLogger("gisviz.visualization")


@dataclass(frozen=True, slots=True)
class _PreparedRow:
    index: int
    row: Row
    color: str
    drawable: bool


class Visualization:
    """Renders a batch of rows into a single shared coordinate frame."""

    def __init__(
        self,
        rows: Sequence[Row],
        cfg: VisualizationConfig | None = None,
        *,
        id_source: render_svg.IdSource = render_svg.random_id_source,
    ) -> None:
        self.cfg = cfg if cfg is not None else VisualizationConfig.default()
        self.rows = tuple(rows)
        self.id_source = id_source
        self.row_errors: list[tuple[int, str]] = []
        self._prepared: list[_PreparedRow] = []
        self._scale: ScaleRecord | None = None

    @property
    def width(self) -> int:
        return self.cfg.image.width_px

    @property
    def height(self) -> int:
        return self.cfg.image.height_px

    @property
    def prepared_rows(self) -> list[_PreparedRow]:
        self.scale_data()
        return self._prepared

    def scale_data(self) -> ScaleRecord:
        """Run the scan pass over every row and freeze the batch scale.

        Rows that fail to parse, or carry an unusable colour, are recorded in
        ``row_errors`` and left out of every render pass.
        """
        if self._scale is not None:
            return self._scale

        prepared: list[_PreparedRow] = []
        box = BoundingBox()
        for index, (row, fallback_color) in enumerate(
            zip(self.rows, palette_cycle(self.cfg.style.palette))
        ):
            try:
                handler = handler_for_wkt(row.wkt)
                color = normalize_hex_color(row.color) if row.color else fallback_color
                row_box = handler.scan_row(row.wkt)
            except ValueError as exc:
                _LOGGER.warning("Skipping row %d: %s", index, exc)
                self.row_errors.append((index, str(exc)))
                continue
            box = box.merge(row_box)
            if row_box.is_empty:
                _LOGGER.debug("Row %d has no complete coordinate pair", index)
            prepared.append(
                _PreparedRow(
                    index=index,
                    row=row,
                    color=color,
                    drawable=not row_box.is_empty,
                )
            )

        self._prepared = prepared
        self._scale = freeze(
            box,
            self.width,
            self.height,
            PaddingPolicy(border_px=self.cfg.image.border_px, keep_aspect=True, flip_y=True),
        )
        return self._scale

    def requests(self, output_format: OutputFormat) -> list[RowRenderRequest]:
        scale = self.scale_data()
        return [
            RowRenderRequest(
                wkt=item.row.wkt,
                label=item.row.label,
                color=item.color,
                scale=scale,
                output_format=output_format,
                srid=item.row.srid or self.cfg.web_map.default_srid,
            )
            for item in self.prepared_rows
        ]

    def as_png(self) -> Any:
        image = render_png.new_canvas(self.width, self.height, self.cfg.image.background)
        for req in self.requests(OutputFormat.PNG):
            image = handler_for_wkt(req.wkt).prepare_row_as_png(
                req.wkt, req.label, req.color, req.scale, image
            )
        return image

    def as_pdf_figure(self, *, title: str | None = None) -> Any:
        fig, ax = render_pdf.new_document(self.width, self.height, title=title)
        for req in self.requests(OutputFormat.PDF):
            ax = handler_for_wkt(req.wkt).prepare_row_as_pdf(
                req.wkt, req.label, req.color, req.scale, ax
            )
        return fig

    def as_svg(self) -> str:
        body = ""
        for req in self.requests(OutputFormat.SVG):
            body = handler_for_wkt(req.wkt).prepare_row_as_svg(
                req.wkt, req.label, req.color, req.scale, body, id_source=self.id_source
            )
        return render_svg.svg_document(body, self.width, self.height)

    def as_ol(self) -> str:
        features = ""
        for req in self.requests(OutputFormat.OL):
            features = handler_for_wkt(req.wkt).prepare_row_as_ol(
                req.wkt,
                req.srid,
                req.label,
                req.color,
                req.scale,
                features,
                server_srid=self.cfg.web_map.server_srid,
            )
        return render_ol.map_script(features)

    def to_file(self, path: Path, output_format: OutputFormat | str) -> Path:
        fmt = output_format if isinstance(output_format, OutputFormat) else OutputFormat.parse(output_format)
        path.parent.mkdir(parents=True, exist_ok=True)
        if fmt is OutputFormat.PNG:
            self.as_png().save(path, format="PNG")
        elif fmt is OutputFormat.PDF:
            render_pdf.save_document(self.as_pdf_figure(), path)
        elif fmt is OutputFormat.SVG:
            path.write_text(self.as_svg(), encoding="utf-8")
        else:
            path.write_text(self.as_ol(), encoding="utf-8")
        _LOGGER.info("Wrote %s visualization to %s", fmt.value, path)
        return path


def run_visualization(
    cfg: VisualizationConfig,
    rows: Sequence[Row],
    output_path: Path,
    output_format: OutputFormat | str,
) -> VisualizationReport:
    """Render ``rows`` into ``output_path``; per-row problems are reported, not raised."""
    report = VisualizationReport(output_path=str(output_path))
    try:
        fmt = output_format if isinstance(output_format, OutputFormat) else OutputFormat.parse(output_format)
    except ValueError as exc:
        report.add_error(str(exc))
        return report

    report.add_info(f"Loaded {len(rows)} rows")
    if not rows:
        report.add_warning("No rows to render; output will be an empty canvas.")

    visualization = Visualization(rows, cfg)
    scale = visualization.scale_data()
    for index, message in visualization.row_errors:
        report.add_error(f"Row {index}: {message}")
    incomplete = [item.index for item in visualization.prepared_rows if not item.drawable]
    if incomplete:
        report.add_warning(
            "Rows without a complete coordinate pair (nothing drawn): "
            + ", ".join(str(index) for index in incomplete)
        )
    min_x, min_y, max_x, max_y = scale.source_extent
    report.add_info(f"Batch extent: ({min_x}, {min_y}) - ({max_x}, {max_y})")

    try:
        visualization.to_file(output_path, fmt)
    except (OSError, RuntimeError, ValueError) as exc:
        report.add_error(f"Failed writing {fmt.value} output '{output_path}': {exc}")
        report.output_path = None

    report.summary = {
        "rows_total": len(rows),
        "rows_rendered": len(visualization.prepared_rows) - len(incomplete),
        "rows_incomplete": len(incomplete),
        "rows_failed": len(visualization.row_errors),
    }
    return report


def format_report_lines(report: VisualizationReport) -> Sequence[str]:
    lines: list[str] = []
    lines.extend(f"[INFO] {msg}" for msg in report.infos)
    lines.extend(f"[WARN] {msg}" for msg in report.warnings)
    lines.extend(f"[ERROR] {msg}" for msg in report.errors)
    if report.summary:
        lines.append(
            "[INFO] Summary: "
            + ", ".join(f"{key}={value}" for key, value in sorted(report.summary.items()))
        )
    if report.ok:
        lines.append("[OK] Visualization completed with no errors.")
    return lines
