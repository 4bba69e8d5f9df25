"""CLI entrypoint for gisviz."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any, Mapping, Sequence

from .config import VisualizationConfig, load_config
from .editor import WHOLE_VALUE, from_editor_params, to_editor_params
from .models import OutputFormat
from .rows import load_rows
from .util import dumps_json, read_json, setup_logging, write_json
from .visualization import format_report_lines, run_visualization

LOGGER = logging.getLogger("gisviz.cli")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gisviz",
        description="Render WKT geometry rows and convert GIS editor parameters.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--config", default="config.yaml", help="Path to YAML config.")
        p.add_argument("--verbose", action="store_true", help="Enable debug logs.")

    render_p = subparsers.add_parser("render", help="Render a row file to PNG, PDF, SVG or OL script.")
    add_common(render_p)
    render_p.add_argument("--input", required=True, help="Row file (YAML, JSON or CSV).")
    render_p.add_argument(
        "--format",
        default=None,
        help="Output format: png, pdf, svg or ol. Defaults to the output file suffix.",
    )
    render_p.add_argument("--output", required=True, help="Output file path.")

    params_p = subparsers.add_parser("params", help="Print editor parameters for a GIS value as JSON.")
    add_common(params_p)
    params_p.add_argument("value", help="WKT, optionally wrapped as 'WKT',SRID.")
    params_p.add_argument(
        "--index",
        type=int,
        default=WHOLE_VALUE,
        help="Collection member index; -1 edits the whole value.",
    )
    params_p.add_argument("--output", default=None, help="Write JSON here instead of stdout.")

    wkt_p = subparsers.add_parser("wkt", help="Print WKT generated from an editor parameter JSON file.")
    add_common(wkt_p)
    wkt_p.add_argument("--params", required=True, help="JSON file holding the editor parameters.")
    wkt_p.add_argument("--index", type=int, default=0, help="Geometry index inside the parameters.")
    wkt_p.add_argument("--empty", default="", help="Text written for blank coordinates.")

    return parser


def _load_and_setup(args: argparse.Namespace) -> VisualizationConfig:
    cfg = load_config(args.config)
    setup_logging(cfg.logging.log_file, verbose=args.verbose)
    if cfg.source_path is None:
        LOGGER.debug("Config %s not found; using defaults.", args.config)
    return cfg


def _resolve_format(raw: str | None, output: Path) -> OutputFormat:
    if raw:
        return OutputFormat.parse(raw)
    suffix = output.suffix.lstrip(".")
    if not suffix:
        raise ValueError("Cannot infer output format; pass --format.")
    return OutputFormat.parse(suffix)


def _run_render(cfg: VisualizationConfig, *, input_path: Path, output: Path, fmt: str | None) -> int:
    try:
        output_format = _resolve_format(fmt, output)
        rows = load_rows(input_path)
    except (FileNotFoundError, ValueError) as exc:
        LOGGER.error("%s", exc)
        return 1
    report = run_visualization(cfg, rows, output, output_format)
    for line in format_report_lines(report):
        LOGGER.info(line)
    return 0 if report.ok else 1


def _run_params(*, value: str, index: int, output: Path | None) -> int:
    try:
        params = to_editor_params(value, index)
    except ValueError as exc:
        LOGGER.error("Cannot build editor parameters: %s", exc)
        return 1
    if output is not None:
        write_json(output, params)
        LOGGER.info("Editor parameters written to %s", output)
    else:
        print(dumps_json(params))
    return 0


def _run_wkt(*, params_path: Path, index: int, empty: str) -> int:
    try:
        gis_data = read_json(params_path)
        if not isinstance(gis_data, Mapping):
            raise ValueError(f"Expected JSON object in {params_path}")
        print(from_editor_params(_as_editor_map(gis_data), index, empty))
    except (FileNotFoundError, ValueError) as exc:
        LOGGER.error("Cannot generate WKT: %s", exc)
        return 1
    return 0


def _as_editor_map(data: Mapping[str, Any]) -> dict[Any, Any]:
    # JSON object keys are text; geometry indexes go back to int.
    out: dict[Any, Any] = {}
    for key, value in data.items():
        out[int(key) if key.lstrip("-").isdigit() else key] = value
    return out


def _dispatch(args: argparse.Namespace) -> int:
    cfg = _load_and_setup(args)
    command = str(args.command)
    if command == "render":
        return _run_render(
            cfg,
            input_path=Path(args.input),
            output=Path(args.output),
            fmt=args.format,
        )
    if command == "params":
        return _run_params(
            value=str(args.value),
            index=int(args.index),
            output=Path(args.output) if args.output else None,
        )
    if command == "wkt":
        return _run_wkt(params_path=Path(args.params), index=int(args.index), empty=str(args.empty))
    raise ValueError(f"Unknown command: {command}")


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    return _dispatch(args)


if __name__ == "__main__":
    raise SystemExit(main())
