"""Loading batches of geometry rows from YAML, JSON or CSV files."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any

import yaml

from .models import Row


_CSV_SUFFIXES = {".csv", ".tsv"}
_JSON_SUFFIXES = {".json"}


def load_rows(path: Path) -> list[Row]:
    """Load and validate a row file.

    YAML and JSON files hold a list of mappings; CSV files use the same names
    (``wkt``, ``label``, ``color``, ``srid``) as header columns.
    """
    if not path.exists():
        raise FileNotFoundError(f"Row file not found: {path}")
    suffix = path.suffix.casefold()
    if suffix in _CSV_SUFFIXES:
        raw: Any = _read_csv(path, delimiter="\t" if suffix == ".tsv" else ",")
    elif suffix in _JSON_SUFFIXES:
        raw = json.loads(path.read_text(encoding="utf-8"))
    else:
        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
    if isinstance(raw, dict) and "rows" in raw:
        raw = raw["rows"]
    if not isinstance(raw, list):
        raise ValueError(f"Expected list in {path}")

    rows: list[Row] = []
    for idx, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValueError(f"Expected mapping at index {idx} in {path}")
        try:
            rows.append(Row.from_mapping(item))
        except ValueError as exc:
            raise ValueError(f"Invalid row at index {idx} in {path}: {exc}") from exc
    return rows


def _read_csv(path: Path, *, delimiter: str) -> list[dict[str, Any]]:
    with path.open("r", encoding="utf-8", newline="") as fh:
        reader = csv.DictReader(fh, delimiter=delimiter)
        if reader.fieldnames is None or "wkt" not in reader.fieldnames:
            raise ValueError(f"CSV row file must have a 'wkt' column: {path}")
        return [dict(record) for record in reader]
