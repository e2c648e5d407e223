"""Read the data table (CSV/TSV or Excel) into a ``Dataset`` of selected rows."""

from __future__ import annotations

import csv
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, List, Sequence

from .errors import DataError
from .models import Dataset

logger = logging.getLogger(__name__)

_TRUTHY = {"true", "yes", "y", "x", "1", "✓", "✔", "checked", "vrai", "oui"}


def is_selected(marker: Any) -> bool:
    if isinstance(marker, bool):
        return marker
    if isinstance(marker, (int, float)):
        return marker != 0
    return str(marker or "").strip().lower() in _TRUTHY


def cell_text(value: Any) -> str:
    """Render a cell the way it should appear on a slide."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        if value.time() == datetime.min.time():
            return value.strftime("%Y-%m-%d")
        return value.strftime("%Y-%m-%d %H:%M")
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d")
    return str(value)


def is_empty_row(row: Sequence[Any]) -> bool:
    return all(not cell_text(cell).strip() for cell in row)


def _headers(raw: Sequence[Any]) -> List[str]:
    headers = [cell_text(h).strip() for h in raw[1:]]
    while headers and not headers[-1]:
        headers.pop()
    if not headers:
        raise DataError("No usable headers: the table needs at least one column after the selection column")
    issues = []
    seen = set()
    for idx, header in enumerate(headers, start=2):
        if not header:
            issues.append(f"column {idx} has an empty header")
        elif header in seen:
            issues.append(f"header '{header}' is duplicated")
        seen.add(header)
    if issues:
        raise DataError("Invalid headers: " + "; ".join(issues))
    return headers


def build_dataset(matrix: Sequence[Sequence[Any]], *, start_row: int = 2, select_all: bool = False) -> Dataset:
    """Build a ``Dataset`` from a row matrix whose first column is the selection marker.

    Row 1 holds the headers; data starts at the 1-based ``start_row``. Selected
    rows keep their original order.
    """
    if start_row < 2:
        raise DataError(f"start row must be 2 or greater (got {start_row})")
    if not matrix:
        raise DataError("The data table is empty")
    headers = _headers(list(matrix[0]))
    width = len(headers)

    data_rows = list(matrix[start_row - 1 :])
    rows: List[List[Any]] = []
    for raw in data_rows:
        raw = list(raw)
        marker = raw[0] if raw else None
        if not (select_all or is_selected(marker)):
            continue
        cells = raw[1 : width + 1]
        cells += [""] * (width - len(cells))
        rows.append(["" if c is None else c for c in cells])

    if not rows:
        raise DataError("No rows are selected: tick the selection column for at least one row")

    logger.info("Loaded %d selected row(s) out of %d", len(rows), len(data_rows))
    return Dataset(headers=headers, rows=rows, total_rows=len(data_rows), selected_rows=len(rows))


def read_csv(path: Path, delimiter: str = ",") -> List[List[str]]:
    encodings = ["utf-8-sig", "utf-8", "latin-1", "cp1252"]
    for encoding in encodings:
        try:
            with open(path, "r", encoding=encoding, newline="") as f:
                return [row for row in csv.reader(f, delimiter=delimiter)]
        except UnicodeDecodeError:
            continue
    raise DataError(f"Could not decode {path} with any supported encoding")


def read_excel(path: Path) -> List[List[Any]]:
    """Values of the first sheet (formulas resolved to their cached results)."""
    from openpyxl import load_workbook

    wb = load_workbook(path, read_only=True, data_only=True)
    try:
        ws = wb.worksheets[0]
        return [list(row) for row in ws.iter_rows(values_only=True)]
    finally:
        wb.close()


def read_table(path: Path | str) -> List[List[Any]]:
    path = Path(path)
    if not path.is_file():
        raise DataError(f"Data file not found: {path}")
    ext = path.suffix.lower()
    if ext in (".xlsx", ".xlsm"):
        return read_excel(path)
    if ext in (".csv", ".tsv"):
        return read_csv(path, delimiter="\t" if ext == ".tsv" else ",")
    raise DataError(f"Unsupported data format '{ext}'. Use .csv, .tsv, .xlsx or .xlsm")


def load_dataset(path: Path | str, *, start_row: int = 2, select_all: bool = False) -> Dataset:
    return build_dataset(read_table(path), start_row=start_row, select_all=select_all)
