"""I/O helpers: read worksheet rows, write JSON artifacts."""

from __future__ import annotations

import json
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any

from openpyxl import load_workbook

from workday_recon.models import RawRow

# ── Loading ──────────────────────────────────────────────────────


def _last_used_index(rows: list[tuple[Any, ...]]) -> int:
    for idx in range(len(rows) - 1, -1, -1):
        if any(value is not None and value != "" for value in rows[idx]):
            return idx
    return -1


def load_sheet_rows(path: Path, sheet_name: str, first_data_row: int) -> list[RawRow]:
    """Return the rows of *sheet_name* from *first_data_row* to the last used row.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    ValueError
        If the workbook has no sheet called *sheet_name*.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")

    wb = load_workbook(path, read_only=True, data_only=True)
    try:
        if sheet_name not in wb.sheetnames:
            raise ValueError(
                f"Sheet {sheet_name!r} not found in {path.name} "
                f"(available: {', '.join(wb.sheetnames)})"
            )
        ws = wb[sheet_name]
        values = [tuple(row) for row in ws.iter_rows(min_row=first_data_row, values_only=True)]
    finally:
        wb.close()

    last = _last_used_index(values)
    return [
        RawRow(row_number=first_data_row + offset, values=row)
        for offset, row in enumerate(values[: last + 1])
    ]


# ── Writing ──────────────────────────────────────────────────────


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (set, frozenset)):
        return sorted(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def write_json(path: Path, data: Any) -> Path:
    """Write *data* as pretty-printed JSON to *path* (atomic + deterministic)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    payload = json.dumps(
        data,
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
        default=_json_default,
    ) + "\n"
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(payload, encoding="utf-8")
    tmp_path.replace(path)
    return path
