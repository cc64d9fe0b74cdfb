"""Report rendering: log text blocks, the day query and the findings workbook."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, NamedTuple

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from workday_recon.checks import date_error_finding
from workday_recon.dates import DELIMITER, format_day_with_weekday, join_days, parse_date_token
from workday_recon.models import (
    CheckResult,
    DayQueryBlock,
    DayQueryEntry,
    DayQueryResult,
    Finding,
    FindingKind,
    RecordCollection,
    Status,
)

logger = logging.getLogger(__name__)

_WARNING_KINDS = {
    FindingKind.PUBLIC_HOLIDAY,
    FindingKind.BUSINESS_HOLIDAY,
    FindingKind.SATURDAY,
    FindingKind.SUNDAY,
}
_INFO_KINDS = {FindingKind.ONLY_IN_FIRST, FindingKind.ONLY_IN_SECOND}


class ReportLine(NamedTuple):
    level: int
    text: str


# ── Day query ────────────────────────────────────────────────────


def query_day(
    collection: RecordCollection, targets: str, active_status: str
) -> DayQueryResult:
    """List the active sites scheduled on each pipe-delimited target day.

    Each entry carries the 1-based position of the day within the site's
    work days and the site's total. Records with date errors and targets
    that do not parse become findings instead.
    """
    result = DayQueryResult()
    reported: set[int] = set()
    for token in targets.split(DELIMITER):
        day = parse_date_token(token)
        if day is None:
            result.findings.append(
                Finding(
                    kind=FindingKind.DAY_QUERY_ERROR,
                    message=f"Could not parse query date: {token!r}",
                    value_first=token,
                )
            )
            continue
        block = DayQueryBlock(day=day)
        for record in collection.with_status(active_status):
            if record.has_date_error:
                if id(record) not in reported:
                    reported.add(id(record))
                    result.findings.append(date_error_finding(record))
                continue
            position = record.work_days.position(day)
            if position:
                block.entries.append(
                    DayQueryEntry(
                        site_key=record.site_key,
                        site_name=record.site_name,
                        position=position,
                        total=len(record.work_days),
                    )
                )
        result.blocks.append(block)
    return result


def format_day_block(block: DayQueryBlock) -> str:
    lines = ["", f"Sites working on {format_day_with_weekday(block.day)}:", ""]
    lines.extend(f"{e.site_name} ({e.position}/{e.total})" for e in block.entries)
    return "\n".join(lines)


def format_day_query(result: DayQueryResult) -> list[ReportLine]:
    lines = [ReportLine(logging.INFO, "== start sites by work day ==")]
    for finding in result.findings:
        lines.append(ReportLine(logging.ERROR, finding.message))
    for block in result.blocks:
        lines.append(ReportLine(logging.INFO, format_day_block(block)))
    lines.append(ReportLine(logging.INFO, "== end sites by work day =="))
    return lines


# ── Check results ────────────────────────────────────────────────


def _finding_level(finding: Finding) -> int:
    if finding.kind in _WARNING_KINDS:
        return logging.WARNING
    if finding.kind in _INFO_KINDS:
        return logging.INFO
    return logging.ERROR


def _verdict(result: CheckResult) -> ReportLine:
    if result.passed:
        return ReportLine(logging.INFO, f"[OK] {result.title}: no problems found")
    count = len(result.findings)
    noun = "problem" if count == 1 else "problems"
    if result.status is Status.WARN:
        return ReportLine(logging.INFO, f"[WARNING] {result.title}: {count} {noun}")
    return ReportLine(logging.INFO, f"[NG] {result.title}: {count} {noun}")


def format_check_result(result: CheckResult) -> list[ReportLine]:
    """Render one check as a start/end delimited block of lines."""
    lines = [ReportLine(logging.INFO, f"== start {result.title} ==")]
    for finding in result.findings:
        lines.append(ReportLine(_finding_level(finding), finding.message))
    lines.append(_verdict(result))
    lines.append(ReportLine(logging.INFO, f"== end {result.title} =="))
    return lines


def format_records(collection: RecordCollection) -> list[ReportLine]:
    return [
        ReportLine(
            logging.DEBUG,
            f"key:{r.site_key},name:{r.site_name},status:{r.status},"
            f"day count:{r.declared_day_count},work days:{join_days(r.work_days)}",
        )
        for r in collection
    ]


def emit(lines: Iterable[ReportLine], sink: logging.Logger | None = None) -> None:
    """Hand report lines to a logger (``workday_recon.report`` by default)."""
    sink = sink or logger
    for line in lines:
        sink.log(line.level, line.text)


# ── Workbook export ──────────────────────────────────────────────

HEADER_FONT = Font(name="Calibri", bold=True, size=11, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="2F5496", end_color="2F5496", fill_type="solid")
HEADER_ALIGN = Alignment(horizontal="center", vertical="center", wrap_text=True)
TITLE_FONT = Font(name="Calibri", bold=True, size=14, color="2F5496")
SUBTITLE_FONT = Font(name="Calibri", bold=False, size=10, color="808080")

STATUS_FILLS: dict[str, PatternFill] = {
    Status.PASS_.value: PatternFill(start_color="C6EFCE", end_color="C6EFCE", fill_type="solid"),
    Status.WARN.value: PatternFill(start_color="FFEB9C", end_color="FFEB9C", fill_type="solid"),
    Status.FAIL.value: PatternFill(start_color="FFC7CE", end_color="FFC7CE", fill_type="solid"),
}

DATE_FMT = "yyyy/mm/dd"
REPORT_NAME = "WorkDays_Report.xlsx"
FINDING_COLUMNS = [
    "check",
    "kind",
    "site_key",
    "site_number",
    "site_name",
    "field",
    "value_first",
    "value_second",
    "message",
]
_EXCEL_FORMULA_PREFIXES = ("=", "+", "-", "@")


def _style_header(ws: Worksheet, row: int, ncols: int) -> None:
    for c in range(1, ncols + 1):
        cell = ws.cell(row=row, column=c)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = HEADER_ALIGN


def _auto_width(ws: Worksheet) -> None:
    for c_idx in range(1, ws.max_column + 1):
        letter = get_column_letter(c_idx)
        width = 0
        for row in ws.iter_rows(min_col=c_idx, max_col=c_idx):
            width = max(width, len(str(row[0].value or "")))
        ws.column_dimensions[letter].width = min(width + 4, 60)


def _excel_value(val: Any) -> Any:
    if isinstance(val, (list, tuple)):
        return DELIMITER.join(str(v) for v in val)
    try:
        if pd.isna(val):
            return None
    except (TypeError, ValueError):
        return val
    item = getattr(val, "item", None)
    if callable(item):
        val = item()
    if isinstance(val, str):
        stripped = val.lstrip()
        if stripped and stripped[0] in _EXCEL_FORMULA_PREFIXES:
            return f"'{val}"
    return val


def findings_frame(results: Iterable[CheckResult]) -> pd.DataFrame:
    """One row per finding across *results*, columns as :data:`FINDING_COLUMNS`."""
    rows = [
        {"check": result.name, **finding.to_dict()}
        for result in results
        for finding in result.findings
    ]
    return pd.DataFrame(rows, columns=FINDING_COLUMNS)


def summary_frame(results: Iterable[CheckResult]) -> pd.DataFrame:
    rows = [
        {
            "check": r.name,
            "title": r.title,
            "status": r.status.value,
            "checked": r.checked,
            "findings": len(r.findings),
        }
        for r in results
    ]
    return pd.DataFrame(rows, columns=["check", "title", "status", "checked", "findings"])


def records_frame(collection: RecordCollection) -> pd.DataFrame:
    rows = [
        {
            "site_key": r.site_key,
            "site_number": r.site_number,
            "site_name": r.site_name,
            "status": r.status,
            "declared_day_count": r.declared_day_count,
            "work_day_total": len(r.work_days),
            "first_day": r.work_days.dates[0] if r.work_days.dates else None,
            "last_day": r.work_days.dates[-1] if r.work_days.dates else None,
            "date_error": r.has_date_error,
        }
        for r in collection
    ]
    columns = [
        "site_key",
        "site_number",
        "site_name",
        "status",
        "declared_day_count",
        "work_day_total",
        "first_day",
        "last_day",
        "date_error",
    ]
    return pd.DataFrame(rows, columns=columns)


def _df_to_sheet(wb: Workbook, name: str, df: pd.DataFrame, *, header_row: int = 1) -> Worksheet:
    ws = wb.create_sheet(title=name)
    col_names = list(df.columns)
    for c_idx, col_name in enumerate(col_names, 1):
        ws.cell(row=header_row, column=c_idx, value=col_name)
    for r_idx, row_vals in enumerate(df.itertuples(index=False, name=None), header_row + 1):
        for c_idx, val in enumerate(row_vals, 1):
            cell = ws.cell(row=r_idx, column=c_idx, value=_excel_value(val))
            if isinstance(val, date):
                cell.number_format = DATE_FMT
    _style_header(ws, header_row, len(col_names))
    ws.freeze_panes = ws.cell(row=header_row + 1, column=1)
    if len(df) > 0:
        ws.auto_filter.ref = ws.dimensions
    _auto_width(ws)
    return ws


def write_findings_workbook(
    out_dir: Path,
    results: list[CheckResult],
    records: RecordCollection | None = None,
) -> Path:
    """Write ``WorkDays_Report.xlsx`` (Summary, Findings, Records) and return the path."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    report_path = out_dir / REPORT_NAME

    wb = Workbook()
    active_sheet = wb.active
    if active_sheet is not None:
        wb.remove(active_sheet)

    summary = summary_frame(results)
    ws = _df_to_sheet(wb, "Summary", summary, header_row=4)
    ws.cell(row=1, column=1, value="workday-recon: check summary").font = TITLE_FONT
    generated = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
    ws.cell(row=2, column=1, value=f"Generated {generated}").font = SUBTITLE_FONT
    status_col = list(summary.columns).index("status") + 1
    for r_idx in range(5, 5 + len(summary)):
        cell = ws.cell(row=r_idx, column=status_col)
        fill = STATUS_FILLS.get(str(cell.value))
        if fill is not None:
            cell.fill = fill

    _df_to_sheet(wb, "Findings", findings_frame(results))
    if records is not None:
        _df_to_sheet(wb, "Records", records_frame(records))

    tmp_path = out_dir / f"{report_path.stem}.tmp.xlsx"
    wb.save(tmp_path)
    tmp_path.replace(report_path)
    return report_path
