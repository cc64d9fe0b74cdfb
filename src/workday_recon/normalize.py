"""Record normalizer: raw spreadsheet rows -> :class:`WorkDayRecord` collection."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from workday_recon.config import SourceLayout
from workday_recon.dates import join_days, parse_work_days
from workday_recon.models import (
    CellKind,
    LoadSummary,
    RawRow,
    RecordCollection,
    WorkDayRecord,
)

logger = logging.getLogger(__name__)

_ID_SEPARATORS = ("-", "_")
_CANONICAL_SEPARATOR_INDEX = 4


class RowSkipped(Exception):
    """A row that cannot become a record; the run carries on without it."""


def pad_site_name(name: str) -> str:
    """Left-pad *name* with zeros so its separator lands at index 4.

    ``"1-234"`` -> ``"0001-234"``; names whose first ``-`` (or, failing
    that, first ``_``) is not at index 1-3 are returned unchanged.
    """
    for sep in _ID_SEPARATORS:
        index = name.find(sep)
        if 1 <= index < _CANONICAL_SEPARATOR_INDEX:
            return "0" * (_CANONICAL_SEPARATOR_INDEX - index) + name
    return name


def _read_day_count(row: RawRow, column: int) -> int:
    kind = row.kind(column)
    value = row.cell(column)
    if kind is not CellKind.NUMBER:
        raise RowSkipped(f"day count is not a number ({kind.value})")
    if isinstance(value, float) and not value.is_integer():
        raise RowSkipped(f"day count is not a whole number ({value})")
    return int(value)


def _read_work_days_value(row: RawRow, column: int) -> object:
    kind = row.kind(column)
    if kind in (CellKind.DATE, CellKind.TEXT):
        return row.cell(column)
    if kind is CellKind.BLANK:
        return None
    raise RowSkipped(f"work days is not a date or text ({kind.value})")


def build_record(row: RawRow, layout: SourceLayout) -> WorkDayRecord:
    """Build one record from *row*.

    Raises
    ------
    RowSkipped
        If the day-count or work-days cell has an unusable type.
    """
    site_key = row.text(layout.site_key_column).strip() or None
    day_count = _read_day_count(row, layout.day_count_column)
    raw_days = _read_work_days_value(row, layout.work_days_column)

    site_number = row.text(layout.site_number_column) if layout.site_number_column else ""
    site_name = pad_site_name(row.text(layout.site_name_column))
    status = row.text(layout.status_column) if layout.status_column else ""
    context = f"key:{site_key or '-'},number:{site_number},name:{site_name}"
    work_days = parse_work_days(raw_days, context=context)

    logger.debug(
        "site key:%s, day count:%s, work days:%s", site_key, day_count, join_days(work_days)
    )
    return WorkDayRecord(
        site_key=site_key,
        site_number=site_number,
        site_name=site_name,
        status=status,
        declared_day_count=day_count,
        work_days=work_days,
    )


def is_ignored(site_key: str | None, ignore_keys: frozenset[str], suffix: str) -> bool:
    """Return ``True`` when *site_key* is on the ignore list or carries *suffix*."""
    if not site_key:
        return False
    if site_key in ignore_keys:
        return True
    return bool(suffix) and site_key.endswith(suffix)


def build_collection(
    rows: Iterable[RawRow],
    layout: SourceLayout,
    *,
    ignore_key_suffix: str = "",
    unique_keys: bool = True,
    source: str = "first",
) -> tuple[RecordCollection, LoadSummary]:
    """Normalize *rows* into a :class:`RecordCollection`.

    Returns ``(collection, summary)``. Unusable rows are skipped and
    counted; ignored keys are dropped entirely. A keyed collection
    (``unique_keys``) also skips rows whose site key is blank.

    Raises
    ------
    DuplicateSiteKeyError
        If ``unique_keys`` is set and two kept rows share a site key.
    """
    collection = RecordCollection(unique_keys=unique_keys)
    rows_seen = skipped = ignored = 0
    warnings: list[str] = []

    for row in rows:
        rows_seen += 1
        try:
            record = build_record(row, layout)
            if unique_keys and not record.site_key:
                raise RowSkipped("site key is blank")
        except RowSkipped as exc:
            skipped += 1
            message = (
                f"[{source}] sheet:{layout.sheet_name} row:{row.row_number} "
                f"key:{row.text(layout.site_key_column) or '-'} skipped: {exc}"
            )
            warnings.append(message)
            logger.warning(message)
            continue

        if is_ignored(record.site_key, layout.ignore_keys, ignore_key_suffix):
            ignored += 1
            logger.debug("[%s] ignored site key %s", source, record.site_key)
            continue

        collection.add(record)

    summary = LoadSummary(
        rows_seen=rows_seen,
        records=len(collection),
        skipped=skipped,
        ignored=ignored,
        warnings=warnings,
    )
    logger.info(
        "[%s] sheet:%s rows:%d records:%d skipped:%d ignored:%d",
        source,
        layout.sheet_name,
        summary.rows_seen,
        summary.records,
        summary.skipped,
        summary.ignored,
    )
    return collection, summary
