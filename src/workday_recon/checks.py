"""Validation checks over one record collection.

Each check returns its own :class:`CheckResult`; none of them mutates the
collection, and records carrying date errors are left to
:func:`check_date_errors`.
"""

from __future__ import annotations

import logging

from workday_recon.config import HolidayCalendar
from workday_recon.dates import format_day, join_days
from workday_recon.models import (
    CheckResult,
    Finding,
    FindingKind,
    RecordCollection,
    WorkDayRecord,
)

logger = logging.getLogger(__name__)

DATE_ERRORS = "date_errors"
DAY_COUNT = "day_count"
CALENDAR = "calendar"

_CALENDAR_LABELS: dict[FindingKind, str] = {
    FindingKind.PUBLIC_HOLIDAY: "public holiday",
    FindingKind.BUSINESS_HOLIDAY: "business holiday",
    FindingKind.SATURDAY: "Saturday",
    FindingKind.SUNDAY: "Sunday",
}


def _active_error_free(
    collection: RecordCollection, active_status: str
) -> list[WorkDayRecord]:
    records = []
    for record in collection:
        if record.status != active_status:
            logger.debug("excluded key:%s status:%s", record.site_key, record.status)
            continue
        if record.has_date_error:
            continue
        records.append(record)
    return records


# ── Date errors ──────────────────────────────────────────────────


def date_error_finding(record: WorkDayRecord) -> Finding:
    parts = [f"{e.token or '<empty>'} ({e.reason})" for e in record.work_days.errors]
    return Finding(
        kind=FindingKind.DATE_ERROR,
        message=f"Date error {record.label()}, bad tokens: {', '.join(parts)}",
        site_key=record.site_key,
        site_number=record.site_number,
        site_name=record.site_name,
        field="work_days",
        value_first=[e.token for e in record.work_days.errors],
    )


def check_date_errors(collection: RecordCollection, *, source: str = "first") -> CheckResult:
    """Report every record whose work-days cell held bad or repeated dates."""
    result = CheckResult(name=f"{DATE_ERRORS}_{source}", title=f"Date errors ({source})")
    for record in collection:
        result.checked += 1
        if record.has_date_error:
            result.findings.append(date_error_finding(record))
    return result


# ── Day count ────────────────────────────────────────────────────


def check_day_counts(collection: RecordCollection, active_status: str) -> CheckResult:
    """Compare each active record's declared day count with its listed dates."""
    result = CheckResult(name=DAY_COUNT, title="Declared day count vs listed work days")
    for record in _active_error_free(collection, active_status):
        if not record.has_day_count:
            continue
        result.checked += 1
        actual = len(record.work_days)
        if record.declared_day_count == actual:
            continue
        result.findings.append(
            Finding(
                kind=FindingKind.COUNT_MISMATCH,
                message=(
                    f"Day count mismatch number:{record.site_number},name:{record.site_name},"
                    f"declared:{record.declared_day_count},"
                    f"work days:{join_days(record.work_days)}"
                ),
                site_key=record.site_key,
                site_number=record.site_number,
                site_name=record.site_name,
                field="declared_day_count",
                value_first=record.declared_day_count,
                value_second=actual,
            )
        )
    return result


# ── Weekends / holidays ──────────────────────────────────────────


def check_work_day_calendar(
    collection: RecordCollection, active_status: str, calendar: HolidayCalendar
) -> CheckResult:
    """Warn about active work days that fall on a holiday or a weekend."""
    result = CheckResult(
        name=CALENDAR, title="Work days on weekends and holidays", warning_only=True
    )
    for record in _active_error_free(collection, active_status):
        result.checked += 1
        for day in record.work_days:
            kind = calendar.classify(day)
            if kind is None:
                continue
            result.findings.append(
                Finding(
                    kind=kind,
                    message=(
                        f"Check: {_CALENDAR_LABELS[kind]} {format_day(day)},"
                        f"number:{record.site_number},name:{record.site_name}"
                    ),
                    site_key=record.site_key,
                    site_number=record.site_number,
                    site_name=record.site_name,
                    field="work_days",
                    value_first=format_day(day),
                )
            )
    return result
