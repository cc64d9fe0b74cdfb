"""Cross-source reconciliation of two keyed record collections."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from workday_recon.dates import join_days
from workday_recon.models import (
    CheckResult,
    Finding,
    FindingKind,
    RecordCollection,
    WorkDayRecord,
)

logger = logging.getLogger(__name__)

RECONCILIATION = "reconciliation"


@dataclass
class ReconciliationResult(CheckResult):
    """Key-set differences plus per-key field mismatches."""

    only_in_first: list[str] = field(default_factory=list)
    only_in_second: list[str] = field(default_factory=list)

    @property
    def mismatches(self) -> list[Finding]:
        return [f for f in self.findings if f.kind is FindingKind.FIELD_MISMATCH]


def diff_keys(first: RecordCollection, second: RecordCollection) -> tuple[list[str], list[str]]:
    """Return ``(first - second, second - first)`` keeping each side's order."""
    second_keys = set(second.keys())
    first_keys = set(first.keys())
    only_first = [k for k in first.keys() if k not in second_keys]
    only_second = [k for k in second.keys() if k not in first_keys]
    return only_first, only_second


def _field_mismatch(
    key: str, field_name: str, value_first: Any, value_second: Any, record: WorkDayRecord
) -> Finding:
    return Finding(
        kind=FindingKind.FIELD_MISMATCH,
        message=f"Mismatch ({field_name}) {key} first:{value_first} second:{value_second}",
        site_key=key,
        site_number=record.site_number,
        site_name=record.site_name,
        field=field_name,
        value_first=value_first,
        value_second=value_second,
    )


def compare_records(key: str, first: WorkDayRecord, second: WorkDayRecord) -> list[Finding]:
    """Compare name, declared count and work days; every difference is reported."""
    findings: list[Finding] = []

    if first.site_name != second.site_name:
        findings.append(
            _field_mismatch(key, "site_name", first.site_name, second.site_name, first)
        )

    if first.has_day_count and second.has_day_count:
        if first.declared_day_count != second.declared_day_count:
            findings.append(
                _field_mismatch(
                    key,
                    "declared_day_count",
                    first.declared_day_count,
                    second.declared_day_count,
                    first,
                )
            )

    dates_first = first.work_days.dates
    dates_second = second.work_days.dates
    if len(dates_first) != len(dates_second):
        findings.append(
            _field_mismatch(key, "work_day_total", len(dates_first), len(dates_second), first)
        )

    set_first, set_second = set(dates_first), set(dates_second)
    common = set_first & set_second
    if common:
        logger.debug("match (work_days) %s [first=second] %s", key, join_days(common))
    first_only = set_first - set_second
    second_only = set_second - set_first
    if first_only or second_only:
        findings.append(
            _field_mismatch(
                key, "work_days", join_days(first_only), join_days(second_only), first
            )
        )
    return findings


def reconcile(
    first: RecordCollection, second: RecordCollection, active_status: str
) -> ReconciliationResult:
    """Diff *first* against *second* by site key.

    Keys missing on either side are always reported. Field comparison only
    runs for keys whose first-source record has *active_status* and where
    neither side carries date errors.
    """
    result = ReconciliationResult(name=RECONCILIATION, title="First vs second source")
    only_first, only_second = diff_keys(first, second)
    result.only_in_first = only_first
    result.only_in_second = only_second

    if only_first:
        result.findings.append(
            Finding(
                kind=FindingKind.ONLY_IN_FIRST,
                message=f"Mismatch (site_key) [first-second] {'|'.join(only_first)}",
                field="site_key",
                value_first=list(only_first),
            )
        )
    if only_second:
        result.findings.append(
            Finding(
                kind=FindingKind.ONLY_IN_SECOND,
                message=f"Mismatch (site_key) [second-first] {'|'.join(only_second)}",
                field="site_key",
                value_second=list(only_second),
            )
        )

    for key in first.keys():
        record_first = first.get(key)
        record_second = second.get(key)
        if record_first is None or record_second is None:
            continue
        if record_first.status != active_status:
            continue
        if record_first.has_date_error or record_second.has_date_error:
            logger.debug("skipping field comparison for %s: date error", key)
            continue
        result.checked += 1
        result.findings.extend(compare_records(key, record_first, record_second))
    return result
