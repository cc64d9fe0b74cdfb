"""Run driver: normalize both sources, run the checks and fold the verdict."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from workday_recon.checks import check_date_errors, check_day_counts, check_work_day_calendar
from workday_recon.config import WorkDaysConfig
from workday_recon.models import CheckResult, DayQueryResult, LoadSummary, RawRow, RecordCollection
from workday_recon.normalize import build_collection
from workday_recon.reconcile import ReconciliationResult, reconcile
from workday_recon.report import (
    ReportLine,
    format_check_result,
    format_day_query,
    format_records,
    query_day,
)


@dataclass
class RunOutcome:
    first: RecordCollection
    second: RecordCollection
    first_summary: LoadSummary
    second_summary: LoadSummary
    results: list[CheckResult] = field(default_factory=list)
    day_query: DayQueryResult | None = None

    @property
    def passed(self) -> bool:
        checks_ok = all(result.passed for result in self.results)
        query_ok = self.day_query is None or self.day_query.passed
        return checks_ok and query_ok

    @property
    def reconciliation(self) -> ReconciliationResult | None:
        for result in self.results:
            if isinstance(result, ReconciliationResult):
                return result
        return None

    def report_lines(self) -> list[ReportLine]:
        """Every report block in run order, ending with the overall verdict."""
        lines = format_records(self.first)
        for result in self.results:
            lines.extend(format_check_result(result))
        if self.day_query is not None:
            lines.extend(format_day_query(self.day_query))
        if self.passed:
            lines.append(ReportLine(logging.INFO, "== [Congratulations!] every check passed =="))
        else:
            lines.append(ReportLine(logging.INFO, "== [NG] one or more checks failed =="))
        return lines

    def to_dict(self) -> dict[str, object]:
        return {
            "passed": self.passed,
            "first": self.first_summary.to_dict(),
            "second": self.second_summary.to_dict(),
            "checks": [result.to_dict() for result in self.results],
            "day_query": None
            if self.day_query is None
            else {
                "days": [
                    {
                        "day": block.day,
                        "sites": [
                            {
                                "site_key": e.site_key,
                                "site_name": e.site_name,
                                "position": e.position,
                                "total": e.total,
                            }
                            for e in block.entries
                        ],
                    }
                    for block in self.day_query.blocks
                ],
                "findings": [f.to_dict() for f in self.day_query.findings],
            },
        }


def run_checks(
    first: RecordCollection,
    second: RecordCollection,
    cfg: WorkDaysConfig,
) -> list[CheckResult]:
    """Run the validation and reconciliation checks in report order."""
    return [
        check_date_errors(first, source="first"),
        check_date_errors(second, source="second"),
        check_day_counts(first, cfg.active_status),
        check_work_day_calendar(first, cfg.active_status, cfg.holidays),
        reconcile(first, second, cfg.active_status),
    ]


def run(
    first_rows: Iterable[RawRow],
    second_rows: Iterable[RawRow],
    cfg: WorkDaysConfig,
    *,
    print_days: str | None = None,
) -> RunOutcome:
    """Normalize both sources and run every check.

    Raises
    ------
    DuplicateSiteKeyError
        If either source repeats a site key.
    """
    first, first_summary = build_collection(
        first_rows, cfg.first, ignore_key_suffix=cfg.ignore_key_suffix, source="first"
    )
    second, second_summary = build_collection(
        second_rows, cfg.second, ignore_key_suffix=cfg.ignore_key_suffix, source="second"
    )
    outcome = RunOutcome(
        first=first,
        second=second,
        first_summary=first_summary,
        second_summary=second_summary,
        results=run_checks(first, second, cfg),
    )
    if print_days:
        outcome.day_query = query_day(first, print_days, cfg.active_status)
    return outcome
