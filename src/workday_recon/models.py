"""Data models / typed records used across the package."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from numbers import Integral
from typing import Any

UNSET_DAY_COUNT = -1


def _to_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    result = int(value)
    if result < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return result


def _to_string_list(values: Sequence[Any] | None, field_name: str) -> list[str]:
    if values is None:
        return []
    if isinstance(values, str):
        raise TypeError(f"{field_name} must be a sequence of strings")
    normalized: list[str] = []
    for item in values:
        if not isinstance(item, str):
            raise TypeError(f"{field_name} items must be strings")
        normalized.append(item)
    return normalized


class DuplicateSiteKeyError(ValueError):
    """Raised when a keyed collection receives a site key it already holds."""


# ── Raw input ────────────────────────────────────────────────────


class CellKind(str, Enum):
    NUMBER = "number"
    TEXT = "text"
    DATE = "date"
    BLANK = "blank"
    OTHER = "other"


def cell_kind(value: Any) -> CellKind:
    """Classify a raw cell value the way a spreadsheet types it."""
    if value is None:
        return CellKind.BLANK
    if isinstance(value, bool):
        return CellKind.OTHER
    if isinstance(value, (int, float)):
        return CellKind.NUMBER
    if isinstance(value, (datetime, date)):
        return CellKind.DATE
    if isinstance(value, str):
        return CellKind.BLANK if value == "" else CellKind.TEXT
    return CellKind.OTHER


@dataclass(frozen=True)
class RawRow:
    """One spreadsheet row with 1-based typed cell access."""

    row_number: int
    values: tuple[Any, ...] = ()

    def cell(self, column: int) -> Any:
        if column < 1 or column > len(self.values):
            return None
        return self.values[column - 1]

    def kind(self, column: int) -> CellKind:
        return cell_kind(self.cell(column))

    def text(self, column: int) -> str:
        value = self.cell(column)
        if value is None:
            return ""
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value)


# ── Records ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class DateTokenError:
    """A work-days token that could not be used."""

    token: str
    reason: str  # "unparseable" | "duplicate"


@dataclass(frozen=True)
class ParsedDates:
    """Dates parsed from one work-days cell, sorted ascending.

    ``errors`` lists the tokens that failed to parse or repeated an earlier
    date; any error disqualifies the record from downstream checks.
    """

    dates: tuple[date, ...] = ()
    errors: tuple[DateTokenError, ...] = ()

    @property
    def has_error(self) -> bool:
        return bool(self.errors)

    def __len__(self) -> int:
        return len(self.dates)

    def __iter__(self) -> Iterator[date]:
        return iter(self.dates)

    def __contains__(self, day: object) -> bool:
        return day in self.dates

    def position(self, day: date) -> int:
        """Return the 1-based position of *day*, or 0 if absent."""
        try:
            return self.dates.index(day) + 1
        except ValueError:
            return 0


@dataclass(frozen=True)
class WorkDayRecord:
    site_key: str | None
    site_number: str = ""
    site_name: str = ""
    status: str = ""
    declared_day_count: int = UNSET_DAY_COUNT
    work_days: ParsedDates = field(default_factory=ParsedDates)

    def __post_init__(self) -> None:
        if isinstance(self.declared_day_count, bool) or not isinstance(
            self.declared_day_count, Integral
        ):
            raise TypeError("declared_day_count must be an integer")
        if self.declared_day_count < UNSET_DAY_COUNT:
            raise ValueError("declared_day_count must be >= -1")

    @property
    def has_date_error(self) -> bool:
        return self.work_days.has_error

    @property
    def has_day_count(self) -> bool:
        return self.declared_day_count != UNSET_DAY_COUNT

    def label(self) -> str:
        return f"key:{self.site_key or '-'},number:{self.site_number},name:{self.site_name}"


class RecordCollection:
    """Ordered collection of records, indexed by site key.

    With ``unique_keys`` every record needs a site key and a repeated key
    raises :class:`DuplicateSiteKeyError`; otherwise the first record wins
    the index and later ones are kept in insertion order only.
    """

    def __init__(self, records: Iterable[WorkDayRecord] = (), *, unique_keys: bool = True) -> None:
        self.unique_keys = unique_keys
        self._records: list[WorkDayRecord] = []
        self._by_key: dict[str, WorkDayRecord] = {}
        for record in records:
            self.add(record)

    def add(self, record: WorkDayRecord) -> None:
        key = record.site_key
        if self.unique_keys and not key:
            raise ValueError("A keyed collection needs a site key on every record")
        if key:
            if key in self._by_key:
                if self.unique_keys:
                    raise DuplicateSiteKeyError(f"Duplicate site key: {key!r}")
            else:
                self._by_key[key] = record
        self._records.append(record)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[WorkDayRecord]:
        return iter(self._records)

    def __contains__(self, key: object) -> bool:
        return key in self._by_key

    def get(self, key: str) -> WorkDayRecord | None:
        return self._by_key.get(key)

    def keys(self) -> list[str]:
        """Site keys in insertion order."""
        return list(self._by_key)

    def with_status(self, status: str) -> list[WorkDayRecord]:
        return [r for r in self._records if r.status == status]


@dataclass
class LoadSummary:
    """Row accounting for one normalized source.

    Contract invariant: ``rows_seen == records + skipped + ignored``.
    """

    rows_seen: int = 0
    records: int = 0
    skipped: int = 0
    ignored: int = 0
    warnings: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.rows_seen = _to_non_negative_int(self.rows_seen, "rows_seen")
        self.records = _to_non_negative_int(self.records, "records")
        self.skipped = _to_non_negative_int(self.skipped, "skipped")
        self.ignored = _to_non_negative_int(self.ignored, "ignored")
        self.warnings = _to_string_list(self.warnings, "warnings")
        if self.records + self.skipped + self.ignored != self.rows_seen:
            raise ValueError("rows_seen must equal records + skipped + ignored")

    def to_dict(self) -> dict[str, Any]:
        return {
            "rows_seen": self.rows_seen,
            "records": self.records,
            "skipped": self.skipped,
            "ignored": self.ignored,
            "warnings": list(self.warnings),
        }


# ── Results ──────────────────────────────────────────────────────


class Status(str, Enum):
    PASS_ = "pass"
    FAIL = "fail"
    WARN = "warn"


class FindingKind(str, Enum):
    DATE_ERROR = "date_error"
    COUNT_MISMATCH = "count_mismatch"
    PUBLIC_HOLIDAY = "public_holiday"
    BUSINESS_HOLIDAY = "business_holiday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"
    ONLY_IN_FIRST = "only_in_first"
    ONLY_IN_SECOND = "only_in_second"
    FIELD_MISMATCH = "field_mismatch"
    DAY_QUERY_ERROR = "day_query_error"


@dataclass(frozen=True)
class Finding:
    kind: FindingKind
    message: str
    site_key: str | None = None
    site_number: str = ""
    site_name: str = ""
    field: str | None = None
    value_first: Any = None
    value_second: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "site_key": self.site_key,
            "site_number": self.site_number,
            "site_name": self.site_name,
            "field": self.field,
            "value_first": self.value_first,
            "value_second": self.value_second,
        }


@dataclass
class CheckResult:
    """Outcome of one independent check."""

    name: str
    title: str
    findings: list[Finding] = field(default_factory=list)
    warning_only: bool = False
    checked: int = 0

    @property
    def passed(self) -> bool:
        return not self.findings

    @property
    def status(self) -> Status:
        if self.passed:
            return Status.PASS_
        return Status.WARN if self.warning_only else Status.FAIL

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "title": self.title,
            "status": self.status.value,
            "checked": self.checked,
            "findings": [f.to_dict() for f in self.findings],
        }


@dataclass(frozen=True)
class DayQueryEntry:
    site_key: str | None
    site_name: str
    position: int
    total: int


@dataclass
class DayQueryBlock:
    day: date
    entries: list[DayQueryEntry] = field(default_factory=list)


@dataclass
class RunManifest:
    """Audit-trail manifest for a single run."""

    tool: str = "workday-recon"
    version: str = ""
    first_path: str = ""
    second_path: str = ""
    first_sha256: str = ""
    second_sha256: str = ""
    created_at_utc: str = ""
    first_records: int = 0
    second_records: int = 0
    passed: bool = True

    def __post_init__(self) -> None:
        self.first_records = _to_non_negative_int(self.first_records, "first_records")
        self.second_records = _to_non_negative_int(self.second_records, "second_records")

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool,
            "version": self.version,
            "first_path": self.first_path,
            "second_path": self.second_path,
            "first_sha256": self.first_sha256,
            "second_sha256": self.second_sha256,
            "created_at_utc": self.created_at_utc,
            "first_records": self.first_records,
            "second_records": self.second_records,
            "passed": self.passed,
        }


@dataclass
class DayQueryResult:
    """Sites scheduled on each queried day, plus the problems met on the way."""

    blocks: list[DayQueryBlock] = field(default_factory=list)
    findings: list[Finding] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.findings
