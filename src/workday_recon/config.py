"""Run configuration: sheet layouts, status gate, holidays and ignore rules."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date
from numbers import Integral
from pathlib import Path
from typing import Any

from workday_recon.dates import parse_date_list
from workday_recon.models import FindingKind


def _to_positive_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    result = int(value)
    if result < 1:
        raise ValueError(f"{field_name} must be >= 1 (columns and rows are 1-based)")
    return result


def _to_optional_column(value: Any, field_name: str) -> int | None:
    if value is None:
        return None
    if not isinstance(value, bool) and isinstance(value, Integral) and int(value) <= 0:
        # The settings file marks an unused column with -1.
        return None
    return _to_positive_int(value, field_name)


def split_key_list(raw: str | None) -> frozenset[str]:
    """Parse a comma-delimited ignore list into a set of site keys."""
    if not raw:
        return frozenset()
    return frozenset(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class SourceLayout:
    """Where a source keeps its fields. All indices are 1-based."""

    sheet_name: str
    first_data_row: int
    site_key_column: int
    site_name_column: int
    day_count_column: int
    work_days_column: int
    site_number_column: int | None = None
    status_column: int | None = None
    ignore_keys: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        if not isinstance(self.sheet_name, str) or not self.sheet_name:
            raise ValueError("sheet_name must be a non-empty string")
        for name in (
            "first_data_row",
            "site_key_column",
            "site_name_column",
            "day_count_column",
            "work_days_column",
        ):
            object.__setattr__(self, name, _to_positive_int(getattr(self, name), name))
        for name in ("site_number_column", "status_column"):
            object.__setattr__(self, name, _to_optional_column(getattr(self, name), name))
        object.__setattr__(self, "ignore_keys", frozenset(self.ignore_keys))


@dataclass(frozen=True)
class HolidayCalendar:
    """Public and business-specific holidays, checked before the weekend."""

    public: frozenset[date] = frozenset()
    business: frozenset[date] = frozenset()

    @classmethod
    def from_strings(cls, public: str = "", business: str = "") -> HolidayCalendar:
        return cls(
            public=frozenset(parse_date_list(public)),
            business=frozenset(parse_date_list(business)),
        )

    def __contains__(self, day: object) -> bool:
        return day in self.public or day in self.business

    def classify(self, day: date) -> FindingKind | None:
        """Return the non-working-day kind of *day*, or ``None`` for a weekday."""
        if day in self.public:
            return FindingKind.PUBLIC_HOLIDAY
        if day in self.business:
            return FindingKind.BUSINESS_HOLIDAY
        weekday = day.weekday()
        if weekday == 5:
            return FindingKind.SATURDAY
        if weekday == 6:
            return FindingKind.SUNDAY
        return None


@dataclass(frozen=True)
class WorkDaysConfig:
    first: SourceLayout
    second: SourceLayout
    active_status: str
    survey_status: str = ""
    holidays: HolidayCalendar = field(default_factory=HolidayCalendar)
    ignore_key_suffix: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.active_status, str) or not self.active_status:
            raise ValueError("active_status must be a non-empty string")
        if not isinstance(self.ignore_key_suffix, str):
            raise TypeError("ignore_key_suffix must be a string")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WorkDaysConfig:
        """Build a config from a settings mapping.

        Keys use the settings-file names (``FirstDataRow``, ``SiteKeyColumn``,
        ``SecondExcelSiteKeyColumn`` ...) or their snake_case equivalents.
        """
        flat = {_snake(k): v for k, v in data.items()}

        def pick(*names: str, default: Any = None) -> Any:
            for name in names:
                if name in flat and flat[name] is not None:
                    return flat[name]
            return default

        def text(*names: str) -> str:
            value = pick(*names, default="")
            if not isinstance(value, str):
                raise TypeError(f"{names[0]} must be a string")
            return value

        try:
            first = SourceLayout(
                sheet_name=pick("first_excel_sheet_name", "first_sheet_name"),
                first_data_row=pick("first_data_row"),
                site_key_column=pick("site_key_column"),
                site_name_column=pick("site_name_column"),
                day_count_column=pick("work_day_count_column", "day_count_column"),
                work_days_column=pick("work_days_column"),
                site_number_column=pick("site_number_column"),
                status_column=pick("status_column"),
                ignore_keys=split_key_list(
                    text("ignore_first_excel_at_site_key", "ignore_first_site_keys")
                ),
            )
            second = SourceLayout(
                sheet_name=pick("second_excel_sheet_name", "second_sheet_name"),
                first_data_row=pick("second_excel_first_data_row", "second_first_data_row"),
                site_key_column=pick("second_excel_site_key_column", "second_site_key_column"),
                site_name_column=pick(
                    "second_excel_site_name_column", "second_site_name_column"
                ),
                day_count_column=pick(
                    "second_excel_work_day_count_column",
                    "second_day_count_column",
                ),
                work_days_column=pick(
                    "second_excel_work_days_column", "second_work_days_column"
                ),
                site_number_column=pick(
                    "second_excel_site_number_column", "second_site_number_column"
                ),
                status_column=pick("second_excel_status_column", "second_status_column"),
                ignore_keys=split_key_list(
                    text("ignore_second_excel_at_site_key", "ignore_second_site_keys")
                ),
            )
            holidays = HolidayCalendar.from_strings(
                public=text("public_holidays_in_japan", "public_holidays"),
                business=text("bussiness_holidays", "business_holidays"),
            )
            return cls(
                first=first,
                second=second,
                active_status=text("check_status_at_work", "active_status"),
                survey_status=text("check_status_at_survey", "survey_status"),
                holidays=holidays,
                ignore_key_suffix=text("ignore_site_key_suffix", "ignore_key_suffix"),
            )
        except TypeError as exc:
            raise ValueError(f"Invalid configuration: {exc}") from exc


def _snake(name: str) -> str:
    out: list[str] = []
    for idx, ch in enumerate(name):
        if ch.isupper() and idx > 0 and not name[idx - 1].isupper():
            out.append("_")
        out.append(ch.lower())
    return "".join(out)


def load_config(path: Path) -> WorkDaysConfig:
    """Read a JSON settings file and return a validated :class:`WorkDaysConfig`.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    ValueError
        If the file is not valid JSON or a setting is missing or malformed.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8-sig"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Config file is not valid JSON: {path} ({exc})") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Config file must hold a JSON object: {path}")
    return WorkDaysConfig.from_dict(data)
