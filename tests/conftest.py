"""Shared fixtures: layouts, configs and on-disk workbooks."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from pathlib import Path
from typing import Any

import pytest
from openpyxl import Workbook

from workday_recon.config import HolidayCalendar, SourceLayout, WorkDaysConfig
from workday_recon.models import RawRow

ACTIVE = "in work"

FIRST_HEADER = ["site key", "site number", "site name", "status", "day count", "work days"]
SECOND_HEADER = ["site key", "site name", "day count", "work days"]


def first_layout(**overrides: Any) -> SourceLayout:
    values: dict[str, Any] = {
        "sheet_name": "Schedule",
        "first_data_row": 2,
        "site_key_column": 1,
        "site_number_column": 2,
        "site_name_column": 3,
        "status_column": 4,
        "day_count_column": 5,
        "work_days_column": 6,
    }
    values.update(overrides)
    return SourceLayout(**values)


def second_layout(**overrides: Any) -> SourceLayout:
    values: dict[str, Any] = {
        "sheet_name": "Works",
        "first_data_row": 2,
        "site_key_column": 1,
        "site_name_column": 2,
        "day_count_column": 3,
        "work_days_column": 4,
    }
    values.update(overrides)
    return SourceLayout(**values)


def make_config(**overrides: Any) -> WorkDaysConfig:
    values: dict[str, Any] = {
        "first": first_layout(),
        "second": second_layout(),
        "active_status": ACTIVE,
        "holidays": HolidayCalendar(),
    }
    values.update(overrides)
    return WorkDaysConfig(**values)


def rows(data: Sequence[Sequence[Any]], start: int = 2) -> list[RawRow]:
    return [RawRow(row_number=start + i, values=tuple(v)) for i, v in enumerate(data)]


def write_workbook(
    path: Path, sheet_name: str, header: Sequence[str], data: Sequence[Sequence[Any]]
) -> Path:
    wb = Workbook()
    ws = wb.active
    assert ws is not None
    ws.title = sheet_name
    ws.append(list(header))
    for row in data:
        ws.append(list(row))
    wb.save(path)
    return path


SETTINGS: dict[str, Any] = {
    "FirstExcelSheetName": "Schedule",
    "FirstDataRow": 2,
    "SiteKeyColumn": 1,
    "SiteNumberColumn": 2,
    "SiteNameColumn": 3,
    "StatusColumn": 4,
    "WorkDayCountColumn": 5,
    "WorkDaysColumn": 6,
    "SecondExcelSheetName": "Works",
    "SecondExcelFirstDataRow": 2,
    "SecondExcelSiteKeyColumn": 1,
    "SecondExcelSiteNameColumn": 2,
    "SecondExcelWorkDayCountColumn": 3,
    "SecondExcelWorkDaysColumn": 4,
    "CheckStatusAtSurvey": "in survey",
    "CheckStatusAtWork": ACTIVE,
    "PublicHolidaysInJapan": "2024/01/01|2024/01/08",
    "BussinessHolidays": "2024/05/07",
    "IgnoreSiteKeySuffix": "-X",
    "IgnoreFirstExcelAtSiteKey": "S-IGNORED",
    "IgnoreSecondExcelAtSiteKey": "",
}


@pytest.fixture
def settings() -> dict[str, Any]:
    return dict(SETTINGS)


@pytest.fixture(autouse=True)
def _reset_package_logger() -> Iterator[None]:
    pkg_logger = logging.getLogger("workday_recon")
    yield
    for handler in list(pkg_logger.handlers):
        pkg_logger.removeHandler(handler)
        handler.close()
    pkg_logger.setLevel(logging.NOTSET)
    pkg_logger.propagate = True
