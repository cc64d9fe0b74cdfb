"""Work-days cell parsing: separator cleanup and strict single-day parsing."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date, datetime
from typing import Any

import pandas as pd

from workday_recon.models import DateTokenError, ParsedDates

logger = logging.getLogger(__name__)

DELIMITER = "|"
DISPLAY_FMT = "%Y/%m/%d"
_TOKEN_FORMATS = ("%Y/%m/%d", "%Y-%m-%d", "%Y.%m.%d")
_WEEKDAY_ABBR = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

# ── Separators ───────────────────────────────────────────────────


def normalize_separators(text: str) -> str:
    """Collapse the accepted separators (space, ``、``, ``,``) into ``|``."""
    return text.replace(" ", "").replace("、", ",").replace(",", DELIMITER)


def split_tokens(text: str) -> list[str]:
    """Split a delimited work-days string; an empty string has no tokens."""
    normalized = normalize_separators(text)
    if normalized == "":
        return []
    return normalized.split(DELIMITER)


# ── Parsing ──────────────────────────────────────────────────────


def parse_date_token(token: str) -> date | None:
    """Parse one token strictly; return ``None`` when no format matches."""
    token = token.strip()
    if not token:
        return None
    for fmt in _TOKEN_FORMATS:
        parsed = pd.to_datetime(token, format=fmt, errors="coerce")
        if not pd.isna(parsed):
            return parsed.date()
    return None


def parse_date_list(text: str) -> list[date]:
    """Parse a pipe-delimited list where every entry must be valid.

    Raises
    ------
    ValueError
        If any entry is not a date.
    """
    days: list[date] = []
    for token in split_tokens(text):
        day = parse_date_token(token)
        if day is None:
            raise ValueError(f"Invalid date in list: {token!r}")
        days.append(day)
    return days


def parse_work_days(value: Any, *, context: str = "") -> ParsedDates:
    """Turn a raw work-days cell into :class:`ParsedDates`.

    A native date counts as one token. Text is split on the normalized
    delimiter; bad or repeated tokens are recorded as errors and parsing
    carries on with the rest of the cell.
    """
    if value is None:
        return ParsedDates()
    if isinstance(value, datetime):
        return ParsedDates(dates=(value.date(),))
    if isinstance(value, date):
        return ParsedDates(dates=(value,))

    seen: list[date] = []
    errors: list[DateTokenError] = []
    for token in split_tokens(str(value)):
        day = parse_date_token(token)
        if day is None:
            errors.append(DateTokenError(token=token, reason="unparseable"))
            logger.debug("Could not parse date %r (%s)", token, context)
            continue
        if day in seen:
            errors.append(DateTokenError(token=token, reason="duplicate"))
            logger.error("Duplicate date %s (%s)", token, context)
            continue
        seen.append(day)
    return ParsedDates(dates=tuple(sorted(seen)), errors=tuple(errors))


# ── Formatting ───────────────────────────────────────────────────


def format_day(day: date) -> str:
    return day.strftime(DISPLAY_FMT)


def format_day_with_weekday(day: date) -> str:
    return f"{format_day(day)}({_WEEKDAY_ABBR[day.weekday()]})"


def join_days(days: Iterable[date]) -> str:
    """Render dates sorted and pipe-joined, e.g. ``2024/05/03|2024/05/04``."""
    return DELIMITER.join(format_day(d) for d in sorted(days))
