# PL Forecast - Monthly profit & loss forecasting from trial balance exports
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Month helpers for PL Forecast.

A month is identified by its canonical text form ``YYYY-MM``. Keeping months
as plain strings means that ordering is lexicographic, which matches calendar
order as long as every month is canonical.

Trial balance exports from accounting services write months in many shapes
(``2025/01``, ``2025.1``, ``2025-01-31``, ``2025年01月`` ...).
``normalize_month`` brings them back to the canonical form when it can, and
otherwise returns the trimmed raw text unchanged: an unknown month is kept as
a best-effort key rather than rejected.
"""

import re
from collections.abc import Callable, Iterable
from datetime import date
from typing import Optional, TypeVar

T = TypeVar("T")

CANONICAL_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")

# Accepted literal forms, in priority order. Each pattern must match the whole
# string; day components are validated against the calendar.
_MONTH_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^(?P<year>\d{4})-(?P<month>\d{2})$"),
    re.compile(r"^(?P<year>\d{4})/(?P<month>\d{2})$"),
    re.compile(r"^(?P<year>\d{4})\.(?P<month>\d{2})$"),
    re.compile(r"^(?P<year>\d{4})-(?P<month>\d{1})$"),
    re.compile(r"^(?P<year>\d{4})/(?P<month>\d{1})$"),
    re.compile(r"^(?P<year>\d{4})\.(?P<month>\d{1})$"),
    re.compile(r"^(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})$"),
    re.compile(r"^(?P<year>\d{4})/(?P<month>\d{2})/(?P<day>\d{2})$"),
)

# Localized form, e.g. "2025年01月" (freee and similar exports).
_LOCALIZED_PATTERN = re.compile(r"^(?P<year>\d{4})-(?P<month>\d{1,2})$")


def _strict_match(pattern: re.Pattern[str], text: str) -> Optional[str]:
    """Return the canonical month if `text` fully matches `pattern`."""
    m = pattern.match(text)
    if m is None:
        return None

    year = int(m.group("year"))
    month = int(m.group("month"))
    day = int(m.groupdict().get("day") or 1)
    try:
        date(year, month, day)
    except ValueError:
        return None
    return f"{year:04d}-{month:02d}"


def normalize_month(raw: Optional[str]) -> str:
    """Normalize a raw month cell to ``YYYY-MM``.

    The first pattern that parses strictly wins. If none does, the trimmed
    input is returned unchanged; empty or missing values give ``""``.

    Examples:
        "2025/01"     -> "2025-01"
        "2025.1"      -> "2025-01"
        "2025-01-31"  -> "2025-01"
        "2025年01月"  -> "2025-01"
        "Jan 2025"    -> "Jan 2025"
    """
    if raw is None:
        return ""
    text = str(raw).strip()
    if not text:
        return ""

    for pattern in _MONTH_PATTERNS:
        canonical = _strict_match(pattern, text)
        if canonical is not None:
            return canonical

    localized = text.replace("年", "-", 1).replace("月", "", 1)
    canonical = _strict_match(_LOCALIZED_PATTERN, localized)
    if canonical is not None:
        return canonical

    return text


def is_canonical_month(value: Optional[str]) -> bool:
    """Return True if `value` is a valid ``YYYY-MM`` month."""
    if value is None:
        return False
    m = CANONICAL_MONTH_RE.match(value)
    return m is not None and 1 <= int(m.group(2)) <= 12


def _split(month: str) -> tuple[int, int]:
    year, mon = month.split("-")
    return int(year), int(mon)


def month_range(start: str, end: str) -> list[str]:
    """Return every calendar month from `start` to `end`, both inclusive.

    The sequence is empty when `start` is after `end` or when either bound
    is not a canonical month.
    """
    if not (is_canonical_month(start) and is_canonical_month(end)):
        return []

    year, mon = _split(start)
    end_year, end_mon = _split(end)

    months: list[str] = []
    while (year, mon) <= (end_year, end_mon):
        months.append(f"{year:04d}-{mon:02d}")
        mon += 1
        if mon > 12:
            year += 1
            mon = 1
    return months


def filter_months(
    items: Iterable[T],
    start: str,
    end: str,
    key: Optional[Callable[[T], str]] = None,
) -> list[T]:
    """Keep items whose month lies in [start, end] (inclusive, lexicographic).

    `key` extracts the month from an item; by default items are months.
    """
    if key is None:
        return [item for item in items if start <= str(item) <= end]
    return [item for item in items if start <= key(item) <= end]


def format_month_label(month: str) -> str:
    """Short display label, e.g. "2025-03" -> "3月"."""
    if not is_canonical_month(month):
        return month
    return f"{_split(month)[1]}月"
