# PL Forecast - Monthly profit & loss forecasting from trial balance exports
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Fiscal period helpers for PL Forecast.

This module defines the FiscalPeriod value object and the rules that fix it:

- a period entered explicitly by the user always wins,
- otherwise the period is inferred from the first import as the span
  [min(month), max(month)] of the imported rows,
- an existing period is never narrowed automatically.

Months are compared as ``YYYY-MM`` strings. Non-canonical months kept by the
normalizer take part in the comparison as raw text.
"""

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Optional, TypeVar

from .errors import InvalidPeriodError
from .io import TrialBalanceRow
from .months import filter_months, is_canonical_month, month_range, normalize_month

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class FiscalPeriod:
    """Contiguous span of months, both bounds inclusive."""

    start_month: str
    end_month: str

    def is_valid(self) -> bool:
        """Both bounds canonical and start <= end."""
        return (
            is_canonical_month(self.start_month)
            and is_canonical_month(self.end_month)
            and self.start_month <= self.end_month
        )

    def months(self) -> list[str]:
        """Ordered months of the period; empty for a degenerate period."""
        return month_range(self.start_month, self.end_month)

    @property
    def label(self) -> str:
        return f"{self.start_month} 〜 {self.end_month}"


def resolve_period(
    existing: Optional[FiscalPeriod], rows: Sequence[TrialBalanceRow]
) -> Optional[FiscalPeriod]:
    """Return the fiscal period to use after importing `rows`.

    Args:
        existing: Period already set (by the user or a previous import).
        rows: Normalized rows of the batch being imported.

    Returns:
        `existing` unchanged when set; otherwise the [min, max] month span of
        the rows; None when there is neither.
    """
    if existing is not None:
        return existing
    if not rows:
        return None

    months = [r.month for r in rows]
    period = FiscalPeriod(start_month=min(months), end_month=max(months))
    logger.info("Fiscal period inferred from import: %s", period.label)
    return period


def parse_fiscal_period(start: str, end: str) -> FiscalPeriod:
    """Build a FiscalPeriod from explicit user input.

    Both bounds go through ``normalize_month`` first, so "2025/04" is
    accepted.

    Raises:
        InvalidPeriodError: if a bound is not a month or if start > end.
    """
    start_month = normalize_month(start)
    end_month = normalize_month(end)

    for label, value, raw in (
        ("start", start_month, start),
        ("end", end_month, end),
    ):
        if not is_canonical_month(value):
            raise InvalidPeriodError(
                f"Invalid fiscal period {label} month {raw!r}, expected YYYY-MM."
            )

    if start_month > end_month:
        raise InvalidPeriodError(
            f"Fiscal period start month {start_month} is after end month {end_month}."
        )
    return FiscalPeriod(start_month=start_month, end_month=end_month)


def filter_by_period(
    items: Iterable[T],
    period: FiscalPeriod,
    key: Optional[Callable[[T], str]] = None,
) -> list[T]:
    """Keep the items whose month lies within the period (inclusive)."""
    return filter_months(items, period.start_month, period.end_month, key=key)
