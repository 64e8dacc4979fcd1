import pytest

from pl_forecast.errors import InvalidPeriodError
from pl_forecast.io import TrialBalanceRow
from pl_forecast.periods import (
    FiscalPeriod,
    filter_by_period,
    parse_fiscal_period,
    resolve_period,
)


def _rows(*months: str) -> list[TrialBalanceRow]:
    return [
        TrialBalanceRow(
            month=m,
            account_code="4000",
            account_name="売上高",
            amount=-1.0,
            statement="PL",
        )
        for m in months
    ]


def test_resolve_period_infers_span_from_rows() -> None:
    """Without an existing period, the span [min, max] of the batch is used."""
    period = resolve_period(None, _rows("2025-03", "2024-12", "2025-01"))
    assert period == FiscalPeriod("2024-12", "2025-03")
    assert period.months() == ["2024-12", "2025-01", "2025-02", "2025-03"]


def test_resolve_period_existing_period_wins() -> None:
    """An existing period is returned unchanged, never widened or narrowed."""
    existing = FiscalPeriod("2025-04", "2026-03")
    assert resolve_period(existing, _rows("2024-01", "2027-12")) is existing


def test_resolve_period_empty_batch() -> None:
    assert resolve_period(None, []) is None


def test_resolve_period_non_canonical_months_compare_as_text() -> None:
    """Unknown month strings take part in the comparison as raw text."""
    period = resolve_period(None, _rows("2025-01", "Jan 2025"))
    assert period == FiscalPeriod("2025-01", "Jan 2025")
    assert not period.is_valid()
    assert period.months() == []


def test_parse_fiscal_period_normalizes_input() -> None:
    period = parse_fiscal_period("2025/04", "2026年3月")
    assert period == FiscalPeriod("2025-04", "2026-03")
    assert len(period.months()) == 12
    assert period.is_valid()


@pytest.mark.parametrize(
    "start, end",
    [
        ("2025-06", "2025-01"),
        ("April", "2025-12"),
        ("2025-01", ""),
    ],
)
def test_parse_fiscal_period_rejects_invalid_input(start: str, end: str) -> None:
    with pytest.raises(InvalidPeriodError):
        parse_fiscal_period(start, end)


def test_degenerate_period_has_no_months() -> None:
    period = FiscalPeriod("2025-06", "2025-01")
    assert not period.is_valid()
    assert period.months() == []


def test_filter_by_period_inclusive_bounds() -> None:
    """filter_by_period keeps items in [start, end], both bounds included."""
    months = ["2024-12", "2025-01", "2025-02", "2025-03"]

    assert filter_by_period(months, FiscalPeriod("2024-12", "2025-03")) == months
    assert filter_by_period(months, FiscalPeriod("2025-06", "2025-07")) == []
