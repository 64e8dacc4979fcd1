import pytest

from pl_forecast.accounts import Account
from pl_forecast.engine import build_report
from pl_forecast.ledger import Ledger
from pl_forecast.periods import FiscalPeriod
from pl_forecast.views import (
    REPORT_COLUMNS,
    forecast_export_frame,
    format_currency,
    format_percentage,
    format_report_table,
    report_to_dataframe,
)


@pytest.mark.parametrize(
    "value, currency, expected",
    [
        (1_000_000, "JPY", "¥1,000,000"),
        (-500_000, "JPY", "-¥500,000"),
        (0, "JPY", "¥0"),
        (1000.50, "USD", "$1,001"),
        (-500.99, "USD", "-$501"),
        (1234.4, "eur", "€1,234"),
        (1000, "CHF", "1,000 CHF"),
    ],
)
def test_format_currency(value: float, currency: str, expected: str) -> None:
    assert format_currency(value, currency) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        (0.356, "35.6%"),
        (-0.125, "-12.5%"),
        (0, "0.0%"),
        (1.5, "150.0%"),
        (None, "–"),
    ],
)
def test_format_percentage(value, expected: str) -> None:
    assert format_percentage(value) == expected


def _ledger() -> Ledger:
    return Ledger(
        accounts=[
            Account("4000", "売上高", "PL", "Revenue"),
            Account("5000", "売上原価", "PL", "Expense"),
            Account("7000", "雑収入", "PL", "Other"),
            Account("1100", "現金", "BS"),
        ],
        actuals={"2025-01": {"4000": -1000.0, "5000": 300.0, "7000": 5.0}},
        plan={"2025-02": {"4000": -1200.0, "5000": 360.0}},
    )


def test_report_to_dataframe_has_months_then_cumulative() -> None:
    report = build_report(_ledger(), FiscalPeriod("2025-01", "2025-03"))
    df = report_to_dataframe(report)

    assert list(df.columns) == REPORT_COLUMNS
    assert list(df["month"]) == ["2025-01", "2025-02", "2025-03", "cumulative"]
    assert list(df["is_actual"]) == [True, False, False, False]
    assert df.loc[3, "sales"] == pytest.approx(2200)
    assert df.loc[3, "gross_profit"] == pytest.approx(1540)
    # Margin of a month without sales stays None instead of NaN.
    assert df.loc[2, "gross_margin"] is None


def test_format_report_table_labels_and_formats() -> None:
    report = build_report(_ledger(), FiscalPeriod("2025-01", "2025-03"))
    table = format_report_table(report)

    assert list(table["month"]) == ["1月", "2月", "3月", "累計"]
    assert list(table["type"]) == ["actual", "plan", "plan", ""]
    assert table.loc[0, "sales"] == "¥1,000"
    assert table.loc[0, "gross_margin"] == "70.0%"
    assert table.loc[2, "gross_margin"] == "–"


def test_forecast_export_frame_columns_and_totals() -> None:
    df = forecast_export_frame(_ledger(), ["2025-01", "2025-02"])

    assert list(df.columns) == [
        "month",
        "4000:売上高",
        "5000:売上原価",
        "7000:雑収入",
        "Revenue(total)",
        "Expense(total)",
        "Profit(total)",
    ]
    assert df.loc[0, "4000:売上高"] == pytest.approx(-1000)
    assert df.loc[0, "7000:雑収入"] == pytest.approx(5)
    assert df.loc[0, "Revenue(total)"] == pytest.approx(-1000)
    assert df.loc[0, "Expense(total)"] == pytest.approx(300)
    assert df.loc[1, "Profit(total)"] == pytest.approx(-1560)


def test_forecast_export_frame_without_months() -> None:
    df = forecast_export_frame(_ledger(), [])
    assert df.empty
    assert df.columns[0] == "month"
