import pytest

from pl_forecast.accounts import Account
from pl_forecast.engine import (
    CUMULATIVE_LABEL,
    MonthlyPL,
    build_monthly_pl,
    build_report,
    calculate_cumulative,
    calculate_pl,
    forecast_by_month,
    forecast_totals,
    month_over_month,
)
from pl_forecast.io import TrialBalanceRow
from pl_forecast.ledger import Ledger
from pl_forecast.periods import FiscalPeriod


def _ledger() -> Ledger:
    """Small ledger covering every P&L line."""
    ledger = Ledger(
        accounts=[
            Account("4000", "売上高", "PL", "Revenue"),
            Account("5000", "売上原価", "PL", "Expense"),
            Account("6000", "給料手当", "PL", "Expense"),
            Account("6100", "法人税等", "PL", "Expense"),
            Account("7000", "雑収入", "PL", "Other"),
            Account("1100", "現金", "BS"),
        ]
    )
    ledger.actuals = {
        "2025-01": {
            "4000": -1_000_000.0,
            "5000": 300_000.0,
            "6000": 200_000.0,
            "6100": 50_000.0,
            "7000": 10_000.0,
            "1100": 999_999.0,
        },
    }
    ledger.plan = {
        "2025-01": {"4000": -5_000_000.0},
        "2025-02": {"4000": -1_200_000.0, "5000": 360_000.0},
    }
    return ledger


# ---------------------------------------------------------------------------
# calculate_pl / calculate_cumulative
# ---------------------------------------------------------------------------


def test_calculate_pl_profits_and_margins() -> None:
    result = calculate_pl(
        MonthlyPL(
            month="2025-01",
            sales=1_000_000,
            cogs=400_000,
            sga=300_000,
            non_operating=50_000,
            extraordinary=-20_000,
            taxes=100_000,
            is_actual=True,
        )
    )

    assert result.gross_profit == 600_000
    assert result.operating_profit == 300_000
    assert result.net_income == 230_000
    assert result.gross_margin == pytest.approx(0.6)
    assert result.operating_margin == pytest.approx(0.3)
    # Input lines are carried over unchanged.
    assert result.month == "2025-01"
    assert result.is_actual is True
    assert result.extraordinary == -20_000


def test_calculate_pl_zero_sales_gives_no_margins() -> None:
    result = calculate_pl(MonthlyPL(month="2025-01", sales=0, cogs=100_000, sga=50_000))

    assert result.gross_profit == -100_000
    assert result.operating_profit == -150_000
    assert result.net_income == -150_000
    assert result.gross_margin is None
    assert result.operating_margin is None


def test_calculate_pl_negative_sales_keeps_plain_ratio() -> None:
    """Margins are plain ratios even when sales are negative (refunds)."""
    result = calculate_pl(
        MonthlyPL(month="2025-01", sales=-500_000, cogs=200_000, sga=100_000)
    )

    assert result.gross_profit == -700_000
    assert result.operating_profit == -800_000
    assert result.gross_margin == pytest.approx(1.4)
    assert result.operating_margin == pytest.approx(1.6)


def test_calculate_pl_accepts_already_calculated_item() -> None:
    once = calculate_pl(MonthlyPL(month="2025-01", sales=100, cogs=40, sga=10))
    twice = calculate_pl(once)
    assert twice == once


def test_calculate_cumulative_sums_then_derives() -> None:
    """Cumulative margins use total sales, not an average of monthly margins."""
    items = [
        MonthlyPL(
            month="2025-01",
            sales=1_000_000,
            cogs=400_000,
            sga=300_000,
            non_operating=50_000,
            taxes=100_000,
            is_actual=True,
        ),
        MonthlyPL(
            month="2025-02",
            sales=1_200_000,
            cogs=480_000,
            sga=350_000,
            non_operating=-30_000,
            taxes=120_000,
            is_actual=True,
        ),
    ]

    result = calculate_cumulative(items)

    assert result.month == CUMULATIVE_LABEL
    assert result.is_actual is False
    assert result.sales == 2_200_000
    assert result.cogs == 880_000
    assert result.sga == 650_000
    assert result.gross_profit == 1_320_000
    assert result.operating_profit == 670_000
    assert result.net_income == 500_000
    assert result.gross_margin == pytest.approx(0.6)
    assert result.operating_margin == pytest.approx(0.3045, abs=1e-4)


def test_calculate_cumulative_empty() -> None:
    result = calculate_cumulative([])

    assert result.sales == 0
    assert result.gross_profit == 0
    assert result.net_income == 0
    assert result.gross_margin is None
    assert result.operating_margin is None


# ---------------------------------------------------------------------------
# Ledger-driven computations
# ---------------------------------------------------------------------------


def test_forecast_by_month_excludes_other_and_bs_accounts() -> None:
    df = forecast_by_month(_ledger(), ["2025-01", "2025-02", "2025-03"])

    assert list(df.columns) == ["month", "revenue", "expense", "profit"]
    assert list(df["month"]) == ["2025-01", "2025-02", "2025-03"]

    jan = df.iloc[0]
    # Actual wins over the plan value of -5,000,000.
    assert jan["revenue"] == pytest.approx(-1_000_000)
    assert jan["expense"] == pytest.approx(550_000)
    assert jan["profit"] == pytest.approx(-1_550_000)

    feb = df.iloc[1]
    assert feb["revenue"] == pytest.approx(-1_200_000)
    assert feb["expense"] == pytest.approx(360_000)

    mar = df.iloc[2]
    assert mar["revenue"] == 0.0
    assert mar["expense"] == 0.0


def test_forecast_totals() -> None:
    totals = forecast_totals(forecast_by_month(_ledger(), ["2025-01", "2025-02"]))
    assert totals["revenue"] == pytest.approx(-2_200_000)
    assert totals["expense"] == pytest.approx(910_000)
    assert totals["profit"] == pytest.approx(-3_110_000)

    empty = forecast_totals(forecast_by_month(_ledger(), []))
    assert empty == {"revenue": 0.0, "expense": 0.0, "profit": 0.0}


def test_build_monthly_pl_splits_expense_lines() -> None:
    jan, feb = build_monthly_pl(_ledger(), ["2025-01", "2025-02"])

    assert jan.sales == pytest.approx(1_000_000)
    assert jan.cogs == pytest.approx(300_000)
    assert jan.sga == pytest.approx(200_000)
    assert jan.taxes == pytest.approx(50_000)
    assert jan.non_operating == pytest.approx(10_000)
    assert jan.extraordinary is None
    assert jan.is_actual is True

    assert feb.sales == pytest.approx(1_200_000)
    assert feb.cogs == pytest.approx(360_000)
    assert feb.sga == 0.0
    assert feb.is_actual is False


def test_sales_and_cogs_end_to_end() -> None:
    """A credit revenue row and a debit cost row give the expected gross profit."""
    ledger = Ledger()
    ledger.import_rows(
        [
            _tb_row("2025-01", "4000", "売上高", -1_000_000.0),
            _tb_row("2025-01", "5000", "売上原価", 300_000.0),
        ]
    )

    report = build_report(ledger, FiscalPeriod("2025-01", "2025-01"))
    month = report.months[0]

    assert month.sales == pytest.approx(1_000_000)
    assert month.cogs == pytest.approx(300_000)
    assert month.gross_profit == pytest.approx(700_000)
    assert month.gross_margin == pytest.approx(0.7)


def test_reclassification_is_reflected_on_next_computation() -> None:
    ledger = _ledger()
    before = build_monthly_pl(ledger, ["2025-01"])[0]

    ledger.reclassify("7000", "Revenue")
    after = build_monthly_pl(ledger, ["2025-01"])[0]

    assert before.sales == pytest.approx(1_000_000)
    assert after.sales == pytest.approx(1_010_000)
    assert after.non_operating == 0.0


def test_month_over_month() -> None:
    items = [
        calculate_pl(MonthlyPL(month="2025-01", sales=1000, cogs=400, sga=300)),
        calculate_pl(MonthlyPL(month="2025-02", sales=1100, cogs=400, sga=300)),
    ]
    mom = month_over_month(items)

    assert mom is not None
    assert mom.month == "2025-02"
    assert mom.previous_month == "2025-01"
    assert mom.sales == pytest.approx(0.1)
    assert mom.operating_profit == pytest.approx(100 / 300)

    assert month_over_month(items[:1]) is None

    zero = [
        calculate_pl(MonthlyPL(month="2025-01", sales=0, cogs=0, sga=0)),
        calculate_pl(MonthlyPL(month="2025-02", sales=10, cogs=0, sga=0)),
    ]
    zero_mom = month_over_month(zero)
    assert zero_mom is not None
    assert zero_mom.sales is None
    assert zero_mom.operating_profit is None


def test_build_report_covers_every_month_of_the_period() -> None:
    report = build_report(_ledger(), FiscalPeriod("2025-01", "2025-03"), "USD")

    assert report.currency == "USD"
    assert [m.month for m in report.months] == ["2025-01", "2025-02", "2025-03"]
    assert report.cumulative.sales == pytest.approx(2_200_000)
    assert report.months[2].gross_margin is None
    assert report.month_over_month is not None


def test_build_report_without_period() -> None:
    report = build_report(_ledger(), None)

    assert report.months == []
    assert report.cumulative.sales == 0
    assert report.month_over_month is None

    degenerate = build_report(_ledger(), FiscalPeriod("2025-06", "2025-01"))
    assert degenerate.months == []


def _tb_row(month, code, name, amount) -> TrialBalanceRow:
    return TrialBalanceRow(
        month=month,
        account_code=code,
        account_name=name,
        amount=amount,
        statement="PL",
    )
