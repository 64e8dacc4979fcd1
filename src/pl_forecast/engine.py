# PL Forecast - Monthly profit & loss forecasting from trial balance exports
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Forecast engine for PL Forecast.

This module turns the ledger into profitability figures. Every function is a
pure recomputation from the current ledger, account categories and fiscal
period: nothing is cached, so a reclassified account or a new plan value is
reflected in every month the next time the engine runs.

The engine has three main responsibilities:

1. Revenue / expense trend
   ------------------------
   ``forecast_by_month()`` sums effective values (actual, falling back to
   plan) of Revenue and Expense accounts for every month of the period.
   Accounts classified as 'Other' are left out of this trend.

2. Monthly P&L
   ------------
   ``build_monthly_pl()`` walks the P&L accounts once more and splits them
   into the lines of a profit-and-loss statement:

   - Revenue accounts  -> sales (absolute value; revenue is credit-normal in
     the ledger but presented positive),
   - Expense accounts  -> cogs when the name looks like a cost of sales,
     taxes when it looks like an income tax, sga otherwise,
   - Other accounts    -> non-operating result (signed).

3. Derived metrics
   ----------------
   ``calculate_pl()`` and ``calculate_cumulative()`` derive gross profit,
   operating profit, net income and margins. A margin whose denominator
   (sales) is exactly 0 is None. ``month_over_month()`` compares the last two
   months of a series.

``build_report()`` chains the three steps for a fiscal period and returns a
ForecastReport consumed by the views and the CLI.
"""

from collections.abc import Sequence
from dataclasses import dataclass, fields
from typing import Optional

import pandas as pd

from .ledger import Ledger
from .periods import FiscalPeriod

CUMULATIVE_LABEL = "cumulative"

# Expense sub-classification used only for the monthly P&L. Cost keywords are
# checked before tax keywords.
COGS_KEYWORDS: tuple[str, ...] = ("原価", "仕入", "cost of", "cogs", "purchase")
TAX_KEYWORDS: tuple[str, ...] = (
    "法人税",
    "住民税",
    "事業税",
    "income tax",
    "corporate tax",
)


@dataclass(frozen=True)
class MonthlyPL:
    """Profit-and-loss line of one month.

    Optional lines (non-operating, extraordinary, taxes) are None when the
    month has nothing to report for them; they count as 0 in every formula.
    """

    month: str
    sales: float
    cogs: float
    sga: float
    non_operating: Optional[float] = None
    extraordinary: Optional[float] = None
    taxes: Optional[float] = None
    is_actual: bool = False


@dataclass(frozen=True)
class CalculatedPL(MonthlyPL):
    """MonthlyPL with its derived profits and margins."""

    gross_profit: float = 0.0
    operating_profit: float = 0.0
    net_income: float = 0.0
    gross_margin: Optional[float] = None
    operating_margin: Optional[float] = None


@dataclass(frozen=True)
class MonthOverMonth:
    """Relative change between the last two months of a series."""

    month: str
    previous_month: str
    sales: Optional[float]
    operating_profit: Optional[float]


@dataclass(frozen=True)
class ForecastReport:
    """Everything the report layer needs for one fiscal period."""

    period: Optional[FiscalPeriod]
    currency: str
    months: list[CalculatedPL]
    cumulative: CalculatedPL
    month_over_month: Optional[MonthOverMonth]


# ---------------------------------------------------------------------------
# Revenue / expense trend
# ---------------------------------------------------------------------------


def forecast_by_month(ledger: Ledger, months: Sequence[str]) -> pd.DataFrame:
    """Revenue, expense and profit per month.

    Args:
        ledger: Ledger holding accounts, actuals and plan.
        months: Ordered months to compute (usually ``FiscalPeriod.months()``).

    Returns:
        A DataFrame with columns ``month, revenue, expense, profit`` in the
        order of `months`. Amounts are summed with their ledger sign.
    """
    pl_accounts = ledger.pl_accounts()
    out = []
    for m in months:
        revenue = 0.0
        expense = 0.0
        for acc in pl_accounts:
            value = ledger.effective_value(m, acc.code)
            if acc.pl_category == "Revenue":
                revenue += value
            elif acc.pl_category == "Expense":
                expense += value
        out.append(
            {
                "month": m,
                "revenue": revenue,
                "expense": expense,
                "profit": revenue - expense,
            }
        )
    return pd.DataFrame(out, columns=["month", "revenue", "expense", "profit"])


def forecast_totals(by_month: pd.DataFrame) -> dict[str, float]:
    """Totals of the revenue / expense trend over all its months."""
    revenue = float(by_month["revenue"].sum()) if not by_month.empty else 0.0
    expense = float(by_month["expense"].sum()) if not by_month.empty else 0.0
    return {"revenue": revenue, "expense": expense, "profit": revenue - expense}


# ---------------------------------------------------------------------------
# Monthly P&L
# ---------------------------------------------------------------------------


def _expense_line(name: str) -> str:
    n = name.lower()
    if any(k in n for k in COGS_KEYWORDS):
        return "cogs"
    if any(k in n for k in TAX_KEYWORDS):
        return "taxes"
    return "sga"


def build_monthly_pl(ledger: Ledger, months: Sequence[str]) -> list[MonthlyPL]:
    """Convert the ledger into one MonthlyPL per month.

    Accounts without a P&L category are ignored. ``extraordinary`` is never
    fed from the ledger and stays None.
    """
    pl_accounts = ledger.pl_accounts()
    out: list[MonthlyPL] = []
    for m in months:
        lines = {"sales": 0.0, "cogs": 0.0, "sga": 0.0, "taxes": 0.0}
        non_operating = 0.0
        for acc in pl_accounts:
            value = ledger.effective_value(m, acc.code)
            if acc.pl_category == "Revenue":
                lines["sales"] += abs(value)
            elif acc.pl_category == "Expense":
                lines[_expense_line(acc.name)] += value
            elif acc.pl_category == "Other":
                non_operating += value

        out.append(
            MonthlyPL(
                month=m,
                sales=lines["sales"],
                cogs=lines["cogs"],
                sga=lines["sga"],
                non_operating=non_operating,
                taxes=lines["taxes"],
                is_actual=ledger.is_actual_month(m),
            )
        )
    return out


# ---------------------------------------------------------------------------
# Derived metrics
# ---------------------------------------------------------------------------


def _margin(numerator: float, sales: float) -> Optional[float]:
    if sales == 0:
        return None
    return numerator / sales


def _derive(item: MonthlyPL) -> CalculatedPL:
    gross_profit = item.sales - item.cogs
    operating_profit = gross_profit - item.sga
    net_income = (
        operating_profit
        + (item.non_operating or 0.0)
        + (item.extraordinary or 0.0)
        - (item.taxes or 0.0)
    )
    return CalculatedPL(
        **{f.name: getattr(item, f.name) for f in fields(MonthlyPL)},
        gross_profit=gross_profit,
        operating_profit=operating_profit,
        net_income=net_income,
        gross_margin=_margin(gross_profit, item.sales),
        operating_margin=_margin(operating_profit, item.sales),
    )


def calculate_pl(item: MonthlyPL) -> CalculatedPL:
    """Derive profits and margins for one month."""
    return _derive(item)


def calculate_cumulative(items: Sequence[MonthlyPL]) -> CalculatedPL:
    """Sum every line over `items`, then derive profits and margins once.

    Margins use total sales as denominator (not an average of monthly
    margins). An empty sequence gives all-zero totals and None margins.
    """
    totals = MonthlyPL(
        month=CUMULATIVE_LABEL,
        sales=sum(i.sales for i in items),
        cogs=sum(i.cogs for i in items),
        sga=sum(i.sga for i in items),
        non_operating=sum(i.non_operating or 0.0 for i in items),
        extraordinary=sum(i.extraordinary or 0.0 for i in items),
        taxes=sum(i.taxes or 0.0 for i in items),
        is_actual=False,
    )
    return _derive(totals)


def _relative_change(current: float, previous: float) -> Optional[float]:
    if previous == 0:
        return None
    return (current - previous) / previous


def month_over_month(items: Sequence[CalculatedPL]) -> Optional[MonthOverMonth]:
    """Change of sales and operating profit between the last two months.

    Returns None when fewer than two months are given. A delta is None when
    its previous value is 0.
    """
    if len(items) < 2:
        return None
    current, previous = items[-1], items[-2]
    return MonthOverMonth(
        month=current.month,
        previous_month=previous.month,
        sales=_relative_change(current.sales, previous.sales),
        operating_profit=_relative_change(
            current.operating_profit, previous.operating_profit
        ),
    )


def build_report(
    ledger: Ledger, period: Optional[FiscalPeriod], currency: str = "JPY"
) -> ForecastReport:
    """Compute the full profitability report for a fiscal period.

    Without a period (or with a degenerate one) the month list is empty and
    the cumulative line is all zeros.
    """
    months = period.months() if period is not None else []
    calculated = [calculate_pl(m) for m in build_monthly_pl(ledger, months)]
    return ForecastReport(
        period=period,
        currency=currency,
        months=calculated,
        cumulative=calculate_cumulative(calculated),
        month_over_month=month_over_month(calculated),
    )
