# PL Forecast - Monthly profit & loss forecasting from trial balance exports
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
View utilities for PL Forecast.

This module turns engine results into pandas DataFrames ready for console
display or CSV export. It does not compute anything financial itself: the
figures come from ``engine.py`` and are only reshaped and formatted here.

The main views are:

- report:   one row per month of the fiscal period plus a cumulative row,
            with profits and margins (``report_to_dataframe``),
- display:  the same table with amounts formatted in the business currency
            and margins as percentages; a margin that cannot be computed is
            shown as "–" (``format_report_table``),
- export:   effective value of every P&L account per month, followed by the
            revenue / expense / profit totals (``forecast_export_frame``).
"""

import math
from collections.abc import Sequence
from typing import Optional

import pandas as pd

from .engine import CalculatedPL, ForecastReport, forecast_by_month
from .ledger import Ledger
from .months import format_month_label

MISSING_PLACEHOLDER = "–"

CURRENCY_SYMBOLS: dict[str, str] = {"JPY": "¥", "USD": "$", "EUR": "€"}

REPORT_COLUMNS: list[str] = [
    "month",
    "is_actual",
    "sales",
    "cogs",
    "gross_profit",
    "sga",
    "operating_profit",
    "non_operating",
    "extraordinary",
    "taxes",
    "net_income",
    "gross_margin",
    "operating_margin",
]

_AMOUNT_COLUMNS = (
    "sales",
    "cogs",
    "gross_profit",
    "sga",
    "operating_profit",
    "non_operating",
    "extraordinary",
    "taxes",
    "net_income",
)


def _round_half_up(value: float) -> int:
    return int(math.floor(abs(value) + 0.5)) * (1 if value >= 0 else -1)


def format_currency(value: float, currency: str) -> str:
    """Format an amount without decimals, e.g. ``-¥500,000`` or ``$1,001``.

    Currencies without a known symbol are suffixed with their code.
    """
    rounded = _round_half_up(value)
    sign = "-" if rounded < 0 else ""
    digits = f"{abs(rounded):,}"
    symbol = CURRENCY_SYMBOLS.get(currency.upper())
    if symbol is None:
        return f"{sign}{digits} {currency}"
    return f"{sign}{symbol}{digits}"


def format_percentage(value: Optional[float]) -> str:
    """Format a ratio as a percentage with one decimal; None gives "–"."""
    if value is None:
        return MISSING_PLACEHOLDER
    return f"{value * 100:.1f}%"


def _row(item: CalculatedPL) -> dict:
    return {
        "month": item.month,
        "is_actual": item.is_actual,
        "sales": item.sales,
        "cogs": item.cogs,
        "gross_profit": item.gross_profit,
        "sga": item.sga,
        "operating_profit": item.operating_profit,
        "non_operating": item.non_operating or 0.0,
        "extraordinary": item.extraordinary or 0.0,
        "taxes": item.taxes or 0.0,
        "net_income": item.net_income,
        "gross_margin": item.gross_margin,
        "operating_margin": item.operating_margin,
    }


def report_to_dataframe(report: ForecastReport) -> pd.DataFrame:
    """One row per month in fiscal order, followed by the cumulative row.

    Margins that cannot be computed stay None (object column) rather than NaN.
    """
    rows = [_row(item) for item in report.months]
    rows.append(_row(report.cumulative))
    df = pd.DataFrame(rows, columns=REPORT_COLUMNS)
    for col in ("gross_margin", "operating_margin"):
        df[col] = pd.Series([r[col] for r in rows], index=df.index, dtype=object)
    return df


def format_report_table(report: ForecastReport) -> pd.DataFrame:
    """Display-ready report: formatted amounts, percentages and labels."""
    df = report_to_dataframe(report)
    out = pd.DataFrame()
    out["month"] = [
        format_month_label(m) if i < len(report.months) else "累計"
        for i, m in enumerate(df["month"])
    ]
    out["type"] = [
        ("actual" if a else "plan") if i < len(report.months) else ""
        for i, a in enumerate(df["is_actual"])
    ]
    for col in _AMOUNT_COLUMNS:
        out[col] = [format_currency(float(v), report.currency) for v in df[col]]
    for col in ("gross_margin", "operating_margin"):
        out[col] = [format_percentage(v) for v in df[col]]
    return out


def forecast_export_frame(ledger: Ledger, months: Sequence[str]) -> pd.DataFrame:
    """Per-account effective values per month, with trend totals.

    Columns: ``month``, one ``code:name`` column per P&L account (discovery
    order), then ``Revenue(total)``, ``Expense(total)`` and ``Profit(total)``.
    """
    pl_accounts = ledger.pl_accounts()
    trend = forecast_by_month(ledger, months).set_index("month")

    rows = []
    for m in months:
        row: dict[str, object] = {"month": m}
        for acc in pl_accounts:
            row[f"{acc.code}:{acc.name}"] = ledger.effective_value(m, acc.code)
        row["Revenue(total)"] = float(trend.at[m, "revenue"])
        row["Expense(total)"] = float(trend.at[m, "expense"])
        row["Profit(total)"] = float(trend.at[m, "profit"])
        rows.append(row)

    columns = (
        ["month"]
        + [f"{a.code}:{a.name}" for a in pl_accounts]
        + ["Revenue(total)", "Expense(total)", "Profit(total)"]
    )
    return pd.DataFrame(rows, columns=columns)
