# PL Forecast - Monthly profit & loss forecasting from trial balance exports
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
PL Forecast
-----------

A Python-based profit-and-loss forecasting tool for small businesses. It
ingests monthly trial balance exports from accounting services, merges
actual results with user-entered plan figures and derives profitability
metrics per month and over the fiscal period.

Main capabilities:
- tolerant CSV ingestion (column mapping inference, month formats such as
  "2025/01" or "2025年01月", debit/credit sign handling),
- account discovery with a keyword-based P&L category seed,
- an in-memory ledger where actuals always win over plan figures,
- fiscal period inference from the first import,
- monthly and cumulative gross / operating / net profit and margins,
- month-over-month deltas,
- a JSON state file and a command-line interface.

Version: 0.1.0

Usage:
    python -m pl_forecast.cli --help
"""

__all__ = ["engine", "ledger", "io", "periods", "views"]

__version__ = "0.1.0"
