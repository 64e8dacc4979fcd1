# PL Forecast - Monthly profit & loss forecasting from trial balance exports
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Exceptions raised by PL Forecast.

Core computations never raise for data-quality issues (malformed amounts,
unknown months, zero sales): they degrade to 0 / None. The exceptions below
are reserved for failures the caller must see, such as an unreadable CSV or
an import batch with nothing to import.

All of them derive from ValueError so that callers written against plain
ValueError keep working.
"""


class PLForecastError(ValueError):
    """Base class for all PL Forecast errors."""


class TrialBalanceReadError(PLForecastError):
    """The trial balance CSV could not be read as a table."""


class NoDataToImportError(PLForecastError):
    """An import batch contained no usable rows or no column mapping."""

    def __init__(self, message: str = "No data to import.") -> None:
        super().__init__(message)


class InvalidPeriodError(PLForecastError):
    """A fiscal period given explicitly by the user is not usable."""


class StateFileError(PLForecastError):
    """The persisted application state could not be loaded."""
