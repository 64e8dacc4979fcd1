# PL Forecast - Monthly profit & loss forecasting from trial balance exports
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Application state for PL Forecast.

The AppState aggregates everything the user works on:

- business:  name and presentation currency,
- fiscal:    the fiscal period (None until set or inferred),
- ledger:    accounts, actuals and plan,
- notes:     free text.

It is persisted as a single JSON document with the shape

    {"business": {...}, "fiscal": {...} | null, "accounts": [...],
     "actuals": {...}, "plan": {...}, "notes": "..."}

Keys are camelCase (``startMonth``, ``plCategory``) so that existing saves
load unchanged.
Optional fields are omitted rather than written as null.

Importing a trial balance also goes through AppState, because an import
touches both the ledger and the fiscal period.
"""

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

from .accounts import PL_CATEGORIES, Account
from .errors import NoDataToImportError, StateFileError
from .io import ColumnMapping, RawTable, normalize_rows
from .ledger import ImportResult, Ledger
from .periods import FiscalPeriod, parse_fiscal_period, resolve_period

logger = logging.getLogger(__name__)


@dataclass
class Business:
    """Organisation the forecast is made for."""

    name: str = ""
    currency: str = "JPY"


@dataclass
class AppState:
    business: Business = field(default_factory=Business)
    fiscal: Optional[FiscalPeriod] = None
    ledger: Ledger = field(default_factory=Ledger)
    notes: Optional[str] = None

    # ------------------------------------------------------------------
    # Operations touching several parts of the state
    # ------------------------------------------------------------------

    def import_table(self, table: RawTable, mapping: ColumnMapping) -> ImportResult:
        """Normalize and import a raw trial balance table.

        The fiscal period is inferred from the imported months when it is
        not set yet. Nothing is modified when the mapping is incomplete or
        when no row survives normalization.

        Raises:
            NoDataToImportError: if there is nothing to import.
        """
        missing = mapping.missing_fields()
        if missing:
            raise NoDataToImportError(
                f"No data to import: unmapped field(s) {', '.join(missing)}."
            )

        rows = normalize_rows(table.records, mapping)
        if not rows:
            raise NoDataToImportError()

        fiscal = resolve_period(self.fiscal, rows)
        result = self.ledger.import_rows(rows)
        self.fiscal = fiscal
        return result

    def set_fiscal_period(self, start: str, end: str) -> FiscalPeriod:
        """Set the fiscal period from user input (always overrides)."""
        self.fiscal = parse_fiscal_period(start, end)
        return self.fiscal

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the persisted blob shape."""
        accounts: list[dict[str, Any]] = []
        for acc in self.ledger.accounts:
            item: dict[str, Any] = {
                "code": acc.code,
                "name": acc.name,
                "statement": acc.statement,
            }
            if acc.pl_category is not None:
                item["plCategory"] = acc.pl_category
            accounts.append(item)

        data: dict[str, Any] = {
            "business": {
                "name": self.business.name,
                "currency": self.business.currency,
            },
            "fiscal": (
                {
                    "startMonth": self.fiscal.start_month,
                    "endMonth": self.fiscal.end_month,
                }
                if self.fiscal is not None
                else None
            ),
            "accounts": accounts,
            "actuals": {m: dict(v) for m, v in self.ledger.actuals.items()},
            "plan": {m: dict(v) for m, v in self.ledger.plan.items()},
        }
        if self.notes is not None:
            data["notes"] = self.notes
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AppState":
        """Rebuild an AppState from the persisted blob shape.

        Unknown keys are ignored. Amounts that are not numbers are read as
        0.0, and an unknown P&L category is dropped so that it can be
        re-seeded by the user.
        """
        business_data = data.get("business") or {}
        business = Business(
            name=str(business_data.get("name") or ""),
            currency=str(business_data.get("currency") or "JPY"),
        )

        fiscal = None
        fiscal_data = data.get("fiscal")
        if isinstance(fiscal_data, Mapping):
            fiscal = FiscalPeriod(
                start_month=str(fiscal_data.get("startMonth") or ""),
                end_month=str(fiscal_data.get("endMonth") or ""),
            )

        accounts: list[Account] = []
        for item in data.get("accounts") or []:
            statement = "BS" if item.get("statement") == "BS" else "PL"
            category = item.get("plCategory")
            if category not in PL_CATEGORIES:
                category = None
            accounts.append(
                Account(
                    code=str(item["code"]),
                    name=str(item.get("name") or item["code"]),
                    statement=statement,
                    pl_category=category if statement == "PL" else None,
                )
            )

        notes = data.get("notes")
        return cls(
            business=business,
            fiscal=fiscal,
            ledger=Ledger(
                accounts=accounts,
                actuals=_amounts_from_dict(data.get("actuals")),
                plan=_amounts_from_dict(data.get("plan")),
            ),
            notes=str(notes) if notes is not None else None,
        )


def _amounts_from_dict(raw: Any) -> dict[str, dict[str, float]]:
    out: dict[str, dict[str, float]] = {}
    if not isinstance(raw, Mapping):
        return out
    for month, by_code in raw.items():
        if not isinstance(by_code, Mapping):
            continue
        month_amounts: dict[str, float] = {}
        for code, value in by_code.items():
            try:
                month_amounts[str(code)] = float(value)
            except (TypeError, ValueError):
                month_amounts[str(code)] = 0.0
        out[str(month)] = month_amounts
    return out


def load_state(path: Union[str, "os.PathLike[str]"]) -> AppState:
    """Load the application state from a JSON file.

    A missing file gives a fresh, empty state.

    Raises:
        StateFileError: if the file exists but is not a valid state document.
    """
    p = Path(path)
    if not p.is_file():
        return AppState()

    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise StateFileError(f"Failed to read state file: {p}") from exc

    if not isinstance(data, dict):
        raise StateFileError(f"Invalid state file {p}, expected a JSON object.")

    try:
        return AppState.from_dict(data)
    except (KeyError, TypeError, AttributeError) as exc:
        raise StateFileError(f"Invalid state file content: {p}") from exc


def save_state(state: AppState, path: Union[str, "os.PathLike[str]"]) -> None:
    """Write the application state as JSON (UTF-8, non-ASCII kept)."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(
        json.dumps(state.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8"
    )
    logger.debug("State saved to %s", p)

