# PL Forecast - Monthly profit & loss forecasting from trial balance exports
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
In-memory ledger of actual and planned amounts.

The Ledger holds:
- the list of discovered accounts (with their P&L category),
- ``actuals``: month -> account code -> amount, fed by imports,
- ``plan``:    month -> account code -> amount, fed by user edits.

Precedence rule
---------------
Whenever ``actuals[month][code]`` exists (even when it is 0), it wins over
``plan[month][code]``. Plan entries for months that also have actuals are not
deleted: they simply become dormant.

Mutation model
--------------
The ledger is mutated in place by a single writer through the methods below
(``record_actual``, ``set_plan``, ``clear_plan``, ``reclassify``,
``import_rows``). ``import_rows`` validates the whole batch before writing
anything, so a rejected import leaves the ledger untouched.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Optional

from .accounts import PL_CATEGORIES, Account, PLCategory, discover_accounts
from .errors import NoDataToImportError
from .io import TrialBalanceRow

logger = logging.getLogger(__name__)

MonthlyAmounts = dict[str, dict[str, float]]


@dataclass(frozen=True)
class ImportResult:
    """Summary of one import batch."""

    rows_imported: int
    accounts_added: int
    months: tuple[str, ...]


@dataclass
class Ledger:
    """Accounts plus per-month actual and plan amounts."""

    accounts: list[Account] = field(default_factory=list)
    actuals: MonthlyAmounts = field(default_factory=dict)
    plan: MonthlyAmounts = field(default_factory=dict)

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def get_account(self, code: str) -> Optional[Account]:
        for acc in self.accounts:
            if acc.code == code:
                return acc
        return None

    def pl_accounts(self) -> list[Account]:
        """Accounts that belong to the P&L statement, in discovery order."""
        return [a for a in self.accounts if a.statement == "PL"]

    def upsert_accounts(self, accounts: Iterable[Account]) -> int:
        """Add new accounts; existing codes keep their category.

        The display name of an existing account is refreshed when the new
        name is non-empty. Returns the number of accounts added.
        """
        added = 0
        for acc in accounts:
            existing = self.get_account(acc.code)
            if existing is None:
                self.accounts.append(acc)
                added += 1
            elif acc.name and acc.name != acc.code:
                existing.name = acc.name
        return added

    def reclassify(self, code: str, category: PLCategory) -> None:
        """Override the P&L category of an account, for every month.

        Raises:
            KeyError: if the account code is unknown.
            ValueError: if the category is not Revenue, Expense or Other.
        """
        if category not in PL_CATEGORIES:
            raise ValueError(
                f"Invalid P&L category {category!r}. "
                f"Expected one of: {', '.join(PL_CATEGORIES)}."
            )
        acc = self.get_account(code)
        if acc is None:
            raise KeyError(f"Unknown account code: {code}")
        acc.pl_category = category

    # ------------------------------------------------------------------
    # Actuals & plan
    # ------------------------------------------------------------------

    def record_actual(self, row: TrialBalanceRow) -> None:
        """Add the row amount to the actual of its month and account."""
        month_actuals = self.actuals.setdefault(row.month, {})
        month_actuals[row.account_code] = (
            month_actuals.get(row.account_code, 0.0) + row.amount
        )

    def set_plan(self, month: str, code: str, amount: float) -> None:
        """Set (overwrite) the planned amount of an account for a month."""
        self.plan.setdefault(month, {})[code] = float(amount)

    def clear_plan(self, code: str) -> None:
        """Remove the planned amounts of an account across all months."""
        for month_plan in self.plan.values():
            month_plan.pop(code, None)

    def has_actual(self, month: str, code: str) -> bool:
        return code in self.actuals.get(month, {})

    def is_plan_locked(self, month: str, code: str) -> bool:
        """True when a plan value for this cell would be shadowed by an actual."""
        return self.has_actual(month, code)

    def effective_value(self, month: str, code: str) -> float:
        """Actual if present (even 0), else plan, else 0."""
        month_actuals = self.actuals.get(month, {})
        if code in month_actuals:
            return month_actuals[code]
        return self.plan.get(month, {}).get(code, 0.0)

    def is_actual_month(self, month: str) -> bool:
        """True when the month holds at least one actual entry."""
        return bool(self.actuals.get(month))

    def actual_months(self) -> list[str]:
        """Sorted months holding actuals."""
        return sorted(m for m in self.actuals if self.actuals[m])

    def last_actual_month(self) -> str:
        """Latest month holding actuals, or "" when nothing was imported."""
        months = self.actual_months()
        return months[-1] if months else ""

    # ------------------------------------------------------------------
    # Imports
    # ------------------------------------------------------------------

    def import_rows(self, rows: Sequence[TrialBalanceRow]) -> ImportResult:
        """Import a batch of normalized rows as actuals.

        Accounts seen for the first time are created (with a seeded P&L
        category); amounts are accumulated, never overwritten.

        Raises:
            NoDataToImportError: if the batch is empty. Nothing is written.
        """
        if not rows:
            raise NoDataToImportError()

        added = self.upsert_accounts(discover_accounts(rows))
        for row in rows:
            self.record_actual(row)

        months = tuple(sorted({r.month for r in rows}))
        logger.info(
            "Imported %d row(s) over %d month(s), %d new account(s)",
            len(rows),
            len(months),
            added,
        )
        return ImportResult(
            rows_imported=len(rows), accounts_added=added, months=months
        )
