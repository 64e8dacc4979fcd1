# PL Forecast - Monthly profit & loss forecasting from trial balance exports
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Account utilities for PL Forecast.

Accounts are discovered from imported trial balance rows: the first time an
account code is seen, an Account is created with its display name and the
statement it belongs to (PL or BS).

Responsibilities:
- Hold the Account value object.
- Seed a P&L category (Revenue / Expense / Other) from the account name,
  using fixed keyword lists. The seed is only a default: users may override
  it per account code and the override is never re-derived from the name.
- Build the list of accounts discovered in a batch of normalized rows.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, Optional

if TYPE_CHECKING:
    from .io import TrialBalanceRow

Statement = Literal["PL", "BS"]
PLCategory = Literal["Revenue", "Expense", "Other"]

PL_CATEGORIES: tuple[str, ...] = ("Revenue", "Expense", "Other")

REVENUE_KEYWORDS: tuple[str, ...] = (
    "売上",
    "sales",
    "revenue",
    "収益",
    "interest income",
    "operating income",
)

# Cost-of-sales names also contain a revenue word ("売上原価", "cost of revenue");
# they are never revenue.
REVENUE_EXCLUSIONS: tuple[str, ...] = ("原価", "cost of sales", "cost of revenue")

EXPENSE_KEYWORDS: tuple[str, ...] = (
    "費",
    "原価",
    "cost",
    "expense",
    "支払",
    "減価償却",
    "租税",
    "外注",
    "広告",
    "地代",
    "人件",
    "給料",
    "賃金",
    "旅費",
    "通信",
    "水道",
    "光熱",
)


@dataclass
class Account:
    """An account of the chart discovered from imports.

    Attributes:
        code: Account code, unique key.
        name: Display name (falls back to the code when the export has none).
        statement: 'PL' or 'BS'.
        pl_category: 'Revenue', 'Expense' or 'Other'; only set for PL accounts.
    """

    code: str
    name: str
    statement: Statement
    pl_category: Optional[PLCategory] = None


def _contains_any(text: str, keywords: Iterable[str]) -> bool:
    return any(k in text for k in keywords)


def classify_pl_category(name: str) -> PLCategory:
    """Return the default P&L category for an account name.

    Matching is a case-insensitive substring search: revenue keywords are
    tried first (cost-of-sales names excluded), then expense keywords;
    anything else is 'Other'.
    """
    n = str(name or "").lower()
    is_cost_of_sales = _contains_any(n, REVENUE_EXCLUSIONS)
    if _contains_any(n, REVENUE_KEYWORDS) and not is_cost_of_sales:
        return "Revenue"
    if _contains_any(n, EXPENSE_KEYWORDS):
        return "Expense"
    return "Other"


def discover_accounts(rows: Iterable["TrialBalanceRow"]) -> list[Account]:
    """Build one Account per distinct code, keeping the first row seen."""
    by_code: dict[str, Account] = {}
    for r in rows:
        if r.account_code in by_code:
            continue
        name = r.account_name or r.account_code
        by_code[r.account_code] = Account(
            code=r.account_code,
            name=name,
            statement=r.statement,
            pl_category=classify_pl_category(name) if r.statement == "PL" else None,
        )
    return list(by_code.values())
