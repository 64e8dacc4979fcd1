# PL Forecast - Monthly profit & loss forecasting from trial balance exports
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
I/O module for PL Forecast.

This module handles reading trial balance exports from CSV files and
normalizing each raw record into a TrialBalanceRow ready for the ledger.

Input format
------------
Exports from accounting services do not share column names, so every cell is
first read as opaque text and a ColumnMapping tells which raw column holds
which field. The recommended canonical columns are:

    month, account_code, account_name, amount, statement, dc

e.g. ``2025-01,4000,売上高,1000000,PL,C``.

``infer_column_mapping`` pre-fills the mapping from the header row with a
keyword search (English and Japanese names). It never fails: when nothing
matches, it falls back to the column position so that every field is mapped
to *some* column.

Normalization rules
-------------------
- month:     ``normalize_month`` (unknown forms are kept as-is),
- amount:    thousands separators and whitespace stripped; unparsable -> 0,
- statement: 'BS' if the mapped cell contains "BS", else 'PL',
- dc:        credit ('C' / 貸) forces a negative amount, debit ('D' / 借)
             forces a positive one; anything else keeps the parsed sign.

The sign convention is ledger-native: revenue accounts (credit-normal)
arrive negative, expense accounts (debit-normal) positive.

A row is skipped when its month or its account code is empty.
"""

import logging
import math
import os
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Optional, Union

import pandas as pd

from .accounts import Statement
from .errors import TrialBalanceReadError
from .months import normalize_month

logger = logging.getLogger(__name__)

TEMPLATE_COLUMNS: tuple[str, ...] = (
    "month",
    "account_code",
    "account_name",
    "amount",
    "statement",
    "dc",
)

TEMPLATE_ROWS: tuple[tuple[str, ...], ...] = (
    ("2025-01", "4000", "売上高", "1000000", "PL", "C"),
    ("2025-01", "5000", "売上原価", "300000", "PL", "D"),
    ("2025-02", "4000", "売上高", "1100000", "PL", "C"),
)

# Candidate header names per field, tried in order (lower-cased).
MONTH_CANDIDATES = (
    "month",
    "ym",
    "date",
    "期間",
    "月",
    "会計月",
    "会計期間",
    "年月",
)
ACCOUNT_CODE_CANDIDATES = ("account_code", "code", "科目コード", "勘定科目コード")
ACCOUNT_NAME_CANDIDATES = (
    "account_name",
    "name",
    "科目名",
    "勘定科目",
    "勘定科目名",
)
AMOUNT_CANDIDATES = (
    "amount",
    "金額",
    "balance",
    "残高",
    "合計",
    "debit",
    "credit",
)
STATEMENT_CANDIDATES = ("statement", "種類", "区分", "財務諸表", "pl/bs")
DC_CANDIDATES = ("dc", "借貸", "借方/貸方", "借方貸方", "side")


@dataclass(frozen=True)
class ColumnMapping:
    """Raw column names holding each semantic field.

    `dc` is optional: when None, amounts keep the sign found in the file.
    """

    month: str
    account_code: str
    account_name: str
    amount: str
    statement: str
    dc: Optional[str] = None

    def missing_fields(self) -> list[str]:
        """Names of required fields that are not mapped to any column."""
        required = {
            "month": self.month,
            "account_code": self.account_code,
            "account_name": self.account_name,
            "amount": self.amount,
            "statement": self.statement,
        }
        return [field for field, col in required.items() if not col]


@dataclass(frozen=True)
class TrialBalanceRow:
    """One normalized trial balance line."""

    month: str
    account_code: str
    account_name: str
    amount: float
    statement: Statement


@dataclass(frozen=True)
class RawTable:
    """A CSV file read as text: header list + header-keyed records."""

    headers: list[str]
    records: list[dict[str, str]]


# ---------------------------------------------------------------------------
# Column mapping inference
# ---------------------------------------------------------------------------


def _guess(lower_map: Mapping[str, str], candidates: Sequence[str]) -> Optional[str]:
    for cand in candidates:
        if cand in lower_map:
            return lower_map[cand]
    return None


def _positional(headers: Sequence[str], index: int) -> str:
    if index < len(headers):
        return headers[index]
    return headers[0] if headers else ""


def infer_column_mapping(headers: Sequence[str]) -> ColumnMapping:
    """Guess a ColumnMapping from a header row.

    For each field, the first candidate keyword found among the headers
    (compared case-insensitively) wins. Otherwise the field falls back to
    its position (1st header for month, 2nd for account code, ...), or to
    the first header when the file has fewer columns. The debit/credit
    column has no positional fallback.

    Args:
        headers: Header names as read from the file.

    Returns:
        A ColumnMapping referencing the original header spelling.
    """
    headers = [str(h) for h in headers]
    lower_map: dict[str, str] = {}
    for h in headers:
        # First spelling wins when two headers only differ by case.
        lower_map.setdefault(h.strip().lower(), h)

    return ColumnMapping(
        month=_guess(lower_map, MONTH_CANDIDATES) or _positional(headers, 0),
        account_code=_guess(lower_map, ACCOUNT_CODE_CANDIDATES)
        or _positional(headers, 1),
        account_name=_guess(lower_map, ACCOUNT_NAME_CANDIDATES)
        or _positional(headers, 2),
        amount=_guess(lower_map, AMOUNT_CANDIDATES) or _positional(headers, 3),
        statement=_guess(lower_map, STATEMENT_CANDIDATES) or _positional(headers, 4),
        dc=_guess(lower_map, DC_CANDIDATES),
    )


# ---------------------------------------------------------------------------
# Cell conversions (all total: they never raise)
# ---------------------------------------------------------------------------


def parse_amount(raw: object) -> float:
    """Parse an amount cell; returns 0.0 when the value cannot be parsed."""
    if raw is None:
        return 0.0
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        value = float(raw)
        return value if math.isfinite(value) else 0.0

    text = "".join(str(raw).replace(",", "").split())
    # float() accepts digit-group underscores ("1_000"); amount cells do not.
    if not text or "_" in text:
        return 0.0
    try:
        value = float(text)
    except ValueError:
        return 0.0
    return value if math.isfinite(value) else 0.0


def parse_statement(raw: object) -> Statement:
    """'BS' when the upper-cased cell contains "BS", 'PL' otherwise."""
    return "BS" if "BS" in str(raw or "").upper() else "PL"


def apply_debit_credit(amount: float, dc: object) -> float:
    """Force the amount sign from a debit/credit marker.

    Credit ('C' or a 貸 marker) gives -|amount|, debit ('D' or a 借 marker)
    gives +|amount|. Unknown or missing markers keep the sign as parsed.
    """
    marker = str(dc or "").strip().upper()
    if marker == "C" or "貸" in marker:
        return -abs(amount)
    if marker == "D" or "借" in marker:
        return abs(amount)
    return amount


def _cell(record: Mapping[str, object], column: Optional[str]) -> str:
    if not column:
        return ""
    value = record.get(column)
    if value is None:
        return ""
    return str(value)


def normalize_row(
    record: Mapping[str, object], mapping: ColumnMapping
) -> Optional[TrialBalanceRow]:
    """Normalize one raw CSV record.

    Returns:
        A TrialBalanceRow, or None when the row must be skipped (empty month
        or empty account code).
    """
    month = normalize_month(_cell(record, mapping.month))
    account_code = _cell(record, mapping.account_code).strip()
    if not month or not account_code:
        return None

    amount = parse_amount(_cell(record, mapping.amount))
    if mapping.dc:
        amount = apply_debit_credit(amount, _cell(record, mapping.dc))

    return TrialBalanceRow(
        month=month,
        account_code=account_code,
        account_name=_cell(record, mapping.account_name).strip(),
        amount=amount,
        statement=parse_statement(_cell(record, mapping.statement)),
    )


def normalize_rows(
    records: Iterable[Mapping[str, object]], mapping: ColumnMapping
) -> list[TrialBalanceRow]:
    """Normalize a batch of records, dropping the invalid ones."""
    rows: list[TrialBalanceRow] = []
    skipped = 0
    for record in records:
        row = normalize_row(record, mapping)
        if row is None:
            skipped += 1
            continue
        rows.append(row)

    if skipped:
        logger.info("Skipped %d row(s) with an empty month or account code", skipped)
    return rows


# ---------------------------------------------------------------------------
# CSV files
# ---------------------------------------------------------------------------


def read_trial_balance_csv(path: Union[str, "os.PathLike[str]"]) -> RawTable:
    """Read a trial balance CSV as text.

    Every cell is kept as a string (no type inference, no NaN), blank lines
    are skipped and a UTF-8 BOM is tolerated.

    Raises:
        FileNotFoundError: if the file does not exist.
        TrialBalanceReadError: if the file cannot be parsed as CSV.
    """
    try:
        df = pd.read_csv(
            path,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            encoding="utf-8-sig",
        )
    except FileNotFoundError:
        raise
    except pd.errors.EmptyDataError as exc:
        raise TrialBalanceReadError(f"CSV file is empty: {path}") from exc
    except (pd.errors.ParserError, UnicodeDecodeError) as exc:
        raise TrialBalanceReadError(f"Could not read CSV file: {path}") from exc

    headers = [str(c) for c in df.columns]
    records = [
        {h: str(v) for h, v in zip(headers, values)}
        for values in df.itertuples(index=False, name=None)
    ]
    return RawTable(headers=headers, records=records)


def write_template_csv(path: Union[str, "os.PathLike[str]"]) -> None:
    """Write a sample trial balance CSV with the canonical columns."""
    df = pd.DataFrame(list(TEMPLATE_ROWS), columns=list(TEMPLATE_COLUMNS))
    df.to_csv(path, index=False, encoding="utf-8")
