# PL Forecast - Monthly profit & loss forecasting from trial balance exports
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Command-Line Interface (CLI) for PL Forecast.

This module wires together the building blocks of PL Forecast:

- configuration (business, fiscal period, column mapping, display options),
- the JSON state file (accounts, actuals, plan),
- trial balance import,
- the forecast engine and its tabular views.

The CLI is intentionally thin: it does not implement accounting or
financial logic itself. Every command loads the state, applies one
operation and saves the state back.


Commands
--------

``import CSV``
    Read a trial balance export, infer the column mapping from its header
    (overridable in ``[import.mapping]``), normalize the rows and accumulate
    them as actuals. The fiscal period is inferred from the first import.

``template PATH``
    Write a sample trial balance CSV with the canonical columns.

``fiscal START END``
    Set the fiscal period explicitly (YYYY-MM).

``accounts list`` / ``accounts reclassify CODE CATEGORY``
    Show discovered accounts, or override the P&L category of one.

``plan set MONTH CODE AMOUNT`` / ``plan clear CODE``
    Enter a planned amount, or clear the plan of an account for all months.
    Actuals always win over plan values.

``report``
    Compute the monthly and cumulative profitability report for the fiscal
    period, rendered as a console table and/or CSV file.

``export``
    Write the per-account forecast CSV (effective values + totals).

``sync {freee,mf}``
    Placeholder for accounting-service API synchronization (not
    implemented; use CSV import).


Configuration
-------------

By default, the CLI reads ``pl_forecast_config.toml`` from the current
directory when it exists, and falls back to built-in defaults otherwise.
Use ``--config PATH`` to point to another file and ``--state PATH`` to
override the state file location.
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from . import __version__
from .accounts import PL_CATEGORIES
from .config import (
    DEFAULT_CONFIG_FILE,
    DISPLAY_MODES,
    AppConfig,
    default_config,
    load_app_config,
)
from .engine import build_report, forecast_by_month, forecast_totals
from .errors import InvalidPeriodError, PLForecastError
from .io import read_trial_balance_csv, write_template_csv
from .months import is_canonical_month, normalize_month
from .state import AppState, load_state, save_state
from .views import (
    format_currency,
    format_percentage,
    format_report_table,
    forecast_export_frame,
    report_to_dataframe,
)

SYNC_SERVICES = {"freee": "freee", "mf": "Money Forward"}


def _build_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the CLI."""
    ap = argparse.ArgumentParser(
        prog="pl-forecast",
        description=(
            "PL Forecast - monthly profit & loss forecasting. Imports trial "
            "balance exports, merges actuals with planned figures and reports "
            "gross, operating and net profit per month and cumulatively."
        ),
    )

    ap.add_argument(
        "--version",
        action="store_true",
        help="Show the installed version of pl_forecast and exit.",
    )
    ap.add_argument(
        "--config",
        dest="config_path",
        help=(
            "Path to the TOML configuration file. If omitted, "
            f"'{DEFAULT_CONFIG_FILE}' in the current directory is used when present."
        ),
    )
    ap.add_argument(
        "--state",
        dest="state_path",
        help="Override the JSON state file defined in the configuration.",
    )
    ap.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log import and computation details.",
    )

    subparsers = ap.add_subparsers(dest="command", metavar="COMMAND")

    # import
    import_parser = subparsers.add_parser(
        "import", help="Import a trial balance CSV as actuals."
    )
    import_parser.add_argument("csv_path", metavar="CSV_PATH")

    # template
    template_parser = subparsers.add_parser(
        "template", help="Write a sample trial balance CSV."
    )
    template_parser.add_argument(
        "output", nargs="?", default="trial_balance_template.csv"
    )

    # fiscal
    fiscal_parser = subparsers.add_parser("fiscal", help="Set the fiscal period.")
    fiscal_parser.add_argument("start_month", metavar="START", help="YYYY-MM")
    fiscal_parser.add_argument("end_month", metavar="END", help="YYYY-MM")

    # accounts
    accounts_parser = subparsers.add_parser("accounts", help="Manage accounts.")
    accounts_sub = accounts_parser.add_subparsers(
        dest="accounts_command", metavar="ACTION"
    )
    accounts_sub.add_parser("list", help="List discovered accounts.")
    reclassify = accounts_sub.add_parser(
        "reclassify", help="Override the P&L category of an account."
    )
    reclassify.add_argument("code")
    reclassify.add_argument("category", choices=PL_CATEGORIES)

    # plan
    plan_parser = subparsers.add_parser("plan", help="Edit planned amounts.")
    plan_sub = plan_parser.add_subparsers(dest="plan_command", metavar="ACTION")
    plan_set = plan_sub.add_parser("set", help="Set a planned amount.")
    plan_set.add_argument("month", help="YYYY-MM")
    plan_set.add_argument("code")
    plan_set.add_argument("amount", type=float)
    plan_clear = plan_sub.add_parser(
        "clear", help="Clear the plan of an account for all months."
    )
    plan_clear.add_argument("code")

    # report
    report_parser = subparsers.add_parser(
        "report", help="Show the profitability report."
    )
    report_parser.add_argument(
        "--display-mode",
        choices=DISPLAY_MODES,
        help="Override the display mode defined in the configuration.",
    )
    report_parser.add_argument(
        "--output-dir",
        help="Directory for CSV outputs (overrides the configuration).",
    )

    # export
    export_parser = subparsers.add_parser(
        "export", help="Write the per-account forecast CSV."
    )
    export_parser.add_argument("--output", help="Output CSV path.")

    # sync
    sync_parser = subparsers.add_parser(
        "sync", help="Synchronize with an accounting service (not implemented)."
    )
    sync_parser.add_argument("service", choices=sorted(SYNC_SERVICES))

    return ap


def _load_config(args: argparse.Namespace) -> AppConfig:
    if args.config_path:
        return load_app_config(args.config_path)
    if Path(DEFAULT_CONFIG_FILE).is_file():
        return load_app_config()
    return default_config()


def _apply_config(state: AppState, config: AppConfig) -> None:
    """Configuration values win over the stored ones when they are set.

    The configured fiscal period only seeds a state that has none, so a
    period set with the `fiscal` command is kept on later runs.
    """
    if config.business_name:
        state.business.name = config.business_name
    if config.currency:
        state.business.currency = config.currency
    if config.fiscal_period is not None and state.fiscal is None:
        state.fiscal = config.fiscal_period


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _handle_import(args: argparse.Namespace, state: AppState, config) -> None:
    csv_path = Path(args.csv_path)
    if not csv_path.is_file():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    print(f"Importing trial balance from {csv_path}...")
    table = read_trial_balance_csv(csv_path)
    mapping = config.column_mapping(table.headers)
    print(
        "Column mapping: "
        f"month={mapping.month}, account_code={mapping.account_code}, "
        f"account_name={mapping.account_name}, amount={mapping.amount}, "
        f"statement={mapping.statement}, dc={mapping.dc or '(none)'}"
    )

    result = state.import_table(table, mapping)
    print(
        f"Imported {result.rows_imported} rows "
        f"({len(table.records) - result.rows_imported} skipped), "
        f"{result.accounts_added} new accounts, "
        f"months: {', '.join(result.months)}"
    )
    if state.fiscal is not None:
        print(f"Fiscal period: {state.fiscal.label}")


def _handle_accounts(args: argparse.Namespace, state: AppState) -> None:
    ledger = state.ledger
    if args.accounts_command == "reclassify":
        ledger.reclassify(args.code, args.category)
        print(f"Account {args.code} reclassified as {args.category}.")
        return

    if not ledger.accounts:
        print("No accounts yet - use 'import' to load a trial balance.")
        return
    for acc in ledger.accounts:
        category = acc.pl_category or "-"
        print(f"{acc.code:<12} {acc.statement:<3} {category:<8} {acc.name}")


def _handle_plan(args: argparse.Namespace, state: AppState) -> None:
    ledger = state.ledger
    if args.plan_command == "clear":
        ledger.clear_plan(args.code)
        print(f"Plan cleared for account {args.code}.")
        return

    month = normalize_month(args.month)
    if not is_canonical_month(month):
        raise InvalidPeriodError(f"Invalid month {args.month!r}, expected YYYY-MM.")

    ledger.set_plan(month, args.code, args.amount)
    print(f"Plan set: {month} {args.code} = {args.amount:.2f}")
    if ledger.is_plan_locked(month, args.code):
        print("Note: an actual exists for this month and account and takes precedence.")


def _handle_report(args: argparse.Namespace, state: AppState, config) -> None:
    if state.fiscal is None:
        print("Fiscal period not set - use 'fiscal' or import a trial balance.")
        return
    if not state.fiscal.is_valid():
        print(f"Warning: fiscal period {state.fiscal.label} contains no months.")

    currency = state.business.currency
    report = build_report(state.ledger, state.fiscal, currency)
    trend = forecast_by_month(state.ledger, state.fiscal.months())
    totals = forecast_totals(trend)

    display_mode = args.display_mode or config.display_mode

    if display_mode in {"table", "both"}:
        print()
        business_name = state.business.name or "(no business name)"
        print(f"=== Forecast report - {business_name} ===")
        print(f"Fiscal period: {state.fiscal.label}")
        last_actual = state.ledger.last_actual_month()
        print(f"Last actual month: {last_actual or '(none)'}")
        print()
        print(format_report_table(report).to_string(index=False))
        print()
        print(
            "Revenue / expense trend total: "
            f"revenue {format_currency(totals['revenue'], currency)}, "
            f"expense {format_currency(totals['expense'], currency)}, "
            f"profit {format_currency(totals['profit'], currency)}"
        )
        mom = report.month_over_month
        if mom is not None:
            print(
                f"Month over month ({mom.previous_month} → {mom.month}): "
                f"sales {format_percentage(mom.sales)}, "
                f"operating profit {format_percentage(mom.operating_profit)}"
            )

    if display_mode in {"csv", "both"}:
        output_dir = Path(args.output_dir) if args.output_dir else config.output_dir
        output_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")
        path = output_dir / f"forecast_report_{timestamp}.csv"
        df = report_to_dataframe(report)
        df.to_csv(path, index=False)
        print(f"Wrote {path} ({len(df)} rows)")


def _handle_export(args: argparse.Namespace, state: AppState, config) -> None:
    months = state.fiscal.months() if state.fiscal is not None else []
    df = forecast_export_frame(state.ledger, months)
    if args.output:
        path = Path(args.output)
    else:
        path = config.output_dir / "forecast_pl.csv"
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False, encoding="utf-8")
    print(f"Wrote {path} ({len(df)} rows)")


def _handle_sync(args: argparse.Namespace) -> int:
    service = SYNC_SERVICES[args.service]
    print(
        f"{service} API synchronization is not implemented. "
        "Export a trial balance CSV and use 'import' instead."
    )
    return 1


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point for the PL Forecast CLI.

    Parses command-line arguments, loads the configuration and the state
    file, runs the requested command and saves the state when it changed.

    Returns:
        0 on success, 1 when the command failed with a reported error.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"pl_forecast version {__version__}")
        return 0

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "template":
        write_template_csv(args.output)
        print(f"Wrote {args.output}")
        return 0

    if args.command == "sync":
        return _handle_sync(args)

    try:
        config = _load_config(args)
        state_path = Path(args.state_path) if args.state_path else config.state_file
        state = load_state(state_path)
        _apply_config(state, config)

        if args.command == "import":
            _handle_import(args, state, config)
        elif args.command == "fiscal":
            fiscal = state.set_fiscal_period(args.start_month, args.end_month)
            print(f"Fiscal period set: {fiscal.label} ({len(fiscal.months())} months)")
        elif args.command == "accounts":
            _handle_accounts(args, state)
        elif args.command == "plan":
            if args.plan_command is None:
                parser.error("plan: choose an action (set, clear)")
            _handle_plan(args, state)
        elif args.command == "report":
            _handle_report(args, state, config)
            return 0
        elif args.command == "export":
            _handle_export(args, state, config)
            return 0
    except (PLForecastError, FileNotFoundError, KeyError, ValueError) as exc:
        message = exc.args[0] if isinstance(exc, KeyError) and exc.args else exc
        print(f"Error: {message}", file=sys.stderr)
        return 1

    save_state(state, state_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
