# PL Forecast - Monthly profit & loss forecasting from trial balance exports
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Configuration helpers for PL Forecast.

This module is responsible for:
- loading the application configuration from a TOML file,
- exposing typed dataclasses used by the CLI.

Expected sections (all optional)
--------------------------------
[business]
    name, currency. Unset values keep those of the state file
    (currency defaults to "JPY").

[fiscal_period]
    start_month, end_month (YYYY-MM). Used when the state file has no fiscal
    period yet; a period set with the `fiscal` command is kept.

[import.mapping]
    Column names to use for month, account_code, account_name, amount,
    statement and dc. Fields left out are inferred from the CSV header.

[storage]
    state_file: JSON file holding the application state
    (default "data/pl_forecast_state.json").

[display]
    mode:       "table", "csv" or "both" (default "table"),
    output_dir: directory for CSV outputs (default "data/output").

All relative paths are resolved against the directory of the TOML file.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import tomllib  # Python 3.11+

from .io import ColumnMapping, infer_column_mapping
from .periods import FiscalPeriod, parse_fiscal_period

DEFAULT_CONFIG_FILE = "pl_forecast_config.toml"

MAPPING_FIELDS: tuple[str, ...] = (
    "month",
    "account_code",
    "account_name",
    "amount",
    "statement",
    "dc",
)

DISPLAY_MODES: tuple[str, ...] = ("table", "csv", "both")


@dataclass(frozen=True)
class AppConfig:
    """
    Application-wide configuration for PL Forecast.

    Attributes:
        business_name: Name printed in report headers.
        currency: Presentation currency code, "" to keep the stored one.
        fiscal_period: Explicit fiscal period, or None to use the stored one.
        mapping_overrides: Column names forced for some mapping fields.
        state_file: Path of the JSON state file.
        display_mode: 'table', 'csv' or 'both'.
        output_dir: Directory for CSV outputs.
    """

    business_name: str
    currency: str
    fiscal_period: Optional[FiscalPeriod]
    mapping_overrides: dict[str, str] = field(default_factory=dict)
    state_file: Path = Path("data/pl_forecast_state.json")
    display_mode: str = "table"
    output_dir: Path = Path("data/output")

    def column_mapping(self, headers: list[str]) -> ColumnMapping:
        """Infer the mapping from `headers`, then apply configured overrides."""
        inferred = infer_column_mapping(headers)
        values = {f: getattr(inferred, f) for f in MAPPING_FIELDS}
        values.update(self.mapping_overrides)
        return ColumnMapping(**values)


def default_config() -> AppConfig:
    """Configuration used when no TOML file exists."""
    return AppConfig(
        business_name="",
        currency="",
        fiscal_period=None,
        state_file=Path("data/pl_forecast_state.json").resolve(),
        output_dir=Path("data/output").resolve(),
    )


def _load_toml(path: Path) -> dict[str, Any]:
    """
    Load a TOML file and return its content as a dictionary.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the TOML content cannot be parsed.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Failed to parse TOML config file: {path}") from exc


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, Mapping):
        return {}
    return section


def _parse_fiscal_period(raw: Mapping[str, Any]) -> Optional[FiscalPeriod]:
    section = _section(raw, "fiscal_period")
    start = section.get("start_month")
    end = section.get("end_month")
    if not start and not end:
        return None
    if not (start and end):
        raise ValueError(
            "Config [fiscal_period] needs both start_month and end_month."
        )
    return parse_fiscal_period(str(start), str(end))


def _parse_mapping_overrides(raw: Mapping[str, Any]) -> dict[str, str]:
    mapping_section = _section(_section(raw, "import"), "mapping")

    overrides: dict[str, str] = {}
    for key, value in mapping_section.items():
        if key not in MAPPING_FIELDS:
            raise ValueError(
                f"Unknown field {key!r} in [import.mapping]. "
                f"Expected one of: {', '.join(MAPPING_FIELDS)}."
            )
        if value:
            overrides[key] = str(value)
    return overrides


def load_app_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load the PL Forecast configuration from a TOML file.

    Parameters
    ----------
    config_path:
        Path to the TOML file. Defaults to ``pl_forecast_config.toml`` in
        the current directory.

    Returns
    -------
    AppConfig
        Parsed and validated configuration.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If the file cannot be parsed or holds invalid values.
    """
    config_file = Path(config_path or DEFAULT_CONFIG_FILE).resolve()
    raw = _load_toml(config_file)
    base_dir = config_file.parent

    business = _section(raw, "business")
    storage = _section(raw, "storage")
    display = _section(raw, "display")

    display_mode = str(display.get("mode", "table"))
    if display_mode not in DISPLAY_MODES:
        raise ValueError(
            f"Invalid [display].mode {display_mode!r}. "
            f"Expected one of: {', '.join(DISPLAY_MODES)}."
        )

    state_file = storage.get("state_file") or "data/pl_forecast_state.json"
    output_dir = display.get("output_dir") or "data/output"

    return AppConfig(
        business_name=str(business.get("name") or ""),
        currency=str(business.get("currency") or ""),
        fiscal_period=_parse_fiscal_period(raw),
        mapping_overrides=_parse_mapping_overrides(raw),
        state_file=(base_dir / str(state_file)).resolve(),
        display_mode=display_mode,
        output_dir=(base_dir / str(output_dir)).resolve(),
    )
