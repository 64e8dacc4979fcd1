from pathlib import Path

import pytest

from pl_forecast.config import default_config, load_app_config
from pl_forecast.errors import InvalidPeriodError
from pl_forecast.periods import FiscalPeriod


def _write_config(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "pl_forecast_config.toml"
    path.write_text(content, encoding="utf-8")
    return path


def test_load_app_config_full(tmp_path: Path) -> None:
    path = _write_config(
        tmp_path,
        """
[business]
name = "Demo"
currency = "USD"

[fiscal_period]
start_month = "2025/04"
end_month = "2026-03"

[import.mapping]
month = "会計月"
dc = "借貸"

[storage]
state_file = "state/app.json"

[display]
mode = "both"
output_dir = "out"
""",
    )

    cfg = load_app_config(str(path))

    assert cfg.business_name == "Demo"
    assert cfg.currency == "USD"
    assert cfg.fiscal_period == FiscalPeriod("2025-04", "2026-03")
    assert cfg.mapping_overrides == {"month": "会計月", "dc": "借貸"}
    assert cfg.display_mode == "both"
    # Relative paths resolve against the directory of the TOML file.
    assert cfg.state_file == (tmp_path / "state" / "app.json").resolve()
    assert cfg.output_dir == (tmp_path / "out").resolve()


def test_load_app_config_empty_file_uses_defaults(tmp_path: Path) -> None:
    cfg = load_app_config(str(_write_config(tmp_path, "")))

    assert cfg.business_name == ""
    assert cfg.currency == ""
    assert cfg.fiscal_period is None
    assert cfg.mapping_overrides == {}
    assert cfg.display_mode == "table"
    assert cfg.state_file == (tmp_path / "data" / "pl_forecast_state.json").resolve()


def test_column_mapping_applies_overrides(tmp_path: Path) -> None:
    path = _write_config(tmp_path, '[import.mapping]\namount = "残高"\n')
    cfg = load_app_config(str(path))

    mapping = cfg.column_mapping(
        ["month", "account_code", "account_name", "amount", "残高", "statement"]
    )

    assert mapping.amount == "残高"
    assert mapping.month == "month"
    assert mapping.dc is None


def test_default_config_keeps_inferred_mapping() -> None:
    cfg = default_config()
    mapping = cfg.column_mapping(["month", "code", "name", "amount", "statement"])
    assert mapping.account_code == "code"
    assert cfg.currency == ""


@pytest.mark.parametrize(
    "content",
    [
        '[display]\nmode = "html"\n',
        '[import.mapping]\ncurrency = "x"\n',
        '[fiscal_period]\nstart_month = "2025-01"\n',
        "[business\nname = 1",
    ],
)
def test_load_app_config_invalid_values(tmp_path: Path, content: str) -> None:
    with pytest.raises(ValueError):
        load_app_config(str(_write_config(tmp_path, content)))


def test_load_app_config_reversed_period(tmp_path: Path) -> None:
    path = _write_config(
        tmp_path, '[fiscal_period]\nstart_month = "2025-12"\nend_month = "2025-01"\n'
    )
    with pytest.raises(InvalidPeriodError):
        load_app_config(str(path))


def test_load_app_config_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_app_config(str(tmp_path / "nope.toml"))
