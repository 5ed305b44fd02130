# Resale Ledger - Inventory & cashflow tracker for resellers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Configuration helpers for Resale Ledger.

This module is responsible for:
- loading the application configuration from a TOML file,
- falling back to built-in defaults (and a per-user database location)
  when no configuration file exists,
- exposing typed dataclasses used by the rest of the application.
"""

import os
import sys
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from .db import DatabaseConfig

DEFAULT_CONFIG_FILENAME = "resale_ledger_config.toml"
APP_DIR_NAME = "resale-ledger"
DB_FILE_NAME = "inventory.db"

DISPLAY_MODES = ("table", "csv", "both")
GRANULARITIES = ("month", "year")


@dataclass(frozen=True)
class AppConfig:
    """
    Application-wide configuration for Resale Ledger.

    This aggregates:
    - the database configuration (where records are stored),
    - display options (output mode, currency formatting, chart width),
    - the default cashflow granularity,
    - the logging level used by the CLI.
    """

    database: DatabaseConfig
    display_mode: str
    currency: str
    currency_decimals: int
    chart_width: int
    default_granularity: str
    log_level: str


def default_data_dir() -> Path:
    """
    Return the per-user data directory used when no database path is set.

    - Windows: %APPDATA%
    - macOS:   ~/Library/Application Support
    - others:  $XDG_DATA_HOME, or ~/.local/share
    """
    appdata = os.environ.get("APPDATA")
    if appdata:
        base = Path(appdata)
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        xdg = os.environ.get("XDG_DATA_HOME")
        base = Path(xdg) if xdg else Path.home() / ".local" / "share"
    return base / APP_DIR_NAME


def _load_toml(path: Path) -> dict[str, Any]:
    """
    Load a TOML file and return its content as a dictionary.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the TOML content cannot be parsed or is not a table.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Failed to parse TOML config file: {path}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Invalid TOML root type in {path}, expected a table.")

    return data


def _section(raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    """Return a sub-table, or an empty mapping if missing or malformed."""
    section = raw.get(name) or {}
    if not isinstance(section, Mapping):
        return {}
    return section


def _parse_app_config(raw: Mapping[str, Any], base_dir: Optional[Path]) -> AppConfig:
    """
    Build an AppConfig from raw TOML data.

    Args:
        raw: Parsed TOML root dictionary (may be empty).
        base_dir: Directory used to resolve a relative database path. When
            None (no config file), the per-user data directory is used.

    Raises:
        ValueError: on invalid display mode or granularity.
    """
    # 1) Database section
    database_section = _section(raw, "database")

    db_engine = str(database_section.get("engine") or "sqlite")
    db_path_raw = database_section.get("path")
    if db_path_raw:
        root = base_dir if base_dir is not None else Path.cwd()
        db_path = (root / str(db_path_raw)).resolve()
    else:
        db_path = default_data_dir() / DB_FILE_NAME

    database_config = DatabaseConfig(engine=db_engine, path=db_path)

    # 2) Display options
    display_section = _section(raw, "display")

    display_mode = str(display_section.get("mode", "table"))
    if display_mode not in DISPLAY_MODES:
        raise ValueError(
            f"Invalid value for 'display.mode': {display_mode!r}. "
            f"Expected one of: {', '.join(DISPLAY_MODES)}."
        )

    currency = str(display_section.get("currency", "JPY"))

    try:
        currency_decimals = int(display_section.get("decimals", 0))
    except (TypeError, ValueError):
        currency_decimals = 0

    try:
        chart_width = int(display_section.get("chart_width", 30))
    except (TypeError, ValueError):
        chart_width = 30
    chart_width = max(chart_width, 1)

    # 3) Cashflow options
    cashflow_section = _section(raw, "cashflow")

    granularity = str(cashflow_section.get("granularity", "month"))
    if granularity not in GRANULARITIES:
        raise ValueError(
            f"Invalid value for 'cashflow.granularity': {granularity!r}. "
            "Expected 'month' or 'year'."
        )

    # 4) Logging
    logging_section = _section(raw, "logging")
    log_level = str(logging_section.get("level", "WARNING")).upper()

    return AppConfig(
        database=database_config,
        display_mode=display_mode,
        currency=currency,
        currency_decimals=currency_decimals,
        chart_width=chart_width,
        default_granularity=granularity,
        log_level=log_level,
    )


def load_app_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load the Resale Ledger application configuration from a TOML file.

    Expected top-level sections in the TOML file
    --------------------------------------------
    [database]
        engine ("sqlite") and path of the SQLite file. Relative paths are
        resolved against the directory of the TOML file.

    [display]
        mode ("table" | "csv" | "both"), currency code, number of decimals
        used when formatting amounts, and width of the text chart bars.

    [cashflow]
        granularity ("month" | "year") used by default on the cashflow board.

    [logging]
        level of the standard library logger (e.g. "INFO", "DEBUG").

    All sections are optional.

    Parameters
    ----------
    config_path : str, optional
        Path to the TOML configuration file. When omitted, the file
        'resale_ledger_config.toml' in the current directory is used if it
        exists; otherwise built-in defaults apply and the database lives in
        the per-user data directory.

    Returns
    -------
    AppConfig
        Parsed and validated application configuration.

    Raises
    ------
    FileNotFoundError
        If an explicit config_path does not exist.
    ValueError
        If the file cannot be parsed or contains invalid values.
    """
    if config_path is None:
        config_file = Path(DEFAULT_CONFIG_FILENAME).resolve()
        if not config_file.is_file():
            return _parse_app_config({}, base_dir=None)
    else:
        config_file = Path(config_path).resolve()

    raw = _load_toml(config_file)
    return _parse_app_config(raw, base_dir=config_file.parent)
