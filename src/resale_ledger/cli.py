# Resale Ledger - Inventory & cashflow tracker for resellers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Command-Line Interface (CLI) for Resale Ledger.

This module wires together the main building blocks of Resale Ledger:

- global configuration (database, display options, logging),
- record services (create, edit, delete, import, export),
- aggregation engine (profit, summary, cashflow buckets),
- view helpers (filtering, sorting, tables and chart bars).

The CLI is intentionally thin: it does not compute anything itself. It
orchestrates the underlying modules based on command-line arguments and the
configuration file.


Subcommands
-----------

- ``list``:     list records, with status / category filters, a free-text
                search and a sort key.
- ``show ID``:  show every field of a single record.
- ``add``:      add an item (or an expense with ``--type expense``).
- ``edit ID``:  change some fields of a record. ``--clear-sale`` removes
                the sale of an item.
- ``delete ID``: delete a record.
- ``summary``:  inventory summary cards.
- ``cashflow``: cashflow totals, buckets (month or year) and category
                breakdown for a period, optionally with text chart bars.
- ``import``:   import records from a CSV file (``--mode merge|replace``).
- ``export``:   export every record to a CSV file.


Display modes and output
------------------------

Tabular results (``list``, ``summary``, ``cashflow``) follow the display mode:

- ``table``: print tables to stdout,
- ``csv``:   write CSV files only,
- ``both``:  do both.

The mode comes from ``[display].mode`` in the configuration file and can be
overridden with ``--display-mode``. CSV files are written to ``--output DIR``
(default ``data/output``, created if needed) with a timestamped name.


Examples
--------

    resale-ledger add --name "ThinkPad X1" --category PC \\
        --purchase-price 15000 --purchase-date 2025-01-10

    resale-ledger edit 1736500000000 --selling-price 28000 \\
        --sold-date 2025-02-01 --status sold

    resale-ledger list --status in-stock --sort purchase-desc

    resale-ledger cashflow --period this-year --granularity month --chart

    resale-ledger import backup.csv --mode replace
"""

import argparse
import logging
import sqlite3
from datetime import date, datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from . import __version__
from .config import GRANULARITIES, load_app_config
from .db import has_records
from .engine import (
    build_cashflow,
    build_category_breakdown,
    calculate_summary,
    calculate_totals,
    collect_transactions,
)
from .periods import determine_range_from_args, filter_transactions_by_range
from .records import CATEGORIES, RECORD_TYPES, STATUSES
from .records_service import (
    RecordForm,
    RecordNotFoundError,
    RecordValidationError,
    create_record,
    edit_record,
    export_records_to_csv,
    import_records_from_csv,
    list_records,
    load_record,
)
from .records_service import (
    delete_record as service_delete_record,
)
from .views import (
    SORT_KEYS,
    STATUS_FILTERS,
    cashflow_table,
    category_table,
    filter_records,
    record_details,
    records_table,
    render_cashflow_chart,
    sort_records,
    summary_table,
    totals_table,
)

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the CLI."""
    ap = argparse.ArgumentParser(
        prog="resale-ledger",
        description=(
            "Resale Ledger - Inventory & cashflow tracker for resellers. "
            "Records purchased items, their extra costs and sales, and "
            "renders profit, inventory and cashflow reports."
        ),
    )

    # Generic options
    ap.add_argument(
        "--version",
        action="store_true",
        help="Show the installed version of resale_ledger and exit.",
    )

    ap.add_argument(
        "--config",
        dest="config_path",
        help=(
            "Path to the main TOML configuration file. "
            "If omitted, 'resale_ledger_config.toml' in the current directory "
            "is used when it exists, otherwise built-in defaults apply."
        ),
    )

    ap.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging (overrides [logging].level).",
    )

    # Display options
    ap.add_argument(
        "--display-mode",
        dest="display_mode",
        choices=["table", "csv", "both"],
        help=(
            "Override the display.mode setting from the configuration file. "
            "'table' prints results to stdout, "
            "'csv' writes CSV files only, "
            "'both' does both."
        ),
    )
    ap.add_argument(
        "--output",
        dest="output_dir",
        help=(
            "Output directory where CSV files will be written when display "
            "mode includes 'csv'. "
            "If omitted, 'data/output' is used."
        ),
    )

    subparsers = ap.add_subparsers(
        dest="command",
        metavar="command",
        help="Subcommand to run.",
    )

    # ------------------------------------------------------------------
    # list
    # ------------------------------------------------------------------
    list_parser = subparsers.add_parser(
        "list",
        help="List records with optional filters and sorting.",
    )
    list_parser.add_argument(
        "--status",
        choices=list(STATUS_FILTERS),
        default="all",
        help=(
            "Filter by status: 'in-stock' / 'sold' select items only, "
            "'expense' selects expense records. Default: all."
        ),
    )
    list_parser.add_argument(
        "--category",
        choices=["all", *CATEGORIES],
        default="all",
        help="Filter by category. Default: all.",
    )
    list_parser.add_argument(
        "--search",
        default="",
        help="Case-insensitive search in name, category, memo and status.",
    )
    list_parser.add_argument(
        "--sort",
        choices=list(SORT_KEYS),
        default="created-desc",
        help="Sort key. Default: created-desc (newest first).",
    )

    # ------------------------------------------------------------------
    # show
    # ------------------------------------------------------------------
    show_parser = subparsers.add_parser("show", help="Show a single record.")
    show_parser.add_argument("record_id", help="Record id.")

    # ------------------------------------------------------------------
    # add / edit
    # ------------------------------------------------------------------
    add_parser = subparsers.add_parser(
        "add",
        help="Add an item or an expense record.",
    )
    _add_record_fields(add_parser)

    edit_parser = subparsers.add_parser(
        "edit",
        help="Edit an existing record (only the given fields change).",
    )
    edit_parser.add_argument("record_id", help="Record id.")
    _add_record_fields(edit_parser)
    edit_parser.add_argument(
        "--clear-sale",
        dest="clear_sale",
        action="store_true",
        help="Remove the selling price and sold date of an item.",
    )

    # ------------------------------------------------------------------
    # delete
    # ------------------------------------------------------------------
    delete_parser = subparsers.add_parser("delete", help="Delete a record.")
    delete_parser.add_argument("record_id", help="Record id.")

    # ------------------------------------------------------------------
    # summary
    # ------------------------------------------------------------------
    subparsers.add_parser("summary", help="Show the inventory summary.")

    # ------------------------------------------------------------------
    # cashflow
    # ------------------------------------------------------------------
    cashflow_parser = subparsers.add_parser(
        "cashflow",
        help="Show cashflow totals, buckets and category breakdown.",
    )
    cashflow_parser.add_argument(
        "--granularity",
        choices=list(GRANULARITIES),
        help=(
            "Bucket size. If omitted, [cashflow].granularity from the "
            "configuration file is used."
        ),
    )
    cashflow_parser.add_argument(
        "--period",
        choices=["all", "this-month", "this-year"],
        default="all",
        help="Predefined period. Default: all.",
    )
    cashflow_parser.add_argument(
        "--from-date",
        dest="from_date",
        help="Custom period start date (YYYY-MM-DD). Overrides --period.",
    )
    cashflow_parser.add_argument(
        "--to-date",
        dest="to_date",
        help="Custom period end date (YYYY-MM-DD). Overrides --period.",
    )
    cashflow_parser.add_argument(
        "--chart",
        action="store_true",
        help="Also print text chart bars for each bucket.",
    )

    # ------------------------------------------------------------------
    # import / export
    # ------------------------------------------------------------------
    import_parser = subparsers.add_parser(
        "import",
        help="Import records from a CSV file.",
    )
    import_parser.add_argument("csv_path", help="CSV file to import.")
    import_parser.add_argument(
        "--mode",
        choices=["merge", "replace"],
        default="merge",
        help=(
            "'merge' inserts new records and overwrites records with the "
            "same id; 'replace' deletes every record first. Default: merge."
        ),
    )

    export_parser = subparsers.add_parser(
        "export",
        help="Export every record to a CSV file.",
    )
    export_parser.add_argument(
        "csv_path",
        nargs="?",
        help=(
            "Destination CSV file. If omitted, "
            "'inventory-<date>.csv' in the output directory is used."
        ),
    )

    return ap


def _add_record_fields(parser: argparse.ArgumentParser) -> None:
    """Record field options shared by 'add' and 'edit'."""
    parser.add_argument(
        "--type",
        dest="record_type",
        choices=list(RECORD_TYPES),
        help="Record type. Default for new records: item.",
    )
    parser.add_argument("--name", help="Item name or expense label.")
    parser.add_argument("--category", choices=list(CATEGORIES))
    parser.add_argument(
        "--purchase-price",
        dest="purchase_price",
        type=float,
        help="Purchase price (ignored for expenses).",
    )
    parser.add_argument(
        "--purchase-date",
        dest="purchase_date",
        help="Purchase date (YYYY-MM-DD). Default for new records: today.",
    )
    parser.add_argument("--misc-expense", dest="misc_expense", type=float)
    parser.add_argument(
        "--consumable-expense", dest="consumable_expense", type=float
    )
    parser.add_argument(
        "--selling-price",
        dest="selling_price",
        type=float,
        help="Selling price (items only).",
    )
    parser.add_argument(
        "--sold-date",
        dest="sold_date",
        help="Sale date (YYYY-MM-DD, items only).",
    )
    parser.add_argument("--status", choices=list(STATUSES))
    parser.add_argument("--memo")


def _parse_optional_date(value: Optional[str]) -> Optional[date]:
    """
    Parse an optional CLI date argument (YYYY-MM-DD).

    Raises
    ------
    SystemExit
        If the date format is invalid.
    """
    if value is None:
        return None

    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        msg = f"Invalid date format: {value!r}. Expected YYYY-MM-DD."
        raise SystemExit(msg) from exc


def _form_from_args(args: argparse.Namespace) -> RecordForm:
    """Build a RecordForm from 'add' / 'edit' arguments."""
    purchase_date = _parse_optional_date(args.purchase_date)
    sold_date = _parse_optional_date(args.sold_date)

    return RecordForm(
        record_type=args.record_type,
        name=args.name,
        category=args.category,
        purchase_price=args.purchase_price,
        purchase_date=purchase_date.isoformat() if purchase_date else None,
        misc_expense=args.misc_expense,
        consumable_expense=args.consumable_expense,
        selling_price=args.selling_price,
        sold_date=sold_date.isoformat() if sold_date else None,
        status=args.status,
        memo=args.memo,
        clear_sale=getattr(args, "clear_sale", False),
    )


def _emit_table(
    df: pd.DataFrame,
    title: str,
    file_stem: str,
    display_mode: str,
    output_dir: Optional[str],
) -> None:
    """Render a table to stdout and/or a timestamped CSV file."""
    if display_mode in {"table", "both"}:
        print()
        print(f"=== {title} ===")
        if df.empty:
            print("(no rows)")
        else:
            print(df.to_string(index=False))

    if display_mode in {"csv", "both"}:
        out = Path(output_dir) if output_dir else Path("data/output")
        out.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")
        path = out / f"{file_stem}_{timestamp}.csv"
        df.to_csv(path, index=False)
        print(f"Wrote {path} ({len(df)} rows)")


def _handle_list(args: argparse.Namespace, config, display_mode: str) -> None:
    """Handle the 'list' subcommand."""
    records = list_records(config)
    records = filter_records(
        records, status=args.status, category=args.category, query=args.search
    )
    records = sort_records(records, args.sort)

    df = records_table(records, config.currency, config.currency_decimals)
    _emit_table(df, "Records", "records", display_mode, args.output_dir)

    if display_mode in {"table", "both"}:
        print()
        print(f"Total records: {len(records)}")


def _handle_show(args: argparse.Namespace, config) -> None:
    """Handle the 'show' subcommand."""
    record = load_record(config, args.record_id)
    if record is None:
        raise SystemExit(f"Record {args.record_id!r} not found.")

    print("Record:")
    for line in record_details(record, config.currency, config.currency_decimals):
        print(line)


def _handle_add(args: argparse.Namespace, config) -> None:
    """Handle the 'add' subcommand."""
    form = _form_from_args(args)
    if not form.name and form.record_type != "expense":
        raise SystemExit("An item needs a name (--name).")

    record = create_record(config, form)
    print(f"Record added: {record.id}")
    for line in record_details(record, config.currency, config.currency_decimals):
        print(line)


def _handle_edit(args: argparse.Namespace, config) -> None:
    """Handle the 'edit' subcommand."""
    form = _form_from_args(args)
    record = edit_record(config, args.record_id, form)
    print(f"Record updated: {record.id}")
    for line in record_details(record, config.currency, config.currency_decimals):
        print(line)


def _handle_delete(args: argparse.Namespace, config) -> None:
    """Handle the 'delete' subcommand."""
    if not service_delete_record(config, args.record_id):
        raise SystemExit(f"Record {args.record_id!r} not found.")
    print(f"Record deleted: {args.record_id}")


def _handle_summary(args: argparse.Namespace, config, display_mode: str) -> None:
    """Handle the 'summary' subcommand."""
    summary = calculate_summary(list_records(config))
    df = summary_table(summary, config.currency, config.currency_decimals)
    _emit_table(df, "Inventory summary", "summary", display_mode, args.output_dir)


def _handle_cashflow(args: argparse.Namespace, config, display_mode: str) -> None:
    """
    Handle the 'cashflow' subcommand.

    This function:
    - determines the date range from CLI args (custom dates, then preset),
    - derives cash transactions from every record and keeps those in range,
    - renders totals, buckets and the category breakdown,
    - optionally prints text chart bars for the buckets.
    """
    _parse_optional_date(args.from_date)
    _parse_optional_date(args.to_date)
    try:
        date_range = determine_range_from_args(args)
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc

    granularity = args.granularity or config.default_granularity

    transactions = collect_transactions(list_records(config))
    transactions = filter_transactions_by_range(transactions, date_range)

    totals = calculate_totals(transactions)
    cashflow = build_cashflow(transactions, granularity)
    breakdown = build_category_breakdown(transactions)

    currency = config.currency
    decimals = config.currency_decimals

    print(f"Applied period: {date_range.label}")
    print(f"Cash transactions in period: {len(transactions)}")

    _emit_table(
        totals_table(totals, currency, decimals),
        "Cashflow totals",
        "cashflow_totals",
        display_mode,
        args.output_dir,
    )
    _emit_table(
        cashflow_table(cashflow, currency, decimals),
        f"Cashflow by {granularity}",
        f"cashflow_{granularity}",
        display_mode,
        args.output_dir,
    )
    _emit_table(
        category_table(breakdown, currency, decimals),
        "Cashflow by category",
        "cashflow_categories",
        display_mode,
        args.output_dir,
    )

    if args.chart:
        print()
        print(f"=== Chart ({granularity}) ===")
        for line in render_cashflow_chart(
            cashflow, width=config.chart_width, currency=currency, decimals=decimals
        ):
            print(line)


def _handle_import(args: argparse.Namespace, config) -> None:
    """Handle the 'import' subcommand."""
    csv_path = Path(args.csv_path)
    if not csv_path.is_file():
        raise SystemExit(f"CSV file not found: {csv_path}")

    print(f"Importing records from {csv_path} ({args.mode})...")
    try:
        stats = import_records_from_csv(config, csv_path, mode=args.mode)
    except ValueError as exc:
        # ParserError and UnicodeDecodeError are ValueError subclasses too.
        logger.debug("Import of %s failed", csv_path, exc_info=True)
        raise SystemExit(f"Import failed: {exc}") from exc

    print(f"Imported {stats.imported} record(s) ({stats.mode}).")


def _handle_export(args: argparse.Namespace, config) -> None:
    """Handle the 'export' subcommand."""
    if args.csv_path:
        path = Path(args.csv_path)
        path.parent.mkdir(parents=True, exist_ok=True)
    else:
        out = Path(args.output_dir) if args.output_dir else Path("data/output")
        out.mkdir(parents=True, exist_ok=True)
        path = out / f"inventory-{date.today().isoformat()}.csv"

    count = export_records_to_csv(config, path)
    print(f"Wrote {path} ({count} records)")


def _configure_logging(level_name: str, verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, level_name, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _dispatch(args: argparse.Namespace, config, display_mode: str) -> None:
    """Run the handler of the requested subcommand."""
    command = args.command

    if command == "list":
        _handle_list(args, config, display_mode)
    elif command == "show":
        _handle_show(args, config)
    elif command == "add":
        _handle_add(args, config)
    elif command == "edit":
        _handle_edit(args, config)
    elif command == "delete":
        _handle_delete(args, config)
    elif command == "summary":
        _handle_summary(args, config, display_mode)
    elif command == "cashflow":
        _handle_cashflow(args, config, display_mode)
    elif command == "import":
        _handle_import(args, config)
    elif command == "export":
        _handle_export(args, config)


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for the Resale Ledger CLI.

    This function parses command-line arguments, loads the application
    configuration, configures logging, and runs the requested subcommand.
    Bad input and storage failures end the program with a short message.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    # --version: short-circuit and exit early.
    if args.version:
        print(f"resale_ledger version {__version__}")
        return

    if not args.command:
        parser.print_help()
        return

    # 1) Load application configuration
    try:
        if args.config_path:
            config = load_app_config(args.config_path)
        else:
            config = load_app_config()
    except (FileNotFoundError, ValueError) as exc:
        raise SystemExit(f"Configuration error: {exc}") from exc

    _configure_logging(config.log_level, args.verbose)
    logger.debug("Using database %s", config.database.path)

    # 2) Resolve display mode: config value overridden by CLI if provided.
    display_mode = config.display_mode
    if args.display_mode:
        display_mode = args.display_mode

    # 3) Run the subcommand.
    try:
        if args.command in {"list", "summary", "cashflow"} and not has_records(
            config.database
        ):
            print("Warning: no records yet. Use 'add' or 'import' to create some.")

        _dispatch(args, config, display_mode)
    except RecordNotFoundError as exc:
        raise SystemExit(str(exc)) from exc
    except RecordValidationError as exc:
        raise SystemExit(f"Invalid record: {exc}") from exc
    except (sqlite3.Error, OSError) as exc:
        logger.exception("Storage failure")
        raise SystemExit(f"Storage error: {exc}") from exc


if __name__ == "__main__":
    main()
