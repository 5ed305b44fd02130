# Resale Ledger - Inventory & cashflow tracker for resellers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
View utilities for Resale Ledger.

This module contains helpers that prepare records and aggregates for
display. Everything here is presentation: filtering and sorting the record
list, shaping tables as DataFrames, formatting amounts and dates, and
drawing text chart bars. The figures themselves come from ``engine``.

Record list
-----------
- status filter: "all", "in-stock", "sold" (items only), "expense"
  (expense records only),
- category filter ("all" or one of the fixed categories),
- free-text search over name, category, memo and a record-type hint,
- sort keys: created / purchase price / profit / name, ascending or
  descending. Records without a profit always come last when sorting by
  profit.

Cashflow board
--------------
- cashflow and category tables with formatted amounts,
- chart bars: for each bucket, three bars (income, expense, net) scaled
  against the largest value of the board.
"""

from collections.abc import Iterable
from datetime import date
from typing import Optional

import pandas as pd

from .engine import CashflowTotals, Summary, calculate_profit
from .records import Record, parse_record_date

STATUS_FILTERS = ("all", "in-stock", "sold", "expense")
SORT_KEYS = (
    "created-desc",
    "created-asc",
    "purchase-desc",
    "purchase-asc",
    "profit-desc",
    "profit-asc",
    "name-asc",
    "name-desc",
)

PLACEHOLDER = "-"


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


def format_currency(amount: float, currency: str = "JPY", decimals: int = 0) -> str:
    """Format an amount with thousands separators: '-1,500 JPY'."""
    sign = "-" if amount < 0 else ""
    return f"{sign}{abs(amount):,.{decimals}f} {currency}"


def format_signed_currency(
    amount: float, currency: str = "JPY", decimals: int = 0
) -> str:
    """Like format_currency, with an explicit '+' for non-negative amounts."""
    prefix = "+" if amount >= 0 else ""
    return prefix + format_currency(amount, currency, decimals)


def format_date(value: Optional[str]) -> str:
    """Format a date string as 'Jan 10, 2025'; unparseable values pass through."""
    ts = parse_record_date(value)
    if ts is None:
        return value or PLACEHOLDER
    d: date = ts.date()
    return f"{d:%b} {d.day}, {d.year}"


# ---------------------------------------------------------------------------
# Record list: filter & sort
# ---------------------------------------------------------------------------


def _search_haystack(record: Record) -> str:
    if record.record_type == "expense":
        hint = "expense misc consumable"
    else:
        hint = f"{record.status} in-stock sold"
    return f"{record.name} {record.category} {record.memo} {hint}".lower()


def filter_records(
    records: Iterable[Record],
    status: str = "all",
    category: str = "all",
    query: str = "",
) -> list[Record]:
    """
    Filter records for the list view.

    Args:
        status: "all", "expense", or an item status ("in-stock" / "sold").
            A status never matches expense records.
        category: "all" or a category name.
        query: case-insensitive substring searched in the record haystack.
    """
    result = list(records)

    if status == "expense":
        result = [r for r in result if r.record_type == "expense"]
    elif status != "all":
        result = [
            r for r in result if r.record_type != "expense" and r.status == status
        ]

    if category != "all":
        result = [r for r in result if r.category == category]

    q = query.strip().lower()
    if q:
        result = [r for r in result if q in _search_haystack(r)]

    return result


def _profit_sort_key(record: Record, descending: bool) -> tuple:
    profit = calculate_profit(record)
    if profit is None:
        return (1, 0.0)
    return (0, -profit if descending else profit)


def sort_records(records: Iterable[Record], sort_key: str = "created-desc") -> list[Record]:
    """
    Sort records for the list view (stable).

    Raises:
        ValueError: if sort_key is not one of SORT_KEYS.
    """
    items = list(records)

    if sort_key == "created-desc":
        return sorted(items, key=lambda r: r.created_at, reverse=True)
    if sort_key == "created-asc":
        return sorted(items, key=lambda r: r.created_at)
    if sort_key == "purchase-desc":
        return sorted(items, key=lambda r: r.purchase_price, reverse=True)
    if sort_key == "purchase-asc":
        return sorted(items, key=lambda r: r.purchase_price)
    if sort_key == "profit-desc":
        return sorted(items, key=lambda r: _profit_sort_key(r, descending=True))
    if sort_key == "profit-asc":
        return sorted(items, key=lambda r: _profit_sort_key(r, descending=False))
    if sort_key == "name-asc":
        return sorted(items, key=lambda r: r.name.casefold())
    if sort_key == "name-desc":
        return sorted(items, key=lambda r: r.name.casefold(), reverse=True)

    raise ValueError(f"Unknown sort key: {sort_key!r}")


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------


def records_table(
    records: Iterable[Record], currency: str = "JPY", decimals: int = 0
) -> pd.DataFrame:
    """
    Build the record list table.

    Columns: id, name, category, purchase_price, purchase_date, misc,
    consumable, selling_price, sold_date, profit, status. Amounts are
    formatted strings; fields that do not apply show '-'.
    """
    columns = [
        "id",
        "name",
        "category",
        "purchase_price",
        "purchase_date",
        "misc",
        "consumable",
        "selling_price",
        "sold_date",
        "profit",
        "status",
    ]

    def money(amount: float) -> str:
        return format_currency(amount, currency, decimals)

    rows: list[dict[str, object]] = []
    for r in records:
        is_expense = r.record_type == "expense"
        profit = calculate_profit(r)
        rows.append(
            {
                "id": r.id,
                "name": r.name or ("(expense)" if is_expense else ""),
                "category": r.category,
                "purchase_price": PLACEHOLDER if is_expense else money(r.purchase_price),
                "purchase_date": format_date(r.purchase_date),
                "misc": money(r.misc_expense),
                "consumable": money(r.consumable_expense),
                "selling_price": (
                    money(r.selling_price)
                    if not is_expense and r.selling_price
                    else PLACEHOLDER
                ),
                "sold_date": (
                    format_date(r.sold_date)
                    if not is_expense and r.sold_date
                    else PLACEHOLDER
                ),
                "profit": (
                    PLACEHOLDER
                    if profit is None
                    else format_signed_currency(profit, currency, decimals)
                ),
                "status": "expense" if is_expense else r.status,
            }
        )

    if not rows:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame(rows, columns=columns)


def record_details(record: Record, currency: str = "JPY", decimals: int = 0) -> list[str]:
    """Return 'label: value' lines describing a single record."""
    profit = calculate_profit(record)
    selling = (
        PLACEHOLDER
        if record.selling_price is None
        else format_currency(record.selling_price, currency, decimals)
    )
    return [
        f"  id:                 {record.id}",
        f"  type:               {record.record_type}",
        f"  name:               {record.name}",
        f"  category:           {record.category}",
        f"  purchase_price:     {format_currency(record.purchase_price, currency, decimals)}",
        f"  purchase_date:      {record.purchase_date}",
        f"  misc_expense:       {format_currency(record.misc_expense, currency, decimals)}",
        f"  consumable_expense: {format_currency(record.consumable_expense, currency, decimals)}",
        f"  selling_price:      {selling}",
        f"  sold_date:          {record.sold_date or PLACEHOLDER}",
        f"  status:             {record.status}",
        f"  profit:             {PLACEHOLDER if profit is None else format_signed_currency(profit, currency, decimals)}",
        f"  memo:               {record.memo}",
        f"  created_at:         {record.created_at}",
    ]


def summary_table(summary: Summary, currency: str = "JPY", decimals: int = 0) -> pd.DataFrame:
    """Summary cards as a two-column (label, value) table."""

    def money(amount: float) -> str:
        return format_currency(amount, currency, decimals)

    rows = [
        ("In stock", f"{summary.total_stock} items"),
        ("Sold", f"{summary.total_sold} items"),
        ("Total profit", money(summary.total_profit)),
        ("Stock value", money(summary.stock_value)),
        ("Misc expenses", money(summary.total_misc_expense)),
        ("Consumables", money(summary.total_consumable_expense)),
    ]
    return pd.DataFrame(rows, columns=["label", "value"])


def totals_table(totals: CashflowTotals, currency: str = "JPY", decimals: int = 0) -> pd.DataFrame:
    """Cashflow totals (income, expense, net) as a (label, value) table."""
    rows = [
        ("Income", format_currency(totals.income, currency, decimals)),
        ("Expense", format_currency(totals.expense, currency, decimals)),
        ("Net", format_signed_currency(totals.net, currency, decimals)),
    ]
    return pd.DataFrame(rows, columns=["label", "value"])


def cashflow_table(cashflow: pd.DataFrame, currency: str = "JPY", decimals: int = 0) -> pd.DataFrame:
    """Format a cashflow DataFrame (from engine.build_cashflow) for display."""
    columns = ["period", "income", "expense", "net"]
    if cashflow.empty:
        return pd.DataFrame(columns=columns)

    out = pd.DataFrame(
        {
            "period": cashflow["label"],
            "income": cashflow["income"].map(lambda v: format_currency(v, currency, decimals)),
            "expense": cashflow["expense"].map(lambda v: format_currency(v, currency, decimals)),
            "net": cashflow["net"].map(lambda v: format_signed_currency(v, currency, decimals)),
        }
    )
    return out[columns].reset_index(drop=True)


def category_table(breakdown: pd.DataFrame, currency: str = "JPY", decimals: int = 0) -> pd.DataFrame:
    """Format a category breakdown (from engine.build_category_breakdown)."""
    columns = ["category", "income", "expense", "net", "expense_share"]
    if breakdown.empty:
        return pd.DataFrame(columns=columns)

    out = pd.DataFrame(
        {
            "category": breakdown["category"],
            "income": breakdown["income"].map(lambda v: format_currency(v, currency, decimals)),
            "expense": breakdown["expense"].map(lambda v: format_currency(v, currency, decimals)),
            "net": breakdown["net"].map(lambda v: format_signed_currency(v, currency, decimals)),
            "expense_share": breakdown["expense_share"].map(lambda v: f"{v:.1f}%"),
        }
    )
    return out[columns].reset_index(drop=True)


# ---------------------------------------------------------------------------
# Chart bars
# ---------------------------------------------------------------------------


def bar_width(value: float, max_value: float, width: int) -> int:
    """Number of filled cells for a bar, capped at `width`."""
    if max_value == 0:
        return 0
    percent = min(100.0, value / max_value * 100.0)
    return max(0, round(percent / 100.0 * width))


def render_bar(
    label: str,
    value: float,
    max_value: float,
    width: int,
    text: str,
) -> str:
    """Render one bar line: 'income  |#####.....| 1,000 JPY'."""
    filled = bar_width(value, max_value, width)
    bar = "#" * filled + "." * (width - filled)
    return f"  {label:<8}|{bar}| {text}"


def render_cashflow_chart(
    cashflow: pd.DataFrame,
    width: int = 30,
    currency: str = "JPY",
    decimals: int = 0,
) -> list[str]:
    """
    Render cashflow buckets as text chart bars.

    For each bucket, three bars are drawn: income, expense and the absolute
    net (prefixed with '+' or '-'). All bars share the same scale: the
    largest income, expense or absolute net over all buckets.

    Returns:
        The chart lines, or a single "No data" line if there is no bucket.
    """
    if cashflow.empty:
        return ["No data"]

    max_value = 0.0
    for _, row in cashflow.iterrows():
        max_value = max(
            max_value, float(row["income"]), float(row["expense"]), abs(float(row["net"]))
        )

    lines: list[str] = []
    for _, row in cashflow.iterrows():
        income = float(row["income"])
        expense = float(row["expense"])
        net = float(row["net"])
        sign = "+" if net >= 0 else "-"

        lines.append(str(row["label"]))
        lines.append(
            render_bar("income", income, max_value, width,
                       format_currency(income, currency, decimals))
        )
        lines.append(
            render_bar("expense", expense, max_value, width,
                       format_currency(expense, currency, decimals))
        )
        lines.append(
            render_bar("net", abs(net), max_value, width,
                       sign + format_currency(abs(net), currency, decimals))
        )
    return lines
