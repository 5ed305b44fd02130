# Resale Ledger - Inventory & cashflow tracker for resellers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Aggregation engine for Resale Ledger.

This module turns a list of normalized records into the figures displayed
by the inventory and cashflow boards. Every function is pure and total:
given normalized input it never raises and never touches the database.

The engine has three responsibilities:

1. Profit & inventory summary
   ---------------------------
   - `calculate_profit(record)` returns the margin of a sold item, or None
     when the notion does not apply (expense, or item not sold yet).
   - `calculate_summary(records)` rolls records up into a `Summary`:
     stock count, sold count, total profit, stock value and expense totals.

2. Cash transactions
   ------------------
   `collect_transactions(records)` derives dated cash events from records:

   - expense record -> one outflow at purchase_date
                       (misc_expense + consumable_expense),
   - item           -> one outflow at purchase_date
                       (purchase_price + misc_expense + consumable_expense),
                       plus one inflow at sold_date (selling_price) once
                       both selling_price and sold_date are set.

   The result is a DataFrame with columns: date, income, expense, category.
   Dates are kept as the original strings; they are only parsed when
   bucketing or filtering.

3. Cashflow buckets & breakdowns
   ------------------------------
   - `build_cashflow(transactions, granularity)` groups events by calendar
     month ("YYYY-MM") or year ("YYYY"), most recent first. Events whose
     date cannot be parsed are dropped from the buckets.
   - `calculate_totals(transactions)` returns overall income/expense/net.
   - `build_category_breakdown(transactions)` groups the same amounts by
     category, in the fixed category order.

Bucket keys are zero-padded, so sorting them as strings is the same as
sorting them chronologically. Outputs never depend on the order of the
input records.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from typing import Literal, Optional

import pandas as pd

from .records import CATEGORIES, Record, parse_record_date

Granularity = Literal["month", "year"]

TRANSACTION_COLUMNS = ["date", "income", "expense", "category"]
CASHFLOW_COLUMNS = ["key", "label", "income", "expense", "net"]
CATEGORY_COLUMNS = ["category", "income", "expense", "net", "expense_share"]


@dataclass(frozen=True)
class Summary:
    """
    Inventory summary displayed on the main board.

    Attributes
    ----------
    total_stock:
        Number of items currently in stock.
    total_sold:
        Number of sold items (expenses are not counted).
    total_profit:
        Sum of the profit of sold items.
    stock_value:
        Sum of the purchase price of items in stock.
    total_misc_expense, total_consumable_expense:
        Sums over ALL records, items and expenses alike.
    """

    total_stock: int
    total_sold: int
    total_profit: float
    stock_value: float
    total_misc_expense: float
    total_consumable_expense: float


@dataclass(frozen=True)
class CashflowTotals:
    """Overall income, expense and net for a set of transactions."""

    income: float
    expense: float
    net: float


# ---------------------------------------------------------------------------
# Profit & summary
# ---------------------------------------------------------------------------


def calculate_profit(record: Record) -> Optional[float]:
    """
    Return the profit of a sold item, or None when not applicable.

    profit = selling_price - purchase_price - misc_expense - consumable_expense

    Profit is None (not zero) for expense records and for items without a
    selling price.
    """
    if record.record_type == "expense":
        return None
    if record.selling_price is None:
        return None
    extra_costs = (record.misc_expense or 0) + (record.consumable_expense or 0)
    return record.selling_price - record.purchase_price - extra_costs


def calculate_summary(records: Iterable[Record]) -> Summary:
    """Roll records up into a Summary."""
    records = list(records)

    item_records = [r for r in records if r.record_type != "expense"]
    stock_items = [r for r in item_records if r.status == "in-stock"]
    sold_items = [r for r in item_records if r.status == "sold"]

    total_profit = 0.0
    for r in sold_items:
        profit = calculate_profit(r)
        if profit is not None:
            total_profit += profit

    return Summary(
        total_stock=len(stock_items),
        total_sold=len(sold_items),
        total_profit=total_profit,
        stock_value=sum(r.purchase_price for r in stock_items),
        total_misc_expense=sum(r.misc_expense or 0 for r in records),
        total_consumable_expense=sum(r.consumable_expense or 0 for r in records),
    )


# ---------------------------------------------------------------------------
# Cash transactions
# ---------------------------------------------------------------------------


def collect_transactions(records: Iterable[Record]) -> pd.DataFrame:
    """
    Derive dated cash events from records.

    Returns
    -------
    pandas.DataFrame
        Columns: date (str), income (float), expense (float), category (str).
        Empty (with the same columns) if there are no records.
    """
    rows: list[dict[str, object]] = []

    for r in records:
        extra_costs = (r.misc_expense or 0) + (r.consumable_expense or 0)

        if r.record_type == "expense":
            rows.append(
                {
                    "date": r.purchase_date,
                    "income": 0.0,
                    "expense": float(extra_costs),
                    "category": r.category,
                }
            )
            continue

        rows.append(
            {
                "date": r.purchase_date,
                "income": 0.0,
                "expense": float(r.purchase_price + extra_costs),
                "category": r.category,
            }
        )
        if r.selling_price is not None and r.sold_date:
            rows.append(
                {
                    "date": r.sold_date,
                    "income": float(r.selling_price),
                    "expense": 0.0,
                    "category": r.category,
                }
            )

    if not rows:
        return pd.DataFrame(columns=TRANSACTION_COLUMNS)

    return pd.DataFrame(rows, columns=TRANSACTION_COLUMNS)


# ---------------------------------------------------------------------------
# Buckets
# ---------------------------------------------------------------------------


def _bucket_key(value: object, granularity: Granularity) -> Optional[str]:
    """Bucket key of a date string, or None if the date cannot be parsed."""
    ts = parse_record_date(value)
    if ts is None:
        return None
    if granularity == "month":
        return f"{ts.year:04d}-{ts.month:02d}"
    return f"{ts.year:04d}"


def bucket_label(key: str) -> str:
    """Human-readable label of a bucket key: 'Jan 2025' or '2025'."""
    if len(key) == 7:
        year, month = key.split("-")
        return date(int(year), int(month), 1).strftime("%b %Y")
    return key


def build_cashflow(
    transactions: pd.DataFrame,
    granularity: Granularity = "month",
) -> pd.DataFrame:
    """
    Group transactions into calendar buckets.

    Args:
        transactions: DataFrame as returned by `collect_transactions`.
        granularity: "month" (keys 'YYYY-MM') or "year" (keys 'YYYY').

    Returns:
        A DataFrame with columns key, label, income, expense, net, one row
        per bucket, sorted by key descending (most recent first). Events
        with an unparseable date are silently ignored.
    """
    if granularity not in ("month", "year"):
        raise ValueError(f"Unknown cashflow granularity: {granularity!r}")

    if transactions.empty:
        return pd.DataFrame(columns=CASHFLOW_COLUMNS)

    df = transactions.copy()
    df["key"] = [_bucket_key(value, granularity) for value in df["date"].tolist()]
    df = df[df["key"].notna()]

    if df.empty:
        return pd.DataFrame(columns=CASHFLOW_COLUMNS)

    out = df.groupby("key", as_index=False)[["income", "expense"]].sum()
    out["net"] = out["income"] - out["expense"]
    out["label"] = out["key"].map(bucket_label)
    out = out.sort_values("key", ascending=False, kind="stable")
    out = out.reset_index(drop=True)

    return out[CASHFLOW_COLUMNS]


def calculate_totals(transactions: pd.DataFrame) -> CashflowTotals:
    """Sum income and expense over all transactions (dates are not checked)."""
    if transactions.empty:
        return CashflowTotals(income=0.0, expense=0.0, net=0.0)

    income = float(transactions["income"].sum())
    expense = float(transactions["expense"].sum())
    return CashflowTotals(income=income, expense=expense, net=income - expense)


def build_category_breakdown(transactions: pd.DataFrame) -> pd.DataFrame:
    """
    Group transactions by category.

    Categories follow the fixed CATEGORIES order; categories whose income,
    expense and net are all zero are dropped. The `expense_share` column is
    each category's share of the total expense, in percent (0 when the
    total expense is 0).

    Returns:
        A DataFrame with columns category, income, expense, net, expense_share.
    """
    if transactions.empty:
        return pd.DataFrame(columns=CATEGORY_COLUMNS)

    grouped = transactions.groupby("category")[["income", "expense"]].sum()
    grouped = grouped.reindex(list(CATEGORIES), fill_value=0.0)
    grouped.index.name = "category"

    out = grouped.reset_index()
    out["income"] = out["income"].astype(float)
    out["expense"] = out["expense"].astype(float)
    out["net"] = out["income"] - out["expense"]

    keep = (out["income"] != 0) | (out["expense"] != 0) | (out["net"] != 0)
    out = out[keep].reset_index(drop=True)

    total_expense = float(out["expense"].sum())
    if total_expense == 0:
        out["expense_share"] = 0.0
    else:
        out["expense_share"] = out["expense"] / total_expense * 100.0

    return out[CATEGORY_COLUMNS]
