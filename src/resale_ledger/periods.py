# Resale Ledger - Inventory & cashflow tracker for resellers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Period helpers for Resale Ledger.

This module defines a DateRange value object and helpers to derive the
date ranges offered on the cashflow board (all time, this month, this year,
custom) from CLI arguments, and to filter cash transactions accordingly.
"""

from calendar import monthrange
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

import pandas as pd

from .records import parse_record_date


@dataclass
class DateRange:
    """A date range with optional, inclusive bounds and a human-readable label."""

    start: Optional[date]
    end: Optional[date]
    label: str

    @property
    def is_unbounded(self) -> bool:
        return self.start is None and self.end is None


def _today() -> date:
    """Return today's date as a date object (isolated for easier testing)."""
    return datetime.today().date()


def range_all() -> DateRange:
    """No bounds: every transaction is kept."""
    return DateRange(start=None, end=None, label="All time")


def range_this_month() -> DateRange:
    """Full current calendar month."""
    today = _today()
    last_day = monthrange(today.year, today.month)[1]
    return DateRange(
        start=today.replace(day=1),
        end=today.replace(day=last_day),
        label="This month",
    )


def range_this_year() -> DateRange:
    """Full current calendar year."""
    today = _today()
    return DateRange(
        start=date(today.year, 1, 1),
        end=date(today.year, 12, 31),
        label="This year",
    )


def range_custom(start: Optional[date], end: Optional[date]) -> DateRange:
    """Custom range; either bound may be omitted."""
    if start is not None and end is not None and end < start:
        raise ValueError("Custom period end date cannot be before start date.")

    start_label = start.isoformat() if start else "…"
    end_label = end.isoformat() if end else "…"
    return DateRange(
        start=start,
        end=end,
        label=f"Custom period ({start_label} → {end_label})",
    )


def determine_range_from_args(args) -> DateRange:
    """
    Determine the date range to use based on CLI args.

    Priority (highest to lowest):

        1. args.from_date / args.to_date (custom range)
        2. args.period ("all", "this-month", "this-year")
        3. all time by default
    """
    # 1) Custom from/to dates
    from_raw: Optional[str] = getattr(args, "from_date", None)
    to_raw: Optional[str] = getattr(args, "to_date", None)

    if from_raw or to_raw:
        start = date.fromisoformat(from_raw) if from_raw else None
        end = date.fromisoformat(to_raw) if to_raw else None
        return range_custom(start, end)

    # 2) Predefined presets
    p = getattr(args, "period", None)
    if not p or p == "all":
        return range_all()
    if p == "this-month":
        return range_this_month()
    if p == "this-year":
        return range_this_year()
    raise ValueError(f"Unknown period: {p!r}")


def is_within_range(value: Optional[str], date_range: DateRange) -> bool:
    """
    Return True if a date string falls inside the range.

    Unparseable dates are never within a range. The end bound covers the
    whole end day (up to 23:59:59.999999).
    """
    ts = parse_record_date(value)
    if ts is None:
        return False
    if date_range.start is not None and ts < pd.Timestamp(date_range.start):
        return False
    if date_range.end is not None and ts > pd.Timestamp(
        datetime.combine(date_range.end, time.max)
    ):
        return False
    return True


def filter_transactions_by_range(
    transactions: pd.DataFrame, date_range: DateRange
) -> pd.DataFrame:
    """
    Filter cash transactions to keep only those within the date range.

    The `transactions` DataFrame is expected to contain a 'date' column of
    date strings (as produced by `engine.collect_transactions`).

    With an unbounded range the DataFrame is returned unchanged, including
    transactions whose date cannot be parsed; with any bound set, those
    transactions are dropped.

    Returns
    -------
    pandas.DataFrame
        Filtered copy of the transactions.
    """
    if date_range.is_unbounded or transactions.empty:
        return transactions.copy()

    mask = [is_within_range(value, date_range) for value in transactions["date"]]
    filtered = transactions.loc[pd.Series(mask, index=transactions.index)].copy()
    return filtered
