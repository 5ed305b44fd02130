# Resale Ledger - Inventory & cashflow tracker for resellers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
I/O module for Resale Ledger.

This module handles the CSV interchange format used to export records and
to import them back (or from a spreadsheet).

Format
------
A comma-separated table with a fixed 13-column header:

    id, recordType, name, category, purchasePrice, purchaseDate,
    miscExpense, consumableExpense, sellingPrice, soldDate, status,
    memo, createdAt

Writing
-------
- Null values (unsold selling price / sold date) are written as empty cells.
- Integral amounts are written without a decimal part ("15000", not
  "15000.0").
- Cells containing a comma, a double quote or a newline are quoted, with
  inner quotes doubled (standard minimal CSV quoting).

Reading
-------
- Rows made only of blank cells are ignored.
- A first row equal to the header (cells trimmed) is skipped; any other
  first row is treated as data.
- Columns are read by position, in header order. Missing trailing cells are
  treated as empty; cells beyond the 13th are ignored.
- purchasePrice, miscExpense, consumableExpense: "" -> 0.
- sellingPrice, soldDate: "" -> null.
- A non-numeric value in a numeric column is kept as text, so that the
  normalizer applies its type rules: the other amounts fall back to their
  defaults, but purchasePrice is required and the whole row is rejected.
  A reader coercing such a cell to NaN would keep the row instead; here a
  record never carries a NaN amount.
- Every row goes through `records.normalize_record`; rejected rows are
  dropped.
"""

import io
import os
from collections.abc import Iterable
from typing import Any, Union

import pandas as pd

from .records import Record, normalize_record, record_to_dict

CSV_HEADERS: tuple[str, ...] = (
    "id",
    "recordType",
    "name",
    "category",
    "purchasePrice",
    "purchaseDate",
    "miscExpense",
    "consumableExpense",
    "sellingPrice",
    "soldDate",
    "status",
    "memo",
    "createdAt",
)

_ZERO_DEFAULT_COLUMNS = ("purchasePrice", "miscExpense", "consumableExpense")
_NULL_DEFAULT_COLUMNS = ("sellingPrice",)
_NULL_TEXT_COLUMNS = ("soldDate",)


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------


def _format_cell(value: Any) -> str:
    """Render a record value as CSV cell text."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def records_to_dataframe(records: Iterable[Record]) -> pd.DataFrame:
    """Return the records as a DataFrame of cell strings, in header order."""
    rows = []
    for r in records:
        values = record_to_dict(r)
        rows.append([_format_cell(values[h]) for h in CSV_HEADERS])
    return pd.DataFrame(rows, columns=list(CSV_HEADERS), dtype=str)


def serialize_records_csv(records: Iterable[Record]) -> str:
    """
    Serialize records to CSV text (header included, '\\n' line endings).

    The last line is not terminated by a newline.
    """
    df = records_to_dataframe(records)
    text = df.to_csv(index=False, lineterminator="\n")
    return text.rstrip("\n")


def write_records_csv(
    records: Iterable[Record], path: Union[str, "os.PathLike[str]"]
) -> int:
    """
    Write records to a CSV file (UTF-8).

    Returns
    -------
    int
        Number of records written.
    """
    df = records_to_dataframe(records)
    df.to_csv(path, index=False, lineterminator="\n", encoding="utf-8")
    return len(df)


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------


def _parse_amount(value: str, empty: Any) -> Any:
    """Parse a numeric cell: empty -> `empty`, number -> float, else text."""
    text = value.strip()
    if text == "":
        return empty
    try:
        return float(text)
    except ValueError:
        return value


def _row_to_raw(row: list[str]) -> dict[str, Any]:
    """Map a positional CSV row to a camelCase raw record dict."""
    raw: dict[str, Any] = {}
    for index, header in enumerate(CSV_HEADERS):
        value = row[index] if index < len(row) else ""
        if header in _ZERO_DEFAULT_COLUMNS:
            raw[header] = _parse_amount(value, 0)
        elif header in _NULL_DEFAULT_COLUMNS:
            raw[header] = _parse_amount(value, None)
        elif header in _NULL_TEXT_COLUMNS:
            raw[header] = value if value.strip() else None
        else:
            raw[header] = value
    return raw


def rows_to_records(rows: list[list[str]]) -> list[Record]:
    """
    Convert parsed CSV rows (lists of cell strings) into records.

    Skips a leading header row and drops rows rejected by the normalizer.
    """
    if not rows:
        return []

    header_row = [cell.strip() for cell in rows[0]]
    start_index = 1 if tuple(header_row) == CSV_HEADERS else 0

    records: list[Record] = []
    for row in rows[start_index:]:
        record = normalize_record(_row_to_raw(row))
        if record is not None:
            records.append(record)
    return records


def _read_rows(source: Union[str, "os.PathLike[str]", io.StringIO]) -> list[list[str]]:
    """
    Read CSV cells as strings, without header inference or NA conversion.

    Every row is mapped onto the 13 header positions: extra trailing cells
    are dropped and missing ones become empty strings.
    """
    positions = list(range(len(CSV_HEADERS)))
    try:
        df = pd.read_csv(
            source,
            header=None,
            names=positions,
            usecols=positions,
            index_col=False,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            encoding="utf-8",
        )
    except pd.errors.EmptyDataError:
        return []

    df = df.fillna("")
    rows = df.values.tolist()
    return [
        [str(cell) for cell in row]
        for row in rows
        if any(str(cell).strip() != "" for cell in row)
    ]


def parse_records_csv(text: str) -> list[Record]:
    """
    Parse CSV text into normalized records.

    Raises
    ------
    ValueError
        If the text is not valid CSV (e.g. an unterminated quoted cell).
    """
    return rows_to_records(_read_rows(io.StringIO(text)))


def read_records_csv(path: Union[str, "os.PathLike[str]"]) -> list[Record]:
    """
    Read a CSV file into normalized records.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If the file is not valid CSV or not UTF-8 encoded
        (UnicodeDecodeError).
    """
    return rows_to_records(_read_rows(path))
