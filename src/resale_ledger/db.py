# Resale Ledger - Inventory & cashflow tracker for resellers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.


"""
Database layer for Resale Ledger.

This module provides the low-level accessors used to persist records in a
local SQLite file. The database is the single source of truth for items and
expenses across all views, summaries and cashflow boards.

------------------------------------------------------------------------------
Schema Overview
------------------------------------------------------------------------------

One table:

records
   One row per item or expense.

   Columns:
   - id                 TEXT PRIMARY KEY
   - record_type        TEXT NOT NULL   -- "item" | "expense"
   - name               TEXT NOT NULL
   - category           TEXT NOT NULL
   - purchase_price     REAL NOT NULL
   - purchase_date      TEXT NOT NULL   -- ISO date "YYYY-MM-DD"
   - misc_expense       REAL NOT NULL
   - consumable_expense REAL NOT NULL
   - selling_price      REAL            -- NULL while unsold
   - sold_date          TEXT            -- NULL while unsold
   - status             TEXT NOT NULL   -- "in-stock" | "sold"
   - memo               TEXT NOT NULL
   - created_at         TEXT NOT NULL   -- ISO timestamp

------------------------------------------------------------------------------
Key Responsibilities
------------------------------------------------------------------------------

1) Schema creation
   - `init_database` creates the file, its parent directory and the table.
     It is idempotent and called by every public accessor.

2) Reads
   - `get_all_records` returns every record, newest `created_at` first.
   - `get_record_by_id` loads a single record.
   - `has_records` tells whether the table holds at least one row.

3) Writes
   - `upsert_record` inserts a record or overwrites the row with the same id.
   - `delete_record` removes a row by id.
   - `replace_all_records` clears the table and inserts a full set inside a
     single transaction (all or nothing).
   - `insert_many_records` inserts or overwrites a batch of rows.

Uniqueness of `id` is guaranteed by the primary key and the upsert
semantics; application code never checks for collisions itself. Concurrent
writes to the same id are last-write-wins.

------------------------------------------------------------------------------
SQLite Notes
------------------------------------------------------------------------------

- Amounts are stored as REAL, exactly as entered.
- Dates and timestamps are stored as text and never parsed by this module.
- The caller-visible type is `records.Record`; rows are mapped back with the
  same defaults as the normalizer so that legacy or hand-edited rows still
  load.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from .records import DEFAULT_CATEGORY, Record

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseConfig:
    """
    Database configuration for Resale Ledger.

    Attributes
    ----------
    engine:
        Database engine identifier. Only "sqlite" is supported.
    path:
        Path to the SQLite database file.
    """

    engine: str
    path: Path


_COLUMNS = (
    "id",
    "record_type",
    "name",
    "category",
    "purchase_price",
    "purchase_date",
    "misc_expense",
    "consumable_expense",
    "selling_price",
    "sold_date",
    "status",
    "memo",
    "created_at",
)

_INSERT_VALUES = f"""
    ({", ".join(_COLUMNS)})
    VALUES ({", ".join("?" for _ in _COLUMNS)})
"""


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _ensure_sqlite(cfg: DatabaseConfig) -> None:
    """Raise if the configuration does not refer to a supported engine."""
    if cfg.engine.lower() != "sqlite":
        msg = (
            f"Unsupported database engine: {cfg.engine!r}. "
            "Only 'sqlite' is supported for now."
        )
        raise ValueError(msg)


def _connect(cfg: DatabaseConfig) -> sqlite3.Connection:
    """
    Open a SQLite connection.

    The caller is responsible for closing the connection.
    """
    _ensure_sqlite(cfg)
    return sqlite3.connect(cfg.path)


def _create_schema_if_needed(conn: sqlite3.Connection) -> None:
    """
    Create the records table and its index if they do not exist yet.

    This function is idempotent and can be called multiple times safely.
    """
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS records (
            id                 TEXT PRIMARY KEY,
            record_type        TEXT NOT NULL,
            name               TEXT NOT NULL,
            category           TEXT NOT NULL,
            purchase_price     REAL NOT NULL,
            purchase_date      TEXT NOT NULL,  -- ISO date 'YYYY-MM-DD'
            misc_expense       REAL NOT NULL,
            consumable_expense REAL NOT NULL,
            selling_price      REAL,
            sold_date          TEXT,
            status             TEXT NOT NULL,
            memo               TEXT NOT NULL,
            created_at         TEXT NOT NULL
        );
        """
    )

    conn.execute(
        """
        CREATE INDEX IF NOT EXISTS idx_records_created_at
            ON records(created_at);
        """
    )

    conn.commit()


def _record_to_params(record: Record) -> tuple:
    """Return the positional parameters matching _COLUMNS."""
    return (
        record.id,
        record.record_type,
        record.name,
        record.category,
        record.purchase_price,
        record.purchase_date,
        record.misc_expense,
        record.consumable_expense,
        record.selling_price,
        record.sold_date,
        record.status,
        record.memo,
        record.created_at,
    )


def _row_to_record(row: tuple) -> Record:
    """
    Convert a raw SELECT row (in _COLUMNS order) into a Record.

    NULLs in NOT NULL columns cannot happen with this schema, but rows
    written by older tools are mapped with the same defaults as the
    normalizer rather than rejected.
    """
    (
        record_id,
        record_type,
        name,
        category,
        purchase_price,
        purchase_date,
        misc_expense,
        consumable_expense,
        selling_price,
        sold_date,
        status,
        memo,
        created_at,
    ) = row

    return Record(
        id=str(record_id if record_id is not None else ""),
        record_type=str(record_type or "item"),
        name=str(name or ""),
        category=str(category or DEFAULT_CATEGORY),
        purchase_price=float(purchase_price or 0),
        purchase_date=str(purchase_date or ""),
        misc_expense=float(misc_expense or 0),
        consumable_expense=float(consumable_expense or 0),
        selling_price=None if selling_price is None else float(selling_price),
        sold_date=None if sold_date is None else str(sold_date),
        status=str(status or "in-stock"),
        memo=str(memo or ""),
        created_at=str(created_at or ""),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def init_database(cfg: DatabaseConfig) -> None:
    """
    Initialize the database schema if needed.

    - Creates the parent directory and the SQLite file if they do not exist.
    - Creates the `records` table and its index if missing.
    - This function is idempotent: calling it multiple times is safe.

    Raises
    ------
    ValueError
        If cfg.engine is not supported.
    sqlite3.Error
        If schema creation fails.
    """
    cfg.path.parent.mkdir(parents=True, exist_ok=True)

    conn = _connect(cfg)
    try:
        _create_schema_if_needed(conn)
    finally:
        conn.close()


def get_all_records(cfg: DatabaseConfig) -> list[Record]:
    """
    Return every record, ordered by creation time (newest first).

    Returns
    -------
    list[Record]
        Possibly empty list of records.
    """
    init_database(cfg)

    conn = _connect(cfg)
    try:
        cur = conn.cursor()
        cur.execute(
            f"""
            SELECT {", ".join(_COLUMNS)}
              FROM records
             ORDER BY created_at DESC;
            """
        )
        rows = cur.fetchall()
    finally:
        conn.close()

    return [_row_to_record(row) for row in rows]


def get_record_by_id(cfg: DatabaseConfig, record_id: str) -> Record | None:
    """
    Load a single record by id.

    Returns
    -------
    Record | None
        The matching record, or None if not found.
    """
    init_database(cfg)

    conn = _connect(cfg)
    try:
        cur = conn.cursor()
        cur.execute(
            f"""
            SELECT {", ".join(_COLUMNS)}
              FROM records
             WHERE id = ?;
            """,
            (record_id,),
        )
        row = cur.fetchone()
    finally:
        conn.close()

    if row is None:
        return None

    return _row_to_record(row)


def has_records(cfg: DatabaseConfig) -> bool:
    """
    Return True if the database contains at least one record.

    Useful to warn the user when a board is requested on an empty DB.
    """
    init_database(cfg)

    conn = _connect(cfg)
    try:
        cur = conn.cursor()
        cur.execute("SELECT 1 FROM records LIMIT 1;")
        return cur.fetchone() is not None
    finally:
        conn.close()


def upsert_record(cfg: DatabaseConfig, record: Record) -> Record:
    """
    Insert a record, or overwrite the existing row with the same id.

    Every column of an existing row is replaced, including `created_at`.

    Returns
    -------
    Record
        The record as given (it is stored verbatim).
    """
    init_database(cfg)

    updates = ",\n".join(
        f"{col} = excluded.{col}" for col in _COLUMNS if col != "id"
    )

    conn = _connect(cfg)
    try:
        conn.execute(
            f"""
            INSERT INTO records {_INSERT_VALUES}
            ON CONFLICT(id) DO UPDATE SET
            {updates};
            """,
            _record_to_params(record),
        )
        conn.commit()
    finally:
        conn.close()

    logger.debug("Upserted record %s", record.id)
    return record


def delete_record(cfg: DatabaseConfig, record_id: str) -> bool:
    """
    Delete a record by id.

    Returns
    -------
    bool
        True if a row was removed, False if the id did not exist.
    """
    init_database(cfg)

    conn = _connect(cfg)
    try:
        cur = conn.execute("DELETE FROM records WHERE id = ?;", (record_id,))
        deleted = cur.rowcount > 0
        conn.commit()
    finally:
        conn.close()

    logger.debug("Deleted record %s (found=%s)", record_id, deleted)
    return deleted


def replace_all_records(cfg: DatabaseConfig, records: Iterable[Record]) -> int:
    """
    Replace the whole table content with the given records.

    The delete and the inserts run in one transaction: if any insert fails,
    the previous content is kept. When the batch itself contains the same id
    twice, the last occurrence wins.

    Returns
    -------
    int
        Number of rows written.
    """
    init_database(cfg)

    params = [_record_to_params(r) for r in records]

    conn = _connect(cfg)
    try:
        with conn:
            conn.execute("DELETE FROM records;")
            conn.executemany(
                f"INSERT OR REPLACE INTO records {_INSERT_VALUES};", params
            )
    finally:
        conn.close()

    logger.debug("Replaced all records with %d rows", len(params))
    return len(params)


def insert_many_records(cfg: DatabaseConfig, records: Iterable[Record]) -> int:
    """
    Insert a batch of records, overwriting rows whose id already exists.

    Returns
    -------
    int
        Number of rows written.
    """
    init_database(cfg)

    params = [_record_to_params(r) for r in records]

    conn = _connect(cfg)
    try:
        with conn:
            conn.executemany(
                f"INSERT OR REPLACE INTO records {_INSERT_VALUES};", params
            )
    finally:
        conn.close()

    logger.debug("Inserted or replaced %d rows", len(params))
    return len(params)
