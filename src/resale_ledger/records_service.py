# Resale Ledger - Inventory & cashflow tracker for resellers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.


"""
High-level services for record CRUD operations and bulk import/export.

This module sits between:
- the low-level database helpers in `db.py`, and
- user-facing layers such as the CLI.

Responsibilities
----------------
1) Record construction
   - `build_new_record` turns user input (a RecordForm) into a raw record
     dict: new id, creation timestamp, default purchase date, and the
     expense rules (an expense has no purchase price, no sale and is always
     "sold").
   - `apply_record_edit` merges user input over an existing record with the
     same rules.

2) CRUD Operations
   - `save_record` normalizes raw input and upserts it.
   - `create_record` / `edit_record` / `delete_record` wrap the above for
     form-based callers.
   - `list_records` / `load_record` read from the store.

3) Bulk import & export
   - `import_records` normalizes a batch and either replaces the whole
     table ("replace") or upserts the batch ("merge"). Both modes overwrite
     rows whose id collides with an imported row.
   - `import_records_from_csv` / `export_records_to_csv` connect the CSV
     interchange format of `io.py` to the store.

Design notes
------------
- The normalizer only type-checks and fills defaults. Consistency rules
  between fields (expense vs. item) are applied here, when records are
  built from user input, and nowhere else.
- Errors for bad input are ValueError subclasses; persistence errors
  (sqlite3.Error, OSError) are propagated unchanged to the caller.
"""

import logging
import os
import time
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Literal, Optional, Union

from .config import AppConfig
from .db import DatabaseConfig
from .db import delete_record as _db_delete_record
from .db import get_all_records as _db_get_all_records
from .db import get_record_by_id as _db_get_record_by_id
from .db import insert_many_records as _db_insert_many_records
from .db import replace_all_records as _db_replace_all_records
from .db import upsert_record as _db_upsert_record
from .io import read_records_csv, write_records_csv
from .records import DEFAULT_CATEGORY, Record, normalize_record, record_to_dict

logger = logging.getLogger(__name__)

ImportMode = Literal["replace", "merge"]


class RecordValidationError(ValueError):
    """Raised when input cannot be normalized into a record."""


class NoValidRecordsError(ValueError):
    """Raised when a bulk import contains no valid record at all."""


class RecordNotFoundError(LookupError):
    """Raised when a record id does not exist in the store."""


@dataclass(frozen=True)
class RecordForm:
    """
    User input for creating or editing a record.

    Every attribute is optional. When creating, missing values fall back to
    defaults; when editing, only non-None values are applied. `clear_sale`
    removes the selling price and sold date of an item.
    """

    record_type: Optional[str] = None
    name: Optional[str] = None
    category: Optional[str] = None
    purchase_price: Optional[float] = None
    purchase_date: Optional[str] = None
    misc_expense: Optional[float] = None
    consumable_expense: Optional[float] = None
    selling_price: Optional[float] = None
    sold_date: Optional[str] = None
    status: Optional[str] = None
    memo: Optional[str] = None
    clear_sale: bool = False


@dataclass(frozen=True)
class ImportStats:
    """
    Summary of a bulk import.

    Attributes
    ----------
    mode:
        "replace" or "merge".
    received:
        Number of raw items in the payload.
    imported:
        Number of records written to the store.
    rejected:
        Number of raw items dropped by the normalizer.
    """

    mode: ImportMode
    received: int
    imported: int
    rejected: int


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _get_db_config(app_config: AppConfig) -> DatabaseConfig:
    """Convenience helper to access the database configuration."""
    return app_config.database


def _now_utc_iso() -> str:
    """Return the current UTC datetime as ISO string (isolated for testing)."""
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _today_iso() -> str:
    return date.today().isoformat()


def _new_record_id() -> str:
    """Millisecond timestamp, as a string."""
    return str(int(time.time() * 1000))


# ---------------------------------------------------------------------------
# Record construction
# ---------------------------------------------------------------------------


def build_new_record(form: RecordForm) -> dict[str, Any]:
    """
    Build the raw (camelCase) dict of a new record from user input.

    Rules
    -----
    - id: millisecond timestamp; createdAt: now (UTC).
    - purchaseDate defaults to today; category to "Other".
    - For expenses: purchasePrice = 0, no sale, status = "sold".
    - For items: a zero / empty selling price or sold date counts as "not
      sold" and is stored as null; status defaults to "in-stock".
    """
    record_type = form.record_type or "item"
    is_expense = record_type == "expense"

    return {
        "id": _new_record_id(),
        "recordType": record_type,
        "name": form.name or "",
        "category": form.category or DEFAULT_CATEGORY,
        "purchasePrice": 0 if is_expense else (form.purchase_price or 0),
        "purchaseDate": form.purchase_date or _today_iso(),
        "miscExpense": form.misc_expense or 0,
        "consumableExpense": form.consumable_expense or 0,
        "sellingPrice": None if is_expense else (form.selling_price or None),
        "soldDate": None if is_expense else (form.sold_date or None),
        "status": "sold" if is_expense else (form.status or "in-stock"),
        "memo": form.memo or "",
        "createdAt": _now_utc_iso(),
    }


def apply_record_edit(existing: Record, form: RecordForm) -> dict[str, Any]:
    """
    Merge user input over an existing record and return the raw dict.

    Non-None form values replace the existing ones. The record type is kept
    unless the form sets it. Switching to (or editing) an expense applies
    the expense rules; `clear_sale` drops the sale of an item.
    """
    merged = record_to_dict(existing)

    overrides = {
        "recordType": form.record_type,
        "name": form.name,
        "category": form.category,
        "purchasePrice": form.purchase_price,
        "purchaseDate": form.purchase_date,
        "miscExpense": form.misc_expense,
        "consumableExpense": form.consumable_expense,
        "sellingPrice": form.selling_price,
        "soldDate": form.sold_date,
        "status": form.status,
        "memo": form.memo,
    }
    merged.update({k: v for k, v in overrides.items() if v is not None})

    if form.clear_sale:
        merged["sellingPrice"] = None
        merged["soldDate"] = None

    if merged["recordType"] == "expense":
        merged["purchasePrice"] = 0
        merged["sellingPrice"] = None
        merged["soldDate"] = None
        merged["status"] = "sold"

    return merged


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def list_records(app_config: AppConfig) -> list[Record]:
    """Return every record, newest first."""
    return _db_get_all_records(_get_db_config(app_config))


def load_record(app_config: AppConfig, record_id: str) -> Optional[Record]:
    """Load a single record by id, or None if it does not exist."""
    return _db_get_record_by_id(_get_db_config(app_config), record_id)


# ---------------------------------------------------------------------------
# Create / update / delete operations
# ---------------------------------------------------------------------------


def save_record(app_config: AppConfig, raw: Any) -> Record:
    """
    Normalize raw input and upsert it.

    Raises
    ------
    RecordValidationError
        If the input is rejected by the normalizer.
    """
    record = normalize_record(raw)
    if record is None:
        raise RecordValidationError("Invalid record")
    return _db_upsert_record(_get_db_config(app_config), record)


def create_record(app_config: AppConfig, form: RecordForm) -> Record:
    """Create a new record from user input."""
    return save_record(app_config, build_new_record(form))


def edit_record(app_config: AppConfig, record_id: str, form: RecordForm) -> Record:
    """
    Edit an existing record.

    The id of the saved record is always `record_id`, whatever the input.

    Raises
    ------
    RecordNotFoundError
        If no record has this id.
    RecordValidationError
        If the merged record is rejected by the normalizer.
    """
    existing = load_record(app_config, record_id)
    if existing is None:
        raise RecordNotFoundError(f"Record {record_id!r} not found.")

    raw = apply_record_edit(existing, form)
    return save_record(app_config, {**raw, "id": record_id})


def delete_record(app_config: AppConfig, record_id: str) -> bool:
    """
    Delete a record by id.

    Returns
    -------
    bool
        True if the record existed.
    """
    return _db_delete_record(_get_db_config(app_config), record_id)


# ---------------------------------------------------------------------------
# Bulk import / export
# ---------------------------------------------------------------------------


def import_records(
    app_config: AppConfig,
    raw_items: Any,
    mode: str = "merge",
) -> ImportStats:
    """
    Import a batch of raw records.

    Parameters
    ----------
    app_config:
        Global application configuration.
    raw_items:
        List of raw record dicts. Anything that is not a list is treated as
        an empty batch.
    mode:
        "replace" clears the store first; any other value means "merge"
        (insert or overwrite by id).

    Raises
    ------
    NoValidRecordsError
        If no item survives normalization. The store is left untouched.
    """
    import_mode: ImportMode = "replace" if mode == "replace" else "merge"
    items = raw_items if isinstance(raw_items, list) else []

    normalized: list[Record] = []
    for item in items:
        record = normalize_record(item)
        if record is not None:
            normalized.append(record)

    rejected = len(items) - len(normalized)
    if rejected:
        logger.warning("Import: %d invalid item(s) ignored", rejected)

    if not normalized:
        raise NoValidRecordsError("No valid records")

    db_cfg = _get_db_config(app_config)
    if import_mode == "replace":
        written = _db_replace_all_records(db_cfg, normalized)
    else:
        written = _db_insert_many_records(db_cfg, normalized)

    logger.info("Import (%s): %d record(s) written", import_mode, written)
    return ImportStats(
        mode=import_mode,
        received=len(items),
        imported=written,
        rejected=rejected,
    )


def import_records_from_csv(
    app_config: AppConfig,
    path: Union[str, "os.PathLike[str]"],
    mode: str = "merge",
) -> ImportStats:
    """
    Import records from a CSV file in the interchange format.

    Raises
    ------
    NoValidRecordsError
        If the file contains no readable record.
    """
    records = read_records_csv(path)
    if not records:
        raise NoValidRecordsError("No readable records in CSV file")
    return import_records(app_config, [record_to_dict(r) for r in records], mode)


def export_records_to_csv(
    app_config: AppConfig,
    path: Union[str, "os.PathLike[str]"],
) -> int:
    """
    Export every record (newest first) to a CSV file.

    Returns
    -------
    int
        Number of records written.
    """
    return write_records_csv(list_records(app_config), path)
