# Resale Ledger - Inventory & cashflow tracker for resellers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Record model and normalizer for Resale Ledger.

A record is the only entity of the application. It is either:

- an ``item``: something bought for resale, optionally sold later, or
- an ``expense``: a standalone miscellaneous / consumable cost.

Records travel in two shapes:

- the ``Record`` dataclass (snake_case attributes) used inside Python code,
- a plain dict with camelCase keys (``purchasePrice``, ``soldDate``, ...)
  used at the boundaries: CLI input, CSV interchange, bulk import payloads.

``normalize_record`` is the single gate between the two. It type-checks the
required fields, fills defaults for the optional ones and never raises.
It does NOT enforce business consistency (expense with a purchase price,
selling price without a sold date, ...): callers building records are
responsible for that (see ``records_service.build_new_record``).
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal, Optional

import pandas as pd

RecordType = Literal["item", "expense"]
ItemStatus = Literal["in-stock", "sold"]

RECORD_TYPES: tuple[str, ...] = ("item", "expense")
STATUSES: tuple[str, ...] = ("in-stock", "sold")

# Display order matters: category breakdowns follow this order.
CATEGORIES: tuple[str, ...] = ("PC", "Parts", "Peripherals", "Other")
DEFAULT_CATEGORY = "Other"

_RELATIVE_DATE_WORDS = frozenset({"now", "today", "tomorrow", "yesterday"})


@dataclass(frozen=True)
class Record:
    """
    A single inventory item or expense.

    Attributes
    ----------
    id:
        Opaque unique identifier (string).
    record_type:
        "item" or "expense".
    name, category, memo:
        Free text, except category which is one of CATEGORIES.
    purchase_price, misc_expense, consumable_expense:
        Non-negative amounts.
    purchase_date:
        Calendar date string (YYYY-MM-DD). For expenses, the date the cost
        was incurred.
    selling_price, sold_date:
        Set only once the item has been sold.
    status:
        "in-stock" or "sold". Only meaningful for items; expenses are
        always stored as "sold".
    created_at:
        Creation timestamp (ISO string), used for default ordering.
    """

    id: str
    record_type: RecordType
    name: str
    category: str
    purchase_price: float
    purchase_date: str
    misc_expense: float
    consumable_expense: float
    selling_price: Optional[float]
    sold_date: Optional[str]
    status: ItemStatus
    memo: str
    created_at: str

    @property
    def is_expense(self) -> bool:
        return self.record_type == "expense"


def _is_number(value: Any) -> bool:
    """True for int/float values, excluding booleans."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def normalize_record(value: Any) -> Optional[Record]:
    """
    Validate and coerce an arbitrary value into a Record.

    Required fields (camelCase keys) must be present with the right type,
    otherwise the whole value is rejected and None is returned:

        id (str), name (str), purchasePrice (number),
        purchaseDate (str), createdAt (str)

    Optional fields fall back to defaults when missing or invalid:

        category          -> "Other" unless one of CATEGORIES
        status            -> "in-stock" unless one of STATUSES
        recordType        -> "item" unless one of RECORD_TYPES
        sellingPrice      -> None unless a number
        soldDate          -> None unless a string
        miscExpense       -> 0 unless a number
        consumableExpense -> 0 unless a number
        memo              -> "" unless a string

    Returns
    -------
    Record or None
    """
    if not isinstance(value, Mapping):
        return None

    if not (
        isinstance(value.get("id"), str)
        and isinstance(value.get("name"), str)
        and _is_number(value.get("purchasePrice"))
        and isinstance(value.get("purchaseDate"), str)
        and isinstance(value.get("createdAt"), str)
    ):
        return None

    category = value.get("category")
    if category not in CATEGORIES:
        category = DEFAULT_CATEGORY

    status = value.get("status")
    if status not in STATUSES:
        status = "in-stock"

    record_type = value.get("recordType")
    if record_type not in RECORD_TYPES:
        record_type = "item"

    selling_price = value.get("sellingPrice")
    if not _is_number(selling_price):
        selling_price = None

    sold_date = value.get("soldDate")
    if not isinstance(sold_date, str):
        sold_date = None

    misc_expense = value.get("miscExpense")
    if not _is_number(misc_expense):
        misc_expense = 0

    consumable_expense = value.get("consumableExpense")
    if not _is_number(consumable_expense):
        consumable_expense = 0

    memo = value.get("memo")
    if not isinstance(memo, str):
        memo = ""

    return Record(
        id=value["id"],
        record_type=record_type,
        name=value["name"],
        category=category,
        purchase_price=value["purchasePrice"],
        purchase_date=value["purchaseDate"],
        misc_expense=misc_expense,
        consumable_expense=consumable_expense,
        selling_price=selling_price,
        sold_date=sold_date,
        status=status,
        memo=memo,
        created_at=value["createdAt"],
    )


def record_to_dict(record: Record) -> dict[str, Any]:
    """Return the camelCase dict form of a record (inverse of normalize_record)."""
    return {
        "id": record.id,
        "recordType": record.record_type,
        "name": record.name,
        "category": record.category,
        "purchasePrice": record.purchase_price,
        "purchaseDate": record.purchase_date,
        "miscExpense": record.misc_expense,
        "consumableExpense": record.consumable_expense,
        "sellingPrice": record.selling_price,
        "soldDate": record.sold_date,
        "status": record.status,
        "memo": record.memo,
        "createdAt": record.created_at,
    }


def parse_record_date(value: Optional[str]) -> Optional[pd.Timestamp]:
    """
    Parse a record date string, returning None when it is not a valid date.

    Timezone-aware timestamps are converted to naive wall-clock values so
    that they can be compared with plain date bounds.
    """
    if not value or not isinstance(value, str):
        return None

    text = value.strip()
    # pandas resolves these keywords against the clock; they are not dates.
    if text.lower() in _RELATIVE_DATE_WORDS:
        return None

    try:
        ts = pd.to_datetime(text, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None

    if pd.isna(ts):
        return None

    if ts.tzinfo is not None:
        ts = ts.tz_localize(None)
    return ts
