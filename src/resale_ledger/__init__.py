# Resale Ledger - Inventory & cashflow tracker for resellers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Resale Ledger
-------------

A small inventory and cashflow tracker for second-hand resellers. It records
purchased items, their optional sale and standalone expenses in a local SQLite
database, and derives profit and cashflow summaries from them.

Main capabilities:
- a single-file SQLite store keyed by record id (upsert / delete / bulk import),
- a permissive normalizer turning raw input (CLI, CSV) into well-formed records,
- profit and inventory summaries (stock count, sold count, stock value, ...),
- monthly / yearly cashflow buckets and a per-category breakdown,
- CSV export and import (replace or merge),
- filterable and sortable record tables and text chart bars for the console.

Resale Ledger separates computation (engine), configuration (TOML), and
presentation (CLI), so the same building blocks can be scripted.


Version: 0.1.0

Usage:
    python -m resale_ledger.cli --help
"""

__all__ = ["engine", "records", "views", "io"]

__version__ = "0.1.0"
