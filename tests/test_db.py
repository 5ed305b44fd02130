import sqlite3

import pytest

from resale_ledger.db import (
    DatabaseConfig,
    delete_record,
    get_all_records,
    get_record_by_id,
    has_records,
    init_database,
    insert_many_records,
    replace_all_records,
    upsert_record,
)
from resale_ledger.records import Record


def make_tmp_db_cfg(tmp_path) -> DatabaseConfig:
    """Helper to build a DatabaseConfig pointing to a temporary SQLite file."""
    db_path = tmp_path / "test_db.sqlite"
    return DatabaseConfig(engine="sqlite", path=db_path)


def make_record(record_id: str, created_at: str, **kwargs) -> Record:
    values = dict(
        id=record_id,
        record_type="item",
        name=f"Item {record_id}",
        category="Parts",
        purchase_price=1000.0,
        purchase_date="2025-01-01",
        misc_expense=0.0,
        consumable_expense=0.0,
        selling_price=None,
        sold_date=None,
        status="in-stock",
        memo="",
        created_at=created_at,
    )
    values.update(kwargs)
    return Record(**values)


def test_init_database_creates_file_and_schema(tmp_path):
    """init_database should create the SQLite file and an empty schema."""
    cfg = make_tmp_db_cfg(tmp_path)

    assert not cfg.path.exists()
    init_database(cfg)
    assert cfg.path.exists()

    # A freshly initialized database should not contain any records.
    assert has_records(cfg) is False
    assert get_all_records(cfg) == []

    # Idempotent.
    init_database(cfg)


def test_init_database_creates_parent_directories(tmp_path):
    cfg = DatabaseConfig(engine="sqlite", path=tmp_path / "a" / "b" / "db.sqlite")
    init_database(cfg)
    assert cfg.path.exists()


def test_unsupported_engine_is_rejected(tmp_path):
    cfg = DatabaseConfig(engine="postgres", path=tmp_path / "db.sqlite")
    with pytest.raises(ValueError):
        get_all_records(cfg)


def test_upsert_and_get_by_id(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    record = make_record(
        "1",
        "2025-01-01T00:00:00Z",
        selling_price=2500.0,
        sold_date="2025-01-20",
        status="sold",
        memo='with "quotes", commas',
    )

    upsert_record(cfg, record)

    assert has_records(cfg) is True
    assert get_record_by_id(cfg, "1") == record
    assert get_record_by_id(cfg, "missing") is None


def test_upsert_overwrites_existing_row(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    upsert_record(cfg, make_record("1", "2025-01-01T00:00:00Z"))

    updated = make_record("1", "2025-01-01T00:00:00Z", name="Renamed", status="sold")
    upsert_record(cfg, updated)

    records = get_all_records(cfg)
    assert len(records) == 1
    assert records[0].name == "Renamed"
    assert records[0].status == "sold"


def test_get_all_records_newest_first(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    upsert_record(cfg, make_record("a", "2025-01-02T00:00:00Z"))
    upsert_record(cfg, make_record("b", "2025-01-03T00:00:00Z"))
    upsert_record(cfg, make_record("c", "2025-01-01T00:00:00Z"))

    assert [r.id for r in get_all_records(cfg)] == ["b", "a", "c"]


def test_delete_record(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    upsert_record(cfg, make_record("1", "2025-01-01T00:00:00Z"))

    assert delete_record(cfg, "1") is True
    assert delete_record(cfg, "1") is False
    assert has_records(cfg) is False


def test_replace_all_records(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    upsert_record(cfg, make_record("old", "2025-01-01T00:00:00Z"))

    written = replace_all_records(
        cfg,
        [
            make_record("1", "2025-02-01T00:00:00Z"),
            make_record("2", "2025-02-02T00:00:00Z"),
        ],
    )

    assert written == 2
    assert sorted(r.id for r in get_all_records(cfg)) == ["1", "2"]


def test_replace_all_with_duplicate_ids_keeps_last(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)

    replace_all_records(
        cfg,
        [
            make_record("1", "2025-02-01T00:00:00Z", name="first"),
            make_record("1", "2025-02-01T00:00:00Z", name="second"),
        ],
    )

    records = get_all_records(cfg)
    assert len(records) == 1
    assert records[0].name == "second"


def test_insert_many_merges_by_id(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    upsert_record(cfg, make_record("1", "2025-01-01T00:00:00Z", name="kept?"))
    upsert_record(cfg, make_record("2", "2025-01-02T00:00:00Z", name="untouched"))

    written = insert_many_records(
        cfg,
        [
            make_record("1", "2025-01-01T00:00:00Z", name="overwritten"),
            make_record("3", "2025-01-03T00:00:00Z", name="new"),
        ],
    )

    assert written == 2
    by_id = {r.id: r for r in get_all_records(cfg)}
    assert set(by_id) == {"1", "2", "3"}
    assert by_id["1"].name == "overwritten"
    assert by_id["2"].name == "untouched"


def test_rows_with_empty_values_are_read_with_defaults(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    init_database(cfg)

    conn = sqlite3.connect(cfg.path)
    try:
        conn.execute(
            "INSERT INTO records VALUES ('x', '', 'Legacy', '', 500, "
            "'2024-05-01', 0, 0, NULL, NULL, '', '', '2024-05-01T00:00:00Z');"
        )
        conn.commit()
    finally:
        conn.close()

    record = get_record_by_id(cfg, "x")
    assert record is not None
    assert record.record_type == "item"
    assert record.category == "Other"
    assert record.status == "in-stock"
    assert record.selling_price is None
    assert record.memo == ""
