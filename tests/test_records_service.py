import logging
from types import SimpleNamespace

import pytest

import resale_ledger.records_service as rs
from resale_ledger.db import DatabaseConfig, get_all_records
from resale_ledger.records_service import (
    NoValidRecordsError,
    RecordForm,
    RecordNotFoundError,
    RecordValidationError,
    apply_record_edit,
    build_new_record,
    create_record,
    delete_record,
    edit_record,
    export_records_to_csv,
    import_records,
    import_records_from_csv,
    list_records,
    load_record,
    save_record,
)


def _make_app_config(tmp_path):
    """
    Minimal app_config for the services.

    Only the `database` attribute is used, so a SimpleNamespace is enough.
    """
    return SimpleNamespace(
        database=DatabaseConfig(engine="sqlite", path=tmp_path / "test_db.sqlite")
    )


def _raw(record_id: str, **overrides):
    raw = {
        "id": record_id,
        "recordType": "item",
        "name": f"Item {record_id}",
        "category": "Parts",
        "purchasePrice": 1000,
        "purchaseDate": "2025-01-01",
        "miscExpense": 0,
        "consumableExpense": 0,
        "sellingPrice": None,
        "soldDate": None,
        "status": "in-stock",
        "memo": "",
        "createdAt": f"2025-01-01T00:00:0{record_id}Z",
    }
    raw.update(overrides)
    return raw


@pytest.fixture
def fixed_clock(monkeypatch):
    monkeypatch.setattr(rs, "_now_utc_iso", lambda: "2025-03-01T10:00:00+00:00")
    monkeypatch.setattr(rs, "_today_iso", lambda: "2025-03-01")
    monkeypatch.setattr(rs, "_new_record_id", lambda: "1740823200000")


# ---------------------------------------------------------------------------
# Record construction
# ---------------------------------------------------------------------------


def test_build_new_item_defaults(fixed_clock):
    raw = build_new_record(RecordForm(name="GPU", purchase_price=3000))

    assert raw["id"] == "1740823200000"
    assert raw["recordType"] == "item"
    assert raw["category"] == "Other"
    assert raw["purchaseDate"] == "2025-03-01"
    assert raw["createdAt"] == "2025-03-01T10:00:00+00:00"
    assert raw["status"] == "in-stock"
    assert raw["sellingPrice"] is None
    assert raw["soldDate"] is None


def test_build_new_item_zero_selling_price_is_not_a_sale(fixed_clock):
    raw = build_new_record(
        RecordForm(name="GPU", purchase_price=3000, selling_price=0, sold_date="")
    )
    assert raw["sellingPrice"] is None
    assert raw["soldDate"] is None


def test_build_new_expense_applies_expense_rules(fixed_clock):
    raw = build_new_record(
        RecordForm(
            record_type="expense",
            name="Shipping boxes",
            purchase_price=999,
            consumable_expense=800,
            selling_price=100,
            sold_date="2025-03-02",
            status="in-stock",
        )
    )

    assert raw["purchasePrice"] == 0
    assert raw["sellingPrice"] is None
    assert raw["soldDate"] is None
    assert raw["status"] == "sold"
    assert raw["consumableExpense"] == 800


def test_apply_record_edit_merges_and_clears_sale(tmp_path):
    app_config = _make_app_config(tmp_path)
    existing = save_record(
        app_config,
        _raw("1", sellingPrice=2000, soldDate="2025-02-01", status="sold"),
    )

    raw = apply_record_edit(existing, RecordForm(memo="returned", status="in-stock"))
    assert raw["memo"] == "returned"
    assert raw["sellingPrice"] == 2000
    assert raw["name"] == "Item 1"

    raw = apply_record_edit(existing, RecordForm(clear_sale=True))
    assert raw["sellingPrice"] is None
    assert raw["soldDate"] is None


def test_apply_record_edit_to_expense(tmp_path):
    app_config = _make_app_config(tmp_path)
    existing = save_record(
        app_config,
        _raw("1", sellingPrice=2000, soldDate="2025-02-01", status="sold"),
    )

    raw = apply_record_edit(existing, RecordForm(record_type="expense"))
    assert raw["purchasePrice"] == 0
    assert raw["sellingPrice"] is None
    assert raw["status"] == "sold"


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------


def test_save_record_rejects_invalid_input(tmp_path):
    app_config = _make_app_config(tmp_path)

    with pytest.raises(RecordValidationError):
        save_record(app_config, {"name": "no id"})
    with pytest.raises(ValueError):
        save_record(app_config, "not a record")

    assert list_records(app_config) == []


def test_create_edit_delete_flow(tmp_path, fixed_clock):
    app_config = _make_app_config(tmp_path)

    created = create_record(app_config, RecordForm(name="GPU", purchase_price=3000))
    assert load_record(app_config, created.id) == created

    edited = edit_record(
        app_config,
        created.id,
        RecordForm(selling_price=4500, sold_date="2025-03-10", status="sold"),
    )
    assert edited.id == created.id
    assert edited.selling_price == 4500
    assert edited.name == "GPU"
    assert len(list_records(app_config)) == 1

    assert delete_record(app_config, created.id) is True
    assert delete_record(app_config, created.id) is False
    assert load_record(app_config, created.id) is None


def test_edit_unknown_record(tmp_path):
    app_config = _make_app_config(tmp_path)
    with pytest.raises(RecordNotFoundError):
        edit_record(app_config, "missing", RecordForm(name="x"))


# ---------------------------------------------------------------------------
# Bulk import / export
# ---------------------------------------------------------------------------


def test_import_merge_keeps_existing_and_overwrites_same_id(tmp_path):
    app_config = _make_app_config(tmp_path)
    save_record(app_config, _raw("1", name="old"))
    save_record(app_config, _raw("2", name="kept"))

    stats = import_records(app_config, [_raw("1", name="new"), _raw("3")], "merge")

    assert stats.mode == "merge"
    assert stats.imported == 2
    by_id = {r.id: r for r in list_records(app_config)}
    assert set(by_id) == {"1", "2", "3"}
    assert by_id["1"].name == "new"


def test_import_replace_removes_everything_else(tmp_path):
    app_config = _make_app_config(tmp_path)
    save_record(app_config, _raw("1"))
    save_record(app_config, _raw("2"))

    stats = import_records(app_config, [_raw("3")], "replace")

    assert stats.mode == "replace"
    assert [r.id for r in list_records(app_config)] == ["3"]


def test_unknown_mode_means_merge(tmp_path):
    app_config = _make_app_config(tmp_path)
    save_record(app_config, _raw("1"))

    stats = import_records(app_config, [_raw("2")], "whatever")

    assert stats.mode == "merge"
    assert len(list_records(app_config)) == 2


def test_import_drops_invalid_items(tmp_path, caplog):
    app_config = _make_app_config(tmp_path)

    with caplog.at_level(logging.WARNING, logger="resale_ledger.records_service"):
        stats = import_records(app_config, [_raw("1"), {"id": 2}, "junk"], "merge")

    assert stats.received == 3
    assert stats.imported == 1
    assert stats.rejected == 2
    assert "2 invalid item(s)" in caplog.text


def test_import_without_valid_items_leaves_store_untouched(tmp_path):
    app_config = _make_app_config(tmp_path)
    save_record(app_config, _raw("1"))

    with pytest.raises(NoValidRecordsError):
        import_records(app_config, [{"id": 2}], "replace")
    with pytest.raises(NoValidRecordsError):
        import_records(app_config, {"items": []}, "replace")

    assert [r.id for r in get_all_records(app_config.database)] == ["1"]


def test_csv_export_then_import(tmp_path):
    source = _make_app_config(tmp_path / "source")
    save_record(source, _raw("1", sellingPrice=1500, soldDate="2025-01-20", status="sold"))
    save_record(source, _raw("2", memo='says "hi", twice'))

    csv_path = tmp_path / "backup.csv"
    assert export_records_to_csv(source, csv_path) == 2

    target = _make_app_config(tmp_path / "target")
    stats = import_records_from_csv(target, csv_path, mode="replace")

    assert stats.imported == 2
    assert list_records(target) == list_records(source)


def test_csv_import_without_records(tmp_path):
    app_config = _make_app_config(tmp_path)
    csv_path = tmp_path / "empty.csv"
    csv_path.write_text("", encoding="utf-8")

    with pytest.raises(NoValidRecordsError):
        import_records_from_csv(app_config, csv_path)
