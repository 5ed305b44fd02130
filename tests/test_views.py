import pandas as pd
import pytest

from resale_ledger.engine import build_cashflow, calculate_summary, collect_transactions
from resale_ledger.records import Record
from resale_ledger.views import (
    bar_width,
    cashflow_table,
    filter_records,
    format_currency,
    format_date,
    records_table,
    render_cashflow_chart,
    sort_records,
    summary_table,
)


def make_record(record_id, **kwargs) -> Record:
    values = dict(
        id=record_id,
        record_type="item",
        name=f"Item {record_id}",
        category="Other",
        purchase_price=0,
        purchase_date="2025-01-01",
        misc_expense=0,
        consumable_expense=0,
        selling_price=None,
        sold_date=None,
        status="in-stock",
        memo="",
        created_at="2025-01-01T00:00:00Z",
    )
    values.update(kwargs)
    return Record(**values)


@pytest.fixture
def records() -> list[Record]:
    return [
        make_record(
            "1",
            name="ThinkPad X1",
            category="PC",
            purchase_price=15000,
            selling_price=28000,
            sold_date="2025-02-01",
            status="sold",
            created_at="2025-01-10T00:00:00Z",
        ),
        make_record(
            "2",
            name="ddr4 16GB",
            category="Parts",
            purchase_price=2000,
            memo="tested OK",
            created_at="2025-01-15T00:00:00Z",
        ),
        make_record(
            "3",
            name="OptiPlex 7050",
            category="PC",
            purchase_price=8000,
            selling_price=7000,
            sold_date="2025-03-01",
            status="sold",
            created_at="2025-02-03T00:00:00Z",
        ),
        make_record(
            "4",
            record_type="expense",
            name="",
            category="Other",
            consumable_expense=1200,
            status="sold",
            created_at="2025-02-05T00:00:00Z",
        ),
    ]


def _ids(items):
    return [r.id for r in items]


# ---------------------------------------------------------------------------
# Filter & sort
# ---------------------------------------------------------------------------


def test_status_filter(records):
    assert _ids(filter_records(records, status="all")) == ["1", "2", "3", "4"]
    assert _ids(filter_records(records, status="sold")) == ["1", "3"]
    assert _ids(filter_records(records, status="in-stock")) == ["2"]
    assert _ids(filter_records(records, status="expense")) == ["4"]


def test_category_filter(records):
    assert _ids(filter_records(records, category="PC")) == ["1", "3"]
    assert _ids(filter_records(records, category="Peripherals")) == []


def test_search_is_case_insensitive_and_uses_hints(records):
    assert _ids(filter_records(records, query="DDR4")) == ["2"]
    assert _ids(filter_records(records, query="tested")) == ["2"]
    assert _ids(filter_records(records, query="consumable")) == ["4"]
    # Every item carries the "in-stock sold" hint.
    assert _ids(filter_records(records, query="in-stock")) == ["1", "2", "3"]
    assert _ids(filter_records(records, query="  ")) == ["1", "2", "3", "4"]


def test_sort_by_creation(records):
    assert _ids(sort_records(records, "created-desc")) == ["4", "3", "2", "1"]
    assert _ids(sort_records(records, "created-asc")) == ["1", "2", "3", "4"]


def test_sort_by_purchase_price(records):
    assert _ids(sort_records(records, "purchase-desc")) == ["1", "3", "2", "4"]
    assert _ids(sort_records(records, "purchase-asc")) == ["4", "2", "3", "1"]


def test_sort_by_profit_puts_undefined_last(records):
    # profits: 1 -> 13000, 3 -> -1000, 2 and 4 undefined
    assert _ids(sort_records(records, "profit-desc")) == ["1", "3", "2", "4"]
    assert _ids(sort_records(records, "profit-asc")) == ["3", "1", "2", "4"]


def test_sort_by_name_ignores_case(records):
    assert _ids(sort_records(records, "name-asc")) == ["4", "2", "3", "1"]
    assert _ids(sort_records(records, "name-desc")) == ["1", "3", "2", "4"]


def test_unknown_sort_key(records):
    with pytest.raises(ValueError):
        sort_records(records, "price-up")


# ---------------------------------------------------------------------------
# Formatting & tables
# ---------------------------------------------------------------------------


def test_format_currency():
    assert format_currency(28000) == "28,000 JPY"
    assert format_currency(-1500, "EUR", 2) == "-1,500.00 EUR"


def test_format_date():
    assert format_date("2025-01-10") == "Jan 10, 2025"
    assert format_date("someday") == "someday"
    assert format_date(None) == "-"


def test_records_table(records):
    df = records_table(records)

    assert len(df) == 4
    sold = df.iloc[0]
    assert sold["profit"] == "+13,000 JPY"
    assert sold["selling_price"] == "28,000 JPY"

    in_stock = df.iloc[1]
    assert in_stock["profit"] == "-"
    assert in_stock["sold_date"] == "-"

    expense = df.iloc[3]
    assert expense["name"] == "(expense)"
    assert expense["purchase_price"] == "-"
    assert expense["status"] == "expense"


def test_records_table_empty():
    df = records_table([])
    assert df.empty
    assert "profit" in df.columns


def test_summary_table(records):
    df = summary_table(calculate_summary(records))
    values = dict(zip(df["label"], df["value"]))

    assert values["In stock"] == "1 items"
    assert values["Sold"] == "2 items"
    assert values["Total profit"] == "12,000 JPY"
    assert values["Consumables"] == "1,200 JPY"


def test_cashflow_table(records):
    cashflow = build_cashflow(collect_transactions(records), "month")
    df = cashflow_table(cashflow)

    assert list(df["period"]) == ["Mar 2025", "Feb 2025", "Jan 2025"]
    assert df.iloc[0]["net"] == "+7,000 JPY"


# ---------------------------------------------------------------------------
# Chart bars
# ---------------------------------------------------------------------------


def test_bar_width_is_capped():
    assert bar_width(50, 100, 20) == 10
    assert bar_width(150, 100, 20) == 20
    assert bar_width(10, 0, 20) == 0


def test_render_cashflow_chart_scales_against_largest_value():
    cashflow = pd.DataFrame(
        {
            "key": ["2025-02", "2025-01"],
            "label": ["Feb 2025", "Jan 2025"],
            "income": [1000.0, 0.0],
            "expense": [500.0, 2000.0],
            "net": [500.0, -2000.0],
        }
    )
    lines = render_cashflow_chart(cashflow, width=10)

    assert lines[0] == "Feb 2025"
    assert lines[1].count("#") == 5
    assert lines[3].count("#") == 2
    assert lines[3].endswith("+500 JPY")

    assert lines[4] == "Jan 2025"
    assert lines[6].count("#") == 10
    assert lines[7].count("#") == 10
    assert lines[7].endswith("-2,000 JPY")


def test_render_cashflow_chart_without_data():
    assert render_cashflow_chart(build_cashflow(collect_transactions([]))) == ["No data"]
