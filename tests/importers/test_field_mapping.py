from datetime import date

import pytest

from import_engine import field_map as fm
from import_engine.errors import CoercionError, ImportFileError
from import_engine.formats import Layout, SourceFormat
from import_engine.mapper import first_value, map_record, split_records

TODAY = date(2025, 3, 1)


def test_first_listed_column_with_a_value_wins():
    record = {"Amount (Incl VAT)": "$12.00", "Amount": "$10.00"}
    values, _ = map_record(record, fm.BAKE_DIARY_EXPENSES, today=TODAY)
    assert values["amount"] == "12.00"
    assert values["total_inc_tax"] == "12.00"


def test_blank_first_column_falls_through_to_next():
    record = {"Amount (Incl VAT)": "  ", "Amount": "$10.00"}
    values, _ = map_record(record, fm.BAKE_DIARY_EXPENSES, today=TODAY)
    assert values["amount"] == "10.00"


def test_header_lookup_ignores_case():
    assert first_value({"order number": "1001"}, ("Order Number",)) == "1001"


def test_defaults_for_absent_columns():
    values, notes = map_record({"Date": "11 Jan 2025", "Amount": "5"},
                               fm.GENERIC_EXPENSES, today=TODAY)
    assert values["description"] == ""
    assert values["vat"] == "0"
    assert values["is_recurring"] is False
    assert notes == []


def test_missing_date_uses_today_with_note():
    values, notes = map_record({"Amount": "5"}, fm.GENERIC_EXPENSES, today=TODAY)
    assert values["date"] == "2025-03-01"
    assert notes and notes[0][0] == "date"


def test_bad_money_noted_not_raised():
    values, notes = map_record({"Date": "1 Jan 2025", "Amount": "lots"},
                               fm.GENERIC_EXPENSES, today=TODAY)
    assert values["amount"] == "0"
    assert [f for f, _ in notes] == ["amount"]


def test_bad_whole_number_raises():
    with pytest.raises(CoercionError, match="Servings"):
        map_record({"Order Number": "1", "Item": "Cake", "Servings": "two"},
                   fm.ORDER_ITEM_LIST)


def test_strict_mode_requires_values():
    with pytest.raises(CoercionError):
        map_record({"name": ""}, fm.JSON_PRODUCTS, strict=True)


def test_check_headers_names_missing_columns():
    with pytest.raises(ImportFileError, match="Order Number"):
        fm.check_headers(["Contact", "Order Total"], fm.ORDER_LIST)
    fm.check_headers(["Order Number", "Customer"], fm.ORDER_LIST)


def test_vendor_file_cannot_feed_another_entity():
    with pytest.raises(ImportFileError, match="cannot be imported as orders"):
        fm.fields_for(SourceFormat.BAKE_DIARY_EXPENSES, "orders")


def test_generic_tables_by_entity():
    assert fm.fields_for(SourceFormat.GENERIC, "expenses") is fm.GENERIC_EXPENSES
    assert fm.fields_for(SourceFormat.BAKE_DIARY_ORDERS, "quotes") is fm.ORDER_LIST


def test_describe_lists_fields():
    names = [d["field"] for d in fm.describe("order_items")]
    assert names[:3] == ["order_number", "item_date", "name"]
    with pytest.raises(KeyError):
        fm.describe("widgets")


def test_split_records_skips_short_and_blank_rows():
    layout = Layout(SourceFormat.GENERIC, 0, headers=("Date", "Description", "Amount"))
    lines = ["Date,Description,Amount", "1 Jan 2025,Flour,$4", "x,y", ",,", "2 Jan 2025,Sugar"]
    records, skipped = split_records(lines, layout)
    assert [row for row, _ in records] == [2]
    assert skipped == [3, 4, 5]
    assert records[0][1] == {"Date": "1 Jan 2025", "Description": "Flour", "Amount": "$4"}
