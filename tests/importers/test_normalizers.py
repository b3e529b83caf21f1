from datetime import date
from decimal import Decimal

import pytest

from import_engine.normalizers import (
    normalize_bool, normalize_date, normalize_money, to_decimal, to_int, to_iso_date,
)


@pytest.mark.parametrize("raw, expected", [
    ("$1,234.56", "1234.56"),
    ("(12.00)", "-12.00"),
    ("$45", "45.00"),
    ("£4.50", "4.50"),
    ("", "0.00"),
    (12.5, "12.50"),
    ("-3.456", "-3.46"),
    ("$(12.00)", "-12.00"),
    ("(£1,200.50)", "-1200.50"),
    ("-$7.25", "-7.25"),
])
def test_currency_values(raw, expected):
    assert normalize_money(raw) == expected


def test_unparseable_currency_is_zero_with_warning():
    warnings = []
    assert normalize_money("twelve", warnings) == "0"
    assert len(warnings) == 1
    assert "twelve" in warnings[0]


def test_to_decimal_rejects_garbage():
    with pytest.raises(ValueError):
        to_decimal("abc")


@pytest.mark.parametrize("raw, expected", [
    ("Yes", True), ("TRUE", True), ("true", True), (True, True),
    ("No", False), ("1", False), ("", False), (None, False), (False, False),
])
def test_bool_values(raw, expected):
    assert normalize_bool(raw) is expected


@pytest.mark.parametrize("raw, expected", [
    ("11 Jan 2025", "2025-01-11"),
    ("1 Feb 2024", "2024-02-01"),
    ("25 December 2023", "2023-12-25"),
    ("2025-01-11", "2025-01-11"),
    ("2025-01-11T10:30:00.000Z", "2025-01-11"),
    ("March 3, 2024", "2024-03-03"),
])
def test_dates_become_iso(raw, expected):
    assert to_iso_date(raw) == expected


def test_unparseable_date_falls_back_to_today_without_raising():
    warnings = []
    today = date(2025, 6, 1)
    assert normalize_date("sometime soon", warnings, today=today) == "2025-06-01"
    assert warnings and "sometime soon" in warnings[0]


def test_invalid_iso_date_falls_back():
    warnings = []
    assert normalize_date("2025-13-45", warnings, today=date(2025, 6, 1)) == "2025-06-01"
    assert warnings


def test_to_int_accepts_whole_numbers_only():
    assert to_int("3") == 3
    assert to_int("4.0") == 4
    with pytest.raises(ValueError):
        to_int("2.5")


@pytest.mark.parametrize("raw", ["1e999999", float("inf"), float("nan"), "Infinity", "NaN"])
def test_overflowing_or_non_finite_amount_is_zero_with_warning(raw):
    warnings = []
    assert normalize_money(raw, warnings) == "0"
    assert len(warnings) == 1


def test_to_decimal_rejects_out_of_range_values():
    assert to_decimal("999999999999.99") == Decimal("999999999999.99")
    with pytest.raises(ValueError, match="out of range"):
        to_decimal("$10000000000000")
