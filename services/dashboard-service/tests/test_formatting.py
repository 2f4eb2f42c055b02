from datetime import date

import pytest

from formatting import (
    format_currency,
    format_currency_short,
    format_date_es,
    format_multiple,
    format_percent,
    investor_initials,
)


def test_format_currency():
    assert format_currency(1234.5) == "$1,234.50 MXN"
    assert format_currency(0) == "$0.00 MXN"
    assert format_currency(None) == "$0.00 MXN"
    assert format_currency(float("nan")) == "$0.00 MXN"


@pytest.mark.parametrize(
    ("value", "expected"),
    [(1_234_567, "$1.23M"), (124_000, "$124K"), (999, "$999"), (None, "$0")],
)
def test_format_currency_short(value, expected):
    assert format_currency_short(value) == expected


def test_format_percent_and_multiple():
    assert format_percent(52.777) == "52.8%"
    assert format_percent(None) == "0.0%"
    assert format_multiple(2.12) == "2.12x"
    assert format_multiple(None) == "0.00x"


def test_format_date_es():
    assert format_date_es(date(2024, 3, 4)) == "4 mar 2024"
    assert format_date_es(date(2023, 12, 31)) == "31 dic 2023"
    assert format_date_es(None) == ""


def test_investor_initials():
    assert investor_initials("Ana María López") == "AM"
    assert investor_initials("grupo") == "G"
    assert investor_initials("") == ""
