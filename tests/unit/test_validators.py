"""
Unit tests cho parse số tiền / số lượng / ngày.
"""

from datetime import date
from decimal import Decimal

import pytest

from backend.sokho.core.error_handler import InvalidAmountError, ValidationError
from backend.sokho.core.validators import (
    load_json_body,
    parse_date,
    parse_decimal,
    parse_int,
    parse_non_negative,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1.250.000", Decimal("1250000")),
        ("50.000", Decimal("50000")),
        ("12.5", Decimal("12.5")),
        (15000, Decimal("15000")),
        (" 700 ", Decimal("700")),
    ],
)
def test_parse_decimal_vietnamese_format(raw, expected):
    assert parse_decimal(raw, "Số tiền") == expected


@pytest.mark.parametrize("raw", ["abc", True, "NaN", None])
def test_parse_decimal_rejects_garbage(raw):
    with pytest.raises(InvalidAmountError):
        parse_decimal(raw, "Số tiền")


def test_parse_non_negative_default():
    assert parse_non_negative("", "Thu khác", default=Decimal("0")) == Decimal("0")
    with pytest.raises(InvalidAmountError):
        parse_non_negative("-1", "Thu khác")


def test_parse_int():
    assert parse_int("3", "Số lượng", minimum=1) == 3
    assert parse_int(2.0, "Số lượng", minimum=1) == 2
    for raw in ("1.5", 0, "x", 10**20):
        with pytest.raises(InvalidAmountError):
            parse_int(raw, "Số lượng", minimum=1)


def test_parse_date():
    assert parse_date("2025-03-08T10:00:00Z") == date(2025, 3, 8)
    assert parse_date(None, default=date(2025, 1, 1)) == date(2025, 1, 1)
    with pytest.raises(ValidationError):
        parse_date("08/03/2025")


def test_load_json_body():
    assert load_json_body("") == {}
    assert load_json_body(b'{"a": 1}') == {"a": 1}
    with pytest.raises(ValidationError):
        load_json_body("[1, 2]")
    with pytest.raises(ValidationError):
        load_json_body("{oops")
    with pytest.raises(ValidationError):
        load_json_body(b"\xff\xfe")
