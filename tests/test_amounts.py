from decimal import Decimal

import pytest

from snackmoney.core.amounts import parse_amount
from snackmoney.core.errors import InvalidAmountError, ShellExpansionHazardError


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("0.5", Decimal("0.5")),
        ("50¢", Decimal("0.50")),
        ("1¢", Decimal("0.01")),
        ("0.5¢", Decimal("0.005")),
        ("$0.5", Decimal("0.5")),
        ("$1.25", Decimal("1.25")),
        ("  2  ", Decimal("2")),
        ("0", Decimal("0")),
    ],
)
def test_parse_amount_notations(raw, expected):
    assert parse_amount(raw) == expected


def test_cents_shift_is_exact():
    assert parse_amount("5¢") == Decimal("0.05")
    assert str(parse_amount("5¢")) == "0.05"


def test_dollar_integer_is_rejected_with_cents_hint():
    with pytest.raises(ShellExpansionHazardError) as excinfo:
        parse_amount("$1")

    assert excinfo.value.suggestion == "100¢"
    assert "100¢" in str(excinfo.value)
    assert isinstance(excinfo.value, InvalidAmountError)


def test_dollar_ten_suggests_thousand_cents():
    with pytest.raises(ShellExpansionHazardError) as excinfo:
        parse_amount("$10")
    assert excinfo.value.suggestion == "1000¢"


@pytest.mark.parametrize("raw", ["", "abc", "1.2.3", "¢", "$", "1e3", "NaN", "inf", "-1", "5$"])
def test_invalid_amounts(raw):
    with pytest.raises(InvalidAmountError):
        parse_amount(raw)


def test_trailing_newline_is_not_a_number():
    with pytest.raises(InvalidAmountError):
        parse_amount("$1\n.5")


def test_preparsed_numbers_pass_through():
    assert parse_amount(1) == Decimal("1")
    assert parse_amount(0.1) == Decimal("0.1")
    assert parse_amount(Decimal("0.25")) == Decimal("0.25")


def test_bool_and_none_are_rejected():
    with pytest.raises(InvalidAmountError):
        parse_amount(True)
    with pytest.raises(InvalidAmountError):
        parse_amount(None)


def test_negative_numbers_are_rejected():
    with pytest.raises(InvalidAmountError):
        parse_amount(-0.5)


def test_non_ascii_digits_are_rejected():
    with pytest.raises(InvalidAmountError):
        parse_amount("٣")


def test_amount_too_precise_for_json_is_rejected():
    with pytest.raises(InvalidAmountError):
        parse_amount("0.1234567890123456789")
    assert parse_amount("0.123456789") == Decimal("0.123456789")
