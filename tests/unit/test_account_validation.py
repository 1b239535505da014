"""Unit tests for sort code, account number and amount validation"""

import pytest
from decimal import Decimal
from nexus_gateway.domain.account_validation import (
    modulus_check,
    validate_account_number,
    validate_amount,
    validate_sort_code,
    weighted_digit_sum,
)


@pytest.mark.parametrize("raw", ["20-00-00", "200000", "20 00 00", " 20-00 00 "])
def test_sort_code_accepts_common_formats(raw: str):
    """Dashes and spaces are stripped and the result is formatted XX-XX-XX"""
    result = validate_sort_code(raw)
    assert result.valid is True
    assert result.formatted == "20-00-00"


@pytest.mark.parametrize("raw", ["", "2000", "20-00-0A", "1234567"])
def test_sort_code_rejects_bad_input(raw: str):
    result = validate_sort_code(raw)
    assert result.valid is False
    assert result.error == "Sort code must be 6 digits"


def test_account_number_left_padded_to_eight_digits():
    """A 6 digit account number is padded with leading zeros"""
    result = validate_account_number("123456")
    assert result.valid is True
    assert result.formatted == "00123456"


@pytest.mark.parametrize("raw", ["12345", "123456789", "1234abcd"])
def test_account_number_rejects_bad_length_or_characters(raw: str):
    result = validate_account_number(raw)
    assert result.valid is False
    assert result.error == "Account number must be 6-8 digits"


def test_weighted_digit_sum_subtracts_nine_from_large_products():
    """Weights 2,1,2,1... apply to the last 8 digits; 9*2=18 counts as 9"""
    digits = [0] * 6 + [9, 0, 0, 0, 0, 0, 0, 0]
    assert weighted_digit_sum(digits) == 9


def test_modulus_check_reports_format_only_mode():
    """Every well-formed pair passes and no checksum is claimed"""
    result = modulus_check("20-00-00", "55779911")

    assert result.valid is True
    assert result.sort_code == "20-00-00"
    assert result.account_number == "55779911"
    assert result.mode == "format_only"
    assert result.checksum_verified is False
    assert isinstance(result.weighted_sum, int)


def test_modulus_check_sort_code_error_takes_priority():
    result = modulus_check("12", "1")
    assert result.valid is False
    assert result.error == "Sort code must be 6 digits"


def test_modulus_check_account_number_error():
    result = modulus_check("200000", "12")
    assert result.valid is False
    assert result.error == "Account number must be 6-8 digits"


def test_validate_amount_accepts_two_decimal_places():
    result = validate_amount(Decimal("10.50"))
    assert result.valid is True
    assert result.formatted == "10.50"


@pytest.mark.parametrize(
    "amount,error",
    [
        ("abc", "Amount must be a number"),
        ("NaN", "Amount must be a number"),
        (0, "Amount must be greater than zero"),
        (-5, "Amount must be greater than zero"),
        ("1.005", "Amount cannot have more than 2 decimal places"),
    ],
)
def test_validate_amount_rejections(amount, error: str):
    result = validate_amount(amount)
    assert result.valid is False
    assert result.error == error


def test_validate_amount_ignores_trailing_zeros():
    """1.500 has three places written but only one significant"""
    assert validate_amount("1.500").valid is True
