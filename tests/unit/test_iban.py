"""Unit tests for IBAN and SWIFT/BIC validation"""

import pytest
from nexus_gateway.domain.iban import (
    format_iban,
    suggest_payment_method,
    validate_iban,
    validate_swift_bic,
)


def test_valid_gb_iban_is_formatted_in_groups_of_four():
    result = validate_iban("gb82 west 1234 5698 7654 32")

    assert result.valid is True
    assert result.country_code == "GB"
    assert result.formatted == "GB82 WEST 1234 5698 7654 32"


def test_valid_de_iban():
    assert validate_iban("DE89370400440532013000").valid is True


def test_iban_with_wrong_check_digits():
    result = validate_iban("GB81WEST12345698765432")
    assert result.valid is False
    assert result.error == "IBAN check digits are invalid"


def test_iban_with_wrong_length_reports_expected_length():
    result = validate_iban("GB82WEST1234569876543")
    assert result.valid is False
    assert result.error == "IBAN for GB must be 22 characters (got 21)"


def test_iban_unknown_country():
    result = validate_iban("ZZ82WEST12345698765432")
    assert result.valid is False
    assert "ZZ" in result.error


def test_iban_too_short():
    assert validate_iban("GB8").error == "IBAN is too short"


def test_format_iban_handles_partial_group():
    assert format_iban("NO9386011117947") == "NO93 8601 1117 947"


@pytest.mark.parametrize(
    "source,destination,method",
    [("GB", "DE", "sepa"), ("GB", "US", "swift"), ("us", "de", "swift")],
)
def test_suggest_payment_method(source: str, destination: str, method: str):
    assert suggest_payment_method(source, destination) == method


@pytest.mark.parametrize("bic", ["DEUTDEFF", "deutdeff500", "NWBK GB2L"])
def test_valid_bic(bic: str):
    result = validate_swift_bic(bic)
    assert result.valid is True
    assert result.formatted == bic.replace(" ", "").upper()


@pytest.mark.parametrize("bic", ["DEUT", "1234DEFF", "DEUTDEFF5"])
def test_invalid_bic(bic: str):
    assert validate_swift_bic(bic).valid is False
