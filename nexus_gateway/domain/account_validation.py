"""UK sort code and account number validation.

Only the structural part of modulus checking is implemented. The real check
compares the weighted sum against the per-bank weight table published by
Vocalink, which is licensed and updated quarterly. Results therefore carry
mode="format_only" and checksum_verified=False.
"""

import re
from decimal import Decimal, InvalidOperation

from nexus_gateway.domain.models import ModulusResult, ValidationResult

SEPARATORS = re.compile(r"[-\s]")
MODULUS_WEIGHTS = [0, 0, 0, 0, 0, 0, 2, 1, 2, 1, 2, 1, 2, 1]


def validate_sort_code(sort_code: str) -> ValidationResult:
    """Validate a sort code given as XX-XX-XX, XXXXXX or with spaces"""
    cleaned = SEPARATORS.sub("", sort_code or "")

    if not re.fullmatch(r"\d{6}", cleaned):
        return ValidationResult(valid=False, error="Sort code must be 6 digits")

    return ValidationResult(valid=True, formatted=f"{cleaned[0:2]}-{cleaned[2:4]}-{cleaned[4:6]}")


def validate_account_number(account_number: str) -> ValidationResult:
    """Validate a 6-8 digit account number, left-padding to 8 digits"""
    cleaned = SEPARATORS.sub("", account_number or "")

    if not re.fullmatch(r"\d{6,8}", cleaned):
        return ValidationResult(valid=False, error="Account number must be 6-8 digits")

    return ValidationResult(valid=True, formatted=cleaned.zfill(8))


def weighted_digit_sum(digits: list[int]) -> int:
    """Sum of digit * weight, subtracting 9 from any product above 9"""
    total = 0
    for digit, weight in zip(digits, MODULUS_WEIGHTS):
        product = digit * weight
        total += product - 9 if product > 9 else product
    return total


def modulus_check(sort_code: str, account_number: str) -> ModulusResult:
    """
    Format-only modulus check.

    Validates both identifiers and computes the weighted sum over the 14 digit
    sort code + account number sequence. The sum is reported but not compared
    against any bank weight table, so every correctly formatted pair passes.
    """
    sc = validate_sort_code(sort_code)
    if not sc.valid:
        return ModulusResult(valid=False, error=sc.error)

    an = validate_account_number(account_number)
    if not an.valid:
        return ModulusResult(valid=False, error=an.error)

    digits = [int(ch) for ch in sc.formatted.replace("-", "") + an.formatted]

    # Unreachable after the checks above
    if len(digits) != 14:
        return ModulusResult(valid=False, error="Invalid sort code and account number combination")

    return ModulusResult(
        valid=True,
        sort_code=sc.formatted,
        account_number=an.formatted,
        weighted_sum=weighted_digit_sum(digits),
    )


def validate_amount(amount) -> ValidationResult:
    """Amounts are positive pounds with at most two decimal places"""
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError, TypeError):
        return ValidationResult(valid=False, error="Amount must be a number")

    if not value.is_finite():
        return ValidationResult(valid=False, error="Amount must be a number")
    if value <= 0:
        return ValidationResult(valid=False, error="Amount must be greater than zero")
    if value.normalize().as_tuple().exponent < -2:
        return ValidationResult(valid=False, error="Amount cannot have more than 2 decimal places")

    return ValidationResult(valid=True, formatted=f"{value:.2f}")
