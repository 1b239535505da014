"""IBAN (ISO 13616) and SWIFT/BIC validation"""

import re

from nexus_gateway.domain.models import IbanResult, ValidationResult

IBAN_LENGTHS = {
    "AL": 28, "AD": 28, "AT": 20, "AZ": 28, "BH": 22, "BY": 28, "BE": 16, "BA": 20,
    "BR": 29, "BG": 22, "CR": 22, "HR": 21, "CY": 28, "CZ": 24, "DK": 18, "DO": 28,
    "TL": 23, "EG": 29, "SV": 28, "EE": 20, "FO": 18, "FI": 18, "FR": 27, "GE": 22,
    "DE": 22, "GI": 23, "GR": 27, "GL": 18, "GT": 28, "HU": 28, "IS": 26, "IQ": 23,
    "IE": 22, "IL": 23, "IT": 27, "JO": 30, "KZ": 20, "XK": 20, "KW": 30, "LV": 21,
    "LB": 28, "LY": 25, "LI": 21, "LT": 20, "LU": 20, "MK": 19, "MT": 31, "MR": 27,
    "MU": 30, "MC": 27, "MD": 24, "ME": 22, "NL": 18, "NO": 15, "PK": 24, "PS": 29,
    "PL": 28, "PT": 25, "QA": 29, "RO": 24, "LC": 32, "SM": 27, "SA": 24, "RS": 22,
    "SC": 31, "SK": 24, "SI": 19, "ES": 24, "SD": 18, "SE": 24, "CH": 21, "TN": 24,
    "TR": 26, "UA": 29, "AE": 23, "GB": 22, "VA": 22, "VG": 24,
}

SEPA_COUNTRIES = frozenset({
    "AT", "BE", "BG", "HR", "CY", "CZ", "DK", "EE", "FI", "FR",
    "DE", "GR", "HU", "IS", "IE", "IT", "LV", "LI", "LT", "LU",
    "MT", "MC", "NL", "NO", "PL", "PT", "RO", "SM", "SK", "SI",
    "ES", "SE", "CH", "GB", "VA",
})


def normalize_iban(iban: str) -> str:
    return re.sub(r"\s+", "", iban or "").upper()


def format_iban(iban: str) -> str:
    """Group into blocks of four: GB82WEST12345698765432 -> GB82 WEST 1234 5698 7654 32"""
    clean = normalize_iban(iban)
    return " ".join(clean[i:i + 4] for i in range(0, len(clean), 4))


def iban_country_code(iban: str) -> str:
    return normalize_iban(iban)[:2]


def _mod97(iban: str) -> int:
    rearranged = iban[4:] + iban[:4]
    numeric = "".join(str(int(ch, 36)) for ch in rearranged)
    return int(numeric) % 97


def validate_iban(iban: str) -> IbanResult:
    """Validate IBAN structure, country length and MOD-97 check digits"""
    clean = normalize_iban(iban)

    if len(clean) < 5:
        return IbanResult(valid=False, error="IBAN is too short")

    country = clean[:2]
    if not re.fullmatch(r"[A-Z]{2}", country):
        return IbanResult(valid=False, error="IBAN must start with a two-letter country code")

    expected_length = IBAN_LENGTHS.get(country)
    if expected_length is None:
        return IbanResult(valid=False, error=f"Country code {country} is not recognised for IBAN")

    if len(clean) != expected_length:
        return IbanResult(
            valid=False,
            error=f"IBAN for {country} must be {expected_length} characters (got {len(clean)})",
        )

    if not re.fullmatch(r"[A-Z]{2}\d{2}[A-Z0-9]+", clean):
        return IbanResult(valid=False, error="IBAN contains invalid characters")

    if _mod97(clean) != 1:
        return IbanResult(valid=False, error="IBAN check digits are invalid")

    return IbanResult(valid=True, formatted=format_iban(clean), country_code=country)


def is_sepa_country(country_code: str) -> bool:
    return country_code.upper() in SEPA_COUNTRIES


def suggest_payment_method(source_country: str, destination_country: str) -> str:
    """'sepa' when both ends are in the SEPA zone, otherwise 'swift'"""
    if is_sepa_country(source_country) and is_sepa_country(destination_country):
        return "sepa"
    return "swift"


def validate_swift_bic(bic: str) -> ValidationResult:
    clean = re.sub(r"\s+", "", bic or "").upper()
    if not re.fullmatch(r"[A-Z]{4}[A-Z]{2}[A-Z0-9]{2}([A-Z0-9]{3})?", clean):
        return ValidationResult(
            valid=False,
            error="Invalid SWIFT/BIC code format (expected 8 or 11 characters)",
        )
    return ValidationResult(valid=True, formatted=clean)
