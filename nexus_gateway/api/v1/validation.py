"""POST /v1/validation/* - account identifier validation"""

from fastapi import APIRouter

from nexus_gateway.api.v1.schemas import (
    AccountValidationRequest,
    AccountValidationResponse,
    BicValidationRequest,
    BicValidationResponse,
    IbanValidationRequest,
    IbanValidationResponse,
)
from nexus_gateway.domain.account_validation import modulus_check
from nexus_gateway.domain.iban import is_sepa_country, suggest_payment_method, validate_iban, validate_swift_bic

router = APIRouter()


@router.post("/validation/account", response_model=AccountValidationResponse)
def validate_account(request_body: AccountValidationRequest):
    """
    Validate a UK sort code and account number.

    Format-only: the bank weight tables are not applied, so a valid response
    means the identifiers are well formed, not that the account exists.
    """
    result = modulus_check(request_body.sort_code, request_body.account_number)
    return AccountValidationResponse(
        valid=result.valid,
        error=result.error,
        sort_code=result.sort_code or None,
        account_number=result.account_number or None,
        mode=result.mode,
        checksum_verified=result.checksum_verified,
    )


@router.post("/validation/iban", response_model=IbanValidationResponse)
def validate_iban_endpoint(request_body: IbanValidationRequest):
    result = validate_iban(request_body.iban)
    if not result.valid:
        return IbanValidationResponse(valid=False, error=result.error)

    return IbanValidationResponse(
        valid=True,
        formatted=result.formatted,
        country_code=result.country_code,
        is_sepa=is_sepa_country(result.country_code),
        suggested_method=suggest_payment_method(request_body.source_country, result.country_code),
    )


@router.post("/validation/bic", response_model=BicValidationResponse)
def validate_bic_endpoint(request_body: BicValidationRequest):
    result = validate_swift_bic(request_body.bic)
    return BicValidationResponse(valid=result.valid, error=result.error, formatted=result.formatted or None)
