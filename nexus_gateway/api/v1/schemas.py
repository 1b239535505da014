"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import date
from typing import List, Optional


class AccountValidationRequest(BaseModel):
    """Request body for POST /v1/validation/account"""

    sort_code: str
    account_number: str


class AccountValidationResponse(BaseModel):
    valid: bool
    error: Optional[str] = None
    sort_code: Optional[str] = None
    account_number: Optional[str] = None
    mode: str = "format_only"
    checksum_verified: bool = False


class IbanValidationRequest(BaseModel):
    iban: str
    source_country: str = "GB"


class IbanValidationResponse(BaseModel):
    valid: bool
    error: Optional[str] = None
    formatted: Optional[str] = None
    country_code: Optional[str] = None
    is_sepa: bool = False
    suggested_method: Optional[str] = None


class BicValidationRequest(BaseModel):
    bic: str


class BicValidationResponse(BaseModel):
    valid: bool
    error: Optional[str] = None
    formatted: Optional[str] = None


class RailQuoteRequest(BaseModel):
    """Request body for POST /v1/payments/rail"""

    amount_pence: int = Field(..., gt=0, description="Payment amount in pence")
    is_internal: bool = False
    is_urgent: bool = False
    is_bulk: bool = False


class RailQuoteResponse(BaseModel):
    rail: str
    display_name: str
    estimated_settlement: str
    fee_pence: int
    reason: str
    urgency_downgraded: bool
    settlement_date: date


class CopRequest(BaseModel):
    """Request body for POST /v1/payments/cop"""

    sort_code: str
    account_number: str
    name: str


class CopMessageSchema(BaseModel):
    title: str
    description: str
    severity: str
    can_proceed: bool


class CopResponse(BaseModel):
    result: str
    matched_name: Optional[str] = None
    message: str
    display: CopMessageSchema


class PaymentRequest(BaseModel):
    """Request body for POST /v1/payments"""

    user_id: str = Field(..., min_length=1, description="User identifier")
    payee_id: str = Field(..., description="Saved payee identifier")
    amount_pence: int = Field(..., gt=0, description="Payment amount in pence")
    reference: Optional[str] = Field(None, max_length=18)
    is_internal: bool = False
    is_urgent: bool = False
    is_bulk: bool = False
    confirm_close_match: bool = Field(False, description="Customer accepted a partial CoP name match")


class PaymentResponse(BaseModel):
    """Response for POST /v1/payments. Rejections are returned with accepted=False."""

    accepted: bool
    stage: str  # validation | cop | cooling | limits | submitted
    reason: Optional[str] = None
    submission_id: Optional[str] = None
    rail: Optional[str] = None
    rail_display_name: Optional[str] = None
    estimated_settlement: Optional[str] = None
    fee_pence: Optional[int] = None
    settlement_date: Optional[date] = None
    urgency_downgraded: bool = False
    cop_result: Optional[str] = None
    cop: Optional[CopMessageSchema] = None
    hours_remaining: Optional[int] = None


class FailPaymentRequest(BaseModel):
    reason: str = Field(..., min_length=1)


class SubmissionStatusResponse(BaseModel):
    submission_id: str
    rail_status: str
    payee_first_use_recorded: bool = False


class PayeeCreateRequest(BaseModel):
    """Request body for POST /v1/payees"""

    user_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    sort_code: str
    account_number: str
    reference: Optional[str] = None


class PayeeSchema(BaseModel):
    payee_id: str
    user_id: str
    name: str
    sort_code: str
    account_number: str
    is_favourite: bool
    first_used_at: Optional[str] = None
    created_at: str


class PayeeListResponse(BaseModel):
    user_id: str
    payees: List[PayeeSchema]


class CoolingCheckResponse(BaseModel):
    payee_id: str
    rail: str
    allowed: bool
    reason: Optional[str] = None
    hours_remaining: Optional[int] = None


class TokenCreateRequest(BaseModel):
    """Request body for POST /v1/cards/{card_id}/tokens"""

    user_id: str = Field(..., min_length=1)
    last_four: str = Field(..., pattern=r"^\d{4}$")
    token_type: str = Field("payment", pattern=r"^(payment|display|recurring)$")
    expiry_month: Optional[int] = Field(None, ge=1, le=12)
    expiry_year: Optional[int] = Field(None, ge=2000, le=2100)


class TokenResponse(BaseModel):
    token_id: str
    token: str
    card_id: Optional[str] = None
    token_type: str
    last_four: str
    expiry_month: Optional[int] = None
    expiry_year: Optional[int] = None
    is_active: bool
    created_at: str
    expires_at: Optional[str] = None


class CoolingPayeeSchema(BaseModel):
    payee_id: str
    name: str
    sort_code: str
    account_number: str
    first_used_at: Optional[str] = None
    created_at: str
    cooling_status: str
    hours_remaining: Optional[int] = None


class CoolingPayeesResponse(BaseModel):
    user_id: str
    cooling_hours: int
    payees: List[CoolingPayeeSchema]


class WaiveCoolingRequest(BaseModel):
    reason: str


class CoolingConfigRequest(BaseModel):
    cooling_hours: int = Field(..., ge=0)
    is_active: bool = True
    description: Optional[str] = None


class CoolingConfigResponse(BaseModel):
    payment_rail: str
    cooling_hours: int
    is_active: bool
    description: Optional[str] = None


class LimitConfigRequest(BaseModel):
    single_transaction_limit_pence: int = Field(..., gt=0)
    daily_limit_pence: int = Field(..., gt=0)
    monthly_limit_pence: int = Field(..., gt=0)
    is_active: bool = True


class LimitConfigResponse(LimitConfigRequest):
    kyc_level: str
