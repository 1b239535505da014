"""Domain models - pure Python dataclasses representing payment and card entities"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

# Payment rails
RAIL_INTERNAL = "internal"
RAIL_FPS = "fps"
RAIL_CHAPS = "chaps"
RAIL_BACS = "bacs"
PAYMENT_RAILS = (RAIL_INTERNAL, RAIL_FPS, RAIL_CHAPS, RAIL_BACS)

# Confirmation of Payee outcomes
COP_MATCH = "match"
COP_CLOSE_MATCH = "close_match"
COP_NO_MATCH = "no_match"
COP_UNAVAILABLE = "unavailable"
COP_RESULTS = (COP_MATCH, COP_CLOSE_MATCH, COP_NO_MATCH, COP_UNAVAILABLE)

# Card token types
TOKEN_PAYMENT = "payment"
TOKEN_DISPLAY = "display"
TOKEN_RECURRING = "recurring"
TOKEN_TYPES = (TOKEN_PAYMENT, TOKEN_DISPLAY, TOKEN_RECURRING)

# PCI access log types
ACCESS_TOKEN_CREATE = "token_create"
ACCESS_TOKEN_REVOKE = "token_revoke"
ACCESS_PAN = "pan_access"

KYC_LEVELS = ("basic", "standard", "enhanced")


@dataclass
class Actor:
    """Who is performing an operation, as recorded in the audit trail"""

    actor_id: Optional[str]
    role: str  # "customer", "admin" or "system"


@dataclass
class ValidationResult:
    valid: bool
    formatted: str = ""
    error: Optional[str] = None


@dataclass
class ModulusResult:
    """Outcome of sort code / account number validation.

    mode is always "format_only": the licensed per-bank weight tables are not
    applied, so checksum_verified is never True.
    """

    valid: bool
    error: Optional[str] = None
    sort_code: str = ""
    account_number: str = ""
    weighted_sum: Optional[int] = None
    mode: str = "format_only"
    checksum_verified: bool = False


@dataclass
class Payee:
    """Transfer counterparty"""

    id: uuid.UUID
    user_id: str
    name: str
    sort_code: str
    account_number: str
    is_favourite: bool
    created_at: datetime
    first_used_at: Optional[datetime] = None
    reference: Optional[str] = None
    cooling_waived_at: Optional[datetime] = None


@dataclass
class CoolingPeriodConfig:
    """Per-rail cooling policy, owned by compliance"""

    payment_rail: str
    cooling_hours: int
    is_active: bool
    description: Optional[str] = None


@dataclass
class CoolingCheckResult:
    allowed: bool
    reason: Optional[str] = None
    hours_remaining: Optional[int] = None


@dataclass
class CoolingStatus:
    """Back-office view of a payee's cooling state"""

    status: str  # "active", "cleared" or "waived"
    hours_remaining: Optional[int] = None


@dataclass
class RailSelection:
    """Computed per submission, never cached: cutoffs depend on the wall clock"""

    rail: str
    display_name: str
    estimated_settlement: str
    fee: Decimal
    reason: str
    urgency_downgraded: bool = False


@dataclass
class CopCheckResult:
    result: str
    matched_name: Optional[str]
    message: str


@dataclass
class CopMessage:
    title: str
    description: str
    severity: str  # "success", "warning", "error" or "info"
    can_proceed: bool


@dataclass
class CardToken:
    """Opaque stand-in for a card PAN. Never carries the full card number."""

    id: uuid.UUID
    user_id: str
    token: str
    card_id: Optional[str]
    token_type: str
    last_four: str
    is_active: bool
    created_at: datetime
    expires_at: Optional[datetime] = None
    expiry_month: Optional[int] = None
    expiry_year: Optional[int] = None


@dataclass
class TransactionLimit:
    """Limits per KYC level, all in pence"""

    kyc_level: str
    single_transaction_limit_pence: int
    daily_limit_pence: int
    monthly_limit_pence: int
    is_active: bool = True


@dataclass
class LimitCheckResult:
    allowed: bool
    reason: Optional[str] = None
    daily_used_pence: int = 0
    daily_limit_pence: Optional[int] = None
    monthly_used_pence: int = 0
    monthly_limit_pence: Optional[int] = None
    single_limit_pence: Optional[int] = None


@dataclass
class IbanResult:
    valid: bool
    error: Optional[str] = None
    formatted: str = ""
    country_code: str = ""
