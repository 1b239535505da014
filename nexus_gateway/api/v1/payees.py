"""/v1/payees - saved payees and their cooling state"""

import uuid
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from nexus_gateway.api.dependencies import get_payments_context
from nexus_gateway.api.v1.schemas import (
    CoolingCheckResponse,
    PayeeCreateRequest,
    PayeeListResponse,
    PayeeSchema,
)
from nexus_gateway.config import settings
from nexus_gateway.domain.account_validation import modulus_check
from nexus_gateway.domain.cooling import check_cooling_period
from nexus_gateway.domain.models import PAYMENT_RAILS
from nexus_gateway.infrastructure.database.context import PrivilegedContext
from nexus_gateway.infrastructure.database.models import PayeeRecord
from nexus_gateway.infrastructure.database.repositories import CoolingRepository, PayeeRepository
from nexus_gateway.infrastructure.database.session import get_db

router = APIRouter()


def parse_uuid(value: str, label: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {label} ID format")


def to_payee_schema(payee: PayeeRecord) -> PayeeSchema:
    return PayeeSchema(
        payee_id=str(payee.id),
        user_id=payee.user_id,
        name=payee.name,
        sort_code=payee.sort_code,
        account_number=payee.account_number,
        is_favourite=payee.is_favourite,
        first_used_at=payee.first_used_at.isoformat() if payee.first_used_at else None,
        created_at=payee.created_at.isoformat(),
    )


@router.post("/payees", response_model=PayeeSchema, status_code=201)
def create_payee(request_body: PayeeCreateRequest, db: Session = Depends(get_db)):
    """Add a payee. Identifiers are stored in canonical form (XX-XX-XX, 8 digits)."""
    check = modulus_check(request_body.sort_code, request_body.account_number)
    if not check.valid:
        raise HTTPException(status_code=422, detail=check.error)

    payee = PayeeRepository(db).create_payee(
        user_id=request_body.user_id,
        name=request_body.name.strip(),
        sort_code=check.sort_code,
        account_number=check.account_number,
        reference=request_body.reference,
    )
    db.commit()
    return to_payee_schema(payee)


@router.get("/payees", response_model=PayeeListResponse)
def list_payees(user_id: str = Query(..., description="User identifier"), db: Session = Depends(get_db)):
    payees = PayeeRepository(db).get_payees_by_user(user_id)
    return PayeeListResponse(user_id=user_id, payees=[to_payee_schema(p) for p in payees])


@router.get("/payees/{payee_id}/cooling", response_model=CoolingCheckResponse)
def get_payee_cooling(
    payee_id: str,
    rail: str = Query(settings.default_cooling_rail, description="Payment rail"),
    ctx: PrivilegedContext = Depends(get_payments_context),
):
    """Whether the payee can receive its first payment on `rail` yet"""
    if rail not in PAYMENT_RAILS:
        raise HTTPException(status_code=400, detail="Unknown payment rail")

    result = check_cooling_period(parse_uuid(payee_id, "payee"), rail, CoolingRepository(ctx))
    return CoolingCheckResponse(
        payee_id=payee_id,
        rail=rail,
        allowed=result.allowed,
        reason=result.reason,
        hours_remaining=result.hours_remaining,
    )
