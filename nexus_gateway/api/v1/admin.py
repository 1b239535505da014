"""/v1/admin - compliance back-office for cooling periods and limits"""

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query

from nexus_gateway.api.dependencies import get_admin_context, get_audit_trail
from nexus_gateway.api.v1.payees import parse_uuid
from nexus_gateway.api.v1.schemas import (
    CoolingConfigRequest,
    CoolingConfigResponse,
    CoolingPayeeSchema,
    CoolingPayeesResponse,
    LimitConfigRequest,
    LimitConfigResponse,
    WaiveCoolingRequest,
)
from nexus_gateway.config import settings
from nexus_gateway.domain.cooling import PAYEE_NOT_FOUND, describe_cooling_status, waive_cooling_period
from nexus_gateway.domain.models import KYC_LEVELS, PAYMENT_RAILS, TransactionLimit
from nexus_gateway.infrastructure.database.context import PrivilegedContext
from nexus_gateway.infrastructure.database.repositories import CoolingRepository, LimitRepository
from nexus_gateway.infrastructure.observability.audit import AuditTrail
from nexus_gateway.utils.date_utils import utc_now

router = APIRouter()


@router.get("/cooling/payees", response_model=CoolingPayeesResponse)
def list_cooling_payees(
    user_id: str = Query(..., description="Customer identifier"),
    ctx: PrivilegedContext = Depends(get_admin_context),
):
    """A customer's payees with their cooling state on the default rail"""
    repo = CoolingRepository(ctx)
    config = repo.get_cooling_config(settings.default_cooling_rail)
    cooling_hours = config.cooling_hours if config and config.is_active else 0
    now = utc_now()

    payees = []
    for payee in repo.get_payees_by_user(user_id):
        status = describe_cooling_status(payee, config, now)
        payees.append(
            CoolingPayeeSchema(
                payee_id=str(payee.id),
                name=payee.name,
                sort_code=payee.sort_code,
                account_number=payee.account_number,
                first_used_at=payee.first_used_at.isoformat() if payee.first_used_at else None,
                created_at=payee.created_at.isoformat(),
                cooling_status=status.status,
                hours_remaining=status.hours_remaining,
            )
        )

    return CoolingPayeesResponse(user_id=user_id, cooling_hours=cooling_hours, payees=payees)


@router.post("/cooling/payees/{payee_id}/waive", status_code=204)
def waive_payee_cooling(
    payee_id: str,
    request_body: WaiveCoolingRequest,
    background_tasks: BackgroundTasks,
    ctx: PrivilegedContext = Depends(get_admin_context),
    audit: AuditTrail = Depends(get_audit_trail),
):
    """Waive the cooling period for a payee. A written reason is mandatory."""
    error = waive_cooling_period(
        parse_uuid(payee_id, "payee"),
        request_body.reason,
        CoolingRepository(ctx),
        audit,
        ctx.actor,
    )
    if error == PAYEE_NOT_FOUND:
        raise HTTPException(status_code=404, detail=error)
    if error:
        raise HTTPException(status_code=422, detail=error)

    ctx.db.commit()
    background_tasks.add_task(audit.flush)


@router.put("/cooling/config/{rail}", response_model=CoolingConfigResponse)
def update_cooling_config(
    rail: str,
    request_body: CoolingConfigRequest,
    background_tasks: BackgroundTasks,
    ctx: PrivilegedContext = Depends(get_admin_context),
    audit: AuditTrail = Depends(get_audit_trail),
):
    if rail not in PAYMENT_RAILS:
        raise HTTPException(status_code=400, detail="Unknown payment rail")

    record = CoolingRepository(ctx).upsert_cooling_config(
        rail, request_body.cooling_hours, request_body.is_active, request_body.description
    )
    audit.record_event(
        actor=ctx.actor,
        event_type="admin_action",
        action="update_cooling_config",
        target_table="cooling_period_config",
        target_id=rail,
        details={"cooling_hours": request_body.cooling_hours, "is_active": request_body.is_active},
    )
    ctx.db.commit()
    background_tasks.add_task(audit.flush)

    return CoolingConfigResponse(
        payment_rail=record.payment_rail,
        cooling_hours=record.cooling_hours,
        is_active=record.is_active,
        description=record.description,
    )


@router.put("/limits/{kyc_level}", response_model=LimitConfigResponse)
def update_limits(
    kyc_level: str,
    request_body: LimitConfigRequest,
    background_tasks: BackgroundTasks,
    ctx: PrivilegedContext = Depends(get_admin_context),
    audit: AuditTrail = Depends(get_audit_trail),
):
    if kyc_level not in KYC_LEVELS:
        raise HTTPException(status_code=400, detail="Unknown KYC level")

    LimitRepository(ctx).upsert_limit(TransactionLimit(kyc_level=kyc_level, **request_body.model_dump()))
    audit.record_event(
        actor=ctx.actor,
        event_type="admin_action",
        action="update_transaction_limits",
        target_table="transaction_limits",
        target_id=kyc_level,
        details=request_body.model_dump(),
    )
    ctx.db.commit()
    background_tasks.add_task(audit.flush)

    return LimitConfigResponse(kyc_level=kyc_level, **request_body.model_dump())
