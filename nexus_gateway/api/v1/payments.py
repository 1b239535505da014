"""/v1/payments - rail quotes, CoP checks and payment submission"""

import logging
import time
from dataclasses import asdict
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request

from nexus_gateway.api.dependencies import (
    get_audit_trail,
    get_cop_registry,
    get_payments_context,
    get_request_id,
)
from nexus_gateway.api.v1.payees import parse_uuid
from nexus_gateway.api.v1.schemas import (
    CopMessageSchema,
    CopRequest,
    CopResponse,
    FailPaymentRequest,
    PaymentRequest,
    PaymentResponse,
    RailQuoteRequest,
    RailQuoteResponse,
    SubmissionStatusResponse,
)
from nexus_gateway.domain.account_validation import modulus_check, validate_amount
from nexus_gateway.domain.cooling import evaluate_cooling_period, mark_payee_first_used
from nexus_gateway.domain.cop import confirm_payee, get_cop_message
from nexus_gateway.domain.limits import evaluate_transaction_limits
from nexus_gateway.domain.models import COP_CLOSE_MATCH
from nexus_gateway.domain.ports import CopRegistry
from nexus_gateway.domain.rails import estimate_settlement_date, select_payment_rail
from nexus_gateway.infrastructure.database.context import PrivilegedContext
from nexus_gateway.infrastructure.database.repositories import (
    CoolingRepository,
    LimitRepository,
    PaymentRepository,
)
from nexus_gateway.infrastructure.observability.audit import AuditTrail
from nexus_gateway.infrastructure.observability.logging import log_payment_submission
from nexus_gateway.infrastructure.observability.metrics import (
    cooling_denial_counter,
    cop_result_counter,
    record_payment_outcome,
    record_rail_selection,
)
from nexus_gateway.utils.date_utils import start_of_day_utc, start_of_month_utc, utc_now
from nexus_gateway.utils.money import from_pence, to_pence

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/payments/rail", response_model=RailQuoteResponse)
def quote_rail(request_body: RailQuoteRequest):
    """Preview the rail a payment would use right now. Not binding: cutoffs move."""
    now = utc_now()
    selection = select_payment_rail(
        from_pence(request_body.amount_pence),
        is_internal=request_body.is_internal,
        is_urgent=request_body.is_urgent,
        is_bulk=request_body.is_bulk,
        now=now,
    )
    return RailQuoteResponse(
        rail=selection.rail,
        display_name=selection.display_name,
        estimated_settlement=selection.estimated_settlement,
        fee_pence=to_pence(selection.fee),
        reason=selection.reason,
        urgency_downgraded=selection.urgency_downgraded,
        settlement_date=estimate_settlement_date(selection.rail, now),
    )


@router.post("/payments/cop", response_model=CopResponse)
async def check_payee_name(request_body: CopRequest, registry: CopRegistry = Depends(get_cop_registry)):
    """Run a Confirmation of Payee check before the customer saves or pays a payee"""
    check = modulus_check(request_body.sort_code, request_body.account_number)
    if not check.valid:
        raise HTTPException(status_code=422, detail=check.error)

    result = await confirm_payee(check.sort_code, check.account_number, request_body.name, registry)
    cop_result_counter.labels(result=result.result).inc()
    display = get_cop_message(result.result, result.matched_name)

    return CopResponse(
        result=result.result,
        matched_name=result.matched_name,
        message=result.message,
        display=CopMessageSchema(**asdict(display)),
    )


@router.post("/payments", response_model=PaymentResponse)
async def submit_payment(
    request_body: PaymentRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    ctx: PrivilegedContext = Depends(get_payments_context),
    registry: CopRegistry = Depends(get_cop_registry),
    audit: AuditTrail = Depends(get_audit_trail),
):
    """
    Submit a payment to a saved payee.

    Flow (strict order, stops at the first rejection):
    1. Validate amount, sort code and account number
    2. Confirmation of Payee
    3. New payee cooling period
    4. KYC transaction limits
    5. Select the rail for the current time
    6. Persist the submission
    """
    start_time = time.time()
    request_id = get_request_id(request)
    now = utc_now()
    db = ctx.db

    def reject(stage: str, reason: str, **fields) -> PaymentResponse:
        record_payment_outcome(False, stage)
        log_payment_submission(
            request_id, request_body.user_id, False, stage, None, (time.time() - start_time) * 1000
        )
        return PaymentResponse(accepted=False, stage=stage, reason=reason, **fields)

    cooling_store = CoolingRepository(ctx)
    payee = cooling_store.get_payee(parse_uuid(request_body.payee_id, "payee"))
    if payee is None or payee.user_id != request_body.user_id:
        raise HTTPException(status_code=404, detail="Payee not found")

    try:
        # 1. Validation
        amount = from_pence(request_body.amount_pence)
        amount_check = validate_amount(amount)
        if not amount_check.valid:
            return reject("validation", amount_check.error)

        account_check = modulus_check(payee.sort_code, payee.account_number)
        if not account_check.valid:
            return reject("validation", account_check.error)

        # 2. Confirmation of Payee
        cop = await confirm_payee(account_check.sort_code, account_check.account_number, payee.name, registry)
        cop_result_counter.labels(result=cop.result).inc()
        cop_display = get_cop_message(cop.result, cop.matched_name)
        cop_fields = {"cop_result": cop.result, "cop": CopMessageSchema(**asdict(cop_display))}

        if not cop_display.can_proceed:
            return reject("cop", cop_display.description, **cop_fields)
        if cop.result == COP_CLOSE_MATCH and not request_body.confirm_close_match:
            return reject("cop", cop_display.description, **cop_fields)

        # Cooling policy is per rail, so the candidate rail is computed here and only committed in step 5
        selection = select_payment_rail(
            amount,
            is_internal=request_body.is_internal,
            is_urgent=request_body.is_urgent,
            is_bulk=request_body.is_bulk,
            now=now,
        )

        # 3. Cooling period
        cooling = evaluate_cooling_period(
            cooling_store.get_cooling_config(selection.rail), payee, selection.rail, now
        )
        if not cooling.allowed:
            cooling_denial_counter.labels(rail=selection.rail).inc()
            return reject("cooling", cooling.reason, hours_remaining=cooling.hours_remaining, **cop_fields)

        # 4. Limits, summed in pence
        limit_repo = LimitRepository(ctx)
        limit = limit_repo.get_limit(limit_repo.get_user_kyc_level(request_body.user_id))
        limits = evaluate_transaction_limits(
            request_body.amount_pence,
            limit,
            daily_used_pence=limit_repo.get_used_pence(request_body.user_id, start_of_day_utc(now)),
            monthly_used_pence=limit_repo.get_used_pence(request_body.user_id, start_of_month_utc(now)),
        )
        if not limits.allowed:
            return reject("limits", limits.reason, **cop_fields)

        # 5-6. Rail and persistence
        settlement_date = estimate_settlement_date(selection.rail, now)
        submission = PaymentRepository(ctx).create_submission(
            user_id=request_body.user_id,
            payee=payee,
            amount_pence=request_body.amount_pence,
            fee_pence=to_pence(selection.fee),
            selection=selection,
            cop_result=cop.result,
            cop_matched_name=cop.matched_name,
            settlement_date=settlement_date,
            submitted_at=now,
            reference=request_body.reference,
        )
        audit.record_event(
            actor=ctx.actor,
            event_type="payment",
            action="payment_submitted",
            target_table="payment_submissions",
            target_id=str(submission.id),
            details={"rail": selection.rail, "amount_pence": request_body.amount_pence},
        )
        db.commit()
        background_tasks.add_task(audit.flush)

        record_payment_outcome(True, "submitted")
        record_rail_selection(selection.rail, selection.urgency_downgraded)
        log_payment_submission(
            request_id,
            request_body.user_id,
            True,
            "submitted",
            selection.rail,
            (time.time() - start_time) * 1000,
        )

        return PaymentResponse(
            accepted=True,
            stage="submitted",
            reason=selection.reason,
            submission_id=str(submission.id),
            rail=selection.rail,
            rail_display_name=selection.display_name,
            estimated_settlement=selection.estimated_settlement,
            fee_pence=to_pence(selection.fee),
            settlement_date=settlement_date,
            urgency_downgraded=selection.urgency_downgraded,
            **cop_fields,
        )

    except Exception as e:
        db.rollback()
        audit.discard()
        logger.error("Unexpected error: %s", e, exc_info=True, extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/payments/{submission_id}/settle", response_model=SubmissionStatusResponse)
def settle_payment(
    submission_id: str,
    background_tasks: BackgroundTasks,
    ctx: PrivilegedContext = Depends(get_payments_context),
    audit: AuditTrail = Depends(get_audit_trail),
):
    """
    Record rail confirmation that a payment settled.

    The payee's first use is recorded here and nowhere earlier, so a payment
    that never settles does not clear the cooling period.
    """
    payment_repo = PaymentRepository(ctx)
    submission = payment_repo.get_submission(parse_uuid(submission_id, "submission"))
    if not submission:
        raise HTTPException(status_code=404, detail="Submission not found")

    if submission.rail_status == "settled":
        return SubmissionStatusResponse(submission_id=submission_id, rail_status="settled")
    if submission.rail_status in ("failed", "returned"):
        raise HTTPException(status_code=409, detail=f"Submission is {submission.rail_status}")

    now = utc_now()
    payment_repo.mark_settled(submission, now)
    first_use = mark_payee_first_used(submission.payee_id, CoolingRepository(ctx), now)
    audit.record_event(
        actor=ctx.actor,
        event_type="payment",
        action="payment_settled",
        target_table="payment_submissions",
        target_id=submission_id,
        details={"payee_first_use_recorded": first_use},
    )
    ctx.db.commit()
    background_tasks.add_task(audit.flush)

    return SubmissionStatusResponse(
        submission_id=submission_id,
        rail_status="settled",
        payee_first_use_recorded=first_use,
    )


@router.post("/payments/{submission_id}/fail", response_model=SubmissionStatusResponse)
def fail_payment(
    submission_id: str,
    request_body: FailPaymentRequest,
    background_tasks: BackgroundTasks,
    ctx: PrivilegedContext = Depends(get_payments_context),
    audit: AuditTrail = Depends(get_audit_trail),
):
    """Record a rail rejection. Failed payments do not count towards limits."""
    payment_repo = PaymentRepository(ctx)
    submission = payment_repo.get_submission(parse_uuid(submission_id, "submission"))
    if not submission:
        raise HTTPException(status_code=404, detail="Submission not found")

    if submission.rail_status == "settled":
        raise HTTPException(status_code=409, detail="Submission already settled")

    payment_repo.mark_failed(submission, request_body.reason)
    audit.record_event(
        actor=ctx.actor,
        event_type="payment",
        action="payment_failed",
        target_table="payment_submissions",
        target_id=submission_id,
        details={"reason": request_body.reason},
    )
    ctx.db.commit()
    background_tasks.add_task(audit.flush)

    return SubmissionStatusResponse(submission_id=submission_id, rail_status="failed")
