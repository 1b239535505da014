"""Cooling period gate for newly added payees (APP fraud prevention).

A new payee must wait the configured number of hours before the first payment
on a rail. Once a payee has received a settled payment, or compliance has
waived the wait, the gate stays open for that payee.
"""

import logging
import math
import uuid
from datetime import datetime, timedelta
from typing import Optional

from nexus_gateway.domain.models import (
    RAIL_BACS,
    RAIL_CHAPS,
    RAIL_FPS,
    RAIL_INTERNAL,
    Actor,
    CoolingCheckResult,
    CoolingPeriodConfig,
    CoolingStatus,
    Payee,
)
from nexus_gateway.domain.ports import AccessLogSink, CoolingStore
from nexus_gateway.utils.date_utils import ensure_utc, utc_now

logger = logging.getLogger(__name__)

RAIL_PAYMENT_NOUNS = {
    RAIL_FPS: "Faster Payment",
    RAIL_CHAPS: "CHAPS payment",
    RAIL_BACS: "BACS payment",
    RAIL_INTERNAL: "internal transfer",
}

MIN_WAIVER_REASON_LENGTH = 5
PAYEE_NOT_FOUND = "Payee not found"


def _policy_enabled(config: Optional[CoolingPeriodConfig]) -> bool:
    return config is not None and config.is_active and config.cooling_hours > 0


def _hours_remaining(payee: Payee, cooling_hours: int, now: datetime) -> int:
    """Whole hours (rounded up) until the cooling window ends, 0 once it has"""
    cooling_end = ensure_utc(payee.created_at) + timedelta(hours=cooling_hours)
    remaining = cooling_end - ensure_utc(now)
    if remaining <= timedelta(0):
        return 0
    return math.ceil(remaining / timedelta(hours=1))


def evaluate_cooling_period(
    config: Optional[CoolingPeriodConfig],
    payee: Optional[Payee],
    rail: str,
    now: datetime,
) -> CoolingCheckResult:
    """
    Decide whether a payee may receive a payment on a rail.

    Order:
    1. No config, inactive config or zero hours -> allowed
    2. Unknown payee -> denied
    3. Payee already used (or waived) -> allowed
    4. Cooling window elapsed -> allowed
    5. Otherwise denied with the hours remaining
    """
    if not _policy_enabled(config):
        return CoolingCheckResult(allowed=True)

    if payee is None:
        return CoolingCheckResult(allowed=False, reason=PAYEE_NOT_FOUND)

    if payee.first_used_at is not None or payee.cooling_waived_at is not None:
        return CoolingCheckResult(allowed=True)

    hours_remaining = _hours_remaining(payee, config.cooling_hours, now)
    if hours_remaining == 0:
        return CoolingCheckResult(allowed=True)

    noun = RAIL_PAYMENT_NOUNS.get(rail, "payment")
    plural = "" if hours_remaining == 1 else "s"
    return CoolingCheckResult(
        allowed=False,
        reason=(
            f"For your protection, new payees have a {config.cooling_hours}-hour cooling period "
            f"before the first {noun}. Please try again in {hours_remaining} hour{plural}."
        ),
        hours_remaining=hours_remaining,
    )


def check_cooling_period(
    payee_id: uuid.UUID,
    rail: str,
    store: CoolingStore,
    now: Optional[datetime] = None,
) -> CoolingCheckResult:
    """Load the rail policy and payee, then apply evaluate_cooling_period"""
    now = now or utc_now()

    config = store.get_cooling_config(rail)
    if not _policy_enabled(config):
        return CoolingCheckResult(allowed=True)

    payee = store.get_payee(payee_id)
    return evaluate_cooling_period(config, payee, rail, now)


def mark_payee_first_used(payee_id: uuid.UUID, store: CoolingStore, now: Optional[datetime] = None) -> bool:
    """
    Record the first settled payment to a payee.

    Only call once settlement is confirmed. A payee that already has
    first_used_at keeps its original value; returns whether anything changed.
    """
    return store.set_first_used_if_unset(payee_id, now or utc_now())


def describe_cooling_status(
    payee: Payee,
    config: Optional[CoolingPeriodConfig],
    now: datetime,
) -> CoolingStatus:
    """Back-office status: cleared, waived, or still active with hours remaining"""
    if payee.first_used_at is not None:
        return CoolingStatus(status="cleared")

    if payee.cooling_waived_at is not None:
        return CoolingStatus(status="waived")

    if not _policy_enabled(config):
        return CoolingStatus(status="cleared")

    hours_remaining = _hours_remaining(payee, config.cooling_hours, now)
    if hours_remaining == 0:
        return CoolingStatus(status="cleared", hours_remaining=0)

    return CoolingStatus(status="active", hours_remaining=hours_remaining)


def waive_cooling_period(
    payee_id: uuid.UUID,
    reason: str,
    store: CoolingStore,
    audit: AccessLogSink,
    actor: Actor,
    now: Optional[datetime] = None,
) -> Optional[str]:
    """
    Waive the cooling period for a payee on compliance request.

    Returns None on success or an error message. The waiver is stored
    separately from first_used_at, which only ever records a real payment.
    """
    reason = (reason or "").strip()
    if len(reason) < MIN_WAIVER_REASON_LENGTH:
        return f"A reason is required (minimum {MIN_WAIVER_REASON_LENGTH} characters)"

    payee = store.get_payee(payee_id)
    if payee is None:
        return PAYEE_NOT_FOUND

    if payee.first_used_at is not None:
        return "Cooling period has already been cleared (payee has been used)"

    if payee.cooling_waived_at is not None:
        return "Cooling period has already been waived"

    store.set_cooling_waived(payee_id, now or utc_now(), actor.actor_id)

    audit.record_event(
        actor=actor,
        event_type="admin_action",
        action="waive_cooling_period",
        target_table="payees",
        target_id=str(payee_id),
        details={
            "payee_name": payee.name,
            "sort_code": payee.sort_code,
            "customer_id": payee.user_id,
            "reason": reason,
        },
    )
    logger.info(
        "Cooling period waived",
        extra={"payee_id": str(payee_id), "actor_id": actor.actor_id, "step": "cooling_waive"},
    )
    return None
