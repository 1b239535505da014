"""Transaction limits per KYC verification level"""

from typing import Optional

from nexus_gateway.domain.models import LimitCheckResult, TransactionLimit
from nexus_gateway.utils.money import format_gbp


def evaluate_transaction_limits(
    amount_pence: int,
    limit: Optional[TransactionLimit],
    daily_used_pence: int,
    monthly_used_pence: int,
) -> LimitCheckResult:
    """
    Check a payment against single, daily and monthly limits.

    Usage totals are integer pence sums of today's and this month's
    outgoing payments. Without an active limit configuration the payment
    is allowed.
    """
    if limit is None or not limit.is_active:
        return LimitCheckResult(
            allowed=True,
            daily_used_pence=daily_used_pence,
            monthly_used_pence=monthly_used_pence,
        )

    def result(allowed: bool, reason: Optional[str] = None) -> LimitCheckResult:
        return LimitCheckResult(
            allowed=allowed,
            reason=reason,
            daily_used_pence=daily_used_pence,
            daily_limit_pence=limit.daily_limit_pence,
            monthly_used_pence=monthly_used_pence,
            monthly_limit_pence=limit.monthly_limit_pence,
            single_limit_pence=limit.single_transaction_limit_pence,
        )

    if amount_pence > limit.single_transaction_limit_pence:
        return result(
            False,
            f"This transaction exceeds your single payment limit of "
            f"{format_gbp(limit.single_transaction_limit_pence)}. "
            "Please contact us to increase your limits.",
        )

    if daily_used_pence + amount_pence > limit.daily_limit_pence:
        return result(
            False,
            f"This transaction would exceed your daily limit of {format_gbp(limit.daily_limit_pence)}. "
            f"You have used {format_gbp(daily_used_pence)} today.",
        )

    if monthly_used_pence + amount_pence > limit.monthly_limit_pence:
        return result(
            False,
            f"This transaction would exceed your monthly limit of {format_gbp(limit.monthly_limit_pence)}. "
            f"You have used {format_gbp(monthly_used_pence)} this month.",
        )

    return result(True)
