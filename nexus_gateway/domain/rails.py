"""Payment rail selection - chooses the clearing scheme for an outbound payment"""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from nexus_gateway.domain.models import RAIL_BACS, RAIL_CHAPS, RAIL_FPS, RAIL_INTERNAL, RailSelection
from nexus_gateway.utils.date_utils import add_working_days, is_weekday, to_london, utc_now

FPS_LIMIT = 1_000_000  # Above this only CHAPS can carry the payment
HIGH_VALUE_THRESHOLD = 250_000  # Above this CHAPS is preferred while it is open
CHAPS_CUTOFF = time(14, 30)
CHAPS_FEE = Decimal("25")
BACS_CLEARING_DAYS = 3


def _chaps(reason: str) -> RailSelection:
    return RailSelection(
        rail=RAIL_CHAPS,
        display_name="CHAPS",
        estimated_settlement="Same day (by 4:30pm)",
        fee=CHAPS_FEE,
        reason=reason,
    )


def _fps(reason: str, urgency_downgraded: bool = False) -> RailSelection:
    return RailSelection(
        rail=RAIL_FPS,
        display_name="Faster Payments",
        estimated_settlement="Usually within 2 hours",
        fee=Decimal("0"),
        reason=reason,
        urgency_downgraded=urgency_downgraded,
    )


def is_before_chaps_cutoff(now: datetime) -> bool:
    """CHAPS accepts same-day payments Monday to Friday before 14:30 UK time"""
    local = to_london(now)
    return is_weekday(local.date()) and local.time() < CHAPS_CUTOFF


def select_payment_rail(
    amount: Decimal | int | float,
    is_internal: bool = False,
    is_urgent: bool = False,
    is_bulk: bool = False,
    now: Optional[datetime] = None,
) -> RailSelection:
    """
    Select the rail for a payment of `amount` pounds. First matching rule wins:

    1. Internal transfers -> internal (instant, free)
    2. Over £1M -> CHAPS (the only rail without an upper limit)
    3. Urgent or over £250k -> CHAPS before the cutoff, otherwise FPS
    4. Bulk -> BACS (3 working days, free)
    5. Everything else -> FPS

    Rule 3 must stay ahead of rule 4: an urgent bulk payment is never sent via
    BACS. After the cutoff an urgent or high-value payment is routed via FPS
    with urgency_downgraded set so the caller can surface it.

    The CHAPS cutoff depends on `now` (defaults to the current time), so the
    result must be recomputed at submission time.
    """
    if is_internal:
        return RailSelection(
            rail=RAIL_INTERNAL,
            display_name="Internal Transfer",
            estimated_settlement="Instant",
            fee=Decimal("0"),
            reason="Transfer between NexusBank accounts",
        )

    if amount > FPS_LIMIT:
        return _chaps("Amount exceeds FPS limit of £1,000,000")

    if is_urgent or amount > HIGH_VALUE_THRESHOLD:
        if is_before_chaps_cutoff(now or utc_now()):
            if is_urgent:
                return _chaps("Urgent payment, guaranteed same-day settlement")
            return _chaps("High-value payment routed via CHAPS for same-day settlement")

        # Amounts over the FPS limit were already sent to CHAPS above
        if amount <= FPS_LIMIT:
            return _fps("CHAPS cutoff passed, routed via Faster Payments", urgency_downgraded=True)

    if is_bulk:
        return RailSelection(
            rail=RAIL_BACS,
            display_name="BACS",
            estimated_settlement=f"{BACS_CLEARING_DAYS} working days",
            fee=Decimal("0"),
            reason="Bulk payment, routed via BACS",
        )

    return _fps("Standard payment via Faster Payments Service")


def estimate_settlement_date(rail: str, now: Optional[datetime] = None) -> date:
    """Expected settlement date in UK local time"""
    today = to_london(now or utc_now()).date()
    if rail == RAIL_BACS:
        return add_working_days(today, BACS_CLEARING_DAYS)
    return today
