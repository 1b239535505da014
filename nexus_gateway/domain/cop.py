"""Confirmation of Payee (CoP) checks"""

import logging
import re
from typing import Optional

from nexus_gateway.domain.exceptions import CopRegistryError
from nexus_gateway.domain.models import (
    COP_CLOSE_MATCH,
    COP_MATCH,
    COP_NO_MATCH,
    COP_UNAVAILABLE,
    CopCheckResult,
    CopMessage,
)
from nexus_gateway.domain.ports import CopRegistry

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = (
    "Confirmation of Payee check could not be performed. "
    "Please verify the payee details manually."
)


def normalize_payee_name(name: str) -> str:
    """Trim, lowercase and drop anything that is not alphanumeric or whitespace"""
    return re.sub(r"[^a-z0-9\s]", "", (name or "").strip().lower())


def unavailable_result() -> CopCheckResult:
    return CopCheckResult(result=COP_UNAVAILABLE, matched_name=None, message=UNAVAILABLE_MESSAGE)


async def confirm_payee(
    sort_code: str,
    account_number: str,
    provided_name: str,
    registry: CopRegistry,
) -> CopCheckResult:
    """
    Check the payee name against the account holder held by the receiving bank.

    Missing inputs and registry failures both produce an 'unavailable' result,
    which lets the customer proceed after verifying the details themselves.
    """
    normalized = normalize_payee_name(provided_name)

    if not sort_code or not account_number or not normalized:
        return unavailable_result()

    try:
        return await registry.lookup(sort_code, account_number, provided_name.strip())
    except CopRegistryError as e:
        logger.warning("CoP registry unavailable: %s", e, extra={"step": "cop_check"})
        return unavailable_result()


def get_cop_message(result: str, matched_name: Optional[str] = None) -> CopMessage:
    """Map a CoP outcome to customer-facing copy and a proceed flag"""
    if result == COP_MATCH:
        return CopMessage(
            title="Name matches",
            description="The name you entered matches the account holder.",
            severity="success",
            can_proceed=True,
        )

    if result == COP_CLOSE_MATCH:
        if matched_name:
            description = (
                f'The receiving bank shows the account holder as "{matched_name}". '
                "Please check this is correct before proceeding."
            )
        else:
            description = "The name is a close but not exact match. Please verify before proceeding."
        return CopMessage(
            title="Partial name match",
            description=description,
            severity="warning",
            can_proceed=True,
        )

    if result == COP_NO_MATCH:
        if matched_name:
            description = (
                f'The receiving bank shows the account holder as "{matched_name}". '
                "The payment may be rejected or sent to the wrong person."
            )
        else:
            description = "The name you entered does not match the account holder at the receiving bank."
        return CopMessage(
            title="Name does not match",
            description=description,
            severity="error",
            can_proceed=False,
        )

    if result == COP_UNAVAILABLE:
        return CopMessage(
            title="Check unavailable",
            description=(
                "We were unable to verify the account holder name. "
                "Please double-check the details before proceeding."
            ),
            severity="info",
            can_proceed=True,
        )

    raise ValueError(f"Unknown CoP result: {result}")
