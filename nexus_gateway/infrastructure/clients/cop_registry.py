"""Confirmation of Payee registry HTTP client"""

import difflib
import httpx
from typing import Dict, Optional, Tuple

from nexus_gateway.config import settings
from nexus_gateway.domain.cop import normalize_payee_name
from nexus_gateway.domain.exceptions import CopRegistryError
from nexus_gateway.domain.models import (
    COP_CLOSE_MATCH,
    COP_MATCH,
    COP_NO_MATCH,
    CopCheckResult,
)
from nexus_gateway.domain.ports import CopRegistry
from nexus_gateway.infrastructure.observability.metrics import (
    cop_registry_failures_counter,
    cop_registry_latency_histogram,
)

REGISTRY_RESULTS = (COP_MATCH, COP_CLOSE_MATCH, COP_NO_MATCH)

RESULT_MESSAGES = {
    COP_MATCH: "The account name matches the details held by the receiving bank.",
    COP_CLOSE_MATCH: "The account name is a close match to the details held by the receiving bank.",
    COP_NO_MATCH: "The account name does not match the details held by the receiving bank.",
}

CLOSE_MATCH_RATIO = 0.8


def classify_name_match(provided_name: str, account_name: str) -> str:
    """Exact normalized match, close match above a similarity ratio, or no match"""
    provided = normalize_payee_name(provided_name)
    held = normalize_payee_name(account_name)
    if provided == held:
        return COP_MATCH
    if difflib.SequenceMatcher(None, provided, held).ratio() >= CLOSE_MATCH_RATIO:
        return COP_CLOSE_MATCH
    return COP_NO_MATCH


class HttpCopRegistry(CopRegistry):
    """Client for the external Confirmation of Payee service"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.cop_registry_base).rstrip("/")
        self.timeout = timeout or settings.http_timeout_seconds
        self.api_key = api_key or settings.cop_registry_api_key
        self.transport = transport

    async def lookup(self, sort_code: str, account_number: str, name: str) -> CopCheckResult:
        """
        Ask the registry whether `name` matches the holder of the account.

        Raises:
            CopRegistryError: On timeout, HTTP errors, or an unexpected response
        """
        headers = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                with cop_registry_latency_histogram.time():
                    response = await client.post(
                        f"{self.base_url}/cop/check",
                        json={"sort_code": sort_code, "account_number": account_number, "name": name},
                        headers=headers,
                    )
                response.raise_for_status()
                data = response.json()

                result = data["result"]
                if result not in REGISTRY_RESULTS:
                    raise ValueError(f"unexpected result {result!r}")

                return CopCheckResult(
                    result=result,
                    matched_name=data.get("matched_name"),
                    message=RESULT_MESSAGES[result],
                )

            except httpx.TimeoutException as e:
                cop_registry_failures_counter.inc()
                raise CopRegistryError(f"CoP registry timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                cop_registry_failures_counter.inc()
                raise CopRegistryError(f"CoP registry error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                cop_registry_failures_counter.inc()
                raise CopRegistryError(f"CoP registry unreachable: {e}") from e
            except (KeyError, ValueError, TypeError) as e:
                cop_registry_failures_counter.inc()
                raise CopRegistryError(f"Invalid CoP registry response: {e}") from e


class StaticCopRegistry(CopRegistry):
    """Deterministic registry for local development and tests.

    Accounts are keyed by (sort code, account number) in canonical form; any
    other account raises CopRegistryError, as an unreachable registry would.
    """

    def __init__(self, accounts: Optional[Dict[Tuple[str, str], str]] = None):
        self.accounts = accounts or {}

    async def lookup(self, sort_code: str, account_number: str, name: str) -> CopCheckResult:
        account_name = self.accounts.get((sort_code, account_number))
        if account_name is None:
            raise CopRegistryError(f"No registry entry for {sort_code}")

        result = classify_name_match(name, account_name)
        return CopCheckResult(
            result=result,
            matched_name=None if result == COP_MATCH else account_name,
            message=RESULT_MESSAGES[result],
        )
