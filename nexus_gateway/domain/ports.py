"""Abstract interfaces the domain depends on.

Implementations live in the infrastructure layer (SQLAlchemy repositories,
the httpx registry client, the audit trail); tests substitute in-memory fakes.
"""

import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Optional

from nexus_gateway.domain.models import Actor, CardToken, CoolingPeriodConfig, CopCheckResult, Payee


class CopRegistry(ABC):
    """Payee name-matching lookup at the receiving institution"""

    @abstractmethod
    async def lookup(self, sort_code: str, account_number: str, name: str) -> CopCheckResult:
        """Classify the name as match / close_match / no_match.

        Raises:
            CopRegistryError: when the registry cannot give an answer
        """
        pass


class CoolingStore(ABC):
    """Payee and cooling configuration access needed by the cooling gate"""

    @abstractmethod
    def get_cooling_config(self, rail: str) -> Optional[CoolingPeriodConfig]:
        pass

    @abstractmethod
    def get_payee(self, payee_id: uuid.UUID) -> Optional[Payee]:
        pass

    @abstractmethod
    def set_first_used_if_unset(self, payee_id: uuid.UUID, used_at: datetime) -> bool:
        """Set first_used_at only when it is null. Returns True if a row changed."""
        pass

    @abstractmethod
    def set_cooling_waived(self, payee_id: uuid.UUID, waived_at: datetime, waived_by: Optional[str]) -> None:
        pass


class CardTokenStore(ABC):
    """Persistence for card tokens"""

    @abstractmethod
    def create_token(
        self,
        user_id: str,
        token: str,
        card_id: str,
        token_type: str,
        last_four: str,
        expiry_month: Optional[int],
        expiry_year: Optional[int],
        created_at: datetime,
        expires_at: Optional[datetime],
    ) -> CardToken:
        """Raises TokenizationError if the write fails"""
        pass

    @abstractmethod
    def find_active_token(self, token: str) -> Optional[CardToken]:
        pass

    @abstractmethod
    def deactivate(self, token_id: uuid.UUID) -> None:
        pass


class AccessLogSink(ABC):
    """Append-only audit sink. Implementations must never raise."""

    @abstractmethod
    def record_pci_access(
        self,
        actor: Actor,
        access_type: str,
        card_id: Optional[str] = None,
        token_id: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> None:
        pass

    @abstractmethod
    def record_event(
        self,
        actor: Actor,
        event_type: str,
        action: str,
        target_table: Optional[str] = None,
        target_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        pass
