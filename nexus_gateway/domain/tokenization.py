"""Card tokenization for PCI-DSS scope reduction.

Tokens stand in for a card's PAN whenever card data crosses a scope boundary.
A token only ever carries the last four digits. Every operation writes a PCI
access log entry; the sink swallows its own failures.
"""

import logging
import re
import secrets
import uuid
from datetime import datetime, timedelta
from typing import Optional

from nexus_gateway.domain.exceptions import TokenizationError
from nexus_gateway.domain.models import (
    ACCESS_PAN,
    ACCESS_TOKEN_CREATE,
    ACCESS_TOKEN_REVOKE,
    TOKEN_DISPLAY,
    TOKEN_PAYMENT,
    TOKEN_RECURRING,
    Actor,
    CardToken,
)
from nexus_gateway.domain.ports import AccessLogSink, CardTokenStore
from nexus_gateway.utils.date_utils import ensure_utc, utc_now

logger = logging.getLogger(__name__)

TOKEN_PREFIX = "tok_"
TOKEN_BYTES = 16

# None means the token does not expire on its own
TOKEN_TTLS = {
    TOKEN_PAYMENT: timedelta(hours=24),
    TOKEN_DISPLAY: timedelta(minutes=15),
    TOKEN_RECURRING: None,
}


def generate_token() -> str:
    """tok_ followed by 32 hex characters of CSPRNG output"""
    return TOKEN_PREFIX + secrets.token_hex(TOKEN_BYTES)


def compute_token_expiry(token_type: str, now: datetime) -> Optional[datetime]:
    if token_type not in TOKEN_TTLS:
        raise ValueError(f"Unknown token type: {token_type}")
    ttl = TOKEN_TTLS[token_type]
    return now + ttl if ttl is not None else None


def is_token_expired(token: CardToken, now: datetime) -> bool:
    return token.expires_at is not None and ensure_utc(token.expires_at) < ensure_utc(now)


def tokenize_card(
    user_id: str,
    card_id: str,
    last_four: str,
    token_type: str,
    store: CardTokenStore,
    access_log: AccessLogSink,
    actor: Actor,
    expiry_month: Optional[int] = None,
    expiry_year: Optional[int] = None,
    now: Optional[datetime] = None,
) -> CardToken:
    """
    Issue a new token for a card.

    Raises:
        ValueError: unknown token type or last_four is not exactly 4 digits
        TokenizationError: the token could not be stored
    """
    if not re.fullmatch(r"\d{4}", last_four or ""):
        raise ValueError("last_four must be exactly 4 digits")

    now = now or utc_now()
    expires_at = compute_token_expiry(token_type, now)

    try:
        card_token = store.create_token(
            user_id=user_id,
            token=generate_token(),
            card_id=card_id,
            token_type=token_type,
            last_four=last_four,
            expiry_month=expiry_month,
            expiry_year=expiry_year,
            created_at=now,
            expires_at=expires_at,
        )
    except TokenizationError:
        access_log.record_pci_access(
            actor=actor,
            access_type=ACCESS_TOKEN_CREATE,
            card_id=card_id,
            reason="tokenization failed",
        )
        raise

    access_log.record_pci_access(
        actor=actor,
        access_type=ACCESS_TOKEN_CREATE,
        card_id=card_id,
        token_id=str(card_token.id),
        reason=f"{token_type} token issued",
    )
    return card_token


def detokenize(
    token: str,
    store: CardTokenStore,
    access_log: AccessLogSink,
    actor: Actor,
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Optional[CardToken]:
    """
    Resolve a token to its card metadata.

    Unknown, revoked and expired tokens all return None so callers cannot tell
    them apart. An expired token is deactivated as part of the lookup.
    """
    now = now or utc_now()
    card_token = store.find_active_token(token)

    if card_token is not None and is_token_expired(card_token, now):
        store.deactivate(card_token.id)
        logger.info("Expired token deactivated on lookup", extra={"token_id": str(card_token.id)})
        card_token = None

    access_log.record_pci_access(
        actor=actor,
        access_type=ACCESS_PAN,
        card_id=card_token.card_id if card_token else None,
        token_id=str(card_token.id) if card_token else None,
        reason=reason or ("token resolved" if card_token else "token not resolved"),
    )
    return card_token


def revoke_token(
    token_id: uuid.UUID,
    store: CardTokenStore,
    access_log: AccessLogSink,
    actor: Actor,
    reason: Optional[str] = None,
) -> None:
    """Deactivate a token. Revoking an inactive or unknown token changes nothing."""
    store.deactivate(token_id)
    access_log.record_pci_access(
        actor=actor,
        access_type=ACCESS_TOKEN_REVOKE,
        token_id=str(token_id),
        reason=reason,
    )
