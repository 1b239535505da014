"""Unit tests for card tokenization"""

import re
import uuid
import pytest
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional
from nexus_gateway.domain.exceptions import TokenizationError
from nexus_gateway.domain.models import Actor, CardToken
from nexus_gateway.domain.ports import AccessLogSink, CardTokenStore
from nexus_gateway.domain.tokenization import (
    compute_token_expiry,
    detokenize,
    generate_token,
    revoke_token,
    tokenize_card,
)

NOW = datetime(2026, 1, 14, 12, 0, tzinfo=timezone.utc)
ACTOR = Actor(actor_id="user_1", role="customer")


class InMemoryTokenStore(CardTokenStore):
    def __init__(self):
        self.tokens: Dict[uuid.UUID, CardToken] = {}

    def create_token(self, **fields) -> CardToken:
        card_token = CardToken(id=uuid.uuid4(), is_active=True, **fields)
        self.tokens[card_token.id] = card_token
        return card_token

    def find_active_token(self, token: str) -> Optional[CardToken]:
        for card_token in self.tokens.values():
            if card_token.token == token and card_token.is_active:
                return card_token
        return None

    def deactivate(self, token_id: uuid.UUID) -> None:
        if token_id in self.tokens:
            self.tokens[token_id].is_active = False


class FailingTokenStore(InMemoryTokenStore):
    def create_token(self, **fields) -> CardToken:
        raise TokenizationError("Tokenization failed. Please try again.")


class ListAccessLog(AccessLogSink):
    def __init__(self):
        self.pci = []
        self.reasons = []
        self.events = []

    def record_pci_access(self, actor, access_type, card_id=None, token_id=None, reason=None):
        self.pci.append({"access_type": access_type, "card_id": card_id, "token_id": token_id})
        self.reasons.append(reason)

    def record_event(self, actor, event_type, action, target_table=None, target_id=None, details=None):
        self.events.append(action)


@pytest.fixture
def store() -> InMemoryTokenStore:
    return InMemoryTokenStore()


@pytest.fixture
def access_log() -> ListAccessLog:
    return ListAccessLog()


def test_generate_token_format():
    token = generate_token()
    assert re.fullmatch(r"tok_[0-9a-f]{32}", token)
    assert generate_token() != token


@pytest.mark.parametrize(
    "token_type,ttl",
    [("payment", timedelta(hours=24)), ("display", timedelta(minutes=15))],
)
def test_compute_token_expiry(token_type: str, ttl: timedelta):
    assert compute_token_expiry(token_type, NOW) == NOW + ttl


def test_recurring_tokens_do_not_expire():
    assert compute_token_expiry("recurring", NOW) is None


def test_unknown_token_type_rejected():
    with pytest.raises(ValueError):
        compute_token_expiry("forever", NOW)


def test_tokenize_card_logs_creation(store: InMemoryTokenStore, access_log: ListAccessLog):
    card_token = tokenize_card("user_1", "card_1", "4242", "payment", store, access_log, ACTOR, now=NOW)

    assert card_token.last_four == "4242"
    assert card_token.expires_at == NOW + timedelta(hours=24)
    assert access_log.pci == [
        {"access_type": "token_create", "card_id": "card_1", "token_id": str(card_token.id)}
    ]


@pytest.mark.parametrize("last_four", ["424", "42424", "42a2", ""])
def test_tokenize_card_requires_four_digits(
    last_four: str, store: InMemoryTokenStore, access_log: ListAccessLog
):
    with pytest.raises(ValueError):
        tokenize_card("user_1", "card_1", last_four, "payment", store, access_log, ACTOR, now=NOW)
    assert store.tokens == {}
    assert access_log.pci == []


def test_tokenize_card_storage_failure_is_logged_and_propagates(access_log: ListAccessLog):
    """A failed attempt still leaves a token_create entry for the card"""
    with pytest.raises(TokenizationError, match="Please try again"):
        tokenize_card("user_1", "card_1", "4242", "payment", FailingTokenStore(), access_log, ACTOR, now=NOW)

    assert access_log.pci == [{"access_type": "token_create", "card_id": "card_1", "token_id": None}]
    assert access_log.reasons == ["tokenization failed"]


def test_display_token_lifetime(store: InMemoryTokenStore, access_log: ListAccessLog):
    """Resolves at T+14 minutes, gone and deactivated at T+16"""
    card_token = tokenize_card("user_1", "card_1", "4242", "display", store, access_log, ACTOR, now=NOW)

    resolved = detokenize(card_token.token, store, access_log, ACTOR, now=NOW + timedelta(minutes=14))
    assert resolved is not None
    assert resolved.card_id == "card_1"

    assert detokenize(card_token.token, store, access_log, ACTOR, now=NOW + timedelta(minutes=16)) is None
    assert store.tokens[card_token.id].is_active is False


def test_unknown_and_revoked_tokens_look_the_same(store: InMemoryTokenStore, access_log: ListAccessLog):
    card_token = tokenize_card("user_1", "card_1", "4242", "recurring", store, access_log, ACTOR, now=NOW)
    revoke_token(card_token.id, store, access_log, ACTOR, reason="card lost")

    revoked = detokenize(card_token.token, store, access_log, ACTOR, now=NOW)
    unknown = detokenize("tok_" + "0" * 32, store, access_log, ACTOR, now=NOW)

    assert revoked is None and unknown is None
    assert access_log.pci[-2] == access_log.pci[-1] == {
        "access_type": "pan_access",
        "card_id": None,
        "token_id": None,
    }


def test_every_operation_writes_access_log(store: InMemoryTokenStore, access_log: ListAccessLog):
    card_token = tokenize_card("user_1", "card_1", "4242", "payment", store, access_log, ACTOR, now=NOW)
    detokenize(card_token.token, store, access_log, ACTOR, now=NOW)
    revoke_token(card_token.id, store, access_log, ACTOR)
    revoke_token(card_token.id, store, access_log, ACTOR)

    assert [entry["access_type"] for entry in access_log.pci] == [
        "token_create",
        "pan_access",
        "token_revoke",
        "token_revoke",
    ]
