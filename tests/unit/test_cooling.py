"""Unit tests for the new payee cooling period"""

import uuid
import pytest
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional
from nexus_gateway.domain.cooling import (
    PAYEE_NOT_FOUND,
    check_cooling_period,
    describe_cooling_status,
    evaluate_cooling_period,
    mark_payee_first_used,
    waive_cooling_period,
)
from nexus_gateway.domain.models import Actor, CoolingPeriodConfig, Payee
from nexus_gateway.domain.ports import CoolingStore

NOW = datetime(2026, 1, 14, 12, 0, tzinfo=timezone.utc)


class InMemoryCoolingStore(CoolingStore):
    def __init__(self, configs: Dict[str, CoolingPeriodConfig], payees: Dict[uuid.UUID, Payee]):
        self.configs = configs
        self.payees = payees
        self.payee_lookups = 0

    def get_cooling_config(self, rail: str) -> Optional[CoolingPeriodConfig]:
        return self.configs.get(rail)

    def get_payee(self, payee_id: uuid.UUID) -> Optional[Payee]:
        self.payee_lookups += 1
        return self.payees.get(payee_id)

    def set_first_used_if_unset(self, payee_id: uuid.UUID, used_at: datetime) -> bool:
        payee = self.payees[payee_id]
        if payee.first_used_at is not None:
            return False
        payee.first_used_at = used_at
        return True

    def set_cooling_waived(self, payee_id: uuid.UUID, waived_at: datetime, waived_by: Optional[str]) -> None:
        self.payees[payee_id].cooling_waived_at = waived_at


class RecordingSink:
    def __init__(self):
        self.events = []

    def record_pci_access(self, **kwargs):
        raise AssertionError("cooling never touches card data")

    def record_event(self, **kwargs):
        self.events.append(kwargs)


def make_payee(age: timedelta, **kwargs) -> Payee:
    return Payee(
        id=uuid.uuid4(),
        user_id="user_1",
        name="Jane Smith",
        sort_code="20-00-00",
        account_number="55779911",
        is_favourite=False,
        created_at=NOW - age,
        **kwargs,
    )


def fps_config(hours: int = 24, is_active: bool = True) -> CoolingPeriodConfig:
    return CoolingPeriodConfig(payment_rail="fps", cooling_hours=hours, is_active=is_active)


def test_new_payee_denied_with_hours_remaining():
    """24 hour policy, payee added 10 hours ago -> 14 hours left"""
    payee = make_payee(timedelta(hours=10))
    result = evaluate_cooling_period(fps_config(), payee, "fps", NOW)

    assert result.allowed is False
    assert result.hours_remaining == 14
    assert result.reason == (
        "For your protection, new payees have a 24-hour cooling period before the first "
        "Faster Payment. Please try again in 14 hours."
    )


def test_partial_hours_round_up_and_singular_wording():
    payee = make_payee(timedelta(hours=23, minutes=30))
    result = evaluate_cooling_period(fps_config(), payee, "fps", NOW)

    assert result.hours_remaining == 1
    assert result.reason.endswith("Please try again in 1 hour.")


def test_window_elapsed_is_allowed():
    payee = make_payee(timedelta(hours=24))
    assert evaluate_cooling_period(fps_config(), payee, "fps", NOW).allowed is True


@pytest.mark.parametrize("config", [None, fps_config(is_active=False), fps_config(hours=0)])
def test_disabled_policy_allows_everything(config):
    payee = make_payee(timedelta(minutes=1))
    assert evaluate_cooling_period(config, payee, "fps", NOW).allowed is True


def test_unknown_payee_denied():
    result = evaluate_cooling_period(fps_config(), None, "fps", NOW)
    assert result.allowed is False
    assert result.reason == PAYEE_NOT_FOUND


def test_used_or_waived_payee_allowed_inside_window():
    used = make_payee(timedelta(hours=1), first_used_at=NOW - timedelta(minutes=5))
    waived = make_payee(timedelta(hours=1), cooling_waived_at=NOW - timedelta(minutes=5))

    assert evaluate_cooling_period(fps_config(), used, "fps", NOW).allowed is True
    assert evaluate_cooling_period(fps_config(), waived, "fps", NOW).allowed is True


def test_naive_created_at_treated_as_utc():
    payee = make_payee(timedelta(hours=10))
    payee.created_at = payee.created_at.replace(tzinfo=None)
    assert evaluate_cooling_period(fps_config(), payee, "fps", NOW).hours_remaining == 14


def test_check_cooling_period_skips_payee_lookup_without_policy():
    payee = make_payee(timedelta(hours=1))
    store = InMemoryCoolingStore({}, {payee.id: payee})

    assert check_cooling_period(payee.id, "fps", store, now=NOW).allowed is True
    assert store.payee_lookups == 0


def test_check_cooling_period_uses_rail_policy():
    """A policy on CHAPS does not affect Faster Payments"""
    payee = make_payee(timedelta(hours=1))
    store = InMemoryCoolingStore(
        {"chaps": CoolingPeriodConfig(payment_rail="chaps", cooling_hours=48, is_active=True)},
        {payee.id: payee},
    )

    assert check_cooling_period(payee.id, "fps", store, now=NOW).allowed is True
    chaps = check_cooling_period(payee.id, "chaps", store, now=NOW)
    assert chaps.allowed is False
    assert "first CHAPS payment" in chaps.reason


def test_mark_payee_first_used_keeps_first_value():
    """Once marked, the payee is always allowed and the original time is kept"""
    payee = make_payee(timedelta(hours=1))
    store = InMemoryCoolingStore({"fps": fps_config()}, {payee.id: payee})

    assert mark_payee_first_used(payee.id, store, now=NOW) is True
    assert mark_payee_first_used(payee.id, store, now=NOW + timedelta(hours=1)) is False
    assert payee.first_used_at == NOW
    assert check_cooling_period(payee.id, "fps", store, now=NOW).allowed is True


def test_describe_cooling_status():
    config = fps_config()
    assert describe_cooling_status(make_payee(timedelta(hours=10)), config, NOW).status == "active"
    assert describe_cooling_status(make_payee(timedelta(hours=30)), config, NOW).status == "cleared"
    waived = make_payee(timedelta(hours=1), cooling_waived_at=NOW)
    assert describe_cooling_status(waived, config, NOW).status == "waived"


def test_waive_cooling_period_records_audit_event():
    payee = make_payee(timedelta(hours=1))
    store = InMemoryCoolingStore({"fps": fps_config()}, {payee.id: payee})
    sink = RecordingSink()
    actor = Actor(actor_id="admin_1", role="admin")

    error = waive_cooling_period(payee.id, "Customer verified by phone", store, sink, actor, now=NOW)

    assert error is None
    assert payee.cooling_waived_at == NOW
    assert payee.first_used_at is None
    assert sink.events[0]["action"] == "waive_cooling_period"
    assert sink.events[0]["details"]["reason"] == "Customer verified by phone"


def test_waive_cooling_period_rejections():
    used = make_payee(timedelta(hours=1), first_used_at=NOW)
    store = InMemoryCoolingStore({}, {used.id: used})
    sink = RecordingSink()
    actor = Actor(actor_id="admin_1", role="admin")

    assert "minimum 5 characters" in waive_cooling_period(used.id, " ok ", store, sink, actor)
    assert waive_cooling_period(uuid.uuid4(), "valid reason", store, sink, actor) == PAYEE_NOT_FOUND
    assert "already been cleared" in waive_cooling_period(used.id, "valid reason", store, sink, actor)
    assert sink.events == []
