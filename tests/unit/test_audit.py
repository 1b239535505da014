"""Unit tests for the audit and PCI access trail"""

from prometheus_client import REGISTRY
from sqlalchemy.exc import OperationalError
from nexus_gateway.domain.models import Actor
from nexus_gateway.infrastructure.observability.audit import AuditTrail

ACTOR = Actor(actor_id="user_1", role="customer")


def failures(sink: str) -> float:
    return REGISTRY.get_sample_value("audit_write_failures_total", {"sink": sink}) or 0.0


def broken_session_factory():
    raise OperationalError("INSERT INTO audit_log", {}, Exception("database is locked"))


def test_flush_swallows_write_failures_and_counts_them():
    """A failing audit store never reaches the caller"""
    trail = AuditTrail(broken_session_factory)
    trail.record_event(actor=ACTOR, event_type="payment", action="payment_submitted")
    trail.record_pci_access(actor=ACTOR, access_type="pan_access", card_id="card_1")
    audit_before, pci_before = failures("audit"), failures("pci")

    trail.flush()

    assert trail.pending == []
    assert failures("audit") == audit_before + 1
    assert failures("pci") == pci_before + 1


def test_discard_drops_buffered_entries():
    trail = AuditTrail(broken_session_factory)
    trail.record_event(actor=ACTOR, event_type="payment", action="payment_submitted")

    audit_before = failures("audit")

    trail.discard()
    trail.flush()

    assert trail.pending == []
    assert failures("audit") == audit_before
