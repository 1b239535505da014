"""Audit and PCI access trail.

Entries are buffered while a request runs and written once the primary result
has been committed, in a session of their own. A failed write is logged and
counted but never reaches the caller: observability must not break banking
operations.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from nexus_gateway.domain.models import Actor
from nexus_gateway.domain.ports import AccessLogSink
from nexus_gateway.infrastructure.database.models import AuditLogRecord, PciAccessLogRecord
from nexus_gateway.infrastructure.observability.metrics import audit_write_failures_counter

logger = logging.getLogger(__name__)


class AuditTrail(AccessLogSink):
    """Request-scoped buffer for audit and PCI access entries"""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ):
        self.session_factory = session_factory
        self.ip_address = ip_address
        self.user_agent = user_agent
        self.pending: List[PciAccessLogRecord | AuditLogRecord] = []

    def record_pci_access(
        self,
        actor: Actor,
        access_type: str,
        card_id: Optional[str] = None,
        token_id: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> None:
        self.pending.append(
            PciAccessLogRecord(
                actor_id=actor.actor_id,
                actor_role=actor.role,
                access_type=access_type,
                card_id=card_id,
                token_id=token_id,
                reason=reason,
                ip_address=self.ip_address,
                user_agent=self.user_agent,
            )
        )

    def record_event(
        self,
        actor: Actor,
        event_type: str,
        action: str,
        target_table: Optional[str] = None,
        target_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.pending.append(
            AuditLogRecord(
                event_type=event_type,
                actor_id=actor.actor_id,
                actor_role=actor.role,
                target_table=target_table,
                target_id=target_id,
                action=action,
                details=details or {},
                ip_address=self.ip_address,
                user_agent=self.user_agent,
            )
        )

    def discard(self) -> None:
        self.pending.clear()

    def flush(self) -> None:
        """Write buffered entries. Never raises."""
        entries, self.pending = self.pending, []
        if not entries:
            return

        for entry in entries:
            sink = "pci" if isinstance(entry, PciAccessLogRecord) else "audit"
            try:
                with self.session_factory() as session:
                    session.add(entry)
                    session.commit()
            except Exception as e:
                audit_write_failures_counter.labels(sink=sink).inc()
                label = entry.access_type if sink == "pci" else entry.action
                logger.error("Failed to write %s log entry for %s: %s", sink, label, e)
