"""Privileged data access context.

Compliance-sensitive tables (card tokens, cooling configuration, limits, the
audit trail) are written with elevated rights. Instead of an ambient admin
client, each request builds a PrivilegedContext carrying only the scopes its
router needs, and repositories check the scope they require.
"""

from dataclasses import dataclass, field
from typing import FrozenSet

from sqlalchemy.orm import Session

from nexus_gateway.domain.exceptions import PrivilegeError
from nexus_gateway.domain.models import Actor

SCOPE_PAYMENTS = "payments"
SCOPE_PCI = "pci"
SCOPE_ADMIN = "admin"


@dataclass(frozen=True)
class PrivilegedContext:
    db: Session
    actor: Actor
    scopes: FrozenSet[str] = field(default_factory=frozenset)

    def require(self, scope: str) -> None:
        if scope not in self.scopes:
            raise PrivilegeError(f"Scope '{scope}' not granted to {self.actor.role} context")
