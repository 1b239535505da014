"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session, sessionmaker

from nexus_gateway.domain.models import Actor
from nexus_gateway.infrastructure.clients.cop_registry import HttpCopRegistry
from nexus_gateway.infrastructure.database.context import (
    SCOPE_ADMIN,
    SCOPE_PAYMENTS,
    SCOPE_PCI,
    PrivilegedContext,
)
from nexus_gateway.infrastructure.database.session import get_db, get_session_factory
from nexus_gateway.infrastructure.observability.audit import AuditTrail


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_actor(request: Request) -> Actor:
    """Caller identity as established by the upstream auth proxy"""
    return Actor(
        actor_id=request.headers.get("X-Actor-Id"),
        role=request.headers.get("X-Actor-Role", "customer"),
    )


def get_cop_registry() -> HttpCopRegistry:
    """Provide Confirmation of Payee registry client instance"""
    return HttpCopRegistry()


def get_audit_trail(
    request: Request,
    session_factory: sessionmaker = Depends(get_session_factory),
) -> AuditTrail:
    """Request-scoped audit buffer, flushed by endpoints after commit"""
    return AuditTrail(
        session_factory,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("User-Agent"),
    )


def get_payments_context(actor: Actor = Depends(get_actor), db: Session = Depends(get_db)) -> PrivilegedContext:
    return PrivilegedContext(db=db, actor=actor, scopes=frozenset({SCOPE_PAYMENTS}))


def get_pci_context(actor: Actor = Depends(get_actor), db: Session = Depends(get_db)) -> PrivilegedContext:
    return PrivilegedContext(db=db, actor=actor, scopes=frozenset({SCOPE_PCI}))


def get_admin_context(actor: Actor = Depends(get_actor), db: Session = Depends(get_db)) -> PrivilegedContext:
    """Admin scope is only granted to admin actors"""
    if actor.role != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return PrivilegedContext(db=db, actor=actor, scopes=frozenset({SCOPE_PAYMENTS, SCOPE_ADMIN}))
