"""/v1/cards and /v1/tokens - card tokenization"""

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, Response

from nexus_gateway.api.dependencies import get_audit_trail, get_pci_context, get_request_id
from nexus_gateway.api.v1.payees import parse_uuid
from nexus_gateway.api.v1.schemas import TokenCreateRequest, TokenResponse
from nexus_gateway.domain.exceptions import TokenizationError
from nexus_gateway.domain.models import CardToken
from nexus_gateway.domain.tokenization import detokenize, revoke_token, tokenize_card
from nexus_gateway.infrastructure.database.context import PrivilegedContext
from nexus_gateway.infrastructure.database.repositories import CardTokenRepository
from nexus_gateway.infrastructure.observability.audit import AuditTrail
from nexus_gateway.infrastructure.observability.logging import log_token_event
from nexus_gateway.infrastructure.observability.metrics import detokenize_counter, token_issued_counter

router = APIRouter()


def to_token_response(card_token: CardToken) -> TokenResponse:
    return TokenResponse(
        token_id=str(card_token.id),
        token=card_token.token,
        card_id=card_token.card_id,
        token_type=card_token.token_type,
        last_four=card_token.last_four,
        expiry_month=card_token.expiry_month,
        expiry_year=card_token.expiry_year,
        is_active=card_token.is_active,
        created_at=card_token.created_at.isoformat(),
        expires_at=card_token.expires_at.isoformat() if card_token.expires_at else None,
    )


@router.post("/cards/{card_id}/tokens", response_model=TokenResponse, status_code=201)
def create_token(
    card_id: str,
    request_body: TokenCreateRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    ctx: PrivilegedContext = Depends(get_pci_context),
    audit: AuditTrail = Depends(get_audit_trail),
):
    """
    Issue a token for a card.

    Payment tokens live 24 hours, display tokens 15 minutes and recurring
    tokens until revoked.
    """
    request_id = get_request_id(request)
    try:
        card_token = tokenize_card(
            user_id=request_body.user_id,
            card_id=card_id,
            last_four=request_body.last_four,
            token_type=request_body.token_type,
            store=CardTokenRepository(ctx),
            access_log=audit,
            actor=ctx.actor,
            expiry_month=request_body.expiry_month,
            expiry_year=request_body.expiry_year,
        )
        ctx.db.commit()
    except TokenizationError as e:
        # Background tasks do not run once the request fails
        audit.flush()
        log_token_event(request_id, "create", request_body.token_type, "failed")
        raise HTTPException(status_code=503, detail=str(e))

    background_tasks.add_task(audit.flush)
    token_issued_counter.labels(token_type=card_token.token_type).inc()
    log_token_event(request_id, "create", card_token.token_type, "issued")
    return to_token_response(card_token)


@router.get("/tokens/{token}", response_model=TokenResponse)
def resolve_token(
    token: str,
    background_tasks: BackgroundTasks,
    request: Request,
    reason: str | None = None,
    ctx: PrivilegedContext = Depends(get_pci_context),
    audit: AuditTrail = Depends(get_audit_trail),
):
    """Resolve a token. Unknown, revoked and expired tokens are all 404."""
    card_token = detokenize(token, CardTokenRepository(ctx), audit, ctx.actor, reason=reason)
    # Commit even on a miss: an expired token is deactivated during lookup
    ctx.db.commit()
    background_tasks.add_task(audit.flush)

    outcome = "resolved" if card_token else "not_found"
    detokenize_counter.labels(outcome=outcome).inc()
    log_token_event(get_request_id(request), "resolve", card_token.token_type if card_token else None, outcome)

    if card_token is None:
        raise HTTPException(status_code=404, detail="Token not found")
    return to_token_response(card_token)


@router.delete("/tokens/{token_id}", status_code=204)
def delete_token(
    token_id: str,
    background_tasks: BackgroundTasks,
    request: Request,
    reason: str | None = None,
    ctx: PrivilegedContext = Depends(get_pci_context),
    audit: AuditTrail = Depends(get_audit_trail),
):
    """Revoke a token. Repeating the call is harmless."""
    revoke_token(parse_uuid(token_id, "token"), CardTokenRepository(ctx), audit, ctx.actor, reason=reason)
    ctx.db.commit()
    background_tasks.add_task(audit.flush)
    log_token_event(get_request_id(request), "revoke", None, "revoked")
    return Response(status_code=204)
