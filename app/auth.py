from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session

from app.db import get_db
from app.dependencies import get_client_ip, get_outfitter_hint, set_outfitter_cookie
from app.models import MembershipRole
from app.services.audit_service import log_access_denied, log_audit
from app.services.membership_service import get_membership, list_active_memberships
from app.services.tenancy import (
    ANY_ACTIVE_ROLE,
    Denied,
    NeedsSelection,
    Unauthenticated,
    authorize,
    resolve_tenant,
)


@dataclass
class Principal:
    id: int
    email: str | None
    active: bool = True


@dataclass(frozen=True)
class TenantContext:
    principal: Principal
    outfitter_id: str
    role: MembershipRole
    auto_selected: bool


def get_current_principal(request: Request) -> Principal:
    principal = getattr(request.state, 'principal', None)
    if not principal:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Not authenticated')
    if not principal.active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN)
    return principal


def get_optional_principal(request: Request) -> Principal | None:
    principal = getattr(request.state, 'principal', None)
    if not principal or not principal.active:
        return None
    return principal


def remember_auto_selected_tenant(
    db: Session,
    request: Request,
    response: Response,
    *,
    principal: Principal,
    outfitter_id: str,
) -> None:
    set_outfitter_cookie(response, outfitter_id)
    log_audit(
        db,
        actor_principal_id=principal.id,
        action='TENANT_AUTO_SELECTED',
        outfitter_id=outfitter_id,
        ip=get_client_ip(request),
        metadata={'path': request.url.path},
    )
    db.commit()


def require_tenant_role(*allowed: MembershipRole):
    """Dependency resolving the request's outfitter and checking the caller's role in it.

    With no roles given any active membership is enough. An outfitter picked
    automatically from a single membership is written back to the outfitter
    cookie so later requests carry it explicitly.
    """
    required = frozenset(allowed) if allowed else ANY_ACTIVE_ROLE

    def _dep(
        request: Request,
        response: Response,
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db),
    ) -> TenantContext:
        hint = get_outfitter_hint(request)
        active = [] if hint else list_active_memberships(db, user_id=principal.id)
        resolution = resolve_tenant(principal, hint, active)

        if isinstance(resolution, Unauthenticated):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Not authenticated')
        if isinstance(resolution, NeedsSelection):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={
                    'error': 'No outfitter selected',
                    'needs_selection': True,
                    'candidates': list(resolution.candidates),
                },
            )

        membership = get_membership(db, user_id=principal.id, outfitter_id=resolution.tenant_id)
        decision = authorize(principal, resolution.tenant_id, membership, required)
        if isinstance(decision, Denied):
            log_access_denied(
                db,
                actor_principal_id=principal.id,
                outfitter_id=resolution.tenant_id,
                denial=decision,
                ip=get_client_ip(request),
                path=request.url.path,
            )
            db.commit()
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={'error': 'Access denied', 'reason': decision.reason.value},
            )

        if resolution.was_auto_selected:
            remember_auto_selected_tenant(db, request, response, principal=principal, outfitter_id=decision.tenant_id)

        return TenantContext(
            principal=principal,
            outfitter_id=decision.tenant_id,
            role=decision.role,
            auto_selected=resolution.was_auto_selected,
        )

    return _dep
