from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session

from app.auth import Principal, get_current_principal, remember_auto_selected_tenant
from app.db import get_db
from app.dependencies import get_client_ip, get_outfitter_hint, set_outfitter_cookie, set_role_cookie
from app.models import MembershipStatus
from app.services.audit_service import log_access_denied, log_audit
from app.services.membership_service import get_membership, list_active_memberships
from app.services.tenancy import ANY_ACTIVE_ROLE, Denied, NeedsSelection, Resolved, authorize, resolve_tenant

router = APIRouter(tags=['tenant'])

ONBOARDING_STATUSES = {MembershipStatus.ACTIVE, MembershipStatus.INVITED}


async def _read_outfitter_id(request: Request) -> str:
    content_type = request.headers.get('content-type') or ''
    if 'application/json' in content_type:
        try:
            body = await request.json()
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Invalid JSON body') from exc
        raw = body.get('outfitter_id') if isinstance(body, dict) else None
    else:
        form = await request.form()
        raw = form.get('outfitter_id')
    if not isinstance(raw, str) or not raw.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='outfitter_id is required')
    return raw.strip()


@router.get('/api/tenant/current')
def current_tenant(
    request: Request,
    response: Response,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    hint = get_outfitter_hint(request)
    active = [] if hint else list_active_memberships(db, user_id=principal.id)
    resolution = resolve_tenant(principal, hint, active)

    if isinstance(resolution, NeedsSelection):
        return {
            'outfitter_id': None,
            'auto_set': False,
            'needs_selection': True,
            'candidates': list(resolution.candidates),
        }
    if not isinstance(resolution, Resolved):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Not authenticated')

    if resolution.was_auto_selected:
        remember_auto_selected_tenant(db, request, response, principal=principal, outfitter_id=resolution.tenant_id)
    return {'outfitter_id': resolution.tenant_id, 'auto_set': resolution.was_auto_selected}


@router.get('/api/tenant/list')
def list_tenants(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    memberships = list_active_memberships(db, user_id=principal.id)
    return {
        'memberships': [
            {'outfitter_id': m.outfitter_id, 'role': m.role.value, 'status': m.status.value}
            for m in memberships
        ]
    }


@router.post('/api/tenant/select')
async def select_tenant(
    request: Request,
    response: Response,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    outfitter_id = await _read_outfitter_id(request)
    membership = get_membership(db, user_id=principal.id, outfitter_id=outfitter_id)
    decision = authorize(principal, outfitter_id, membership, ANY_ACTIVE_ROLE)
    ip = get_client_ip(request)

    if isinstance(decision, Denied):
        log_access_denied(
            db,
            actor_principal_id=principal.id,
            outfitter_id=outfitter_id,
            denial=decision,
            ip=ip,
            path=request.url.path,
        )
        db.commit()
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={'error': 'Access denied', 'reason': decision.reason.value},
        )

    set_outfitter_cookie(response, decision.tenant_id)
    set_role_cookie(response, decision.role.value)
    log_audit(
        db,
        actor_principal_id=principal.id,
        action='TENANT_SELECTED',
        outfitter_id=decision.tenant_id,
        ip=ip,
        metadata={'role': decision.role.value},
    )
    db.commit()
    return {'ok': True, 'outfitter_id': decision.tenant_id, 'role': decision.role.value}


@router.post('/api/session/bootstrap')
def bootstrap_session(
    request: Request,
    response: Response,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    outfitter_id = get_outfitter_hint(request)
    role = ''
    if outfitter_id:
        membership = get_membership(db, user_id=principal.id, outfitter_id=outfitter_id)
        # Invited members see their role to finish onboarding; it grants no access.
        if membership is not None and membership.status in ONBOARDING_STATUSES:
            role = membership.role.value

    set_role_cookie(response, role)
    return {'ok': True, 'role': role}
