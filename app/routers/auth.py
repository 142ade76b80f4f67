from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.auth import Principal, get_optional_principal
from app.config import settings
from app.db import get_db
from app.dependencies import clear_tenant_cookies, get_client_ip, get_outfitter_hint
from app.models import Principal as PrincipalModel
from app.security.passwords import verify_password
from app.security.sessions import create_web_session, revoke_web_session
from app.services.audit_service import log_audit, log_auth_event
from app.services.membership_service import list_invited_memberships

router = APIRouter(prefix='/api/auth', tags=['auth'])


class LoginRequest(BaseModel):
    email: str
    password: str


def _reject_login(
    db: Session,
    *,
    email: str,
    reason: str,
    principal_id: int | None,
    ip: str | None,
    user_agent: str | None,
) -> HTTPException:
    log_auth_event(
        db,
        attempted_email=email,
        success=False,
        failure_reason=reason,
        principal_id=principal_id,
        ip=ip,
        user_agent=user_agent,
    )
    db.commit()
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Invalid email or password')


@router.post('/login')
def login(payload: LoginRequest, request: Request, db: Session = Depends(get_db)):
    email = payload.email.strip().lower()
    ip = get_client_ip(request)
    user_agent = request.headers.get('user-agent')

    principal = db.execute(select(PrincipalModel).where(PrincipalModel.email == email)).scalar_one_or_none()
    if not principal:
        raise _reject_login(db, email=email, reason='UNKNOWN_EMAIL', principal_id=None, ip=ip, user_agent=user_agent)
    if not principal.active:
        raise _reject_login(
            db, email=email, reason='INACTIVE_PRINCIPAL', principal_id=principal.id, ip=ip, user_agent=user_agent
        )

    valid, updated_hash = verify_password(payload.password, principal.password_hash)
    if not valid:
        raise _reject_login(db, email=email, reason='BAD_PASSWORD', principal_id=principal.id, ip=ip, user_agent=user_agent)
    if updated_hash:
        principal.password_hash = updated_hash

    token = create_web_session(db, principal.id, ip=ip, user_agent=user_agent)
    log_auth_event(
        db,
        attempted_email=email,
        success=True,
        failure_reason=None,
        principal_id=principal.id,
        ip=ip,
        user_agent=user_agent,
    )
    log_audit(
        db,
        actor_principal_id=principal.id,
        action='AUTH_LOGIN',
        outfitter_id=None,
        ip=ip,
        metadata={'email': email},
    )
    db.commit()

    response = JSONResponse({'ok': True, 'user': {'id': principal.id, 'email': principal.email}})
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite=settings.session_cookie_samesite,
        max_age=settings.session_ttl_minutes * 60,
    )
    return response


@router.post('/logout')
def logout(request: Request, db: Session = Depends(get_db)):
    principal = getattr(request.state, 'principal', None)
    token = request.cookies.get(settings.session_cookie_name)
    if token:
        revoke_web_session(db, token)

    log_audit(
        db,
        actor_principal_id=principal.id if principal else None,
        action='AUTH_LOGOUT',
        outfitter_id=None,
        ip=get_client_ip(request),
        metadata={'outfitter_hint': get_outfitter_hint(request)},
    )
    db.commit()

    response = JSONResponse({'success': True})
    response.delete_cookie(settings.session_cookie_name)
    clear_tenant_cookies(response)
    return response


@router.get('/check-invite-status')
def check_invite_status(
    principal: Principal | None = Depends(get_optional_principal),
    db: Session = Depends(get_db),
):
    if principal is None:
        return {'is_invited': False}

    invited = list_invited_memberships(db, user_id=principal.id)
    if not invited:
        return {'is_invited': False}

    first = invited[0]
    return {'is_invited': True, 'role': first.role.value, 'outfitter_id': first.outfitter_id}
