from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.models import AuditLog, AuthEvent
from app.services.tenancy import Denied

logger = logging.getLogger(__name__)


def log_auth_event(
    db: Session,
    *,
    attempted_email: str,
    success: bool,
    ip: str | None,
    user_agent: str | None,
    principal_id: int | None = None,
    failure_reason: str | None = None,
) -> None:
    db.add(
        AuthEvent(
            attempted_email=attempted_email,
            success=success,
            failure_reason=failure_reason,
            principal_id=principal_id,
            ip=ip,
            user_agent=user_agent,
        )
    )


def log_audit(
    db: Session,
    *,
    actor_principal_id: int | None,
    action: str,
    outfitter_id: str | None,
    ip: str | None,
    metadata: dict | None = None,
) -> None:
    db.add(
        AuditLog(
            actor_principal_id=actor_principal_id,
            action=action,
            outfitter_id=outfitter_id,
            ip=ip,
            meta=metadata or {},
        )
    )


def log_access_denied(
    db: Session,
    *,
    actor_principal_id: int | None,
    outfitter_id: str,
    denial: Denied,
    ip: str | None,
    path: str | None = None,
) -> None:
    logger.warning(
        'Access denied: principal=%s outfitter=%s reason=%s path=%s',
        actor_principal_id,
        outfitter_id,
        denial.reason.value,
        path,
    )
    # The requested id may not reference a real outfitter; keep it out of the FK column.
    log_audit(
        db,
        actor_principal_id=actor_principal_id,
        action='TENANT_ACCESS_DENIED',
        outfitter_id=None,
        ip=ip,
        metadata={'outfitter_id': outfitter_id, 'reason': denial.reason.value, 'path': path},
    )
