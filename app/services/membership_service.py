from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models import MembershipStatus, OutfitterMembership
from app.services.tenancy import MembershipView


def is_valid_outfitter_id(value: str | None) -> bool:
    try:
        uuid.UUID(str(value or ''))
    except ValueError:
        return False
    return True


def to_membership_view(row: OutfitterMembership) -> MembershipView:
    return MembershipView(
        outfitter_id=str(row.outfitter_id),
        user_id=row.user_id,
        role=row.role,
        status=row.status,
    )


def list_memberships(db: Session, *, user_id: int, status: MembershipStatus) -> list[MembershipView]:
    rows = db.execute(
        select(OutfitterMembership)
        .where(
            OutfitterMembership.user_id == user_id,
            OutfitterMembership.status == status,
        )
        .order_by(OutfitterMembership.created_at.desc(), OutfitterMembership.id.desc())
    ).scalars().all()
    return [to_membership_view(row) for row in rows]


def list_active_memberships(db: Session, *, user_id: int) -> list[MembershipView]:
    return list_memberships(db, user_id=user_id, status=MembershipStatus.ACTIVE)


def list_invited_memberships(db: Session, *, user_id: int) -> list[MembershipView]:
    return list_memberships(db, user_id=user_id, status=MembershipStatus.INVITED)


def get_membership(db: Session, *, user_id: int, outfitter_id: str) -> MembershipView | None:
    if not is_valid_outfitter_id(outfitter_id):
        return None
    row = db.execute(
        select(OutfitterMembership).where(
            OutfitterMembership.user_id == user_id,
            OutfitterMembership.outfitter_id == outfitter_id,
        )
    ).scalar_one_or_none()
    if row is None:
        return None
    return to_membership_view(row)

