"""Tenant resolution and role authorization for outfitter-scoped requests.

Both entry points are pure: callers fetch the principal's membership rows from
the store, pass them in, and act on the returned outcome (set a cookie, answer
401/403, ask the user to pick an outfitter). Nothing here is cached; callers
re-run ``authorize`` on every request against fresh membership data.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from app.models import MembershipRole, MembershipStatus

if TYPE_CHECKING:
    from app.auth import Principal


class RoleRequirement(Enum):
    ANY_ACTIVE = 'ANY_ACTIVE'


ANY_ACTIVE_ROLE = RoleRequirement.ANY_ACTIVE
ADMIN_ROLES = frozenset({MembershipRole.OWNER, MembershipRole.ADMIN})


class DenialReason(str, Enum):
    NO_MEMBERSHIP = 'NO_MEMBERSHIP'
    INACTIVE_MEMBERSHIP = 'INACTIVE_MEMBERSHIP'
    ROLE_INSUFFICIENT = 'ROLE_INSUFFICIENT'


@dataclass(frozen=True)
class MembershipView:
    outfitter_id: str
    user_id: int
    role: MembershipRole
    status: MembershipStatus

    @property
    def is_active(self) -> bool:
        return self.status == MembershipStatus.ACTIVE


@dataclass(frozen=True)
class Resolved:
    tenant_id: str
    was_auto_selected: bool


@dataclass(frozen=True)
class NeedsSelection:
    candidates: tuple[str, ...]


@dataclass(frozen=True)
class Unauthenticated:
    pass


@dataclass(frozen=True)
class Granted:
    tenant_id: str
    role: MembershipRole


@dataclass(frozen=True)
class Denied:
    reason: DenialReason


TenantResolution = Resolved | NeedsSelection | Unauthenticated
AuthorizationResult = Granted | Denied


def _clean_hint(tenant_hint: str | None) -> str | None:
    if tenant_hint is None:
        return None
    hint = str(tenant_hint).strip()
    return hint or None


def resolve_tenant(
    principal: Principal | None,
    tenant_hint: str | None,
    active_memberships: Iterable[MembershipView],
) -> TenantResolution:
    """Pick the outfitter a request operates on.

    An explicit hint always wins and is returned unverified; ``authorize``
    decides whether the principal may use it. With no hint, a single active
    membership is auto-selected, anything else needs the user to choose.
    """
    if principal is None:
        return Unauthenticated()

    hint = _clean_hint(tenant_hint)
    if hint is not None:
        return Resolved(tenant_id=hint, was_auto_selected=False)

    memberships = [m for m in active_memberships if m.is_active]
    if len(memberships) == 1:
        return Resolved(tenant_id=memberships[0].outfitter_id, was_auto_selected=True)
    return NeedsSelection(candidates=tuple(m.outfitter_id for m in memberships))


def _normalize_required(
    required_roles: RoleRequirement | Iterable[MembershipRole | str],
) -> RoleRequirement | frozenset[MembershipRole]:
    if required_roles is ANY_ACTIVE_ROLE:
        return ANY_ACTIVE_ROLE
    roles = frozenset(MembershipRole(role) for role in required_roles)
    if not roles:
        raise ValueError('Required roles must not be empty; use ANY_ACTIVE_ROLE to accept any role')
    return roles


def authorize(
    principal: Principal | None,
    tenant_id: str,
    membership: MembershipView | None,
    required_roles: RoleRequirement | Iterable[MembershipRole | str],
) -> AuthorizationResult:
    required = _normalize_required(required_roles)

    if principal is None or membership is None:
        return Denied(DenialReason.NO_MEMBERSHIP)
    # A row for another user or outfitter is not this principal's membership.
    if membership.user_id != principal.id or str(membership.outfitter_id) != str(tenant_id):
        return Denied(DenialReason.NO_MEMBERSHIP)
    if membership.status != MembershipStatus.ACTIVE:
        return Denied(DenialReason.INACTIVE_MEMBERSHIP)
    if required is not ANY_ACTIVE_ROLE and membership.role not in required:
        return Denied(DenialReason.ROLE_INSUFFICIENT)
    return Granted(tenant_id=membership.outfitter_id, role=membership.role)
