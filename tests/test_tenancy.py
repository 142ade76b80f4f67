from __future__ import annotations

import unittest

from app.auth import Principal
from app.models import MembershipRole, MembershipStatus
from app.services.tenancy import (
    ADMIN_ROLES,
    ANY_ACTIVE_ROLE,
    Denied,
    DenialReason,
    Granted,
    MembershipView,
    NeedsSelection,
    Resolved,
    Unauthenticated,
    authorize,
    resolve_tenant,
)

OUTFITTER_A = '0b6f6d1e-3a55-4f7b-9a59-1f3f0d2c1a01'
OUTFITTER_B = '5e0c2a7b-8d1e-4c3f-b2a9-7e6d5c4b3a02'


def _membership(
    outfitter_id: str = OUTFITTER_A,
    *,
    user_id: int = 1,
    role: MembershipRole = MembershipRole.OWNER,
    status: MembershipStatus = MembershipStatus.ACTIVE,
) -> MembershipView:
    return MembershipView(outfitter_id=outfitter_id, user_id=user_id, role=role, status=status)


class ResolveTenantTests(unittest.TestCase):
    def setUp(self) -> None:
        self.principal = Principal(id=1, email='owner@example.com')

    def test_missing_principal_is_unauthenticated(self) -> None:
        result = resolve_tenant(None, OUTFITTER_A, [_membership()])
        self.assertIsInstance(result, Unauthenticated)

    def test_hint_is_used_as_is(self) -> None:
        result = resolve_tenant(self.principal, OUTFITTER_B, [_membership(OUTFITTER_A)])
        self.assertEqual(result, Resolved(tenant_id=OUTFITTER_B, was_auto_selected=False))

    def test_hint_wins_over_single_membership(self) -> None:
        result = resolve_tenant(self.principal, OUTFITTER_A, [_membership(OUTFITTER_A)])
        self.assertEqual(result, Resolved(tenant_id=OUTFITTER_A, was_auto_selected=False))

    def test_single_active_membership_is_auto_selected(self) -> None:
        result = resolve_tenant(self.principal, None, [_membership(OUTFITTER_A)])
        self.assertEqual(result, Resolved(tenant_id=OUTFITTER_A, was_auto_selected=True))

    def test_blank_hint_counts_as_missing(self) -> None:
        result = resolve_tenant(self.principal, '   ', [_membership(OUTFITTER_A)])
        self.assertEqual(result, Resolved(tenant_id=OUTFITTER_A, was_auto_selected=True))

    def test_multiple_memberships_need_selection(self) -> None:
        result = resolve_tenant(self.principal, None, [_membership(OUTFITTER_A), _membership(OUTFITTER_B)])
        self.assertIsInstance(result, NeedsSelection)
        self.assertEqual(result.candidates, (OUTFITTER_A, OUTFITTER_B))

    def test_no_memberships_need_selection(self) -> None:
        result = resolve_tenant(self.principal, None, [])
        self.assertEqual(result, NeedsSelection(candidates=()))

    def test_invited_rows_are_not_auto_selected(self) -> None:
        result = resolve_tenant(
            self.principal,
            None,
            [_membership(OUTFITTER_A, status=MembershipStatus.INVITED)],
        )
        self.assertEqual(result, NeedsSelection(candidates=()))


class AuthorizeTests(unittest.TestCase):
    def setUp(self) -> None:
        self.principal = Principal(id=1, email='owner@example.com')

    def test_active_member_with_any_role_is_granted(self) -> None:
        membership = _membership(role=MembershipRole.CLIENT)
        result = authorize(self.principal, OUTFITTER_A, membership, ANY_ACTIVE_ROLE)
        self.assertEqual(result, Granted(tenant_id=OUTFITTER_A, role=MembershipRole.CLIENT))

    def test_role_in_required_set_is_granted(self) -> None:
        membership = _membership(role=MembershipRole.ADMIN)
        result = authorize(self.principal, OUTFITTER_A, membership, ADMIN_ROLES)
        self.assertIsInstance(result, Granted)

    def test_required_roles_accept_plain_strings(self) -> None:
        membership = _membership(role=MembershipRole.GUIDE)
        result = authorize(self.principal, OUTFITTER_A, membership, ['guide', 'cook'])
        self.assertIsInstance(result, Granted)

    def test_missing_membership_is_denied(self) -> None:
        result = authorize(self.principal, OUTFITTER_A, None, ANY_ACTIVE_ROLE)
        self.assertEqual(result, Denied(DenialReason.NO_MEMBERSHIP))

    def test_missing_principal_is_denied(self) -> None:
        result = authorize(None, OUTFITTER_A, _membership(), ANY_ACTIVE_ROLE)
        self.assertEqual(result, Denied(DenialReason.NO_MEMBERSHIP))

    def test_invited_membership_is_denied_even_with_qualifying_role(self) -> None:
        membership = _membership(role=MembershipRole.OWNER, status=MembershipStatus.INVITED)
        for required in (ANY_ACTIVE_ROLE, ADMIN_ROLES, [MembershipRole.OWNER]):
            result = authorize(self.principal, OUTFITTER_A, membership, required)
            self.assertEqual(result, Denied(DenialReason.INACTIVE_MEMBERSHIP))

    def test_inactive_membership_is_denied(self) -> None:
        membership = _membership(status=MembershipStatus.INACTIVE)
        result = authorize(self.principal, OUTFITTER_A, membership, ANY_ACTIVE_ROLE)
        self.assertEqual(result, Denied(DenialReason.INACTIVE_MEMBERSHIP))

    def test_role_outside_required_set_is_denied(self) -> None:
        membership = _membership(role=MembershipRole.GUIDE)
        result = authorize(self.principal, OUTFITTER_A, membership, ADMIN_ROLES)
        self.assertEqual(result, Denied(DenialReason.ROLE_INSUFFICIENT))

    def test_membership_for_another_outfitter_is_treated_as_missing(self) -> None:
        membership = _membership(OUTFITTER_B)
        result = authorize(self.principal, OUTFITTER_A, membership, ANY_ACTIVE_ROLE)
        self.assertEqual(result, Denied(DenialReason.NO_MEMBERSHIP))

    def test_membership_for_another_user_is_treated_as_missing(self) -> None:
        membership = _membership(user_id=2)
        result = authorize(self.principal, OUTFITTER_A, membership, ANY_ACTIVE_ROLE)
        self.assertEqual(result, Denied(DenialReason.NO_MEMBERSHIP))

    def test_empty_required_roles_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            authorize(self.principal, OUTFITTER_A, _membership(), [])

    def test_repeated_calls_return_the_same_decision(self) -> None:
        membership = _membership(role=MembershipRole.COOK)
        first = authorize(self.principal, OUTFITTER_A, membership, ADMIN_ROLES)
        second = authorize(self.principal, OUTFITTER_A, membership, ADMIN_ROLES)
        self.assertEqual(first, second)
        self.assertEqual(membership, _membership(role=MembershipRole.COOK))


if __name__ == '__main__':
    unittest.main()
