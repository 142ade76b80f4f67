from __future__ import annotations

import asyncio
import unittest
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from fastapi import HTTPException
from starlette.responses import Response

from app.auth import Principal
from app.config import settings
from app.models import MembershipRole, MembershipStatus
from app.routers.tenant import bootstrap_session, current_tenant, list_tenants, select_tenant
from app.services.tenancy import DenialReason, MembershipView

OUTFITTER_A = '0b6f6d1e-3a55-4f7b-9a59-1f3f0d2c1a01'
OUTFITTER_B = '5e0c2a7b-8d1e-4c3f-b2a9-7e6d5c4b3a02'


def _request(cookies: dict | None = None, path: str = '/api/tenant/select') -> SimpleNamespace:
    return SimpleNamespace(
        cookies=cookies or {},
        headers={},
        client=SimpleNamespace(host='127.0.0.1'),
        url=SimpleNamespace(path=path),
    )


def _membership(outfitter_id: str, role=MembershipRole.OWNER, status=MembershipStatus.ACTIVE) -> MembershipView:
    return MembershipView(outfitter_id=outfitter_id, user_id=7, role=role, status=status)


def _cookies(response: Response) -> dict[str, str]:
    cookies = {}
    for header in response.headers.getlist('set-cookie'):
        name, _, rest = header.partition('=')
        cookies[name] = rest.split(';', 1)[0]
    return cookies


@patch('app.routers.tenant.remember_auto_selected_tenant')
@patch('app.routers.tenant.list_active_memberships')
class CurrentTenantTests(unittest.TestCase):
    def setUp(self) -> None:
        self.principal = Principal(id=7, email='owner@example.com')
        self.db = MagicMock()

    def test_several_memberships_return_selection_payload(self, list_active_mock, remember_mock) -> None:
        list_active_mock.return_value = [_membership(OUTFITTER_A), _membership(OUTFITTER_B, role=MembershipRole.GUIDE)]

        payload = current_tenant(request=_request(), response=Response(), principal=self.principal, db=self.db)

        self.assertEqual(
            payload,
            {'outfitter_id': None, 'auto_set': False, 'needs_selection': True, 'candidates': [OUTFITTER_A, OUTFITTER_B]},
        )
        remember_mock.assert_not_called()

    def test_single_membership_is_auto_selected(self, list_active_mock, remember_mock) -> None:
        list_active_mock.return_value = [_membership(OUTFITTER_A)]
        request = _request()
        response = Response()

        payload = current_tenant(request=request, response=response, principal=self.principal, db=self.db)

        self.assertEqual(payload, {'outfitter_id': OUTFITTER_A, 'auto_set': True})
        remember_mock.assert_called_once_with(
            self.db, request, response, principal=self.principal, outfitter_id=OUTFITTER_A
        )

    def test_cookie_hint_is_returned_without_lookup(self, list_active_mock, remember_mock) -> None:
        payload = current_tenant(
            request=_request({settings.outfitter_cookie_name: f' {OUTFITTER_B} '}),
            response=Response(),
            principal=self.principal,
            db=self.db,
        )

        self.assertEqual(payload, {'outfitter_id': OUTFITTER_B, 'auto_set': False})
        list_active_mock.assert_not_called()
        remember_mock.assert_not_called()

    def test_list_reports_active_memberships(self, list_active_mock, remember_mock) -> None:
        list_active_mock.return_value = [_membership(OUTFITTER_A, role=MembershipRole.COOK)]

        payload = list_tenants(principal=self.principal, db=self.db)

        self.assertEqual(payload, {'memberships': [{'outfitter_id': OUTFITTER_A, 'role': 'cook', 'status': 'active'}]})
        list_active_mock.assert_called_once_with(self.db, user_id=7)


@patch('app.routers.tenant.log_audit')
@patch('app.routers.tenant.log_access_denied')
@patch('app.routers.tenant.get_membership')
@patch('app.routers.tenant._read_outfitter_id')
class SelectTenantTests(unittest.TestCase):
    def setUp(self) -> None:
        self.principal = Principal(id=7, email='owner@example.com')
        self.db = MagicMock()

    def _select(self, response: Response):
        return asyncio.run(select_tenant(request=_request(), response=response, principal=self.principal, db=self.db))

    def test_granted_selection_sets_outfitter_and_role_cookies(
        self, read_mock, get_membership_mock, denied_mock, audit_mock
    ) -> None:
        read_mock.return_value = OUTFITTER_A
        get_membership_mock.return_value = _membership(OUTFITTER_A, role=MembershipRole.ADMIN)
        response = Response()

        payload = self._select(response)

        self.assertEqual(payload, {'ok': True, 'outfitter_id': OUTFITTER_A, 'role': 'admin'})
        cookies = _cookies(response)
        self.assertEqual(cookies[settings.outfitter_cookie_name], OUTFITTER_A)
        self.assertEqual(cookies[settings.role_cookie_name], 'admin')
        self.assertEqual(audit_mock.call_args.kwargs['action'], 'TENANT_SELECTED')
        self.assertEqual(audit_mock.call_args.kwargs['outfitter_id'], OUTFITTER_A)
        denied_mock.assert_not_called()
        self.db.commit.assert_called_once()

    def test_invited_membership_is_denied_and_audited(
        self, read_mock, get_membership_mock, denied_mock, audit_mock
    ) -> None:
        read_mock.return_value = OUTFITTER_A
        get_membership_mock.return_value = _membership(OUTFITTER_A, status=MembershipStatus.INVITED)
        response = Response()

        with self.assertRaises(HTTPException) as ctx:
            self._select(response)

        self.assertEqual(ctx.exception.status_code, 403)
        self.assertEqual(ctx.exception.detail, {'error': 'Access denied', 'reason': DenialReason.INACTIVE_MEMBERSHIP.value})
        denied_mock.assert_called_once()
        self.assertEqual(denied_mock.call_args.kwargs['outfitter_id'], OUTFITTER_A)
        self.assertEqual(denied_mock.call_args.kwargs['denial'].reason, DenialReason.INACTIVE_MEMBERSHIP)
        self.assertEqual(denied_mock.call_args.kwargs['path'], '/api/tenant/select')
        self.assertEqual(_cookies(response), {})
        audit_mock.assert_not_called()
        self.db.commit.assert_called_once()

    def test_outfitter_without_membership_is_denied(
        self, read_mock, get_membership_mock, denied_mock, audit_mock
    ) -> None:
        read_mock.return_value = OUTFITTER_B
        get_membership_mock.return_value = None

        with self.assertRaises(HTTPException) as ctx:
            self._select(Response())

        self.assertEqual(ctx.exception.status_code, 403)
        self.assertEqual(ctx.exception.detail['reason'], DenialReason.NO_MEMBERSHIP.value)
        get_membership_mock.assert_called_once_with(self.db, user_id=7, outfitter_id=OUTFITTER_B)


@patch('app.routers.tenant.get_membership')
class BootstrapSessionTests(unittest.TestCase):
    def setUp(self) -> None:
        self.principal = Principal(id=7, email='guide@example.com')
        self.db = MagicMock()

    def test_invited_member_sees_role_without_tenant_access(self, get_membership_mock) -> None:
        get_membership_mock.return_value = _membership(
            OUTFITTER_A, role=MembershipRole.GUIDE, status=MembershipStatus.INVITED
        )
        response = Response()

        payload = bootstrap_session(
            request=_request({settings.outfitter_cookie_name: OUTFITTER_A}, path='/api/session/bootstrap'),
            response=response,
            principal=self.principal,
            db=self.db,
        )

        self.assertEqual(payload, {'ok': True, 'role': 'guide'})
        cookies = _cookies(response)
        self.assertEqual(cookies, {settings.role_cookie_name: 'guide'})
        self.db.commit.assert_not_called()

    def test_inactive_member_gets_no_role(self, get_membership_mock) -> None:
        get_membership_mock.return_value = _membership(OUTFITTER_A, status=MembershipStatus.INACTIVE)
        response = Response()

        payload = bootstrap_session(
            request=_request({settings.outfitter_cookie_name: OUTFITTER_A}, path='/api/session/bootstrap'),
            response=response,
            principal=self.principal,
            db=self.db,
        )

        self.assertEqual(payload, {'ok': True, 'role': ''})

    def test_missing_cookie_skips_lookup(self, get_membership_mock) -> None:
        payload = bootstrap_session(
            request=_request(path='/api/session/bootstrap'),
            response=Response(),
            principal=self.principal,
            db=self.db,
        )

        self.assertEqual(payload, {'ok': True, 'role': ''})
        get_membership_mock.assert_not_called()


if __name__ == '__main__':
    unittest.main()
