from datetime import timedelta

import pytest
from django.test import override_settings
from django.utils import timezone
from rest_framework.test import APIClient

from clinic.identity import FixtureAuthProvider, SessionTokenProvider, fixture_session_id, get_auth_provider
from clinic.models import AuditLogEntry
from clinic.permissions import effective_permissions

pytestmark = pytest.mark.django_db

FIXTURES = {
    'tok-researcher': {
        'id': 'ext-42', 'email': 'r@example.org', 'role': 'researcher', 'permissions': ['patient_read'],
    },
    'tok-auditor': {
        'id': 'ext-7', 'email': 'a@example.org', 'role': 'auditor', 'permissions': ['audit_read'],
    },
}


def test_role_defaults_merge_with_explicit_grants():
    perms = effective_permissions('nurse', ['audit_read', 42])
    assert 'audit_read' in perms
    assert 'appointment_write' in perms
    assert 'patient_write' not in perms
    assert effective_permissions('janitor', None) == frozenset()


def test_session_token_resolves_until_expired(doctor):
    provider = SessionTokenProvider()
    token, session = provider.issue(doctor)
    identity = provider.resolve(token)
    assert identity.id == str(doctor.pk)
    assert identity.session_id == str(session.pk)
    assert 'patient_write' in identity.permissions

    session.expires_at = timezone.now() - timedelta(seconds=1)
    session.save()
    assert provider.resolve(token) is None


def test_inactive_user_is_not_resolved(doctor):
    provider = SessionTokenProvider()
    token, _ = provider.issue(doctor)
    doctor.is_active = False
    doctor.save()
    assert provider.resolve(token) is None


def test_tampered_token_is_rejected(doctor):
    provider = SessionTokenProvider()
    token, _ = provider.issue(doctor)
    head, payload, signature = token.split('.')
    assert provider.resolve('.'.join([head, payload, signature[::-1]])) is None
    assert provider.resolve('.'.join([head, payload])) is None


@override_settings(AUTH_PROVIDER='clinic.identity.FixtureAuthProvider', FIXTURE_IDENTITIES=FIXTURES)
def test_fixture_provider_drives_the_pipeline():
    assert isinstance(get_auth_provider(), FixtureAuthProvider)
    c = APIClient()
    c.credentials(HTTP_AUTHORIZATION='Bearer tok-researcher')

    assert c.get('/api/patients').status_code == 200
    # no local user row behind this identity
    assert c.get('/api/profile').status_code == 404
    assert c.post('/api/patients', {}, format='json').status_code == 403

    entries = AuditLogEntry.objects.filter(user_id='ext-42')
    assert entries.count() == 3
    assert set(entries.values_list('session_id', flat=True)) == {fixture_session_id('tok-researcher')}


@override_settings(AUTH_PROVIDER='clinic.identity.FixtureAuthProvider', FIXTURE_IDENTITIES=FIXTURES)
def test_fixture_logout_forgets_token():
    c = APIClient()
    c.credentials(HTTP_AUTHORIZATION='Bearer tok-auditor')
    assert c.get('/api/audit-logs').status_code == 200
    assert c.delete('/api/session').status_code == 200
    assert c.get('/api/session').status_code == 401


@override_settings(AUTH_PROVIDER='clinic.identity.FixtureAuthProvider', FIXTURE_IDENTITIES=FIXTURES)
def test_login_is_unavailable_with_fixture_provider():
    resp = APIClient().post('/api/auth/login', {'username': 'a', 'password': 'b'}, format='json')
    assert resp.status_code == 501


def test_fixture_session_id_hides_token_and_separates_shared_prefixes():
    provider = FixtureAuthProvider({
        'shared-prefix-one': {'id': 'a', 'role': 'nurse'},
        'shared-prefix-two': {'id': 'b', 'role': 'nurse'},
    })
    one = provider.resolve('shared-prefix-one').session_id
    two = provider.resolve('shared-prefix-two').session_id
    assert one != two
    assert 'shared' not in one
    assert one == provider.resolve('shared-prefix-one').session_id
