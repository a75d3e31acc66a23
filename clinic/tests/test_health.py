import pytest
from django.test import override_settings
from rest_framework.test import APIClient

from clinic.models import AuditLogEntry

pytestmark = pytest.mark.django_db

REQUIRED = ['CAREPORTAL_TEST_VAR']


@override_settings(HEALTH_REQUIRED_ENV_VARS=REQUIRED)
def test_healthy(monkeypatch):
    monkeypatch.setenv('CAREPORTAL_TEST_VAR', '1')
    resp = APIClient().get('/api/health')

    assert resp.status_code == 200
    body = resp.json()
    assert body['status'] == 'healthy'
    assert body['checks'] == {
        'database_connection': True,
        'supabase_connection': True,
        'environment_variables': True,
    }
    assert body['services']['database'] == 'healthy'
    assert resp['Cache-Control'] == 'no-cache, no-store, must-revalidate'
    assert AuditLogEntry.objects.count() == 0


@override_settings(HEALTH_REQUIRED_ENV_VARS=REQUIRED)
def test_missing_env_var_is_degraded(monkeypatch):
    monkeypatch.delenv('CAREPORTAL_TEST_VAR', raising=False)
    resp = APIClient().get('/api/health')
    assert resp.status_code == 200
    assert resp.json()['status'] == 'degraded'
    assert resp.json()['services']['environment'] == 'Missing env vars: CAREPORTAL_TEST_VAR'


def test_database_down_is_unhealthy(monkeypatch):
    monkeypatch.setattr('clinic.services.health.check_database', lambda alias='default': False)
    resp = APIClient().get('/api/health')
    assert resp.status_code == 503
    assert resp.json()['status'] == 'unhealthy'
    assert resp.json()['checks']['database_connection'] is False


def test_identity_provider_down_is_unhealthy(monkeypatch):
    monkeypatch.setattr('clinic.services.health.check_identity_provider', lambda: False)
    resp = APIClient().get('/api/health')
    assert resp.status_code == 503
    assert resp.json()['checks']['supabase_connection'] is False


def test_head_reflects_database_only(monkeypatch):
    monkeypatch.setattr('clinic.services.health.check_identity_provider', lambda: False)
    assert APIClient().head('/api/health').status_code == 200

    monkeypatch.setattr('clinic.services.health.check_database', lambda alias='default': False)
    resp = APIClient().head('/api/health')
    assert resp.status_code == 503
    assert resp.content == b''
