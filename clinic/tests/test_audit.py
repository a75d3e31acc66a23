from datetime import timedelta

import pytest
from django.utils import timezone

from clinic.identity import Identity
from clinic.models import AuditLogEntry
from clinic.services import audit

pytestmark = pytest.mark.django_db

IDENTITY = Identity(id='u-1', email='u1@example.org', role='doctor', session_id='s-1')


def _log(**kw):
    values = dict(identity=IDENTITY, action='patient_view', resource_type='patient',
                  outcome=audit.SUCCESS, phi_accessed=True)
    values.update(kw)
    return audit.log_action(**values)


def test_entries_are_append_only():
    entry = _log()
    entry.action = 'tampered'
    with pytest.raises(PermissionError):
        entry.save()
    with pytest.raises(PermissionError):
        entry.delete()
    with pytest.raises(PermissionError):
        AuditLogEntry.objects.filter(pk=entry.pk).update(action='tampered')
    with pytest.raises(PermissionError):
        AuditLogEntry.objects.all().delete()
    assert AuditLogEntry.objects.get().action == 'patient_view'


def test_failures_never_flag_phi():
    entry = _log(outcome=audit.FAILURE)
    assert entry.phi_accessed is False


def test_defaults_without_request():
    entry = _log(resource_id=None)
    assert (entry.ip_address, entry.user_agent, entry.resource_id) == ('unknown', 'unknown', 'unknown')
    assert entry.session_id == 's-1'


def test_metadata_from_request(rf):
    req = rf.get('/', HTTP_X_FORWARDED_FOR='198.51.100.7', HTTP_USER_AGENT='Mozilla/5.0')
    entry = _log(request=req)
    assert entry.ip_address == '198.51.100.7'
    assert entry.user_agent == 'Mozilla/5.0'


def test_compliance_metrics():
    _log()
    _log(outcome=audit.FAILURE, action='patient_create')
    _log(outcome=audit.FAILURE, action='patient_create', identity=Identity(id='u-2', email='', role='nurse'))
    _log(phi_accessed=False, action='profile_view')

    metrics = audit.compliance_metrics()
    assert metrics == {
        'total': 4,
        'successful': 2,
        'failed': 2,
        'phi_accesses': 1,
        'unique_users': 2,
        'failuresByAction': {'patient_create': 2},
    }

    later = audit.compliance_metrics(start=timezone.now() + timedelta(minutes=1))
    assert later['total'] == 0


def test_audit_log_endpoint_requires_audit_read(doctor_client):
    resp = doctor_client.get('/api/audit-logs')
    assert resp.status_code == 403
    assert AuditLogEntry.objects.get().details['missingPermissions'] == ['audit_read']


def test_audit_log_endpoint_filters(admin_client, admin_user):
    _log(patient_id='p-1')
    _log(patient_id='p-2')

    resp = admin_client.get('/api/audit-logs', {'patientId': 'p-1'})
    assert resp.status_code == 200
    data = resp.data['data']
    assert data['total'] == 1
    assert data['entries'][0]['patientId'] == 'p-1'
    assert data['hasMore'] is False

    resp = admin_client.get('/api/audit-logs', {'userId': str(admin_user.pk), 'action': 'audit_log'})
    # the first listing is itself on the trail
    assert resp.data['data']['total'] == 1


def test_audit_metrics_endpoint(admin_client):
    _log(outcome=audit.FAILURE)
    resp = admin_client.get('/api/audit-logs/metrics')
    assert resp.status_code == 200
    assert resp.data['data']['failed'] == 1
    assert resp.data['data']['failuresByAction'] == {'patient_view': 1}
