import pytest
from django.urls import reverse
from rest_framework.test import APIClient

from clinic.models import AuditLogEntry, UserSession

pytestmark = pytest.mark.django_db


def test_profile_view(doctor, doctor_client):
    resp = doctor_client.get('/api/profile')
    assert resp.status_code == 200
    assert resp.data['data']['username'] == doctor.username
    assert resp.data['message'] == 'Profile retrieved successfully'
    entry = AuditLogEntry.objects.get()
    assert entry.action == 'profile_view'
    assert entry.data_classification == 'INTERNAL'
    assert entry.phi_accessed is False
    assert entry.resource_id == str(doctor.pk)


def test_profile_update_ignores_fields_outside_allow_list(doctor, doctor_client):
    resp = doctor_client.put('/api/profile', {
        'firstName': 'Greg',
        'role': 'admin',
        'permissions': ['audit_read'],
        'email': 'evil@example.org',
    }, format='json')

    assert resp.status_code == 200
    assert resp.data['message'] == 'Profile updated successfully'
    doctor.refresh_from_db()
    assert doctor.first_name == 'Greg'
    assert doctor.role == 'doctor'
    assert doctor.permissions == []
    assert doctor.email == 'doc1@example.org'
    assert AuditLogEntry.objects.get().details == {'updatedFields': ['firstName']}


def test_profile_update_without_allowed_fields(doctor_client):
    resp = doctor_client.put('/api/profile', {'role': 'admin'}, format='json')
    assert resp.status_code == 400
    assert resp.data['details'] == [{'field': 'non_field_errors', 'message': 'No valid fields to update'}]


def test_session_check_is_stable(doctor, doctor_client):
    first = doctor_client.get('/api/session')
    second = doctor_client.get('/api/session')
    assert first.status_code == second.status_code == 200
    assert first.data['data'] == second.data['data']
    session = UserSession.objects.get(user=doctor)
    assert first.data['data']['session']['id'] == str(session.pk)
    assert first.data['data']['user']['role'] == 'doctor'


def test_logout_revokes_session_and_clears_cookie(doctor, doctor_client, settings):
    resp = doctor_client.delete('/api/session')
    assert resp.status_code == 200
    assert resp.data['message'] == 'Session invalidated successfully'
    assert resp.cookies[settings.AUTH_COOKIE_NAME].value == ''
    assert UserSession.objects.get(user=doctor).revoked_at is not None
    assert AuditLogEntry.objects.get().action == 'user_logout'

    # the credential is dead now
    assert doctor_client.get('/api/session').status_code == 401


def test_logout_without_credential_is_success_and_silent():
    resp = APIClient().delete('/api/session')
    assert resp.status_code == 200
    assert resp.data['success'] is True
    assert AuditLogEntry.objects.count() == 0


def test_login_issues_session_token(make_user, settings):
    make_user('nurse1', 'nurse', password='S3cret!pass')
    c = APIClient()
    resp = c.post(reverse('login_view'), {'username': 'nurse1', 'password': 'S3cret!pass', 'role': 'admin'},
                  format='json')

    assert resp.status_code == 200
    data = resp.data['data']
    assert data['tokenType'] == 'Bearer'
    assert data['user']['role'] == 'nurse'
    assert resp.cookies[settings.AUTH_COOKIE_NAME]['httponly']
    entry = AuditLogEntry.objects.get()
    assert (entry.action, entry.outcome) == ('user_login', 'SUCCESS')

    c.credentials(HTTP_AUTHORIZATION=f"Bearer {data['token']}")
    assert c.get('/api/session').status_code == 200


def test_failed_login_is_audited_without_actor(make_user):
    make_user('nurse1', 'nurse', password='S3cret!pass')
    resp = APIClient().post(reverse('login_view'), {'username': 'nurse1', 'password': 'wrong'}, format='json')

    assert resp.status_code == 401
    assert resp.data == {'success': False, 'error': 'Invalid credentials'}
    entry = AuditLogEntry.objects.get()
    assert entry.outcome == 'FAILURE'
    assert entry.user_id == 'anonymous'
    assert entry.details['username'] == 'nurse1'
    assert 'wrong' not in str(entry.details)


def test_login_requires_fields():
    resp = APIClient().post(reverse('login_view'), {'username': 'x'}, format='json')
    assert resp.status_code == 400
    assert resp.data['details'][0]['field'] == 'password'


def test_logout_with_malformed_header_is_success_and_silent(settings):
    c = APIClient()
    c.credentials(HTTP_AUTHORIZATION='Basic abc')
    resp = c.delete('/api/session')
    assert resp.status_code == 200
    assert resp.data['message'] == 'Session invalidated successfully'
    assert resp.cookies[settings.AUTH_COOKIE_NAME].value == ''
    assert AuditLogEntry.objects.count() == 0


def test_session_check_still_rejects_malformed_header():
    c = APIClient()
    c.credentials(HTTP_AUTHORIZATION='Basic abc')
    resp = c.get('/api/session')
    assert resp.status_code == 401
    assert resp.data['error'] == 'Invalid authorization header'
