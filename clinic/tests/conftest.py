import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from clinic.identity import SessionTokenProvider
from clinic.models import User


@pytest.fixture(autouse=True)
def _clear_cache():
    # rate-limit counters live in the locmem cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def make_user(db):
    def _make(username='doc1', role='doctor', password='P@ssw0rd1', **extra):
        extra.setdefault('email', f'{username}@example.org')
        return User.objects.create_user(username=username, password=password, role=role, **extra)
    return _make


@pytest.fixture
def issue_token():
    def _issue(user):
        token, _ = SessionTokenProvider().issue(user, ip_address='127.0.0.1', user_agent='pytest')
        return token
    return _issue


@pytest.fixture
def client_for(issue_token):
    """APIClient carrying a bearer token for ``user``."""
    def _client(user):
        c = APIClient()
        c.credentials(HTTP_AUTHORIZATION=f'Bearer {issue_token(user)}')
        return c
    return _client


@pytest.fixture
def doctor(make_user):
    return make_user('doc1', 'doctor', first_name='Gregory', last_name='House')


@pytest.fixture
def admin_user(make_user):
    return make_user('admin1', 'admin')


@pytest.fixture
def researcher(make_user):
    return make_user('research1', 'researcher')


@pytest.fixture
def doctor_client(client_for, doctor):
    return client_for(doctor)


@pytest.fixture
def admin_client(client_for, admin_user):
    return client_for(admin_user)


PATIENT_PAYLOAD = {
    'firstName': 'Jane',
    'lastName': 'Doe',
    'dateOfBirth': '1980-05-01',
    'gender': 'female',
    'cancerType': 'Breast',
}


@pytest.fixture
def patient_payload():
    return dict(PATIENT_PAYLOAD)
