from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import call_command
from django.utils import timezone

from clinic.models import UserSession

pytestmark = pytest.mark.django_db


def test_purge_expired_sessions(doctor):
    now = timezone.now()
    live = UserSession.objects.create(user=doctor, expires_at=now + timedelta(hours=1))
    recent = UserSession.objects.create(user=doctor, expires_at=now - timedelta(days=1))
    UserSession.objects.create(user=doctor, expires_at=now - timedelta(days=30))
    UserSession.objects.create(user=doctor, expires_at=now + timedelta(hours=1),
                               revoked_at=now - timedelta(days=10))

    out = StringIO()
    call_command('purge_expired_sessions', '--dry-run', stdout=out)
    assert 'would delete 2 sessions' in out.getvalue()
    assert UserSession.objects.count() == 4

    call_command('purge_expired_sessions', stdout=StringIO())
    assert set(UserSession.objects.values_list('pk', flat=True)) == {live.pk, recent.pk}

    call_command('purge_expired_sessions', '--days', '0', stdout=StringIO())
    assert list(UserSession.objects.values_list('pk', flat=True)) == [live.pk]
