import threading
from types import SimpleNamespace

import pytest
from django.test import override_settings
from rest_framework.test import APIClient

from clinic.ratelimit import FixedWindowRateLimiter, client_ip, parse_rate


def test_parse_rate():
    assert parse_rate('100/min') == (100, 60)
    assert parse_rate('5/second') == (5, 1)
    assert parse_rate('30/hour') == (30, 3600)
    with pytest.raises(ValueError):
        parse_rate('lots/min')


def test_window_counts_and_resets():
    limiter = FixedWindowRateLimiter(buckets={'b': '2/min'})
    now = 1_000_020.0
    assert limiter.hit('u1', 'b', now=now).allowed
    assert limiter.hit('u1', 'b', now=now + 1).allowed
    denied = limiter.hit('u1', 'b', now=now + 2)
    assert not denied.allowed
    assert denied.count == 3
    assert 1 <= denied.retry_after <= 60

    # other callers have their own counter
    assert limiter.hit('u2', 'b', now=now + 2).allowed
    # next window starts fresh
    assert limiter.hit('u1', 'b', now=now + 60).allowed


def test_unknown_bucket():
    with pytest.raises(KeyError):
        FixedWindowRateLimiter(buckets={}).hit('u1', 'nope')


class BrokenCache:
    def add(self, *args, **kwargs):
        raise ConnectionError('redis down')

    def incr(self, *args, **kwargs):
        raise ConnectionError('redis down')


def test_cache_failure_fails_open():
    limiter = FixedWindowRateLimiter(buckets={'b': '1/min'}, fail_open=True)
    limiter.cache = BrokenCache()
    assert limiter.hit('u1', 'b').allowed
    assert limiter.hit('u1', 'b').allowed


def test_cache_failure_can_fail_closed():
    limiter = FixedWindowRateLimiter(buckets={'b': '1/min'}, fail_open=False)
    limiter.cache = BrokenCache()
    assert not limiter.hit('u1', 'b').allowed


def test_client_ip_prefers_first_forwarded_hop(rf):
    req = rf.get('/', HTTP_X_FORWARDED_FOR='203.0.113.9, 10.0.0.1', REMOTE_ADDR='10.0.0.2')
    assert client_ip(req) == '203.0.113.9'
    assert client_ip(rf.get('/', REMOTE_ADDR='10.0.0.2')) == '10.0.0.2'
    req = rf.get('/')
    req.META.pop('REMOTE_ADDR')
    assert client_ip(req) == 'unknown'


@pytest.mark.django_db
@override_settings(RATE_LIMIT_BUCKETS={'auth': '1/min'})
def test_login_is_throttled(monkeypatch):
    # both attempts fall in the same window
    monkeypatch.setattr('clinic.ratelimit.time', SimpleNamespace(time=lambda: 1_000_020.0))
    c = APIClient()
    payload = {'username': 'nobody', 'password': 'x'}
    assert c.post('/api/auth/login', payload, format='json').status_code == 401
    resp = c.post('/api/auth/login', payload, format='json')
    assert resp.status_code == 429
    assert resp.data['success'] is False
    assert 'Retry-After' in resp


def test_concurrent_hits_are_not_lost():
    limiter = FixedWindowRateLimiter(buckets={'b': '10000/min'})
    now = 1_000_020.0

    def worker():
        for _ in range(200):
            limiter.hit('u', 'b', now=now)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert limiter.hit('u', 'b', now=now).count == 1601
