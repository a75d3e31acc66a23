"""
Fixed-window rate limiting on top of the Django cache.

Counters are keyed by ``(caller, bucket, window)``.  ``cache.add`` seeds
a window and ``cache.incr`` bumps it; both are atomic in the locmem and
Redis backends, so concurrent requests never lose increments.  Counter
state is disposable: if the cache is unreachable the request is let
through (``RATE_LIMIT_FAIL_OPEN``).
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional

from django.conf import settings
from django.core.cache import caches
from django.core.signals import setting_changed
from django.dispatch import receiver
from rest_framework.throttling import BaseThrottle

logger = logging.getLogger(__name__)

PERIODS = {'s': 1, 'sec': 1, 'm': 60, 'min': 60, 'h': 3600, 'hour': 3600, 'd': 86400, 'day': 86400}


def parse_rate(rate: str) -> tuple[int, int]:
    """``"100/min"`` -> ``(100, 60)``."""
    num, _, period = rate.partition('/')
    period = period.strip().lower()
    if period not in PERIODS:
        # DRF style: only the first letter matters ("minute", "hours")
        period = period[:1]
    if not num.strip().isdigit() or period not in PERIODS:
        raise ValueError(f'invalid rate: {rate!r}')
    return int(num), PERIODS[period]


@dataclass(frozen=True)
class RateDecision:
    allowed: bool
    count: int
    limit: int
    retry_after: int


class FixedWindowRateLimiter:
    prefix = 'rl'

    def __init__(self, buckets: Optional[dict[str, str]] = None, cache_alias: str = 'default',
                 fail_open: Optional[bool] = None):
        self.buckets = {
            name: parse_rate(rate)
            for name, rate in (settings.RATE_LIMIT_BUCKETS if buckets is None else buckets).items()
        }
        self.cache = caches[cache_alias]
        self.fail_open = settings.RATE_LIMIT_FAIL_OPEN if fail_open is None else fail_open

    def hit(self, key: str, bucket: str, now: Optional[float] = None) -> RateDecision:
        if bucket not in self.buckets:
            raise KeyError(f'unknown rate-limit bucket: {bucket}')
        limit, period = self.buckets[bucket]
        now = time.time() if now is None else now
        window = int(now // period)
        retry_after = max(1, int((window + 1) * period - now))
        cache_key = f'{self.prefix}:{bucket}:{key}:{window}'
        try:
            count = self._increment(cache_key, period)
        except Exception:
            # counters are best-effort; any backend error counts as "unknown"
            logger.warning('rate limiter unavailable for bucket %s', bucket, exc_info=True)
            return RateDecision(allowed=self.fail_open, count=0, limit=limit, retry_after=retry_after)
        return RateDecision(allowed=count <= limit, count=count, limit=limit, retry_after=retry_after)

    def _increment(self, cache_key: str, period: int) -> int:
        # +1s so a window never expires before it is over
        if self.cache.add(cache_key, 1, timeout=period + 1):
            return 1
        try:
            return self.cache.incr(cache_key)
        except ValueError:
            # expired between add() and incr()
            self.cache.add(cache_key, 1, timeout=period + 1)
            return 1


_limiter: Optional[FixedWindowRateLimiter] = None


def get_rate_limiter() -> FixedWindowRateLimiter:
    global _limiter
    if _limiter is None:
        _limiter = FixedWindowRateLimiter()
    return _limiter


@receiver(setting_changed)
def reset_rate_limiter(*, setting=None, **kwargs) -> None:
    global _limiter
    if setting is None or setting.startswith('RATE_LIMIT') or setting == 'CACHES':
        _limiter = None


def client_ip(request) -> str:
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR', '')
    if forwarded:
        return forwarded.split(',')[0].strip() or 'unknown'
    return request.META.get('REMOTE_ADDR') or 'unknown'


class BucketRateThrottle(BaseThrottle):
    """DRF throttle backed by the same fixed-window limiter.

    Subclasses set ``bucket``; the caller is keyed by client IP because
    plain DRF views here run before any identity is known.
    """
    bucket: str = ''

    def allow_request(self, request, view) -> bool:
        if not settings.RATE_LIMIT_ENABLED:
            return True
        decision = get_rate_limiter().hit(client_ip(request), self.bucket)
        self._retry_after = decision.retry_after
        return decision.allowed

    def wait(self):
        return getattr(self, '_retry_after', None)


class AuthBucketThrottle(BucketRateThrottle):
    bucket = 'auth'
