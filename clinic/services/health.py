import logging
import os
import time

from django.conf import settings
from django.db import DatabaseError, connections
from django.utils import timezone

from clinic.identity import get_auth_provider

logger = logging.getLogger(__name__)

STARTED_AT = time.monotonic()

HEALTHY = 'healthy'
DEGRADED = 'degraded'
UNHEALTHY = 'unhealthy'


def check_database(alias: str = 'default') -> bool:
    try:
        with connections[alias].cursor() as c:
            c.execute('SELECT 1')
            row = c.fetchone()
    except DatabaseError:
        logger.warning('database health check failed', exc_info=True)
        return False
    return bool(row and row[0] == 1)


def check_identity_provider() -> bool:
    try:
        return bool(get_auth_provider().ping())
    except Exception:
        # a misconfigured provider must show up as unhealthy, not as a 500
        logger.warning('identity provider health check failed', exc_info=True)
        return False


def missing_env_vars() -> list[str]:
    return [name for name in settings.HEALTH_REQUIRED_ENV_VARS if not os.environ.get(name)]


def cache_backend() -> str:
    backend = settings.CACHES['default']['BACKEND']
    return 'redis' if 'redis' in backend.lower() else 'local-memory'


def health_report() -> tuple[dict, int]:
    """Aggregate the checks into ``(body, http_status)``."""
    started = time.monotonic()
    db_ok = check_database()
    idp_ok = check_identity_provider()
    missing = missing_env_vars()

    if not db_ok or not idp_ok:
        status = UNHEALTHY
    elif missing:
        status = DEGRADED
    else:
        status = HEALTHY

    body = {
        'status': status,
        'timestamp': timezone.now().isoformat(),
        'version': settings.APP_VERSION,
        'environment': settings.ENV,
        'uptime': round(time.monotonic() - STARTED_AT, 3),
        'responseTime': round((time.monotonic() - started) * 1000, 2),
        'services': {
            'database': HEALTHY if db_ok else UNHEALTHY,
            'identity_provider': HEALTHY if idp_ok else UNHEALTHY,
            'cache': cache_backend(),
            'environment': f"Missing env vars: {', '.join(missing)}" if missing else 'configured',
        },
        'checks': {
            'database_connection': db_ok,
            # historical name of the identity provider check
            'supabase_connection': idp_ok,
            'environment_variables': not missing,
        },
    }
    return body, 503 if status == UNHEALTHY else 200
