"""
Session inspection and logout.

Logout is idempotent: calling it without a credential, with a malformed
Authorization header, or with a credential that no longer resolves still
answers success and clears the cookie.
"""
from __future__ import annotations

from django.conf import settings
from rest_framework.decorators import api_view

from .. import pipeline
from ..identity import get_auth_provider
from ..models import AuditLogEntry


def _identity_payload(identity) -> dict:
    return {
        'id': identity.id,
        'email': identity.email,
        'name': identity.name,
        'role': identity.role,
        'department': identity.department,
        'permissions': sorted(identity.permissions),
    }


def _check_session(ctx):
    identity = ctx.identity
    ctx.resource_id = identity.session_id
    ctx.message = 'Session retrieved successfully'
    return {
        'user': _identity_payload(identity),
        'session': {
            'id': identity.session_id,
            'expires': identity.expires_at.isoformat() if identity.expires_at else None,
        },
    }


def _clear_cookie(response):
    response.delete_cookie(settings.AUTH_COOKIE_NAME, samesite='Lax')


def _logout(ctx):
    ctx.response_hooks.append(_clear_cookie)
    ctx.message = 'Session invalidated successfully'
    if ctx.identity is not None:
        ctx.resource_id = ctx.identity.session_id
        get_auth_provider().revoke(ctx.identity)
    return None


CHECK_SESSION = pipeline.Endpoint(
    action='session_check',
    resource_type='session',
    handler=_check_session,
    bucket='auth',
    classification=AuditLogEntry.Classification.INTERNAL,
    phi=False,
)

LOGOUT = pipeline.Endpoint(
    action='user_logout',
    resource_type='session',
    handler=_logout,
    bucket='auth',
    classification=AuditLogEntry.Classification.INTERNAL,
    phi=False,
    auth_required=False,
)


@api_view(['GET', 'DELETE'])
def session(request):
    if request.method == 'DELETE':
        return pipeline.run(LOGOUT, request)
    return pipeline.run(CHECK_SESSION, request)
