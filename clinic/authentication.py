"""
Credential extraction for the request gate.

The credential is either an ``Authorization: Bearer <token>`` header or
the auth cookie set at login.  The header wins when both are present.
The token itself is opaque here; the configured
:class:`~clinic.identity.AuthProvider` decides what it means.
"""
from __future__ import annotations

from typing import Optional

from django.conf import settings

from .exceptions import Unauthenticated
from .identity import Identity, get_auth_provider

KEYWORD = 'Bearer'


def get_request_token(request) -> Optional[str]:
    """Return the raw credential, ``None`` when absent.

    A malformed ``Authorization`` header is an error, not an absence.
    """
    header = request.META.get('HTTP_AUTHORIZATION', '')
    if header:
        parts = header.split()
        if len(parts) != 2 or parts[0].lower() != KEYWORD.lower():
            raise Unauthenticated('Invalid authorization header')
        return parts[1]
    return request.COOKIES.get(settings.AUTH_COOKIE_NAME) or None


def authenticate_request(request, *, required: bool = True) -> Optional[Identity]:
    """Resolve the caller.

    When ``required`` is false a missing, malformed or unresolvable
    credential yields ``None`` instead of an error.
    """
    try:
        token = get_request_token(request)
    except Unauthenticated:
        if required:
            raise
        return None
    if token is None:
        if required:
            raise Unauthenticated()
        return None
    identity = get_auth_provider().resolve(token)
    if identity is None and required:
        raise Unauthenticated('Invalid or expired credentials')
    return identity
