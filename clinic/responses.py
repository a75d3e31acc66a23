"""
Response envelope helpers.

Every API response body is ``{success, data?, message?, error?, details?}``.
"""
from __future__ import annotations

from typing import Any, Optional

from rest_framework.response import Response

from .exceptions import ErrorKind, PolicyError

NO_STORE = 'no-store'


def success(data: Any = None, message: Optional[str] = None, status: int = 200) -> Response:
    body: dict[str, Any] = {'success': True}
    if data is not None:
        body['data'] = data
    if message:
        body['message'] = message
    resp = Response(body, status=status)
    resp['Cache-Control'] = NO_STORE
    return resp


def failure(error: PolicyError) -> Response:
    body: dict[str, Any] = {'success': False, 'error': error.message}
    if error.details:
        body['details'] = error.details
    resp = Response(body, status=error.status_code)
    resp['Cache-Control'] = NO_STORE
    if error.kind is ErrorKind.UNAUTHENTICATED:
        resp['WWW-Authenticate'] = 'Bearer'
    elif error.kind is ErrorKind.RATE_LIMITED and getattr(error, 'retry_after', None):
        resp['Retry-After'] = str(error.retry_after)
    return resp
