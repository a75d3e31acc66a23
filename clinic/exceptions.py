"""
Error taxonomy for the clinical API and the DRF exception handler.

Every failure that leaves the request pipeline is a :class:`PolicyError`
carrying an :class:`ErrorKind`.  The kind decides the HTTP status; the
``message`` is safe to show to callers and ``details`` holds structured
extras (field violations, missing permissions).  Raw internal error
text is never placed on these objects.
"""
from __future__ import annotations

import enum
import logging
from typing import Any, Optional

from rest_framework import exceptions as drf_exceptions
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = 'An internal error occurred'


class ErrorKind(str, enum.Enum):
    UNAUTHENTICATED = 'UNAUTHENTICATED'
    FORBIDDEN = 'FORBIDDEN'
    VALIDATION_ERROR = 'VALIDATION_ERROR'
    RATE_LIMITED = 'RATE_LIMITED'
    NOT_FOUND = 'NOT_FOUND'
    CONFLICT = 'CONFLICT'
    STORAGE_FAILURE = 'STORAGE_FAILURE'
    UNKNOWN = 'UNKNOWN'

    @property
    def status_code(self) -> int:
        return _STATUS_BY_KIND[self]


_STATUS_BY_KIND = {
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.VALIDATION_ERROR: 400,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.STORAGE_FAILURE: 500,
    ErrorKind.UNKNOWN: 500,
}


class PolicyError(Exception):
    """Base class for failures raised by pipeline stages and handlers."""

    kind: ErrorKind = ErrorKind.UNKNOWN
    default_message = GENERIC_SERVER_ERROR

    def __init__(self, message: Optional[str] = None, *, details: Any = None, audit: Optional[dict] = None):
        self.message = message or self.default_message
        # returned to the caller (e.g. field violations)
        self.details = details
        # extra keys recorded in the audit entry only
        self.audit = audit or {}
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return self.kind.status_code


class Unauthenticated(PolicyError):
    kind = ErrorKind.UNAUTHENTICATED
    default_message = 'Authentication required'


class Forbidden(PolicyError):
    kind = ErrorKind.FORBIDDEN
    default_message = 'Insufficient permissions'


class ValidationFailed(PolicyError):
    kind = ErrorKind.VALIDATION_ERROR
    default_message = 'Invalid input data'


class RateLimited(PolicyError):
    kind = ErrorKind.RATE_LIMITED
    default_message = 'Too many requests'

    def __init__(self, message: Optional[str] = None, *, retry_after: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class NotFound(PolicyError):
    kind = ErrorKind.NOT_FOUND
    default_message = 'Resource not found'


class Conflict(PolicyError):
    kind = ErrorKind.CONFLICT
    default_message = 'Resource already exists'


class StorageFailure(PolicyError):
    kind = ErrorKind.STORAGE_FAILURE
    default_message = GENERIC_SERVER_ERROR


class UnknownError(PolicyError):
    kind = ErrorKind.UNKNOWN
    default_message = GENERIC_SERVER_ERROR


def violations_from_errors(errors: Any, prefix: str = '') -> list[dict[str, str]]:
    """Flatten DRF serializer errors into ``[{field, message}, ...]``."""
    out: list[dict[str, str]] = []
    if isinstance(errors, dict):
        for key, value in errors.items():
            field = f'{prefix}.{key}' if prefix else str(key)
            out.extend(violations_from_errors(value, field))
    elif isinstance(errors, list):
        for idx, value in enumerate(errors):
            if isinstance(value, (dict, list)):
                field = f'{prefix}[{idx}]' if prefix else str(idx)
                out.extend(violations_from_errors(value, field))
            else:
                out.append({'field': prefix or 'non_field_errors', 'message': str(value)})
    else:
        out.append({'field': prefix or 'non_field_errors', 'message': str(errors)})
    return out


def api_exception_handler(exc, context):
    """Render errors raised outside the pipeline with the same envelope.

    DRF's own handler covers ``APIException``, ``Http404`` and
    ``PermissionDenied``.  Anything else is logged with its traceback and
    answered with a generic 500 so internals never reach the caller.
    """
    if isinstance(exc, PolicyError):
        body: dict[str, Any] = {'success': False, 'error': exc.message}
        if exc.details:
            body['details'] = exc.details
        return Response(body, status=exc.status_code)

    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.exception('unhandled error in %s', context.get('view').__class__.__name__, exc_info=exc)
        return Response({'success': False, 'error': GENERIC_SERVER_ERROR}, status=500)

    body = {'success': False}
    if isinstance(exc, drf_exceptions.ValidationError):
        body['error'] = ValidationFailed.default_message
        body['details'] = violations_from_errors(resp.data)
    elif isinstance(resp.data, dict) and 'detail' in resp.data:
        body['error'] = str(resp.data['detail'])
    else:
        body['error'] = str(resp.data)
    headers = {h: resp[h] for h in ('WWW-Authenticate', 'Retry-After', 'Allow') if resp.has_header(h)}
    return Response(body, status=resp.status_code, headers=headers)
