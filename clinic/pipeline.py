"""
The audited request pipeline.

Every API route is declared as an :class:`Endpoint` and served by
:func:`run`, which pushes a shared :class:`RequestContext` through a
fixed chain of stages::

    authenticate -> authorize -> validate -> rate_limit -> execute -> audit -> respond

A stage either advances the context or raises a
:class:`~clinic.exceptions.PolicyError`; the first error short-circuits
the remaining stages before ``execute``.  Once an identity has been
resolved the request is audited exactly once, whatever the outcome, and
the audit write happens before the response is built.

Handlers receive the context and return the ``data`` of the envelope.
They may set ``ctx.message``, ``ctx.resource_id``, ``ctx.patient_id``
and ``ctx.details`` for the audit entry, or raise a ``PolicyError``
(``NotFound``, ``Forbidden``, ``Conflict``) themselves.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction
from rest_framework.exceptions import ParseError, UnsupportedMediaType
from rest_framework.response import Response

from .authentication import authenticate_request
from .exceptions import (
    Conflict,
    Forbidden,
    PolicyError,
    RateLimited,
    StorageFailure,
    Unauthenticated,
    UnknownError,
    ValidationFailed,
    violations_from_errors,
)
from .identity import Identity
from .models import AuditLogEntry
from .permissions import missing_permissions
from .ratelimit import client_ip, get_rate_limiter
from .responses import failure, success
from .services import audit as audit_service

logger = logging.getLogger(__name__)


class Stage(str, enum.Enum):
    RECEIVED = 'RECEIVED'
    AUTHENTICATED = 'AUTHENTICATED'
    AUTHORIZED = 'AUTHORIZED'
    VALIDATED = 'VALIDATED'
    RATE_CHECKED = 'RATE_CHECKED'
    EXECUTED = 'EXECUTED'
    AUDITED = 'AUDITED'
    RESPONDED = 'RESPONDED'
    FAILED = 'FAILED'


@dataclass(frozen=True)
class Endpoint:
    action: str
    resource_type: str
    handler: Callable[['RequestContext'], Any]
    permissions: tuple[str, ...] = ()
    serializer: Optional[type] = None
    # where the serializer reads from: 'body' or 'query'
    source: str = 'body'
    bucket: Optional[str] = None
    classification: str = AuditLogEntry.Classification.RESTRICTED
    phi: bool = True
    success_status: int = 200
    # audit resource id when the handler does not provide one
    resource_id: str = 'unknown'
    # URL kwarg holding the resource id, for detail routes
    resource_kwarg: Optional[str] = None
    auth_required: bool = True


@dataclass
class RequestContext:
    request: Any
    endpoint: Endpoint
    kwargs: dict = field(default_factory=dict)
    stage: Stage = Stage.RECEIVED
    identity: Optional[Identity] = None
    data: Any = None
    result: Any = None
    message: Optional[str] = None
    resource_id: Optional[str] = None
    patient_id: Optional[str] = None
    details: dict = field(default_factory=dict)
    error: Optional[PolicyError] = None
    failed_stage: Optional[str] = None
    audit_entry: Optional[AuditLogEntry] = None
    # called with the final Response (e.g. to clear a cookie)
    response_hooks: list = field(default_factory=list)
    response: Optional[Response] = None

    def advance(self, stage: Stage) -> None:
        self.stage = stage

    def fail(self, error: PolicyError, stage_name: str) -> None:
        self.error = error
        self.failed_stage = stage_name
        self.stage = Stage.FAILED


def authenticate(ctx: RequestContext) -> None:
    ctx.identity = authenticate_request(ctx.request, required=ctx.endpoint.auth_required)
    ctx.advance(Stage.AUTHENTICATED)


def authorize(ctx: RequestContext) -> None:
    required = ctx.endpoint.permissions
    if required:
        if ctx.identity is None:
            raise Unauthenticated()
        missing = missing_permissions(ctx.identity.permissions, required)
        if missing:
            raise Forbidden(audit={'requiredPermissions': list(required), 'missingPermissions': missing})
    ctx.advance(Stage.AUTHORIZED)


def validate(ctx: RequestContext) -> None:
    serializer_class = ctx.endpoint.serializer
    if serializer_class is not None:
        if ctx.endpoint.source == 'query':
            payload = ctx.request.query_params
        else:
            try:
                payload = ctx.request.data
            except (ParseError, UnsupportedMediaType):
                raise ValidationFailed(
                    details=[{'field': 'body', 'message': 'Malformed request body'}],
                    audit={'violations': 1},
                )
        serializer = serializer_class(data=payload, context={'request': ctx.request, 'identity': ctx.identity})
        if not serializer.is_valid():
            violations = violations_from_errors(serializer.errors)
            raise ValidationFailed(
                details=violations,
                audit={'violations': len(violations), 'fields': sorted({v['field'] for v in violations})},
            )
        ctx.data = serializer.validated_data
    ctx.advance(Stage.VALIDATED)


def rate_limit(ctx: RequestContext) -> None:
    bucket = ctx.endpoint.bucket
    if bucket and settings.RATE_LIMIT_ENABLED:
        key = ctx.identity.id if ctx.identity else client_ip(ctx.request)
        decision = get_rate_limiter().hit(key, bucket)
        if not decision.allowed:
            raise RateLimited(
                retry_after=decision.retry_after,
                audit={'bucket': bucket, 'limit': decision.limit},
            )
    ctx.advance(Stage.RATE_CHECKED)


def execute(ctx: RequestContext) -> None:
    action = ctx.endpoint.action
    try:
        with transaction.atomic():
            ctx.result = ctx.endpoint.handler(ctx)
    except IntegrityError as exc:
        logger.warning('integrity error during %s: %s', action, exc)
        raise Conflict() from exc
    except DatabaseError as exc:
        logger.exception('storage failure during %s', action)
        raise StorageFailure() from exc
    ctx.advance(Stage.EXECUTED)


def audit(ctx: RequestContext) -> None:
    """Record the request unless no identity was ever resolved."""
    if ctx.identity is None:
        return
    endpoint = ctx.endpoint
    if ctx.error is None:
        outcome = audit_service.SUCCESS
        details = ctx.details
    else:
        outcome = audit_service.FAILURE
        details = {
            'error': ctx.error.message,
            'kind': ctx.error.kind.value,
            'stage': ctx.failed_stage,
            **ctx.error.audit,
        }
    ctx.audit_entry = audit_service.record(
        identity=ctx.identity,
        action=endpoint.action,
        resource_type=endpoint.resource_type,
        resource_id=ctx.resource_id or endpoint.resource_id,
        patient_id=ctx.patient_id,
        request=ctx.request,
        outcome=outcome,
        details=details,
        phi_accessed=endpoint.phi,
        classification=endpoint.classification,
    )
    ctx.advance(Stage.AUDITED)


def respond(ctx: RequestContext) -> Response:
    if ctx.error is not None:
        response = failure(ctx.error)
    else:
        response = success(ctx.result, ctx.message, status=ctx.endpoint.success_status)
    for hook in ctx.response_hooks:
        hook(response)
    ctx.advance(Stage.RESPONDED)
    return response


STAGES: tuple[tuple[str, Callable[[RequestContext], None]], ...] = (
    ('authenticate', authenticate),
    ('authorize', authorize),
    ('validate', validate),
    ('rate_limit', rate_limit),
    ('execute', execute),
)


def process(endpoint: Endpoint, request, **kwargs) -> RequestContext:
    """Run every stage and return the finished context."""
    ctx = RequestContext(request=request, endpoint=endpoint, kwargs=kwargs)
    if endpoint.resource_kwarg and kwargs.get(endpoint.resource_kwarg) is not None:
        ctx.resource_id = str(kwargs[endpoint.resource_kwarg])
    for name, stage in STAGES:
        try:
            stage(ctx)
        except PolicyError as exc:
            ctx.fail(exc, name)
            break
        except Exception:
            logger.exception('unexpected error in stage %s of %s', name, endpoint.action)
            ctx.fail(UnknownError(), name)
            break
    audit(ctx)
    ctx.response = respond(ctx)
    return ctx


def run(endpoint: Endpoint, request, **kwargs) -> Response:
    return process(endpoint, request, **kwargs).response
