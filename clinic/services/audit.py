import logging
from datetime import datetime
from typing import Any, Dict, Optional

from django.db import DatabaseError, transaction
from django.db.models import Count, Q

from clinic.models import AuditLogEntry
from clinic.ratelimit import client_ip

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger('clinic.audit')

SUCCESS = AuditLogEntry.OUTCOME_SUCCESS
FAILURE = AuditLogEntry.OUTCOME_FAILURE
Classification = AuditLogEntry.Classification


def request_metadata(request) -> Dict[str, str]:
    if request is None:
        return {'ip_address': 'unknown', 'user_agent': 'unknown'}
    return {
        'ip_address': client_ip(request)[:64],
        'user_agent': (request.META.get('HTTP_USER_AGENT') or 'unknown')[:255],
    }


def log_action(*, identity, action: str, resource_type: str, outcome: str,
               resource_id: Optional[str] = None, patient_id: Optional[str] = None,
               request=None, details: Optional[Dict[str, Any]] = None, phi_accessed: bool = False,
               classification: str = Classification.RESTRICTED,
               actor_id: Optional[str] = None, actor_email: Optional[str] = None) -> AuditLogEntry:
    """Append one audit entry.  ``identity`` may be ``None`` for anonymous attempts (login)."""
    entry = AuditLogEntry.objects.create(
        user_id=identity.id if identity else (actor_id or 'anonymous'),
        user_email=identity.email if identity else (actor_email or ''),
        action=action,
        resource_type=resource_type,
        resource_id=str(resource_id) if resource_id else 'unknown',
        patient_id=str(patient_id) if patient_id else None,
        session_id=identity.session_id if identity else 'unknown',
        outcome=outcome,
        details=details or {},
        phi_accessed=phi_accessed if outcome == SUCCESS else False,
        data_classification=classification,
        **request_metadata(request),
    )
    audit_logger.info(
        'AUDIT action=%s outcome=%s user=%s resource=%s/%s patient=%s phi=%s class=%s',
        entry.action, entry.outcome, entry.user_id, entry.resource_type, entry.resource_id,
        entry.patient_id or '-', entry.phi_accessed, entry.data_classification,
    )
    return entry


def record(**kwargs) -> Optional[AuditLogEntry]:
    """Like :func:`log_action` but never raises.

    The write runs in its own savepoint so a failing insert leaves the
    surrounding transaction usable; the failure is logged and the
    caller's response is unaffected.
    """
    try:
        with transaction.atomic():
            return log_action(**kwargs)
    except DatabaseError:
        logger.exception('audit write failed for action=%s', kwargs.get('action'))
        return None


def audit_trail(*, user_id: Optional[str] = None, patient_id: Optional[str] = None,
                action: Optional[str] = None, outcome: Optional[str] = None,
                start: Optional[datetime] = None, end: Optional[datetime] = None):
    qs = AuditLogEntry.objects.all()
    if user_id:
        qs = qs.filter(user_id=user_id)
    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    if action:
        qs = qs.filter(action__icontains=action)
    if outcome:
        qs = qs.filter(outcome=outcome)
    if start:
        qs = qs.filter(created_at__gte=start)
    if end:
        qs = qs.filter(created_at__lte=end)
    return qs.order_by('-created_at')


def compliance_metrics(*, start: Optional[datetime] = None, end: Optional[datetime] = None) -> Dict[str, Any]:
    qs = audit_trail(start=start, end=end).order_by()
    totals = qs.aggregate(
        total=Count('id'),
        successful=Count('id', filter=Q(outcome=SUCCESS)),
        failed=Count('id', filter=Q(outcome=FAILURE)),
        phi_accesses=Count('id', filter=Q(phi_accessed=True)),
        unique_users=Count('user_id', distinct=True),
    )
    failures_by_action = {
        row['action']: row['n']
        for row in qs.filter(outcome=FAILURE).values('action').annotate(n=Count('id')).order_by('action')
    }
    return {**totals, 'failuresByAction': failures_by_action}
