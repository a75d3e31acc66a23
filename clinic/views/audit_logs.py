"""
Read access to the audit trail for compliance staff.
"""
from __future__ import annotations

from rest_framework.decorators import api_view

from .. import pipeline
from ..models import AuditLogEntry
from ..permissions import AUDIT_READ
from ..serializers.audit import AuditLogQuerySerializer, AuditMetricsQuerySerializer
from ..services.audit import audit_trail, compliance_metrics


def _serialize(entry: AuditLogEntry) -> dict:
    return {
        'id': str(entry.id),
        'userId': entry.user_id,
        'userEmail': entry.user_email,
        'action': entry.action,
        'resourceType': entry.resource_type,
        'resourceId': entry.resource_id,
        'patientId': entry.patient_id,
        'ipAddress': entry.ip_address,
        'userAgent': entry.user_agent,
        'sessionId': entry.session_id,
        'outcome': entry.outcome,
        'details': entry.details,
        'phiAccessed': entry.phi_accessed,
        'dataClassification': entry.data_classification,
        'createdAt': entry.created_at.isoformat(),
    }


def _list_entries(ctx):
    q = ctx.data
    qs = audit_trail(
        user_id=q.get('userId'),
        patient_id=q.get('patientId'),
        action=q.get('action'),
        outcome=q.get('outcome'),
        start=q.get('startDate'),
        end=q.get('endDate'),
    )
    total = qs.count()
    entries = list(qs[q['offset']:q['offset'] + q['limit']])
    ctx.message = f'Found {len(entries)} audit entries'
    ctx.details = {'resultCount': len(entries), 'total': total}
    return {
        'entries': [_serialize(e) for e in entries],
        'total': total,
        'hasMore': q['offset'] + len(entries) < total,
    }


def _metrics(ctx):
    start, end = ctx.data.get('startDate'), ctx.data.get('endDate')
    metrics = compliance_metrics(start=start, end=end)
    ctx.message = 'Compliance metrics retrieved successfully'
    ctx.details = {
        'startDate': start.isoformat() if start else None,
        'endDate': end.isoformat() if end else None,
    }
    return metrics


LIST_AUDIT = pipeline.Endpoint(
    action='audit_log_view',
    resource_type='audit_log',
    handler=_list_entries,
    permissions=(AUDIT_READ,),
    serializer=AuditLogQuerySerializer,
    source='query',
    bucket='audit',
    phi=False,
    resource_id='multiple',
)

AUDIT_METRICS = pipeline.Endpoint(
    action='audit_metrics_view',
    resource_type='audit_log',
    handler=_metrics,
    permissions=(AUDIT_READ,),
    serializer=AuditMetricsQuerySerializer,
    source='query',
    bucket='audit',
    classification=AuditLogEntry.Classification.INTERNAL,
    phi=False,
    resource_id='multiple',
)


@api_view(['GET'])
def audit_logs(request):
    return pipeline.run(LIST_AUDIT, request)


@api_view(['GET'])
def audit_metrics(request):
    return pipeline.run(AUDIT_METRICS, request)
