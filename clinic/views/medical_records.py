"""
Medical record endpoints.

Records are always RESTRICTED; the confidential flag is kept on the
record and in the audit details.
"""
from __future__ import annotations

from rest_framework.decorators import api_view

from .. import pipeline
from ..exceptions import NotFound
from ..models import MedicalRecord, Patient
from ..permissions import MEDICAL_RECORD_READ, MEDICAL_RECORD_WRITE
from ..serializers.medical_record import MedicalRecordCreateSerializer, MedicalRecordListQuerySerializer
from ..services.medical_records import create_medical_record, records_for_patient
from ..services.profiles import local_user


def _serialize(record: MedicalRecord) -> dict:
    return {
        'id': str(record.id),
        'patientId': str(record.patient_id),
        'recordType': record.record_type,
        'title': record.title,
        'content': record.content,
        'recordDate': record.record_date.isoformat(),
        'attachments': record.attachments,
        'isConfidential': record.is_confidential,
        'tags': record.tags,
        'relatedAppointmentId': str(record.related_appointment_id) if record.related_appointment_id else None,
        'authorId': record.author_id,
        'createdAt': record.created_at.isoformat() if record.created_at else None,
    }


def _list_records(ctx):
    patient_id = ctx.data['patientId']
    ctx.patient_id = str(patient_id)
    if not Patient.objects.filter(pk=patient_id).exists():
        raise NotFound('Patient not found')
    records = records_for_patient(patient_id, ctx.data['limit'])
    ctx.message = f'Found {len(records)} medical records'
    ctx.details = {'limit': ctx.data['limit'], 'resultCount': len(records)}
    return [_serialize(r) for r in records]


def _create_record(ctx):
    record = create_medical_record(ctx.data, author=local_user(ctx.identity))
    ctx.resource_id = str(record.id)
    ctx.patient_id = str(record.patient_id)
    ctx.message = 'Medical record created successfully'
    ctx.details = {
        'recordType': record.record_type,
        'title': record.title,
        'isConfidential': record.is_confidential,
    }
    return _serialize(record)


LIST_RECORDS = pipeline.Endpoint(
    action='medical_record_list_view',
    resource_type='medical_record',
    handler=_list_records,
    permissions=(MEDICAL_RECORD_READ,),
    serializer=MedicalRecordListQuerySerializer,
    source='query',
    bucket='medical_records',
    resource_id='multiple',
)

CREATE_RECORD = pipeline.Endpoint(
    action='medical_record_create',
    resource_type='medical_record',
    handler=_create_record,
    permissions=(MEDICAL_RECORD_WRITE,),
    serializer=MedicalRecordCreateSerializer,
    bucket='medical_records',
    success_status=201,
)


@api_view(['GET', 'POST'])
def medical_records(request):
    if request.method == 'POST':
        return pipeline.run(CREATE_RECORD, request)
    return pipeline.run(LIST_RECORDS, request)
