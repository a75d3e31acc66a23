"""
Patient endpoints.

Listing and creation require ``patient_read`` / ``patient_write``.  The
detail routes additionally check that the caller may act on this
particular patient: administrators, the assigned doctor, or holders of
``patient_read_all`` / ``patient_write_all``.  Every call is audited by
the pipeline as a RESTRICTED, PHI-bearing access.
"""
from __future__ import annotations

from rest_framework.decorators import api_view

from .. import pipeline
from ..exceptions import Conflict, Forbidden, NotFound
from ..models import Patient
from ..permissions import PATIENT_READ, PATIENT_WRITE, can_access_patient
from ..serializers.patient import PatientCreateSerializer, PatientListQuerySerializer, PatientUpdateSerializer
from ..services import patients as patient_service


def _iso(value):
    return value.isoformat() if value else None


def _serialize(patient: Patient) -> dict:
    return {
        'id': str(patient.id),
        'medicalRecordNumber': patient.medical_record_number,
        'firstName': patient.first_name,
        'lastName': patient.last_name,
        'email': patient.email,
        'phone': patient.phone,
        'dateOfBirth': _iso(patient.date_of_birth),
        'gender': patient.gender,
        'address': patient.address,
        'emergencyContactName': patient.emergency_contact_name,
        'emergencyContactPhone': patient.emergency_contact_phone,
        'cancerType': patient.cancer_type,
        'cancerStage': patient.cancer_stage or None,
        'diagnosisDate': _iso(patient.diagnosis_date),
        'treatmentStatus': patient.treatment_status,
        'assignedDoctorId': patient.assigned_doctor_id,
        'medicalHistory': patient.medical_history,
        'allergies': patient.allergies,
        'currentMedications': patient.current_medications,
        'familyHistory': patient.family_history,
        'insuranceProvider': patient.insurance_provider,
        'insurancePolicyNumber': patient.insurance_policy_number,
        'lastVisit': _iso(patient.last_visit),
        'createdAt': _iso(patient.created_at),
        'updatedAt': _iso(patient.updated_at),
    }


def _ensure_unique_mrn(number: str | None, exclude=None) -> None:
    if not number:
        return
    qs = Patient.objects.filter(medical_record_number=number)
    if exclude is not None:
        qs = qs.exclude(pk=exclude.pk)
    if qs.exists():
        raise Conflict('Medical record number already exists')


def _list_patients(ctx):
    q = ctx.data
    patients, total = patient_service.search_patients(
        search=q.get('search', ''),
        cancer_type=q.get('cancerType', ''),
        cancer_stage=q.get('cancerStage', ''),
        treatment_status=q.get('treatmentStatus', ''),
        assigned_doctor_id=q.get('assignedDoctorId'),
        limit=q['limit'],
        offset=q['offset'],
    )
    ctx.message = f'Found {len(patients)} patients'
    ctx.details = {
        'filters': {k: v for k, v in q.items() if k not in ('limit', 'offset') and v not in ('', None)},
        'limit': q['limit'],
        'offset': q['offset'],
        'resultCount': len(patients),
        'total': total,
    }
    return {
        'patients': [_serialize(p) for p in patients],
        'total': total,
        'hasMore': q['offset'] + len(patients) < total,
    }


def _create_patient(ctx):
    _ensure_unique_mrn(ctx.data.get('medicalRecordNumber'))
    patient = patient_service.create_patient(ctx.data)
    ctx.resource_id = ctx.patient_id = str(patient.id)
    ctx.message = 'Patient created successfully'
    ctx.details = {
        'medicalRecordNumber': patient.medical_record_number,
        'cancerType': patient.cancer_type,
        'assignedDoctorId': patient.assigned_doctor_id,
    }
    return _serialize(patient)


def _load_for(ctx, *, write: bool) -> Patient:
    ctx.patient_id = str(ctx.kwargs['patient_id'])
    patient = patient_service.get_patient(ctx.kwargs['patient_id'])
    if patient is None:
        raise NotFound('Patient not found')
    if not can_access_patient(ctx.identity, patient, write=write):
        raise Forbidden('Access denied', audit={'reason': 'Caller may not access this patient'})
    return patient


def _view_patient(ctx):
    patient = _load_for(ctx, write=False)
    ctx.message = 'Patient retrieved successfully'
    ctx.details = {'medicalRecordNumber': patient.medical_record_number}
    return _serialize(patient)


def _update_patient(ctx):
    patient = _load_for(ctx, write=True)
    _ensure_unique_mrn(ctx.data.get('medicalRecordNumber'), exclude=patient)
    changed = patient_service.update_patient(patient, ctx.data)
    ctx.message = 'Patient updated successfully'
    ctx.details = {'medicalRecordNumber': patient.medical_record_number, 'updatedFields': changed}
    return _serialize(patient)


LIST_PATIENTS = pipeline.Endpoint(
    action='patient_list_view',
    resource_type='patient',
    handler=_list_patients,
    permissions=(PATIENT_READ,),
    serializer=PatientListQuerySerializer,
    source='query',
    bucket='patients',
    resource_id='multiple',
)

CREATE_PATIENT = pipeline.Endpoint(
    action='patient_create',
    resource_type='patient',
    handler=_create_patient,
    permissions=(PATIENT_WRITE,),
    serializer=PatientCreateSerializer,
    bucket='patients',
    success_status=201,
)

VIEW_PATIENT = pipeline.Endpoint(
    action='patient_view',
    resource_type='patient',
    handler=_view_patient,
    permissions=(PATIENT_READ,),
    bucket='patients',
    resource_kwarg='patient_id',
)

UPDATE_PATIENT = pipeline.Endpoint(
    action='patient_update',
    resource_type='patient',
    handler=_update_patient,
    permissions=(PATIENT_WRITE,),
    serializer=PatientUpdateSerializer,
    bucket='patients',
    resource_kwarg='patient_id',
)


@api_view(['GET', 'POST'])
def patients(request):
    if request.method == 'POST':
        return pipeline.run(CREATE_PATIENT, request)
    return pipeline.run(LIST_PATIENTS, request)


@api_view(['GET', 'PUT'])
def patient_detail(request, patient_id):
    if request.method == 'PUT':
        return pipeline.run(UPDATE_PATIENT, request, patient_id=patient_id)
    return pipeline.run(VIEW_PATIENT, request, patient_id=patient_id)
