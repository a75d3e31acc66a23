import time
from datetime import datetime, timezone as dt_timezone
from typing import Optional

from django.db.models import Q
from django.utils import timezone

from clinic.models import Patient

# request field -> model field
FIELD_MAP = {
    'firstName': 'first_name',
    'lastName': 'last_name',
    'email': 'email',
    'phone': 'phone',
    'dateOfBirth': 'date_of_birth',
    'gender': 'gender',
    'address': 'address',
    'emergencyContactName': 'emergency_contact_name',
    'emergencyContactPhone': 'emergency_contact_phone',
    'medicalRecordNumber': 'medical_record_number',
    'cancerType': 'cancer_type',
    'cancerStage': 'cancer_stage',
    'diagnosisDate': 'diagnosis_date',
    'treatmentStatus': 'treatment_status',
    'assignedDoctorId': 'assigned_doctor',
    'medicalHistory': 'medical_history',
    'allergies': 'allergies',
    'currentMedications': 'current_medications',
    'familyHistory': 'family_history',
    'insuranceProvider': 'insurance_provider',
    'insurancePolicyNumber': 'insurance_policy_number',
    'lastVisit': 'last_visit',
}


def generate_medical_record_number(now: Optional[float] = None) -> str:
    """``PT-<year>-<last 6 digits of the epoch milliseconds>``.

    Two calls within the same millisecond give the same number; the
    unique constraint on the column is what rejects the duplicate.
    """
    now = time.time() if now is None else now
    millis = int(now * 1000)
    year = timezone.localtime(datetime.fromtimestamp(now, tz=dt_timezone.utc)).year
    return f"PT-{year}-{str(millis)[-6:]}"


def search_patients(*, search: str = '', cancer_type: str = '', cancer_stage: str = '',
                    treatment_status: str = '', assigned_doctor_id: Optional[int] = None,
                    limit: int = 50, offset: int = 0) -> tuple[list[Patient], int]:
    qs = Patient.objects.select_related('assigned_doctor')
    if search:
        qs = qs.filter(
            Q(first_name__icontains=search)
            | Q(last_name__icontains=search)
            | Q(medical_record_number__icontains=search)
            | Q(email__icontains=search)
        )
    if cancer_type:
        qs = qs.filter(cancer_type__icontains=cancer_type)
    if cancer_stage:
        qs = qs.filter(cancer_stage=cancer_stage)
    if treatment_status:
        qs = qs.filter(treatment_status=treatment_status)
    if assigned_doctor_id:
        qs = qs.filter(assigned_doctor_id=assigned_doctor_id)
    total = qs.count()
    patients = list(qs.order_by('-updated_at', 'id')[offset:offset + limit])
    return patients, total


def create_patient(data: dict) -> Patient:
    values = {FIELD_MAP[k]: v for k, v in data.items() if k in FIELD_MAP}
    if not values.get('medical_record_number'):
        values['medical_record_number'] = generate_medical_record_number()
    return Patient.objects.create(**values)


def get_patient(patient_id) -> Optional[Patient]:
    return Patient.objects.select_related('assigned_doctor').filter(pk=patient_id).first()


def update_patient(patient: Patient, data: dict) -> list[str]:
    """Apply ``data`` and return the names of the fields that changed."""
    changed = []
    for key, value in data.items():
        field = FIELD_MAP.get(key)
        if field is None:
            continue
        if key == 'medicalRecordNumber' and not value:
            continue
        if getattr(patient, field) != value:
            setattr(patient, field, value)
            changed.append(key)
    if changed:
        patient.save()
    return changed
