import re
from datetime import date, timedelta

import pytest

from clinic.models import AuditLogEntry, Patient
from clinic.services.patients import generate_medical_record_number

pytestmark = pytest.mark.django_db


def _patient(**kw):
    values = {
        'first_name': 'John',
        'last_name': 'Smith',
        'date_of_birth': date(1970, 1, 1),
        'gender': 'MALE',
        'medical_record_number': 'PT-2024-000001',
    }
    values.update(kw)
    return Patient.objects.create(**values)


def test_create_patient_normalises_gender_and_audits_once(doctor_client, patient_payload):
    resp = doctor_client.post('/api/patients', patient_payload, format='json')

    assert resp.status_code == 201
    assert resp.data['success'] is True
    assert resp.data['message'] == 'Patient created successfully'
    data = resp.data['data']
    assert data['gender'] == 'FEMALE'
    assert data['treatmentStatus'] == 'ACTIVE'
    assert re.fullmatch(r'PT-\d{4}-\d{6}', data['medicalRecordNumber'])

    entry = AuditLogEntry.objects.get()
    assert entry.action == 'patient_create'
    assert entry.outcome == 'SUCCESS'
    assert entry.phi_accessed is True
    assert entry.data_classification == 'RESTRICTED'
    assert entry.resource_id == data['id']
    assert entry.patient_id == data['id']
    assert entry.details['medicalRecordNumber'] == data['medicalRecordNumber']


def test_create_strips_markup_from_free_text(doctor_client, patient_payload):
    patient_payload['medicalHistory'] = '<script>alert(1)</script>Hypertension'
    resp = doctor_client.post('/api/patients', patient_payload, format='json')
    assert resp.status_code == 201
    assert '<script>' not in resp.data['data']['medicalHistory']
    assert 'Hypertension' in resp.data['data']['medicalHistory']


def test_create_rejects_future_birth_date(doctor_client, patient_payload):
    patient_payload['dateOfBirth'] = (date.today() + timedelta(days=2)).isoformat()
    resp = doctor_client.post('/api/patients', patient_payload, format='json')
    assert resp.status_code == 400
    assert resp.data['details'][0]['field'] == 'dateOfBirth'


def test_duplicate_record_number_is_conflict(doctor_client, patient_payload):
    _patient(medical_record_number='MRN-42')
    patient_payload['medicalRecordNumber'] = 'MRN-42'
    resp = doctor_client.post('/api/patients', patient_payload, format='json')
    assert resp.status_code == 409
    assert resp.data['error'] == 'Medical record number already exists'


def test_generated_record_number_format():
    # 2024-03-01T00:00:00Z
    number = generate_medical_record_number(now=1709251200.123456)
    assert number == 'PT-2024-200123'


def test_list_filters_and_paginates(doctor_client):
    _patient(first_name='Alice', cancer_type='Lung', cancer_stage='II', medical_record_number='A-1')
    _patient(first_name='Bob', cancer_type='Lung cancer', cancer_stage='III', medical_record_number='A-2')
    _patient(first_name='Carol', cancer_type='Skin', medical_record_number='A-3')

    resp = doctor_client.get('/api/patients', {'cancerType': 'lung', 'limit': 1})
    assert resp.status_code == 200
    data = resp.data['data']
    assert data['total'] == 2
    assert len(data['patients']) == 1
    assert data['hasMore'] is True

    resp = doctor_client.get('/api/patients', {'search': 'caro'})
    assert [p['firstName'] for p in resp.data['data']['patients']] == ['Carol']
    assert resp.data['message'] == 'Found 1 patients'

    resp = doctor_client.get('/api/patients', {'cancerStage': 'iii'})
    assert [p['firstName'] for p in resp.data['data']['patients']] == ['Bob']


def test_list_rejects_out_of_range_limit(doctor_client):
    resp = doctor_client.get('/api/patients', {'limit': 500})
    assert resp.status_code == 400
    assert resp.data['details'][0]['field'] == 'limit'


def test_assigned_doctor_can_view_patient(doctor, doctor_client):
    p = _patient(assigned_doctor=doctor)
    resp = doctor_client.get(f'/api/patients/{p.id}')
    assert resp.status_code == 200
    assert resp.data['data']['medicalRecordNumber'] == p.medical_record_number
    entry = AuditLogEntry.objects.get()
    assert (entry.action, entry.resource_id, entry.patient_id) == ('patient_view', str(p.id), str(p.id))


def test_other_doctor_is_denied_and_audited(make_user, client_for):
    owner = make_user('owner', 'doctor')
    other = make_user('other', 'doctor')
    p = _patient(assigned_doctor=owner)

    resp = client_for(other).get(f'/api/patients/{p.id}')
    assert resp.status_code == 403
    assert resp.data['error'] == 'Access denied'
    entry = AuditLogEntry.objects.get()
    assert entry.outcome == 'FAILURE'
    assert entry.patient_id == str(p.id)
    assert entry.phi_accessed is False


def test_read_all_permission_grants_access(make_user, client_for):
    nurse = make_user('nurse1', 'nurse', permissions=['patient_read_all'])
    p = _patient()
    assert client_for(nurse).get(f'/api/patients/{p.id}').status_code == 200


def test_missing_patient_is_404(admin_client):
    resp = admin_client.get('/api/patients/00000000-0000-0000-0000-000000000000')
    assert resp.status_code == 404
    assert resp.data == {'success': False, 'error': 'Patient not found'}


def test_update_reports_changed_fields(doctor, doctor_client):
    p = _patient(assigned_doctor=doctor)
    resp = doctor_client.put(f'/api/patients/{p.id}', {'treatmentStatus': 'remission', 'lastName': 'Smith'},
                             format='json')
    assert resp.status_code == 200
    assert resp.data['data']['treatmentStatus'] == 'REMISSION'
    p.refresh_from_db()
    assert p.treatment_status == 'REMISSION'
    entry = AuditLogEntry.objects.get()
    assert entry.details['updatedFields'] == ['treatmentStatus']


def test_update_with_no_fields_is_rejected(doctor, doctor_client):
    p = _patient(assigned_doctor=doctor)
    resp = doctor_client.put(f'/api/patients/{p.id}', {'unknown': 1}, format='json')
    assert resp.status_code == 400
    assert resp.data['details'][0]['message'] == 'No valid fields to update'
