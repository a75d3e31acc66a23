from typing import Optional

from clinic.models import MedicalRecord, User


def records_for_patient(patient_id, limit: int = 50) -> list[MedicalRecord]:
    qs = MedicalRecord.objects.select_related('author').filter(patient_id=patient_id)
    return list(qs.order_by('-record_date', '-created_at')[:limit])


def create_medical_record(data: dict, *, author: Optional[User] = None) -> MedicalRecord:
    return MedicalRecord.objects.create(
        patient=data['patientId'],
        record_type=data['recordType'],
        title=data['title'],
        content=data['content'],
        record_date=data['recordDate'],
        attachments=data.get('attachments', []),
        is_confidential=data.get('isConfidential', False),
        tags=data.get('tags', []),
        related_appointment=data.get('relatedAppointmentId'),
        author=author,
    )
