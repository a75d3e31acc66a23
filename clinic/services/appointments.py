from datetime import date
from typing import Optional

from clinic.models import Appointment, User


def appointments_in_range(start: date, end: date, doctor_id: Optional[int] = None) -> list[Appointment]:
    qs = Appointment.objects.select_related('patient', 'doctor').filter(
        appointment_date__gte=start, appointment_date__lte=end
    )
    if doctor_id:
        qs = qs.filter(doctor_id=doctor_id)
    return list(qs.order_by('appointment_date', 'appointment_time'))


def create_appointment(data: dict, *, created_by: Optional[User] = None) -> Appointment:
    return Appointment.objects.create(
        patient=data['patientId'],
        doctor=data['doctorId'],
        appointment_date=data['appointmentDate'],
        appointment_time=data['appointmentTime'],
        duration_minutes=data.get('durationMinutes', 60),
        type=data['type'],
        status=data.get('status', 'SCHEDULED'),
        location=data.get('location', ''),
        room_number=data.get('roomNumber', ''),
        notes=data.get('notes', ''),
        preparation_instructions=data.get('preparationInstructions', ''),
        created_by=created_by,
    )
