"""
Appointment endpoints: date-range listing and booking.
"""
from __future__ import annotations

from rest_framework.decorators import api_view

from .. import pipeline
from ..models import Appointment
from ..permissions import APPOINTMENT_READ, APPOINTMENT_WRITE
from ..serializers.appointment import AppointmentCreateSerializer, AppointmentRangeQuerySerializer
from ..services.appointments import appointments_in_range, create_appointment
from ..services.profiles import local_user


def _serialize(appointment: Appointment) -> dict:
    return {
        'id': str(appointment.id),
        'patientId': str(appointment.patient_id),
        'doctorId': appointment.doctor_id,
        'appointmentDate': appointment.appointment_date.isoformat(),
        'appointmentTime': appointment.appointment_time.strftime('%H:%M'),
        'durationMinutes': appointment.duration_minutes,
        'type': appointment.type,
        'status': appointment.status,
        'location': appointment.location,
        'roomNumber': appointment.room_number,
        'notes': appointment.notes,
        'preparationInstructions': appointment.preparation_instructions,
        'createdById': appointment.created_by_id,
        'createdAt': appointment.created_at.isoformat() if appointment.created_at else None,
        'updatedAt': appointment.updated_at.isoformat() if appointment.updated_at else None,
    }


def _list_appointments(ctx):
    q = ctx.data
    appointments = appointments_in_range(q['startDate'], q['endDate'], q.get('doctorId'))
    ctx.message = f'Found {len(appointments)} appointments'
    ctx.details = {
        'startDate': q['startDate'].isoformat(),
        'endDate': q['endDate'].isoformat(),
        'doctorId': q.get('doctorId'),
        'resultCount': len(appointments),
    }
    return {'appointments': [_serialize(a) for a in appointments], 'count': len(appointments)}


def _create_appointment(ctx):
    appointment = create_appointment(ctx.data, created_by=local_user(ctx.identity))
    ctx.resource_id = str(appointment.id)
    ctx.patient_id = str(appointment.patient_id)
    ctx.message = 'Appointment created successfully'
    ctx.details = {
        'appointmentType': appointment.type,
        'appointmentDate': appointment.appointment_date.isoformat(),
        'doctorId': appointment.doctor_id,
    }
    return _serialize(appointment)


LIST_APPOINTMENTS = pipeline.Endpoint(
    action='appointment_list_view',
    resource_type='appointment',
    handler=_list_appointments,
    permissions=(APPOINTMENT_READ,),
    serializer=AppointmentRangeQuerySerializer,
    source='query',
    bucket='appointments',
    resource_id='multiple',
)

CREATE_APPOINTMENT = pipeline.Endpoint(
    action='appointment_create',
    resource_type='appointment',
    handler=_create_appointment,
    permissions=(APPOINTMENT_WRITE,),
    serializer=AppointmentCreateSerializer,
    bucket='appointments',
    success_status=201,
)


@api_view(['GET', 'POST'])
def appointments(request):
    if request.method == 'POST':
        return pipeline.run(CREATE_APPOINTMENT, request)
    return pipeline.run(LIST_APPOINTMENTS, request)
