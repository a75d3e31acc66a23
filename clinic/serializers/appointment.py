from datetime import datetime

from rest_framework import serializers

from clinic.models import Appointment, Patient, User

from .fields import CaseFoldedChoiceField, CleanCharField, uuid_ref


class AppointmentCreateSerializer(serializers.Serializer):
    patientId = uuid_ref(Patient.objects.all())
    doctorId = serializers.PrimaryKeyRelatedField(queryset=User.objects.filter(is_active=True))
    appointmentDate = serializers.DateField()
    appointmentTime = serializers.RegexField(
        r'^([01]\d|2[0-3]):[0-5]\d$', error_messages={'invalid': 'Invalid time format (HH:MM)'}
    )
    durationMinutes = serializers.IntegerField(required=False, min_value=15, max_value=480, default=60)
    type = CaseFoldedChoiceField(choices=Appointment.TYPE_CHOICES)
    status = CaseFoldedChoiceField(choices=Appointment.STATUS_CHOICES, required=False, default='SCHEDULED')
    location = CleanCharField(required=False, allow_blank=True, max_length=100)
    roomNumber = CleanCharField(required=False, allow_blank=True, max_length=20)
    notes = CleanCharField(required=False, allow_blank=True, max_length=1000)
    preparationInstructions = CleanCharField(required=False, allow_blank=True, max_length=1000)

    def validate_appointmentTime(self, v):
        return datetime.strptime(v, '%H:%M').time()


class AppointmentRangeQuerySerializer(serializers.Serializer):
    startDate = serializers.DateField()
    endDate = serializers.DateField()
    doctorId = serializers.IntegerField(required=False, min_value=1)

    def validate(self, attrs):
        if attrs['endDate'] < attrs['startDate']:
            raise serializers.ValidationError({'endDate': 'End date precedes start date'})
        return attrs
