from rest_framework import serializers

from clinic.models import Appointment, MedicalRecord, Patient

from .fields import CaseFoldedChoiceField, CleanCharField, uuid_ref


class MedicalRecordCreateSerializer(serializers.Serializer):
    patientId = uuid_ref(Patient.objects.all())
    recordType = CaseFoldedChoiceField(choices=MedicalRecord.RECORD_TYPE_CHOICES)
    title = CleanCharField(max_length=200)
    content = CleanCharField(max_length=20000)
    recordDate = serializers.DateField()
    attachments = serializers.ListField(child=serializers.URLField(), required=False, max_length=20)
    isConfidential = serializers.BooleanField(required=False, default=False)
    tags = serializers.ListField(child=CleanCharField(max_length=50), required=False, max_length=20)
    relatedAppointmentId = uuid_ref(Appointment.objects.all(), required=False, allow_null=True)

    def validate(self, attrs):
        appointment = attrs.get('relatedAppointmentId')
        if appointment and appointment.patient_id != attrs['patientId'].pk:
            raise serializers.ValidationError(
                {'relatedAppointmentId': 'Appointment belongs to a different patient'}
            )
        return attrs


class MedicalRecordListQuerySerializer(serializers.Serializer):
    patientId = serializers.UUIDField()
    limit = serializers.IntegerField(required=False, min_value=1, max_value=200, default=50)
