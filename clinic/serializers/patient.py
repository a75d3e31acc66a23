from django.utils import timezone
from rest_framework import serializers

from clinic.models import Patient, User

from .fields import CaseFoldedChoiceField, CleanCharField


class PatientCreateSerializer(serializers.Serializer):
    firstName = CleanCharField(max_length=50)
    lastName = CleanCharField(max_length=50)
    email = serializers.EmailField(required=False, allow_blank=True)
    phone = serializers.RegexField(r'^\+?[0-9 ()-]{5,32}$', required=False, allow_blank=True, max_length=32)
    dateOfBirth = serializers.DateField()
    gender = CaseFoldedChoiceField(choices=Patient.GENDER_CHOICES)
    address = CleanCharField(required=False, allow_blank=True, max_length=500)
    emergencyContactName = CleanCharField(required=False, allow_blank=True, max_length=100)
    emergencyContactPhone = serializers.RegexField(
        r'^\+?[0-9 ()-]{5,32}$', required=False, allow_blank=True, max_length=32
    )
    medicalRecordNumber = serializers.RegexField(r'^[A-Za-z0-9-]{3,32}$', required=False, allow_blank=True)
    cancerType = CleanCharField(required=False, allow_blank=True, max_length=100)
    cancerStage = CaseFoldedChoiceField(choices=Patient.CANCER_STAGE_CHOICES, required=False, allow_blank=True)
    diagnosisDate = serializers.DateField(required=False, allow_null=True)
    treatmentStatus = CaseFoldedChoiceField(choices=Patient.TREATMENT_STATUS_CHOICES, required=False, default='ACTIVE')
    assignedDoctorId = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.filter(is_active=True), required=False, allow_null=True
    )
    medicalHistory = CleanCharField(required=False, allow_blank=True, max_length=5000)
    allergies = serializers.ListField(child=CleanCharField(max_length=100), required=False, max_length=50)
    currentMedications = serializers.ListField(child=CleanCharField(max_length=100), required=False, max_length=50)
    familyHistory = CleanCharField(required=False, allow_blank=True, max_length=2000)
    insuranceProvider = CleanCharField(required=False, allow_blank=True, max_length=100)
    insurancePolicyNumber = CleanCharField(required=False, allow_blank=True, max_length=64)
    lastVisit = serializers.DateTimeField(required=False, allow_null=True)

    def validate_dateOfBirth(self, v):
        if v > timezone.localdate():
            raise serializers.ValidationError('Date of birth cannot be in the future')
        return v

    def validate(self, attrs):
        dob = attrs.get('dateOfBirth')
        diagnosed = attrs.get('diagnosisDate')
        if dob and diagnosed and diagnosed < dob:
            raise serializers.ValidationError({'diagnosisDate': 'Diagnosis date precedes date of birth'})
        return attrs


class PatientUpdateSerializer(PatientCreateSerializer):
    """Same shape as create, every field optional."""

    def __init__(self, *args, **kwargs):
        kwargs.setdefault('partial', True)
        super().__init__(*args, **kwargs)

    def validate(self, attrs):
        attrs = super().validate(attrs)
        if not attrs:
            raise serializers.ValidationError('No valid fields to update')
        return attrs


class PatientListQuerySerializer(serializers.Serializer):
    search = serializers.CharField(required=False, allow_blank=True, max_length=100)
    cancerType = serializers.CharField(required=False, allow_blank=True, max_length=100)
    cancerStage = CaseFoldedChoiceField(choices=Patient.CANCER_STAGE_CHOICES, required=False)
    treatmentStatus = CaseFoldedChoiceField(choices=Patient.TREATMENT_STATUS_CHOICES, required=False)
    assignedDoctorId = serializers.IntegerField(required=False, min_value=1)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=100, default=50)
    offset = serializers.IntegerField(required=False, min_value=0, default=0)
