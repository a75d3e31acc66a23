from rest_framework import serializers

from clinic.models import AuditLogEntry


class AuditLogQuerySerializer(serializers.Serializer):
    userId = serializers.CharField(required=False, max_length=64)
    patientId = serializers.CharField(required=False, max_length=64)
    action = serializers.CharField(required=False, max_length=64)
    outcome = serializers.ChoiceField(choices=AuditLogEntry.OUTCOME_CHOICES, required=False)
    startDate = serializers.DateTimeField(required=False)
    endDate = serializers.DateTimeField(required=False)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=500, default=100)
    offset = serializers.IntegerField(required=False, min_value=0, default=0)


class AuditMetricsQuerySerializer(serializers.Serializer):
    startDate = serializers.DateTimeField(required=False)
    endDate = serializers.DateTimeField(required=False)
