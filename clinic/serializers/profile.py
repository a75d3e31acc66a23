from rest_framework import serializers

from .fields import CleanCharField


class ProfileUpdateSerializer(serializers.Serializer):
    """Allow-list for self-service profile edits.

    Fields not declared here (role, permissions, email, ...) are dropped
    silently by DRF and can never reach the user row.
    """
    firstName = CleanCharField(required=False, max_length=150)
    lastName = CleanCharField(required=False, max_length=150)
    phone = serializers.RegexField(r'^\+?[0-9 ()-]{5,32}$', required=False, allow_blank=True, max_length=32)
    specialization = CleanCharField(required=False, allow_blank=True, max_length=100)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError('No valid fields to update')
        return attrs
