import bleach
from rest_framework import serializers


class CleanCharField(serializers.CharField):
    """CharField that strips markup with bleach before storage."""

    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        return bleach.clean(value, tags=[], strip=True).strip()


class CaseFoldedChoiceField(serializers.ChoiceField):
    """ChoiceField accepting any case and '-'/' ' for '_' ("follow-up" -> FOLLOW_UP)."""

    def to_internal_value(self, data):
        if isinstance(data, str):
            data = data.strip().upper().replace('-', '_').replace(' ', '_')
        return super().to_internal_value(data)


def uuid_ref(queryset, **kwargs):
    """Related-object field addressed by UUID; malformed ids are field errors."""
    return serializers.PrimaryKeyRelatedField(
        queryset=queryset, pk_field=serializers.UUIDField(), **kwargs
    )
