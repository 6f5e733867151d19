from collections.abc import Mapping

from rest_framework import serializers

from .dispatcher import Defaulter


class DefaulterSerializer(serializers.Serializer):
    """One defaulter as selected on the dashboard; null values take the default."""
    roll_number = serializers.CharField(default='', allow_blank=True)
    name = serializers.CharField(default='', allow_blank=True)
    gender = serializers.CharField(default='', allow_blank=True)
    attendance_percentage = serializers.FloatField(default=0.0)
    student_email = serializers.CharField(default='', allow_blank=True)
    parent_email = serializers.CharField(default='', allow_blank=True)
    class_name = serializers.CharField(default='', allow_blank=True)

    def to_internal_value(self, data):
        if isinstance(data, Mapping):
            data = {k: v for k, v in data.items() if v is not None}
        return super().to_internal_value(data)


class SendEmailsSerializer(serializers.Serializer):
    defaulters = DefaulterSerializer(many=True)

    def get_defaulters(self):
        return [Defaulter(**item) for item in self.validated_data['defaulters']]
