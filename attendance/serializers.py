from collections.abc import Mapping

from rest_framework import serializers

from .classification import AttendanceRow


class AttendanceRowSerializer(serializers.Serializer):
    """
    Validates one attendance row as sent by the dashboard (camelCase keys)
    and maps it onto an AttendanceRow. Missing, null or blank values fall
    back to the field default.
    """
    rollNumber = serializers.CharField(source='roll_number', default='', allow_blank=True)
    name = serializers.CharField(default='', allow_blank=True)
    gender = serializers.CharField(default='', allow_blank=True)
    attendanceDays = serializers.IntegerField(source='attendance_days', default=0)
    totalDays = serializers.IntegerField(source='total_days', default=30)
    attendancePercentage = serializers.FloatField(source='attendance_percentage', default=0.0)
    studentEmail = serializers.CharField(source='student_email', default='', allow_blank=True)
    parentEmail = serializers.CharField(source='parent_email', default='', allow_blank=True)

    def to_internal_value(self, data):
        if isinstance(data, Mapping):
            data = {
                k: v for k, v in data.items()
                if v is not None and not (isinstance(v, str) and not v.strip())
            }
        return super().to_internal_value(data)


class UploadSerializer(serializers.Serializer):
    records = AttendanceRowSerializer(many=True, allow_empty=False)
    className = serializers.CharField(source='class_name', allow_blank=True, allow_null=True, default='')

    def get_rows(self):
        return [AttendanceRow(**row) for row in self.validated_data['records']]


class UploadBatchSerializer(serializers.Serializer):
    """Batch summary as listed on the history page"""
    id = serializers.IntegerField()
    class_name = serializers.CharField()
    total_students = serializers.IntegerField()
    total_defaulters = serializers.IntegerField()
    average_attendance = serializers.FloatField()
    uploaded_at = serializers.DateTimeField()


class BatchDetailSerializer(UploadBatchSerializer):
    uploaded_by = serializers.CharField()
    record_ids = serializers.ListField(child=serializers.IntegerField())


class AttendanceRecordSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    batch_id = serializers.IntegerField()
    roll_number = serializers.CharField()
    name = serializers.CharField()
    gender = serializers.CharField()
    attendance_days = serializers.IntegerField()
    total_days = serializers.IntegerField()
    attendance_percentage = serializers.FloatField()
    student_email = serializers.CharField()
    parent_email = serializers.CharField()
    is_defaulter = serializers.BooleanField()
    class_name = serializers.CharField()
    created_at = serializers.DateTimeField()


class ScanHistorySerializer(serializers.Serializer):
    id = serializers.IntegerField()
    batch_id = serializers.IntegerField(allow_null=True)
    batch_class_name = serializers.CharField(allow_null=True)
    defaulter_count = serializers.IntegerField()
    uploaded_at = serializers.DateTimeField()


class StudentPercentageSerializer(serializers.Serializer):
    name = serializers.CharField()
    percentage = serializers.FloatField()


class InsightsSerializer(serializers.Serializer):
    averageAttendance = serializers.FloatField()
    highestAttendance = StudentPercentageSerializer()
    lowestAttendance = StudentPercentageSerializer()
    topStudents = StudentPercentageSerializer(many=True)


class AnalysisSerializer(serializers.Serializer):
    """Serializer for the dashboard analysis of one batch"""
    batch = BatchDetailSerializer()
    records = AttendanceRecordSerializer(many=True)
    genderStats = serializers.DictField(child=serializers.IntegerField())
    defaulterStats = serializers.DictField(child=serializers.IntegerField())
    insights = InsightsSerializer()
