from django.contrib import admin
from .models import AttendanceRecord, ScanHistory, UploadBatch


class AttendanceRecordInline(admin.TabularInline):
    model = AttendanceRecord
    extra = 0
    fields = ['roll_number', 'name', 'gender', 'attendance_percentage', 'is_defaulter']
    readonly_fields = fields
    can_delete = False


@admin.register(UploadBatch)
class UploadBatchAdmin(admin.ModelAdmin):
    list_display = ['id', 'class_name', 'total_students', 'total_defaulters', 'average_attendance', 'uploaded_at']
    list_filter = ['class_name', 'uploaded_at']
    search_fields = ['class_name']
    readonly_fields = ['record_ids']
    inlines = [AttendanceRecordInline]


@admin.register(AttendanceRecord)
class AttendanceRecordAdmin(admin.ModelAdmin):
    list_display = ['id', 'batch', 'roll_number', 'name', 'gender', 'attendance_percentage', 'is_defaulter']
    list_filter = ['is_defaulter', 'gender']
    search_fields = ['roll_number', 'name', 'student_email']


@admin.register(ScanHistory)
class ScanHistoryAdmin(admin.ModelAdmin):
    list_display = ['id', 'batch', 'defaulter_count', 'uploaded_by', 'uploaded_at']
    list_filter = ['uploaded_at']
