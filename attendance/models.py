from django.db import models
from django.utils import timezone


class UploadBatch(models.Model):
    class_name = models.CharField(max_length=255, default='')
    total_students = models.PositiveIntegerField(default=0)
    total_defaulters = models.PositiveIntegerField(default=0)
    average_attendance = models.FloatField(default=0)
    uploaded_by = models.CharField(max_length=255, blank=True, default='')
    uploaded_at = models.DateTimeField(default=timezone.now)
    # Attached once after the batch's records are inserted.
    record_ids = models.JSONField(default=list, blank=True)

    class Meta:
        ordering = ['-uploaded_at', '-id']
        indexes = [
            models.Index(fields=['uploaded_at'], name='attendance_batch_uploaded_idx'),
        ]

    def __str__(self):
        return f"{self.class_name} - {self.uploaded_at:%Y-%m-%d %H:%M} ({self.total_defaulters}/{self.total_students})"


class AttendanceRecord(models.Model):
    batch = models.ForeignKey(UploadBatch, on_delete=models.CASCADE, related_name='records')
    roll_number = models.CharField(max_length=64, blank=True, default='')
    name = models.CharField(max_length=255, blank=True, default='')
    gender = models.CharField(max_length=32, blank=True, default='')
    attendance_days = models.IntegerField(default=0)
    total_days = models.IntegerField(default=30)
    attendance_percentage = models.FloatField(default=0)
    student_email = models.CharField(max_length=255, blank=True, default='')
    parent_email = models.CharField(max_length=255, blank=True, default='')
    is_defaulter = models.BooleanField(default=False)
    class_name = models.CharField(max_length=255, blank=True, default='')
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['id']
        indexes = [
            models.Index(fields=['batch', 'is_defaulter'], name='attendance_rec_defaulter_idx'),
        ]

    def __str__(self):
        return f"{self.roll_number} {self.name} - {self.attendance_percentage:.2f}%"


class ScanHistory(models.Model):
    batch = models.ForeignKey(UploadBatch, on_delete=models.CASCADE, related_name='history')
    defaulter_count = models.PositiveIntegerField(default=0)
    defaulter_ids = models.JSONField(default=list, blank=True)
    uploaded_at = models.DateTimeField(default=timezone.now)
    uploaded_by = models.CharField(max_length=255, blank=True, default='')

    class Meta:
        ordering = ['-uploaded_at', '-id']
        verbose_name_plural = 'scan history'

    def __str__(self):
        return f"Scan of batch {self.batch_id} - {self.defaulter_count} defaulters"
