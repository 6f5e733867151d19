import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='UploadBatch',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('class_name', models.CharField(default='', max_length=255)),
                ('total_students', models.PositiveIntegerField(default=0)),
                ('total_defaulters', models.PositiveIntegerField(default=0)),
                ('average_attendance', models.FloatField(default=0)),
                ('uploaded_by', models.CharField(blank=True, default='', max_length=255)),
                ('uploaded_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('record_ids', models.JSONField(blank=True, default=list)),
            ],
            options={
                'ordering': ['-uploaded_at', '-id'],
                'indexes': [models.Index(fields=['uploaded_at'], name='attendance_batch_uploaded_idx')],
            },
        ),
        migrations.CreateModel(
            name='AttendanceRecord',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('roll_number', models.CharField(blank=True, default='', max_length=64)),
                ('name', models.CharField(blank=True, default='', max_length=255)),
                ('gender', models.CharField(blank=True, default='', max_length=32)),
                ('attendance_days', models.IntegerField(default=0)),
                ('total_days', models.IntegerField(default=30)),
                ('attendance_percentage', models.FloatField(default=0)),
                ('student_email', models.CharField(blank=True, default='', max_length=255)),
                ('parent_email', models.CharField(blank=True, default='', max_length=255)),
                ('is_defaulter', models.BooleanField(default=False)),
                ('class_name', models.CharField(blank=True, default='', max_length=255)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('batch', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='records', to='attendance.uploadbatch')),
            ],
            options={
                'ordering': ['id'],
                'indexes': [models.Index(fields=['batch', 'is_defaulter'], name='attendance_rec_defaulter_idx')],
            },
        ),
        migrations.CreateModel(
            name='ScanHistory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('defaulter_count', models.PositiveIntegerField(default=0)),
                ('defaulter_ids', models.JSONField(blank=True, default=list)),
                ('uploaded_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('uploaded_by', models.CharField(blank=True, default='', max_length=255)),
                ('batch', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='history', to='attendance.uploadbatch')),
            ],
            options={
                'verbose_name_plural': 'scan history',
                'ordering': ['-uploaded_at', '-id'],
            },
        ),
    ]
