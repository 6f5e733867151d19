from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from attendance.models import AttendanceRecord, ScanHistory, UploadBatch

pytestmark = pytest.mark.django_db


def test_import_attendance(tmp_path, make_workbook):
    path = tmp_path / 'physics.xlsx'
    path.write_bytes(make_workbook([
        ['101', 'A', 'Male', 28, 30, 93.33, 'a@student.edu', 'a.parent@email.com'],
        ['102', 'B', 'Female', 20, 30, 66.67, 'b@student.edu', 'b.parent@email.com'],
    ]))
    out = StringIO()

    call_command('import_attendance', str(path), '--class-name', 'Physics', '--uploaded-by', 'Ms. Rao', stdout=out)

    batch = UploadBatch.objects.get()
    assert batch.class_name == 'Physics'
    assert batch.uploaded_by == 'Ms. Rao'
    assert batch.total_defaulters == 1
    assert AttendanceRecord.objects.filter(batch=batch).count() == 2
    assert ScanHistory.objects.get().defaulter_count == 1
    assert f"Imported batch {batch.pk} (Physics)" in out.getvalue()


def test_import_csv_uses_default_class(tmp_path):
    path = tmp_path / 'attendance.csv'
    path.write_text(
        "Roll Number,Name,Gender,Attendance Percentage,Student Email,Parent Email\n"
        "1,Solo,Male,50,solo@student.edu,solo.parent@email.com\n"
    )

    call_command('import_attendance', str(path), stdout=StringIO())

    batch = UploadBatch.objects.get()
    assert batch.class_name == 'Default Class'
    assert batch.uploaded_by == 'Teacher'


def test_rows_missing_required_fields(tmp_path):
    path = tmp_path / 'attendance.csv'
    path.write_text(
        "Roll Number,Name,Gender,Attendance Percentage,Student Email,Parent Email\n"
        "1,Solo,Male,50,,\n"
    )

    with pytest.raises(CommandError, match=r'missing required fields \(rows: 2\)'):
        call_command('import_attendance', str(path))

    assert not UploadBatch.objects.exists()


def test_missing_file(tmp_path):
    with pytest.raises(CommandError, match='File not found'):
        call_command('import_attendance', str(tmp_path / 'nope.xlsx'))


def test_empty_sheet(tmp_path, make_workbook):
    path = tmp_path / 'empty.xlsx'
    path.write_bytes(make_workbook([]))

    with pytest.raises(CommandError, match='No attendance records'):
        call_command('import_attendance', str(path))

    assert not UploadBatch.objects.exists()


def test_unreadable_sheet(tmp_path):
    path = tmp_path / 'broken.xlsx'
    path.write_bytes(b'not a workbook')

    with pytest.raises(CommandError):
        call_command('import_attendance', str(path))
