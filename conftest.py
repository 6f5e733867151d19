import io

import pytest
from openpyxl import Workbook
from rest_framework.test import APIClient

from attendance.classification import AttendanceRow
from attendance.parsers import TEMPLATE_COLUMNS


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def sample_rows():
    return [
        AttendanceRow(
            roll_number='101', name='A', gender='Male', attendance_days=28, total_days=30,
            attendance_percentage=93.33, student_email='a@student.edu', parent_email='a.parent@email.com',
        ),
        AttendanceRow(
            roll_number='102', name='B', gender='Female', attendance_days=20, total_days=30,
            attendance_percentage=66.67, student_email='b@student.edu', parent_email='b.parent@email.com',
        ),
    ]


@pytest.fixture(params=['database', 'memory'])
def store(request):
    """Every store test runs against both backends."""
    from attendance.store import DjangoBatchStore, InMemoryBatchStore

    if request.param == 'database':
        request.getfixturevalue('db')
        return DjangoBatchStore()
    return InMemoryBatchStore()


@pytest.fixture
def memory_store(settings, monkeypatch):
    from attendance import store as store_module

    settings.ATTENDANCE_STORE = 'memory'
    monkeypatch.setattr(store_module, '_memory_store', None)
    return store_module.get_store()


@pytest.fixture
def make_workbook():
    """Build an .xlsx upload in memory from header and data rows."""
    def _make(rows, headers=TEMPLATE_COLUMNS):
        wb = Workbook()
        ws = wb.active
        ws.title = 'Attendance'
        if headers is not None:
            ws.append(list(headers))
        for row in rows:
            ws.append(list(row))
        buffer = io.BytesIO()
        wb.save(buffer)
        return buffer.getvalue()
    return _make
