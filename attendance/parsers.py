"""
Spreadsheet parsing for attendance uploads.

Reads the first sheet of an .xlsx/.xlsm workbook (or a .csv file) whose
header row uses the template columns:

    Roll Number, Name, Gender, Attendance Days, Total Days,
    Attendance Percentage, Student Email, Parent Email

Every cell goes through ROW_POLICY (header -> payload key, default when the
cell is blank) and then through AttendanceRowSerializer, so uploads from a
file and uploads from the dashboard JSON share one validation boundary.
"""

import csv
import io
import logging

from .classification import AttendanceRow
from .exceptions import SpreadsheetParseError
from .serializers import AttendanceRowSerializer

logger = logging.getLogger(__name__)

TEMPLATE_COLUMNS = [
    'Roll Number',
    'Name',
    'Gender',
    'Attendance Days',
    'Total Days',
    'Attendance Percentage',
    'Student Email',
    'Parent Email',
]

# normalized header -> (payload key, default for a blank cell)
ROW_POLICY = {
    'roll_number': ('rollNumber', ''),
    'name': ('name', ''),
    'gender': ('gender', ''),
    'attendance_days': ('attendanceDays', 0),
    'total_days': ('totalDays', 30),
    'attendance_percentage': ('attendancePercentage', 0),
    'student_email': ('studentEmail', ''),
    'parent_email': ('parentEmail', ''),
}

EXCEL_EXTENSIONS = ('.xlsx', '.xlsm')

# Every sheet row must fill these in; the numeric columns may stay blank.
REQUIRED_FIELDS = ('roll_number', 'name', 'gender', 'student_email', 'parent_email')


def normalize_header(header):
    return str(header if header is not None else '').strip().lower().replace(' ', '_')


def _is_blank(value):
    return value is None or (isinstance(value, str) and not value.strip())


def apply_row_policy(headers, values):
    """Map one sheet row onto the upload payload keys, filling defaults."""
    cells = dict(zip(headers, values))
    payload = {}
    for header, (key, default) in ROW_POLICY.items():
        value = cells.get(header)
        if _is_blank(value):
            value = default
        elif isinstance(value, str):
            value = value.strip()
        payload[key] = value
    return payload


def _rows_from_table(table):
    """Turn an iterable of raw rows (first row = headers) into payload dicts."""
    rows_iter = iter(table)
    try:
        headers = next(rows_iter)
    except StopIteration:
        return []
    headers = [normalize_header(h) for h in headers]

    payloads = []
    for values in rows_iter:
        values = list(values)
        if all(_is_blank(v) for v in values):
            continue
        payloads.append(apply_row_policy(headers, values))
    return payloads


def _read_xlsx(uploaded_file):
    from openpyxl import load_workbook

    try:
        wb = load_workbook(uploaded_file, read_only=True, data_only=True)
    except Exception as e:
        raise SpreadsheetParseError(f"Failed to open Excel file: {e}") from e

    try:
        if not wb.worksheets:
            return []
        ws = wb.worksheets[0]
        return _rows_from_table(ws.iter_rows(values_only=True))
    finally:
        wb.close()


def _read_csv(uploaded_file):
    content = uploaded_file.read()
    if isinstance(content, str):
        text = content
    else:
        # utf-8-sig also reads plain utf-8; latin-1 decodes any byte string
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError:
            text = content.decode("latin-1")

    try:
        return _rows_from_table(csv.reader(io.StringIO(text)))
    except csv.Error as e:
        raise SpreadsheetParseError(f"Failed to read CSV file: {e}") from e


def parse_attendance_file(uploaded_file, filename=None):
    """
    Parse an uploaded attendance sheet into AttendanceRow objects.

    Returns an empty list for a sheet without data rows; deciding that an
    empty upload is invalid is left to the caller. Raises
    SpreadsheetParseError if the file cannot be read or a cell fails
    validation. Nothing is returned on failure.
    """
    name = (filename or getattr(uploaded_file, 'name', '') or '').lower()
    if name.endswith('.csv'):
        payloads = _read_csv(uploaded_file)
    elif name.endswith(EXCEL_EXTENSIONS) or not name:
        payloads = _read_xlsx(uploaded_file)
    else:
        raise SpreadsheetParseError(f"Unsupported file type: {name}. Use XLSX or CSV.")

    serializer = AttendanceRowSerializer(data=payloads, many=True)
    if not serializer.is_valid():
        errors = [
            {"row": idx, "error": err}
            for idx, err in enumerate(serializer.errors, start=2)
            if err
        ]
        raise SpreadsheetParseError(f"Invalid attendance rows: {errors}")

    rows = [AttendanceRow(**data) for data in serializer.validated_data]
    logger.info(f"Parsed {len(rows)} attendance rows from {name or 'upload'}")
    return rows


def find_incomplete_rows(rows):
    """Rows missing a required field, numbered from 2 like the rows under a header."""
    return [
        idx for idx, row in enumerate(rows, start=2)
        if any(not getattr(row, field) for field in REQUIRED_FIELDS)
    ]
