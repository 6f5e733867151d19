import io
import re

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from .parsers import TEMPLATE_COLUMNS

XLSX_CONTENT_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

COLUMN_WIDTHS = [12, 20, 10, 16, 12, 22, 30, 30]

SAMPLE_ROWS = [
    ['101', 'John Doe', 'Male', 28, 30, 93.33, 'john.doe@student.edu', 'parent.john@email.com'],
    ['102', 'Jane Smith', 'Female', 20, 30, 66.67, 'jane.smith@student.edu', 'parent.jane@email.com'],
]

HEADER_FILL = PatternFill("solid", start_color="D3D3D3")
DEFAULTER_FILL = PatternFill("solid", start_color="F8D7DA")
HEADER_FONT = Font(bold=True, size=12)
THIN = Side(style="thin")
BORDER = Border(left=THIN, right=THIN, top=THIN, bottom=THIN)


def _write_sheet(ws, headers, rows, widths):
    ws.append(headers)
    for row in rows:
        ws.append(row)

    for col_idx in range(1, len(headers) + 1):
        cell = ws.cell(row=1, column=col_idx)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal="center", vertical="center")
        cell.border = BORDER

    for row in ws.iter_rows(min_row=2, max_row=ws.max_row, max_col=len(headers)):
        for cell in row:
            cell.border = BORDER

    for col_idx, width in enumerate(widths, start=1):
        ws.column_dimensions[get_column_letter(col_idx)].width = width


def _to_bytes(wb):
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def build_template_workbook():
    """Blank upload template with two sample rows."""
    wb = Workbook()
    ws = wb.active
    ws.title = 'Attendance'
    _write_sheet(ws, TEMPLATE_COLUMNS, SAMPLE_ROWS, COLUMN_WIDTHS)
    return _to_bytes(wb)


def build_batch_workbook(batch, records):
    """Records of one batch in template column order, defaulters highlighted."""
    wb = Workbook()
    ws = wb.active
    # Excel sheet titles: max 31 chars, none of []:*?/\
    ws.title = re.sub(r"[\[\]:*?/\\]", "", batch.get("class_name") or "")[:31] or "Attendance"

    headers = TEMPLATE_COLUMNS + ['Defaulter']
    rows = [
        [
            r['roll_number'],
            r['name'],
            r['gender'],
            r['attendance_days'],
            r['total_days'],
            r['attendance_percentage'],
            r['student_email'],
            r['parent_email'],
            'Yes' if r['is_defaulter'] else 'No',
        ]
        for r in records
    ]
    _write_sheet(ws, headers, rows, COLUMN_WIDTHS + [12])

    for row_idx, record in enumerate(records, start=2):
        if record['is_defaulter']:
            for col_idx in range(1, len(headers) + 1):
                ws.cell(row=row_idx, column=col_idx).fill = DEFAULTER_FILL

    return _to_bytes(wb)
