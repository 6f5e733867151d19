import io

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from openpyxl import Workbook

from attendance.exceptions import SpreadsheetParseError
from attendance.parsers import find_incomplete_rows, parse_attendance_file

FULL_ROW = ['101', 'John Doe', 'Male', 28, 30, 93.33, 'john.doe@student.edu', 'parent.john@email.com']


def upload(name, content):
    return SimpleUploadedFile(name, content)


def test_parses_template_rows(make_workbook):
    content = make_workbook([
        FULL_ROW,
        ['102', 'Jane Smith', 'Female', 20, 30, 66.67, 'jane.smith@student.edu', 'parent.jane@email.com'],
    ])

    rows = parse_attendance_file(upload('attendance.xlsx', content))

    assert len(rows) == 2
    assert rows[0].roll_number == '101'
    assert rows[0].attendance_days == 28
    assert rows[0].attendance_percentage == 93.33
    assert rows[1].gender == 'Female'
    assert rows[1].parent_email == 'parent.jane@email.com'


def test_blank_cells_take_policy_defaults(make_workbook):
    content = make_workbook([[101, 'Only Name', None, None, None, None, None, None]])

    row = parse_attendance_file(upload('attendance.xlsx', content))[0]

    assert row.roll_number == '101'
    assert row.gender == ''
    assert row.attendance_days == 0
    assert row.total_days == 30
    assert row.attendance_percentage == 0
    assert row.student_email == ''


def test_missing_columns_take_defaults(make_workbook):
    content = make_workbook([['7', 'Short', 80]], headers=['Roll Number', 'Name', 'Attendance Percentage'])

    row = parse_attendance_file(upload('attendance.xlsx', content))[0]

    assert row.attendance_percentage == 80
    assert row.total_days == 30
    assert row.parent_email == ''


def test_reads_first_sheet_by_position():
    wb = Workbook()
    first = wb.active
    first.append(['Roll Number', 'Name', 'Attendance Percentage'])
    first.append(['1', 'First Sheet', 90])
    second = wb.create_sheet('Other')
    second.append(['Roll Number', 'Name', 'Attendance Percentage'])
    second.append(['2', 'Second Sheet', 10])
    wb.active = 1
    buffer = io.BytesIO()
    wb.save(buffer)

    rows = parse_attendance_file(upload('attendance.xlsx', buffer.getvalue()))

    assert [r.name for r in rows] == ['First Sheet']


def test_empty_sheet_gives_no_rows(make_workbook):
    assert parse_attendance_file(upload('empty.xlsx', make_workbook([], headers=None))) == []
    assert parse_attendance_file(upload('headers.xlsx', make_workbook([]))) == []


def test_blank_rows_are_skipped(make_workbook):
    content = make_workbook([FULL_ROW, [None] * 8, FULL_ROW])

    assert len(parse_attendance_file(upload('attendance.xlsx', content))) == 2


def test_csv_upload():
    content = (
        "Roll Number,Name,Gender,Attendance Days,Total Days,Attendance Percentage,Student Email,Parent Email\n"
        "101, John Doe ,Male,28,30,93.33,john@student.edu,parent@email.com\n"
        "102,Jane Smith,Female,,,,,\n"
    ).encode('utf-8-sig')

    rows = parse_attendance_file(upload('attendance.csv', content))

    assert rows[0].name == 'John Doe'
    assert rows[0].attendance_percentage == 93.33
    assert rows[1].total_days == 30
    assert rows[1].attendance_percentage == 0


def test_undecodable_file_raises_with_cause():
    with pytest.raises(SpreadsheetParseError) as excinfo:
        parse_attendance_file(upload('attendance.xlsx', b'this is not a workbook'))

    assert excinfo.value.__cause__ is not None


def test_invalid_cell_raises(make_workbook):
    content = make_workbook([['101', 'Bad', 'Male', 28, 30, 'ninety', 'a@b.c', 'p@b.c']])

    with pytest.raises(SpreadsheetParseError):
        parse_attendance_file(upload('attendance.xlsx', content))


def test_unsupported_extension():
    with pytest.raises(SpreadsheetParseError):
        parse_attendance_file(upload('attendance.pdf', b'%PDF-1.4'))


def test_latin1_csv_is_decoded():
    content = (
        "Roll Number,Name,Attendance Percentage\n"
        "1,Jos\xe9 Mart\xednez,88\n"
    ).encode('latin-1')

    rows = parse_attendance_file(upload('attendance.csv', content))

    assert rows[0].name == 'José Martínez'


def test_find_incomplete_rows(make_workbook):
    content = make_workbook([
        FULL_ROW,
        ['102', 'No Emails', 'Female', 20, 30, 66.67, None, None],
        FULL_ROW,
        [None, 'No Roll', 'Male', 20, 30, 66.67, 'x@student.edu', 'x.parent@email.com'],
    ])

    rows = parse_attendance_file(upload('attendance.xlsx', content))

    assert find_incomplete_rows(rows) == [3, 5]
