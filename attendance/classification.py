"""
Defaulter classification.

A student is a defaulter when their attendance percentage is strictly below
the threshold (75% by default). The percentage is taken as supplied by the
sheet; it is never recomputed from the day counts.
"""

from dataclasses import dataclass, asdict
from typing import Iterable, List, Tuple

from django.conf import settings

DEFAULT_THRESHOLD = 75.0


@dataclass(frozen=True)
class AttendanceRow:
    roll_number: str = ''
    name: str = ''
    gender: str = ''
    attendance_days: int = 0
    total_days: int = 30
    attendance_percentage: float = 0.0
    student_email: str = ''
    parent_email: str = ''


@dataclass(frozen=True)
class ClassifiedRecord:
    row: AttendanceRow
    is_defaulter: bool
    class_name: str

    def as_fields(self):
        """Flat field dict, ready to be stored."""
        fields = asdict(self.row)
        fields['is_defaulter'] = self.is_defaulter
        fields['class_name'] = self.class_name
        return fields


@dataclass(frozen=True)
class BatchSummary:
    class_name: str
    total_students: int
    total_defaulters: int
    average_attendance: float
    uploaded_by: str = ''


def get_threshold():
    return float(getattr(settings, 'DEFAULTER_THRESHOLD', DEFAULT_THRESHOLD))


def is_defaulter(percentage, threshold=None):
    if threshold is None:
        threshold = get_threshold()
    return percentage < threshold


def resolve_class_name(class_name):
    class_name = (class_name or '').strip()
    return class_name or getattr(settings, 'DEFAULT_CLASS_NAME', 'Default Class')


def classify(
    rows: Iterable[AttendanceRow],
    class_name: str = '',
    uploaded_by: str = '',
    threshold: float = None,
) -> Tuple[BatchSummary, List[ClassifiedRecord]]:
    """
    Classify every row and aggregate the batch summary.

    Raises ZeroDivisionError for an empty row set; uploads must be rejected
    before they get here.
    """
    rows = list(rows)
    if threshold is None:
        threshold = get_threshold()
    class_name = resolve_class_name(class_name)

    records = [
        ClassifiedRecord(
            row=row,
            is_defaulter=is_defaulter(row.attendance_percentage, threshold),
            class_name=class_name,
        )
        for row in rows
    ]

    total_defaulters = sum(1 for r in records if r.is_defaulter)
    average_attendance = sum(row.attendance_percentage for row in rows) / len(rows)

    summary = BatchSummary(
        class_name=class_name,
        total_students=len(rows),
        total_defaulters=total_defaulters,
        average_attendance=average_attendance,
        uploaded_by=uploaded_by or getattr(settings, 'DEFAULT_UPLOADED_BY', 'Teacher'),
    )
    return summary, records
