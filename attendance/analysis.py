"""
Dashboard analysis for one stored batch: gender and defaulter breakdowns plus
ranked attendance insights.
"""

from .store import get_store

TOP_STUDENTS = 5
NOT_AVAILABLE = {'name': 'N/A', 'percentage': 0}


def normalize_gender(value):
    token = str(value or '').strip().lower()
    if token in ('male', 'female'):
        return token
    return 'unspecified'


def gender_counts(records):
    counts = {'male': 0, 'female': 0, 'unspecified': 0}
    for record in records:
        counts[normalize_gender(record.get('gender'))] += 1
    return counts


def _student_percentage(record):
    return {'name': record['name'], 'percentage': record['attendance_percentage']}


def _extreme(record):
    """Highest or lowest student; blank names and missing records read N/A."""
    if record is None:
        return dict(NOT_AVAILABLE)
    return {
        'name': record.get('name') or 'N/A',
        'percentage': record.get('attendance_percentage') or 0,
    }


def build_insights(batch, records):
    # sorted() is stable: ties keep upload order
    ranked = sorted(records, key=lambda r: r['attendance_percentage'], reverse=True)
    return {
        'averageAttendance': batch['average_attendance'],
        'highestAttendance': _extreme(ranked[0] if ranked else None),
        'lowestAttendance': _extreme(ranked[-1] if ranked else None),
        'topStudents': [_student_percentage(r) for r in ranked[:TOP_STUDENTS]],
    }


def analyze(batch_id, store=None):
    """
    Build the dashboard analysis for a batch.

    Raises BatchNotFound when the batch does not exist.
    """
    store = store or get_store()
    batch = store.get_batch(batch_id)
    records = store.get_records(batch_id)

    defaulters = [r for r in records if r['is_defaulter']]
    defaulter_stats = gender_counts(defaulters)
    defaulter_stats['total'] = len(defaulters)

    return {
        'batch': batch,
        'records': records,
        'genderStats': gender_counts(records),
        'defaulterStats': defaulter_stats,
        'insights': build_insights(batch, records),
    }
