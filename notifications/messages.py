from django.template.loader import render_to_string

from attendance.classification import get_threshold


class EmailTemplates:
    """Pre-defined email templates"""

    @staticmethod
    def low_attendance(defaulter, threshold=None):
        """Return (subject, text_body, html_body) for a defaulter alert."""
        context = {
            'name': defaulter.name,
            'roll_number': defaulter.roll_number,
            'percentage': defaulter.attendance_percentage,
            'class_name': defaulter.class_name,
            'threshold': threshold if threshold is not None else get_threshold(),
        }
        subject = "Attendance Alert - Low Attendance Warning"
        text_body = render_to_string('notifications/low_attendance.txt', context)
        html_body = render_to_string('notifications/low_attendance.html', context)
        return subject, text_body, html_body
