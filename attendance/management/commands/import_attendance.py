from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from attendance.classification import classify
from attendance.exceptions import SpreadsheetParseError, StorageError
from attendance.parsers import find_incomplete_rows, parse_attendance_file
from attendance.store import get_store


class Command(BaseCommand):
    help = "Import an attendance spreadsheet (.xlsx or .csv), classify defaulters and store it as a new batch"

    def add_arguments(self, parser):
        parser.add_argument('path', type=str, help='Path to the attendance spreadsheet')
        parser.add_argument('--class-name', type=str, default='', help='Class name for the batch (default: "Default Class")')
        parser.add_argument('--uploaded-by', type=str, default='', help='Name recorded as the uploader')

    def handle(self, *args, **options):
        path = Path(options['path'])
        if not path.is_file():
            raise CommandError(f"File not found: {path}")

        try:
            with path.open('rb') as f:
                rows = parse_attendance_file(f, filename=path.name)
        except SpreadsheetParseError as e:
            raise CommandError(str(e))

        if not rows:
            raise CommandError(f"No attendance records found in {path.name}")

        incomplete = find_incomplete_rows(rows)
        if incomplete:
            raise CommandError(f"Some records have missing required fields (rows: {', '.join(map(str, incomplete))})")

        summary, records = classify(rows, options['class_name'], uploaded_by=options['uploaded_by'])
        try:
            batch_id = get_store().create_batch(summary, records)
        except StorageError as e:
            raise CommandError(f"Failed to store batch: {e}")

        self.stdout.write(self.style.SUCCESS(
            f"Imported batch {batch_id} ({summary.class_name}): {summary.total_students} students, "
            f"{summary.total_defaulters} defaulters, average attendance {summary.average_attendance:.2f}%"
        ))
