class AttendanceError(Exception):
    """Base error for the attendance pipeline"""


class SpreadsheetParseError(AttendanceError):
    """Raised when an uploaded file cannot be read as an attendance sheet.

    The underlying cause is chained as ``__cause__``.
    """


class BatchNotFound(AttendanceError):
    def __init__(self, batch_id):
        self.batch_id = batch_id
        super().__init__(f"Batch {batch_id} not found")


class StorageError(AttendanceError):
    """Any failure of the batch store backend"""
