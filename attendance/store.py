"""
Batch store gateway.

One upload is persisted as four writes: the batch header, its records, the
record-id list attached back onto the header, and a scan history entry for
the defaulters. Backends return plain dicts so the analysis and the views
never depend on which store is configured.

Configure in settings.py:
ATTENDANCE_STORE = 'database' or 'memory'
"""

import copy
import itertools
import logging
import threading

from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone

from .exceptions import BatchNotFound, StorageError
from .models import AttendanceRecord, ScanHistory, UploadBatch

logger = logging.getLogger(__name__)

BATCH_FIELDS = (
    'id', 'class_name', 'total_students', 'total_defaulters',
    'average_attendance', 'uploaded_by', 'uploaded_at', 'record_ids',
)
RECORD_FIELDS = (
    'id', 'batch_id', 'roll_number', 'name', 'gender', 'attendance_days',
    'total_days', 'attendance_percentage', 'student_email', 'parent_email',
    'is_defaulter', 'class_name', 'created_at',
)


class BatchStore:
    """Base Batch Store Class"""

    def create_batch(self, summary, records):
        """Persist a classified upload and return the new batch id."""
        raise NotImplementedError

    def get_batch(self, batch_id):
        raise NotImplementedError

    def get_records(self, batch_id):
        raise NotImplementedError

    def list_batches(self):
        raise NotImplementedError

    def list_history(self):
        raise NotImplementedError

    def get_latest_batch_id(self):
        raise NotImplementedError


class DjangoBatchStore(BatchStore):
    """Stores batches through the Django ORM, one transaction per upload."""

    def create_batch(self, summary, records):
        try:
            with transaction.atomic():
                batch = UploadBatch.objects.create(
                    class_name=summary.class_name,
                    total_students=summary.total_students,
                    total_defaulters=summary.total_defaulters,
                    average_attendance=summary.average_attendance,
                    uploaded_by=summary.uploaded_by,
                )

                inserted = AttendanceRecord.objects.bulk_create([
                    AttendanceRecord(batch=batch, created_at=batch.uploaded_at, **record.as_fields())
                    for record in records
                ])
                # bulk_create only sets primary keys on backends that return them
                if inserted and inserted[0].pk is None:
                    inserted = list(batch.records.order_by('id'))

                batch.record_ids = [r.pk for r in inserted]
                batch.save(update_fields=['record_ids'])

                defaulter_ids = [r.pk for r in inserted if r.is_defaulter]
                ScanHistory.objects.create(
                    batch=batch,
                    defaulter_count=len(defaulter_ids),
                    defaulter_ids=defaulter_ids,
                    uploaded_at=batch.uploaded_at,
                    uploaded_by=summary.uploaded_by,
                )
        except DatabaseError as e:
            raise StorageError(f"Failed to store batch: {e}") from e

        logger.info(
            f"Stored batch {batch.pk} ({summary.class_name}): "
            f"{summary.total_students} students, {summary.total_defaulters} defaulters"
        )
        return batch.pk

    def get_batch(self, batch_id):
        try:
            return UploadBatch.objects.values(*BATCH_FIELDS).get(pk=batch_id)
        except (UploadBatch.DoesNotExist, ValueError, TypeError):
            raise BatchNotFound(batch_id)
        except DatabaseError as e:
            raise StorageError(str(e)) from e

    def get_records(self, batch_id):
        try:
            return list(
                AttendanceRecord.objects.filter(batch_id=batch_id).order_by('id').values(*RECORD_FIELDS)
            )
        except DatabaseError as e:
            raise StorageError(str(e)) from e

    def list_batches(self):
        try:
            return list(UploadBatch.objects.order_by('-uploaded_at', '-id').values(*BATCH_FIELDS))
        except DatabaseError as e:
            raise StorageError(str(e)) from e

    def list_history(self):
        try:
            entries = ScanHistory.objects.select_related('batch').order_by('-uploaded_at', '-id')
            return [
                {
                    'id': entry.id,
                    'batch_id': entry.batch_id,
                    'batch_class_name': entry.batch.class_name if entry.batch else None,
                    'defaulter_count': entry.defaulter_count,
                    'defaulter_ids': list(entry.defaulter_ids),
                    'uploaded_at': entry.uploaded_at,
                    'uploaded_by': entry.uploaded_by,
                }
                for entry in entries
            ]
        except DatabaseError as e:
            raise StorageError(str(e)) from e

    def get_latest_batch_id(self):
        try:
            return UploadBatch.objects.order_by('-uploaded_at', '-id').values_list('id', flat=True).first()
        except DatabaseError as e:
            raise StorageError(str(e)) from e


class InMemoryBatchStore(BatchStore):
    """
    Process-local store. Keeps documents in dicts keyed by id; used for
    demos without a database and exercised by the same tests as the ORM
    store. A failed upload restores the state from before the first write.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._batches = {}
        self._records = {}
        self._history = {}

    def _next_id(self):
        return next(self._ids)

    def _insert_batch(self, summary, uploaded_at):
        batch_id = self._next_id()
        self._batches[batch_id] = {
            'id': batch_id,
            'class_name': summary.class_name,
            'total_students': summary.total_students,
            'total_defaulters': summary.total_defaulters,
            'average_attendance': summary.average_attendance,
            'uploaded_by': summary.uploaded_by,
            'uploaded_at': uploaded_at,
            'record_ids': [],
        }
        return batch_id

    def _insert_records(self, batch_id, records, created_at):
        inserted = []
        for record in records:
            record_id = self._next_id()
            doc = dict(record.as_fields(), id=record_id, batch_id=batch_id, created_at=created_at)
            self._records[record_id] = doc
            inserted.append(doc)
        return inserted

    def _insert_history(self, batch_id, defaulter_ids, summary, uploaded_at):
        history_id = self._next_id()
        self._history[history_id] = {
            'id': history_id,
            'batch_id': batch_id,
            'defaulter_count': len(defaulter_ids),
            'defaulter_ids': list(defaulter_ids),
            'uploaded_at': uploaded_at,
            'uploaded_by': summary.uploaded_by,
        }

    def create_batch(self, summary, records):
        with self._lock:
            snapshot = (dict(self._batches), dict(self._records), dict(self._history))
            try:
                now = timezone.now()
                batch_id = self._insert_batch(summary, now)
                inserted = self._insert_records(batch_id, records, now)
                self._batches[batch_id]['record_ids'] = [doc['id'] for doc in inserted]
                self._insert_history(
                    batch_id, [doc['id'] for doc in inserted if doc['is_defaulter']], summary, now
                )
            except Exception as e:
                self._batches, self._records, self._history = snapshot
                raise StorageError(f"Failed to store batch: {e}") from e

        logger.info(f"Stored batch {batch_id} in memory ({summary.class_name})")
        return batch_id

    def get_batch(self, batch_id):
        try:
            batch = self._batches[int(batch_id)]
        except (KeyError, ValueError, TypeError):
            raise BatchNotFound(batch_id)
        return copy.deepcopy(batch)

    def get_records(self, batch_id):
        batch = self.get_batch(batch_id)
        return [copy.deepcopy(self._records[rid]) for rid in batch['record_ids']]

    def _newest_first(self, docs):
        return sorted(docs, key=lambda d: (d['uploaded_at'], d['id']), reverse=True)

    def list_batches(self):
        return [copy.deepcopy(b) for b in self._newest_first(self._batches.values())]

    def list_history(self):
        entries = []
        for entry in self._newest_first(self._history.values()):
            batch = self._batches.get(entry['batch_id'])
            entries.append(dict(
                copy.deepcopy(entry),
                batch_class_name=batch['class_name'] if batch else None,
            ))
        return entries

    def get_latest_batch_id(self):
        batches = self._newest_first(self._batches.values())
        return batches[0]['id'] if batches else None


_memory_store = None


def get_store():
    """Return the store configured by ATTENDANCE_STORE."""
    global _memory_store
    backend = getattr(settings, 'ATTENDANCE_STORE', 'database')
    if backend == 'memory':
        if _memory_store is None:
            _memory_store = InMemoryBatchStore()
        return _memory_store
    if backend == 'database':
        return DjangoBatchStore()
    raise ValueError(f"Unknown ATTENDANCE_STORE backend: {backend}")
