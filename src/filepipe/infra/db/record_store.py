"""Durable file-record state machine.

Every operation runs in its own UnitOfWork and is committed before it returns,
so callers observe success or failure before moving on. Operations return
``FileRecord`` snapshots; nothing here hands out sessions or ORM objects.
"""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Callable

from filepipe.domain.exceptions import ConflictError, InvalidTransitionError, NotFoundError
from filepipe.domain.records import FileRecord
from filepipe.domain.status import FileStatus, NotificationStatus, utcnow
from filepipe.infra.db.repositories.file_repository import FileRepository
from filepipe.infra.db.uow import UnitOfWork

logger = logging.getLogger(__name__)


class RecordStore:
    def __init__(self, uow_factory: Callable[[], UnitOfWork] = UnitOfWork) -> None:
        self._uow_factory = uow_factory

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, file_id: int) -> FileRecord:
        with self._uow_factory() as uow:
            return self._load(uow.files, file_id)

    def find_pending(self, limit: int) -> list[FileRecord]:
        """Up to ``limit`` NEW records in insertion order."""
        if limit < 1:
            raise ValueError("limit must be >= 1.")
        with self._uow_factory() as uow:
            rows = uow.files.find_by_status(FileStatus.NEW, limit)
            return [FileRecord.model_validate(r) for r in rows]

    def find_undelivered(self, limit: int = 100) -> list[FileRecord]:
        """PROCESSED records whose webhook delivery is still owed."""
        if limit < 1:
            raise ValueError("limit must be >= 1.")
        with self._uow_factory() as uow:
            rows = uow.files.find_by_notification(
                FileStatus.PROCESSED, NotificationStatus.PENDING, limit,
            )
            return [FileRecord.model_validate(r) for r in rows]

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def claim(self, record: FileRecord) -> FileRecord:
        """NEW -> PROCESSING as one conditional update.

        Raises ConflictError when the row is no longer NEW; the stored status
        is left untouched in that case.
        """
        with self._uow_factory() as uow:
            repo = uow.files
            moved = repo.compare_and_set_status(
                record.id,
                expected=FileStatus.NEW,
                target=FileStatus.PROCESSING,
                last_error=None,
                now=utcnow(),
            )
            current = self._load(repo, record.id)
            if not moved:
                raise ConflictError(
                    f"File {record.id} cannot be claimed: status is {current.status.value}"
                )
            return current

    def mark_processed(self, record: FileRecord) -> FileRecord:
        return self._finish(record, FileStatus.PROCESSED, last_error=None)

    def mark_failed(self, record: FileRecord, error_message: str) -> FileRecord:
        return self._finish(record, FileStatus.FAILED, last_error=error_message)

    def set_notification_status(
        self, record: FileRecord, status: NotificationStatus,
    ) -> FileRecord:
        with self._uow_factory() as uow:
            repo = uow.files
            if not repo.set_notification_status(record.id, status, now=utcnow()):
                raise NotFoundError(f"File {record.id} not found")
            return self._load(repo, record.id)

    def requeue_stale(self, older_than: timedelta) -> list[FileRecord]:
        """Move PROCESSING records untouched for ``older_than`` back to NEW.

        Each row is moved with its own guarded update; a row that finished or
        was touched since the scan is skipped.
        """
        if older_than <= timedelta(0):
            raise ValueError("older_than must be positive.")
        cutoff = utcnow() - older_than
        requeued: list[FileRecord] = []
        with self._uow_factory() as uow:
            repo = uow.files
            for row in repo.find_updated_before(FileStatus.PROCESSING, cutoff):
                # _load refreshes this same identity-mapped row
                file_id, stuck_since = row.id, row.updated_at
                moved = repo.compare_and_set_status(
                    file_id,
                    expected=FileStatus.PROCESSING,
                    target=FileStatus.NEW,
                    last_error=None,
                    now=utcnow(),
                    updated_before=cutoff,
                )
                if moved:
                    requeued.append(self._load(repo, file_id))
                    logger.warning(
                        "Requeued stale file %s (processing since %s)",
                        file_id, stuck_since.isoformat(),
                        extra={"file_id": file_id},
                    )
        return requeued

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _finish(
        self, record: FileRecord, target: FileStatus, *, last_error: str | None,
    ) -> FileRecord:
        with self._uow_factory() as uow:
            repo = uow.files
            moved = repo.compare_and_set_status(
                record.id,
                expected=FileStatus.PROCESSING,
                target=target,
                last_error=last_error,
                now=utcnow(),
            )
            current = self._load(repo, record.id)
            if not moved:
                raise InvalidTransitionError(
                    f"File {record.id} cannot move to {target.value}: "
                    f"status is {current.status.value}, expected processing"
                )
            return current

    @staticmethod
    def _load(repo: FileRepository, file_id: int) -> FileRecord:
        row = repo.get_by_id(file_id)
        if row is None:
            raise NotFoundError(f"File {file_id} not found")
        return FileRecord.model_validate(row)
