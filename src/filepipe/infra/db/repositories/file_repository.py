"""Repository for UploadedFile rows. No business logic; caller owns the transaction."""
from __future__ import annotations
from datetime import datetime
from sqlalchemy import func, update
from sqlmodel import Session, select
from filepipe.domain.exceptions import InvalidTransitionError
from filepipe.domain.status import FileStatus, NotificationStatus
from filepipe.models.core import UploadedFile


class FileRepository:
    def __init__(self, session: Session) -> None:
        self._s = session

    def get_by_id(self, file_id: int) -> UploadedFile | None:
        return self._s.get(UploadedFile, file_id, populate_existing=True)

    def list_all(
        self, limit: int = 100, offset: int = 0, status: FileStatus | None = None,
    ) -> list[UploadedFile]:
        stmt = select(UploadedFile)
        if status is not None:
            stmt = stmt.where(UploadedFile.status == status)
        stmt = stmt.order_by(UploadedFile.id).offset(offset).limit(limit)
        return list(self._s.exec(stmt).all())

    def count(self, status: FileStatus | None = None) -> int:
        stmt = select(func.count()).select_from(UploadedFile)
        if status is not None:
            stmt = stmt.where(UploadedFile.status == status)
        return self._s.exec(stmt).one()

    def find_by_status(self, status: FileStatus, limit: int) -> list[UploadedFile]:
        return list(self._s.exec(
            select(UploadedFile)
            .where(UploadedFile.status == status)
            .order_by(UploadedFile.id)
            .limit(limit)
        ).all())

    def find_by_notification(
        self, status: FileStatus, notification_status: NotificationStatus, limit: int,
    ) -> list[UploadedFile]:
        return list(self._s.exec(
            select(UploadedFile)
            .where(
                UploadedFile.status == status,
                UploadedFile.notification_status == notification_status,
            )
            .order_by(UploadedFile.id)
            .limit(limit)
        ).all())

    def find_updated_before(self, status: FileStatus, cutoff: datetime) -> list[UploadedFile]:
        return list(self._s.exec(
            select(UploadedFile)
            .where(UploadedFile.status == status, UploadedFile.updated_at < cutoff)
            .order_by(UploadedFile.id)
        ).all())

    def create(
        self,
        *,
        path: str,
        original_name: str,
        extension: str,
        size: int,
        mime_type: str,
    ) -> UploadedFile:
        file = UploadedFile(
            path=path,
            original_name=original_name,
            extension=extension.lower(),
            size=size,
            mime_type=mime_type,
            status=FileStatus.NEW,
        )
        self._s.add(file)
        self._s.flush()  # get generated PK without committing
        return file

    def compare_and_set_status(
        self,
        file_id: int,
        *,
        expected: FileStatus,
        target: FileStatus,
        last_error: str | None,
        now: datetime,
        updated_before: datetime | None = None,
    ) -> bool:
        """Single conditional UPDATE guarded on the current status.

        Returns True when exactly this call moved the row. A concurrent writer
        that changed the status first makes this match zero rows. A pair
        outside the transition table raises InvalidTransitionError before any
        SQL runs.
        """
        if not expected.can_transition_to(target):
            raise InvalidTransitionError(
                f"File {file_id}: {expected.value} -> {target.value} is not a valid transition"
            )
        stmt = (
            update(UploadedFile)
            .where(UploadedFile.id == file_id, UploadedFile.status == expected)
            .values(status=target, last_error=last_error, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if updated_before is not None:
            stmt = stmt.where(UploadedFile.updated_at < updated_before)
        return self._s.exec(stmt).rowcount == 1

    def set_notification_status(
        self, file_id: int, status: NotificationStatus, *, now: datetime,
    ) -> bool:
        stmt = (
            update(UploadedFile)
            .where(UploadedFile.id == file_id)
            .values(notification_status=status, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        return self._s.exec(stmt).rowcount == 1
