"""Files use-case service. Owns ORM→DTO mapping; routers never see ORM objects.

Upload is the producer side of the pipeline: it stores the blob and creates
the record in status NEW. Processing happens later in the worker.
"""
from __future__ import annotations
import logging
from filepipe.domain.exceptions import NotFoundError, StorageIOError, UploadRejectedError
from filepipe.domain.status import FileStatus
from filepipe.infra.db.uow import UnitOfWork
from filepipe.infra.storage.blob_store import BlobStore
from filepipe.api.schemas.files import FileRead, FileList
from filepipe.services.validation import UploadValidator, file_extension

logger = logging.getLogger(__name__)


class FilesService:
    def __init__(
        self, uow: UnitOfWork, blob_store: BlobStore, validator: UploadValidator | None = None,
    ) -> None:
        self._uow = uow
        self._blobs = blob_store
        self._validator = validator or UploadValidator()

    def upload_file(
        self,
        content: bytes,
        original_filename: str,
        content_type: str,
    ) -> FileRead:
        errors = self._validator.validate(original_filename, content, content_type)
        if errors:
            raise UploadRejectedError(errors)

        stored_path = self._blobs.store(content, original_filename)
        try:
            file = self._uow.files.create(
                path=stored_path,
                original_name=original_filename,
                extension=file_extension(original_filename),
                size=len(content),
                mime_type=content_type or "application/octet-stream",
            )
            self._uow.commit()
        except Exception:
            # Don't leave an orphan blob behind a failed insert
            try:
                self._blobs.delete(stored_path)
            except StorageIOError:
                logger.exception("Could not remove orphan blob %s", stored_path)
            raise

        logger.info("Stored upload %s as file %s", original_filename, file.id,
                    extra={"file_id": file.id})
        return FileRead.model_validate(file)

    def list_files(
        self, limit: int = 100, offset: int = 0, status: FileStatus | None = None,
    ) -> FileList:
        repo = self._uow.files
        files = repo.list_all(limit=limit, offset=offset, status=status)
        return FileList(
            items=[FileRead.model_validate(f) for f in files],
            total=repo.count(status=status),
        )

    def get_file(self, file_id: int) -> FileRead:
        file = self._uow.files.get_by_id(file_id)
        if file is None:
            raise NotFoundError(f"File {file_id} not found")
        return FileRead.model_validate(file)
