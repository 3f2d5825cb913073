"""FastAPI dependencies."""
from __future__ import annotations
from typing import Generator
from filepipe.config import settings
from filepipe.infra.db.uow import UnitOfWork
from filepipe.infra.storage.blob_store import BlobStore, LocalBlobStore
from filepipe.services.validation import UploadValidator


def get_uow() -> Generator[UnitOfWork, None, None]:
    """Yield one UnitOfWork per request; commit/rollback in __exit__."""
    with UnitOfWork() as uow:
        yield uow


def get_blob_store() -> BlobStore:
    return LocalBlobStore(settings.DATA_DIR)


def get_validator() -> UploadValidator:
    return UploadValidator(max_bytes=settings.MAX_UPLOAD_BYTES)
