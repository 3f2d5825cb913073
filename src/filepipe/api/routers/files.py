"""Files router."""
from fastapi import APIRouter, Depends, Query, UploadFile
from filepipe.api.deps import get_blob_store, get_uow, get_validator
from filepipe.api.schemas.files import FileList, FileRead, FileStatusDTO, UploadError
from filepipe.domain.status import FileStatus
from filepipe.infra.db.uow import UnitOfWork
from filepipe.infra.storage.blob_store import BlobStore
from filepipe.services.files_service import FilesService
from filepipe.services.validation import UploadValidator

router = APIRouter(prefix="/files", tags=["files"])


@router.post(
    "",
    response_model=FileRead,
    status_code=201,
    responses={400: {"model": UploadError}},
)
async def upload_file(
    file: UploadFile,
    uow: UnitOfWork = Depends(get_uow),
    blob_store: BlobStore = Depends(get_blob_store),
    validator: UploadValidator = Depends(get_validator),
) -> FileRead:
    content = await file.read()
    return FilesService(uow, blob_store, validator).upload_file(
        content=content,
        original_filename=file.filename or "",
        content_type=file.content_type or "application/octet-stream",
    )


@router.get("", response_model=FileList)
def list_files(
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    status: FileStatusDTO | None = None,
    uow: UnitOfWork = Depends(get_uow),
    blob_store: BlobStore = Depends(get_blob_store),
) -> FileList:
    status_filter = FileStatus(status.value) if status is not None else None
    return FilesService(uow, blob_store).list_files(limit=limit, offset=offset, status=status_filter)


@router.get("/{file_id}", response_model=FileRead)
def get_file(
    file_id: int,
    uow: UnitOfWork = Depends(get_uow),
    blob_store: BlobStore = Depends(get_blob_store),
) -> FileRead:
    return FilesService(uow, blob_store).get_file(file_id)
