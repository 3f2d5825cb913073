"""File DTOs: pure Pydantic, zero ORM imports."""
from __future__ import annotations
from datetime import datetime
from enum import Enum
from pydantic import BaseModel


class FileStatusDTO(str, Enum):
    NEW = "new"
    PROCESSING = "processing"
    PROCESSED = "processed"
    FAILED = "failed"
    ARCHIVED = "archived"


class NotificationStatusDTO(str, Enum):
    PENDING = "pending"
    SENDED = "sended"


class FileRead(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    path: str
    original_name: str
    extension: str
    size: int
    mime_type: str
    status: FileStatusDTO
    notification_status: NotificationStatusDTO | None = None
    last_error: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class FileList(BaseModel):
    items: list[FileRead]
    total: int


class UploadError(BaseModel):
    detail: str
    errors: list[str] = []
