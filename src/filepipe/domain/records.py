"""FileRecord snapshot handed to the worker, encoders and the notifier.

Snapshots are immutable copies of a stored row taken inside a unit of work.
Holding one never keeps a session or a lock open. Timestamps are aware UTC.
"""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from filepipe.domain.status import FileStatus, NotificationStatus


class FileRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    path: str
    original_name: str
    extension: str
    size: int
    mime_type: str
    status: FileStatus
    notification_status: NotificationStatus | None = None
    last_error: str | None = None
    created_at: datetime
    updated_at: datetime
