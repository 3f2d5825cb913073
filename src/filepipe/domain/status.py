"""Processing and notification status of a file record."""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum


class FileStatus(str, Enum):
    NEW = "new"
    PROCESSING = "processing"
    PROCESSED = "processed"
    FAILED = "failed"
    ARCHIVED = "archived"

    def can_transition_to(self, target: FileStatus) -> bool:
        return target in _TRANSITIONS[self]


class NotificationStatus(str, Enum):
    PENDING = "pending"
    SENDED = "sended"


# PROCESSING -> NEW is only taken by the stale requeue sweep.
_TRANSITIONS: dict[FileStatus, frozenset[FileStatus]] = {
    FileStatus.NEW: frozenset({FileStatus.PROCESSING}),
    FileStatus.PROCESSING: frozenset(
        {FileStatus.PROCESSED, FileStatus.FAILED, FileStatus.NEW}
    ),
    FileStatus.PROCESSED: frozenset({FileStatus.ARCHIVED}),
    FileStatus.FAILED: frozenset({FileStatus.ARCHIVED}),
    FileStatus.ARCHIVED: frozenset(),
}

ALLOWED_EXTENSIONS: tuple[str, ...] = ("csv", "json", "xlsx", "ods")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
