"""ORM tables. Only the record store and ingestion touch these directly.

Plain ``datetime`` fields map to sqlmodel's UTCDateTime: values must be aware,
and come back as aware UTC on SQLite too.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import Column, Enum as SAEnum, String, Text
from sqlmodel import Field, SQLModel

from filepipe.domain.status import FileStatus, NotificationStatus, utcnow


def _enum_values(enum_cls) -> list[str]:
    # store lowercase wire values ("new"), not member names ("NEW")
    return [member.value for member in enum_cls]


class UploadedFile(SQLModel, table=True):
    __tablename__ = "uploaded_files"

    id: Optional[int] = Field(default=None, primary_key=True)
    path: str = Field(sa_column=Column(String(500), nullable=False))
    original_name: str = Field(sa_column=Column(String(255), nullable=False))
    extension: str = Field(sa_column=Column(String(50), nullable=False))
    size: int
    mime_type: str = Field(sa_column=Column(String(255), nullable=False))
    status: FileStatus = Field(
        default=FileStatus.NEW,
        sa_column=Column(
            SAEnum(
                FileStatus,
                values_callable=_enum_values,
                native_enum=False,
                length=32,
                name="file_status",
            ),
            nullable=False,
            index=True,
        ),
    )
    notification_status: Optional[NotificationStatus] = Field(
        default=None,
        sa_column=Column(
            SAEnum(
                NotificationStatus,
                values_callable=_enum_values,
                native_enum=False,
                length=32,
                name="notification_status",
            ),
            nullable=True,
        ),
    )
    last_error: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow)
