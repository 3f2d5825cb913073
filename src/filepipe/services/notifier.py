"""Webhook notifier: tells an external endpoint that a file was processed.

Delivery is at-least-once. The record is marked PENDING before the request is
sent, so a crash mid-delivery still shows the notification as owed, and only a
2xx response moves it to SENDED. Failures are logged and never raised: the
processing outcome is already committed and must not be undone by a webhook
problem. Re-delivery of PENDING records is done by an external re-scan
(``filepipe files renotify``); receivers must tolerate duplicates.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Protocol

import httpx
from pydantic import BaseModel, ConfigDict, field_serializer
from pydantic.alias_generators import to_camel

from filepipe.domain.exceptions import DeliveryError
from filepipe.domain.records import FileRecord
from filepipe.domain.status import FileStatus, NotificationStatus
from filepipe.infra.db.record_store import RecordStore

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0


class Notifier(Protocol):
    def notify(self, record: FileRecord) -> NotificationStatus:
        ...


class WebhookPayload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    original_name: str
    path: str
    extension: str
    size: int
    mime_type: str
    status: FileStatus
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, record: FileRecord) -> "WebhookPayload":
        return cls.model_validate(record, from_attributes=True)

    @field_serializer("status")
    def _serialize_status(self, status: FileStatus) -> str:
        return status.value

    @field_serializer("created_at", "updated_at")
    def _serialize_timestamp(self, value: datetime) -> str:
        return format_timestamp(value)

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


def format_timestamp(value: datetime) -> str:
    """ISO-8601 with seconds and an explicit offset; naive values are UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat(timespec="seconds")


class WebhookNotifier:
    def __init__(
        self,
        store: RecordStore,
        endpoint: str | None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.Client | None = None,
    ) -> None:
        self._store = store
        self._endpoint = endpoint
        self._timeout = timeout
        self._client = client or httpx.Client()

    def notify(self, record: FileRecord) -> NotificationStatus:
        self._store.set_notification_status(record, NotificationStatus.PENDING)

        if not self._endpoint:
            logger.warning(
                "No webhook endpoint configured; notification for file %s left pending",
                record.id, extra={"file_id": record.id},
            )
            return NotificationStatus.PENDING

        try:
            self._deliver(record)
        except DeliveryError as exc:
            logger.error(
                "Notification for file %s failed: %s", record.id, exc.message,
                extra={"file_id": record.id},
            )
            return NotificationStatus.PENDING

        self._store.set_notification_status(record, NotificationStatus.SENDED)
        return NotificationStatus.SENDED

    def close(self) -> None:
        self._client.close()

    def _deliver(self, record: FileRecord) -> None:
        # InvalidURL and payload errors are not httpx.HTTPError subclasses
        try:
            payload = WebhookPayload.from_record(record).to_json()
            resp = self._client.post(self._endpoint, json=payload, timeout=self._timeout)
        except Exception as exc:
            raise DeliveryError(f"{type(exc).__name__}: {exc}") from exc

        if not resp.is_success:
            raise DeliveryError(f"endpoint returned HTTP {resp.status_code}")
        logger.info(
            "Notification sent for file %s (HTTP %s)", record.id, resp.status_code,
            extra={"file_id": record.id},
        )
