"""Tests for webhook delivery and notification status bookkeeping."""
import json
import logging
from datetime import datetime

import httpx
import pytest

from filepipe.domain.status import FileStatus, NotificationStatus
from filepipe.services.notifier import WebhookNotifier, WebhookPayload, format_timestamp

ENDPOINT = "https://hooks.example.test/files"


def _processed(store, make_file, **kwargs):
    file_id = make_file(**kwargs)
    return store.mark_processed(store.claim(store.get(file_id)))


def _notifier(store, handler, endpoint=ENDPOINT):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return WebhookNotifier(store, endpoint, client=client)


def test_2xx_marks_notification_sended(store, make_file):
    record = _processed(store, make_file)
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(204)

    result = _notifier(store, handler).notify(record)

    assert result is NotificationStatus.SENDED
    assert store.get(record.id).notification_status is NotificationStatus.SENDED
    assert len(requests) == 1
    assert requests[0].method == "POST"
    assert str(requests[0].url) == ENDPOINT


def test_payload_carries_public_fields(store, make_file):
    record = _processed(store, make_file, name="report.json", mime_type="application/json", size=42)
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return httpx.Response(200)

    _notifier(store, handler).notify(record)

    body = bodies[0]
    assert set(body) == {
        "id", "originalName", "path", "extension", "size",
        "mimeType", "status", "createdAt", "updatedAt",
    }
    assert body["id"] == record.id
    assert body["originalName"] == "report.json"
    assert body["extension"] == "json"
    assert body["size"] == 42
    assert body["mimeType"] == "application/json"
    assert body["status"] == "processed"
    assert datetime.fromisoformat(body["createdAt"]).tzinfo is not None


def test_status_is_pending_while_request_is_in_flight(store, make_file):
    record = _processed(store, make_file)
    observed = []

    def handler(request):
        observed.append(store.get(record.id).notification_status)
        return httpx.Response(200)

    _notifier(store, handler).notify(record)

    assert observed == [NotificationStatus.PENDING]


def test_non_2xx_leaves_pending_and_logs(store, make_file, caplog):
    record = _processed(store, make_file)

    with caplog.at_level(logging.ERROR, logger="filepipe"):
        result = _notifier(store, lambda request: httpx.Response(503)).notify(record)

    assert result is NotificationStatus.PENDING
    assert store.get(record.id).notification_status is NotificationStatus.PENDING
    assert any(str(record.id) in r.getMessage() and "503" in r.getMessage() for r in caplog.records)


@pytest.mark.parametrize(
    "error",
    [
        httpx.ReadTimeout("timed out"),
        httpx.ConnectError("connection refused"),
    ],
)
def test_transport_failure_leaves_pending_and_does_not_raise(store, make_file, caplog, error):
    record = _processed(store, make_file)

    def handler(request):
        raise error

    with caplog.at_level(logging.ERROR, logger="filepipe"):
        result = _notifier(store, handler).notify(record)

    assert result is NotificationStatus.PENDING
    stored = store.get(record.id)
    assert stored.notification_status is NotificationStatus.PENDING
    assert stored.status is FileStatus.PROCESSED
    assert any(type(error).__name__ in r.getMessage() for r in caplog.records)


def test_missing_endpoint_leaves_pending_without_request(store, make_file):
    record = _processed(store, make_file)

    def handler(request):  # pragma: no cover - must not be called
        raise AssertionError("no request expected")

    result = _notifier(store, handler, endpoint=None).notify(record)

    assert result is NotificationStatus.PENDING
    assert store.get(record.id).notification_status is NotificationStatus.PENDING


def test_redelivery_after_failure_marks_sended(store, make_file):
    record = _processed(store, make_file)
    _notifier(store, lambda request: httpx.Response(500)).notify(record)

    owed = store.find_undelivered()
    assert [r.id for r in owed] == [record.id]

    _notifier(store, lambda request: httpx.Response(200)).notify(owed[0])

    assert store.find_undelivered() == []


def test_format_timestamp_treats_naive_values_as_utc():
    assert format_timestamp(datetime(2025, 1, 3, 12, 0, 5, 999)) == "2025-01-03T12:00:05+00:00"


def test_payload_from_record_uses_camel_case(store, make_file):
    record = _processed(store, make_file)
    payload = WebhookPayload.from_record(record).to_json()
    assert payload["originalName"] == record.original_name
    assert payload["mimeType"] == record.mime_type


def test_malformed_endpoint_leaves_pending_and_does_not_raise(store, make_file, caplog):
    record = _processed(store, make_file)

    def handler(request):  # pragma: no cover - URL is rejected before sending
        raise AssertionError("no request expected")

    with caplog.at_level(logging.ERROR, logger="filepipe"):
        result = _notifier(store, handler, endpoint="http://exa mple.com/\x00hook").notify(record)

    assert result is NotificationStatus.PENDING
    assert store.get(record.id).notification_status is NotificationStatus.PENDING
    assert any("InvalidURL" in r.getMessage() for r in caplog.records)
