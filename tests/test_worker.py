"""Tests for the worker loop: claim, encode, outcome, notify."""
import logging

import httpx
import pytest

from filepipe.domain.exceptions import ConfigurationError, EncodingError
from filepipe.domain.status import FileStatus, NotificationStatus
from filepipe.services.notifier import WebhookNotifier
from filepipe.services.worker import FileWorker, Outcome

ENDPOINT = "https://hooks.example.test/files"


class RecordingEncoder:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.seen = []

    def handle(self, record) -> None:
        self.seen.append(record)
        if self.error is not None:
            raise self.error


class RecordingNotifier:
    def __init__(self) -> None:
        self.notified = []

    def notify(self, record):
        self.notified.append(record)
        return NotificationStatus.SENDED


class ExplodingNotifier:
    def notify(self, record):
        raise RuntimeError("store unavailable")


def _webhook(store, handler):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return WebhookNotifier(store, ENDPOINT, client=client)


def test_scenario_success_with_webhook_200(store, make_file):
    file_id = make_file()
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200)

    worker = FileWorker(store, RecordingEncoder(), _webhook(store, handler))
    report = worker.run_cycle()

    record = store.get(file_id)
    assert report.outcomes == {file_id: Outcome.PROCESSED}
    assert record.status is FileStatus.PROCESSED
    assert record.notification_status is NotificationStatus.SENDED
    assert record.last_error is None
    assert len(calls) == 1


def test_scenario_encoder_failure_marks_failed_without_webhook(store, make_file, caplog):
    file_id = make_file()
    calls = []

    def handler(request):  # pragma: no cover - must not be called
        calls.append(request)
        return httpx.Response(200)

    worker = FileWorker(store, RecordingEncoder(EncodingError("bad format")), _webhook(store, handler))
    with caplog.at_level(logging.ERROR, logger="filepipe"):
        report = worker.run_cycle()

    record = store.get(file_id)
    assert report.outcomes == {file_id: Outcome.FAILED}
    assert record.status is FileStatus.FAILED
    assert record.last_error == "bad format"
    assert record.notification_status is None
    assert calls == []
    failure_logs = [r for r in caplog.records if str(file_id) in r.getMessage()]
    assert failure_logs and failure_logs[0].exc_info is not None


def test_scenario_webhook_timeout_keeps_processed_and_pending(store, make_file, caplog):
    file_id = make_file()

    def handler(request):
        raise httpx.ReadTimeout("timed out")

    worker = FileWorker(store, RecordingEncoder(), _webhook(store, handler))
    with caplog.at_level(logging.ERROR, logger="filepipe"):
        report = worker.run_cycle()

    record = store.get(file_id)
    assert report.outcomes == {file_id: Outcome.PROCESSED}
    assert record.status is FileStatus.PROCESSED
    assert record.notification_status is NotificationStatus.PENDING
    assert any("ReadTimeout" in r.getMessage() for r in caplog.records)


def test_any_exception_from_encoder_is_recorded(store, make_file):
    file_id = make_file()
    worker = FileWorker(store, RecordingEncoder(ValueError("unexpected column")), RecordingNotifier())

    worker.run_cycle()

    assert store.get(file_id).last_error == "unexpected column"


def test_exception_without_message_records_its_type(store, make_file):
    file_id = make_file()
    worker = FileWorker(store, RecordingEncoder(KeyError()), RecordingNotifier())

    worker.run_cycle()

    assert store.get(file_id).last_error == "KeyError"


def test_encoder_receives_claimed_record(store, make_file):
    make_file()
    encoder = RecordingEncoder()

    FileWorker(store, encoder, RecordingNotifier()).run_cycle()

    assert encoder.seen[0].status is FileStatus.PROCESSING


def test_notifier_receives_processed_snapshot(store, make_file):
    make_file()
    notifier = RecordingNotifier()

    FileWorker(store, RecordingEncoder(), notifier).run_cycle()

    assert notifier.notified[0].status is FileStatus.PROCESSED


def test_notifier_exception_does_not_fail_the_cycle(store, make_file):
    first, second = make_file(), make_file()

    report = FileWorker(store, RecordingEncoder(), ExplodingNotifier()).run_cycle()

    assert report.outcomes == {first: Outcome.PROCESSED, second: Outcome.PROCESSED}
    assert store.get(first).status is FileStatus.PROCESSED


def test_lost_claim_is_skipped(store, make_file):
    file_id = make_file()
    encoder = RecordingEncoder()
    worker = FileWorker(store, encoder, RecordingNotifier())
    stale = store.find_pending(1)[0]
    store.claim(stale)  # another worker got there first

    assert worker.process(stale) is Outcome.SKIPPED
    assert encoder.seen == []
    assert store.get(file_id).status is FileStatus.PROCESSING


def test_batch_is_processed_in_insertion_order(store, make_file):
    ids = [make_file() for _ in range(3)]
    encoder = RecordingEncoder()

    FileWorker(store, encoder, RecordingNotifier(), batch_size=2).run_cycle()

    assert [r.id for r in encoder.seen] == ids[:2]
    assert store.get(ids[2]).status is FileStatus.NEW


def test_idle_cycle_sleeps_backoff_interval(store):
    sleeps = []
    worker = FileWorker(
        store, RecordingEncoder(), RecordingNotifier(), idle_seconds=5, sleep=sleeps.append,
    )

    handled = worker.run(max_cycles=3)

    assert handled == 0
    assert sleeps == [5, 5, 5]


def test_run_picks_up_files_and_continues(store, make_file):
    ids = [make_file() for _ in range(3)]
    sleeps = []
    worker = FileWorker(store, RecordingEncoder(), RecordingNotifier(), batch_size=2, sleep=sleeps.append)

    handled = worker.run(max_cycles=3)

    assert handled == 3
    assert all(store.get(i).status is FileStatus.PROCESSED for i in ids)
    # only the third, empty poll waits
    assert sleeps == [5.0]


def test_max_files_stops_after_first_file(store, make_file):
    first, second = make_file(), make_file()

    handled = FileWorker(store, RecordingEncoder(), RecordingNotifier(), max_files=1).run()

    assert handled == 1
    assert store.get(first).status is FileStatus.PROCESSED
    assert store.get(second).status is FileStatus.NEW


@pytest.mark.parametrize("batch_size", [0, -3, True, "10"])
def test_invalid_batch_size_is_a_configuration_error(store, batch_size):
    with pytest.raises(ConfigurationError):
        FileWorker(store, RecordingEncoder(), RecordingNotifier(), batch_size=batch_size)


def test_startup_sweep_requeues_stale_records(store, make_file):
    from datetime import timedelta
    from filepipe.domain.status import utcnow

    old = utcnow() - timedelta(hours=1)
    stuck = make_file(FileStatus.PROCESSING, created_at=old, updated_at=old)

    worker = FileWorker(
        store, RecordingEncoder(), RecordingNotifier(),
        stale_after=timedelta(minutes=10), max_files=1,
    )
    worker.run(max_cycles=1)

    assert store.get(stuck).status is FileStatus.PROCESSED
