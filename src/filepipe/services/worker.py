"""Worker loop: poll NEW records, claim, encode, record the outcome, notify.

One worker handles records strictly one at a time. Several worker processes
may share a database; the status-guarded claim is the only point of mutual
exclusion between them, and a lost claim is simply skipped.

The loop is long-running. ``max_files`` bounds how many records one process
handles before ``run()`` returns, for deployments that prefer a supervisor to
recycle the process periodically.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Callable

from filepipe.domain.exceptions import ConfigurationError, ConflictError
from filepipe.domain.records import FileRecord
from filepipe.encoding.base import FileEncoder
from filepipe.infra.db.record_store import RecordStore
from filepipe.services.notifier import Notifier

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10
DEFAULT_IDLE_SECONDS = 5.0


class Outcome(str, Enum):
    PROCESSED = "processed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class CycleReport:
    """What one polling cycle did, per record id."""

    outcomes: dict[int, Outcome] = field(default_factory=dict)

    @property
    def idle(self) -> bool:
        return not self.outcomes

    @property
    def handled(self) -> int:
        return sum(1 for o in self.outcomes.values() if o is not Outcome.SKIPPED)


class FileWorker:
    def __init__(
        self,
        store: RecordStore,
        encoder: FileEncoder,
        notifier: Notifier,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        idle_seconds: float = DEFAULT_IDLE_SECONDS,
        max_files: int = 0,
        stale_after: timedelta | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if isinstance(batch_size, bool) or not isinstance(batch_size, int) or batch_size < 1:
            raise ConfigurationError(f"Batch size must be at least 1, got {batch_size!r}")
        if idle_seconds < 0:
            raise ConfigurationError("Idle interval must not be negative")
        if max_files < 0:
            raise ConfigurationError("max_files must not be negative")
        self._store = store
        self._encoder = encoder
        self._notifier = notifier
        self._batch_size = batch_size
        self._idle_seconds = idle_seconds
        self._max_files = max_files
        self._stale_after = stale_after
        self._sleep = sleep

    @property
    def batch_size(self) -> int:
        return self._batch_size

    def run(self, *, max_cycles: int | None = None) -> int:
        """Poll until stopped. Returns the number of records handled.

        Stops after ``max_cycles`` polls, after ``max_files`` handled records
        (when non-zero), or on KeyboardInterrupt.
        """
        logger.info(
            "Worker started (batch size %d, idle %.1fs)",
            self._batch_size, self._idle_seconds,
        )
        if self._stale_after:
            self._store.requeue_stale(self._stale_after)

        handled = 0
        cycles = 0
        try:
            while max_cycles is None or cycles < max_cycles:
                cycles += 1
                remaining = self._max_files - handled if self._max_files else None
                report = self.run_cycle(limit=remaining)
                handled += report.handled
                if self._max_files and handled >= self._max_files:
                    logger.info("Handled %d file(s); stopping so the process can be recycled", handled)
                    break
                if report.idle:
                    logger.debug("No new files found; waiting %.1fs", self._idle_seconds)
                    self._sleep(self._idle_seconds)
        except KeyboardInterrupt:
            logger.info("Worker interrupted")
        logger.info("Worker stopped after %d cycle(s), %d file(s) handled", cycles, handled)
        return handled

    def run_cycle(self, *, limit: int | None = None) -> CycleReport:
        """Fetch one batch of NEW records and handle them in order.

        ``limit`` stops the batch early once that many records were handled.
        """
        report = CycleReport()
        for record in self._store.find_pending(self._batch_size):
            if limit is not None and report.handled >= limit:
                break
            report.outcomes[record.id] = self.process(record)
        return report

    def process(self, record: FileRecord) -> Outcome:
        try:
            claimed = self._store.claim(record)
        except ConflictError as exc:
            logger.info(
                "Skipping file %s: %s", record.id, exc.message,
                extra={"file_id": record.id},
            )
            return Outcome.SKIPPED

        logger.info("Processing file %s (%s)", claimed.id, claimed.original_name,
                    extra={"file_id": claimed.id})
        try:
            self._encoder.handle(claimed)
        except Exception as exc:
            message = str(exc) or type(exc).__name__
            self._store.mark_failed(claimed, message)
            logger.exception(
                "File %s processing failed: %s", claimed.id, message,
                extra={"file_id": claimed.id},
            )
            return Outcome.FAILED

        processed = self._store.mark_processed(claimed)
        logger.info("File %s processed", processed.id, extra={"file_id": processed.id})
        try:
            self._notifier.notify(processed)
        except Exception:
            logger.exception(
                "Notifier raised for file %s; processing result kept", processed.id,
                extra={"file_id": processed.id},
            )
        return Outcome.PROCESSED
