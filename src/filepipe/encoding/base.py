"""FileEncoder protocol consumed by the worker."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from filepipe.domain.records import FileRecord


@runtime_checkable
class FileEncoder(Protocol):
    """Domain processing of the blob at ``record.path``.

    Implementations raise on any unrecoverable failure and never change the
    stored status or timestamps; the worker owns those. The same record can
    be handed over more than once (lost claims, crashes), so re-running
    ``handle`` on it must be safe.
    """

    def handle(self, record: FileRecord) -> None:
        ...
