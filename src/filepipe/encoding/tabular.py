"""Default encoder: parses CSV/JSON/XLSX/ODS content into a table."""
from __future__ import annotations

import io
import json
import logging

import pandas as pd

from filepipe.domain.exceptions import EncodingError, StorageIOError
from filepipe.domain.records import FileRecord
from filepipe.infra.storage.blob_store import BlobStore

logger = logging.getLogger(__name__)


class TabularFileEncoder:
    def __init__(self, blob_store: BlobStore) -> None:
        self._blobs = blob_store

    def handle(self, record: FileRecord) -> None:
        try:
            content = self._blobs.read(record.path)
        except StorageIOError as exc:
            raise EncodingError(exc.message) from exc

        frame = self.parse(content, record.extension)
        if frame.empty:
            raise EncodingError(f"File {record.original_name} contains no rows")
        logger.info(
            "Encoded file %s: %d rows x %d columns",
            record.id, len(frame), len(frame.columns),
            extra={"file_id": record.id},
        )

    def parse(self, content: bytes, extension: str) -> pd.DataFrame:
        readers = {
            "csv": _read_csv,
            "json": _read_json,
            "xlsx": _read_xlsx,
            "ods": _read_ods,
        }
        extension = extension.lower()
        reader = readers.get(extension)
        if reader is None:
            raise EncodingError(f"Unsupported file extension: {extension!r}")
        try:
            return reader(content)
        except ImportError as exc:
            raise EncodingError(f"No reader installed for .{extension} files: {exc}") from exc
        except EncodingError:
            raise
        except Exception as exc:
            raise EncodingError(f"Invalid {extension} content: {exc}") from exc


def _read_csv(content: bytes) -> pd.DataFrame:
    return pd.read_csv(io.BytesIO(content))


def _read_json(content: bytes) -> pd.DataFrame:
    data = json.loads(content)
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise EncodingError("JSON document must be an object or an array")
    if all(isinstance(item, dict) for item in data):
        return pd.json_normalize(data)
    return pd.DataFrame({"value": data})


def _read_xlsx(content: bytes) -> pd.DataFrame:
    return pd.read_excel(io.BytesIO(content), engine="openpyxl")


def _read_ods(content: bytes) -> pd.DataFrame:
    return pd.read_excel(io.BytesIO(content), engine="odf")
