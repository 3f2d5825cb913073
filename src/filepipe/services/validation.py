"""Upload validation. Collects every problem instead of stopping at the first."""
from __future__ import annotations

import csv
import io
import json

from filepipe.domain.status import ALLOWED_EXTENSIONS

ALLOWED_MIME_TYPES: frozenset[str] = frozenset({
    "text/csv",
    "application/csv",
    "text/comma-separated-values",
    "text/plain",
    "application/json",
    "text/json",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.oasis.opendocument.spreadsheet",
})

# Clients that cannot tell the type send one of these; the extension decides.
_UNTYPED = {"", "application/octet-stream"}

DEFAULT_MAX_BYTES = 10 * 1024 * 1024


def file_extension(filename: str) -> str:
    _, dot, ext = filename.rpartition(".")
    return ext.lower() if dot else ""


def format_bytes(size: int) -> str:
    units = ["B", "KB", "MB", "GB"]
    value = float(size)
    for unit in units:
        if value < 1024 or unit == units[-1]:
            return f"{value:.2f} {unit}"
        value /= 1024
    return f"{value:.2f} TB"


class UploadValidator:
    def __init__(self, max_bytes: int = DEFAULT_MAX_BYTES) -> None:
        self.max_bytes = max_bytes

    def validate(self, filename: str, content: bytes, content_type: str | None) -> list[str]:
        errors: list[str] = []

        if not filename:
            errors.append("No file name provided")

        size = len(content)
        if size == 0:
            errors.append("File is empty")
        elif size > self.max_bytes:
            errors.append(
                f"File size ({format_bytes(size)}) exceeds maximum allowed size "
                f"({format_bytes(self.max_bytes)})"
            )

        extension = file_extension(filename)
        if extension not in ALLOWED_EXTENSIONS:
            errors.append(
                f'File extension "{extension}" is not allowed. '
                f"Allowed extensions: {', '.join(ALLOWED_EXTENSIONS)}"
            )

        mime_type = (content_type or "").split(";")[0].strip().lower()
        if mime_type not in _UNTYPED and mime_type not in ALLOWED_MIME_TYPES:
            errors.append(f'File MIME type "{mime_type}" is not allowed')

        if size:
            errors.extend(self._validate_content(content, extension))
        return errors

    @staticmethod
    def _validate_content(content: bytes, extension: str) -> list[str]:
        # xlsx/ods are only checked through their MIME type here
        if extension == "json":
            try:
                json.loads(content)
            except (ValueError, UnicodeDecodeError) as exc:
                return [f"Invalid JSON format: {exc}"]
        elif extension == "csv":
            try:
                first_row = next(csv.reader(io.StringIO(content.decode("utf-8-sig"))), None)
            except (csv.Error, UnicodeDecodeError) as exc:
                return [f"Invalid CSV file format: {exc}"]
            if not first_row:
                return ["Invalid CSV file format"]
        return []
