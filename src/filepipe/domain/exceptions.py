class FilePipeError(Exception):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(FilePipeError):
    """Requested resource does not exist."""


class ConflictError(FilePipeError):
    """Operation conflicts with existing state (e.g. record already claimed)."""


class InvalidTransitionError(FilePipeError):
    """Status change not allowed from the record's current status."""


class EncodingError(FilePipeError):
    """Encoder could not process a file."""


class DeliveryError(FilePipeError):
    """Webhook did not accept a notification."""


class StorageIOError(FilePipeError):
    """Blob could not be stored, read or deleted."""


class ConfigurationError(FilePipeError):
    """Invalid startup configuration."""


class UploadRejectedError(FilePipeError):
    """Uploaded file failed validation."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("File validation failed")
