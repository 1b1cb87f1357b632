"""Exception hierarchy for synchronization passes."""
from typing import Optional


class SyncError(Exception):
    """Base class for every error raised by the sync engine."""


class ConfigError(SyncError):
    """Required configuration is missing or invalid."""


class SourceError(SyncError):
    """Fetching or parsing data from the source failed."""


class PathNotFoundError(SourceError):
    """Configured data path does not lead to an array in the response."""


class UnextractableResponseError(SourceError):
    """Response holds no record array at any conventional location."""


class SchemaError(SyncError):
    """Destination rejected a column creation."""


class DestinationError(SyncError):
    """Destination request failed (transport error or non-2xx response)."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class DestinationWriteError(DestinationError):
    """A single row insert/update was rejected."""


_DUPLICATE_MARKERS = ("already exists", "duplicate")


def is_duplicate_column_error(error: Exception) -> bool:
    """Return True when a column creation failed only because the column exists."""
    text = f"{error} {getattr(error, 'body', '')}".lower()
    return any(marker in text for marker in _DUPLICATE_MARKERS)
