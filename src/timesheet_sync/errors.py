"""Exceptions raised by the timesheet synchronizer."""

from typing import Any


class SyncError(Exception):
    """Base class for every synchronizer error."""


class ConfigurationError(SyncError):
    """Invalid configuration, detected before any fetch or upload starts."""


class FetchError(SyncError):
    """Fetching entries from a source failed; no partial result is kept."""


class UploadError(SyncError):
    """Uploading a single entry to the target failed."""

    def __init__(self, message: str, entry: Any = None) -> None:
        """Initialize upload error.

        Args:
            message: Error description.
            entry: The entry that failed to upload.
        """
        super().__init__(message)
        self.entry = entry
