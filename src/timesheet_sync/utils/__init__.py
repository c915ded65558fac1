"""Utility modules for the timesheet synchronizer."""

from timesheet_sync.utils.logging import get_logger, setup_logging
from timesheet_sync.utils.storage import StorageManager

__all__ = ["get_logger", "setup_logging", "StorageManager"]
