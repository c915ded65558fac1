"""Source and target adapters and the machinery they share."""

from timesheet_sync.client.base import (
    BaseClientOpts,
    CLIClient,
    Fetcher,
    FetchOpts,
    HTTPClient,
    Uploader,
    UploadOpts,
)
from timesheet_sync.client.pagination import PageMeta, PageRequest, paginated_fetch
from timesheet_sync.client.progress import ProgressTracker, new_progress
from timesheet_sync.client.uploader import (
    DefaultUploader,
    UploadResult,
    new_result_queue,
    prepare_durations,
)

__all__ = [
    "BaseClientOpts",
    "CLIClient",
    "DefaultUploader",
    "Fetcher",
    "FetchOpts",
    "HTTPClient",
    "PageMeta",
    "PageRequest",
    "ProgressTracker",
    "Uploader",
    "UploadOpts",
    "UploadResult",
    "new_progress",
    "new_result_queue",
    "paginated_fetch",
    "prepare_durations",
]
