"""Sync engine moving reconciled entries from a source to a target."""

import logging
from collections.abc import Sequence
from datetime import datetime

from rich.progress import Progress

from timesheet_sync.client import (
    Fetcher,
    FetchOpts,
    ProgressTracker,
    Uploader,
    UploadOpts,
    UploadResult,
    new_result_queue,
)
from timesheet_sync.config import Config
from timesheet_sync.errors import UploadError
from timesheet_sync.worklog import Entry, FilterOpts, Worklog

logger = logging.getLogger(__name__)


class SyncResult:
    """Results from an upload."""

    def __init__(self) -> None:
        """Initialize sync result."""
        self.entries_uploaded = 0
        self.entries_failed = 0
        self.errors: list[UploadError] = []

    def add(self, result: UploadResult) -> None:
        """Record the outcome of one entry."""
        if result.error is None:
            self.add_success()
        else:
            self.add_failure(result.error)

    def add_success(self) -> None:
        """Record a successful upload."""
        self.entries_uploaded += 1

    def add_failure(self, error: UploadError) -> None:
        """Record a failed upload."""
        self.entries_failed += 1
        self.errors.append(error)

    @property
    def total(self) -> int:
        return self.entries_uploaded + self.entries_failed

    def __str__(self) -> str:
        """String representation of results."""
        return f"Uploaded: {self.entries_uploaded}, Failed: {self.entries_failed}"


class SyncEngine:
    """Main synchronization engine."""

    def __init__(self, config: Config, fetcher: Fetcher, uploader: Uploader) -> None:
        """Initialize sync engine.

        Args:
            config: Run configuration.
            fetcher: Source of the entries.
            uploader: Target of the entries.
        """
        self.config = config
        self.fetcher = fetcher
        self.uploader = uploader

    def fetch(self, start: datetime, end: datetime) -> list[Entry]:
        """Fetch raw entries of the source user in [start, end).

        Raises:
            FetchError: If the source fails; nothing has been uploaded then.
        """
        logger.info(f"Fetching entries from {start} to {end}")
        entries = self.fetcher.fetch_entries(
            FetchOpts(start=start, end=end, user=self.config.get("source_user") or "")
        )
        logger.info(f"Fetched {len(entries)} entries")
        return entries

    def reconcile(self, entries: Sequence[Entry]) -> Worklog:
        """Filter, merge and classify fetched entries.

        Raises:
            ConfigurationError: If a filter pattern is invalid.
        """
        filters = FilterOpts(
            client=self.config.pattern("filter_client"),
            project=self.config.pattern("filter_project"),
        )
        return Worklog.from_entries(entries, filters)

    def upload_options(self, progress: ProgressTracker | None = None) -> UploadOpts:
        """Upload options of this run."""
        return UploadOpts(
            round_to_closest_minute=bool(self.config.get("round_to_closest_minute", False)),
            treat_duration_as_billed=bool(self.config.get("force_billed_duration", False)),
            user=self.config.get("target_user") or "",
            progress=progress,
            max_workers=self.config.get("max_workers"),
        )

    def upload(
        self,
        entries: Sequence[Entry],
        progress: Progress | None = None,
        opts: UploadOpts | None = None,
    ) -> SyncResult:
        """Upload entries and wait for every result.

        The uploader reports one result per entry. Failed entries do not stop
        the others, and uploaded entries stay uploaded. Interrupting the wait
        cancels the entries not yet started and keeps collecting results.

        Args:
            entries: Complete entries to upload.
            progress: Started progress display to report on.
            opts: Upload options; defaults to the run configuration.

        Returns:
            Aggregated upload results.
        """
        result = SyncResult()
        if not entries:
            return result

        if opts is None:
            opts = self.upload_options(ProgressTracker(progress) if progress is not None else None)

        results = new_result_queue(entries)
        self.uploader.upload_entries(entries, results, opts)

        while result.total < len(entries):
            try:
                result.add(results.get())
            except KeyboardInterrupt:
                logger.warning("Upload interrupted, cancelling remaining entries")
                opts.cancel_event.set()

        logger.info(f"Upload complete: {result}")
        return result
