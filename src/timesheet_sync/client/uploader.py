"""Concurrent upload pipeline shared by the target adapters."""

import logging
import threading
from abc import abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import timedelta
from queue import Queue

from timesheet_sync.client.base import Uploader, UploadOpts
from timesheet_sync.errors import UploadError
from timesheet_sync.worklog import Entry, group_by_task

logger = logging.getLogger(__name__)

MINUTE = timedelta(minutes=1)
HALF_MINUTE = timedelta(seconds=30)


@dataclass(frozen=True)
class UploadResult:
    """Outcome of uploading a single entry."""

    entry: Entry
    error: UploadError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def round_to_minute(duration: timedelta) -> timedelta:
    """Round to the closest minute; exactly half a minute rounds up."""
    return ((duration + HALF_MINUTE) // MINUTE) * MINUTE


def prepare_durations(entry: Entry, opts: UploadOpts) -> tuple[timedelta, timedelta]:
    """Billable and unbillable time to upload for ``entry``.

    Returns:
        Billable and unbillable durations after applying the upload options.
    """
    billable, unbillable = entry.billable, entry.unbillable

    if opts.treat_duration_as_billed:
        billable, unbillable = billable + unbillable, timedelta(0)

    if opts.round_to_closest_minute:
        billable, unbillable = round_to_minute(billable), round_to_minute(unbillable)

    return billable, unbillable


def new_result_queue(entries: Sequence[Entry]) -> "Queue[UploadResult]":
    """Queue large enough to hold one result per entry without blocking."""
    return Queue(maxsize=max(len(entries), 1))


class DefaultUploader(Uploader):
    """Uploads entries grouped by task, one worker thread per group.

    Entries of the same task are uploaded in order by a single worker, while
    groups are uploaded concurrently. Subclasses implement ``upload_entry``.
    """

    @abstractmethod
    def upload_entry(
        self,
        entry: Entry,
        billable: timedelta,
        unbillable: timedelta,
        opts: UploadOpts,
    ) -> None:
        """Upload one entry with the prepared durations.

        Raises:
            Exception: Any failure; it is reported as the entry's result.
        """

    def upload_entries(
        self,
        entries: Sequence[Entry],
        results: "Queue[UploadResult]",
        opts: UploadOpts,
    ) -> None:
        groups = group_by_task(entries)
        limiter = threading.BoundedSemaphore(opts.max_workers) if opts.max_workers else None

        logger.info(f"Uploading {len(entries)} entries in {len(groups)} task groups")

        for task_id, group in groups.items():
            worker = threading.Thread(
                target=self._upload_group,
                args=(group, results, opts, limiter),
                name=f"upload-{task_id or 'no-task'}",
                daemon=True,
            )
            worker.start()

    def _upload_group(
        self,
        entries: list[Entry],
        results: "Queue[UploadResult]",
        opts: UploadOpts,
        limiter: threading.BoundedSemaphore | None,
    ) -> None:
        if limiter is None:
            self._upload_sequentially(entries, results, opts)
            return

        with limiter:
            self._upload_sequentially(entries, results, opts)

    def _upload_sequentially(
        self,
        entries: list[Entry],
        results: "Queue[UploadResult]",
        opts: UploadOpts,
    ) -> None:
        for entry in entries:
            try:
                result = self._upload_one(entry, opts)
            except Exception as e:
                logger.error(f"Unexpected failure uploading entry {entry.key()}: {e}", exc_info=True)
                result = UploadResult(entry, UploadError(f"failed to upload entry {entry.summary!r}: {e}", entry))
            results.put(result)

    def _upload_one(self, entry: Entry, opts: UploadOpts) -> UploadResult:
        if opts.cancel_event.is_set():
            return UploadResult(entry, UploadError(f"upload cancelled: {entry.summary}", entry))

        tracking = None
        error: UploadError | None = None

        try:
            if opts.progress is not None:
                tracking = opts.progress.start(entry.summary)
            billable, unbillable = prepare_durations(entry, opts)
            self.upload_entry(entry, billable, unbillable, opts)
        except Exception as e:
            logger.error(f"Failed to upload entry {entry.key()}: {e}")
            error = UploadError(f"failed to upload entry {entry.summary!r} ({entry.task.name}): {e}", entry)
        else:
            logger.info(f"Uploaded entry {entry.key()}")

        if opts.progress is not None and tracking is not None:
            try:
                opts.progress.stop(tracking, error)
            except Exception as e:
                logger.warning(f"Failed to report progress of entry {entry.key()}: {e}")

        return UploadResult(entry, error)
