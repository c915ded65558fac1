"""Tests for the concurrent upload pipeline."""

import threading
import time
from collections.abc import Callable
from datetime import timedelta
from queue import Queue

import pytest

from timesheet_sync.client import DefaultUploader, UploadOpts, UploadResult, new_result_queue, prepare_durations
from timesheet_sync.client.uploader import round_to_minute
from timesheet_sync.errors import UploadError
from timesheet_sync.worklog import Entry, NamedField

MakeEntry = Callable[..., Entry]


class RecordingUploader(DefaultUploader):
    """Records uploads and fails the entries whose summary is listed."""

    def __init__(self, failing: set[str] | None = None, delay: float = 0.0) -> None:
        self.failing = failing or set()
        self.delay = delay
        self.lock = threading.Lock()
        self.uploaded: list[tuple[str, str, timedelta, timedelta]] = []
        self.threads: dict[str, set[str]] = {}

    def upload_entry(self, entry: Entry, billable: timedelta, unbillable: timedelta, opts: UploadOpts) -> None:
        if self.delay:
            time.sleep(self.delay)
        with self.lock:
            self.threads.setdefault(entry.task.id, set()).add(threading.current_thread().name)
            self.uploaded.append((entry.task.id, entry.summary, billable, unbillable))
        if entry.summary in self.failing:
            raise ConnectionError("server unavailable")


class FakeTracker:
    """Progress tracker recording start and stop calls."""

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.started: list[str] = []
        self.finished: dict[int, bool] = {}

    def start(self, message: str) -> int:
        with self.lock:
            self.started.append(message)
            return len(self.started) - 1

    def stop(self, task_id: int, error: BaseException | None = None) -> None:
        with self.lock:
            self.finished[task_id] = error is None


def drain(results: "Queue[UploadResult]", count: int) -> list[UploadResult]:
    return [results.get(timeout=5) for _ in range(count)]


def entries_for(make_entry: MakeEntry, tasks: int, per_task: int) -> list[Entry]:
    return [
        make_entry(summary=f"t{task}-e{index}", task=NamedField(id=f"t{task}", name=f"T{task}"))
        for task in range(tasks)
        for index in range(per_task)
    ]


class TestPrepareDurations:
    """Test the per-entry duration transform."""

    def test_unchanged_by_default(self, make_entry: MakeEntry) -> None:
        """Test durations pass through without options."""
        entry = make_entry(billable=timedelta(seconds=61), unbillable=timedelta(seconds=29))
        assert prepare_durations(entry, UploadOpts()) == (timedelta(seconds=61), timedelta(seconds=29))

    def test_treat_as_billed(self, make_entry: MakeEntry) -> None:
        """Test unbillable time is folded into billable time."""
        entry = make_entry(billable=timedelta(minutes=10), unbillable=timedelta(minutes=5))
        result = prepare_durations(entry, UploadOpts(treat_duration_as_billed=True))
        assert result == (timedelta(minutes=15), timedelta(0))

    def test_round_each_separately(self, make_entry: MakeEntry) -> None:
        """Test billable and unbillable time are rounded on their own."""
        entry = make_entry(billable=timedelta(seconds=90), unbillable=timedelta(seconds=29))
        result = prepare_durations(entry, UploadOpts(round_to_closest_minute=True))
        assert result == (timedelta(minutes=2), timedelta(0))

    def test_fold_then_round(self, make_entry: MakeEntry) -> None:
        """Test folding happens before rounding."""
        entry = make_entry(billable=timedelta(seconds=20), unbillable=timedelta(seconds=20))
        result = prepare_durations(entry, UploadOpts(round_to_closest_minute=True, treat_duration_as_billed=True))
        assert result == (timedelta(minutes=1), timedelta(0))

    @pytest.mark.parametrize(
        "duration,expected",
        [
            (timedelta(seconds=29, microseconds=999999), timedelta(0)),
            (timedelta(seconds=30), timedelta(minutes=1)),
            (timedelta(minutes=2, seconds=29), timedelta(minutes=2)),
            (timedelta(0), timedelta(0)),
        ],
    )
    def test_round_half_up(self, duration: timedelta, expected: timedelta) -> None:
        """Test rounding to the closest minute, half a minute going up."""
        assert round_to_minute(duration) == expected


class TestDefaultUploader:
    """Test DefaultUploader."""

    def test_one_result_per_entry(self, make_entry: MakeEntry) -> None:
        """Test every entry yields exactly one successful result."""
        entries = entries_for(make_entry, tasks=3, per_task=4)
        uploader = RecordingUploader()
        results = new_result_queue(entries)

        uploader.upload_entries(entries, results, UploadOpts())
        drained = drain(results, len(entries))

        assert all(result.ok for result in drained)
        assert sorted(r.entry.summary for r in drained) == sorted(e.summary for e in entries)
        assert results.empty()

    def test_order_within_task(self, make_entry: MakeEntry) -> None:
        """Test entries of one task are uploaded in input order by one worker."""
        entries = entries_for(make_entry, tasks=3, per_task=5)
        uploader = RecordingUploader(delay=0.001)
        results = new_result_queue(entries)

        uploader.upload_entries(entries, results, UploadOpts())
        drain(results, len(entries))

        for task in range(3):
            uploaded = [summary for task_id, summary, _, _ in uploader.uploaded if task_id == f"t{task}"]
            assert uploaded == [f"t{task}-e{i}" for i in range(5)]
            assert len(uploader.threads[f"t{task}"]) == 1

    def test_one_worker_per_task(self, make_entry: MakeEntry) -> None:
        """Test each task group is uploaded by its own worker."""
        entries = entries_for(make_entry, tasks=4, per_task=2)
        uploader = RecordingUploader()
        results = new_result_queue(entries)

        uploader.upload_entries(entries, results, UploadOpts())
        drain(results, len(entries))

        workers = set().union(*uploader.threads.values())
        assert len(workers) == 4

    def test_failures_are_isolated(self, make_entry: MakeEntry) -> None:
        """Test a failing entry does not stop the others."""
        entries = entries_for(make_entry, tasks=2, per_task=3)
        uploader = RecordingUploader(failing={"t0-e0", "t1-e2"})
        results = new_result_queue(entries)

        uploader.upload_entries(entries, results, UploadOpts())
        drained = drain(results, len(entries))

        failed = {r.entry.summary for r in drained if not r.ok}
        assert failed == {"t0-e0", "t1-e2"}
        assert len(uploader.uploaded) == 6
        for result in drained:
            if not result.ok:
                assert isinstance(result.error, UploadError)
                assert result.error.entry == result.entry

    def test_durations_transformed_before_upload(self, make_entry: MakeEntry) -> None:
        """Test the upload options are applied before each call."""
        entry = make_entry(billable=timedelta(seconds=50), unbillable=timedelta(seconds=20))
        uploader = RecordingUploader()
        results = new_result_queue([entry])

        uploader.upload_entries([entry], results, UploadOpts(treat_duration_as_billed=True, round_to_closest_minute=True))
        drain(results, 1)

        assert uploader.uploaded[0][2:] == (timedelta(minutes=1), timedelta(0))

    def test_progress_tracked_per_entry(self, make_entry: MakeEntry) -> None:
        """Test one tracked unit per entry, marked done or errored."""
        entries = entries_for(make_entry, tasks=2, per_task=2)
        tracker = FakeTracker()
        uploader = RecordingUploader(failing={"t1-e1"})
        results = new_result_queue(entries)

        uploader.upload_entries(entries, results, UploadOpts(progress=tracker))
        drain(results, len(entries))

        assert sorted(tracker.started) == sorted(e.summary for e in entries)
        assert len(tracker.finished) == 4
        errored = [tracker.started[i] for i, ok in tracker.finished.items() if not ok]
        assert errored == ["t1-e1"]

    def test_failing_tracker_does_not_lose_results(self, make_entry: MakeEntry) -> None:
        """Test a progress tracker raising on stop still yields every result."""

        class BrokenTracker(FakeTracker):
            def stop(self, task_id: int, error: BaseException | None = None) -> None:
                raise RuntimeError("display closed")

        entries = entries_for(make_entry, tasks=1, per_task=3)
        uploader = RecordingUploader()
        results = new_result_queue(entries)

        uploader.upload_entries(entries, results, UploadOpts(progress=BrokenTracker()))
        drained = drain(results, len(entries))

        assert all(result.ok for result in drained)
        assert [r.entry.summary for r in drained] == ["t0-e0", "t0-e1", "t0-e2"]

    def test_failing_start_reported_as_failure(self, make_entry: MakeEntry) -> None:
        """Test a progress tracker raising on start fails only that entry."""

        class BrokenTracker(FakeTracker):
            def start(self, message: str) -> int:
                raise RuntimeError("display closed")

        entries = entries_for(make_entry, tasks=1, per_task=2)
        results = new_result_queue(entries)

        RecordingUploader().upload_entries(entries, results, UploadOpts(progress=BrokenTracker()))
        drained = drain(results, len(entries))

        assert all(not result.ok for result in drained)

    def test_complete_under_failure_and_cancellation(self, make_entry: MakeEntry) -> None:
        """Test B entries yield B results despite failures and a cancellation mid-run."""
        entries = entries_for(make_entry, tasks=3, per_task=10)
        uploader = RecordingUploader(failing={"t0-e1", "t2-e3"}, delay=0.005)
        results = new_result_queue(entries)
        opts = UploadOpts()

        uploader.upload_entries(entries, results, opts)
        drained = [results.get(timeout=5) for _ in range(3)]
        opts.cancel_event.set()
        drained.extend(drain(results, len(entries) - 3))

        assert len(drained) == len(entries)
        assert results.empty()
        cancelled = [r for r in drained if r.error is not None and "cancelled" in str(r.error)]
        assert cancelled
        assert len(uploader.uploaded) + len(cancelled) == len(entries)

    def test_max_workers_limits_concurrency(self, make_entry: MakeEntry) -> None:
        """Test the optional cap on concurrently uploading groups."""
        entries = entries_for(make_entry, tasks=4, per_task=1)
        active = 0
        peak = 0
        lock = threading.Lock()

        class SlowUploader(DefaultUploader):
            def upload_entry(self, entry: Entry, billable: timedelta, unbillable: timedelta, opts: UploadOpts) -> None:
                nonlocal active, peak
                with lock:
                    active += 1
                    peak = max(peak, active)
                time.sleep(0.02)
                with lock:
                    active -= 1

        results = new_result_queue(entries)
        SlowUploader().upload_entries(entries, results, UploadOpts(max_workers=1))
        drain(results, len(entries))

        assert peak == 1

    def test_returns_before_uploads_finish(self, make_entry: MakeEntry) -> None:
        """Test the call starts the workers without waiting for them."""
        release = threading.Event()

        class BlockingUploader(DefaultUploader):
            def upload_entry(self, entry: Entry, billable: timedelta, unbillable: timedelta, opts: UploadOpts) -> None:
                release.wait(5)

        entries = entries_for(make_entry, tasks=2, per_task=1)
        results = new_result_queue(entries)

        BlockingUploader().upload_entries(entries, results, UploadOpts())
        assert results.empty()

        release.set()
        assert len(drain(results, len(entries))) == 2
