"""Tests for sync engine."""

from collections.abc import Callable
from datetime import datetime, timedelta
from pathlib import Path
from queue import Queue
from unittest.mock import MagicMock, patch

from timesheet_sync.client import FetchOpts, Uploader, UploadOpts, UploadResult
from timesheet_sync.config import Config
from timesheet_sync.errors import UploadError
from timesheet_sync.sync import SyncEngine, SyncResult
from timesheet_sync.worklog import Entry, NamedField

MakeEntry = Callable[..., Entry]


class ImmediateUploader(Uploader):
    """Uploader putting one result per entry, failing the listed summaries."""

    def __init__(self, failing: set[str] | None = None) -> None:
        self.failing = failing or set()
        self.calls: list[tuple[list[Entry], UploadOpts]] = []

    def upload_entries(self, entries: list[Entry], results: "Queue[UploadResult]", opts: UploadOpts) -> None:
        self.calls.append((list(entries), opts))
        for entry in entries:
            error = UploadError(f"failed {entry.summary}", entry) if entry.summary in self.failing else None
            results.put(UploadResult(entry, error))


class TestSyncResult:
    """Test SyncResult functionality."""

    def test_initialization(self) -> None:
        """Test SyncResult initialization."""
        result = SyncResult()

        assert result.entries_uploaded == 0
        assert result.entries_failed == 0
        assert result.errors == []

    def test_add(self, make_entry: MakeEntry) -> None:
        """Test results are counted by outcome."""
        entry = make_entry()
        error = UploadError("boom", entry)
        result = SyncResult()

        result.add(UploadResult(entry))
        result.add(UploadResult(entry, error))

        assert result.entries_uploaded == 1
        assert result.entries_failed == 1
        assert result.errors == [error]
        assert result.total == 2

    def test_str_representation(self) -> None:
        """Test string representation."""
        result = SyncResult()
        result.add_success()
        result.add_failure(UploadError("error"))

        assert str(result) == "Uploaded: 1, Failed: 1"


class TestSyncEngine:
    """Test SyncEngine functionality."""

    def test_fetch_passes_window_and_user(self, temp_config_dir: Path, make_entry: MakeEntry) -> None:
        """Test the source user and window reach the fetcher."""
        config = Config(temp_config_dir, overrides={"source_user": "42"})
        fetcher = MagicMock()
        fetcher.fetch_entries.return_value = [make_entry()]
        engine = SyncEngine(config, fetcher, MagicMock())
        start, end = datetime(2021, 10, 2), datetime(2021, 10, 3)

        entries = engine.fetch(start, end)

        assert len(entries) == 1
        fetcher.fetch_entries.assert_called_once_with(FetchOpts(start=start, end=end, user="42"))

    def test_reconcile_applies_filters(self, temp_config_dir: Path, make_entry: MakeEntry) -> None:
        """Test configured filters are applied before merging."""
        config = Config(temp_config_dir, overrides={"filter_project": "^Web"})
        engine = SyncEngine(config, MagicMock(), MagicMock())
        entries = [
            make_entry(project=NamedField(id="1", name="Website"), notes="A"),
            make_entry(project=NamedField(id="1", name="Website"), notes="B"),
            make_entry(project=NamedField(id="2", name="Mobile")),
            make_entry(project=NamedField(id="1", name="Website"), task=NamedField(), summary="todo"),
        ]

        worklog = engine.reconcile(entries)

        assert len(worklog.complete_entries) == 1
        assert worklog.complete_entries[0].notes == "A; B"
        assert len(worklog.incomplete_entries) == 1

    def test_upload_options_from_config(self, temp_config_dir: Path) -> None:
        """Test upload options follow the run configuration."""
        config = Config(
            temp_config_dir,
            overrides={
                "round_to_closest_minute": True,
                "force_billed_duration": True,
                "target_user": "jdoe",
                "max_workers": 2,
            },
        )
        opts = SyncEngine(config, MagicMock(), MagicMock()).upload_options()

        assert opts.round_to_closest_minute is True
        assert opts.treat_duration_as_billed is True
        assert opts.user == "jdoe"
        assert opts.max_workers == 2
        assert opts.progress is None

    def test_upload_collects_every_result(self, config: Config, make_entry: MakeEntry) -> None:
        """Test successes and failures are both counted."""
        uploader = ImmediateUploader(failing={"b"})
        engine = SyncEngine(config, MagicMock(), uploader)
        entries = [make_entry(summary=s, task=NamedField(id=s, name=s)) for s in ("a", "b", "c")]

        result = engine.upload(entries)

        assert result.entries_uploaded == 2
        assert result.entries_failed == 1
        assert result.errors[0].entry.summary == "b"
        assert uploader.calls[0][0] == entries

    def test_upload_nothing(self, config: Config) -> None:
        """Test an empty batch never reaches the uploader."""
        uploader = ImmediateUploader()

        result = SyncEngine(config, MagicMock(), uploader).upload([])

        assert result.total == 0
        assert uploader.calls == []

    def test_upload_uses_given_options(self, config: Config, make_entry: MakeEntry) -> None:
        """Test explicit options are passed through unchanged."""
        uploader = ImmediateUploader()
        opts = UploadOpts(user="someone", round_to_closest_minute=True)

        SyncEngine(config, MagicMock(), uploader).upload([make_entry(billable=timedelta(seconds=30))], opts=opts)

        assert uploader.calls[0][1] is opts

    def test_interrupt_cancels_and_keeps_draining(self, config: Config, make_entry: MakeEntry) -> None:
        """Test an interrupt sets the cancel flag and still waits for every result."""
        entries = [make_entry(summary="a"), make_entry(summary="b")]
        opts = UploadOpts()
        results: Queue[UploadResult] = Queue()
        results.put(UploadResult(entries[0]))
        results.put(UploadResult(entries[1], UploadError("upload cancelled: b", entries[1])))
        calls = {"count": 0}
        original_get = results.get

        def interrupted_get(*args: object, **kwargs: object) -> UploadResult:
            calls["count"] += 1
            if calls["count"] == 1:
                raise KeyboardInterrupt
            return original_get()

        results.get = interrupted_get  # type: ignore[method-assign]
        engine = SyncEngine(config, MagicMock(), MagicMock())

        with patch("timesheet_sync.sync.engine.new_result_queue", return_value=results):
            result = engine.upload(entries, opts=opts)

        assert opts.cancel_event.is_set()
        assert result.entries_uploaded == 1
        assert result.entries_failed == 1
