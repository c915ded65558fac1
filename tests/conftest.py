"""Pytest configuration and fixtures."""

import tempfile
from collections.abc import Callable, Iterator
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from timesheet_sync.config import Config
from timesheet_sync.utils import StorageManager
from timesheet_sync.worklog import Entry, NamedField


@pytest.fixture
def temp_config_dir() -> Iterator[Path]:
    """Create a temporary configuration directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def storage_manager(temp_config_dir: Path) -> StorageManager:
    """Create a storage manager with temporary directory."""
    return StorageManager(temp_config_dir)


@pytest.fixture
def config(temp_config_dir: Path) -> Config:
    """Create a config instance with temporary directory."""
    return Config(temp_config_dir)


@pytest.fixture
def make_entry() -> Callable[..., Entry]:
    """Factory of complete entries; keyword arguments override fields."""

    def _make_entry(**overrides: object) -> Entry:
        values: dict[str, object] = {
            "client": NamedField(id="c1", name="ACME"),
            "project": NamedField(id="p1", name="X"),
            "task": NamedField(id="t1", name="Y"),
            "summary": "Z",
            "notes": "",
            "start": datetime(2021, 10, 2, 9, 0, tzinfo=timezone.utc),
            "billable": timedelta(hours=1),
            "unbillable": timedelta(0),
        }
        values.update(overrides)
        return Entry(**values)

    return _make_entry
