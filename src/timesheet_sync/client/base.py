"""Contracts and transport helpers shared by the source and target adapters."""

import logging
import re
import subprocess
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from queue import Queue
from typing import TYPE_CHECKING, Any

import httpx

from timesheet_sync.config import DEFAULT_TIMEOUT
from timesheet_sync.worklog import Entry

if TYPE_CHECKING:
    from timesheet_sync.client.progress import ProgressTracker
    from timesheet_sync.client.uploader import UploadResult

logger = logging.getLogger(__name__)

USER_AGENT = "timesheet-sync"


@dataclass(frozen=True)
class BaseClientOpts:
    """Options every adapter accepts."""

    timeout: float = DEFAULT_TIMEOUT
    # Tags whose name contains a match are treated as tasks; None disables it
    tags_as_tasks_regex: re.Pattern[str] | None = None


@dataclass(frozen=True)
class FetchOpts:
    """What to fetch: whose entries, in the window [start, end)."""

    start: datetime
    end: datetime
    user: str = ""


@dataclass
class UploadOpts:
    """How to upload entries."""

    # Round billable and unbillable time separately to the closest minute
    round_to_closest_minute: bool = False
    # Count every second spent as billable
    treat_duration_as_billed: bool = False
    user: str = ""
    # Tracks per-entry progress; None disables tracking
    progress: "ProgressTracker | None" = None
    # Once set, entries not yet uploaded are reported as cancelled
    cancel_event: threading.Event = field(default_factory=threading.Event)
    # Upper bound on concurrently uploading task groups; None means one worker per task
    max_workers: int | None = None


class Fetcher(ABC):
    """A source of worklog entries."""

    @abstractmethod
    def fetch_entries(self, opts: FetchOpts) -> list[Entry]:
        """Fetch every entry in the requested window.

        Raises:
            FetchError: If any request or parsing step fails. No partial
                result is returned.
        """

    def close(self) -> None:
        """Release held resources."""

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


class Uploader(ABC):
    """A target accepting worklog entries."""

    @abstractmethod
    def upload_entries(
        self,
        entries: Sequence[Entry],
        results: "Queue[UploadResult]",
        opts: UploadOpts,
    ) -> None:
        """Start uploading ``entries`` without waiting for completion.

        Exactly one result per entry is put on ``results``.
        """

    def close(self) -> None:
        """Release held resources."""

    def __enter__(self) -> "Uploader":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


class HTTPClient:
    """Thin wrapper around httpx.Client raising for unsuccessful responses."""

    def __init__(
        self,
        base_url: str,
        headers: dict[str, str] | None = None,
        auth: httpx.Auth | tuple[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize HTTP client.

        Args:
            base_url: Base URL every path is resolved against.
            headers: Default headers for requests.
            auth: Authentication applied on every request.
            timeout: Deadline in seconds for a single request.
            transport: Custom transport, mainly for tests.
        """
        self.client = httpx.Client(
            base_url=base_url,
            headers={"User-Agent": USER_AGENT, **(headers or {})},
            auth=auth,
            timeout=timeout,
            transport=transport,
        )

    def call(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Send a request and decode the JSON response.

        Returns:
            Decoded response body, None for an empty body.

        Raises:
            httpx.HTTPError: If the request fails or the status is not 2xx.
        """
        response = self.client.request(method, path, params=params, json=json, headers=headers)
        response.raise_for_status()
        if not response.content:
            return None
        return response.json()

    def close(self) -> None:
        """Close the HTTP client."""
        self.client.close()


Runner = Callable[..., subprocess.CompletedProcess]


class CLIClient:
    """Runs an external command bound to a deadline."""

    def __init__(
        self,
        command: str,
        arguments: Sequence[str] = (),
        timeout: float = DEFAULT_TIMEOUT,
        runner: Runner = subprocess.run,
    ) -> None:
        self.command = command
        self.arguments = list(arguments)
        self.timeout = timeout
        self.runner = runner

    def execute(self, arguments: Sequence[str]) -> bytes:
        """Run the command and return its standard output.

        Raises:
            subprocess.CalledProcessError: If the command exits non-zero.
            subprocess.TimeoutExpired: If the command exceeds the deadline.
        """
        args = [self.command, *arguments, *self.arguments]
        logger.debug(f"Executing {' '.join(args)}")
        completed = self.runner(args, capture_output=True, check=True, timeout=self.timeout)
        return completed.stdout
