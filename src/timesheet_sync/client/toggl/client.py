"""Toggl Track source adapter."""

import logging
from datetime import timedelta

import httpx

from timesheet_sync.client.base import USER_AGENT, BaseClientOpts, Fetcher, FetchOpts, HTTPClient
from timesheet_sync.client.pagination import PageMeta, PageRequest, paginated_fetch
from timesheet_sync.client.toggl.models import TogglReport, TogglTimeEntry
from timesheet_sync.errors import FetchError
from timesheet_sync.worklog import Entry, NamedField

logger = logging.getLogger(__name__)

PATH_WORKLOG = "/reports/api/v2/details"


class TogglClient(Fetcher):
    """Fetches time entries from the Toggl Track detailed report."""

    DEFAULT_URL = "https://api.track.toggl.com"

    def __init__(
        self,
        api_key: str,
        workspace: int | str,
        base_url: str = DEFAULT_URL,
        opts: BaseClientOpts | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize Toggl client.

        Args:
            api_key: Toggl API token.
            workspace: Workspace ID.
            base_url: Toggl API base URL.
            opts: Common client options.
            transport: Custom httpx transport.
        """
        self.opts = opts or BaseClientOpts()
        self.workspace = workspace
        self.http = HTTPClient(
            base_url,
            auth=(api_key, "api_token"),
            timeout=self.opts.timeout,
            transport=transport,
        )

    def fetch_entries(self, opts: FetchOpts) -> list[Entry]:
        # Several comma separated users may be given; the report takes one
        user_id = opts.user.split(",")[0].strip()
        if not user_id.isdigit():
            raise FetchError(f"failed to fetch entries: invalid Toggl user ID {opts.user!r}")

        seed = PageRequest(
            path=PATH_WORKLOG,
            params={
                "since": opts.start.date().isoformat(),
                "until": opts.end.date().isoformat(),
                "user_id": user_id,
                "workspace_id": str(self.workspace),
                "user_agent": USER_AGENT,
            },
            page_size_param=None,
        )
        entries = paginated_fetch(seed, self._fetch_page, self._parse_entries)
        logger.info(f"Found {len(entries)} Toggl entries")
        return entries

    def _fetch_page(self, request: PageRequest) -> tuple[list[TogglTimeEntry], PageMeta]:
        report = TogglReport.model_validate(self.http.call("GET", request.path, params=request.query))
        return report.data, PageMeta(entries_per_page=report.per_page, total_entries=report.total_count)

    def _parse_entries(self, fetched: list[TogglTimeEntry]) -> list[Entry]:
        entries: list[Entry] = []
        for item in fetched:
            billable, unbillable = item.duration, timedelta(0)
            if not item.is_billable:
                billable, unbillable = unbillable, billable

            entry = Entry(
                client=NamedField.from_value(item.client),
                project=NamedField.from_value(item.project_id, item.project or ""),
                task=NamedField.from_value(item.task_id, item.task or ""),
                summary=item.description,
                notes=item.description,
                start=item.start,
                billable=billable,
                unbillable=unbillable,
            )

            pattern = self.opts.tags_as_tasks_regex
            if pattern is None or not item.tags:
                entries.append(entry)
                continue

            tags = [NamedField.from_value(tag) for tag in item.tags]
            split = entry.split_by_tags_as_tasks(entry.summary, pattern, tags)
            if not split:
                logger.debug(f"Dropping Toggl entry {entry.key()}: no tag matches the task pattern")
            entries.extend(split)
        return entries

    def close(self) -> None:
        self.http.close()
