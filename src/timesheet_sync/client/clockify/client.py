"""Clockify source adapter."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx
from pydantic import TypeAdapter

from timesheet_sync.client.base import BaseClientOpts, Fetcher, FetchOpts, HTTPClient
from timesheet_sync.client.clockify.models import ClockifyTimeEntry
from timesheet_sync.client.pagination import PageMeta, PageRequest, paginated_fetch
from timesheet_sync.errors import FetchError
from timesheet_sync.worklog import Entry, NamedField

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
PATH_WORKLOG = "/api/v1/workspaces/{workspace}/user/{user}/time-entries"
PAGE_SIZE = 100
# Clockify refuses to page past 5000 entries
MAX_PAGES = 5000 // PAGE_SIZE

_entries_adapter = TypeAdapter(list[ClockifyTimeEntry])


def _format_time(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(DATE_FORMAT)


class ClockifyClient(Fetcher):
    """Fetches hydrated time entries from Clockify."""

    DEFAULT_URL = "https://api.clockify.me"

    def __init__(
        self,
        api_key: str,
        workspace: str | None = None,
        base_url: str = DEFAULT_URL,
        opts: BaseClientOpts | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize Clockify client.

        Args:
            api_key: Clockify API key.
            workspace: Workspace ID. Defaults to the user's default workspace.
            base_url: Clockify API base URL.
            opts: Common client options.
            transport: Custom httpx transport.
        """
        self.opts = opts or BaseClientOpts()
        self.workspace = workspace
        self.http = HTTPClient(
            base_url,
            headers={"X-Api-Key": api_key},
            timeout=self.opts.timeout,
            transport=transport,
        )

    def get_current_user(self) -> dict[str, Any]:
        """Get current authenticated user.

        Raises:
            httpx.HTTPError: If API request fails.
        """
        return self.http.call("GET", "/api/v1/user")

    def fetch_entries(self, opts: FetchOpts) -> list[Entry]:
        user, workspace = opts.user, self.workspace
        if not user or not workspace:
            try:
                current_user = self.get_current_user()
            except httpx.HTTPError as e:
                raise FetchError(f"failed to fetch entries: cannot resolve Clockify user: {e}") from e
            try:
                user = user or current_user["id"]
                workspace = workspace or current_user["defaultWorkspace"]
            except (KeyError, TypeError) as e:
                raise FetchError(f"failed to fetch entries: unexpected Clockify user payload, missing {e}") from e

        seed = PageRequest(
            path=PATH_WORKLOG.format(workspace=workspace, user=user),
            params={
                "start": _format_time(opts.start),
                "end": _format_time(opts.end),
                "hydrated": "true",
                "in-progress": "false",
            },
            page_size=PAGE_SIZE,
            page_size_param="page-size",
        )

        entries = paginated_fetch(seed, self._fetch_page, self._parse_entries, max_pages=MAX_PAGES)
        logger.info(f"Found {len(entries)} Clockify entries")
        return entries

    def _fetch_page(self, request: PageRequest) -> tuple[list[ClockifyTimeEntry], PageMeta]:
        # Clockify reports no totals; an empty page ends the listing
        data = self.http.call("GET", request.path, params=request.query)
        return _entries_adapter.validate_python(data or []), PageMeta()

    def _parse_entries(self, fetched: list[ClockifyTimeEntry]) -> list[Entry]:
        entries: list[Entry] = []
        for item in fetched:
            entries.extend(self._parse_entry(item))
        return entries

    def _parse_entry(self, item: ClockifyTimeEntry) -> list[Entry]:
        billable, unbillable = item.duration, timedelta(0)
        if not item.billable:
            billable, unbillable = unbillable, billable

        project = item.project
        task = item.task
        entry = Entry(
            client=NamedField(id=project.client_id, name=project.client_name) if project else NamedField(),
            project=NamedField(id=project.id, name=project.name) if project else NamedField(),
            task=NamedField(id=task.id, name=task.name) if task else NamedField(),
            summary=task.name if task else "",
            notes=item.description or "",
            start=item.start_time,
            billable=billable,
            unbillable=unbillable,
        )

        pattern = self.opts.tags_as_tasks_regex
        if pattern is None or not item.tags:
            return [entry]

        tags = [NamedField(id=tag.id, name=tag.name) for tag in item.tags]
        split = entry.split_by_tags_as_tasks(item.description or "", pattern, tags)
        if not split:
            logger.debug(f"Dropping Clockify entry {item.id}: no tag matches the task pattern")
        return split

    def close(self) -> None:
        self.http.close()
