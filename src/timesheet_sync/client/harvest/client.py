"""Harvest source adapter."""

import logging
from datetime import datetime, timedelta, timezone

import httpx

from timesheet_sync.client.base import BaseClientOpts, Fetcher, FetchOpts, HTTPClient
from timesheet_sync.client.harvest.models import HarvestTimeEntries, HarvestTimeEntry
from timesheet_sync.client.pagination import PageMeta, PageRequest, paginated_fetch
from timesheet_sync.worklog import Entry

logger = logging.getLogger(__name__)

PATH_WORKLOG = "/v2/time_entries"


def _format_time(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")


class HarvestClient(Fetcher):
    """Fetches time entries from Harvest."""

    DEFAULT_URL = "https://api.harvestapp.com"

    def __init__(
        self,
        api_key: str,
        account: int | str,
        base_url: str = DEFAULT_URL,
        opts: BaseClientOpts | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize Harvest client.

        Args:
            api_key: Harvest personal access token.
            account: Harvest account ID.
            base_url: Harvest API base URL.
            opts: Common client options.
            transport: Custom httpx transport.
        """
        self.opts = opts or BaseClientOpts()
        self.http = HTTPClient(
            base_url,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Harvest-Account-ID": str(account),
            },
            timeout=self.opts.timeout,
            transport=transport,
        )

    def fetch_entries(self, opts: FetchOpts) -> list[Entry]:
        params = {
            "from": _format_time(opts.start),
            "to": _format_time(opts.end),
            "is_running": "false",
        }
        if opts.user:
            params["user_id"] = opts.user

        seed = PageRequest(path=PATH_WORKLOG, params=params)
        entries = paginated_fetch(seed, self._fetch_page, self._parse_entries)
        logger.info(f"Found {len(entries)} Harvest entries")
        return entries

    def _fetch_page(self, request: PageRequest) -> tuple[list[HarvestTimeEntry], PageMeta]:
        page = HarvestTimeEntries.model_validate(self.http.call("GET", request.path, params=request.query))
        return page.time_entries, PageMeta(entries_per_page=page.per_page, total_entries=page.total_entries)

    def _parse_entries(self, fetched: list[HarvestTimeEntry]) -> list[Entry]:
        entries: list[Entry] = []
        for item in fetched:
            billable, unbillable = item.duration, timedelta(0)
            if not item.billable:
                billable, unbillable = unbillable, billable

            entries.append(
                Entry(
                    client=item.client.to_field(),
                    project=item.project.to_field(),
                    task=item.task.to_field(),
                    summary=item.notes or "",
                    notes=item.notes or "",
                    start=item.start_time,
                    billable=billable,
                    unbillable=unbillable,
                )
            )
        return entries

    def close(self) -> None:
        self.http.close()
