"""Tempo Timesheets source and target adapter."""

import logging
from datetime import timedelta

import httpx
from pydantic import TypeAdapter, ValidationError

from timesheet_sync.client.base import BaseClientOpts, FetchOpts, Fetcher, HTTPClient, UploadOpts
from timesheet_sync.client.tempo.models import TempoWorklog, TempoWorklogCreate
from timesheet_sync.client.uploader import DefaultUploader
from timesheet_sync.errors import FetchError
from timesheet_sync.worklog import Entry, NamedField

logger = logging.getLogger(__name__)

PATH_WORKLOG_CREATE = "/rest/tempo-timesheets/4/worklogs"
PATH_WORKLOG_SEARCH = "/rest/tempo-timesheets/4/worklogs/search"

_worklogs_adapter = TypeAdapter(list[TempoWorklog])


class TempoClient(Fetcher, DefaultUploader):
    """Searches and creates worklogs in Tempo Timesheets."""

    def __init__(
        self,
        base_url: str,
        username: str,
        password: str,
        opts: BaseClientOpts | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize Tempo client.

        Args:
            base_url: Jira base URL hosting Tempo.
            username: Jira user name.
            password: Jira password or API token.
            opts: Common client options.
            transport: Custom httpx transport.
        """
        self.opts = opts or BaseClientOpts()
        self.http = HTTPClient(
            base_url,
            headers={"Content-Type": "application/json"},
            auth=(username, password),
            timeout=self.opts.timeout,
            transport=transport,
        )

    def fetch_entries(self, opts: FetchOpts) -> list[Entry]:
        search = {
            "from": opts.start.astimezone().date().isoformat(),
            "to": opts.end.astimezone().date().isoformat(),
            "worker": opts.user,
        }
        try:
            data = self.http.call("POST", PATH_WORKLOG_SEARCH, json=search)
            worklogs = _worklogs_adapter.validate_python(data or [])
        except (httpx.HTTPError, ValidationError, ValueError) as e:
            raise FetchError(f"failed to fetch entries from Tempo: {e}") from e

        entries = [self._to_entry(worklog) for worklog in worklogs]
        logger.info(f"Found {len(entries)} Tempo entries")
        return entries

    @staticmethod
    def _to_entry(worklog: TempoWorklog) -> Entry:
        issue = worklog.issue
        billable = timedelta(seconds=worklog.billable_seconds)
        spent = timedelta(seconds=worklog.time_spent_seconds)
        return Entry(
            client=NamedField.from_value(issue.account_key),
            project=NamedField.from_value(issue.project_id, issue.project_key),
            task=NamedField.from_value(issue.id, issue.key),
            summary=issue.summary,
            notes=worklog.comment,
            start=worklog.start_date,
            billable=billable,
            unbillable=max(spent - billable, timedelta(0)),
        )

    def upload_entry(
        self,
        entry: Entry,
        billable: timedelta,
        unbillable: timedelta,
        opts: UploadOpts,
    ) -> None:
        started = entry.start.astimezone() if entry.start else None
        worklog = TempoWorklogCreate(
            comment=entry.summary,
            origin_task_id=entry.task.name,
            started=started.date().isoformat() if started else "",
            billable_seconds=int(billable.total_seconds()),
            time_spent_seconds=int((billable + unbillable).total_seconds()),
            worker=opts.user,
        )
        self.http.call("POST", PATH_WORKLOG_CREATE, json=worklog.to_api_dict())

    def close(self) -> None:
        self.http.close()
