"""Timewarrior source adapter, reading intervals through the ``timew`` CLI."""

import json
import logging
import re
import subprocess
from collections.abc import Sequence
from datetime import timedelta

from pydantic import TypeAdapter, ValidationError

from timesheet_sync.client.base import BaseClientOpts, CLIClient, Fetcher, FetchOpts, Runner
from timesheet_sync.client.timewarrior.models import TimewarriorInterval
from timesheet_sync.errors import FetchError
from timesheet_sync.worklog import Entry, NamedField

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

_intervals_adapter = TypeAdapter(list[TimewarriorInterval])


class TimewarriorClient(Fetcher):
    """Builds entries from Timewarrior intervals and their tags.

    Tags select the client, the project and the task of an interval; an
    interval tagged with the unbillable tag counts as unbillable time.
    """

    def __init__(
        self,
        client_tag_regex: re.Pattern[str],
        project_tag_regex: re.Pattern[str],
        command: str = "timew",
        arguments: Sequence[str] = (),
        unbillable_tag: str = "unbillable",
        opts: BaseClientOpts | None = None,
        runner: Runner = subprocess.run,
    ) -> None:
        self.opts = opts or BaseClientOpts()
        self.client_tag_regex = client_tag_regex
        self.project_tag_regex = project_tag_regex
        self.unbillable_tag = unbillable_tag
        self.cli = CLIClient(command, arguments, timeout=self.opts.timeout, runner=runner)

    def fetch_entries(self, opts: FetchOpts) -> list[Entry]:
        arguments = [
            "export",
            "from", opts.start.strftime(DATE_FORMAT),
            "to", opts.end.strftime(DATE_FORMAT),
        ]
        try:
            output = self.cli.execute(arguments)
            intervals = _intervals_adapter.validate_python(json.loads(output or b"[]"))
        except (subprocess.SubprocessError, OSError, ValueError, ValidationError) as e:
            raise FetchError(f"failed to fetch entries from Timewarrior: {e}") from e

        entries: list[Entry] = []
        for interval in intervals:
            if interval.end is None:
                logger.debug(f"Skipping running Timewarrior interval {interval.id}")
                continue
            entries.extend(self._parse_interval(interval))

        logger.info(f"Found {len(entries)} Timewarrior entries")
        return entries

    def _parse_interval(self, interval: TimewarriorInterval) -> list[Entry]:
        duration = interval.end - interval.start
        billable, unbillable = duration, timedelta(0)
        client = project = task = NamedField()
        task_pattern = self.opts.tags_as_tasks_regex

        for tag in interval.tags:
            if tag == self.unbillable_tag:
                billable, unbillable = timedelta(0), duration
            elif self.client_tag_regex.search(tag):
                client = NamedField.from_value(tag)
            elif self.project_tag_regex.search(tag):
                project = NamedField.from_value(tag)
            elif task_pattern is not None and task_pattern.search(tag):
                task = NamedField.from_value(tag)

        if not task.is_complete():
            task = NamedField.from_value(interval.annotation)

        entry = Entry(
            client=client,
            project=project,
            task=task,
            summary=interval.annotation,
            notes=interval.annotation,
            start=interval.start,
            billable=billable,
            unbillable=unbillable,
        )

        if task_pattern is None or not interval.tags:
            return [entry]

        tags = [NamedField.from_value(tag) for tag in interval.tags]
        split = entry.split_by_tags_as_tasks(entry.summary, task_pattern, tags)
        if not split:
            logger.debug(f"Dropping Timewarrior interval {interval.id}: no tag matches the task pattern")
        return split
