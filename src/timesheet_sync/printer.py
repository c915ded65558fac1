"""Tabular rendering of reconciled entries."""

from collections.abc import Callable, Iterable, Sequence
from datetime import datetime, timedelta
from typing import Any

from rich.console import Console
from rich.table import Table

from timesheet_sync.client.progress import truncate
from timesheet_sync.errors import ConfigurationError
from timesheet_sync.worklog import Entry

ROW_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
COLUMN_TRUNCATE = 30

COLUMN_TASK = "task"
COLUMN_SUMMARY = "summary"
COLUMN_PROJECT = "project"
COLUMN_CLIENT = "client"
COLUMN_START = "start"
COLUMN_BILLABLE = "billable"
COLUMN_UNBILLABLE = "unbillable"

COLUMNS = [
    COLUMN_TASK,
    COLUMN_SUMMARY,
    COLUMN_PROJECT,
    COLUMN_CLIENT,
    COLUMN_START,
    COLUMN_BILLABLE,
    COLUMN_UNBILLABLE,
]
HIDEABLE_COLUMNS = [COLUMN_SUMMARY, COLUMN_PROJECT, COLUMN_CLIENT, COLUMN_START]
DEFAULT_SORT_BY = [COLUMN_START, COLUMN_PROJECT, COLUMN_TASK, COLUMN_SUMMARY]

# A leading "-" sorts the column in descending order
DESCENDING_PREFIX = "-"

_SORT_VALUES: dict[str, Callable[[Entry], Any]] = {
    COLUMN_TASK: lambda e: e.task.name,
    COLUMN_SUMMARY: lambda e: e.summary,
    COLUMN_PROJECT: lambda e: e.project.name,
    COLUMN_CLIENT: lambda e: e.client.name,
    COLUMN_START: lambda e: e.start.timestamp() if e.start else float("-inf"),
    COLUMN_BILLABLE: lambda e: e.billable,
    COLUMN_UNBILLABLE: lambda e: e.unbillable,
}


def format_duration(duration: timedelta) -> str:
    """Format a duration as ``1h2m3s``."""
    seconds = int(duration.total_seconds())
    hours, seconds = divmod(seconds, 3600)
    minutes, seconds = divmod(seconds, 60)
    return f"{hours}h{minutes}m{seconds}s"


def parse_sort_by(values: Iterable[str]) -> list[tuple[str, bool]]:
    """Parse sort columns into ``(column, descending)`` pairs.

    Raises:
        ConfigurationError: If a column is not sortable.
    """
    sort_by = []
    for value in values:
        descending = value.startswith(DESCENDING_PREFIX)
        column = value[len(DESCENDING_PREFIX):] if descending else value
        if column not in COLUMNS:
            raise ConfigurationError(f"'{column}' is not part of the sortable columns {COLUMNS}")
        sort_by.append((column, descending))
    return sort_by


def validate_hidden_columns(columns: Iterable[str]) -> list[str]:
    """Check that every column may be hidden.

    Raises:
        ConfigurationError: If a column cannot be hidden.
    """
    hidden = list(columns)
    for column in hidden:
        if column not in HIDEABLE_COLUMNS:
            raise ConfigurationError(f"'{column}' is not part of the hideable columns {HIDEABLE_COLUMNS}")
    return hidden


def sort_entries(entries: Iterable[Entry], sort_by: Sequence[tuple[str, bool]]) -> list[Entry]:
    """Sort entries by several columns, the first column taking precedence."""
    result = list(entries)
    # Stable sorts applied from the least to the most significant column
    for column, descending in reversed(sort_by):
        result.sort(key=_SORT_VALUES[column], reverse=descending)
    return result


def _cells(entry: Entry) -> dict[str, str]:
    start = entry.start.astimezone().strftime(ROW_DATE_FORMAT) if entry.start else "-"
    return {
        COLUMN_TASK: truncate(entry.task.name, COLUMN_TRUNCATE),
        COLUMN_SUMMARY: truncate(entry.summary, COLUMN_TRUNCATE),
        COLUMN_PROJECT: truncate(entry.project.name, COLUMN_TRUNCATE),
        COLUMN_CLIENT: truncate(entry.client.name, COLUMN_TRUNCATE),
        COLUMN_START: start,
        COLUMN_BILLABLE: format_duration(entry.billable),
        COLUMN_UNBILLABLE: format_duration(entry.unbillable),
    }


def build_table(
    complete_entries: Sequence[Entry],
    incomplete_entries: Sequence[Entry],
    title: str = "Worklog entries",
    sort_by: Sequence[str] = DEFAULT_SORT_BY,
    hidden_columns: Sequence[str] = (),
) -> Table:
    """Build a table of the complete entries followed by the incomplete ones.

    Raises:
        ConfigurationError: If a sort or hidden column is unknown.
    """
    order = parse_sort_by(sort_by)
    hidden = validate_hidden_columns(hidden_columns)
    columns = [column for column in COLUMNS if column not in hidden]

    total_billable = sum((e.billable for e in complete_entries), timedelta(0))
    total_unbillable = sum((e.unbillable for e in complete_entries), timedelta(0))
    footers = {
        COLUMN_BILLABLE: format_duration(total_billable),
        COLUMN_UNBILLABLE: format_duration(total_unbillable),
    }
    styles = {COLUMN_TASK: "cyan", COLUMN_PROJECT: "magenta", COLUMN_CLIENT: "magenta"}

    table = Table(title=title, show_footer=True)
    table.add_column("#", style="dim", justify="right")
    for column in columns:
        table.add_column(
            column.capitalize(),
            style=styles.get(column),
            justify="right" if column in footers else "left",
            footer=footers.get(column, ""),
        )

    index = 0
    for entry in sort_entries(complete_entries, order):
        index += 1
        cells = _cells(entry)
        table.add_row(str(index), *(cells[column] for column in columns))

    for entry in sort_entries(incomplete_entries, order):
        index += 1
        cells = _cells(entry)
        table.add_row(str(index), *(cells[column] for column in columns), style="yellow")

    return table


def print_entries(
    complete_entries: Sequence[Entry],
    incomplete_entries: Sequence[Entry],
    start: datetime,
    end: datetime,
    console: Console | None = None,
    sort_by: Sequence[str] = DEFAULT_SORT_BY,
    hidden_columns: Sequence[str] = (),
) -> None:
    """Print reconciled entries; incomplete ones are highlighted and never uploaded."""
    console = console or Console()
    title = f"Worklog entries ({start:%Y-%m-%d %H:%M} - {end:%Y-%m-%d %H:%M})"
    console.print(build_table(complete_entries, incomplete_entries, title, sort_by, hidden_columns))

    if incomplete_entries:
        console.print(
            f"[yellow]{len(incomplete_entries)} incomplete entries (highlighted) will not be uploaded[/yellow]"
        )
