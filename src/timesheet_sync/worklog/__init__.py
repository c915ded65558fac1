"""Worklog entry model and reconciliation."""

from timesheet_sync.worklog.entry import Entry, NamedField, divide_duration, group_by_task
from timesheet_sync.worklog.worklog import FilterOpts, Worklog, filter_entries, merge_entries, reconcile

__all__ = [
    "Entry",
    "NamedField",
    "FilterOpts",
    "Worklog",
    "divide_duration",
    "filter_entries",
    "group_by_task",
    "merge_entries",
    "reconcile",
]
