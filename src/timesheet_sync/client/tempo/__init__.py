"""Tempo Timesheets API integration."""

from timesheet_sync.client.tempo.client import TempoClient
from timesheet_sync.client.tempo.models import TempoIssue, TempoWorklog, TempoWorklogCreate

__all__ = ["TempoClient", "TempoIssue", "TempoWorklog", "TempoWorklogCreate"]
