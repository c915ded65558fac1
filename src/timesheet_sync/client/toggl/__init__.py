"""Toggl Track API integration."""

from timesheet_sync.client.toggl.client import TogglClient
from timesheet_sync.client.toggl.models import TogglReport, TogglTimeEntry

__all__ = ["TogglClient", "TogglReport", "TogglTimeEntry"]
