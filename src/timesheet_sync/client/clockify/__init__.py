"""Clockify API integration."""

from timesheet_sync.client.clockify.client import ClockifyClient
from timesheet_sync.client.clockify.models import (
    ClockifyProject,
    ClockifyTag,
    ClockifyTask,
    ClockifyTimeEntry,
)

__all__ = [
    "ClockifyClient",
    "ClockifyProject",
    "ClockifyTag",
    "ClockifyTask",
    "ClockifyTimeEntry",
]
