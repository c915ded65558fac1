"""Timewarrior integration."""

from timesheet_sync.client.timewarrior.client import TimewarriorClient
from timesheet_sync.client.timewarrior.models import TimewarriorInterval

__all__ = ["TimewarriorClient", "TimewarriorInterval"]
