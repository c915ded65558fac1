"""Harvest API integration."""

from timesheet_sync.client.harvest.client import HarvestClient
from timesheet_sync.client.harvest.models import HarvestReference, HarvestTimeEntries, HarvestTimeEntry

__all__ = ["HarvestClient", "HarvestReference", "HarvestTimeEntries", "HarvestTimeEntry"]
