"""Synchronization engine for worklogs."""

from timesheet_sync.sync.engine import SyncEngine, SyncResult

__all__ = ["SyncEngine", "SyncResult"]
