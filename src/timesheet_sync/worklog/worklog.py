"""Filtering, merging and classification of worklog entries."""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from timesheet_sync.worklog.entry import Entry, MergeKey

logger = logging.getLogger(__name__)

NOTE_SEPARATOR = "; "


@dataclass(frozen=True)
class FilterOpts:
    """Patterns entries must match to be kept. A missing pattern matches all."""

    client: re.Pattern[str] | None = None
    project: re.Pattern[str] | None = None

    def matches(self, entry: Entry) -> bool:
        if self.client is not None and not self.client.search(entry.client.name):
            return False
        if self.project is not None and not self.project.search(entry.project.name):
            return False
        return True


def filter_entries(entries: Iterable[Entry], filters: FilterOpts | None = None) -> list[Entry]:
    """Drop entries whose client or project name fails the filters."""
    if filters is None:
        return list(entries)
    return [entry for entry in entries if filters.matches(entry)]


def _merge_notes(accumulated: str, incoming: str) -> str:
    if not incoming:
        return accumulated
    if not accumulated:
        return incoming
    if incoming == accumulated or incoming in accumulated.split(NOTE_SEPARATOR):
        return accumulated
    return f"{accumulated}{NOTE_SEPARATOR}{incoming}"


def merge_entries(entries: Iterable[Entry]) -> list[Entry]:
    """Merge entries sharing the same key.

    The first entry seen for a key provides the attribution, summary and start.
    Durations of later entries are added to it and their notes appended,
    skipping empty and already present notes.

    Args:
        entries: Entries to merge.

    Returns:
        One entry per key, in first-seen order.
    """
    merged: dict[MergeKey, Entry] = {}

    for entry in entries:
        key = entry.key()
        stored = merged.get(key)

        if stored is None:
            merged[key] = entry
            continue

        merged[key] = stored.model_copy(
            update={
                "billable": stored.billable + entry.billable,
                "unbillable": stored.unbillable + entry.unbillable,
                "notes": _merge_notes(stored.notes, entry.notes),
            }
        )

    return list(merged.values())


@dataclass
class Worklog:
    """Reconciled entries, split by completeness."""

    complete_entries: list[Entry] = field(default_factory=list)
    incomplete_entries: list[Entry] = field(default_factory=list)

    @classmethod
    def from_entries(cls, entries: Iterable[Entry], filters: FilterOpts | None = None) -> "Worklog":
        """Filter, merge and classify raw entries."""
        raw = list(entries)
        kept = filter_entries(raw, filters)
        merged = merge_entries(kept)

        worklog = cls()
        for entry in merged:
            if entry.is_complete():
                worklog.complete_entries.append(entry)
            else:
                worklog.incomplete_entries.append(entry)

        logger.info(
            f"Reconciled {len(raw)} entries: {len(raw) - len(kept)} filtered out, "
            f"{len(worklog.complete_entries)} complete, {len(worklog.incomplete_entries)} incomplete"
        )
        return worklog


def reconcile(
    entries: Iterable[Entry],
    filters: FilterOpts | None = None,
) -> tuple[list[Entry], list[Entry]]:
    """Filter, merge and classify entries.

    Returns:
        Complete and incomplete entries.
    """
    worklog = Worklog.from_entries(entries, filters)
    return worklog.complete_entries, worklog.incomplete_entries
