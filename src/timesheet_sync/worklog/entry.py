"""Canonical worklog entry model."""

import re
from collections.abc import Iterable, Sequence
from datetime import date, datetime, timedelta

from pydantic import BaseModel, ConfigDict, field_validator

MICROSECOND = timedelta(microseconds=1)

MergeKey = tuple[str, str, str, date | None]


def divide_duration(duration: timedelta, parts: int) -> timedelta:
    """Divide a non-negative duration, rounding half away from zero.

    Rounding happens on whole microseconds, the resolution of timedelta.
    """
    total = duration // MICROSECOND
    return timedelta(microseconds=(2 * total + parts) // (2 * parts))


class NamedField(BaseModel):
    """An attribute of an entry identified by both an ID and a name."""

    model_config = ConfigDict(frozen=True)

    id: str = ""
    name: str = ""

    @classmethod
    def from_value(cls, value: str | int | None, name: str | None = None) -> "NamedField":
        """Build a field from an integer/string ID and an optional name.

        Sources using a single label for both (tags, client names) pass only ``value``.
        """
        text = "" if value is None or value == 0 else str(value)
        return cls(id=text, name=text if name is None else name)

    def is_complete(self) -> bool:
        """Both ID and name are filled."""
        return bool(self.id) and bool(self.name)


class Entry(BaseModel):
    """One span of logged time."""

    model_config = ConfigDict(frozen=True)

    client: NamedField = NamedField()
    project: NamedField = NamedField()
    task: NamedField = NamedField()
    summary: str = ""
    notes: str = ""
    start: datetime | None = None
    billable: timedelta = timedelta(0)
    unbillable: timedelta = timedelta(0)

    @field_validator("billable", "unbillable")
    @classmethod
    def _non_negative(cls, value: timedelta) -> timedelta:
        if value < timedelta(0):
            raise ValueError("duration cannot be negative")
        return value

    @property
    def total(self) -> timedelta:
        """Billable and unbillable time together."""
        return self.billable + self.unbillable

    def key(self) -> MergeKey:
        """Key shared by entries describing the same activity on the same day."""
        start_date = self.start.date() if self.start else None
        return (self.project.name, self.task.name, self.summary, start_date)

    def is_complete(self) -> bool:
        """Every attribution field, the summary, the start and some time are set."""
        has_metadata = (
            self.client.is_complete()
            and self.project.is_complete()
            and self.task.is_complete()
            and self.summary != ""
        )
        has_time = self.start is not None and self.total > timedelta(0)
        return has_metadata and has_time

    def split_duration(self, parts: int) -> tuple[timedelta, timedelta]:
        """Split billable and unbillable time into ``parts`` equal pieces."""
        return divide_duration(self.billable, parts), divide_duration(self.unbillable, parts)

    def split_by_tags_as_tasks(
        self,
        summary: str,
        pattern: re.Pattern[str],
        tags: Sequence[NamedField],
    ) -> list["Entry"]:
        """Derive one entry per tag whose name matches ``pattern``.

        Durations are divided evenly between the derived entries, so their sum
        may differ from the original by up to one microsecond per extra entry.
        An empty list means no tag matched; keeping or dropping the original
        is up to the caller.

        Args:
            summary: Summary of the derived entries.
            pattern: Pattern a tag name must contain to be treated as a task.
            tags: Tags of the entry, in order.

        Returns:
            Derived entries, in tag order.
        """
        tasks = [tag for tag in tags if pattern.search(tag.name)]
        if not tasks:
            return []

        billable, unbillable = self.split_duration(len(tasks))
        return [
            self.model_copy(
                update={
                    "task": task,
                    "summary": summary,
                    "billable": billable,
                    "unbillable": unbillable,
                }
            )
            for task in tasks
        ]


def group_by_task(entries: Iterable[Entry]) -> dict[str, list[Entry]]:
    """Group entries by task ID, keeping input order inside each group."""
    groups: dict[str, list[Entry]] = {}
    for entry in entries:
        groups.setdefault(entry.task.id, []).append(entry)
    return groups
