"""Pydantic models for Harvest API responses."""

from datetime import date, datetime, timedelta

from pydantic import BaseModel

from timesheet_sync.worklog import NamedField


class HarvestReference(BaseModel):
    """Client, project or task reference with an integer ID."""

    id: int = 0
    name: str = ""

    def to_field(self) -> NamedField:
        return NamedField.from_value(self.id, self.name)


class HarvestTimeEntry(BaseModel):
    """Harvest time entry model."""

    client: HarvestReference = HarvestReference()
    project: HarvestReference = HarvestReference()
    task: HarvestReference = HarvestReference()
    notes: str | None = None
    spent_date: date
    hours: float = 0.0
    created_at: datetime
    billable: bool = False
    is_running: bool = False

    @property
    def start_time(self) -> datetime:
        """Day the time was spent, at the time of day the entry was created."""
        return datetime.combine(self.spent_date, self.created_at.timetz())

    @property
    def duration(self) -> timedelta:
        return timedelta(hours=self.hours)


class HarvestTimeEntries(BaseModel):
    """One page of the time entry listing."""

    time_entries: list[HarvestTimeEntry] = []
    per_page: int | None = None
    total_entries: int | None = None
