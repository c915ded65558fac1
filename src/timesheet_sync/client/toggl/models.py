"""Pydantic models for Toggl Track report responses."""

from datetime import datetime, timedelta

from pydantic import BaseModel, Field


class TogglTimeEntry(BaseModel):
    """Detailed report row."""

    client: str | None = None
    description: str = ""
    duration_ms: int = Field(default=0, alias="dur")
    is_billable: bool = False
    project: str | None = None
    project_id: int | None = Field(default=None, alias="pid")
    start: datetime
    end: datetime | None = None
    tags: list[str] = []
    task: str | None = None
    task_id: int | None = Field(default=None, alias="tid")

    @property
    def duration(self) -> timedelta:
        return timedelta(milliseconds=self.duration_ms)


class TogglReport(BaseModel):
    """One page of the detailed report."""

    total_count: int | None = None
    per_page: int | None = None
    data: list[TogglTimeEntry] = []
