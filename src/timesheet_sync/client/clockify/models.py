"""Pydantic models for Clockify API responses."""

from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field


def parse_timestamp(value: str) -> datetime:
    """Parse a Clockify UTC timestamp."""
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class ClockifyProject(BaseModel):
    """Project of a hydrated time entry."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = ""
    name: str = ""
    client_id: str = Field(default="", alias="clientId")
    client_name: str = Field(default="", alias="clientName")


class ClockifyTag(BaseModel):
    """Clockify tag model."""

    id: str
    name: str


class ClockifyTask(BaseModel):
    """Clockify task model."""

    id: str = ""
    name: str = ""


class ClockifyTimeEntry(BaseModel):
    """Hydrated Clockify time entry model."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    description: str | None = None
    billable: bool = False
    project: ClockifyProject | None = None
    task: ClockifyTask | None = None
    tags: list[ClockifyTag] | None = None
    time_interval: dict[str, str | None] = Field(alias="timeInterval")

    @property
    def start_time(self) -> datetime:
        """Get start time of entry."""
        return parse_timestamp(self.time_interval.get("start") or "")

    @property
    def end_time(self) -> datetime | None:
        """Get end time of entry."""
        end_str = self.time_interval.get("end")
        if not end_str:
            return None
        return parse_timestamp(end_str)

    @property
    def duration(self) -> timedelta:
        """Time spent; zero for a running timer."""
        end = self.end_time
        if end is None:
            return timedelta(0)
        return end - self.start_time
