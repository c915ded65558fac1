"""Pydantic models for Timewarrior exports."""

from datetime import datetime, timezone

from pydantic import BaseModel, field_validator

TIMESTAMP_FORMAT = "%Y%m%dT%H%M%SZ"


class TimewarriorInterval(BaseModel):
    """Interval as written by ``timew export``."""

    id: int = 0
    start: datetime
    end: datetime | None = None
    tags: list[str] = []
    annotation: str = ""

    @field_validator("start", "end", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: object) -> object:
        # Exports use compact UTC timestamps, e.g. 20211002T101500Z
        if isinstance(value, str):
            return datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)
        return value
