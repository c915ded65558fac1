"""Pydantic models for the Tempo Timesheets API."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TempoIssue(BaseModel):
    """Jira issue the time was logged against."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    key: str
    account_key: str = Field(default="", alias="accountKey")
    project_id: int = Field(alias="projectId")
    project_key: str = Field(alias="projectKey")
    summary: str = ""


class TempoWorklog(BaseModel):
    """Worklog returned by the search endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    start_date: datetime = Field(alias="startDate")
    billable_seconds: int = Field(default=0, alias="billableSeconds")
    time_spent_seconds: int = Field(default=0, alias="timeSpentSeconds")
    comment: str = ""
    worker_key: str = Field(default="", alias="workerKey")
    issue: TempoIssue


class TempoWorklogCreate(BaseModel):
    """Payload creating a new worklog."""

    comment: str = ""
    origin_task_id: str
    started: str  # YYYY-MM-DD
    billable_seconds: int = 0
    time_spent_seconds: int = 0
    worker: str = ""
    include_non_working_days: bool = True

    def to_api_dict(self) -> dict[str, Any]:
        """Convert to API-compatible dictionary, leaving out empty values.

        Returns:
            Dictionary for API submission.
        """
        payload = {
            "comment": self.comment,
            "includeNonWorkingDays": self.include_non_working_days,
            "originTaskId": self.origin_task_id,
            "started": self.started,
            "billableSeconds": self.billable_seconds,
            "timeSpentSeconds": self.time_spent_seconds,
            "worker": self.worker,
        }
        return {key: value for key, value in payload.items() if value}
