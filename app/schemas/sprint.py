"""
Sprint schemas.

Request/response models for sprint and time-log endpoints.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator, model_validator

from app.core.clock import as_utc
from app.models.issue import IssueStatus
from app.models.sprint import SprintStatus
from app.schemas.common import CamelModel


class SprintCreateRequest(CamelModel):
    """Request body for POST /sprints."""

    project_id: UUID
    name: str = Field(min_length=1, max_length=100)
    start_date: datetime
    end_date: datetime

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Sprint name is required")
        return v

    @field_validator("start_date", "end_date")
    @classmethod
    def to_utc(cls, v: datetime) -> datetime:
        return as_utc(v)

    @model_validator(mode="after")
    def check_dates(self) -> SprintCreateRequest:
        if self.start_date > self.end_date:
            raise ValueError("Start date cannot be greater than end date")
        return self


class AddIssueToSprintRequest(CamelModel):
    """Request body for PUT /sprints/add-to-sprint/{issue_id}."""

    sprint_id: UUID


class TimeLogStartRequest(CamelModel):
    """Request body for POST /sprints/{sprint_id}/time-log/start."""

    issue_id: UUID
    assignee_id: str = Field(min_length=1, max_length=64)


class TimeLogStopRequest(CamelModel):
    """Request body for POST /sprints/time-log/stop."""

    sprint_id: UUID
    assignee_id: str = Field(min_length=1, max_length=64)


class TimeLogCreateRequest(CamelModel):
    """Request body for POST /sprints/time-log/{sprint_id} (manual entry)."""

    issue_id: UUID
    assignee_id: str = Field(min_length=1, max_length=64)
    start_time: datetime
    end_time: datetime | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def to_utc(cls, v: datetime | None) -> datetime | None:
        return as_utc(v) if v is not None else None


class TimeLogResponse(CamelModel):
    id: UUID
    sprint_id: UUID
    issue_id: UUID
    assignee_id: str
    start_time: datetime
    end_time: datetime | None
    time_spent: int


class TimeLogStopResponse(CamelModel):
    time_spent_in_ms: int


class SprintResponse(CamelModel):
    """Sprint detail response."""

    id: UUID
    project_id: UUID
    name: str
    status: SprintStatus
    start_date: datetime
    end_date: datetime
    issues: list[UUID]
    time_logs: list[TimeLogResponse]
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Sprint analytics
# ---------------------------------------------------------------------------

class SprintTotalTimeResponse(CamelModel):
    sprint_id: UUID
    total_time_ms: int
    actual_sprint_time: str


class SprintAnalyticsResponse(CamelModel):
    sprint_id: UUID
    total_time_spent_ms: int
    total_time_spent: str
    issues_status: dict[str, int]


class IssuesByStatusGroup(CamelModel):
    status: IssueStatus
    count: int
    issues: list[str]


class BoardIssue(CamelModel):
    id: UUID
    key: str
    title: str
    status: IssueStatus
    assignee_id: str


class SprintBoardResponse(CamelModel):
    sprint_id: UUID
    name: str
    status: SprintStatus
    columns: dict[str, list[BoardIssue]]
