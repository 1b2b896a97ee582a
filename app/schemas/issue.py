"""
Issue schemas.

Request/response models for issue endpoints and the listing query
parameters shared by project and sprint issue listings.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import Field, field_validator

from app.models.issue import (
    IssuePriority,
    IssueStatus,
    IssueType,
    PriorityLevel,
    Resolution,
)
from app.schemas.common import CamelModel, PersonRef, ProjectRef


class IssueCreateRequest(CamelModel):
    """Request body for POST /issues."""

    project_id: UUID
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    type: IssueType
    priority: IssuePriority = IssuePriority.medium
    priority_level: PriorityLevel | None = None
    assignee_id: str = Field(min_length=1, max_length=64)
    reporter_id: str = Field(min_length=1, max_length=64)
    parent_task_id: UUID | None = None
    epic_id: UUID | None = None
    due_date: datetime | None = None
    story_points: int | None = Field(default=None, ge=0)
    labels: list[str] = Field(default_factory=list)
    attachments: list[str] = Field(default_factory=list)

    @field_validator("parent_task_id", "epic_id", mode="before")
    @classmethod
    def empty_string_is_none(cls, v):
        return None if v == "" else v


class IssueUpdateRequest(CamelModel):
    """Request body for PUT /issues/{issue_id}. Only provided fields change."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    status: IssueStatus | None = None
    priority: IssuePriority | None = None
    priority_level: PriorityLevel | None = None
    assignee_id: str | None = Field(default=None, min_length=1, max_length=64)
    reporter_id: str | None = Field(default=None, min_length=1, max_length=64)
    parent_task_id: UUID | None = None
    epic_id: UUID | None = None
    due_date: datetime | None = None
    story_points: int | None = Field(default=None, ge=0)
    labels: list[str] | None = None
    watchers: list[str] | None = None
    progress: int | None = Field(default=None, ge=0, le=100)
    resolution: Resolution | None = None


class IssueStatusUpdateRequest(CamelModel):
    """Request body for PUT /issues/{issue_id}/status."""

    status: IssueStatus


class IssueResponse(CamelModel):
    """Issue as stored."""

    id: UUID
    key: str
    issue_number: int
    project_id: UUID
    title: str
    description: str | None
    type: IssueType
    parent_task_id: UUID | None
    epic_id: UUID | None
    status: IssueStatus
    assignee_id: str
    reporter_id: str
    priority: IssuePriority
    priority_level: PriorityLevel | None
    sprint_id: UUID | None
    due_date: datetime | None
    labels: list[str]
    attachments: list[str]
    watchers: list[str]
    votes: int
    story_points: int | None
    progress: int
    total_time_spent: int
    resolution: Resolution | None
    resolution_date: datetime | None
    is_deleted: bool
    created_at: datetime
    updated_at: datetime


class EnrichedIssueResponse(IssueResponse):
    """Issue with assignee, reporter and project names resolved."""

    assignee: PersonRef
    reporter: PersonRef
    project: ProjectRef


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------

IssueSortField = Literal["createdAt", "updatedAt", "title", "issueNumber", "status", "priority"]


class IssueListParams(CamelModel):
    """Query parameters for paginated issue listings."""

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    search: str | None = None
    filter: str | None = Field(default=None, description="JSON object of exact-match fields")
    sort: IssueSortField = "createdAt"
    sort_order: Literal["asc", "desc"] = "asc"
    start_date: str | None = None
    end_date: str | None = None
