"""
Project schemas.

Request/response models for project endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field, field_validator, model_validator

from app.models.project import ProjectStatus
from app.schemas.backlog import BacklogItemCreate, BacklogResponse
from app.schemas.common import CamelModel


def _dedupe(ids: list[str]) -> list[str]:
    return list(dict.fromkeys(ids))


class ProjectCreateRequest(CamelModel):
    """Request body for POST /projects."""

    name: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    owner_id: str = Field(min_length=1, max_length=64)
    members: list[str] = Field(default_factory=list)
    status: ProjectStatus = ProjectStatus.active
    backlog: list[BacklogItemCreate] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("members")
    @classmethod
    def unique_members(cls, v: list[str]) -> list[str]:
        return _dedupe(v)


class ProjectUpdateRequest(CamelModel):
    """Request body for PUT /projects/{project_id}. Omitted fields are left alone."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    status: ProjectStatus | None = None
    members: list[str] | None = None

    @field_validator("members")
    @classmethod
    def unique_members(cls, v: list[str] | None) -> list[str] | None:
        return _dedupe(v) if v is not None else None


class ProjectMembersRequest(CamelModel):
    """Request body for PATCH /projects/{project_id}/members."""

    add_members: list[str] = Field(default_factory=list)
    remove_members: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_not_empty(self) -> ProjectMembersRequest:
        if not self.add_members and not self.remove_members:
            raise ValueError("addMembers or removeMembers is required")
        return self


class EmployeeSummary(CamelModel):
    """Directory fields shown for a project owner or member."""

    id: str
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    active_status: Any = None
    role_id: Any = None
    role: Any = None


class ProjectResponse(CamelModel):
    """Project as stored."""

    id: UUID
    name: str
    description: str | None
    owner_id: str
    members: list[str]
    status: ProjectStatus
    backlog: list[BacklogResponse] = Field(default_factory=list)
    is_deleted: bool
    created_at: datetime
    updated_at: datetime


class ProjectDetailResponse(CamelModel):
    """Project with owner and member profiles resolved."""

    id: UUID
    name: str
    description: str | None
    owner: EmployeeSummary
    members: list[EmployeeSummary]
    status: ProjectStatus
    backlog: list[BacklogResponse] = Field(default_factory=list)
    is_deleted: bool
    created_at: datetime
    updated_at: datetime
