"""
Backlog schemas.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field

from app.models.backlog import BacklogPriority, BacklogType
from app.schemas.common import CamelModel


class BacklogItemCreate(CamelModel):
    """A backlog entry, either standalone or embedded in a project create body."""

    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    type: BacklogType = BacklogType.feature
    priority: BacklogPriority = BacklogPriority.medium


class BacklogCreateRequest(BacklogItemCreate):
    """Request body for POST /backlogs."""

    project_id: UUID


class BacklogResponse(CamelModel):
    id: UUID
    project_id: UUID
    title: str
    description: str | None
    type: BacklogType
    priority: BacklogPriority
    position: int
    created_at: datetime
