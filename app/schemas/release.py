"""
Release schemas.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field

from app.schemas.common import CamelModel


class ReleaseCreateRequest(CamelModel):
    """Request body for POST /releases."""

    project_id: UUID
    name: str = Field(min_length=1, max_length=255)
    version: str = Field(min_length=1, max_length=64)
    release_date: datetime


class ReleaseResponse(CamelModel):
    id: UUID
    project_id: UUID
    name: str
    version: str
    release_date: datetime
    created_at: datetime
