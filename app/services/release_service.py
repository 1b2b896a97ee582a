"""
Release business logic.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.models.project import Project
from app.models.release import Release
from app.schemas.release import ReleaseCreateRequest, ReleaseResponse


def release_to_response(release: Release) -> ReleaseResponse:
    return ReleaseResponse(
        id=release.id,
        project_id=release.project_id,
        name=release.name,
        version=release.version,
        release_date=release.release_date,
        created_at=release.created_at,
    )


class ReleaseService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create_release(self, data: ReleaseCreateRequest) -> ReleaseResponse:
        await self._get_project(data.project_id)
        release = Release(
            project_id=data.project_id,
            name=data.name,
            version=data.version,
            release_date=data.release_date,
        )
        self.db.add(release)
        await self.db.flush()
        return release_to_response(release)

    async def list_releases(self, project_id: UUID) -> list[ReleaseResponse]:
        await self._get_project(project_id)
        result = await self.db.execute(
            select(Release)
            .where(Release.project_id == project_id)
            .order_by(Release.release_date, Release.created_at)
        )
        return [release_to_response(r) for r in result.scalars().all()]

    async def _get_project(self, project_id: UUID) -> Project:
        project = await self.db.get(Project, project_id)
        if project is None or project.is_deleted:
            raise NotFoundError("Project not found", code="PROJECT_NOT_FOUND")
        return project
