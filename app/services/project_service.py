"""
Project business logic.

Handles project CRUD, membership changes and backlog items.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.clients.employee_directory import EmployeeDirectory, EmployeeProfile
from app.core.exceptions import ConflictError, NotFoundError, UpstreamError, ValidationError
from app.models.backlog import Backlog
from app.models.project import Project, ProjectIssueCounter, ProjectStatus
from app.schemas.backlog import BacklogCreateRequest, BacklogResponse
from app.schemas.common import PaginatedResponse
from app.schemas.project import (
    EmployeeSummary,
    ProjectCreateRequest,
    ProjectDetailResponse,
    ProjectMembersRequest,
    ProjectResponse,
    ProjectUpdateRequest,
)

logger = logging.getLogger(__name__)

PROJECT_SORT_FIELDS = {
    "name": Project.name,
    "createdAt": Project.created_at,
    "updatedAt": Project.updated_at,
    "status": Project.status,
}


def backlog_to_response(item: Backlog) -> BacklogResponse:
    return BacklogResponse(
        id=item.id,
        project_id=item.project_id,
        title=item.title,
        description=item.description,
        type=item.type,
        priority=item.priority,
        position=item.position,
        created_at=item.created_at,
    )


def project_to_response(project: Project) -> ProjectResponse:
    return ProjectResponse(
        id=project.id,
        name=project.name,
        description=project.description,
        owner_id=project.owner_id,
        members=list(project.members or []),
        status=project.status,
        backlog=[backlog_to_response(b) for b in project.backlog],
        is_deleted=project.is_deleted,
        created_at=project.created_at,
        updated_at=project.updated_at,
    )


def _summary(employee_id: str, profile: EmployeeProfile | None) -> EmployeeSummary:
    if profile is None:
        return EmployeeSummary(id=employee_id)
    return EmployeeSummary(
        id=employee_id,
        first_name=profile.first_name,
        last_name=profile.last_name,
        email=profile.email,
        active_status=profile.active_status,
        role_id=profile.role_id,
        role=profile.role,
    )


class ProjectService:
    """Handles all project operations."""

    def __init__(self, db: AsyncSession, directory: EmployeeDirectory) -> None:
        self.db = db
        self.directory = directory

    # -----------------------------------------------------------------------
    # Create Project
    # -----------------------------------------------------------------------

    async def create_project(self, data: ProjectCreateRequest) -> ProjectResponse:
        """
        Create a project, its issue counter and any backlog items.

        The owner must resolve in the employee directory with an employee
        number; every member must resolve.
        """
        await self._ensure_name_free(data.name)

        owner = await self.directory.get_employee(data.owner_id)
        if owner is None or not owner.emp_id:
            raise UpstreamError("Owner does not exist in the Employee database")
        await self._validate_members(data.members)

        project = Project(
            name=data.name,
            description=data.description,
            owner_id=data.owner_id,
            members=list(data.members),
            status=data.status,
            is_deleted=False,
            backlog=[
                Backlog(
                    title=item.title,
                    description=item.description,
                    type=item.type,
                    priority=item.priority,
                    position=position,
                )
                for position, item in enumerate(data.backlog)
            ],
        )
        self.db.add(project)
        await self.db.flush()
        self.db.add(ProjectIssueCounter(project_id=project.id, last_number=0))
        await self.db.flush()

        logger.info("Project %s created (%s)", project.id, project.name)
        return project_to_response(project)

    # -----------------------------------------------------------------------
    # List / Get Projects
    # -----------------------------------------------------------------------

    async def list_projects(
        self,
        page: int = 1,
        limit: int = 10,
        search: str | None = None,
        status: ProjectStatus | None = None,
        sort: str = "name",
        sort_order: str = "asc",
    ) -> PaginatedResponse[ProjectResponse]:
        where = [Project.is_deleted.is_(False)]
        if search:
            where.append(
                or_(
                    Project.name.icontains(search, autoescape=True),
                    Project.description.icontains(search, autoescape=True),
                )
            )
        if status is not None:
            where.append(Project.status == status)

        total = (
            await self.db.execute(select(func.count()).select_from(Project).where(*where))
        ).scalar_one()

        column = PROJECT_SORT_FIELDS[sort]
        order = column.desc() if sort_order == "desc" else column.asc()
        result = await self.db.execute(
            select(Project)
            .where(*where)
            .order_by(order, Project.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        items = [project_to_response(p) for p in result.scalars().all()]
        return PaginatedResponse[ProjectResponse].build(
            items, total, page, limit, message="Projects fetched successfully"
        )

    async def get_project(self, project_id: UUID) -> ProjectDetailResponse:
        """Project with owner and member profiles from the directory."""
        project = await self._get_project(project_id)
        profiles = await self.directory.get_employees([project.owner_id, *project.members])
        return ProjectDetailResponse(
            id=project.id,
            name=project.name,
            description=project.description,
            owner=_summary(project.owner_id, profiles.get(project.owner_id)),
            members=[_summary(m, profiles.get(m)) for m in project.members],
            status=project.status,
            backlog=[backlog_to_response(b) for b in project.backlog],
            is_deleted=project.is_deleted,
            created_at=project.created_at,
            updated_at=project.updated_at,
        )

    # -----------------------------------------------------------------------
    # Update Project
    # -----------------------------------------------------------------------

    async def update_project(self, project_id: UUID, data: ProjectUpdateRequest) -> ProjectResponse:
        if data.members is not None:
            await self._validate_members(data.members)
        project = await self._get_project(project_id)

        if data.name is not None and data.name != project.name:
            await self._ensure_name_free(data.name)
            project.name = data.name
        if data.description is not None:
            project.description = data.description
        if data.status is not None:
            project.status = data.status
        if data.members is not None:
            project.members = list(data.members)

        await self.db.flush()
        return project_to_response(project)

    async def update_members(self, project_id: UUID, data: ProjectMembersRequest) -> ProjectResponse:
        """Add and/or remove members; adding a member twice or removing a stranger conflicts."""
        unknown = await self._unknown_employees(data.add_members)
        if unknown:
            raise ValidationError(f"Invalid member IDs: {', '.join(unknown)}")

        project = await self._get_project(project_id)
        members = list(project.members or [])

        already = [m for m in data.add_members if m in members]
        if already:
            raise ConflictError(
                f"Members already in project: {', '.join(already)}", code="MEMBER_EXISTS"
            )
        missing = [m for m in data.remove_members if m not in members]
        if missing:
            raise ConflictError(
                f"Members not in project: {', '.join(missing)}", code="MEMBER_NOT_IN_PROJECT"
            )

        for member_id in data.add_members:
            if member_id not in members:
                members.append(member_id)
        members = [m for m in members if m not in data.remove_members]

        # Reassign so the JSON column is marked dirty
        project.members = members
        await self.db.flush()
        return project_to_response(project)

    # -----------------------------------------------------------------------
    # Delete Project
    # -----------------------------------------------------------------------

    async def delete_project(self, project_id: UUID) -> None:
        project = await self.db.get(Project, project_id)
        if project is None:
            raise NotFoundError("Project not found", code="PROJECT_NOT_FOUND")
        if project.is_deleted:
            raise ConflictError("Project is already deleted", code="PROJECT_DELETED")
        project.is_deleted = True
        await self.db.flush()
        logger.info("Project %s soft deleted", project.id)

    # -----------------------------------------------------------------------
    # Backlog
    # -----------------------------------------------------------------------

    async def add_backlog_item(self, data: BacklogCreateRequest) -> BacklogResponse:
        project = await self._get_project(data.project_id)
        position = max((b.position for b in project.backlog), default=-1) + 1
        item = Backlog(
            title=data.title,
            description=data.description,
            type=data.type,
            priority=data.priority,
            position=position,
        )
        project.backlog.append(item)
        await self.db.flush()
        return backlog_to_response(item)

    async def list_backlog(self, project_id: UUID) -> list[BacklogResponse]:
        project = await self._get_project(project_id)
        return [backlog_to_response(b) for b in project.backlog]

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    async def _get_project(self, project_id: UUID) -> Project:
        result = await self.db.execute(
            select(Project).where(Project.id == project_id, Project.is_deleted.is_(False))
        )
        project = result.scalar_one_or_none()
        if project is None:
            raise NotFoundError("Project not found", code="PROJECT_NOT_FOUND")
        return project

    async def _ensure_name_free(self, name: str) -> None:
        result = await self.db.execute(
            select(Project.id).where(Project.name == name, Project.is_deleted.is_(False))
        )
        if result.first() is not None:
            raise ConflictError("Project already exists", code="PROJECT_EXISTS")

    async def _unknown_employees(self, employee_ids: list[str]) -> list[str]:
        profiles = await self.directory.get_employees(employee_ids)
        return [i for i, profile in profiles.items() if profile is None]

    async def _validate_members(self, members: list[str]) -> None:
        unknown = await self._unknown_employees(members)
        if unknown:
            raise ValidationError(
                f"Members with IDs {', '.join(unknown)} do not exist in the Employee database."
            )
