"""
Project management endpoints.

CRUD, membership changes and project analytics.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.clients.employee_directory import EmployeeDirectory
from app.core.database import get_db
from app.core.dependencies import get_employee_directory
from app.models.project import ProjectStatus
from app.schemas.common import ApiResponse, PaginatedResponse
from app.schemas.project import (
    ProjectCreateRequest,
    ProjectDetailResponse,
    ProjectMembersRequest,
    ProjectResponse,
    ProjectUpdateRequest,
)
from app.schemas.report import ProjectAnalyticsResponse
from app.services.project_service import ProjectService
from app.services.report_service import ReportService

router = APIRouter()


def get_project_service(
    db: AsyncSession = Depends(get_db),
    directory: EmployeeDirectory = Depends(get_employee_directory),
) -> ProjectService:
    return ProjectService(db=db, directory=directory)


# ---------------------------------------------------------------------------
# Create Project
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=ApiResponse[ProjectResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create a project with an optional backlog",
)
async def create_project(
    data: ProjectCreateRequest,
    service: ProjectService = Depends(get_project_service),
) -> ApiResponse[ProjectResponse]:
    project = await service.create_project(data)
    return ApiResponse(data=project, message="Project created successfully")


# ---------------------------------------------------------------------------
# List / Get Projects
# ---------------------------------------------------------------------------

@router.get(
    "",
    response_model=PaginatedResponse[ProjectResponse],
    summary="List projects",
)
async def list_projects(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str | None = Query(None),
    project_status: ProjectStatus | None = Query(None, alias="status"),
    sort: str = Query("name", pattern="^(name|createdAt|updatedAt|status)$"),
    sort_order: str = Query("asc", alias="sortOrder", pattern="^(asc|desc)$"),
    service: ProjectService = Depends(get_project_service),
) -> PaginatedResponse[ProjectResponse]:
    return await service.list_projects(
        page=page,
        limit=limit,
        search=search,
        status=project_status,
        sort=sort,
        sort_order=sort_order,
    )


@router.get(
    "/{project_id}",
    response_model=ApiResponse[ProjectDetailResponse],
    summary="Get a project with owner and member details",
)
async def get_project(
    project_id: UUID,
    service: ProjectService = Depends(get_project_service),
) -> ApiResponse[ProjectDetailResponse]:
    project = await service.get_project(project_id)
    return ApiResponse(data=project, message="Project fetched successfully")


# ---------------------------------------------------------------------------
# Update / Delete Project
# ---------------------------------------------------------------------------

@router.put(
    "/{project_id}",
    response_model=ApiResponse[ProjectResponse],
    summary="Update a project",
)
async def update_project(
    project_id: UUID,
    data: ProjectUpdateRequest,
    service: ProjectService = Depends(get_project_service),
) -> ApiResponse[ProjectResponse]:
    project = await service.update_project(project_id, data)
    return ApiResponse(data=project, message="Project updated successfully")


@router.patch(
    "/{project_id}/members",
    response_model=ApiResponse[ProjectResponse],
    summary="Add or remove project members",
)
async def update_members(
    project_id: UUID,
    data: ProjectMembersRequest,
    service: ProjectService = Depends(get_project_service),
) -> ApiResponse[ProjectResponse]:
    project = await service.update_members(project_id, data)
    return ApiResponse(data=project, message="Project members updated successfully")


@router.delete(
    "/{project_id}",
    response_model=ApiResponse[None],
    summary="Soft delete a project",
)
async def delete_project(
    project_id: UUID,
    service: ProjectService = Depends(get_project_service),
) -> ApiResponse[None]:
    await service.delete_project(project_id)
    return ApiResponse(message="Project deleted successfully")


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------

@router.get(
    "/{project_id}/analytics",
    response_model=ApiResponse[ProjectAnalyticsResponse],
    summary="Time and status analytics across a project",
)
async def project_analytics(
    project_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ProjectAnalyticsResponse]:
    analytics = await ReportService(db=db).project_analytics(project_id)
    return ApiResponse(data=analytics)
