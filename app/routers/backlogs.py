"""
Backlog endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.routers.projects import get_project_service
from app.schemas.backlog import BacklogCreateRequest, BacklogResponse
from app.schemas.common import ApiResponse
from app.services.project_service import ProjectService

router = APIRouter()


@router.post(
    "",
    response_model=ApiResponse[BacklogResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Add a backlog item to a project",
)
async def create_backlog_item(
    data: BacklogCreateRequest,
    service: ProjectService = Depends(get_project_service),
) -> ApiResponse[BacklogResponse]:
    item = await service.add_backlog_item(data)
    return ApiResponse(data=item, message="Backlog item created successfully")


@router.get(
    "",
    response_model=ApiResponse[list[BacklogResponse]],
    summary="List a project's backlog in order",
)
async def list_backlog(
    project_id: UUID = Query(..., alias="projectId"),
    service: ProjectService = Depends(get_project_service),
) -> ApiResponse[list[BacklogResponse]]:
    return ApiResponse(data=await service.list_backlog(project_id))
