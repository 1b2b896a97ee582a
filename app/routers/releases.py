"""
Release endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.schemas.common import ApiResponse
from app.schemas.release import ReleaseCreateRequest, ReleaseResponse
from app.services.release_service import ReleaseService

router = APIRouter()


def get_release_service(db: AsyncSession = Depends(get_db)) -> ReleaseService:
    return ReleaseService(db=db)


@router.post(
    "",
    response_model=ApiResponse[ReleaseResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create a release",
)
async def create_release(
    data: ReleaseCreateRequest,
    service: ReleaseService = Depends(get_release_service),
) -> ApiResponse[ReleaseResponse]:
    return ApiResponse(data=await service.create_release(data), message="Release created successfully")


@router.get(
    "",
    response_model=ApiResponse[list[ReleaseResponse]],
    summary="List a project's releases",
)
async def list_releases(
    project_id: UUID = Query(..., alias="projectId"),
    service: ReleaseService = Depends(get_release_service),
) -> ApiResponse[list[ReleaseResponse]]:
    return ApiResponse(data=await service.list_releases(project_id))
