"""
Issue endpoints.

Create, list by project, get, update, status change and soft delete.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.clients.employee_directory import EmployeeDirectory
from app.core.database import get_db
from app.core.dependencies import get_employee_directory, issue_list_params
from app.schemas.common import ApiResponse, PaginatedResponse
from app.schemas.issue import (
    EnrichedIssueResponse,
    IssueCreateRequest,
    IssueListParams,
    IssueResponse,
    IssueStatusUpdateRequest,
    IssueUpdateRequest,
)
from app.services.issue_service import IssueService

router = APIRouter()


def get_issue_service(
    db: AsyncSession = Depends(get_db),
    directory: EmployeeDirectory = Depends(get_employee_directory),
) -> IssueService:
    return IssueService(db=db, directory=directory)


@router.post(
    "",
    response_model=ApiResponse[IssueResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create an issue",
)
async def create_issue(
    data: IssueCreateRequest,
    service: IssueService = Depends(get_issue_service),
) -> ApiResponse[IssueResponse]:
    issue = await service.create_issue(data)
    return ApiResponse(data=issue, message="Issue created successfully")


@router.get(
    "",
    response_model=PaginatedResponse[EnrichedIssueResponse],
    summary="List a project's issues",
)
async def list_issues(
    project_id: UUID = Query(..., alias="projectId"),
    params: IssueListParams = Depends(issue_list_params),
    service: IssueService = Depends(get_issue_service),
) -> PaginatedResponse[EnrichedIssueResponse]:
    return await service.list_project_issues(project_id, params)


@router.get(
    "/{issue_id}",
    response_model=ApiResponse[EnrichedIssueResponse],
    summary="Get an issue",
)
async def get_issue(
    issue_id: UUID,
    service: IssueService = Depends(get_issue_service),
) -> ApiResponse[EnrichedIssueResponse]:
    return ApiResponse(data=await service.get_issue(issue_id))


@router.put(
    "/{issue_id}",
    response_model=ApiResponse[IssueResponse],
    summary="Update an issue",
)
async def update_issue(
    issue_id: UUID,
    data: IssueUpdateRequest,
    service: IssueService = Depends(get_issue_service),
) -> ApiResponse[IssueResponse]:
    issue = await service.update_issue(issue_id, data)
    return ApiResponse(data=issue, message="Issue updated successfully")


@router.put(
    "/{issue_id}/status",
    response_model=ApiResponse[IssueResponse],
    summary="Change an issue's status (board drag and drop)",
)
async def update_issue_status(
    issue_id: UUID,
    data: IssueStatusUpdateRequest,
    service: IssueService = Depends(get_issue_service),
) -> ApiResponse[IssueResponse]:
    issue = await service.update_status(issue_id, data.status)
    return ApiResponse(data=issue, message="Issue status updated")


@router.delete(
    "/{issue_id}",
    response_model=ApiResponse[None],
    summary="Soft delete an issue",
)
async def delete_issue(
    issue_id: UUID,
    service: IssueService = Depends(get_issue_service),
) -> ApiResponse[None]:
    await service.delete_issue(issue_id)
    return ApiResponse(message="Issue soft deleted successfully")
