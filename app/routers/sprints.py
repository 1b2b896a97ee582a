"""
Sprint management endpoints.

Sprint lifecycle, sprint issues, time logging and sprint analytics.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.clients.employee_directory import EmployeeDirectory
from app.core.database import get_db
from app.core.dependencies import get_employee_directory, issue_list_params
from app.schemas.common import ApiResponse, PaginatedResponse
from app.schemas.issue import EnrichedIssueResponse, IssueListParams
from app.schemas.sprint import (
    AddIssueToSprintRequest,
    IssuesByStatusGroup,
    SprintAnalyticsResponse,
    SprintBoardResponse,
    SprintCreateRequest,
    SprintResponse,
    SprintTotalTimeResponse,
    TimeLogCreateRequest,
    TimeLogResponse,
    TimeLogStartRequest,
    TimeLogStopRequest,
    TimeLogStopResponse,
)
from app.services.report_service import ReportService
from app.services.sprint_service import SprintService
from app.services.time_log_service import TimeLogService

router = APIRouter()


def get_sprint_service(
    db: AsyncSession = Depends(get_db),
    directory: EmployeeDirectory = Depends(get_employee_directory),
) -> SprintService:
    return SprintService(db=db, directory=directory)


def get_time_log_service(
    db: AsyncSession = Depends(get_db),
    directory: EmployeeDirectory = Depends(get_employee_directory),
) -> TimeLogService:
    return TimeLogService(db=db, directory=directory)


def get_report_service(db: AsyncSession = Depends(get_db)) -> ReportService:
    return ReportService(db=db)


# ---------------------------------------------------------------------------
# Create / List / Get Sprints
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=ApiResponse[SprintResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create a new sprint",
)
async def create_sprint(
    data: SprintCreateRequest,
    service: SprintService = Depends(get_sprint_service),
) -> ApiResponse[SprintResponse]:
    sprint = await service.create_sprint(data)
    return ApiResponse(data=sprint, message="Sprint created successfully")


@router.get(
    "",
    response_model=ApiResponse[list[SprintResponse]],
    summary="List sprints for a project",
)
async def list_sprints(
    project_id: UUID = Query(..., alias="projectId"),
    service: SprintService = Depends(get_sprint_service),
) -> ApiResponse[list[SprintResponse]]:
    return ApiResponse(data=await service.list_sprints(project_id))


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

@router.put(
    "/add-to-sprint/{issue_id}",
    response_model=ApiResponse[SprintResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Add an issue to a sprint",
)
async def add_issue_to_sprint(
    issue_id: UUID,
    data: AddIssueToSprintRequest,
    service: SprintService = Depends(get_sprint_service),
) -> ApiResponse[SprintResponse]:
    sprint = await service.add_issue(issue_id, data.sprint_id)
    return ApiResponse(data=sprint, message="Issue added to the sprint and status updated to to_do")


@router.put(
    "/start-sprint/{sprint_id}",
    response_model=ApiResponse[SprintResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Start a planned sprint",
)
async def start_sprint(
    sprint_id: UUID,
    service: SprintService = Depends(get_sprint_service),
) -> ApiResponse[SprintResponse]:
    sprint = await service.start_sprint(sprint_id)
    return ApiResponse(data=sprint, message="Sprint started and issues updated")


@router.post(
    "/end-sprint/{sprint_id}",
    response_model=ApiResponse[SprintResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Complete a sprint",
)
async def end_sprint(
    sprint_id: UUID,
    service: SprintService = Depends(get_sprint_service),
) -> ApiResponse[SprintResponse]:
    sprint = await service.end_sprint(sprint_id)
    return ApiResponse(data=sprint, message="Sprint completed and issues updated")


# ---------------------------------------------------------------------------
# Time Logs
# ---------------------------------------------------------------------------

@router.post(
    "/time-log/stop",
    response_model=ApiResponse[TimeLogStopResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Stop the assignee's running time log",
    responses={404: {"description": "Sprint not found or no active time log"}},
)
async def stop_time_log(
    data: TimeLogStopRequest,
    service: TimeLogService = Depends(get_time_log_service),
):
    spent = await service.stop(data.sprint_id, data.assignee_id)
    if spent is None:
        # Not an error: the assignee simply has nothing running
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=ApiResponse(success=False, message="No active time-log found").model_dump(
                by_alias=True
            ),
        )
    return ApiResponse(data=TimeLogStopResponse(time_spent_in_ms=spent), message="Time log stopped")


@router.post(
    "/time-log/{sprint_id}",
    response_model=ApiResponse[TimeLogResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Record a time log with explicit timestamps",
)
async def create_time_log(
    sprint_id: UUID,
    data: TimeLogCreateRequest,
    service: TimeLogService = Depends(get_time_log_service),
) -> ApiResponse[TimeLogResponse]:
    log = await service.create(sprint_id, data)
    return ApiResponse(data=log, message="Time log recorded")


@router.post(
    "/{sprint_id}/time-log/start",
    response_model=ApiResponse[TimeLogResponse],
    summary="Start a time log on an issue",
)
async def start_time_log(
    sprint_id: UUID,
    data: TimeLogStartRequest,
    service: TimeLogService = Depends(get_time_log_service),
) -> ApiResponse[TimeLogResponse]:
    log = await service.start(sprint_id, data)
    return ApiResponse(data=log, message="Time log started")


@router.get(
    "/{sprint_id}/time-logs",
    response_model=ApiResponse[list[TimeLogResponse]],
    summary="List a sprint's time logs",
)
async def list_time_logs(
    sprint_id: UUID,
    service: TimeLogService = Depends(get_time_log_service),
) -> ApiResponse[list[TimeLogResponse]]:
    return ApiResponse(data=await service.list_logs(sprint_id))


# ---------------------------------------------------------------------------
# Sprint Issues & Analytics
# ---------------------------------------------------------------------------

@router.get(
    "/board/{sprint_id}",
    response_model=ApiResponse[SprintBoardResponse],
    summary="Sprint issues grouped into board columns",
)
async def sprint_board(
    sprint_id: UUID,
    service: ReportService = Depends(get_report_service),
) -> ApiResponse[SprintBoardResponse]:
    return ApiResponse(data=await service.sprint_board(sprint_id))


@router.get(
    "/{sprint_id}",
    response_model=ApiResponse[SprintResponse],
    summary="Get a sprint",
)
async def get_sprint(
    sprint_id: UUID,
    service: SprintService = Depends(get_sprint_service),
) -> ApiResponse[SprintResponse]:
    return ApiResponse(data=await service.get_sprint(sprint_id))


@router.get(
    "/{sprint_id}/issues",
    response_model=PaginatedResponse[EnrichedIssueResponse],
    summary="List a sprint's issues",
)
async def list_sprint_issues(
    sprint_id: UUID,
    params: IssueListParams = Depends(issue_list_params),
    service: SprintService = Depends(get_sprint_service),
) -> PaginatedResponse[EnrichedIssueResponse]:
    return await service.list_sprint_issues(sprint_id, params)


@router.get(
    "/{sprint_id}/total-time",
    response_model=ApiResponse[SprintTotalTimeResponse],
    summary="Total logged time of a sprint",
)
async def sprint_total_time(
    sprint_id: UUID,
    service: ReportService = Depends(get_report_service),
) -> ApiResponse[SprintTotalTimeResponse]:
    return ApiResponse(data=await service.sprint_total_time(sprint_id))


@router.get(
    "/{sprint_id}/analytics",
    response_model=ApiResponse[SprintAnalyticsResponse],
    summary="Sprint time and issue status analytics",
)
async def sprint_analytics(
    sprint_id: UUID,
    service: ReportService = Depends(get_report_service),
) -> ApiResponse[SprintAnalyticsResponse]:
    return ApiResponse(data=await service.sprint_analytics(sprint_id))


@router.get(
    "/{sprint_id}/issues-by-status",
    response_model=ApiResponse[list[IssuesByStatusGroup]],
    summary="Sprint issues grouped by status",
)
async def issues_by_status(
    sprint_id: UUID,
    service: ReportService = Depends(get_report_service),
) -> ApiResponse[list[IssuesByStatusGroup]]:
    return ApiResponse(data=await service.issues_by_status(sprint_id))
