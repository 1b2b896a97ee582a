"""
Reporting endpoints.

Pie chart, velocity, created-vs-resolved, burndown and efficiency.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.schemas.common import ApiResponse
from app.schemas.report import (
    BurndownResponse,
    CreatedVsResolvedResponse,
    EfficiencyResponse,
    PieChartResponse,
    VelocityResponse,
)
from app.services.report_service import ReportService

router = APIRouter()


def get_report_service(db: AsyncSession = Depends(get_db)) -> ReportService:
    return ReportService(db=db)


@router.get(
    "/pie-chart",
    response_model=ApiResponse[PieChartResponse],
    summary="Live issue counts by type",
)
async def pie_chart(
    project_id: UUID = Query(..., alias="projectId"),
    service: ReportService = Depends(get_report_service),
) -> ApiResponse[PieChartResponse]:
    return ApiResponse(data=await service.pie_chart(project_id))


@router.get(
    "/velocity",
    response_model=ApiResponse[VelocityResponse],
    summary="Planned vs completed work per sprint",
)
async def velocity(
    project_id: UUID = Query(..., alias="projectId"),
    number_of_sprints: int | None = Query(None, alias="numberOfSprints", ge=1),
    service: ReportService = Depends(get_report_service),
) -> ApiResponse[VelocityResponse]:
    return ApiResponse(data=await service.velocity(project_id, number_of_sprints))


@router.get(
    "/created-vs-resolved",
    response_model=ApiResponse[CreatedVsResolvedResponse],
    summary="Issues created vs resolved in a date window",
)
async def created_vs_resolved(
    project_id: UUID = Query(..., alias="projectId"),
    start_date: str = Query(..., alias="startDate"),
    end_date: str = Query(..., alias="endDate"),
    service: ReportService = Depends(get_report_service),
) -> ApiResponse[CreatedVsResolvedResponse]:
    return ApiResponse(data=await service.created_vs_resolved(project_id, start_date, end_date))


@router.get(
    "/burndown",
    response_model=ApiResponse[BurndownResponse],
    summary="Sprint burndown",
)
async def burndown(
    sprint_id: UUID = Query(..., alias="sprintId"),
    service: ReportService = Depends(get_report_service),
) -> ApiResponse[BurndownResponse]:
    return ApiResponse(data=await service.burndown(sprint_id))


@router.get(
    "/efficiency",
    response_model=ApiResponse[EfficiencyResponse],
    summary="Projects ranked by efficiency",
)
async def efficiency(
    service: ReportService = Depends(get_report_service),
) -> ApiResponse[EfficiencyResponse]:
    return ApiResponse(data=await service.efficiency())
