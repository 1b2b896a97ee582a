"""
Report schemas.

Response models for the reporting endpoints and project analytics.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from app.schemas.common import CamelModel
from app.schemas.sprint import TimeLogResponse


class BurndownResponse(CamelModel):
    sprint_id: UUID
    total_work: int
    completed_work: int
    remaining_work: int
    sprint_start: datetime
    sprint_end: datetime
    time_spent_logs: list[TimeLogResponse]


class ProjectEfficiency(CamelModel):
    project_id: UUID
    project_name: str
    efficiency: float
    total_issues: int
    completed_issues: int
    hours_spent: float
    sprint_days: float


class EfficiencyResponse(CamelModel):
    most_efficient: ProjectEfficiency | None
    least_efficient: ProjectEfficiency | None
    ranking: list[ProjectEfficiency]


class VelocityEntry(CamelModel):
    sprint_id: UUID
    sprint_name: str
    planned_work: int
    completed_work: int


class VelocityResponse(CamelModel):
    project_id: UUID
    velocity_data: list[VelocityEntry]


class CreatedVsResolvedResponse(CamelModel):
    project_id: UUID
    created_issues_count: int
    resolved_issues_count: int
    resolve_percentage: str


class PieChartResponse(CamelModel):
    project_id: UUID
    issue_type_counts: dict[str, int]


class ProjectAnalyticsResponse(CamelModel):
    project_id: UUID
    total_time_spent_ms: int
    total_time_spent: str
    total_issues: int
    completed_issues: int
    in_progress_issues: int
    issues_status: dict[str, int]
