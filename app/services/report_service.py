"""
Reporting and analytics.

Read-only: every figure is recomputed from the stored issues and time logs
using the pure helpers in ``app.services.metrics``. Reads take no locks.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationError
from app.models.issue import Issue, IssueStatus
from app.models.project import Project
from app.models.sprint import Sprint
from app.schemas.report import (
    BurndownResponse,
    CreatedVsResolvedResponse,
    EfficiencyResponse,
    PieChartResponse,
    ProjectAnalyticsResponse,
    ProjectEfficiency,
    VelocityEntry,
    VelocityResponse,
)
from app.schemas.sprint import (
    BoardIssue,
    IssuesByStatusGroup,
    SprintAnalyticsResponse,
    SprintBoardResponse,
    SprintTotalTimeResponse,
)
from app.services import metrics
from app.services.issue_service import parse_date_param
from app.services.sprint_service import get_sprint_or_404, load_sprint_issues, time_log_to_response


class ReportService:
    """Sprint analytics and project reports."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # -----------------------------------------------------------------------
    # Sprint Analytics
    # -----------------------------------------------------------------------

    async def sprint_total_time(self, sprint_id: UUID) -> SprintTotalTimeResponse:
        """Sum of finished logs; running logs count as zero."""
        sprint = await get_sprint_or_404(self.db, sprint_id)
        total = metrics.total_time_ms(sprint.time_logs)
        return SprintTotalTimeResponse(
            sprint_id=sprint.id,
            total_time_ms=total,
            actual_sprint_time=metrics.format_duration(total),
        )

    async def sprint_analytics(self, sprint_id: UUID) -> SprintAnalyticsResponse:
        sprint = await get_sprint_or_404(self.db, sprint_id)
        issues = await load_sprint_issues(self.db, sprint, live_only=False)
        total = metrics.issue_time_ms(issues, sprint.time_logs)
        return SprintAnalyticsResponse(
            sprint_id=sprint.id,
            total_time_spent_ms=total,
            total_time_spent=metrics.format_duration(total),
            issues_status=metrics.status_counts(issues),
        )

    async def issues_by_status(self, sprint_id: UUID) -> list[IssuesByStatusGroup]:
        sprint = await get_sprint_or_404(self.db, sprint_id)
        issues = await load_sprint_issues(self.db, sprint)
        return [
            IssuesByStatusGroup(status=status, count=count, issues=titles)
            for status, count, titles in metrics.group_by_status(issues)
        ]

    async def sprint_board(self, sprint_id: UUID) -> SprintBoardResponse:
        sprint = await get_sprint_or_404(self.db, sprint_id)
        issues = await load_sprint_issues(self.db, sprint)
        columns = {
            name: [
                BoardIssue(
                    id=issue.id,
                    key=issue.key,
                    title=issue.title,
                    status=issue.status,
                    assignee_id=issue.assignee_id,
                )
                for issue in column
            ]
            for name, column in metrics.board_columns(issues).items()
        }
        return SprintBoardResponse(
            sprint_id=sprint.id, name=sprint.name, status=sprint.status, columns=columns
        )

    async def burndown(self, sprint_id: UUID) -> BurndownResponse:
        """Work per issue comes from the sprint's own logs for that issue."""
        sprint = await get_sprint_or_404(self.db, sprint_id)
        issues = await load_sprint_issues(self.db, sprint, live_only=False)
        total, completed, remaining = metrics.burndown(issues, sprint.time_logs)
        return BurndownResponse(
            sprint_id=sprint.id,
            total_work=total,
            completed_work=completed,
            remaining_work=remaining,
            sprint_start=sprint.start_date,
            sprint_end=sprint.end_date,
            time_spent_logs=[time_log_to_response(log) for log in sprint.time_logs],
        )

    # -----------------------------------------------------------------------
    # Project Reports
    # -----------------------------------------------------------------------

    async def efficiency(self) -> EfficiencyResponse:
        """Rank live projects by efficiency, best first."""
        result = await self.db.execute(
            select(Project).where(Project.is_deleted.is_(False)).order_by(Project.name)
        )
        ranking = []
        for project in result.scalars().all():
            status_rows = await self.db.execute(
                select(Issue.id, Issue.status).where(Issue.project_id == project.id)
            )
            sprints = await self._project_sprints(project.id)
            figures = metrics.project_efficiency(sprints, dict(status_rows.all()))
            ranking.append(
                ProjectEfficiency(project_id=project.id, project_name=project.name, **figures)
            )

        ranking.sort(key=lambda entry: entry.efficiency, reverse=True)
        return EfficiencyResponse(
            most_efficient=ranking[0] if ranking else None,
            least_efficient=ranking[-1] if ranking else None,
            ranking=ranking,
        )

    async def velocity(self, project_id: UUID, number_of_sprints: int | None = None) -> VelocityResponse:
        """Planned vs completed issue counts for the most recent sprints, oldest first."""
        await self._get_project(project_id)
        stmt = (
            select(Sprint)
            .where(Sprint.project_id == project_id)
            .order_by(Sprint.start_date.desc(), Sprint.created_at.desc())
        )
        if number_of_sprints:
            stmt = stmt.limit(number_of_sprints)
        sprints = list((await self.db.execute(stmt)).scalars().all())

        entries = []
        for sprint in reversed(sprints):
            issues = await load_sprint_issues(self.db, sprint)
            entries.append(
                VelocityEntry(
                    sprint_id=sprint.id,
                    sprint_name=sprint.name,
                    planned_work=len(issues),
                    completed_work=sum(1 for i in issues if i.status == IssueStatus.done),
                )
            )
        return VelocityResponse(project_id=project_id, velocity_data=entries)

    async def created_vs_resolved(
        self, project_id: UUID, start_date: str, end_date: str
    ) -> CreatedVsResolvedResponse:
        """Issues created in the window vs issues done and last updated in the window."""
        start = parse_date_param(start_date, "startDate")
        end = parse_date_param(end_date, "endDate")
        if start is None or end is None:
            raise ValidationError("startDate and endDate are required")
        await self._get_project(project_id)

        live = (Issue.project_id == project_id, Issue.is_deleted.is_(False))
        created = (
            await self.db.execute(
                select(func.count())
                .select_from(Issue)
                .where(*live, Issue.created_at >= start, Issue.created_at <= end)
            )
        ).scalar_one()
        resolved = (
            await self.db.execute(
                select(func.count())
                .select_from(Issue)
                .where(
                    *live,
                    Issue.status == IssueStatus.done,
                    Issue.updated_at >= start,
                    Issue.updated_at <= end,
                )
            )
        ).scalar_one()
        return CreatedVsResolvedResponse(
            project_id=project_id,
            created_issues_count=created,
            resolved_issues_count=resolved,
            resolve_percentage=metrics.resolve_percentage(created, resolved),
        )

    async def pie_chart(self, project_id: UUID) -> PieChartResponse:
        await self._get_project(project_id)
        issues = await self._live_issues(project_id)
        return PieChartResponse(project_id=project_id, issue_type_counts=metrics.count_by_type(issues))

    async def project_analytics(self, project_id: UUID) -> ProjectAnalyticsResponse:
        """Like sprint analytics, over every issue and sprint of the project."""
        await self._get_project(project_id)
        issues = await self._live_issues(project_id)
        logs = [log for sprint in await self._project_sprints(project_id) for log in sprint.time_logs]
        total = metrics.issue_time_ms(issues, logs)
        counts = metrics.status_counts(issues)
        return ProjectAnalyticsResponse(
            project_id=project_id,
            total_time_spent_ms=total,
            total_time_spent=metrics.format_duration(total),
            total_issues=len(issues),
            completed_issues=counts[IssueStatus.done.value],
            in_progress_issues=counts[IssueStatus.in_progress.value],
            issues_status=counts,
        )

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    async def _get_project(self, project_id: UUID) -> Project:
        project = await self.db.get(Project, project_id)
        if project is None or project.is_deleted:
            raise NotFoundError("Project not found", code="PROJECT_NOT_FOUND")
        return project

    async def _live_issues(self, project_id: UUID) -> list[Issue]:
        result = await self.db.execute(
            select(Issue).where(Issue.project_id == project_id, Issue.is_deleted.is_(False))
        )
        return list(result.scalars().all())

    async def _project_sprints(self, project_id: UUID) -> list[Sprint]:
        result = await self.db.execute(
            select(Sprint).where(Sprint.project_id == project_id).order_by(Sprint.start_date)
        )
        return list(result.scalars().all())
