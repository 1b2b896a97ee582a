"""
Sprint business logic.

Handles the sprint lifecycle (planned -> active -> completed), sprint
membership of issues and the sprint issue listing.

Every mutation loads the sprint row with SELECT ... FOR UPDATE and bumps
``updated_at``, so the versioned UPDATE also catches writers that slipped
past the lock.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.clients.employee_directory import EmployeeDirectory
from app.core.clock import utcnow
from app.core.exceptions import ConflictError, NotFoundError, StateError
from app.models.issue import Issue, IssueStatus
from app.models.project import Project
from app.models.sprint import Sprint, SprintIssue, SprintStatus, TimeLog
from app.schemas.common import PaginatedResponse
from app.schemas.issue import EnrichedIssueResponse, IssueListParams
from app.schemas.sprint import SprintCreateRequest, SprintResponse, TimeLogResponse
from app.services.issue_service import IssueService

logger = logging.getLogger(__name__)

# Issue status rewrite applied when a sprint completes
END_OF_SPRINT_STATUS = {
    IssueStatus.in_progress: IssueStatus.done,
    IssueStatus.to_do: IssueStatus.backlog,
}


def time_log_to_response(log: TimeLog) -> TimeLogResponse:
    return TimeLogResponse(
        id=log.id,
        sprint_id=log.sprint_id,
        issue_id=log.issue_id,
        assignee_id=log.assignee_id,
        start_time=log.start_time,
        end_time=log.end_time,
        time_spent=log.time_spent,
    )


def sprint_to_response(sprint: Sprint) -> SprintResponse:
    return SprintResponse(
        id=sprint.id,
        project_id=sprint.project_id,
        name=sprint.name,
        status=sprint.status,
        start_date=sprint.start_date,
        end_date=sprint.end_date,
        issues=sprint.issue_ids,
        time_logs=[time_log_to_response(log) for log in sprint.time_logs],
        created_at=sprint.created_at,
        updated_at=sprint.updated_at,
    )


async def get_sprint_or_404(db: AsyncSession, sprint_id: UUID, for_update: bool = False) -> Sprint:
    """Load a sprint with its issue links and time logs, optionally row-locked."""
    stmt = select(Sprint).where(Sprint.id == sprint_id)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(stmt)
    sprint = result.scalar_one_or_none()
    if sprint is None:
        raise NotFoundError("Sprint not found", code="SPRINT_NOT_FOUND")
    return sprint


async def load_sprint_issues(db: AsyncSession, sprint: Sprint, live_only: bool = True) -> list[Issue]:
    """The sprint's issues in sprint order."""
    ids = sprint.issue_ids
    if not ids:
        return []
    stmt = select(Issue).where(Issue.id.in_(ids))
    if live_only:
        stmt = stmt.where(Issue.is_deleted.is_(False))
    result = await db.execute(stmt)
    by_id = {issue.id: issue for issue in result.scalars().all()}
    return [by_id[i] for i in ids if i in by_id]


def touch(sprint: Sprint) -> None:
    """Force a versioned UPDATE of the sprint row."""
    sprint.updated_at = utcnow()


class SprintService:
    """Handles all sprint operations."""

    def __init__(self, db: AsyncSession, directory: EmployeeDirectory) -> None:
        self.db = db
        self.directory = directory

    # -----------------------------------------------------------------------
    # Create Sprint
    # -----------------------------------------------------------------------

    async def create_sprint(self, data: SprintCreateRequest) -> SprintResponse:
        """Create a new sprint in planned status."""
        existing = await self.db.execute(
            select(Sprint.id).where(Sprint.project_id == data.project_id, Sprint.name == data.name)
        )
        if existing.first() is not None:
            raise ConflictError("Sprint name already exists in this project", code="SPRINT_EXISTS")

        project = await self.db.get(Project, data.project_id)
        if project is None or project.is_deleted:
            raise NotFoundError("Project not exists", code="PROJECT_NOT_FOUND")

        sprint = Sprint(
            project_id=data.project_id,
            name=data.name,
            start_date=data.start_date,
            end_date=data.end_date,
            status=SprintStatus.planned,
            issue_links=[],
            time_logs=[],
        )
        self.db.add(sprint)
        try:
            await self.db.flush()
        except IntegrityError:
            raise ConflictError("Sprint name already exists in this project", code="SPRINT_EXISTS")

        logger.info("Sprint %s created in project %s", sprint.id, sprint.project_id)
        return sprint_to_response(sprint)

    # -----------------------------------------------------------------------
    # List / Get Sprints
    # -----------------------------------------------------------------------

    async def list_sprints(self, project_id: UUID) -> list[SprintResponse]:
        project = await self.db.get(Project, project_id)
        if project is None or project.is_deleted:
            raise NotFoundError("Project not found", code="PROJECT_NOT_FOUND")
        result = await self.db.execute(
            select(Sprint).where(Sprint.project_id == project_id).order_by(Sprint.created_at)
        )
        return [sprint_to_response(s) for s in result.scalars().all()]

    async def get_sprint(self, sprint_id: UUID) -> SprintResponse:
        return sprint_to_response(await get_sprint_or_404(self.db, sprint_id))

    # -----------------------------------------------------------------------
    # Add Issue to Sprint
    # -----------------------------------------------------------------------

    async def add_issue(self, issue_id: UUID, sprint_id: UUID) -> SprintResponse:
        """
        Append an issue to the sprint and move it to to_do.

        An issue may sit in one active sprint at a time.
        """
        sprint = await get_sprint_or_404(self.db, sprint_id, for_update=True)

        result = await self.db.execute(
            select(Issue).where(Issue.id == issue_id, Issue.is_deleted.is_(False))
        )
        issue = result.scalar_one_or_none()
        if issue is None:
            raise NotFoundError("Issue not found", code="ISSUE_NOT_FOUND")

        if sprint.has_issue(issue.id):
            raise ConflictError("This Issue already added to this sprint", code="ISSUE_IN_SPRINT")

        other = await self.db.execute(
            select(Sprint.id)
            .join(SprintIssue, SprintIssue.sprint_id == Sprint.id)
            .where(
                SprintIssue.issue_id == issue.id,
                Sprint.id != sprint.id,
                Sprint.status == SprintStatus.active,
            )
        )
        if other.first() is not None:
            raise ConflictError(
                "Issue is already part of another active sprint", code="ISSUE_IN_ACTIVE_SPRINT"
            )

        sprint.issue_links.append(
            SprintIssue(sprint_id=sprint.id, issue_id=issue.id, position=len(sprint.issue_links))
        )
        issue.sprint_id = sprint.id
        issue.status = IssueStatus.to_do
        touch(sprint)
        await self.db.flush()

        logger.info("Issue %s added to sprint %s", issue.key, sprint.id)
        return sprint_to_response(sprint)

    # -----------------------------------------------------------------------
    # Start / End Sprint
    # -----------------------------------------------------------------------

    async def start_sprint(self, sprint_id: UUID) -> SprintResponse:
        """Activate a planned sprint; all of its issues go back to to_do."""
        result = await self.db.execute(
            select(Sprint)
            .where(Sprint.id == sprint_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        sprint = result.scalar_one_or_none()
        if sprint is None or sprint.status != SprintStatus.planned:
            raise NotFoundError("Sprint not found or already started", code="SPRINT_NOT_FOUND")

        sprint.status = SprintStatus.active
        for issue in await load_sprint_issues(self.db, sprint, live_only=False):
            issue.status = IssueStatus.to_do
        touch(sprint)
        await self.db.flush()

        logger.info("Sprint %s started", sprint.id)
        return sprint_to_response(sprint)

    async def end_sprint(self, sprint_id: UUID) -> SprintResponse:
        """
        Complete a sprint.

        Refused while any time log is still running. Issues in progress are
        marked done, to_do issues return to the backlog, everything else is done.
        """
        sprint = await get_sprint_or_404(self.db, sprint_id, for_update=True)
        if sprint.status == SprintStatus.completed:
            raise StateError("Sprint is already completed")
        if any(log.is_running for log in sprint.time_logs):
            raise StateError(
                "Cannot end sprint as there are unfinished time logs. Please complete all tasks."
            )

        sprint.status = SprintStatus.completed
        for issue in await load_sprint_issues(self.db, sprint, live_only=False):
            issue.status = END_OF_SPRINT_STATUS.get(issue.status, IssueStatus.done)
        touch(sprint)
        await self.db.flush()

        logger.info("Sprint %s completed", sprint.id)
        return sprint_to_response(sprint)

    # -----------------------------------------------------------------------
    # Sprint Issues
    # -----------------------------------------------------------------------

    async def list_sprint_issues(
        self, sprint_id: UUID, params: IssueListParams
    ) -> PaginatedResponse[EnrichedIssueResponse]:
        sprint = await get_sprint_or_404(self.db, sprint_id)
        issues = IssueService(self.db, self.directory)
        return await issues.list_issues(
            [Issue.id.in_(sprint.issue_ids), Issue.is_deleted.is_(False)],
            params,
            message="Sprint issues fetched successfully",
        )
