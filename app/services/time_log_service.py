"""
Time-log business logic.

Start/stop timers and manual entries on a sprint. An assignee has at most
one running log per sprint; the check here is backed by a partial unique
index on (sprint_id, assignee_id) WHERE end_time IS NULL.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.clients.employee_directory import EmployeeDirectory
from app.core.clock import elapsed_ms, utcnow
from app.core.exceptions import NotFoundError, StateError, UpstreamError, ValidationError
from app.models.issue import Issue, IssueStatus
from app.models.sprint import Sprint, SprintStatus, TimeLog
from app.schemas.sprint import TimeLogCreateRequest, TimeLogResponse, TimeLogStartRequest
from app.services.sprint_service import get_sprint_or_404, time_log_to_response, touch

logger = logging.getLogger(__name__)

ACTIVE_LOG_EXISTS = "User already has an active time log on another issue"


class TimeLogService:
    """Handles time logging inside sprints."""

    def __init__(self, db: AsyncSession, directory: EmployeeDirectory) -> None:
        self.db = db
        self.directory = directory

    # -----------------------------------------------------------------------
    # Start / Stop
    # -----------------------------------------------------------------------

    async def start(self, sprint_id: UUID, data: TimeLogStartRequest) -> TimeLogResponse:
        """
        Start a timer for ``data.assignee_id`` on ``data.issue_id``.

        Checks, in order: sprint exists, sprint is active, issue exists,
        assignee resolves in the directory, assignee owns the issue, assignee
        has no running log in this sprint.
        """
        sprint = await get_sprint_or_404(self.db, sprint_id, for_update=True)
        if sprint.status != SprintStatus.active:
            raise StateError("Sprint is not active")

        issue = await self._get_issue(data.issue_id, "Issue not exists")
        await self._check_can_run(sprint, issue, data.assignee_id)

        log = TimeLog(
            sprint_id=sprint.id,
            issue_id=issue.id,
            assignee_id=data.assignee_id,
            start_time=utcnow(),
            end_time=None,
            time_spent=0,
        )
        sprint.time_logs.append(log)
        issue.status = IssueStatus.in_progress
        touch(sprint)
        await self._flush()

        logger.info(
            "Time log started: sprint=%s issue=%s assignee=%s",
            sprint.id,
            issue.key,
            data.assignee_id,
        )
        return time_log_to_response(log)

    async def stop(self, sprint_id: UUID, assignee_id: str) -> int | None:
        """
        Stop the assignee's running log.

        Returns the milliseconds spent, or None when nothing was running.
        The time is also added to the issue's accumulated total.
        """
        sprint = await get_sprint_or_404(self.db, sprint_id, for_update=True)
        log = sprint.running_log_for(assignee_id)
        if log is None:
            return None

        end = utcnow()
        spent = elapsed_ms(log.start_time, end)
        log.end_time = end
        log.time_spent = spent

        issue = await self.db.get(Issue, log.issue_id)
        if issue is not None:
            issue.total_time_spent = (issue.total_time_spent or 0) + spent
        touch(sprint)
        await self._flush()

        logger.info(
            "Time log stopped: sprint=%s assignee=%s spent_ms=%d", sprint.id, assignee_id, spent
        )
        return spent

    # -----------------------------------------------------------------------
    # Manual Entries
    # -----------------------------------------------------------------------

    async def create(self, sprint_id: UUID, data: TimeLogCreateRequest) -> TimeLogResponse:
        """
        Record a log with explicit timestamps.

        Completed sprints take no entries. An open-ended entry is a running
        timer and goes through the same checks as ``start``.
        """
        sprint = await get_sprint_or_404(self.db, sprint_id, for_update=True)
        if sprint.status == SprintStatus.completed:
            raise StateError("Cannot log time on a completed sprint")

        spent = 0
        if data.end_time is None:
            if sprint.status != SprintStatus.active:
                raise StateError("Sprint is not active")
            issue = await self._get_issue(data.issue_id, "Issue not found")
            await self._check_can_run(sprint, issue, data.assignee_id)
        else:
            if data.end_time < data.start_time:
                raise ValidationError("End time cannot be before start time")
            issue = await self._get_issue(data.issue_id, "Issue not found")
            spent = elapsed_ms(data.start_time, data.end_time)

        log = TimeLog(
            sprint_id=sprint.id,
            issue_id=issue.id,
            assignee_id=data.assignee_id,
            start_time=data.start_time,
            end_time=data.end_time,
            time_spent=spent,
        )
        sprint.time_logs.append(log)
        issue.total_time_spent = (issue.total_time_spent or 0) + spent
        touch(sprint)
        await self._flush()
        return time_log_to_response(log)

    async def list_logs(self, sprint_id: UUID) -> list[TimeLogResponse]:
        sprint = await get_sprint_or_404(self.db, sprint_id)
        return [time_log_to_response(log) for log in sprint.time_logs]

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    async def _get_issue(self, issue_id: UUID, message: str) -> Issue:
        result = await self.db.execute(
            select(Issue).where(Issue.id == issue_id, Issue.is_deleted.is_(False))
        )
        issue = result.scalar_one_or_none()
        if issue is None:
            raise NotFoundError(message, code="ISSUE_NOT_FOUND")
        return issue

    async def _check_can_run(self, sprint: Sprint, issue: Issue, assignee_id: str) -> None:
        """Checks a new running log must pass once the sprint and issue are loaded."""
        if await self.directory.get_employee(assignee_id) is None:
            raise UpstreamError("assignee not exists in attendance-db")
        if issue.assignee_id != assignee_id:
            raise ValidationError("Assignee ID does not match the assigned user for this issue")
        if sprint.running_log_for(assignee_id) is not None:
            raise StateError(ACTIVE_LOG_EXISTS)

    async def _flush(self) -> None:
        try:
            await self.db.flush()
        except IntegrityError:
            # Partial unique index on running logs
            raise StateError(ACTIVE_LOG_EXISTS)
