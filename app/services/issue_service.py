"""
Issue business logic.

Handles issue CRUD, status changes and the paginated, enriched issue
listings shared by the project and sprint endpoints.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import ColumnElement, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.clients.employee_directory import EmployeeDirectory
from app.core.clock import as_utc, utcnow
from app.core.exceptions import (
    ConflictError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from app.models.issue import (
    Issue,
    IssuePriority,
    IssueStatus,
    IssueType,
    PriorityLevel,
)
from app.models.project import Project, ProjectIssueCounter
from app.schemas.common import PaginatedResponse, PersonRef, ProjectRef
from app.schemas.issue import (
    EnrichedIssueResponse,
    IssueCreateRequest,
    IssueListParams,
    IssueResponse,
    IssueUpdateRequest,
)

logger = logging.getLogger(__name__)

# filter key -> (column, value type)
FILTER_FIELDS: dict[str, tuple[Any, Any]] = {
    "status": (Issue.status, IssueStatus),
    "type": (Issue.type, IssueType),
    "priority": (Issue.priority, IssuePriority),
    "priorityLevel": (Issue.priority_level, PriorityLevel),
    "assigneeId": (Issue.assignee_id, str),
    "reporterId": (Issue.reporter_id, str),
}

SORT_FIELDS: dict[str, Any] = {
    "createdAt": Issue.created_at,
    "updatedAt": Issue.updated_at,
    "title": Issue.title,
    "issueNumber": Issue.issue_number,
    "status": Issue.status,
    "priority": Issue.priority,
}

# Fields an update may explicitly reset to null
CLEARABLE_FIELDS = frozenset(
    {"priority_level", "due_date", "story_points", "resolution", "parent_task_id", "epic_id"}
)


def issue_key(project_name: str, number: int) -> str:
    return f"{project_name[:3].upper()}-{number}"


def issue_to_response(issue: Issue) -> IssueResponse:
    return IssueResponse(
        id=issue.id,
        key=issue.key,
        issue_number=issue.issue_number,
        project_id=issue.project_id,
        title=issue.title,
        description=issue.description,
        type=issue.type,
        parent_task_id=issue.parent_task_id,
        epic_id=issue.epic_id,
        status=issue.status,
        assignee_id=issue.assignee_id,
        reporter_id=issue.reporter_id,
        priority=issue.priority,
        priority_level=issue.priority_level,
        sprint_id=issue.sprint_id,
        due_date=issue.due_date,
        labels=list(issue.labels or []),
        attachments=list(issue.attachments or []),
        watchers=list(issue.watchers or []),
        votes=issue.votes,
        story_points=issue.story_points,
        progress=issue.progress,
        total_time_spent=issue.total_time_spent,
        resolution=issue.resolution,
        resolution_date=issue.resolution_date,
        is_deleted=issue.is_deleted,
        created_at=issue.created_at,
        updated_at=issue.updated_at,
    )


def parse_issue_filter(raw: str | None) -> list[ColumnElement[bool]]:
    """
    Turn a JSON filter object into column conditions.

    Only whitelisted keys with scalar values are accepted; anything else is
    rejected as "Invalid filter format".
    """
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
    except ValueError:
        raise ValidationError("Invalid filter format", code="INVALID_FILTER")
    if not isinstance(parsed, dict):
        raise ValidationError("Invalid filter format", code="INVALID_FILTER")

    conditions = []
    for key, value in parsed.items():
        if key not in FILTER_FIELDS or not isinstance(value, str):
            raise ValidationError("Invalid filter format", code="INVALID_FILTER")
        column, kind = FILTER_FIELDS[key]
        try:
            conditions.append(column == kind(value))
        except ValueError:
            raise ValidationError("Invalid filter format", code="INVALID_FILTER")
    return conditions


def parse_date_param(value: str | None, name: str) -> datetime | None:
    if not value:
        return None
    try:
        return as_utc(datetime.fromisoformat(value))
    except ValueError:
        raise ValidationError(f"Invalid {name} format", code="INVALID_DATE")


class IssueService:
    """Handles all issue operations."""

    def __init__(self, db: AsyncSession, directory: EmployeeDirectory) -> None:
        self.db = db
        self.directory = directory

    # -----------------------------------------------------------------------
    # Create Issue
    # -----------------------------------------------------------------------

    async def create_issue(self, data: IssueCreateRequest) -> IssueResponse:
        """
        Create an issue numbered from the project's counter.

        The counter row is bumped with a single UPDATE ... RETURNING so two
        concurrent creates never receive the same number.
        """
        await self._ensure_title_free(data.project_id, data.title)
        project = await self._get_project(data.project_id)

        if data.assignee_id == data.reporter_id:
            raise ValidationError("assigneeId and reporterId can't be same")
        await self._require_employee(data.assignee_id, "Assignee")
        await self._require_employee(data.reporter_id, "Reporter")

        if data.parent_task_id is not None:
            await self._get_issue(data.parent_task_id, message="Parent task not found")
        if data.epic_id is not None:
            await self._get_issue(data.epic_id, message="Epic not found")

        number = await self._next_issue_number(project.id)
        issue = Issue(
            project_id=project.id,
            issue_number=number,
            key=issue_key(project.name, number),
            title=data.title,
            description=data.description,
            type=data.type,
            priority=data.priority,
            priority_level=data.priority_level,
            status=IssueStatus.backlog,
            assignee_id=data.assignee_id,
            reporter_id=data.reporter_id,
            parent_task_id=data.parent_task_id,
            epic_id=data.epic_id,
            due_date=data.due_date,
            story_points=data.story_points,
            labels=list(data.labels),
            attachments=list(data.attachments),
            watchers=[],
        )
        self.db.add(issue)
        await self.db.flush()

        logger.info("Issue %s created in project %s", issue.key, project.id)
        return issue_to_response(issue)

    # -----------------------------------------------------------------------
    # List / Get Issues
    # -----------------------------------------------------------------------

    async def list_project_issues(
        self, project_id: UUID, params: IssueListParams
    ) -> PaginatedResponse[EnrichedIssueResponse]:
        await self._get_project(project_id)
        return await self.list_issues(
            [Issue.project_id == project_id, Issue.is_deleted.is_(False)],
            params,
            message="Issues fetched successfully",
        )

    async def list_issues(
        self,
        conditions: Sequence[ColumnElement[bool]],
        params: IssueListParams,
        message: str | None = None,
    ) -> PaginatedResponse[EnrichedIssueResponse]:
        """Paginated, searchable, filterable listing of issues matching ``conditions``."""
        where = list(conditions)
        if params.search:
            where.append(
                or_(
                    Issue.title.icontains(params.search, autoescape=True),
                    Issue.description.icontains(params.search, autoescape=True),
                )
            )
        where.extend(parse_issue_filter(params.filter))

        start = parse_date_param(params.start_date, "startDate")
        end = parse_date_param(params.end_date, "endDate")
        if start is not None:
            where.append(Issue.created_at >= start)
        if end is not None:
            where.append(Issue.created_at <= end)

        total = (
            await self.db.execute(select(func.count()).select_from(Issue).where(*where))
        ).scalar_one()

        column = SORT_FIELDS[params.sort]
        order = column.desc() if params.sort_order == "desc" else column.asc()
        result = await self.db.execute(
            select(Issue)
            .where(*where)
            .order_by(order, Issue.id)
            .offset((params.page - 1) * params.limit)
            .limit(params.limit)
        )
        issues = list(result.scalars().all())
        items = await self.enrich(issues)
        return PaginatedResponse[EnrichedIssueResponse].build(
            items, total, params.page, params.limit, message=message
        )

    async def get_issue(self, issue_id: UUID) -> EnrichedIssueResponse:
        issue = await self._get_issue(issue_id)
        return (await self.enrich([issue]))[0]

    async def enrich(self, issues: Sequence[Issue]) -> list[EnrichedIssueResponse]:
        """Attach assignee/reporter names and the project name to each issue."""
        if not issues:
            return []
        employee_ids = [i.assignee_id for i in issues] + [i.reporter_id for i in issues]
        profiles = await self.directory.get_employees(employee_ids)

        project_ids = {i.project_id for i in issues}
        result = await self.db.execute(
            select(Project.id, Project.name).where(Project.id.in_(project_ids))
        )
        project_names = dict(result.all())

        def person(employee_id: str) -> PersonRef:
            profile = profiles.get(employee_id)
            return PersonRef(id=employee_id, name=profile.full_name if profile else None)

        return [
            EnrichedIssueResponse(
                **issue_to_response(issue).model_dump(),
                assignee=person(issue.assignee_id),
                reporter=person(issue.reporter_id),
                project=ProjectRef(id=issue.project_id, name=project_names.get(issue.project_id)),
            )
            for issue in issues
        ]

    # -----------------------------------------------------------------------
    # Update Issue
    # -----------------------------------------------------------------------

    async def update_issue(self, issue_id: UUID, data: IssueUpdateRequest) -> IssueResponse:
        """Apply the provided fields only."""
        issue = await self._get_issue(issue_id)
        changes = data.model_dump(exclude_unset=True)

        if changes.get("title") and changes["title"] != issue.title:
            await self._ensure_title_free(issue.project_id, changes["title"])

        assignee_id = changes.get("assignee_id") or issue.assignee_id
        reporter_id = changes.get("reporter_id") or issue.reporter_id
        if assignee_id == reporter_id:
            raise ValidationError("assigneeId and reporterId can't be same")
        if changes.get("assignee_id") and changes["assignee_id"] != issue.assignee_id:
            await self._require_employee(changes["assignee_id"], "Assignee")
        if changes.get("reporter_id") and changes["reporter_id"] != issue.reporter_id:
            await self._require_employee(changes["reporter_id"], "Reporter")

        for field, message in (("parent_task_id", "Parent task not found"), ("epic_id", "Epic not found")):
            ref = changes.get(field)
            if ref is not None:
                if ref == issue.id:
                    raise ValidationError(f"{field} cannot reference the issue itself")
                await self._get_issue(ref, message=message)

        for field, value in changes.items():
            if value is None and field not in CLEARABLE_FIELDS:
                continue
            if field in ("labels", "watchers"):
                value = list(value)
            setattr(issue, field, value)

        if "resolution" in changes:
            issue.resolution_date = utcnow() if changes["resolution"] is not None else None

        await self.db.flush()
        return issue_to_response(issue)

    async def update_status(self, issue_id: UUID, new_status: IssueStatus) -> IssueResponse:
        issue = await self._get_issue(issue_id, message="Issue deleted or not found")
        issue.status = new_status
        await self.db.flush()
        return issue_to_response(issue)

    # -----------------------------------------------------------------------
    # Delete Issue
    # -----------------------------------------------------------------------

    async def delete_issue(self, issue_id: UUID) -> None:
        """Soft delete; deleting twice reports the issue as already deleted."""
        issue = await self.db.get(Issue, issue_id)
        if issue is None:
            raise NotFoundError("Issue not found", code="ISSUE_NOT_FOUND")
        if issue.is_deleted:
            raise NotFoundError("Issue already deleted", code="ISSUE_NOT_FOUND")
        issue.is_deleted = True
        await self.db.flush()
        logger.info("Issue %s soft deleted", issue.key)

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    async def _get_project(self, project_id: UUID) -> Project:
        result = await self.db.execute(
            select(Project).where(Project.id == project_id, Project.is_deleted.is_(False))
        )
        project = result.scalar_one_or_none()
        if project is None:
            raise NotFoundError("Project not found", code="PROJECT_NOT_FOUND")
        return project

    async def _get_issue(self, issue_id: UUID, message: str = "Issue not found") -> Issue:
        result = await self.db.execute(
            select(Issue).where(Issue.id == issue_id, Issue.is_deleted.is_(False))
        )
        issue = result.scalar_one_or_none()
        if issue is None:
            raise NotFoundError(message, code="ISSUE_NOT_FOUND")
        return issue

    async def _ensure_title_free(self, project_id: UUID, title: str) -> None:
        result = await self.db.execute(
            select(Issue.id).where(
                Issue.project_id == project_id,
                Issue.title == title,
                Issue.is_deleted.is_(False),
            )
        )
        if result.first() is not None:
            raise ConflictError("Issue already exists for the same project", code="ISSUE_EXISTS")

    async def _require_employee(self, employee_id: str, role: str) -> None:
        if await self.directory.get_employee(employee_id) is None:
            raise UpstreamError(f"{role} not exists")

    async def _next_issue_number(self, project_id: UUID) -> int:
        result = await self.db.execute(
            update(ProjectIssueCounter)
            .where(ProjectIssueCounter.project_id == project_id)
            .values(last_number=ProjectIssueCounter.last_number + 1)
            .returning(ProjectIssueCounter.last_number)
            .execution_options(synchronize_session=False)
        )
        number = result.scalar_one_or_none()
        if number is None:
            # Projects created before counters existed
            self.db.add(ProjectIssueCounter(project_id=project_id, last_number=1))
            await self.db.flush()
            number = 1
        return number
