"""
FastAPI dependency injection functions.

Shared clients are built in the application lifespan and kept on
``app.state``. Database sessions come from ``app.core.database.get_db``.
"""

from __future__ import annotations

from fastapi import Query, Request

from app.clients.employee_directory import EmployeeDirectory
from app.schemas.issue import IssueListParams


async def get_employee_directory(request: Request) -> EmployeeDirectory:
    """Return the shared employee directory client (HTTP client + Redis cache)."""
    return request.app.state.employee_directory


def issue_list_params(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str | None = Query(None),
    filter: str | None = Query(None, description='JSON object, e.g. {"status": "to_do"}'),
    sort: str = Query("createdAt", pattern="^(createdAt|updatedAt|title|issueNumber|status|priority)$"),
    sort_order: str = Query("asc", alias="sortOrder", pattern="^(asc|desc)$"),
    start_date: str | None = Query(None, alias="startDate"),
    end_date: str | None = Query(None, alias="endDate"),
) -> IssueListParams:
    """Query parameters of the paginated issue listings."""
    return IssueListParams(
        page=page,
        limit=limit,
        search=search,
        filter=filter,
        sort=sort,
        sort_order=sort_order,
        start_date=start_date,
        end_date=end_date,
    )
