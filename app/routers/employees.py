"""
Employee endpoints, backed by the attendance service.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.clients.employee_directory import EmployeeDirectory
from app.core.dependencies import get_employee_directory
from app.core.exceptions import NotFoundError, ValidationError
from app.schemas.common import ApiResponse
from app.schemas.employee import EmployeeSearchResult

router = APIRouter()


@router.get(
    "/search-employees",
    response_model=ApiResponse[list[EmployeeSearchResult]],
    summary="Search employees by name or designation",
)
async def search_employees(
    query: str | None = Query(None, description="Part of a name or designation"),
    directory: EmployeeDirectory = Depends(get_employee_directory),
) -> ApiResponse[list[EmployeeSearchResult]]:
    if not query or not query.strip():
        raise ValidationError("Search query is required")

    matches = await directory.search_employees(query.strip())
    if not matches:
        raise NotFoundError("No employees found", code="EMPLOYEE_NOT_FOUND")
    return ApiResponse(
        data=[EmployeeSearchResult.model_validate(m.model_dump()) for m in matches]
    )
