"""
Shared schema building blocks.

Every endpoint answers with the ``{success, message, data}`` envelope; JSON
keys are camelCase on the wire and requests accept either spelling.
"""

from __future__ import annotations

import math
from typing import Any, Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

DataT = TypeVar("DataT")


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiResponse(CamelModel, Generic[DataT]):
    """Unified response envelope for all API endpoints."""

    success: bool = True
    message: str | None = None
    data: DataT | None = None


class PaginatedResponse(CamelModel, Generic[DataT]):
    """Envelope for paginated listings."""

    success: bool = True
    message: str | None = None
    data: list[DataT]
    count: int
    total_pages: int
    current_page: int
    next: bool

    @classmethod
    def build(
        cls, items: list[Any], total: int, page: int, limit: int, message: str | None = None
    ) -> PaginatedResponse:
        total_pages = math.ceil(total / limit) if limit else 0
        return cls(
            message=message,
            data=items,
            count=total,
            total_pages=total_pages,
            current_page=page,
            next=page < total_pages,
        )


class ErrorResponse(CamelModel):
    success: bool = False
    message: str
    code: str | None = None
    errors: list[Any] | None = None


class PersonRef(CamelModel):
    """An employee reference resolved through the directory."""

    id: str
    name: str | None = None


class ProjectRef(CamelModel):
    id: UUID
    name: str | None = None
