"""
Application error hierarchy.

Every error is an ``HTTPException`` carrying a ``{code, message}`` detail, so
routes and services raise them directly and the handlers in ``app.main``
render the response envelope.
"""

from __future__ import annotations

from fastapi import HTTPException, status


class AppError(HTTPException):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        super().__init__(
            status_code=self.status_code,
            detail={"code": code or self.code, "message": message},
        )


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"


class StateError(AppError):
    """Operation is not allowed in the entity's current state."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "INVALID_STATE"


class UpstreamError(AppError):
    """An employee reference could not be resolved by the directory."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "EMPLOYEE_NOT_FOUND"
