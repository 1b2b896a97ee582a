"""
Employee schemas.
"""

from __future__ import annotations

from typing import Any

from app.schemas.common import CamelModel


class EmployeeSearchResult(CamelModel):
    id: Any = None
    name: str
    designation: str
    email: str | None = None
    emp_id: str | None = None
