"""
Employee directory client.

Employees live in the external attendance service. Lookups go through
``GET {base_url}/users/{id}`` with a bearer token, are cached in Redis for a
short while, and never raise: any transport or HTTP failure is logged and
treated as "employee not found". The employee list behind the search comes
from ``GET {base_url}/get-employee-list`` and is not cached.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx
import redis.asyncio as aioredis
from pydantic import BaseModel, ValidationError, field_validator

logger = logging.getLogger(__name__)


class EmployeeProfile(BaseModel):
    """The subset of an attendance-service user this backend relies on."""

    id: str
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    emp_id: str | None = None
    active_status: Any = None
    role_id: Any = None
    role: Any = None

    @property
    def full_name(self) -> str | None:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) or None

    @classmethod
    def from_payload(cls, employee_id: str, payload: dict[str, Any]) -> EmployeeProfile | None:
        """Parse ``{"data": {"user": {...}, "profile": {"emp_id": ...}}}``."""
        data = payload.get("data") or {}
        user = data.get("user")
        if not user:
            return None
        profile = data.get("profile") or {}
        emp_id = profile.get("emp_id")
        return cls(
            id=employee_id,
            first_name=user.get("first_name"),
            last_name=user.get("last_name"),
            email=user.get("login_email") or user.get("email"),
            emp_id=str(emp_id) if emp_id is not None else None,
            active_status=user.get("active_status"),
            role_id=user.get("role_id"),
            role=user.get("role"),
        )


class EmployeeListEntry(BaseModel):
    """One row of the attendance service's employee list."""

    id: Any = None
    name: str = ""
    designation: str = ""
    email: str | None = None
    emp_id: str | None = None

    @field_validator("name", "designation", mode="before")
    @classmethod
    def blank_when_missing(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("emp_id", mode="before")
    @classmethod
    def emp_id_as_text(cls, v: Any) -> str | None:
        return None if v is None else str(v)

    def matches(self, query: str) -> bool:
        needle = query.lower()
        return needle in self.name.lower() or needle in self.designation.lower()


class EmployeeDirectory:
    """Async lookup of employees by id, plus the full employee list."""

    CACHE_PREFIX = "employee:"

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        token: str = "",
        redis: aioredis.Redis | None = None,
        cache_ttl: int = 300,
        timeout: float = 5.0,
    ) -> None:
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.redis = redis
        self.cache_ttl = cache_ttl
        self.timeout = timeout

    async def get_employee(self, employee_id: str) -> EmployeeProfile | None:
        """Return the employee profile, or None when it cannot be resolved."""
        if not employee_id:
            return None

        cached = await self._cache_get(employee_id)
        if cached is not None:
            return cached

        try:
            response = await self.client.get(
                f"{self.base_url}/users/{employee_id}",
                headers=self._headers(),
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Employee lookup failed for %s: %s", employee_id, exc)
            return None

        if not isinstance(payload, dict):
            logger.warning("Unexpected employee payload for %s", employee_id)
            return None

        profile = EmployeeProfile.from_payload(employee_id, payload)
        if profile is not None:
            await self._cache_set(profile)
        return profile

    async def get_employees(self, employee_ids: list[str]) -> dict[str, EmployeeProfile | None]:
        """Resolve several ids concurrently; duplicates are looked up once."""
        unique_ids = list(dict.fromkeys(i for i in employee_ids if i))
        profiles = await asyncio.gather(*(self.get_employee(i) for i in unique_ids))
        return dict(zip(unique_ids, profiles))

    async def exists(self, employee_id: str) -> bool:
        return await self.get_employee(employee_id) is not None

    async def list_employees(self) -> list[EmployeeListEntry]:
        """``GET {base_url}/get-employee-list``; empty when the service fails."""
        try:
            response = await self.client.get(
                f"{self.base_url}/get-employee-list",
                headers=self._headers(),
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Employee list fetch failed: %s", exc)
            return []

        rows = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(rows, list):
            logger.warning("Unexpected employee list payload")
            return []

        employees = []
        for row in rows:
            if not isinstance(row, dict):
                continue
            try:
                employees.append(EmployeeListEntry.model_validate(row))
            except ValidationError:
                logger.warning("Skipping malformed employee row: %r", row)
        return employees

    async def search_employees(self, query: str) -> list[EmployeeListEntry]:
        """Employees whose name or designation contains ``query``, case-insensitively."""
        return [e for e in await self.list_employees() if e.matches(query)]

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    # -----------------------------------------------------------------------
    # Cache
    # -----------------------------------------------------------------------

    async def _cache_get(self, employee_id: str) -> EmployeeProfile | None:
        if self.redis is None or self.cache_ttl <= 0:
            return None
        try:
            raw = await self.redis.get(self.CACHE_PREFIX + employee_id)
        except aioredis.RedisError as exc:
            logger.warning("Employee cache read failed: %s", exc)
            return None
        if raw is None:
            return None
        try:
            return EmployeeProfile.model_validate_json(raw)
        except ValidationError:
            return None

    async def _cache_set(self, profile: EmployeeProfile) -> None:
        if self.redis is None or self.cache_ttl <= 0:
            return
        try:
            await self.redis.set(
                self.CACHE_PREFIX + profile.id,
                profile.model_dump_json(),
                ex=self.cache_ttl,
            )
        except aioredis.RedisError as exc:
            logger.warning("Employee cache write failed: %s", exc)
