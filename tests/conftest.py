"""
Pytest configuration for TaskTrack backend tests.

Requests go through the real FastAPI app in-process (httpx ASGITransport)
against an in-memory SQLite database. The attendance service is replaced by
an httpx MockTransport serving a small fixed set of employees.
"""

import itertools

import httpx
import pytest
from sqlalchemy.pool import StaticPool

from app.clients.employee_directory import EmployeeDirectory
from app.core.database import create_engine, create_session_factory, get_db
from app.core.dependencies import get_employee_directory
from app.main import app
from app.models import Base

DIRECTORY_URL = "http://attendance.test/api"

# employee id -> (first name, last name, employee number)
EMPLOYEES = {
    "emp-owner": ("Olivia", "Owner", "E001"),
    "emp-alice": ("Alice", "Archer", "E002"),
    "emp-bob": ("Bob", "Baker", "E003"),
    "emp-carol": ("Carol", "Cole", "E004"),
    # Resolves, but has no employee number
    "emp-contractor": ("Casey", "Contractor", None),
}

DESIGNATIONS = {
    "emp-owner": "Engineering Manager",
    "emp-alice": "Backend Developer",
    "emp-bob": "QA Engineer",
    "emp-carol": "Frontend Developer",
    "emp-contractor": "Consultant",
}


def employee_list() -> list[dict]:
    return [
        {
            "id": employee_id,
            "name": f"{first_name} {last_name}",
            "designation": DESIGNATIONS[employee_id],
            "email": f"{first_name.lower()}@example.com",
            "emp_id": emp_id,
        }
        for employee_id, (first_name, last_name, emp_id) in EMPLOYEES.items()
    ]


def pytest_configure(config):
    config.addinivalue_line("markers", "asyncio: mark test as async")


def attendance_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path.endswith("/get-employee-list"):
        return httpx.Response(200, json={"success": True, "data": employee_list()})
    employee_id = request.url.path.rsplit("/", 1)[-1]
    if employee_id not in EMPLOYEES:
        return httpx.Response(404, json={"success": False, "message": "User not found"})
    first_name, last_name, emp_id = EMPLOYEES[employee_id]
    return httpx.Response(
        200,
        json={
            "data": {
                "user": {
                    "first_name": first_name,
                    "last_name": last_name,
                    "login_email": f"{first_name.lower()}@example.com",
                    "active_status": 1,
                    "role_id": 2,
                    "role": "employee",
                },
                "profile": {"emp_id": emp_id},
            }
        },
    )


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------

@pytest.fixture
async def engine():
    engine = create_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
async def directory():
    async with httpx.AsyncClient(transport=httpx.MockTransport(attendance_handler)) as http_client:
        yield EmployeeDirectory(http_client, DIRECTORY_URL, token="test-token", redis=None)


@pytest.fixture
async def client(session_factory, directory):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_employee_directory] = lambda: directory
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Data helpers
# ---------------------------------------------------------------------------

@pytest.fixture
async def project(client) -> dict:
    resp = await client.post("/api/projects", json={
        "name": "Apollo",
        "description": "Moon landing tracker",
        "ownerId": "emp-owner",
        "members": ["emp-alice", "emp-bob"],
    })
    assert resp.status_code == 201, f"Create project failed: {resp.text}"
    return resp.json()["data"]


@pytest.fixture
def create_issue(client, project):
    counter = itertools.count(1)

    async def _create(**overrides) -> dict:
        body = {
            "projectId": project["id"],
            "title": f"Issue {next(counter)}",
            "description": "Something to do",
            "type": "task",
            "assigneeId": "emp-alice",
            "reporterId": "emp-bob",
        }
        body.update(overrides)
        resp = await client.post("/api/issues", json=body)
        assert resp.status_code == 201, f"Create issue failed: {resp.text}"
        return resp.json()["data"]

    return _create


@pytest.fixture
def create_sprint(client, project):
    async def _create(
        name: str = "Sprint 1",
        start_date: str = "2026-10-01T00:00:00Z",
        end_date: str = "2026-10-15T00:00:00Z",
    ) -> dict:
        resp = await client.post("/api/sprints", json={
            "projectId": project["id"],
            "name": name,
            "startDate": start_date,
            "endDate": end_date,
        })
        assert resp.status_code == 201, f"Create sprint failed: {resp.text}"
        return resp.json()["data"]

    return _create


@pytest.fixture
def add_to_sprint(client):
    async def _add(issue: dict, sprint: dict) -> httpx.Response:
        return await client.put(
            f"/api/sprints/add-to-sprint/{issue['id']}", json={"sprintId": sprint["id"]}
        )

    return _add
