"""
Employee directory client tests.

The attendance service is an httpx MockTransport; the Redis cache is a
small in-memory double exposing the two calls the client makes. The search
endpoint tests go through the app with the shared conftest directory.
"""

import httpx
import pytest
import redis.asyncio as aioredis

from app.clients.employee_directory import EmployeeDirectory, EmployeeProfile

BASE_URL = "http://attendance.test/api"


class MemoryRedis:
    def __init__(self, fail: bool = False):
        self.store: dict[str, str] = {}
        self.expiry: dict[str, int] = {}
        self.fail = fail

    async def get(self, key):
        if self.fail:
            raise aioredis.ConnectionError("redis down")
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        if self.fail:
            raise aioredis.ConnectionError("redis down")
        self.store[key] = value
        self.expiry[key] = ex


def user_payload(first_name: str = "Dana", emp_id: str | None = "E100") -> dict:
    return {
        "data": {
            "user": {"first_name": first_name, "last_name": "Diaz", "email": "dana@example.com"},
            "profile": {"emp_id": emp_id},
        }
    }


def make_directory(handler, redis=None, token="secret") -> tuple[EmployeeDirectory, httpx.AsyncClient]:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return EmployeeDirectory(client, BASE_URL + "/", token=token, redis=redis, cache_ttl=60), client


# ---------------------------------------------------------------------------
# 1. Payload parsing
# ---------------------------------------------------------------------------

def test_profile_from_payload():
    profile = EmployeeProfile.from_payload("42", user_payload())
    assert profile.id == "42"
    assert profile.full_name == "Dana Diaz"
    assert profile.email == "dana@example.com"
    assert profile.emp_id == "E100"


def test_profile_without_user_is_none():
    assert EmployeeProfile.from_payload("42", {"data": {}}) is None


# ---------------------------------------------------------------------------
# 2. Lookups
# ---------------------------------------------------------------------------

async def test_lookup_sends_bearer_token():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=user_payload())

    directory, client = make_directory(handler)
    async with client:
        profile = await directory.get_employee("42")

    assert profile.first_name == "Dana"
    assert str(seen[0].url) == "http://attendance.test/api/users/42"
    assert seen[0].headers["Authorization"] == "Bearer secret"


@pytest.mark.parametrize(
    "status, body",
    [
        (404, {"json": {"message": "User not found"}}),
        (500, {"text": "boom"}),
        (200, {"text": "not json"}),
        (200, {"json": ["unexpected"]}),
    ],
)
async def test_failures_mean_not_found(status, body):
    directory, client = make_directory(lambda request: httpx.Response(status, **body))
    async with client:
        assert await directory.get_employee("42") is None
        assert await directory.exists("42") is False


async def test_transport_error_means_not_found():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    directory, client = make_directory(handler)
    async with client:
        assert await directory.get_employee("42") is None


async def test_get_employees_deduplicates():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        if request.url.path.endswith("/missing"):
            return httpx.Response(404)
        return httpx.Response(200, json=user_payload())

    directory, client = make_directory(handler)
    async with client:
        profiles = await directory.get_employees(["a", "b", "a", "missing", ""])

    assert set(profiles) == {"a", "b", "missing"}
    assert profiles["missing"] is None
    assert sorted(calls) == ["/api/users/a", "/api/users/b", "/api/users/missing"]


# ---------------------------------------------------------------------------
# 3. Cache
# ---------------------------------------------------------------------------

async def test_profiles_are_cached():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json=user_payload())

    cache = MemoryRedis()
    directory, client = make_directory(handler, redis=cache)
    async with client:
        first = await directory.get_employee("42")
        second = await directory.get_employee("42")

    assert len(calls) == 1
    assert first == second
    assert cache.expiry["employee:42"] == 60


async def test_cache_failure_falls_back_to_http():
    directory, client = make_directory(
        lambda request: httpx.Response(200, json=user_payload()), redis=MemoryRedis(fail=True)
    )
    async with client:
        profile = await directory.get_employee("42")
    assert profile is not None


# ---------------------------------------------------------------------------
# 4. Employee list & search
# ---------------------------------------------------------------------------

async def test_search_matches_name_or_designation():
    rows = [
        {"id": 1, "name": "Dana Diaz", "designation": "Backend Developer", "emp_id": 100},
        {"id": 2, "name": "Eli Park", "designation": "QA Engineer", "emp_id": None},
        {"id": 3, "name": None, "designation": None},
        "not a row",
    ]
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"data": rows})

    directory, client = make_directory(handler)
    async with client:
        by_name = await directory.search_employees("DANA")
        by_designation = await directory.search_employees("engineer")
        everyone = await directory.list_employees()

    assert [e.name for e in by_name] == ["Dana Diaz"]
    assert by_name[0].emp_id == "100"
    assert [e.name for e in by_designation] == ["Eli Park"]
    assert len(everyone) == 3
    assert str(seen[0].url) == "http://attendance.test/api/get-employee-list"
    assert seen[0].headers["Authorization"] == "Bearer secret"


@pytest.mark.parametrize(
    "status, body",
    [(500, {"text": "boom"}), (200, {"json": {"data": "nope"}}), (200, {"text": "not json"})],
)
async def test_employee_list_failure_is_empty(status, body):
    directory, client = make_directory(lambda request: httpx.Response(status, **body))
    async with client:
        assert await directory.list_employees() == []
        assert await directory.search_employees("dana") == []


async def test_search_endpoint(client):
    resp = await client.get("/api/users/search-employees", params={"query": "developer"})
    assert resp.status_code == 200
    names = sorted(e["name"] for e in resp.json()["data"])
    assert names == ["Alice Archer", "Carol Cole"]
    assert resp.json()["data"][0]["empId"] is not None


async def test_search_endpoint_requires_query(client):
    for params in ({}, {"query": "  "}):
        resp = await client.get("/api/users/search-employees", params=params)
        assert resp.status_code == 400
        assert resp.json()["message"] == "Search query is required"


async def test_search_endpoint_without_matches(client):
    resp = await client.get("/api/users/search-employees", params={"query": "astronaut"})
    assert resp.status_code == 404
    assert resp.json()["message"] == "No employees found"
