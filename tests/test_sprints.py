"""
Sprint lifecycle tests.

Covers:
- Sprint creation and its validation
- Adding issues to sprints
- Starting and ending sprints and the issue status rewrites
- Sprint issue listing, board and grouping endpoints
- Membership across sprints and the concurrency guards on sprint writes
"""

import uuid

import pytest
from sqlalchemy import event, update
from sqlalchemy.exc import IntegrityError

from app.core.clock import utcnow
from app.core.database import get_db
from app.core.exceptions import StateError
from app.main import app
from app.models.sprint import Sprint, TimeLog
from app.services.time_log_service import ACTIVE_LOG_EXISTS, TimeLogService


# ---------------------------------------------------------------------------
# 1. Create Sprint
# ---------------------------------------------------------------------------

async def test_create_sprint_starts_planned(client, create_sprint, project):
    sprint = await create_sprint()
    assert sprint["status"] == "planned"
    assert sprint["projectId"] == project["id"]
    assert sprint["issues"] == []
    assert sprint["timeLogs"] == []


async def test_sprint_name_is_unique_per_project(client, create_sprint, project):
    await create_sprint(name="Sprint 1")
    resp = await client.post("/api/sprints", json={
        "projectId": project["id"],
        "name": "Sprint 1",
        "startDate": "2026-10-01T00:00:00Z",
        "endDate": "2026-10-15T00:00:00Z",
    })
    assert resp.status_code == 409
    assert resp.json()["message"] == "Sprint name already exists in this project"


async def test_start_date_after_end_date_rejected(client, project):
    resp = await client.post("/api/sprints", json={
        "projectId": project["id"],
        "name": "Backwards",
        "startDate": "2026-10-15T00:00:00Z",
        "endDate": "2026-10-01T00:00:00Z",
    })
    assert resp.status_code == 400
    assert resp.json()["success"] is False


async def test_sprint_for_unknown_project(client):
    resp = await client.post("/api/sprints", json={
        "projectId": str(uuid.uuid4()),
        "name": "Orphan",
        "startDate": "2026-10-01T00:00:00Z",
        "endDate": "2026-10-15T00:00:00Z",
    })
    assert resp.status_code == 404
    assert resp.json()["message"] == "Project not exists"


async def test_get_missing_sprint(client):
    resp = await client.get(f"/api/sprints/{uuid.uuid4()}")
    assert resp.status_code == 404
    assert resp.json() == {
        "success": False,
        "message": "Sprint not found",
        "code": "SPRINT_NOT_FOUND",
    }


async def test_list_sprints_for_project(client, create_sprint, project):
    await create_sprint(name="Sprint 1")
    await create_sprint(name="Sprint 2")
    resp = await client.get("/api/sprints", params={"projectId": project["id"]})
    assert resp.status_code == 200
    assert [s["name"] for s in resp.json()["data"]] == ["Sprint 1", "Sprint 2"]


# ---------------------------------------------------------------------------
# 2. Add Issues
# ---------------------------------------------------------------------------

async def test_add_issue_sets_to_do_and_keeps_order(client, create_sprint, create_issue, add_to_sprint):
    sprint = await create_sprint()
    first = await create_issue()
    second = await create_issue()

    resp = await add_to_sprint(first, sprint)
    assert resp.status_code == 201, resp.text
    resp = await add_to_sprint(second, sprint)
    assert resp.status_code == 201
    assert resp.json()["data"]["issues"] == [first["id"], second["id"]]

    issue = (await client.get(f"/api/issues/{first['id']}")).json()["data"]
    assert issue["status"] == "to_do"
    assert issue["sprintId"] == sprint["id"]


async def test_add_issue_twice_conflicts(create_sprint, create_issue, add_to_sprint):
    sprint = await create_sprint()
    issue = await create_issue()
    await add_to_sprint(issue, sprint)

    resp = await add_to_sprint(issue, sprint)
    assert resp.status_code == 409
    assert resp.json()["message"] == "This Issue already added to this sprint"


async def test_issue_in_another_active_sprint_conflicts(client, create_sprint, create_issue, add_to_sprint):
    active = await create_sprint(name="Active")
    planned = await create_sprint(name="Planned")
    issue = await create_issue()
    await add_to_sprint(issue, active)
    await client.put(f"/api/sprints/start-sprint/{active['id']}")

    resp = await add_to_sprint(issue, planned)
    assert resp.status_code == 409
    assert resp.json()["message"] == "Issue is already part of another active sprint"


async def test_add_unknown_issue(create_sprint, add_to_sprint):
    sprint = await create_sprint()
    resp = await add_to_sprint({"id": str(uuid.uuid4())}, sprint)
    assert resp.status_code == 404


async def test_add_issue_to_unknown_sprint(create_issue, add_to_sprint):
    issue = await create_issue()
    resp = await add_to_sprint(issue, {"id": str(uuid.uuid4())})
    assert resp.status_code == 404


# ---------------------------------------------------------------------------
# 3. Start / End
# ---------------------------------------------------------------------------

async def test_start_sprint_activates_and_resets_issues(client, create_sprint, create_issue, add_to_sprint):
    sprint = await create_sprint()
    issue = await create_issue()
    await add_to_sprint(issue, sprint)
    await client.put(f"/api/issues/{issue['id']}/status", json={"status": "in_review"})

    resp = await client.put(f"/api/sprints/start-sprint/{sprint['id']}")
    assert resp.status_code == 201
    assert resp.json()["data"]["status"] == "active"

    issue = (await client.get(f"/api/issues/{issue['id']}")).json()["data"]
    assert issue["status"] == "to_do"


async def test_start_sprint_twice(client, create_sprint):
    sprint = await create_sprint()
    await client.put(f"/api/sprints/start-sprint/{sprint['id']}")

    resp = await client.put(f"/api/sprints/start-sprint/{sprint['id']}")
    assert resp.status_code == 404
    assert resp.json()["message"] == "Sprint not found or already started"


async def test_end_sprint_rewrites_issue_statuses(client, create_sprint, create_issue, add_to_sprint):
    sprint = await create_sprint()
    in_progress = await create_issue(title="Started")
    untouched = await create_issue(title="Untouched")
    reviewed = await create_issue(title="Reviewed")
    for issue in (in_progress, untouched, reviewed):
        await add_to_sprint(issue, sprint)
    await client.put(f"/api/sprints/start-sprint/{sprint['id']}")
    await client.put(f"/api/issues/{in_progress['id']}/status", json={"status": "in_progress"})
    await client.put(f"/api/issues/{reviewed['id']}/status", json={"status": "in_review"})

    resp = await client.post(f"/api/sprints/end-sprint/{sprint['id']}")
    assert resp.status_code == 201, resp.text
    assert resp.json()["data"]["status"] == "completed"

    statuses = {}
    for issue in (in_progress, untouched, reviewed):
        statuses[issue["title"]] = (await client.get(f"/api/issues/{issue['id']}")).json()["data"]["status"]
    assert statuses == {"Started": "done", "Untouched": "backlog", "Reviewed": "done"}


async def test_end_completed_sprint(client, create_sprint):
    sprint = await create_sprint()
    await client.put(f"/api/sprints/start-sprint/{sprint['id']}")
    await client.post(f"/api/sprints/end-sprint/{sprint['id']}")

    resp = await client.post(f"/api/sprints/end-sprint/{sprint['id']}")
    assert resp.status_code == 400
    assert resp.json()["message"] == "Sprint is already completed"


async def test_end_sprint_with_running_log_refused(client, create_sprint, create_issue, add_to_sprint):
    sprint = await create_sprint()
    issue = await create_issue()
    await add_to_sprint(issue, sprint)
    await client.put(f"/api/sprints/start-sprint/{sprint['id']}")
    await client.post(
        f"/api/sprints/{sprint['id']}/time-log/start",
        json={"issueId": issue["id"], "assigneeId": "emp-alice"},
    )

    resp = await client.post(f"/api/sprints/end-sprint/{sprint['id']}")
    assert resp.status_code == 400
    assert resp.json()["message"] == (
        "Cannot end sprint as there are unfinished time logs. Please complete all tasks."
    )

    sprint_state = (await client.get(f"/api/sprints/{sprint['id']}")).json()["data"]
    assert sprint_state["status"] == "active"


# ---------------------------------------------------------------------------
# 4. Sprint Issues, Board, Grouping
# ---------------------------------------------------------------------------

async def test_sprint_issues_are_paginated_and_enriched(client, create_sprint, create_issue, add_to_sprint):
    sprint = await create_sprint()
    for _ in range(3):
        await add_to_sprint(await create_issue(), sprint)
    outside = await create_issue(title="Not in sprint")

    resp = await client.get(f"/api/sprints/{sprint['id']}/issues", params={"limit": 2})
    assert resp.status_code == 200
    body = resp.json()
    assert body["count"] == 3
    assert body["totalPages"] == 2
    assert body["currentPage"] == 1
    assert body["next"] is True
    assert len(body["data"]) == 2
    assert body["data"][0]["assignee"] == {"id": "emp-alice", "name": "Alice Archer"}
    assert body["data"][0]["project"]["name"] == "Apollo"
    assert outside["id"] not in [i["id"] for i in body["data"]]


async def test_sprint_issues_exclude_deleted(client, create_sprint, create_issue, add_to_sprint):
    sprint = await create_sprint()
    keep = await create_issue()
    gone = await create_issue()
    await add_to_sprint(keep, sprint)
    await add_to_sprint(gone, sprint)
    await client.delete(f"/api/issues/{gone['id']}")

    body = (await client.get(f"/api/sprints/{sprint['id']}/issues")).json()
    assert [i["id"] for i in body["data"]] == [keep["id"]]


async def test_sprint_board_columns(client, create_sprint, create_issue, add_to_sprint):
    sprint = await create_sprint()
    todo = await create_issue(title="Todo")
    review = await create_issue(title="Review")
    await add_to_sprint(todo, sprint)
    await add_to_sprint(review, sprint)
    await client.put(f"/api/issues/{review['id']}/status", json={"status": "in_review"})

    resp = await client.get(f"/api/sprints/board/{sprint['id']}")
    assert resp.status_code == 200
    columns = resp.json()["data"]["columns"]
    assert [i["title"] for i in columns["To Do"]] == ["Todo"]
    assert [i["title"] for i in columns["In Progress"]] == ["Review"]
    assert columns["Done"] == []


async def test_issues_by_status(client, create_sprint, create_issue, add_to_sprint):
    sprint = await create_sprint()
    a = await create_issue(title="A")
    b = await create_issue(title="B")
    await add_to_sprint(a, sprint)
    await add_to_sprint(b, sprint)
    await client.put(f"/api/issues/{b['id']}/status", json={"status": "done"})

    resp = await client.get(f"/api/sprints/{sprint['id']}/issues-by-status")
    assert resp.status_code == 200
    assert resp.json()["data"] == [
        {"status": "done", "count": 1, "issues": ["B"]},
        {"status": "to_do", "count": 1, "issues": ["A"]},
    ]


# ---------------------------------------------------------------------------
# 5. End-to-end
# ---------------------------------------------------------------------------

async def test_full_sprint_flow(client, create_sprint, create_issue, add_to_sprint):
    sprint = await create_sprint(
        name="Sprint 1", start_date="2025-07-29T00:00:00Z", end_date="2025-08-12T00:00:00Z"
    )
    issue = await create_issue()
    assert issue["status"] == "backlog"

    resp = await add_to_sprint(issue, sprint)
    assert resp.json()["data"]["issues"] == [issue["id"]]

    resp = await client.put(f"/api/sprints/start-sprint/{sprint['id']}")
    assert resp.json()["data"]["status"] == "active"
    assert (await client.get(f"/api/issues/{issue['id']}")).json()["data"]["status"] == "to_do"

    resp = await client.post(
        f"/api/sprints/{sprint['id']}/time-log/start",
        json={"issueId": issue["id"], "assigneeId": "emp-alice"},
    )
    assert resp.status_code == 200
    assert (await client.get(f"/api/issues/{issue['id']}")).json()["data"]["status"] == "in_progress"

    resp = await client.post(
        "/api/sprints/time-log/stop", json={"sprintId": sprint["id"], "assigneeId": "emp-alice"}
    )
    assert resp.status_code == 201
    spent = resp.json()["data"]["timeSpentInMs"]
    assert spent >= 0
    issue_state = (await client.get(f"/api/issues/{issue['id']}")).json()["data"]
    assert issue_state["totalTimeSpent"] == spent

    resp = await client.post(f"/api/sprints/end-sprint/{sprint['id']}")
    assert resp.status_code == 201
    assert resp.json()["data"]["status"] == "completed"
    assert (await client.get(f"/api/issues/{issue['id']}")).json()["data"]["status"] == "done"

    # Nothing is left to_do or in_progress once the sprint is over
    analytics = (await client.get(f"/api/sprints/{sprint['id']}/analytics")).json()["data"]
    assert analytics["issuesStatus"]["to_do"] == 0
    assert analytics["issuesStatus"]["in_progress"] == 0


# ---------------------------------------------------------------------------
# 6. Membership Across Sprints
# ---------------------------------------------------------------------------

async def test_issue_can_be_preloaded_into_several_planned_sprints(
    client, create_sprint, create_issue, add_to_sprint
):
    first = await create_sprint(name="Sprint 1")
    second = await create_sprint(name="Sprint 2")
    issue = await create_issue()

    assert (await add_to_sprint(issue, first)).status_code == 201
    resp = await add_to_sprint(issue, second)
    assert resp.status_code == 201, resp.text
    assert resp.json()["data"]["issues"] == [issue["id"]]

    # Once one of them is active, a third sprint can no longer take it
    await client.put(f"/api/sprints/start-sprint/{first['id']}")
    third = await create_sprint(name="Sprint 3")
    assert (await add_to_sprint(issue, third)).status_code == 409


# ---------------------------------------------------------------------------
# 7. Concurrency Guards
# ---------------------------------------------------------------------------

def running_log(sprint: dict, issue: dict, assignee: str = "emp-alice") -> TimeLog:
    return TimeLog(
        sprint_id=uuid.UUID(sprint["id"]),
        issue_id=uuid.UUID(issue["id"]),
        assignee_id=assignee,
        start_time=utcnow(),
        end_time=None,
        time_spent=0,
    )


async def test_end_planned_sprint_with_running_log_refused(
    client, session_factory, create_sprint, create_issue, add_to_sprint
):
    sprint = await create_sprint()
    issue = await create_issue()
    await add_to_sprint(issue, sprint)
    async with session_factory() as session:
        session.add(running_log(sprint, issue))
        await session.commit()

    resp = await client.post(f"/api/sprints/end-sprint/{sprint['id']}")
    assert resp.status_code == 400
    assert resp.json()["message"] == (
        "Cannot end sprint as there are unfinished time logs. Please complete all tasks."
    )
    sprint_state = (await client.get(f"/api/sprints/{sprint['id']}")).json()["data"]
    assert sprint_state["status"] == "planned"


async def test_running_log_index_rejects_second_running_log(
    client, session_factory, directory, create_sprint, create_issue, add_to_sprint
):
    sprint = await create_sprint()
    issue = await create_issue()
    await add_to_sprint(issue, sprint)
    await client.put(f"/api/sprints/start-sprint/{sprint['id']}")
    resp = await client.post(
        f"/api/sprints/{sprint['id']}/time-log/start",
        json={"issueId": issue["id"], "assigneeId": "emp-alice"},
    )
    assert resp.status_code == 200, resp.text

    async with session_factory() as session:
        session.add(running_log(sprint, issue))
        with pytest.raises(IntegrityError):
            await session.flush()
        await session.rollback()

    async with session_factory() as session:
        session.add(running_log(sprint, issue))
        with pytest.raises(StateError) as exc_info:
            await TimeLogService(session, directory)._flush()
        assert exc_info.value.status_code == 400
        assert exc_info.value.message == ACTIVE_LOG_EXISTS
        await session.rollback()

    logs = (await client.get(f"/api/sprints/{sprint['id']}/time-logs")).json()["data"]
    assert [log["endTime"] for log in logs] == [None]


async def test_concurrent_sprint_update_conflicts(client, session_factory, create_sprint):
    sprint = await create_sprint()
    sprints = Sprint.__table__

    async def racing_get_db():
        async with session_factory() as session:
            # Another writer commits a new version between our read and our write
            def bump_version(sync_session, flush_context, instances):
                sync_session.execute(
                    update(sprints)
                    .where(sprints.c.id == uuid.UUID(sprint["id"]))
                    .values(version=sprints.c.version + 1)
                )

            event.listen(session.sync_session, "before_flush", bump_version, once=True)
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    default_get_db = app.dependency_overrides[get_db]
    app.dependency_overrides[get_db] = racing_get_db
    try:
        resp = await client.put(f"/api/sprints/start-sprint/{sprint['id']}")
    finally:
        app.dependency_overrides[get_db] = default_get_db

    assert resp.status_code == 409
    assert resp.json() == {
        "success": False,
        "message": "Sprint was modified concurrently, retry",
        "code": "CONCURRENT_UPDATE",
    }
    sprint_state = (await client.get(f"/api/sprints/{sprint['id']}")).json()["data"]
    assert sprint_state["status"] == "planned"
