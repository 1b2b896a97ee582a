"""
Sprint time-log tests.

Covers the start/stop timer, the one-running-log-per-assignee rule,
manual entries and the sprint time totals.
"""

import uuid

import pytest


@pytest.fixture
async def active_sprint(client, create_sprint, create_issue, add_to_sprint):
    """An active sprint holding one issue assigned to emp-alice."""
    sprint = await create_sprint()
    issue = await create_issue()
    await add_to_sprint(issue, sprint)
    resp = await client.put(f"/api/sprints/start-sprint/{sprint['id']}")
    assert resp.status_code == 201, resp.text
    return sprint, issue


async def start_log(client, sprint: dict, issue: dict, assignee: str = "emp-alice"):
    return await client.post(
        f"/api/sprints/{sprint['id']}/time-log/start",
        json={"issueId": issue["id"], "assigneeId": assignee},
    )


async def stop_log(client, sprint: dict, assignee: str = "emp-alice"):
    return await client.post(
        "/api/sprints/time-log/stop",
        json={"sprintId": sprint["id"], "assigneeId": assignee},
    )


# ---------------------------------------------------------------------------
# 1. Start / Stop
# ---------------------------------------------------------------------------

async def test_start_and_stop(client, active_sprint):
    sprint, issue = active_sprint

    resp = await start_log(client, sprint, issue)
    assert resp.status_code == 200, resp.text
    log = resp.json()["data"]
    assert log["endTime"] is None
    assert log["timeSpent"] == 0

    issue_state = (await client.get(f"/api/issues/{issue['id']}")).json()["data"]
    assert issue_state["status"] == "in_progress"

    resp = await stop_log(client, sprint)
    assert resp.status_code == 201, resp.text
    spent = resp.json()["data"]["timeSpentInMs"]
    assert spent >= 0

    logs = (await client.get(f"/api/sprints/{sprint['id']}/time-logs")).json()["data"]
    assert len(logs) == 1
    assert logs[0]["endTime"] is not None
    assert logs[0]["timeSpent"] == spent

    issue_state = (await client.get(f"/api/issues/{issue['id']}")).json()["data"]
    assert issue_state["totalTimeSpent"] == spent


async def test_second_running_log_refused(client, active_sprint, create_issue, add_to_sprint):
    sprint, issue = active_sprint
    other = await create_issue(title="Other")
    await add_to_sprint(other, sprint)
    await start_log(client, sprint, issue)

    resp = await start_log(client, sprint, other)
    assert resp.status_code == 400
    assert resp.json()["message"] == "User already has an active time log on another issue"


async def test_restart_after_stop(client, active_sprint):
    sprint, issue = active_sprint
    await start_log(client, sprint, issue)
    await stop_log(client, sprint)

    resp = await start_log(client, sprint, issue)
    assert resp.status_code == 200
    logs = (await client.get(f"/api/sprints/{sprint['id']}/time-logs")).json()["data"]
    assert len(logs) == 2


async def test_stop_without_running_log(client, active_sprint):
    sprint, _ = active_sprint
    resp = await stop_log(client, sprint)
    assert resp.status_code == 404
    assert resp.json() == {
        "success": False,
        "message": "No active time-log found",
        "data": None,
    }


async def test_stop_unknown_sprint(client):
    resp = await stop_log(client, {"id": str(uuid.uuid4())})
    assert resp.status_code == 404
    assert resp.json()["message"] == "Sprint not found"


# ---------------------------------------------------------------------------
# 2. Start Preconditions
# ---------------------------------------------------------------------------

async def test_start_on_planned_sprint(client, create_sprint, create_issue, add_to_sprint):
    sprint = await create_sprint()
    issue = await create_issue()
    await add_to_sprint(issue, sprint)

    resp = await start_log(client, sprint, issue)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Sprint is not active"


async def test_start_unknown_issue(client, active_sprint):
    sprint, _ = active_sprint
    resp = await start_log(client, sprint, {"id": str(uuid.uuid4())})
    assert resp.status_code == 404
    assert resp.json()["message"] == "Issue not exists"


async def test_start_unknown_assignee(client, active_sprint):
    sprint, issue = active_sprint
    resp = await start_log(client, sprint, issue, assignee="emp-ghost")
    assert resp.status_code == 404
    assert resp.json()["message"] == "assignee not exists in attendance-db"


async def test_start_by_someone_else(client, active_sprint):
    sprint, issue = active_sprint
    resp = await start_log(client, sprint, issue, assignee="emp-bob")
    assert resp.status_code == 400
    assert resp.json()["message"] == "Assignee ID does not match the assigned user for this issue"


# ---------------------------------------------------------------------------
# 3. Manual Entries & Totals
# ---------------------------------------------------------------------------

async def test_manual_entry_counts_towards_totals(client, active_sprint):
    sprint, issue = active_sprint
    resp = await client.post(f"/api/sprints/time-log/{sprint['id']}", json={
        "issueId": issue["id"],
        "assigneeId": "emp-alice",
        "startTime": "2026-10-02T09:00:00Z",
        "endTime": "2026-10-02T10:30:00Z",
    })
    assert resp.status_code == 201, resp.text
    assert resp.json()["data"]["timeSpent"] == 90 * 60 * 1000

    total = (await client.get(f"/api/sprints/{sprint['id']}/total-time")).json()["data"]
    assert total["totalTimeMs"] == 90 * 60 * 1000
    assert total["actualSprintTime"] == "1 hours 30 minutes"

    issue_state = (await client.get(f"/api/issues/{issue['id']}")).json()["data"]
    assert issue_state["totalTimeSpent"] == 90 * 60 * 1000


async def test_manual_entry_end_before_start(client, active_sprint):
    sprint, issue = active_sprint
    resp = await client.post(f"/api/sprints/time-log/{sprint['id']}", json={
        "issueId": issue["id"],
        "assigneeId": "emp-alice",
        "startTime": "2026-10-02T10:00:00Z",
        "endTime": "2026-10-02T09:00:00Z",
    })
    assert resp.status_code == 400
    assert resp.json()["message"] == "End time cannot be before start time"


async def test_open_manual_entry_respects_running_rule(client, active_sprint):
    sprint, issue = active_sprint
    await start_log(client, sprint, issue)

    resp = await client.post(f"/api/sprints/time-log/{sprint['id']}", json={
        "issueId": issue["id"],
        "assigneeId": "emp-alice",
        "startTime": "2026-10-02T09:00:00Z",
    })
    assert resp.status_code == 400
    assert resp.json()["message"] == "User already has an active time log on another issue"


async def manual_log(client, sprint: dict, issue: dict, assignee: str = "emp-alice", **times):
    body = {"issueId": issue["id"], "assigneeId": assignee, "startTime": "2026-10-02T09:00:00Z"}
    body.update(times)
    return await client.post(f"/api/sprints/time-log/{sprint['id']}", json=body)


async def test_manual_entry_on_completed_sprint(client, active_sprint):
    sprint, issue = active_sprint
    await client.post(f"/api/sprints/end-sprint/{sprint['id']}")

    for times in ({}, {"endTime": "2026-10-02T10:00:00Z"}):
        resp = await manual_log(client, sprint, issue, assignee="emp-nobody", **times)
        assert resp.status_code == 400
        assert resp.json()["message"] == "Cannot log time on a completed sprint"

    logs = (await client.get(f"/api/sprints/{sprint['id']}/time-logs")).json()["data"]
    assert logs == []


async def test_open_manual_entry_on_planned_sprint(client, create_sprint, create_issue, add_to_sprint):
    sprint = await create_sprint()
    issue = await create_issue()
    await add_to_sprint(issue, sprint)

    resp = await manual_log(client, sprint, issue)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Sprint is not active"


async def test_open_manual_entry_unknown_assignee(client, active_sprint):
    sprint, issue = active_sprint
    resp = await manual_log(client, sprint, issue, assignee="emp-nobody")
    assert resp.status_code == 404
    assert resp.json()["message"] == "assignee not exists in attendance-db"


async def test_open_manual_entry_by_someone_else(client, active_sprint):
    sprint, issue = active_sprint
    resp = await manual_log(client, sprint, issue, assignee="emp-bob")
    assert resp.status_code == 400
    assert resp.json()["message"] == "Assignee ID does not match the assigned user for this issue"


async def test_open_manual_entry_runs_until_stopped(client, active_sprint):
    sprint, issue = active_sprint
    resp = await manual_log(client, sprint, issue)
    assert resp.status_code == 201, resp.text
    assert resp.json()["data"]["endTime"] is None

    resp = await stop_log(client, sprint)
    assert resp.status_code == 201
    assert resp.json()["data"]["timeSpentInMs"] > 0


async def test_totals_for_sprint_without_logs(client, create_sprint):
    sprint = await create_sprint()
    total = (await client.get(f"/api/sprints/{sprint['id']}/total-time")).json()["data"]
    assert total["totalTimeMs"] == 0
    assert total["actualSprintTime"] == "0 hours 0 minutes"


async def test_sprint_analytics(client, active_sprint, create_issue, add_to_sprint):
    sprint, issue = active_sprint
    done = await create_issue(title="Finished")
    await add_to_sprint(done, sprint)
    await client.put(f"/api/issues/{done['id']}/status", json={"status": "done"})
    await client.post(f"/api/sprints/time-log/{sprint['id']}", json={
        "issueId": issue["id"],
        "assigneeId": "emp-alice",
        "startTime": "2026-10-02T09:00:00Z",
        "endTime": "2026-10-02T11:15:00Z",
    })

    resp = await client.get(f"/api/sprints/{sprint['id']}/analytics")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["totalTimeSpentMs"] == 135 * 60 * 1000
    assert data["totalTimeSpent"] == "2 hours 15 minutes"
    assert data["issuesStatus"] == {"to_do": 1, "in_progress": 0, "done": 1}
