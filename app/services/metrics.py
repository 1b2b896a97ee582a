"""
Pure aggregation helpers for sprint and project analytics.

Nothing here touches the database; callers pass already loaded issues and
time logs (ORM rows or anything with the same attributes). Every figure is
recomputed from the logs on each read.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from typing import Any
from uuid import UUID

from app.core.clock import MS_PER_DAY, MS_PER_HOUR, MS_PER_MINUTE, elapsed_ms
from app.models.issue import IssueStatus

WORK_HOURS_PER_DAY = 8

# Sprint board columns and the statuses shown in each
BOARD_COLUMNS: dict[str, tuple[IssueStatus, ...]] = {
    "To Do": (IssueStatus.backlog, IssueStatus.to_do),
    "In Progress": (IssueStatus.in_progress, IssueStatus.in_review, IssueStatus.in_testing),
    "Done": (IssueStatus.done,),
}


def log_duration_ms(log: Any) -> int:
    """Duration of a finished log; a running log contributes 0."""
    if log.start_time is None or log.end_time is None:
        return 0
    return elapsed_ms(log.start_time, log.end_time)


def total_time_ms(logs: Iterable[Any]) -> int:
    return sum(log_duration_ms(log) for log in logs)


def format_duration(ms: int) -> str:
    """Render milliseconds as ``"H hours M minutes"`` (both floored)."""
    hours = ms // MS_PER_HOUR
    minutes = (ms % MS_PER_HOUR) // MS_PER_MINUTE
    return f"{hours} hours {minutes} minutes"


def time_per_issue(logs: Iterable[Any]) -> dict[UUID, int]:
    totals: dict[UUID, int] = {}
    for log in logs:
        totals[log.issue_id] = totals.get(log.issue_id, 0) + log_duration_ms(log)
    return totals


def status_counts(issues: Iterable[Any]) -> dict[str, int]:
    """Counts of to_do, in_progress and done issues (other statuses are ignored)."""
    counts = {
        IssueStatus.to_do.value: 0,
        IssueStatus.in_progress.value: 0,
        IssueStatus.done.value: 0,
    }
    for issue in issues:
        status = IssueStatus(issue.status).value
        if status in counts:
            counts[status] += 1
    return counts


def issue_time_ms(issues: Iterable[Any], logs: Iterable[Any]) -> int:
    """Total finished time of the logs that belong to the given issues."""
    ids = {issue.id for issue in issues}
    return sum(log_duration_ms(log) for log in logs if log.issue_id in ids)


def burndown(issues: Iterable[Any], logs: Iterable[Any]) -> tuple[int, int, int]:
    """
    Return ``(total_work, completed_work, remaining_work)`` in milliseconds.

    Each issue's work is the time recorded against it in the sprint's logs;
    work on done issues counts as completed.
    """
    per_issue = time_per_issue(logs)
    total_work = 0
    completed_work = 0
    for issue in issues:
        spent = per_issue.get(issue.id, 0)
        total_work += spent
        if IssueStatus(issue.status) is IssueStatus.done:
            completed_work += spent
    return total_work, completed_work, total_work - completed_work


def sprint_days(sprint: Any) -> float:
    return elapsed_ms(sprint.start_date, sprint.end_date) / MS_PER_DAY


def efficiency_score(
    total_issues: int, completed_issues: int, hours_spent: float, days: float
) -> float:
    """
    ``(completed/total - hours/(days * 8)) * 100``.

    Zero when there are no issues or the sprints span no time.
    """
    if total_issues == 0 or days == 0:
        return 0.0
    completion_rate = completed_issues / total_issues
    time_ratio = hours_spent / (days * WORK_HOURS_PER_DAY)
    return (completion_rate - time_ratio) * 100


def project_efficiency(sprints: Iterable[Any], issue_status: dict[UUID, Any]) -> dict[str, float]:
    """
    Efficiency figures for one project.

    ``issue_status`` maps the project's issue ids to their status; logs for
    issues outside that map are ignored. Every remaining log counts towards
    ``total_issues``, and towards ``completed_issues`` when its issue is done,
    so an issue logged three times weighs three.
    """
    total_days = 0.0
    total_ms = 0
    total = completed = 0
    for sprint in sprints:
        total_days += sprint_days(sprint)
        for log in sprint.time_logs:
            if log.issue_id not in issue_status:
                continue
            total_ms += log_duration_ms(log)
            total += 1
            if IssueStatus(issue_status[log.issue_id]) is IssueStatus.done:
                completed += 1

    hours = total_ms / MS_PER_HOUR
    return {
        "total_issues": total,
        "completed_issues": completed,
        "hours_spent": hours,
        "sprint_days": total_days,
        "efficiency": efficiency_score(total, completed, hours, total_days),
    }


def resolve_percentage(created: int, resolved: int) -> str:
    """Resolved share of created issues as ``"N %"``; ``"0 %"`` when nothing was created."""
    if created == 0:
        return "0 %"
    value = resolved / created * 100
    if value.is_integer():
        return f"{int(value)} %"
    return f"{round(value, 2)} %"


def count_by_type(issues: Iterable[Any]) -> dict[str, int]:
    return dict(Counter(_value(issue.type) for issue in issues))


def group_by_status(issues: Iterable[Any]) -> list[tuple[str, int, list[str]]]:
    """``(status, count, titles)`` per status present, ordered by status name."""
    groups: dict[str, list[str]] = {}
    for issue in issues:
        groups.setdefault(_value(issue.status), []).append(issue.title)
    return [(status, len(titles), titles) for status, titles in sorted(groups.items())]


def board_columns(issues: Iterable[Any]) -> dict[str, list[Any]]:
    columns: dict[str, list[Any]] = {name: [] for name in BOARD_COLUMNS}
    for issue in issues:
        status = IssueStatus(issue.status)
        for name, statuses in BOARD_COLUMNS.items():
            if status in statuses:
                columns[name].append(issue)
                break
    return columns


def _value(member: Any) -> str:
    return member.value if hasattr(member, "value") else str(member)
