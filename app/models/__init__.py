"""
SQLAlchemy ORM models.

All models imported here to ensure they are registered with Base.metadata.
Import order matters: base models before dependent models.
"""

from app.models.base import Base, TimestampMixin, UUIDMixin
from app.models.backlog import Backlog, BacklogPriority, BacklogType
from app.models.project import Project, ProjectIssueCounter, ProjectStatus
from app.models.sprint import Sprint, SprintIssue, SprintStatus, TimeLog
from app.models.issue import (
    Issue,
    IssuePriority,
    IssueStatus,
    IssueType,
    PriorityLevel,
    Resolution,
)
from app.models.release import Release

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "Backlog",
    "BacklogPriority",
    "BacklogType",
    "Project",
    "ProjectIssueCounter",
    "ProjectStatus",
    "Sprint",
    "SprintIssue",
    "SprintStatus",
    "TimeLog",
    "Issue",
    "IssuePriority",
    "IssueStatus",
    "IssueType",
    "PriorityLevel",
    "Resolution",
    "Release",
]
