"""
Issue ORM model.
"""

from __future__ import annotations

import enum
from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    false,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, JSONList, TimestampMixin, UUIDMixin


class IssueType(str, enum.Enum):
    task = "task"
    story = "story"
    epic = "epic"
    subtask = "subtask"
    bug = "bug"
    feedback = "feedback"


class IssueStatus(str, enum.Enum):
    backlog = "backlog"
    to_do = "to_do"
    in_progress = "in_progress"
    in_review = "in_review"
    in_testing = "in_testing"
    done = "done"


class IssuePriority(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"


class PriorityLevel(str, enum.Enum):
    critical = "Critical"
    major = "Major"
    minor = "Minor"


class Resolution(str, enum.Enum):
    fixed = "Fixed"
    wont_fix = "Won't Fix"
    duplicate = "Duplicate"
    incomplete = "Incomplete"


class Issue(Base, UUIDMixin, TimestampMixin):
    """A unit of work within a project (task, story, epic, subtask, bug, feedback)."""

    __tablename__ = "issues"
    __table_args__ = (
        UniqueConstraint("project_id", "issue_number", name="uq_issues_project_number"),
        Index(
            "uq_issues_project_title_live",
            "project_id",
            "title",
            unique=True,
            postgresql_where=text("NOT is_deleted"),
            sqlite_where=text("NOT is_deleted"),
        ),
    )

    project_id: Mapped[UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    issue_number: Mapped[int] = mapped_column(Integer, nullable=False)
    key: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    type: Mapped[IssueType] = mapped_column(
        Enum(IssueType, name="issue_type"),
        nullable=False,
        default=IssueType.task,
    )
    parent_task_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("issues.id", ondelete="SET NULL"), nullable=True
    )
    epic_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("issues.id", ondelete="SET NULL"), nullable=True
    )
    status: Mapped[IssueStatus] = mapped_column(
        Enum(IssueStatus, name="issue_status"),
        nullable=False,
        default=IssueStatus.backlog,
        index=True,
    )
    assignee_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    reporter_id: Mapped[str] = mapped_column(String(64), nullable=False)
    priority: Mapped[IssuePriority] = mapped_column(
        Enum(IssuePriority, name="issue_priority"),
        nullable=False,
        default=IssuePriority.medium,
    )
    priority_level: Mapped[PriorityLevel | None] = mapped_column(
        Enum(PriorityLevel, name="issue_priority_level"), nullable=True
    )
    sprint_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("sprints.id", ondelete="SET NULL"), nullable=True, index=True
    )
    due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    labels: Mapped[list[str]] = mapped_column(JSONList, nullable=False, default=list)
    attachments: Mapped[list[str]] = mapped_column(JSONList, nullable=False, default=list)
    watchers: Mapped[list[str]] = mapped_column(JSONList, nullable=False, default=list)
    votes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    story_points: Mapped[int | None] = mapped_column(Integer, nullable=True)
    progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_time_spent: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0, doc="Accumulated logged time in milliseconds"
    )
    resolution: Mapped[Resolution | None] = mapped_column(
        Enum(Resolution, name="issue_resolution"), nullable=True
    )
    resolution_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    is_deleted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )

    def __repr__(self) -> str:
        return f"<Issue id={self.id} key={self.key!r} status={self.status}>"
