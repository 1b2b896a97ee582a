"""
Sprint ORM models.

Sprint, SprintIssue (ordered sprint membership) and TimeLog.
"""

from __future__ import annotations

import enum
from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.clock import utcnow
from app.models.base import Base, TimestampMixin, UUIDMixin


class SprintStatus(str, enum.Enum):
    planned = "planned"
    active = "active"
    completed = "completed"


class Sprint(Base, UUIDMixin, TimestampMixin):
    """Represents a sprint within a project."""

    __tablename__ = "sprints"
    __table_args__ = (
        UniqueConstraint("project_id", "name", name="uq_sprints_project_name"),
    )

    project_id: Mapped[UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[SprintStatus] = mapped_column(
        Enum(SprintStatus, name="sprint_status"),
        nullable=False,
        default=SprintStatus.planned,
    )
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Relationships
    issue_links: Mapped[list[SprintIssue]] = relationship(
        "SprintIssue",
        order_by="SprintIssue.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    time_logs: Mapped[list[TimeLog]] = relationship(
        "TimeLog",
        order_by="TimeLog.start_time",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def issue_ids(self) -> list[UUID]:
        return [link.issue_id for link in self.issue_links]

    def has_issue(self, issue_id: UUID) -> bool:
        return any(link.issue_id == issue_id for link in self.issue_links)

    def running_log_for(self, assignee_id: str) -> TimeLog | None:
        for log in self.time_logs:
            if log.assignee_id == assignee_id and log.end_time is None:
                return log
        return None

    def __repr__(self) -> str:
        return f"<Sprint id={self.id} name={self.name!r} status={self.status}>"


class SprintIssue(Base):
    """Association between a sprint and an issue, with its position in the sprint."""

    __tablename__ = "sprint_issues"

    sprint_id: Mapped[UUID] = mapped_column(
        ForeignKey("sprints.id", ondelete="CASCADE"), primary_key=True
    )
    issue_id: Mapped[UUID] = mapped_column(
        ForeignKey("issues.id", ondelete="CASCADE"), primary_key=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class TimeLog(Base, UUIDMixin):
    """
    A span of work by one assignee on one issue inside a sprint.

    ``end_time`` is NULL while the log is running. At most one running log
    may exist per (sprint, assignee).
    """

    __tablename__ = "sprint_time_logs"
    __table_args__ = (
        Index(
            "uq_sprint_time_logs_running",
            "sprint_id",
            "assignee_id",
            unique=True,
            postgresql_where=text("end_time IS NULL"),
            sqlite_where=text("end_time IS NULL"),
        ),
    )

    sprint_id: Mapped[UUID] = mapped_column(
        ForeignKey("sprints.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    issue_id: Mapped[UUID] = mapped_column(
        ForeignKey("issues.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    assignee_id: Mapped[str] = mapped_column(String(64), nullable=False)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    time_spent: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0, doc="Milliseconds, 0 while running"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    @property
    def is_running(self) -> bool:
        return self.end_time is None

    def __repr__(self) -> str:
        return f"<TimeLog id={self.id} assignee={self.assignee_id!r} running={self.is_running}>"
