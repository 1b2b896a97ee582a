"""
Project ORM models.

Project, ProjectIssueCounter.
"""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, Enum, ForeignKey, Index, Integer, String, Text, false, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, JSONList, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from app.models.backlog import Backlog


class ProjectStatus(str, enum.Enum):
    active = "active"
    completed = "completed"
    archived = "archived"


class Project(Base, UUIDMixin, TimestampMixin):
    """A project groups issues, sprints, releases and backlog items."""

    __tablename__ = "projects"
    __table_args__ = (
        # Name is unique among live projects only
        Index(
            "uq_projects_name_live",
            "name",
            unique=True,
            postgresql_where=text("NOT is_deleted"),
            sqlite_where=text("NOT is_deleted"),
        ),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    owner_id: Mapped[str] = mapped_column(
        String(64), nullable=False, index=True, doc="Attendance service employee id"
    )
    members: Mapped[list[str]] = mapped_column(JSONList, nullable=False, default=list)
    status: Mapped[ProjectStatus] = mapped_column(
        Enum(ProjectStatus, name="project_status"),
        nullable=False,
        default=ProjectStatus.active,
    )
    is_deleted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )

    # Relationships
    backlog: Mapped[list[Backlog]] = relationship(
        "Backlog",
        order_by="Backlog.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Project id={self.id} name={self.name!r}>"


class ProjectIssueCounter(Base):
    """
    Per-project issue number sequence.

    Created together with its project and bumped with a single
    ``UPDATE ... RETURNING`` so concurrent issue creation never reuses a number.
    """

    __tablename__ = "project_issue_counters"

    project_id: Mapped[UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"),
        primary_key=True,
    )
    last_number: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<ProjectIssueCounter project_id={self.project_id} last_number={self.last_number}>"
