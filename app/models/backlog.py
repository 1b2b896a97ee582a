"""
Backlog ORM model.
"""

from __future__ import annotations

import enum
from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.clock import utcnow
from app.models.base import Base, UUIDMixin


class BacklogType(str, enum.Enum):
    feature = "feature"
    bug = "bug"
    improvement = "improvement"


class BacklogPriority(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"


class Backlog(Base, UUIDMixin):
    """A backlog entry attached to a project, kept in display order."""

    __tablename__ = "backlogs"

    project_id: Mapped[UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    type: Mapped[BacklogType] = mapped_column(
        Enum(BacklogType, name="backlog_type"),
        nullable=False,
        default=BacklogType.feature,
    )
    priority: Mapped[BacklogPriority] = mapped_column(
        Enum(BacklogPriority, name="backlog_priority"),
        nullable=False,
        default=BacklogPriority.medium,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<Backlog id={self.id} title={self.title!r}>"
