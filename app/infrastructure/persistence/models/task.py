"""Task-side ORM models: task, assignment, comment, activity log, time entry."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.domain.enums import TaskStatus
from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import (
    CreatedAtMixin,
    CuidMixin,
    MultiTenantModel,
    TimestampMixin,
)


class Task(CuidMixin, TimestampMixin, Base):
    """Project task. Always has a project; scoped via project. Table: task."""

    __tablename__ = "task"

    project_id: Mapped[str] = mapped_column(
        String, ForeignKey("project.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=TaskStatus.TODO.value
    )
    deadline: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    project = relationship("Project")


class TaskAssignment(CuidMixin, CreatedAtMixin, Base):
    """Membership assigned to a task. Scoped via task.project. Table: task_assignment."""

    __tablename__ = "task_assignment"

    task_id: Mapped[str] = mapped_column(
        String, ForeignKey("task.id", ondelete="CASCADE"), nullable=False, index=True
    )
    membership_id: Mapped[str] = mapped_column(
        String, ForeignKey("membership.id", ondelete="CASCADE"), nullable=False
    )

    task = relationship("Task")


class Comment(CuidMixin, TimestampMixin, Base):
    """Comment on a task. No project column; scoped via task.project. Table: comment."""

    __tablename__ = "comment"

    task_id: Mapped[str] = mapped_column(
        String, ForeignKey("task.id", ondelete="CASCADE"), nullable=False, index=True
    )
    author_id: Mapped[str] = mapped_column(
        String, ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)

    task = relationship("Task")


class ActivityLog(CuidMixin, CreatedAtMixin, Base):
    """Append-only project activity entry. Scoped via project. Table: activity_log."""

    __tablename__ = "activity_log"

    project_id: Mapped[str] = mapped_column(
        String, ForeignKey("project.id", ondelete="CASCADE"), nullable=False
    )
    actor_id: Mapped[str] = mapped_column(
        String, ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False
    )
    action: Mapped[str] = mapped_column(String, nullable=False)
    entity: Mapped[str] = mapped_column(String, nullable=False)
    entity_id: Mapped[str] = mapped_column(String, nullable=False)
    metadata_: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSON, nullable=False, default=dict
    )

    project = relationship("Project")

    __table_args__ = (Index("ix_activity_log_project_created", "project_id", "created_at"),)


class TimeEntry(MultiTenantModel, Base):
    """Logged minutes. Carries tenant_id directly; project is optional. Table: time_entry."""

    __tablename__ = "time_entry"

    project_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("project.id", ondelete="CASCADE"), nullable=True, index=True
    )
    task_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("task.id", ondelete="SET NULL"), nullable=True
    )
    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False, index=True
    )
    minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
