"""Task domain models."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column

from taskflow.core.users.models import TimestampMixin
from taskflow.extensions import db

TASK_STATUSES = ("todo", "in_progress", "completed", "cancelled")
TASK_PRIORITIES = ("low", "medium", "high", "urgent")
# Lower rank sorts first.
PRIORITY_RANK = {"urgent": 1, "high": 2, "medium": 3, "low": 4}


class Task(db.Model, TimestampMixin):
    __tablename__ = "task"
    __table_args__ = (
        db.Index("ix_task_user_status", "user_id", "status"),
        db.Index("ix_task_user_due_date", "user_id", "due_date"),
        db.Index("ix_task_project_status", "project_id", "status"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        db.ForeignKey("user.id", ondelete="CASCADE"), index=True, nullable=False
    )
    project_id: Mapped[int | None] = mapped_column(
        db.ForeignKey("project.id", ondelete="SET NULL"), index=True
    )
    parent_task_id: Mapped[int | None] = mapped_column(
        db.ForeignKey("task.id", ondelete="CASCADE"), index=True
    )
    title: Mapped[str] = mapped_column(db.String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(db.Text)
    status: Mapped[str] = mapped_column(db.String(32), default="todo", nullable=False)
    priority: Mapped[str] = mapped_column(db.String(16), default="medium", nullable=False)
    due_date: Mapped[datetime | None] = mapped_column()
    completed_at: Mapped[datetime | None] = mapped_column()
    # "metadata" is reserved on declarative classes
    meta: Mapped[dict] = mapped_column("metadata", db.JSON, nullable=False, default=dict)


__all__ = ["Task", "TASK_STATUSES", "TASK_PRIORITIES", "PRIORITY_RANK"]
