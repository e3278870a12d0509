"""Tag and task-tag junction models."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column

from taskflow.core.users.models import TimestampMixin
from taskflow.extensions import db


class Tag(db.Model, TimestampMixin):
    __tablename__ = "tag"
    __table_args__ = (db.UniqueConstraint("user_id", "name", name="uq_tag_user_name"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        db.ForeignKey("user.id", ondelete="CASCADE"), index=True, nullable=False
    )
    name: Mapped[str] = mapped_column(db.String(50), nullable=False)
    color: Mapped[str] = mapped_column(db.String(16), default="#6b7280", nullable=False)


class TaskTag(db.Model):
    __tablename__ = "task_tag"

    task_id: Mapped[int] = mapped_column(
        db.ForeignKey("task.id", ondelete="CASCADE"), primary_key=True
    )
    tag_id: Mapped[int] = mapped_column(
        db.ForeignKey("tag.id", ondelete="CASCADE"), primary_key=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)


__all__ = ["Tag", "TaskTag"]
