"""Project domain models."""

from __future__ import annotations

from sqlalchemy.orm import Mapped, mapped_column

from taskflow.core.users.models import TimestampMixin
from taskflow.extensions import db


class Project(db.Model, TimestampMixin):
    __tablename__ = "project"
    __table_args__ = (
        db.Index("ix_project_user_name", "user_id", "name"),
        db.Index("ix_project_user_archived_order", "user_id", "is_archived", "order_index"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        db.ForeignKey("user.id", ondelete="CASCADE"), index=True, nullable=False
    )
    name: Mapped[str] = mapped_column(db.String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(db.Text)
    color: Mapped[str] = mapped_column(db.String(16), default="#6b7280", nullable=False)
    order_index: Mapped[int] = mapped_column(default=0, nullable=False)
    is_archived: Mapped[bool] = mapped_column(default=False, nullable=False)
    meta: Mapped[dict] = mapped_column("metadata", db.JSON, nullable=False, default=dict)


__all__ = ["Project"]
