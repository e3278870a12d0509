"""Journal entry model."""

from __future__ import annotations

from datetime import date

from sqlalchemy.orm import Mapped, mapped_column

from taskflow.core.users.models import TimestampMixin
from taskflow.extensions import db

ENTRY_TYPES = (
    "general",
    "reflection",
    "achievement",
    "idea",
    "mood",
    "goal_progress",
    "learning",
    "decision",
    "gratitude",
)
TIMES_OF_DAY = ("morning", "afternoon", "evening", "night")
WORDS_PER_MINUTE = 200


class JournalEntry(db.Model, TimestampMixin):
    __tablename__ = "journal_entry"
    __table_args__ = (
        db.Index("ix_journal_entry_user_date", "user_id", "entry_date"),
        db.Index("ix_journal_entry_user_type", "user_id", "entry_type"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        db.ForeignKey("user.id", ondelete="CASCADE"), index=True, nullable=False
    )
    title: Mapped[str | None] = mapped_column(db.String(255))
    content: Mapped[str] = mapped_column(db.Text, nullable=False)
    entry_type: Mapped[str] = mapped_column(db.String(32), default="general", nullable=False)
    entry_date: Mapped[date] = mapped_column(db.Date, default=date.today, nullable=False)
    time_of_day: Mapped[str | None] = mapped_column(db.String(16))
    # Free-form labels, independent of the Tag table.
    tags: Mapped[list] = mapped_column(db.JSON, nullable=False, default=list)
    mood_rating: Mapped[int | None] = mapped_column(db.Integer)
    energy_level: Mapped[int | None] = mapped_column(db.Integer)
    # Soft references: never validated, never cascaded.
    related_task_ids: Mapped[list] = mapped_column(db.JSON, nullable=False, default=list)
    related_project_ids: Mapped[list] = mapped_column(db.JSON, nullable=False, default=list)
    attachments: Mapped[list] = mapped_column(db.JSON, nullable=False, default=list)
    meta: Mapped[dict] = mapped_column("metadata", db.JSON, nullable=False, default=dict)
    word_count: Mapped[int] = mapped_column(default=0, nullable=False)
    reading_time_minutes: Mapped[int] = mapped_column(default=0, nullable=False)


__all__ = ["JournalEntry", "ENTRY_TYPES", "TIMES_OF_DAY", "WORDS_PER_MINUTE"]
