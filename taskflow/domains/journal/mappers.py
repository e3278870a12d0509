"""DTO mappers for journal entries."""

from __future__ import annotations

from taskflow.domains.journal.models.journal_entry import JournalEntry


def map_entry(entry: JournalEntry) -> dict:
    return {
        "id": entry.id,
        "title": entry.title,
        "content": entry.content,
        "entry_type": entry.entry_type,
        "entry_date": entry.entry_date.isoformat() if entry.entry_date else None,
        "time_of_day": entry.time_of_day,
        "tags": list(entry.tags or []),
        "mood_rating": entry.mood_rating,
        "energy_level": entry.energy_level,
        "related_task_ids": list(entry.related_task_ids or []),
        "related_project_ids": list(entry.related_project_ids or []),
        "attachments": list(entry.attachments or []),
        "metadata": dict(entry.meta or {}),
        "word_count": entry.word_count,
        "reading_time_minutes": entry.reading_time_minutes,
        "created_at": entry.created_at.isoformat() if entry.created_at else None,
        "updated_at": entry.updated_at.isoformat() if entry.updated_at else None,
    }
