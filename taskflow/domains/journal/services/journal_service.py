"""Journal services: CRUD, filtered listing and reading statistics."""

from __future__ import annotations

import logging
import math
from collections import Counter
from datetime import date, timedelta
from typing import Any, Iterable, List, Optional, Tuple

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import func

from taskflow.core.context import ServiceContext
from taskflow.core.errors import ValidationError
from taskflow.core.utils.decorators import default_on_storage_error
from taskflow.core.utils.query import blank, json_array_contains, paginate, substring_match
from taskflow.core.utils.stats import rounded
from taskflow.core.utils.transactions import atomic
from taskflow.core.utils.validation import (
    clean_text,
    coerce_model,
    require_text,
    validate_choice,
    validate_mapping,
    validate_rating,
)
from taskflow.domains.journal.models.journal_entry import (
    ENTRY_TYPES,
    TIMES_OF_DAY,
    WORDS_PER_MINUTE,
    JournalEntry,
)
from taskflow.domains.journal.schemas.journal_schemas import Attachment, JournalListFilter
from taskflow.domains.projects.models.project_models import Project
from taskflow.domains.tasks.models.task_models import Task
from taskflow.domains.tasks.services.visibility import visible_tasks

logger = logging.getLogger(__name__)

_ATTACHMENTS = TypeAdapter(List[Attachment])
SEARCH_LIMIT = 10


def reading_stats(content: str) -> Tuple[int, int]:
    """Whitespace-token word count and minutes at 200 words per minute."""
    words = len(content.split())
    return words, math.ceil(words / WORDS_PER_MINUTE)


def _string_list(values: Iterable[Any] | None, field: str) -> List[str]:
    if values is None:
        return []
    if isinstance(values, str) or not isinstance(values, (list, tuple)):
        raise ValidationError(f"{field} must be a list")
    return [str(value).strip() for value in values if str(value).strip()]


def _id_list(values: Iterable[Any] | None, field: str) -> List[int]:
    if values is None:
        return []
    if isinstance(values, str) or not isinstance(values, (list, tuple)):
        raise ValidationError(f"{field} must be a list of ids")
    try:
        return [int(value) for value in values]
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{field} must contain integer ids") from exc


def _attachments(values: Any) -> List[dict]:
    if values is None:
        return []
    try:
        items = _ATTACHMENTS.validate_python(values)
    except PydanticValidationError as exc:
        raise ValidationError("attachments are malformed") from exc
    return [item.model_dump() for item in items]


def _optional_choice(value: Any, field: str, choices) -> Optional[str]:
    if blank(value):
        return None
    return validate_choice(value, field, choices)


def create_entry(
    ctx: ServiceContext,
    user_id: int,
    *,
    content: str,
    title: str | None = None,
    entry_type: str = "general",
    entry_date: date | None = None,
    time_of_day: str | None = None,
    tags: Iterable[str] | None = None,
    mood_rating: int | None = None,
    energy_level: int | None = None,
    related_task_ids: Iterable[int] | None = None,
    related_project_ids: Iterable[int] | None = None,
    attachments: Any = None,
    metadata: dict | None = None,
) -> JournalEntry:
    body = require_text(content, "content")
    words, minutes = reading_stats(body)
    entry = JournalEntry(
        user_id=user_id,
        title=clean_text(title),
        content=body,
        entry_type=validate_choice(entry_type or "general", "entry_type", ENTRY_TYPES),
        entry_date=entry_date or ctx.today(),
        time_of_day=_optional_choice(time_of_day, "time_of_day", TIMES_OF_DAY),
        tags=_string_list(tags, "tags"),
        mood_rating=validate_rating(mood_rating, "mood_rating"),
        energy_level=validate_rating(energy_level, "energy_level"),
        related_task_ids=_id_list(related_task_ids, "related_task_ids"),
        related_project_ids=_id_list(related_project_ids, "related_project_ids"),
        attachments=_attachments(attachments),
        meta=validate_mapping(metadata, "metadata"),
        word_count=words,
        reading_time_minutes=minutes,
    )
    with atomic(ctx.session):
        ctx.session.add(entry)
    return entry


def quick_entry(
    ctx: ServiceContext,
    user_id: int,
    *,
    content: str,
    entry_type: str = "general",
    mood_rating: int | None = None,
    energy_level: int | None = None,
) -> JournalEntry:
    """Today's entry with only content and optional ratings."""
    return create_entry(
        ctx,
        user_id,
        content=content,
        entry_type=entry_type,
        mood_rating=mood_rating,
        energy_level=energy_level,
    )


def update_entry(ctx: ServiceContext, user_id: int, entry_id: int, **fields) -> Optional[JournalEntry]:
    entry = get_entry(ctx, user_id, entry_id)
    if not entry:
        return None
    staged: dict[str, Any] = {}
    if "content" in fields:
        body = require_text(fields["content"], "content")
        staged["content"] = body
        staged["word_count"], staged["reading_time_minutes"] = reading_stats(body)
    if "title" in fields:
        staged["title"] = clean_text(fields["title"])
    if fields.get("entry_type") is not None:
        staged["entry_type"] = validate_choice(fields["entry_type"], "entry_type", ENTRY_TYPES)
    if fields.get("entry_date") is not None:
        staged["entry_date"] = fields["entry_date"]
    if "time_of_day" in fields:
        staged["time_of_day"] = _optional_choice(fields["time_of_day"], "time_of_day", TIMES_OF_DAY)
    if "tags" in fields:
        staged["tags"] = _string_list(fields["tags"], "tags")
    if "mood_rating" in fields:
        staged["mood_rating"] = validate_rating(fields["mood_rating"], "mood_rating")
    if "energy_level" in fields:
        staged["energy_level"] = validate_rating(fields["energy_level"], "energy_level")
    if "related_task_ids" in fields:
        staged["related_task_ids"] = _id_list(fields["related_task_ids"], "related_task_ids")
    if "related_project_ids" in fields:
        staged["related_project_ids"] = _id_list(fields["related_project_ids"], "related_project_ids")
    if "attachments" in fields:
        staged["attachments"] = _attachments(fields["attachments"])
    if "metadata" in fields:
        staged["meta"] = validate_mapping(fields["metadata"], "metadata")

    for key, value in staged.items():
        setattr(entry, key, value)
    with atomic(ctx.session):
        ctx.session.add(entry)
    return entry


def delete_entry(ctx: ServiceContext, user_id: int, entry_id: int) -> bool:
    entry = get_entry(ctx, user_id, entry_id)
    if not entry:
        return False
    with atomic(ctx.session):
        ctx.session.delete(entry)
    return True


def get_entry(ctx: ServiceContext, user_id: int, entry_id: int) -> Optional[JournalEntry]:
    return (
        ctx.session.query(JournalEntry)
        .filter(JournalEntry.id == entry_id, JournalEntry.user_id == user_id)
        .first()
    )


def _apply_filters(ctx: ServiceContext, query, params: JournalListFilter):
    if not blank(params.entry_type):
        query = query.filter(JournalEntry.entry_type == params.entry_type)
    if params.date_from is not None:
        query = query.filter(JournalEntry.entry_date >= params.date_from)
    if params.date_to is not None:
        query = query.filter(JournalEntry.entry_date <= params.date_to)
    if not blank(params.time_of_day):
        query = query.filter(JournalEntry.time_of_day == params.time_of_day)
    for tag in params.tags or []:
        query = query.filter(json_array_contains(ctx.session, JournalEntry.tags, tag))
    if params.mood_min is not None:
        query = query.filter(JournalEntry.mood_rating >= params.mood_min)
    if params.mood_max is not None:
        query = query.filter(JournalEntry.mood_rating <= params.mood_max)
    if params.energy_min is not None:
        query = query.filter(JournalEntry.energy_level >= params.energy_min)
    if params.energy_max is not None:
        query = query.filter(JournalEntry.energy_level <= params.energy_max)
    if not blank(params.search):
        query = query.filter(substring_match(params.search, JournalEntry.title, JournalEntry.content))
    if params.related_to_task is not None:
        query = query.filter(
            json_array_contains(ctx.session, JournalEntry.related_task_ids, params.related_to_task)
        )
    if params.related_to_project is not None:
        query = query.filter(
            json_array_contains(ctx.session, JournalEntry.related_project_ids, params.related_to_project)
        )
    return query


def list_entries(ctx: ServiceContext, user_id: int, filters=None) -> List[JournalEntry]:
    """Entries matching every filter, newest entry_date first."""
    params = coerce_model(JournalListFilter, filters)
    query = ctx.session.query(JournalEntry).filter(JournalEntry.user_id == user_id)
    query = _apply_filters(ctx, query, params).order_by(
        JournalEntry.entry_date.desc(),
        JournalEntry.created_at.desc(),
        JournalEntry.id.desc(),
    )
    return paginate(query, limit=params.limit, offset=params.offset).all()


def search_entries(ctx: ServiceContext, user_id: int, text: str, limit: int = SEARCH_LIMIT) -> List[JournalEntry]:
    if blank(text):
        return []
    return list_entries(ctx, user_id, {"search": text, "limit": limit})


def resolve_related(ctx: ServiceContext, user_id: int, entry: JournalEntry) -> dict:
    """Look up the soft references that still point at visible rows.

    Dangling ids are skipped; nothing here repairs or cascades them.
    """
    task_ids = list(entry.related_task_ids or [])
    project_ids = list(entry.related_project_ids or [])
    tasks = (
        visible_tasks(ctx.session, user_id).filter(Task.id.in_(task_ids)).all() if task_ids else []
    )
    projects = (
        ctx.session.query(Project)
        .filter(Project.user_id == user_id, Project.id.in_(project_ids))
        .all()
        if project_ids
        else []
    )
    return {"tasks": tasks, "projects": projects}


def _current_streak(entry_dates: List[date], today: date) -> int:
    days = set(entry_dates)
    cursor = today if today in days else today - timedelta(days=1)
    streak = 0
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def _empty_journal_stats() -> dict:
    return {
        "total_entries": 0,
        "total_words": 0,
        "total_reading_time": 0,
        "entries_this_month": 0,
        "average_mood": 0.0,
        "average_energy": 0.0,
        "entry_types": {},
        "current_streak": 0,
        "most_used_tags": [],
    }


@default_on_storage_error(_empty_journal_stats)
def get_journal_stats(ctx: ServiceContext, user_id: int) -> dict:
    today = ctx.today()
    month_start = today.replace(day=1)
    next_month = (month_start + timedelta(days=32)).replace(day=1)

    total, words, minutes, mood, energy = (
        ctx.session.query(
            func.count(JournalEntry.id),
            func.coalesce(func.sum(JournalEntry.word_count), 0),
            func.coalesce(func.sum(JournalEntry.reading_time_minutes), 0),
            func.avg(JournalEntry.mood_rating),
            func.avg(JournalEntry.energy_level),
        )
        .filter(JournalEntry.user_id == user_id)
        .one()
    )
    this_month = (
        ctx.session.query(func.count(JournalEntry.id))
        .filter(
            JournalEntry.user_id == user_id,
            JournalEntry.entry_date >= month_start,
            JournalEntry.entry_date < next_month,
        )
        .scalar()
    )
    entry_types = dict(
        ctx.session.query(JournalEntry.entry_type, func.count(JournalEntry.id))
        .filter(JournalEntry.user_id == user_id)
        .group_by(JournalEntry.entry_type)
        .all()
    )
    dates = [
        entry_date
        for (entry_date,) in ctx.session.query(JournalEntry.entry_date)
        .filter(JournalEntry.user_id == user_id)
        .distinct()
    ]
    tag_counts: Counter[str] = Counter()
    for (tags,) in ctx.session.query(JournalEntry.tags).filter(JournalEntry.user_id == user_id):
        tag_counts.update(tags or [])

    return {
        "total_entries": int(total or 0),
        "total_words": int(words or 0),
        "total_reading_time": int(minutes or 0),
        "entries_this_month": int(this_month or 0),
        "average_mood": rounded(mood),
        "average_energy": rounded(energy),
        "entry_types": {kind: int(count) for kind, count in entry_types.items()},
        "current_streak": _current_streak(dates, today),
        "most_used_tags": [
            {"tag": tag, "count": count} for tag, count in tag_counts.most_common(5)
        ],
    }
