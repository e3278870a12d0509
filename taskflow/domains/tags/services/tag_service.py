"""Tag service layer."""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import distinct, func, select

from taskflow.core.context import ServiceContext
from taskflow.core.errors import ConflictError, NotFoundOrForbidden
from taskflow.core.utils.decorators import default_on_storage_error
from taskflow.core.utils.query import blank, paginate, substring_match
from taskflow.core.utils.stats import ratio
from taskflow.core.utils.transactions import atomic
from taskflow.core.utils.validation import coerce_model, validate_color
from taskflow.domains.tags.models.tag_models import Tag, TaskTag
from taskflow.domains.tags.normalization import normalize_tag_name, validate_tag_name
from taskflow.domains.tags.schemas.tag_schemas import TagListFilter
from taskflow.domains.tasks.models.task_models import Task
from taskflow.domains.tasks.services.visibility import find_visible_task, visible_tasks

logger = logging.getLogger(__name__)

_KEYWORD = re.compile(r"[a-z0-9]+")


def _owned(ctx: ServiceContext, user_id: int):
    return ctx.session.query(Tag).filter(Tag.user_id == user_id)


def is_name_unique(
    ctx: ServiceContext, user_id: int, name: str, exclude_id: Optional[int] = None
) -> bool:
    query = _owned(ctx, user_id).filter(Tag.name == normalize_tag_name(name))
    if exclude_id is not None:
        query = query.filter(Tag.id != exclude_id)
    return query.first() is None


def get_tag(ctx: ServiceContext, user_id: int, tag_id: int) -> Optional[Tag]:
    return _owned(ctx, user_id).filter(Tag.id == tag_id).first()


def list_tags(ctx: ServiceContext, user_id: int, filters=None) -> List[Tag]:
    params = coerce_model(TagListFilter, filters)
    query = _owned(ctx, user_id)
    if not blank(params.search):
        query = query.filter(substring_match(params.search, Tag.name))
    if not blank(params.color):
        query = query.filter(func.lower(Tag.color) == params.color.lower())
    query = query.order_by(Tag.name.asc(), Tag.id.asc())
    return paginate(query, limit=params.limit, offset=params.offset).all()


def usage_counts(ctx: ServiceContext, tag_ids: Iterable[int]) -> dict[int, int]:
    ids = list(tag_ids)
    if not ids:
        return {}
    rows = (
        ctx.session.query(TaskTag.tag_id, func.count(TaskTag.task_id))
        .filter(TaskTag.tag_id.in_(ids))
        .group_by(TaskTag.tag_id)
        .all()
    )
    return {tag_id: count for tag_id, count in rows}


def create_tag(ctx: ServiceContext, user_id: int, *, name: str, color: str | None = None) -> Tag:
    normalized = validate_tag_name(name)
    color_value = validate_color(color)
    if not is_name_unique(ctx, user_id, normalized):
        raise ConflictError("a tag with this name already exists", kind="duplicate")
    tag = Tag(user_id=user_id, name=normalized, color=color_value)
    with atomic(ctx.session):
        ctx.session.add(tag)
    return tag


def update_tag(ctx: ServiceContext, user_id: int, tag_id: int, **fields) -> Optional[Tag]:
    tag = get_tag(ctx, user_id, tag_id)
    if not tag:
        return None
    staged: dict = {}
    name = fields.get("name")
    if name is not None:
        normalized = validate_tag_name(name)
        if not is_name_unique(ctx, user_id, normalized, exclude_id=tag.id):
            raise ConflictError("a tag with this name already exists", kind="duplicate")
        staged["name"] = normalized
    if fields.get("color") is not None:
        staged["color"] = validate_color(fields["color"])

    for key, value in staged.items():
        setattr(tag, key, value)
    with atomic(ctx.session):
        ctx.session.add(tag)
    return tag


def delete_tag(ctx: ServiceContext, user_id: int, tag_id: int) -> bool:
    """Remove the tag and every task link to it in one transaction."""
    tag = get_tag(ctx, user_id, tag_id)
    if not tag:
        return False
    with atomic(ctx.session):
        ctx.session.query(TaskTag).filter(TaskTag.tag_id == tag.id).delete(
            synchronize_session=False
        )
        ctx.session.delete(tag)
    logger.info("Deleted tag %s for user %s", tag_id, user_id)
    return True


def ensure_tags(ctx: ServiceContext, user_id: int, names: Iterable[str]) -> List[Tag]:
    """Fetch or stage tags for ``names``; the caller commits."""
    tags: List[Tag] = []
    seen: set[str] = set()
    for raw in names:
        normalized = validate_tag_name(raw)
        if normalized in seen:
            continue
        seen.add(normalized)
        tag = _owned(ctx, user_id).filter(Tag.name == normalized).first()
        if tag is None:
            tag = Tag(user_id=user_id, name=normalized, color=validate_color(None))
            ctx.session.add(tag)
            ctx.session.flush()
        tags.append(tag)
    return tags


def bulk_create_tags(
    ctx: ServiceContext, user_id: int, names: Iterable[str], color: str | None = None
) -> List[Tag]:
    """Create the tags that do not exist yet; existing names are skipped."""
    color_value = validate_color(color)
    normalized = []
    for raw in names:
        name = validate_tag_name(raw)
        if name not in normalized:
            normalized.append(name)
    existing = {
        name for (name,) in _owned(ctx, user_id).with_entities(Tag.name).filter(Tag.name.in_(normalized))
    }
    created = [
        Tag(user_id=user_id, name=name, color=color_value)
        for name in normalized
        if name not in existing
    ]
    with atomic(ctx.session):
        ctx.session.add_all(created)
    return created


def _link_exists(ctx: ServiceContext, task_id: int, tag_id: int) -> bool:
    return (
        ctx.session.query(TaskTag)
        .filter(TaskTag.task_id == task_id, TaskTag.tag_id == tag_id)
        .first()
        is not None
    )


def _require_task_and_tag(ctx: ServiceContext, user_id: int, task_id: int, tag_id: int) -> Tuple[Task, Tag]:
    task = find_visible_task(ctx.session, user_id, task_id)
    tag = get_tag(ctx, user_id, tag_id)
    if not task or not tag:
        raise NotFoundOrForbidden("task or tag not found")
    return task, tag


def attach_tag(ctx: ServiceContext, user_id: int, task_id: int, tag_id: int) -> bool:
    """Link a tag to a task. Returns False when the link already existed."""
    _require_task_and_tag(ctx, user_id, task_id, tag_id)
    if _link_exists(ctx, task_id, tag_id):
        return False
    with atomic(ctx.session):
        ctx.session.add(TaskTag(task_id=task_id, tag_id=tag_id))
    return True


def detach_tag(ctx: ServiceContext, user_id: int, task_id: int, tag_id: int) -> bool:
    _require_task_and_tag(ctx, user_id, task_id, tag_id)
    with atomic(ctx.session):
        removed = (
            ctx.session.query(TaskTag)
            .filter(TaskTag.task_id == task_id, TaskTag.tag_id == tag_id)
            .delete(synchronize_session=False)
        )
    return bool(removed)


def tags_for_tasks(ctx: ServiceContext, task_ids: Iterable[int]) -> dict[int, List[Tag]]:
    ids = list(task_ids)
    result: dict[int, List[Tag]] = {task_id: [] for task_id in ids}
    if not ids:
        return result
    rows = (
        ctx.session.query(TaskTag.task_id, Tag)
        .join(Tag, Tag.id == TaskTag.tag_id)
        .filter(TaskTag.task_id.in_(ids))
        .order_by(Tag.name.asc())
        .all()
    )
    for task_id, tag in rows:
        result[task_id].append(tag)
    return result


def tasks_by_tag(ctx: ServiceContext, user_id: int, tag_id: int) -> Optional[List[Task]]:
    tag = get_tag(ctx, user_id, tag_id)
    if not tag:
        return None
    return (
        visible_tasks(ctx.session, user_id)
        .join(TaskTag, TaskTag.task_id == Task.id)
        .filter(TaskTag.tag_id == tag.id)
        .order_by(Task.created_at.desc(), Task.id.desc())
        .all()
    )


def most_used_tags(ctx: ServiceContext, user_id: int, limit: int = 10) -> List[Tuple[Tag, int]]:
    usage = func.count(TaskTag.task_id).label("usage")
    rows = (
        ctx.session.query(Tag, usage)
        .join(TaskTag, TaskTag.tag_id == Tag.id)
        .filter(Tag.user_id == user_id)
        .group_by(Tag.id)
        .order_by(usage.desc(), Tag.name.asc())
        .limit(limit)
        .all()
    )
    return [(tag, count) for tag, count in rows]


def unused_tags(ctx: ServiceContext, user_id: int) -> List[Tag]:
    linked = select(TaskTag.tag_id)
    return (
        _owned(ctx, user_id)
        .filter(~Tag.id.in_(linked))
        .order_by(Tag.name.asc())
        .all()
    )


def suggest_tags(ctx: ServiceContext, user_id: int, text: str, limit: int = 5) -> List[Tag]:
    """Existing tags whose names share a keyword (3+ chars) with ``text``."""
    keywords = {word for word in _KEYWORD.findall((text or "").lower()) if len(word) > 2}
    if not keywords:
        return []
    candidates = _owned(ctx, user_id).all()
    matches = [tag for tag in candidates if any(word in tag.name for word in keywords)]
    counts = usage_counts(ctx, [tag.id for tag in matches])
    matches.sort(key=lambda tag: (-counts.get(tag.id, 0), tag.name))
    return matches[:limit]


def _empty_tag_stats() -> dict:
    return {
        "total_tags": 0,
        "used_tags": 0,
        "tagged_tasks": 0,
        "avg_usage_per_tag": 0.0,
        "unique_colors": 0,
    }


@default_on_storage_error(_empty_tag_stats)
def get_tag_stats(ctx: ServiceContext, user_id: int) -> dict:
    total, colors = (
        ctx.session.query(func.count(Tag.id), func.count(distinct(func.lower(Tag.color))))
        .filter(Tag.user_id == user_id)
        .one()
    )
    links, used, tagged = (
        ctx.session.query(
            func.count(TaskTag.tag_id),
            func.count(distinct(TaskTag.tag_id)),
            func.count(distinct(TaskTag.task_id)),
        )
        .join(Tag, Tag.id == TaskTag.tag_id)
        .filter(Tag.user_id == user_id)
        .one()
    )
    return {
        "total_tags": int(total or 0),
        "used_tags": int(used or 0),
        "tagged_tasks": int(tagged or 0),
        "avg_usage_per_tag": ratio(links or 0, total or 0),
        "unique_colors": int(colors or 0),
    }
