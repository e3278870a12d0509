"""Task service layer: filtered listing, CRUD and status transitions."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from sqlalchemy import and_, case, func

from taskflow.core.context import ServiceContext
from taskflow.core.errors import NotFoundOrForbidden, ValidationError
from taskflow.core.utils.decorators import default_on_storage_error
from taskflow.core.utils.query import blank, paginate, substring_match
from taskflow.core.utils.stats import completion_rate
from taskflow.core.utils.transactions import atomic
from taskflow.core.utils.validation import (
    clean_text,
    coerce_model,
    require_text,
    validate_choice,
    validate_mapping,
)
from taskflow.domains.projects.models.project_models import Project
from taskflow.domains.tags.models.tag_models import Tag, TaskTag
from taskflow.domains.tags.normalization import normalize_tag_name
from taskflow.domains.tags.services.tag_service import ensure_tags
from taskflow.domains.tasks.models.task_models import (
    PRIORITY_RANK,
    TASK_PRIORITIES,
    TASK_STATUSES,
    Task,
)
from taskflow.domains.tasks.schemas.task_schemas import TaskListFilter
from taskflow.domains.tasks.services.visibility import find_visible_task, visible_tasks

logger = logging.getLogger(__name__)


def _apply_filters(query, user_id: int, params: TaskListFilter):
    if params.project_id is not None:
        query = query.filter(Task.project_id == params.project_id)
    if not blank(params.status):
        query = query.filter(Task.status == params.status)
    if not blank(params.priority):
        query = query.filter(Task.priority == params.priority)
    if not blank(params.search):
        query = query.filter(substring_match(params.search, Task.title, Task.description))
    if params.due_before is not None:
        query = query.filter(Task.due_date <= params.due_before)
    if params.due_after is not None:
        query = query.filter(Task.due_date >= params.due_after)
    if not blank(params.tag):
        # (user_id, name) is unique, so the join cannot duplicate rows
        query = (
            query.join(TaskTag, TaskTag.task_id == Task.id)
            .join(Tag, Tag.id == TaskTag.tag_id)
            .filter(Tag.name == normalize_tag_name(params.tag), Tag.user_id == user_id)
        )
    if params.parent_task_id is not None:
        query = query.filter(Task.parent_task_id == params.parent_task_id)
    if params.inbox:
        query = query.filter(Task.project_id.is_(None))
    return query


def _ordered(query):
    priority_rank = case(PRIORITY_RANK, value=Task.priority, else_=len(PRIORITY_RANK) + 1)
    due_missing = case((Task.due_date.is_(None), 1), else_=0)
    return query.order_by(priority_rank.asc(), due_missing.asc(), Task.due_date.asc(), Task.id.asc())


def list_tasks(ctx: ServiceContext, user_id: int, filters=None) -> List[Task]:
    """Visible tasks matching every provided filter, most urgent first."""
    params = coerce_model(TaskListFilter, filters)
    query = _apply_filters(visible_tasks(ctx.session, user_id), user_id, params)
    return paginate(_ordered(query), limit=params.limit, offset=params.offset).all()


def list_subtasks(ctx: ServiceContext, user_id: int, task_id: int) -> Optional[List[Task]]:
    if not get_task(ctx, user_id, task_id):
        return None
    return list_tasks(ctx, user_id, {"parent_task_id": task_id})


def get_task(ctx: ServiceContext, user_id: int, task_id: int) -> Optional[Task]:
    return find_visible_task(ctx.session, user_id, task_id)


def _check_project(ctx: ServiceContext, user_id: int, project_id: Optional[int]) -> None:
    if project_id is None:
        return
    owned = (
        ctx.session.query(Project.id)
        .filter(Project.id == project_id, Project.user_id == user_id)
        .first()
    )
    if not owned:
        raise NotFoundOrForbidden("project not found")


def _check_parent(
    ctx: ServiceContext, user_id: int, parent_task_id: Optional[int], task_id: Optional[int] = None
) -> None:
    if parent_task_id is None:
        return
    if task_id is not None and parent_task_id == task_id:
        raise ValidationError("a task cannot be its own parent")
    parent = find_visible_task(ctx.session, user_id, parent_task_id)
    if not parent:
        raise NotFoundOrForbidden("parent task not found")
    if parent.parent_task_id is not None:
        raise ValidationError("subtasks cannot have subtasks")
    if task_id is not None:
        has_children = (
            ctx.session.query(Task.id).filter(Task.parent_task_id == task_id).first()
        )
        if has_children:
            raise ValidationError("a task with subtasks cannot become a subtask")


def create_task(
    ctx: ServiceContext,
    user_id: int,
    *,
    title: str,
    description: str | None = None,
    status: str = "todo",
    priority: str = "medium",
    project_id: int | None = None,
    parent_task_id: int | None = None,
    due_date=None,
    metadata: dict | None = None,
    tags: Iterable[str] | None = None,
) -> Task:
    title_text = require_text(title, "title")
    validate_choice(status, "status", TASK_STATUSES)
    validate_choice(priority, "priority", TASK_PRIORITIES)
    meta = validate_mapping(metadata, "metadata")
    _check_project(ctx, user_id, project_id)
    _check_parent(ctx, user_id, parent_task_id)

    task = Task(
        user_id=user_id,
        title=title_text,
        description=clean_text(description),
        status=status,
        priority=priority,
        project_id=project_id,
        parent_task_id=parent_task_id,
        due_date=due_date,
        completed_at=ctx.now() if status == "completed" else None,
        meta=meta,
    )
    with atomic(ctx.session):
        ctx.session.add(task)
        ctx.session.flush()
        for tag in ensure_tags(ctx, user_id, tags or []):
            ctx.session.add(TaskTag(task_id=task.id, tag_id=tag.id))
    return task


def _completion_changes(ctx: ServiceContext, task: Task, status: str) -> dict:
    if status == "completed":
        completed_at = task.completed_at if task.status == "completed" else ctx.now()
    else:
        completed_at = None
    return {"status": status, "completed_at": completed_at}


def update_task(ctx: ServiceContext, user_id: int, task_id: int, **fields) -> Optional[Task]:
    """Apply the given fields; a key present with None clears nullable columns."""
    task = get_task(ctx, user_id, task_id)
    if not task:
        return None
    staged: dict = {}
    if "title" in fields:
        staged["title"] = require_text(fields["title"], "title")
    if "description" in fields:
        staged["description"] = clean_text(fields["description"])
    if fields.get("status") is not None:
        status = validate_choice(fields["status"], "status", TASK_STATUSES)
        staged.update(_completion_changes(ctx, task, status))
    if fields.get("priority") is not None:
        staged["priority"] = validate_choice(fields["priority"], "priority", TASK_PRIORITIES)
    if "project_id" in fields:
        _check_project(ctx, user_id, fields["project_id"])
        staged["project_id"] = fields["project_id"]
    if "parent_task_id" in fields:
        _check_parent(ctx, user_id, fields["parent_task_id"], task_id=task.id)
        staged["parent_task_id"] = fields["parent_task_id"]
    if "due_date" in fields:
        staged["due_date"] = fields["due_date"]
    if "metadata" in fields:
        staged["meta"] = validate_mapping(fields["metadata"], "metadata")

    for key, value in staged.items():
        setattr(task, key, value)
    with atomic(ctx.session):
        ctx.session.add(task)
    return task


def complete_task(ctx: ServiceContext, user_id: int, task_id: int) -> Optional[Task]:
    return update_task(ctx, user_id, task_id, status="completed")


def delete_task(ctx: ServiceContext, user_id: int, task_id: int) -> bool:
    """Delete a task with its subtasks and their tag links."""
    task = get_task(ctx, user_id, task_id)
    if not task:
        return False
    ids = [task.id] + [
        child_id
        for (child_id,) in ctx.session.query(Task.id).filter(Task.parent_task_id == task.id)
    ]
    with atomic(ctx.session):
        ctx.session.query(TaskTag).filter(TaskTag.task_id.in_(ids)).delete(
            synchronize_session=False
        )
        ctx.session.query(Task).filter(Task.parent_task_id == task.id).delete(
            synchronize_session=False
        )
        ctx.session.delete(task)
    return True


def _empty_task_stats() -> dict:
    return {
        "total_tasks": 0,
        "todo_tasks": 0,
        "in_progress_tasks": 0,
        "completed_tasks": 0,
        "cancelled_tasks": 0,
        "overdue_tasks": 0,
        "completion_rate": 0.0,
    }


def _count_when(condition):
    return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)


@default_on_storage_error(_empty_task_stats)
def get_task_stats(ctx: ServiceContext, user_id: int) -> dict:
    now = ctx.now()
    row = visible_tasks(
        ctx.session,
        user_id,
        func.count(Task.id),
        _count_when(Task.status == "todo"),
        _count_when(Task.status == "in_progress"),
        _count_when(Task.status == "completed"),
        _count_when(Task.status == "cancelled"),
        _count_when(and_(Task.due_date < now, Task.status != "completed")),
    ).one()
    total, todo, in_progress, completed, cancelled, overdue = (int(v or 0) for v in row)
    return {
        "total_tasks": total,
        "todo_tasks": todo,
        "in_progress_tasks": in_progress,
        "completed_tasks": completed,
        "cancelled_tasks": cancelled,
        "overdue_tasks": overdue,
        "completion_rate": completion_rate(completed, total),
    }
