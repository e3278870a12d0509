"""Project service layer."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from sqlalchemy import case, func

from taskflow.core.context import ServiceContext
from taskflow.core.errors import ConflictError, NotFoundOrForbidden, ValidationError
from taskflow.core.utils.decorators import default_on_storage_error
from taskflow.core.utils.query import blank, paginate, substring_match
from taskflow.core.utils.stats import completion_rate
from taskflow.core.utils.transactions import atomic
from taskflow.core.utils.validation import (
    clean_text,
    coerce_model,
    require_text,
    validate_color,
    validate_mapping,
)
from taskflow.domains.projects.models.project_models import Project
from taskflow.domains.projects.schemas.project_schemas import ProjectListFilter
from taskflow.domains.tasks.models.task_models import Task

logger = logging.getLogger(__name__)

COPY_SUFFIX = " (Copy)"


@dataclass(frozen=True)
class DeleteOutcome:
    """Result of a delete request: either removed, or archived in its place."""

    project_id: int
    deleted: bool
    archived: bool


def _owned(ctx: ServiceContext, user_id: int):
    return ctx.session.query(Project).filter(Project.user_id == user_id)


def is_name_unique(
    ctx: ServiceContext, user_id: int, name: str, exclude_id: Optional[int] = None
) -> bool:
    query = _owned(ctx, user_id).filter(Project.name == name.strip())
    if exclude_id is not None:
        query = query.filter(Project.id != exclude_id)
    return query.first() is None


def _require_unique(ctx: ServiceContext, user_id: int, name: str, exclude_id: Optional[int] = None) -> None:
    if not is_name_unique(ctx, user_id, name, exclude_id=exclude_id):
        raise ConflictError("a project with this name already exists", kind="duplicate")


def _next_order_index(ctx: ServiceContext, user_id: int) -> int:
    current = (
        ctx.session.query(func.max(Project.order_index))
        .filter(Project.user_id == user_id)
        .scalar()
    )
    return 0 if current is None else current + 1


def create_project(
    ctx: ServiceContext,
    user_id: int,
    *,
    name: str,
    description: str | None = None,
    color: str | None = None,
    metadata: dict | None = None,
) -> Project:
    name_text = require_text(name, "name")
    color_value = validate_color(color)
    meta = validate_mapping(metadata, "metadata")
    _require_unique(ctx, user_id, name_text)
    project = Project(
        user_id=user_id,
        name=name_text,
        description=clean_text(description),
        color=color_value,
        order_index=_next_order_index(ctx, user_id),
        is_archived=False,
        meta=meta,
    )
    with atomic(ctx.session):
        ctx.session.add(project)
    return project


def get_project(ctx: ServiceContext, user_id: int, project_id: int) -> Optional[Project]:
    return _owned(ctx, user_id).filter(Project.id == project_id).first()


def list_projects(ctx: ServiceContext, user_id: int, filters=None) -> List[Project]:
    params = coerce_model(ProjectListFilter, filters)
    query = _owned(ctx, user_id)
    if not params.include_archived:
        query = query.filter(Project.is_archived.is_(False))
    if not blank(params.search):
        query = query.filter(substring_match(params.search, Project.name, Project.description))
    query = query.order_by(Project.order_index.asc(), Project.created_at.desc(), Project.id.asc())
    return paginate(query, limit=params.limit, offset=params.offset).all()


def task_counts(ctx: ServiceContext, project_ids: Iterable[int]) -> dict[int, dict]:
    """``{project_id: {"task_count", "completed_tasks"}}`` for the given projects."""
    ids = list(project_ids)
    counts = {pid: {"task_count": 0, "completed_tasks": 0} for pid in ids}
    if not ids:
        return counts
    rows = (
        ctx.session.query(
            Task.project_id,
            func.count(Task.id),
            func.coalesce(func.sum(case((Task.status == "completed", 1), else_=0)), 0),
        )
        .filter(Task.project_id.in_(ids))
        .group_by(Task.project_id)
        .all()
    )
    for project_id, total, completed in rows:
        counts[project_id] = {"task_count": int(total), "completed_tasks": int(completed)}
    return counts


def update_project(ctx: ServiceContext, user_id: int, project_id: int, **fields) -> Optional[Project]:
    project = get_project(ctx, user_id, project_id)
    if not project:
        return None
    staged: dict = {}
    if fields.get("name") is not None:
        name_text = require_text(fields["name"], "name")
        _require_unique(ctx, user_id, name_text, exclude_id=project.id)
        staged["name"] = name_text
    if "description" in fields:
        staged["description"] = clean_text(fields["description"])
    if fields.get("color") is not None:
        staged["color"] = validate_color(fields["color"])
    if fields.get("is_archived") is not None:
        staged["is_archived"] = bool(fields["is_archived"])
    if "metadata" in fields:
        staged["meta"] = validate_mapping(fields["metadata"], "metadata")

    for key, value in staged.items():
        setattr(project, key, value)
    with atomic(ctx.session):
        ctx.session.add(project)
    return project


def archive_project(ctx: ServiceContext, user_id: int, project_id: int) -> Optional[Project]:
    return update_project(ctx, user_id, project_id, is_archived=True)


def unarchive_project(ctx: ServiceContext, user_id: int, project_id: int) -> Optional[Project]:
    return update_project(ctx, user_id, project_id, is_archived=False)


def delete_project(ctx: ServiceContext, user_id: int, project_id: int) -> Optional[DeleteOutcome]:
    """Hard-delete an empty project; archive one that still has tasks."""
    project = get_project(ctx, user_id, project_id)
    if not project:
        return None
    task_total = (
        ctx.session.query(func.count(Task.id)).filter(Task.project_id == project.id).scalar()
    )
    with atomic(ctx.session):
        if task_total:
            project.is_archived = True
            ctx.session.add(project)
        else:
            ctx.session.delete(project)
    if task_total:
        logger.info(
            "Project %s has %s task(s); archived instead of deleted", project.id, task_total
        )
        return DeleteOutcome(project_id=project_id, deleted=False, archived=True)
    return DeleteOutcome(project_id=project_id, deleted=True, archived=False)


def reorder_projects(ctx: ServiceContext, user_id: int, project_ids: List[int]) -> List[Project]:
    """Set ``order_index`` to each id's position. All ids must belong to the user."""
    if len(set(project_ids)) != len(project_ids):
        raise ValidationError("project ids must be unique")
    with atomic(ctx.session):
        projects = {
            project.id: project
            for project in _owned(ctx, user_id).filter(Project.id.in_(project_ids)).all()
        }
        for position, project_id in enumerate(project_ids):
            project = projects.get(project_id)
            if project is None:
                raise NotFoundOrForbidden(f"project {project_id} not found")
            project.order_index = position
    return [projects[project_id] for project_id in project_ids]


def duplicate_project(
    ctx: ServiceContext, user_id: int, project_id: int, *, name: str | None = None
) -> Optional[Project]:
    source = get_project(ctx, user_id, project_id)
    if not source:
        return None
    return create_project(
        ctx,
        user_id,
        name=name or f"{source.name}{COPY_SUFFIX}",
        description=source.description,
        color=source.color,
        metadata=dict(source.meta or {}),
    )


def recently_updated_projects(ctx: ServiceContext, user_id: int, limit: int = 5) -> List[Project]:
    return (
        _owned(ctx, user_id)
        .filter(Project.is_archived.is_(False))
        .order_by(Project.updated_at.desc(), Project.id.desc())
        .limit(limit)
        .all()
    )


def used_colors(ctx: ServiceContext, user_id: int) -> List[str]:
    rows = (
        ctx.session.query(Project.color)
        .filter(Project.user_id == user_id)
        .distinct()
        .order_by(Project.color.asc())
        .all()
    )
    return [color for (color,) in rows]


def get_project_with_stats(ctx: ServiceContext, user_id: int, project_id: int) -> Optional[dict]:
    project = get_project(ctx, user_id, project_id)
    if not project:
        return None
    now = ctx.now()

    def _count(condition):
        return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)

    total, completed, in_progress, todo, overdue = (
        ctx.session.query(
            func.count(Task.id),
            _count(Task.status == "completed"),
            _count(Task.status == "in_progress"),
            _count(Task.status == "todo"),
            _count((Task.due_date < now) & (Task.status != "completed")),
        )
        .filter(Task.project_id == project.id)
        .one()
    )
    return {
        "project": project,
        "stats": {
            "task_count": int(total or 0),
            "completed_tasks": int(completed or 0),
            "in_progress_tasks": int(in_progress or 0),
            "todo_tasks": int(todo or 0),
            "overdue_tasks": int(overdue or 0),
            "completion_rate": completion_rate(completed or 0, total or 0),
        },
    }


def _empty_project_stats() -> dict:
    return {
        "total_projects": 0,
        "active_projects": 0,
        "archived_projects": 0,
        "total_tasks": 0,
        "completed_tasks": 0,
        "completion_rate": 0.0,
        "most_active_project": None,
    }


@default_on_storage_error(_empty_project_stats)
def get_project_stats(ctx: ServiceContext, user_id: int) -> dict:
    total, archived = (
        ctx.session.query(
            func.count(Project.id),
            func.coalesce(func.sum(case((Project.is_archived.is_(True), 1), else_=0)), 0),
        )
        .filter(Project.user_id == user_id)
        .one()
    )
    task_total, task_completed = (
        ctx.session.query(
            func.count(Task.id),
            func.coalesce(func.sum(case((Task.status == "completed", 1), else_=0)), 0),
        )
        .join(Project, Project.id == Task.project_id)
        .filter(Project.user_id == user_id)
        .one()
    )
    most_active = recently_updated_projects(ctx, user_id, limit=1)
    total = int(total or 0)
    archived = int(archived or 0)
    return {
        "total_projects": total,
        "active_projects": total - archived,
        "archived_projects": archived,
        "total_tasks": int(task_total or 0),
        "completed_tasks": int(task_completed or 0),
        "completion_rate": completion_rate(task_completed or 0, task_total or 0),
        "most_active_project": most_active[0].name if most_active else None,
    }
