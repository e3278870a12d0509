"""DTO mappers for tasks."""

from __future__ import annotations

from typing import Iterable, Optional

from taskflow.domains.tags.mappers import map_tag
from taskflow.domains.tags.models.tag_models import Tag
from taskflow.domains.tasks.models.task_models import Task


def map_task(task: Task, tags: Optional[Iterable[Tag]] = None) -> dict:
    return {
        "id": task.id,
        "user_id": task.user_id,
        "project_id": task.project_id,
        "parent_task_id": task.parent_task_id,
        "title": task.title,
        "description": task.description,
        "status": task.status,
        "priority": task.priority,
        "due_date": task.due_date.isoformat() if task.due_date else None,
        "completed_at": task.completed_at.isoformat() if task.completed_at else None,
        "metadata": dict(task.meta or {}),
        "tags": [map_tag(tag) for tag in tags or []],
        "created_at": task.created_at.isoformat() if task.created_at else None,
        "updated_at": task.updated_at.isoformat() if task.updated_at else None,
    }
