"""DTO mappers for projects."""

from __future__ import annotations

from typing import Optional

from taskflow.domains.projects.models.project_models import Project


def map_project(project: Project, counts: Optional[dict] = None) -> dict:
    data = {
        "id": project.id,
        "user_id": project.user_id,
        "name": project.name,
        "description": project.description,
        "color": project.color,
        "order_index": project.order_index,
        "is_archived": project.is_archived,
        "metadata": dict(project.meta or {}),
        "created_at": project.created_at.isoformat() if project.created_at else None,
        "updated_at": project.updated_at.isoformat() if project.updated_at else None,
    }
    if counts is not None:
        data["task_count"] = counts.get("task_count", 0)
        data["completed_tasks"] = counts.get("completed_tasks", 0)
    return data
