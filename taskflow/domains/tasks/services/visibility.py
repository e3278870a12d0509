"""Which tasks a user may see."""

from __future__ import annotations

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session

from taskflow.domains.projects.models.project_models import Project
from taskflow.domains.tasks.models.task_models import Task


def visible_tasks(session: Session, user_id: int, *entities) -> Query:
    """Tasks owned directly by the user, or sitting in a project the user owns."""
    query = session.query(*(entities or (Task,)))
    return query.select_from(Task).outerjoin(Project, Task.project_id == Project.id).filter(
        or_(Task.user_id == user_id, Project.user_id == user_id)
    )


def find_visible_task(session: Session, user_id: int, task_id: int) -> Task | None:
    return visible_tasks(session, user_id).filter(Task.id == task_id).first()
