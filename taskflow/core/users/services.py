"""User service layer."""

from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy import func

from taskflow.core.auth.models import TokenBlocklist
from taskflow.core.auth.password import hash_password, verify_password
from taskflow.core.context import ServiceContext
from taskflow.core.errors import ConflictError, ValidationError
from taskflow.core.users.models import User
from taskflow.core.utils.decorators import default_on_storage_error
from taskflow.core.utils.transactions import atomic
from taskflow.core.utils.validation import require_text, validate_mapping
from taskflow.domains.journal.models.journal_entry import JournalEntry
from taskflow.domains.projects.models.project_models import Project
from taskflow.domains.tags.models.tag_models import Tag, TaskTag
from taskflow.domains.tasks.models.task_models import Task

logger = logging.getLogger(__name__)


def get_user(ctx: ServiceContext, user_id: int) -> Optional[User]:
    return ctx.session.get(User, user_id)


def email_exists(ctx: ServiceContext, email: str, exclude_id: Optional[int] = None) -> bool:
    query = ctx.session.query(User.id).filter(func.lower(User.email) == email.strip().lower())
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return query.first() is not None


def update_profile(ctx: ServiceContext, user_id: int, **fields) -> Optional[User]:
    user = get_user(ctx, user_id)
    if not user:
        return None
    staged: dict = {}
    if fields.get("email") is not None:
        email = require_text(fields["email"], "email").lower()
        if email_exists(ctx, email, exclude_id=user.id):
            raise ConflictError("an account with this email already exists", kind="email_already_exists")
        staged["email"] = email
    if fields.get("name") is not None:
        staged["name"] = require_text(fields["name"], "name")

    for key, value in staged.items():
        setattr(user, key, value)
    with atomic(ctx.session):
        ctx.session.add(user)
    return user


def update_settings(ctx: ServiceContext, user_id: int, settings: dict[str, Any]) -> Optional[User]:
    """Merge ``settings`` into the stored map; keys not given are kept as they are."""
    user = get_user(ctx, user_id)
    if not user:
        return None
    merged = dict(user.settings or {})
    merged.update(validate_mapping(settings, "settings"))
    # reassign so the JSON column is flagged dirty
    user.settings = merged
    with atomic(ctx.session):
        ctx.session.add(user)
    return user


def change_password(ctx: ServiceContext, user_id: int, *, current_password: str, new_password: str) -> bool:
    user = get_user(ctx, user_id)
    if not user:
        return False
    if not verify_password(current_password, user.password_hash):
        raise ValidationError("current password is incorrect", kind="invalid_credentials")
    user.password_hash = hash_password(new_password)
    with atomic(ctx.session):
        ctx.session.add(user)
    return True


def soft_delete_user(ctx: ServiceContext, user_id: int) -> bool:
    user = get_user(ctx, user_id)
    if not user:
        return False
    update_settings(ctx, user_id, {"deleted": True, "deleted_at": ctx.now().isoformat()})
    logger.info("Soft-deleted user %s", user_id)
    return True


def hard_delete_user(ctx: ServiceContext, user_id: int) -> bool:
    """Remove the user and everything they own in one transaction."""
    user = get_user(ctx, user_id)
    if not user:
        return False
    session = ctx.session
    task_ids = session.query(Task.id).filter(Task.user_id == user_id)
    tag_ids = session.query(Tag.id).filter(Tag.user_id == user_id)
    with atomic(session):
        session.query(TaskTag).filter(
            TaskTag.task_id.in_(task_ids.scalar_subquery()) | TaskTag.tag_id.in_(tag_ids.scalar_subquery())
        ).delete(synchronize_session=False)
        for model in (Task, Tag, JournalEntry, Project, TokenBlocklist):
            session.query(model).filter(model.user_id == user_id).delete(synchronize_session=False)
        session.delete(user)
    logger.info("Hard-deleted user %s", user_id)
    return True


def _empty_user_stats() -> dict:
    return {"total_tasks": 0, "completed_tasks": 0, "active_projects": 0, "total_tags": 0}


@default_on_storage_error(_empty_user_stats)
def get_user_stats(ctx: ServiceContext, user_id: int) -> dict:
    session = ctx.session
    total_tasks = session.query(func.count(Task.id)).filter(Task.user_id == user_id).scalar()
    completed = (
        session.query(func.count(Task.id))
        .filter(Task.user_id == user_id, Task.status == "completed")
        .scalar()
    )
    active_projects = (
        session.query(func.count(Project.id))
        .filter(Project.user_id == user_id, Project.is_archived.is_(False))
        .scalar()
    )
    total_tags = session.query(func.count(Tag.id)).filter(Tag.user_id == user_id).scalar()
    return {
        "total_tasks": int(total_tasks or 0),
        "completed_tasks": int(completed or 0),
        "active_projects": int(active_projects or 0),
        "total_tags": int(total_tags or 0),
    }
