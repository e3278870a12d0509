"""Task API controllers."""

from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_jwt_extended import get_jwt_identity, jwt_required

from taskflow.core.context import current_context
from taskflow.core.errors import NotFoundOrForbidden
from taskflow.domains.tags.services import tag_service
from taskflow.domains.tasks.mappers import map_task
from taskflow.domains.tasks.schemas.task_schemas import TaskCreate, TaskListFilter, TaskUpdate
from taskflow.domains.tasks.services import task_service as services

task_api_bp = Blueprint("task_api", __name__)


def _parse_query(schema_cls):
    return schema_cls.model_validate({k: v for k, v in request.args.items()})


def _mapped(ctx, tasks):
    tags = tag_service.tags_for_tasks(ctx, [t.id for t in tasks])
    return [map_task(t, tags.get(t.id)) for t in tasks]


def _single(ctx, task, status: int = 200):
    if not task:
        raise NotFoundOrForbidden("task not found")
    return jsonify({"ok": True, "task": _mapped(ctx, [task])[0]}), status


@task_api_bp.get("")
@jwt_required()
def list_tasks():
    ctx = current_context()
    params = _parse_query(TaskListFilter)
    items = services.list_tasks(ctx, int(get_jwt_identity()), params)
    return jsonify({"ok": True, "items": _mapped(ctx, items), "total": len(items)})


@task_api_bp.post("")
@jwt_required()
def create_task():
    ctx = current_context()
    data = TaskCreate.model_validate(request.get_json(silent=True) or {})
    task = services.create_task(ctx, int(get_jwt_identity()), **data.model_dump())
    return _single(ctx, task, 201)


@task_api_bp.get("/stats")
@jwt_required()
def task_stats():
    return jsonify({"ok": True, "stats": services.get_task_stats(current_context(), int(get_jwt_identity()))})


@task_api_bp.get("/<int:task_id>")
@jwt_required()
def get_task(task_id: int):
    ctx = current_context()
    return _single(ctx, services.get_task(ctx, int(get_jwt_identity()), task_id))


@task_api_bp.patch("/<int:task_id>")
@jwt_required()
def update_task(task_id: int):
    ctx = current_context()
    data = TaskUpdate.model_validate(request.get_json(silent=True) or {})
    task = services.update_task(ctx, int(get_jwt_identity()), task_id, **data.model_dump(exclude_unset=True))
    return _single(ctx, task)


@task_api_bp.post("/<int:task_id>/complete")
@jwt_required()
def complete_task(task_id: int):
    ctx = current_context()
    return _single(ctx, services.complete_task(ctx, int(get_jwt_identity()), task_id))


@task_api_bp.get("/<int:task_id>/subtasks")
@jwt_required()
def list_subtasks(task_id: int):
    ctx = current_context()
    items = services.list_subtasks(ctx, int(get_jwt_identity()), task_id)
    if items is None:
        raise NotFoundOrForbidden("task not found")
    return jsonify({"ok": True, "items": _mapped(ctx, items)})


@task_api_bp.delete("/<int:task_id>")
@jwt_required()
def delete_task(task_id: int):
    if not services.delete_task(current_context(), int(get_jwt_identity()), task_id):
        raise NotFoundOrForbidden("task not found")
    return jsonify({"ok": True})


@task_api_bp.post("/<int:task_id>/tags/<int:tag_id>")
@jwt_required()
def attach_tag(task_id: int, tag_id: int):
    created = tag_service.attach_tag(current_context(), int(get_jwt_identity()), task_id, tag_id)
    return jsonify({"ok": True, "created": created}), 201 if created else 200


@task_api_bp.delete("/<int:task_id>/tags/<int:tag_id>")
@jwt_required()
def detach_tag(task_id: int, tag_id: int):
    removed = tag_service.detach_tag(current_context(), int(get_jwt_identity()), task_id, tag_id)
    return jsonify({"ok": True, "removed": removed})
