"""Project API controllers."""

from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_jwt_extended import get_jwt_identity, jwt_required

from taskflow.core.context import current_context
from taskflow.core.errors import NotFoundOrForbidden
from taskflow.domains.projects.mappers import map_project
from taskflow.domains.projects.schemas.project_schemas import (
    ProjectCreate,
    ProjectDuplicate,
    ProjectListFilter,
    ProjectReorder,
    ProjectUpdate,
)
from taskflow.domains.projects.services import project_service as services

project_api_bp = Blueprint("project_api", __name__)


def _parse_query(schema_cls):
    return schema_cls.model_validate({k: v for k, v in request.args.items()})


def _found(project):
    if not project:
        raise NotFoundOrForbidden("project not found")
    return project


@project_api_bp.get("")
@jwt_required()
def list_projects():
    ctx = current_context()
    params = _parse_query(ProjectListFilter)
    items = services.list_projects(ctx, int(get_jwt_identity()), params)
    counts = services.task_counts(ctx, [p.id for p in items])
    return jsonify(
        {"ok": True, "items": [map_project(p, counts[p.id]) for p in items], "total": len(items)}
    )


@project_api_bp.post("")
@jwt_required()
def create_project():
    data = ProjectCreate.model_validate(request.get_json(silent=True) or {})
    project = services.create_project(
        current_context(),
        int(get_jwt_identity()),
        name=data.name,
        description=data.description,
        color=data.color,
    )
    return jsonify({"ok": True, "project": map_project(project)}), 201


@project_api_bp.get("/stats")
@jwt_required()
def project_stats():
    return jsonify({"ok": True, "stats": services.get_project_stats(current_context(), int(get_jwt_identity()))})


@project_api_bp.get("/recent")
@jwt_required()
def recent_projects():
    limit = request.args.get("limit", default=5, type=int)
    items = services.recently_updated_projects(current_context(), int(get_jwt_identity()), limit=limit)
    return jsonify({"ok": True, "items": [map_project(p) for p in items]})


@project_api_bp.get("/colors")
@jwt_required()
def project_colors():
    return jsonify({"ok": True, "colors": services.used_colors(current_context(), int(get_jwt_identity()))})


@project_api_bp.post("/reorder")
@jwt_required()
def reorder_projects():
    data = ProjectReorder.model_validate(request.get_json(silent=True) or {})
    items = services.reorder_projects(current_context(), int(get_jwt_identity()), data.project_ids)
    return jsonify({"ok": True, "items": [map_project(p) for p in items]})


@project_api_bp.get("/<int:project_id>")
@jwt_required()
def get_project(project_id: int):
    result = services.get_project_with_stats(current_context(), int(get_jwt_identity()), project_id)
    if not result:
        raise NotFoundOrForbidden("project not found")
    return jsonify({"ok": True, "project": map_project(result["project"]), "stats": result["stats"]})


@project_api_bp.patch("/<int:project_id>")
@jwt_required()
def update_project(project_id: int):
    data = ProjectUpdate.model_validate(request.get_json(silent=True) or {})
    project = services.update_project(
        current_context(), int(get_jwt_identity()), project_id, **data.model_dump(exclude_unset=True)
    )
    return jsonify({"ok": True, "project": map_project(_found(project))})


@project_api_bp.post("/<int:project_id>/archive")
@jwt_required()
def archive_project(project_id: int):
    project = services.archive_project(current_context(), int(get_jwt_identity()), project_id)
    return jsonify({"ok": True, "project": map_project(_found(project))})


@project_api_bp.post("/<int:project_id>/unarchive")
@jwt_required()
def unarchive_project(project_id: int):
    project = services.unarchive_project(current_context(), int(get_jwt_identity()), project_id)
    return jsonify({"ok": True, "project": map_project(_found(project))})


@project_api_bp.post("/<int:project_id>/duplicate")
@jwt_required()
def duplicate_project(project_id: int):
    data = ProjectDuplicate.model_validate(request.get_json(silent=True) or {})
    project = services.duplicate_project(current_context(), int(get_jwt_identity()), project_id, name=data.name)
    return jsonify({"ok": True, "project": map_project(_found(project))}), 201


@project_api_bp.delete("/<int:project_id>")
@jwt_required()
def delete_project(project_id: int):
    outcome = services.delete_project(current_context(), int(get_jwt_identity()), project_id)
    if not outcome:
        raise NotFoundOrForbidden("project not found")
    return jsonify({"ok": True, "deleted": outcome.deleted, "archived": outcome.archived})
