"""Tag API controllers."""

from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_jwt_extended import get_jwt_identity, jwt_required

from taskflow.core.context import current_context
from taskflow.core.errors import NotFoundOrForbidden
from taskflow.domains.tags.mappers import map_tag
from taskflow.domains.tags.schemas.tag_schemas import TagBulkCreate, TagCreate, TagListFilter, TagUpdate
from taskflow.domains.tags.services import tag_service as services
from taskflow.domains.tasks.mappers import map_task

tag_api_bp = Blueprint("tag_api", __name__)


def _parse_query(schema_cls):
    return schema_cls.model_validate({k: v for k, v in request.args.items()})


@tag_api_bp.get("")
@jwt_required()
def list_tags():
    ctx = current_context()
    items = services.list_tags(ctx, int(get_jwt_identity()), _parse_query(TagListFilter))
    usage = services.usage_counts(ctx, [t.id for t in items])
    return jsonify({"ok": True, "items": [map_tag(t, usage.get(t.id, 0)) for t in items]})


@tag_api_bp.post("")
@jwt_required()
def create_tag():
    data = TagCreate.model_validate(request.get_json(silent=True) or {})
    tag = services.create_tag(current_context(), int(get_jwt_identity()), name=data.name, color=data.color)
    return jsonify({"ok": True, "tag": map_tag(tag)}), 201


@tag_api_bp.post("/bulk")
@jwt_required()
def bulk_create_tags():
    data = TagBulkCreate.model_validate(request.get_json(silent=True) or {})
    created = services.bulk_create_tags(current_context(), int(get_jwt_identity()), data.names, color=data.color)
    return jsonify({"ok": True, "items": [map_tag(t) for t in created]}), 201


@tag_api_bp.get("/stats")
@jwt_required()
def tag_stats():
    return jsonify({"ok": True, "stats": services.get_tag_stats(current_context(), int(get_jwt_identity()))})


@tag_api_bp.get("/popular")
@jwt_required()
def popular_tags():
    limit = request.args.get("limit", default=10, type=int)
    rows = services.most_used_tags(current_context(), int(get_jwt_identity()), limit=limit)
    return jsonify({"ok": True, "items": [map_tag(tag, count) for tag, count in rows]})


@tag_api_bp.get("/unused")
@jwt_required()
def unused_tags():
    items = services.unused_tags(current_context(), int(get_jwt_identity()))
    return jsonify({"ok": True, "items": [map_tag(t, 0) for t in items]})


@tag_api_bp.get("/suggest")
@jwt_required()
def suggest_tags():
    text = request.args.get("text", "")
    items = services.suggest_tags(current_context(), int(get_jwt_identity()), text)
    return jsonify({"ok": True, "items": [map_tag(t) for t in items]})


@tag_api_bp.get("/<int:tag_id>")
@jwt_required()
def get_tag(tag_id: int):
    tag = services.get_tag(current_context(), int(get_jwt_identity()), tag_id)
    if not tag:
        raise NotFoundOrForbidden("tag not found")
    return jsonify({"ok": True, "tag": map_tag(tag)})


@tag_api_bp.patch("/<int:tag_id>")
@jwt_required()
def update_tag(tag_id: int):
    data = TagUpdate.model_validate(request.get_json(silent=True) or {})
    tag = services.update_tag(current_context(), int(get_jwt_identity()), tag_id, **data.model_dump(exclude_unset=True))
    if not tag:
        raise NotFoundOrForbidden("tag not found")
    return jsonify({"ok": True, "tag": map_tag(tag)})


@tag_api_bp.delete("/<int:tag_id>")
@jwt_required()
def delete_tag(tag_id: int):
    if not services.delete_tag(current_context(), int(get_jwt_identity()), tag_id):
        raise NotFoundOrForbidden("tag not found")
    return jsonify({"ok": True})


@tag_api_bp.get("/<int:tag_id>/tasks")
@jwt_required()
def tag_tasks(tag_id: int):
    ctx = current_context()
    tasks = services.tasks_by_tag(ctx, int(get_jwt_identity()), tag_id)
    if tasks is None:
        raise NotFoundOrForbidden("tag not found")
    tags = services.tags_for_tasks(ctx, [t.id for t in tasks])
    return jsonify({"ok": True, "items": [map_task(t, tags.get(t.id)) for t in tasks]})
