"""Journal JSON API."""

from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_jwt_extended import get_jwt_identity, jwt_required

from taskflow.core.context import current_context
from taskflow.core.errors import NotFoundOrForbidden
from taskflow.domains.journal.mappers import map_entry
from taskflow.domains.journal.schemas.journal_schemas import (
    JournalEntryCreate,
    JournalEntryUpdate,
    JournalListFilter,
    QuickEntryCreate,
)
from taskflow.domains.journal.services import journal_service
from taskflow.domains.projects.mappers import map_project
from taskflow.domains.tasks.mappers import map_task

journal_api_bp = Blueprint("journal_api", __name__)


def _entry_response(entry, status: int = 200):
    if not entry:
        raise NotFoundOrForbidden("journal entry not found")
    return jsonify({"ok": True, "entry": map_entry(entry)}), status


@journal_api_bp.get("")
@jwt_required()
def list_journal():
    filters = JournalListFilter.model_validate({k: v for k, v in request.args.items()})
    entries = journal_service.list_entries(current_context(), int(get_jwt_identity()), filters)
    return jsonify({"ok": True, "items": [map_entry(e) for e in entries], "total": len(entries)})


@journal_api_bp.get("/search")
@jwt_required()
def search_journal():
    text = request.args.get("q", "")
    limit = request.args.get("limit", default=journal_service.SEARCH_LIMIT, type=int)
    entries = journal_service.search_entries(current_context(), int(get_jwt_identity()), text, limit=limit)
    return jsonify({"ok": True, "items": [map_entry(e) for e in entries]})


@journal_api_bp.get("/stats")
@jwt_required()
def journal_stats():
    return jsonify(
        {"ok": True, "stats": journal_service.get_journal_stats(current_context(), int(get_jwt_identity()))}
    )


@journal_api_bp.post("")
@jwt_required()
def create_journal_entry():
    data = JournalEntryCreate.model_validate(request.get_json(silent=True) or {})
    entry = journal_service.create_entry(current_context(), int(get_jwt_identity()), **data.model_dump())
    return _entry_response(entry, 201)


@journal_api_bp.post("/quick")
@jwt_required()
def quick_journal_entry():
    data = QuickEntryCreate.model_validate(request.get_json(silent=True) or {})
    entry = journal_service.quick_entry(current_context(), int(get_jwt_identity()), **data.model_dump())
    return _entry_response(entry, 201)


@journal_api_bp.get("/<int:entry_id>")
@jwt_required()
def get_entry(entry_id: int):
    return _entry_response(journal_service.get_entry(current_context(), int(get_jwt_identity()), entry_id))


@journal_api_bp.get("/<int:entry_id>/related")
@jwt_required()
def related_items(entry_id: int):
    ctx = current_context()
    user_id = int(get_jwt_identity())
    entry = journal_service.get_entry(ctx, user_id, entry_id)
    if not entry:
        raise NotFoundOrForbidden("journal entry not found")
    related = journal_service.resolve_related(ctx, user_id, entry)
    return jsonify(
        {
            "ok": True,
            "tasks": [map_task(t) for t in related["tasks"]],
            "projects": [map_project(p) for p in related["projects"]],
        }
    )


@journal_api_bp.patch("/<int:entry_id>")
@jwt_required()
def update_entry(entry_id: int):
    data = JournalEntryUpdate.model_validate(request.get_json(silent=True) or {})
    entry = journal_service.update_entry(
        current_context(), int(get_jwt_identity()), entry_id, **data.model_dump(exclude_unset=True)
    )
    return _entry_response(entry)


@journal_api_bp.delete("/<int:entry_id>")
@jwt_required()
def delete_entry(entry_id: int):
    if not journal_service.delete_entry(current_context(), int(get_jwt_identity()), entry_id):
        raise NotFoundOrForbidden("journal entry not found")
    return jsonify({"ok": True})
