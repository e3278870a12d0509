"""Integration API controllers: insights, Gmail and suggestions."""

from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_jwt_extended import get_jwt_identity, jwt_required

from taskflow.core.context import current_context
from taskflow.core.errors import NotFoundOrForbidden
from taskflow.domains.integrations.mappers import map_emails, map_threads
from taskflow.domains.integrations.schemas.integration_schemas import (
    AcceptSuggestionRequest,
    AnalyzeContextRequest,
    ConvertEmailsRequest,
    EmailListFilter,
    GmailCallbackRequest,
    ThreadSearchFilter,
)
from taskflow.domains.integrations.services import integration_service as services
from taskflow.domains.journal.mappers import map_entry
from taskflow.domains.projects.mappers import map_project
from taskflow.domains.projects.schemas.project_schemas import ProjectWithContextCreate
from taskflow.domains.tasks.mappers import map_task

integration_api_bp = Blueprint("integration_api", __name__)


def _parse_query(schema_cls):
    return schema_cls.model_validate({k: v for k, v in request.args.items()})


@integration_api_bp.get("/insights")
@jwt_required()
def insights():
    payload = services.generate_insights(current_context(), int(get_jwt_identity()))
    return jsonify({"ok": True, **payload})


@integration_api_bp.get("/status")
@jwt_required()
def status():
    return jsonify({"ok": True, **services.integration_status(current_context())})


@integration_api_bp.get("/gmail/auth")
@jwt_required()
def gmail_auth():
    url = services.gmail_auth_url(current_context(), int(get_jwt_identity()))
    return jsonify({"ok": True, "auth_url": url})


@integration_api_bp.post("/gmail/callback")
@jwt_required()
def gmail_callback():
    data = GmailCallbackRequest.model_validate(request.get_json(silent=True) or {})
    if not services.complete_gmail_auth(current_context(), int(get_jwt_identity()), data.code):
        raise NotFoundOrForbidden("user not found")
    return jsonify({"ok": True, "tokens_received": True})


@integration_api_bp.get("/gmail/emails")
@jwt_required()
def gmail_emails():
    params = _parse_query(EmailListFilter)
    result = services.list_actionable_emails(current_context(), int(get_jwt_identity()), params.max_results)
    return jsonify({"ok": True, **result, "emails": map_emails(result["emails"])})


@integration_api_bp.post("/gmail/convert-to-tasks")
@jwt_required()
def gmail_convert():
    data = ConvertEmailsRequest.model_validate(request.get_json(silent=True) or {})
    tasks = services.convert_emails_to_tasks(current_context(), int(get_jwt_identity()), data.email_ids)
    return jsonify(
        {
            "ok": True,
            "message": f"Successfully converted {len(tasks)} emails to tasks",
            "tasks": [map_task(t) for t in tasks],
        }
    )


@integration_api_bp.get("/gmail/search-threads")
@jwt_required()
def gmail_search_threads():
    params = _parse_query(ThreadSearchFilter)
    result = services.search_threads(
        current_context(), int(get_jwt_identity()), params.query, params.max_results
    )
    return jsonify({"ok": True, **result, "threads": map_threads(result["threads"])})


@integration_api_bp.get("/gmail/thread/<thread_id>")
@jwt_required()
def gmail_thread(thread_id: str):
    thread = services.get_thread(current_context(), int(get_jwt_identity()), thread_id)
    if not thread:
        raise NotFoundOrForbidden("thread not found")
    return jsonify({"ok": True, "thread": thread.to_dict()})


@integration_api_bp.post("/gmail/analyze-context")
@jwt_required()
def gmail_analyze_context():
    data = AnalyzeContextRequest.model_validate(request.get_json(silent=True) or {})
    context = services.analyze_threads(current_context(), int(get_jwt_identity()), data.thread_ids)
    return jsonify({"ok": True, "context": context.to_dict(), "analyzed_threads": len(data.thread_ids)})


@integration_api_bp.post("/projects/create-with-context")
@jwt_required()
def create_project_with_context():
    data = ProjectWithContextCreate.model_validate(request.get_json(silent=True) or {})
    result = services.create_project_with_context(current_context(), int(get_jwt_identity()), **data.model_dump())
    return (
        jsonify(
            {
                "ok": True,
                "project": map_project(result.project),
                "context_analyzed": result.context_analyzed,
                "ai_enhanced": result.ai_enhanced,
            }
        ),
        201,
    )


@integration_api_bp.post("/suggestions/accept")
@jwt_required()
def accept_suggestion():
    data = AcceptSuggestionRequest.model_validate(request.get_json(silent=True) or {})
    kind, created = services.accept_suggestion(
        current_context(), int(get_jwt_identity()), data.suggestion_type, data.suggestion_data
    )
    body = map_task(created) if kind == "task" else map_entry(created)
    return jsonify({"ok": True, kind: body}), 201
