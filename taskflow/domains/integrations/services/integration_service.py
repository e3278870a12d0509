"""Integration service layer: insights, Gmail conversions and suggestion acceptance."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Tuple

from taskflow.core.context import ServiceContext
from taskflow.core.errors import NotFoundOrForbidden, ValidationError
from taskflow.core.users.services import get_user, update_settings
from taskflow.core.utils.validation import validate_mapping
from taskflow.domains.integrations.services.email_parsing import (
    EmailThread,
    ProjectContext,
    analyze_project_context,
    email_to_task_suggestion,
)
from taskflow.domains.integrations.services.email_sources import EmailSourceError
from taskflow.domains.integrations.services.insight_patterns import InsightData
from taskflow.domains.integrations.services.insight_providers import basic_project_description
from taskflow.domains.journal.models.journal_entry import JournalEntry
from taskflow.domains.journal.services.journal_service import create_entry
from taskflow.domains.projects.models.project_models import Project
from taskflow.domains.projects.services.project_service import create_project
from taskflow.domains.tasks.models.task_models import Task
from taskflow.domains.tasks.services.task_service import create_task
from taskflow.domains.tasks.services.visibility import visible_tasks

logger = logging.getLogger(__name__)

GMAIL_SETTINGS_KEY = "gmail"
CONVERT_FETCH_LIMIT = 50
SUGGESTION_TYPES = ("task", "journal_prompt")


@dataclass(frozen=True)
class ProjectWithContext:
    project: Project
    context_analyzed: bool
    ai_enhanced: bool


def _service_status(live: bool) -> str:
    return "connected" if live else "mock_data"


def gmail_token(ctx: ServiceContext, user_id: int) -> Optional[str]:
    user = get_user(ctx, user_id)
    if not user:
        return None
    return ((user.settings or {}).get(GMAIL_SETTINGS_KEY) or {}).get("access_token")


def gmail_auth_url(ctx: ServiceContext, user_id: int) -> str:
    url = ctx.email_source.auth_url(state=str(user_id))
    if not url:
        raise ValidationError("Gmail integration not configured", kind="integration_unavailable")
    return url


def complete_gmail_auth(ctx: ServiceContext, user_id: int, code: str) -> bool:
    """Exchange an OAuth code and keep the tokens in the user's settings."""
    if not code:
        raise ValidationError("authorization code required")
    try:
        tokens = ctx.email_source.exchange_code(code)
    except EmailSourceError as e:
        raise ValidationError(str(e), kind="integration_unavailable") from e
    stored = {
        "access_token": tokens.get("access_token"),
        "refresh_token": tokens.get("refresh_token"),
        "expires_in": tokens.get("expires_in"),
        "connected_at": ctx.now().isoformat(),
    }
    if not update_settings(ctx, user_id, {GMAIL_SETTINGS_KEY: stored}):
        return False
    logger.info("Stored Gmail tokens for user %s", user_id)
    return True


def list_actionable_emails(ctx: ServiceContext, user_id: int, max_results: int = 10) -> dict:
    result = ctx.email_source.actionable_emails(max_results, access_token=gmail_token(ctx, user_id))
    return {
        "emails": result.items,
        "count": len(result.items),
        "service_status": _service_status(result.live),
    }


def convert_emails_to_tasks(ctx: ServiceContext, user_id: int, email_ids: Iterable[str]) -> List[Task]:
    """Create one inbox task per selected actionable email; unknown ids are skipped."""
    wanted = set(email_ids or [])
    if not wanted:
        return []
    fetched = ctx.email_source.actionable_emails(CONVERT_FETCH_LIMIT, access_token=gmail_token(ctx, user_id))
    created: List[Task] = []
    for email in fetched.items:
        if email.id not in wanted:
            continue
        suggestion = email_to_task_suggestion(email, ctx.today())
        created.append(
            create_task(
                ctx,
                user_id,
                title=suggestion["title"],
                description=suggestion["description"],
                priority=suggestion["priority"],
                due_date=suggestion["due_date"],
                metadata=suggestion["metadata"],
            )
        )
    logger.info("Converted %s email(s) to tasks for user %s", len(created), user_id)
    return created


def search_threads(ctx: ServiceContext, user_id: int, query: str, max_results: int = 20) -> dict:
    if not query or not query.strip():
        raise ValidationError("search query is required")
    result = ctx.email_source.search_threads(query.strip(), max_results, access_token=gmail_token(ctx, user_id))
    return {
        "threads": result.items,
        "count": len(result.items),
        "query": query,
        "service_status": _service_status(result.live),
    }


def get_thread(ctx: ServiceContext, user_id: int, thread_id: str) -> Optional[EmailThread]:
    return ctx.email_source.get_thread(thread_id, access_token=gmail_token(ctx, user_id))


def analyze_threads(ctx: ServiceContext, user_id: int, thread_ids: Iterable[str]) -> ProjectContext:
    token = gmail_token(ctx, user_id)
    threads = []
    for thread_id in thread_ids or []:
        thread = ctx.email_source.get_thread(thread_id, access_token=token)
        if thread:
            threads.append(thread)
    return analyze_project_context(threads)


def create_project_with_context(
    ctx: ServiceContext,
    user_id: int,
    *,
    name: str,
    description: str | None = None,
    color: str | None = None,
    email_thread_ids: Iterable[str] | None = None,
    ai_enhanced: bool = False,
    metadata: dict | None = None,
) -> ProjectWithContext:
    """Create a project whose description and metadata carry the analysed email threads."""
    thread_ids = list(email_thread_ids or [])
    meta = dict(validate_mapping(metadata, "metadata"))
    text = description or ""
    enhanced = False
    if thread_ids:
        context = analyze_threads(ctx, user_id, thread_ids)
        provider = ctx.insight_provider
        if ai_enhanced and provider.ready:
            text = provider.enhance_project_description(name, text, context)
            enhanced = True
        else:
            text = basic_project_description(text, context)
        meta["email_context"] = {
            "thread_ids": thread_ids,
            **context.to_dict(),
            "analyzed_at": ctx.now().isoformat(),
        }
    project = create_project(ctx, user_id, name=name, description=text, color=color, metadata=meta)
    return ProjectWithContext(project=project, context_analyzed=bool(thread_ids), ai_enhanced=enhanced)


def accept_suggestion(
    ctx: ServiceContext, user_id: int, suggestion_type: str, data: dict[str, Any]
) -> Tuple[str, Any]:
    """Turn an accepted suggestion into a task or a journal entry."""
    data = validate_mapping(data, "suggestion_data")
    if suggestion_type == "task":
        meta = {"source": "ai_suggestion", "reasoning": data.get("reasoning")}
        meta.update(validate_mapping(data.get("metadata"), "metadata"))
        task = create_task(
            ctx,
            user_id,
            title=data.get("title"),
            description=data.get("description") or data.get("content"),
            priority=data.get("priority") or "medium",
            metadata=meta,
            tags=data.get("suggested_tags") or [],
        )
        return "task", task
    if suggestion_type == "journal_prompt":
        prompt = data.get("prompt")
        if not prompt:
            raise ValidationError("prompt is required")
        entry = create_entry(
            ctx,
            user_id,
            content=f"Prompt: {prompt}\n\n[Write your response here]",
            entry_type="general",
            metadata={"source": "ai_prompt", "original_prompt": prompt, "prompt_type": data.get("type")},
        )
        return "entry", entry
    raise ValidationError("unsupported suggestion type")


def _insight_data(ctx: ServiceContext, user_id: int) -> InsightData:
    session = ctx.session
    return InsightData(
        tasks=visible_tasks(session, user_id, Task).all(),
        projects=session.query(Project).filter(Project.user_id == user_id).all(),
        entries=session.query(JournalEntry).filter(JournalEntry.user_id == user_id).all(),
        now=ctx.now(),
    )


def generate_insights(ctx: ServiceContext, user_id: int) -> dict:
    if not get_user(ctx, user_id):
        raise NotFoundOrForbidden("user not found")
    return ctx.insight_provider.generate(_insight_data(ctx, user_id))


def integration_status(ctx: ServiceContext) -> dict:
    email_ready = ctx.email_source.ready
    insights_ready = ctx.insight_provider.ready
    return {
        "gmail_service": {"available": True, "configured": email_ready, "source": ctx.email_source.name},
        "rag_service": {
            "available": True,
            "configured": insights_ready,
            "ready": insights_ready,
            "provider": ctx.insight_provider.name,
        },
        "features": {
            "ai_insights": insights_ready,
            "gmail_integration": email_ready,
            "basic_patterns": True,
        },
    }
