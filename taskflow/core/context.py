"""Per-process service context handed to every service function."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Callable

from flask import Flask, current_app
from sqlalchemy.orm import Session

if TYPE_CHECKING:
    from taskflow.domains.integrations.services.email_sources import EmailSource
    from taskflow.domains.integrations.services.insight_providers import InsightProvider

logger = logging.getLogger(__name__)

EXTENSION_KEY = "taskflow"


@dataclass
class ServiceContext:
    session: Session
    email_source: "EmailSource"
    insight_provider: "InsightProvider"
    clock: Callable[[], datetime] = field(default=datetime.utcnow)

    def now(self) -> datetime:
        return self.clock()

    def today(self):
        return self.clock().date()


def build_context(app: Flask) -> ServiceContext:
    """Construct the context once at startup, choosing integration strategies from config."""
    from taskflow.domains.integrations.services.email_sources import select_email_source
    from taskflow.domains.integrations.services.insight_providers import select_insight_provider
    from taskflow.extensions import db

    ctx = ServiceContext(
        session=db.session,
        email_source=select_email_source(app.config),
        insight_provider=select_insight_provider(app.config),
    )
    logger.info(
        "Integrations: email=%s insights=%s",
        ctx.email_source.name,
        ctx.insight_provider.name,
    )
    return ctx


def current_context() -> ServiceContext:
    return current_app.extensions[EXTENSION_KEY]
