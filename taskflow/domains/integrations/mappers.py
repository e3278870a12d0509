"""DTO mappers for integration payloads."""

from __future__ import annotations

from typing import Iterable

from taskflow.domains.integrations.services.email_parsing import (
    EmailMessage,
    EmailThread,
    extract_action_items,
    suggest_priority,
)


def map_email(email: EmailMessage) -> dict:
    data = email.to_dict()
    data["action_items"] = extract_action_items(email.body)
    data["suggested_priority"] = suggest_priority(email)
    return data


def map_emails(emails: Iterable[EmailMessage]) -> list[dict]:
    return [map_email(email) for email in emails]


def map_threads(threads: Iterable[EmailThread]) -> list[dict]:
    return [thread.to_dict() for thread in threads]
