"""Tag name normalization."""

from __future__ import annotations

import re

from taskflow.core.errors import ValidationError

MAX_TAG_LENGTH = 50
_WHITESPACE = re.compile(r"\s+")
_ALLOWED = re.compile(r"^[a-z0-9-]+$")


def normalize_tag_name(name: str) -> str:
    """Lowercase, trim and collapse whitespace runs into single hyphens.

    >>> normalize_tag_name("  Urgent Work  ")
    'urgent-work'
    """
    return _WHITESPACE.sub("-", (name or "").lower().strip())


def validate_tag_name(name: str) -> str:
    """Normalize ``name`` and reject values that cannot be stored."""
    normalized = normalize_tag_name(name)
    if not normalized:
        raise ValidationError("tag name is required")
    if len(normalized) > MAX_TAG_LENGTH:
        raise ValidationError(f"tag name must be at most {MAX_TAG_LENGTH} characters")
    if not _ALLOWED.match(normalized):
        raise ValidationError("tag name may only contain letters, numbers and hyphens")
    return normalized
