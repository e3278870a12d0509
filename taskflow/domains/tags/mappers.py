"""DTO mappers for tags."""

from __future__ import annotations

from typing import Optional

from taskflow.domains.tags.models.tag_models import Tag


def map_tag(tag: Tag, usage_count: Optional[int] = None) -> dict:
    data = {
        "id": tag.id,
        "name": tag.name,
        "color": tag.color,
        "created_at": tag.created_at.isoformat() if tag.created_at else None,
        "updated_at": tag.updated_at.isoformat() if tag.updated_at else None,
    }
    if usage_count is not None:
        data["usage_count"] = usage_count
    return data
