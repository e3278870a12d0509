"""Query-building helpers shared by the list services."""

from __future__ import annotations

from typing import Any

from sqlalchemy import cast, func, literal, or_, select
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Query, Session

LIKE_ESCAPE = "\\"


def blank(value: Any) -> bool:
    """Absent and empty-string filter values impose no constraint."""
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    if isinstance(value, (list, tuple, set)) and not value:
        return True
    return False


def escape_like(text: str) -> str:
    return (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def substring_match(text: str, *columns):
    """Case-insensitive substring match of ``text`` against any of ``columns``."""
    pattern = f"%{escape_like(text)}%"
    return or_(*(column.ilike(pattern, escape=LIKE_ESCAPE) for column in columns))


def json_array_contains(session: Session, column, value: Any):
    """Condition that the JSON array stored in ``column`` contains ``value``."""
    if session.get_bind().dialect.name == "postgresql":
        return cast(column, JSONB).contains([value])
    each = func.json_each(column).table_valued("value")
    return select(literal(1)).select_from(each).where(each.c.value == value).exists()


def paginate(query: Query, *, limit: int | None = None, offset: int | None = None) -> Query:
    """Apply offset/limit after ordering; no limit means the full result set."""
    if offset:
        query = query.offset(offset)
    if limit is not None:
        query = query.limit(limit)
    return query
