"""Input validation helpers."""

from __future__ import annotations

import re
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from taskflow.core.errors import ValidationError

HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}){1,2}$")
DEFAULT_COLOR = "#6b7280"


def clean_text(value: Any) -> str | None:
    """Strip strings; empty strings become None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def require_text(value: Any, field: str) -> str:
    text = clean_text(value)
    if not text:
        raise ValidationError(f"{field} is required")
    return text


def validate_color(value: str | None) -> str:
    if not value:
        return DEFAULT_COLOR
    if not HEX_COLOR.match(value):
        raise ValidationError("color must be a hex value like #6b7280")
    return value.lower()


def validate_rating(value: Any, field: str, *, low: int = 1, high: int = 10) -> int | None:
    if value is None:
        return None
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{field} must be an integer") from exc
    if number < low or number > high:
        raise ValidationError(f"{field} must be between {low} and {high}")
    return number


def validate_choice(value: Any, field: str, choices) -> str:
    if value not in choices:
        raise ValidationError(f"{field} must be one of: {', '.join(choices)}")
    return value


def validate_mapping(value: Any, field: str) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValidationError(f"{field} must be an object")
    return dict(value)


def _empty_as_absent(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class FilterModel(BaseModel):
    """Base for list filters: empty strings are the same as absent keys."""

    model_config = ConfigDict(extra="ignore")

    limit: Optional[int] = Field(default=None, ge=0)
    offset: Optional[int] = Field(default=None, ge=0)

    @field_validator("*", mode="before")
    @classmethod
    def _blank_values(cls, value):
        return _empty_as_absent(value)


M = TypeVar("M", bound=BaseModel)


def coerce_model(schema_cls: Type[M], data: Any) -> M:
    """Accept a schema instance, a mapping or None and return a schema instance."""
    if data is None:
        return schema_cls()
    if isinstance(data, schema_cls):
        return data
    try:
        return schema_cls.model_validate(data)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or "input"
        raise ValidationError(f"{field}: {first.get('msg')}") from exc
