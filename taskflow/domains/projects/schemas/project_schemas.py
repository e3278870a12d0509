"""Project request/filter schemas."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from taskflow.core.utils.validation import FilterModel


class ProjectCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    color: Optional[str] = None


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    color: Optional[str] = None
    is_archived: Optional[bool] = None


class ProjectListFilter(FilterModel):
    include_archived: bool = False
    search: Optional[str] = None

    @field_validator("include_archived", mode="before")
    @classmethod
    def _default_flag(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return False
        return value


class ProjectReorder(BaseModel):
    project_ids: List[int] = Field(min_length=1)


class ProjectDuplicate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)


class ProjectWithContextCreate(ProjectCreate):
    email_thread_ids: List[str] = Field(default_factory=list)
    ai_enhanced: bool = False
    metadata: Dict[str, Any] = Field(default_factory=dict)
