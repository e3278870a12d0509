"""Journal request/filter schemas."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from taskflow.core.utils.validation import FilterModel

EntryType = Literal[
    "general",
    "reflection",
    "achievement",
    "idea",
    "mood",
    "goal_progress",
    "learning",
    "decision",
    "gratitude",
]
TimeOfDay = Literal["morning", "afternoon", "evening", "night"]


class Attachment(BaseModel):
    id: str = Field(min_length=1)
    filename: str = Field(min_length=1, max_length=255)
    url: str = Field(min_length=1)
    type: str = Field(min_length=1, max_length=100)
    size: int = Field(ge=0)


class JournalEntryCreate(BaseModel):
    content: str = Field(min_length=1)
    title: Optional[str] = Field(default=None, max_length=255)
    entry_type: EntryType = "general"
    entry_date: Optional[date] = None
    time_of_day: Optional[TimeOfDay] = None
    tags: List[str] = Field(default_factory=list)
    mood_rating: Optional[int] = Field(default=None, ge=1, le=10)
    energy_level: Optional[int] = Field(default=None, ge=1, le=10)
    related_task_ids: List[int] = Field(default_factory=list)
    related_project_ids: List[int] = Field(default_factory=list)
    attachments: List[Attachment] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class JournalEntryUpdate(BaseModel):
    content: Optional[str] = Field(default=None, min_length=1)
    title: Optional[str] = Field(default=None, max_length=255)
    entry_type: Optional[EntryType] = None
    entry_date: Optional[date] = None
    time_of_day: Optional[TimeOfDay] = None
    tags: Optional[List[str]] = None
    mood_rating: Optional[int] = Field(default=None, ge=1, le=10)
    energy_level: Optional[int] = Field(default=None, ge=1, le=10)
    related_task_ids: Optional[List[int]] = None
    related_project_ids: Optional[List[int]] = None
    attachments: Optional[List[Attachment]] = None
    metadata: Optional[Dict[str, Any]] = None


class QuickEntryCreate(BaseModel):
    content: str = Field(min_length=1)
    entry_type: EntryType = "general"
    mood_rating: Optional[int] = Field(default=None, ge=1, le=10)
    energy_level: Optional[int] = Field(default=None, ge=1, le=10)


class JournalListFilter(FilterModel):
    entry_type: Optional[EntryType] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    time_of_day: Optional[TimeOfDay] = None
    tags: Optional[List[str]] = None
    mood_min: Optional[int] = Field(default=None, ge=1, le=10)
    mood_max: Optional[int] = Field(default=None, ge=1, le=10)
    energy_min: Optional[int] = Field(default=None, ge=1, le=10)
    energy_max: Optional[int] = Field(default=None, ge=1, le=10)
    search: Optional[str] = None
    related_to_task: Optional[int] = None
    related_to_project: Optional[int] = None

    @field_validator("tags", mode="before")
    @classmethod
    def _split_tags(cls, value):
        if isinstance(value, str):
            value = value.split(",")
        if isinstance(value, list):
            value = [item.strip() for item in value if isinstance(item, str) and item.strip()]
            return value or None
        return value
