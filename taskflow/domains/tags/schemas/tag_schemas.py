"""Tag request/filter schemas."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from taskflow.core.utils.validation import FilterModel


class TagCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    color: Optional[str] = None


class TagUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    color: Optional[str] = None


class TagBulkCreate(BaseModel):
    names: List[str] = Field(min_length=1)
    color: Optional[str] = None


class TagListFilter(FilterModel):
    search: Optional[str] = None
    color: Optional[str] = None
