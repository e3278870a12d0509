"""Integration request schemas."""

from __future__ import annotations

from typing import Any, Dict, List, Literal

from pydantic import BaseModel, Field

from taskflow.core.utils.validation import FilterModel


class EmailListFilter(FilterModel):
    max_results: int = Field(default=10, ge=1, le=50)


class ThreadSearchFilter(FilterModel):
    query: str = Field(min_length=1)
    max_results: int = Field(default=20, ge=1, le=50)


class ConvertEmailsRequest(BaseModel):
    email_ids: List[str]


class AnalyzeContextRequest(BaseModel):
    thread_ids: List[str]


class GmailCallbackRequest(BaseModel):
    code: str = Field(min_length=1)


class AcceptSuggestionRequest(BaseModel):
    suggestion_type: Literal["task", "journal_prompt"]
    suggestion_data: Dict[str, Any] = Field(default_factory=dict)
