"""Typed schemas for user IO."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from taskflow.core.auth.password import MIN_PASSWORD_LENGTH, check_password_strength

if TYPE_CHECKING:
    from taskflow.core.users.models import User


class ProfileUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None


class SettingsUpdateRequest(BaseModel):
    settings: Dict[str, Any]


class PasswordChangeRequest(BaseModel):
    current_password: str
    new_password: str = Field(min_length=MIN_PASSWORD_LENGTH)

    @field_validator("new_password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_strength(v)


class UserResponse(BaseModel):
    # Response should not re-validate persisted emails
    id: int
    name: str
    email: str
    settings: Dict[str, Any] = {}
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


def serialize_user(user: "User") -> UserResponse:
    return UserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        settings=dict(user.settings or {}),
        created_at=user.created_at.isoformat() if user.created_at else None,
        updated_at=user.updated_at.isoformat() if user.updated_at else None,
    )
