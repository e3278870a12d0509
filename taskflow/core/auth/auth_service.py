"""Authentication service layer."""

from __future__ import annotations

import logging
from typing import Optional

from flask_jwt_extended import create_access_token, create_refresh_token
from sqlalchemy import func

from taskflow.core.auth.models import TokenBlocklist
from taskflow.core.auth.password import hash_password, verify_password
from taskflow.core.auth.schemas import RegisterRequest
from taskflow.core.context import ServiceContext
from taskflow.core.errors import ConflictError
from taskflow.core.users.models import User
from taskflow.core.utils.transactions import atomic

logger = logging.getLogger(__name__)


def find_user_by_email(ctx: ServiceContext, email: str) -> Optional[User]:
    normalized = (email or "").strip().lower()
    return ctx.session.query(User).filter(func.lower(User.email) == normalized).first()


def register_user(ctx: ServiceContext, payload: RegisterRequest) -> User:
    """Create a user account; emails are unique regardless of case."""
    normalized_email = payload.email.strip().lower()
    if find_user_by_email(ctx, normalized_email):
        raise ConflictError("an account with this email already exists", kind="email_already_exists")
    user = User(
        name=payload.name.strip(),
        email=normalized_email,
        password_hash=hash_password(payload.password),
        settings={},
    )
    with atomic(ctx.session):
        ctx.session.add(user)
    logger.info("Registered user %s", user.id)
    return user


def authenticate_user(ctx: ServiceContext, email: str, password: str) -> Optional[User]:
    """Return the user if credentials are valid and the account is not deleted."""
    user = find_user_by_email(ctx, email)
    if not user or user.is_deleted:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def issue_tokens(user: User) -> dict[str, str]:
    """Create access and refresh tokens for a user."""
    identity = str(user.id)
    return {
        "access_token": create_access_token(identity=identity),
        "refresh_token": create_refresh_token(identity=identity),
    }


def revoke_token(ctx: ServiceContext, jti: str, user_id: int | None = None) -> None:
    if is_token_revoked(ctx, jti):
        return
    with atomic(ctx.session):
        ctx.session.add(TokenBlocklist(jti=jti, user_id=user_id))


def is_token_revoked(ctx: ServiceContext, jti: str) -> bool:
    return ctx.session.query(TokenBlocklist.id).filter(TokenBlocklist.jti == jti).first() is not None
