"""Auth persistence: revoked token ids."""

from __future__ import annotations

from sqlalchemy.orm import Mapped, mapped_column

from taskflow.core.users.models import TimestampMixin
from taskflow.extensions import db


class TokenBlocklist(db.Model, TimestampMixin):
    __tablename__ = "token_blocklist"

    id: Mapped[int] = mapped_column(primary_key=True)
    jti: Mapped[str] = mapped_column(db.String(64), unique=True, nullable=False, index=True)
    user_id: Mapped[int | None] = mapped_column(db.ForeignKey("user.id", ondelete="CASCADE"), index=True)
