"""Reusable decorators for controllers/services."""

from __future__ import annotations

import logging
from functools import wraps
from typing import Callable, TypeVar

from sqlalchemy.exc import SQLAlchemyError

F = TypeVar("F", bound=Callable)

logger = logging.getLogger(__name__)


def default_on_storage_error(default: Callable[[], dict]):
    """Return ``default()`` instead of raising when a read-only rollup fails.

    The wrapped function must take the service context as its first argument;
    its session is rolled back so the request can keep using it.
    """

    def decorator(fn: F) -> F:
        @wraps(fn)
        def wrapper(ctx, *args, **kwargs):  # type: ignore[misc]
            try:
                return fn(ctx, *args, **kwargs)
            except SQLAlchemyError:
                logger.exception("%s failed, returning defaults", fn.__name__)
                ctx.session.rollback()
                return default()

        return wrapper  # type: ignore[return-value]

    return decorator