"""Commit/rollback helpers for service-layer writes."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session

from taskflow.core.errors import ConflictError, StorageUnavailable

logger = logging.getLogger(__name__)


@contextmanager
def atomic(session: Session) -> Iterator[Session]:
    """Run a unit of work and commit it, or roll everything back.

    Integrity violations surface as ConflictError (a uniqueness race lost to a
    concurrent writer); driver-level failures surface as StorageUnavailable.
    Any other exception is re-raised unchanged after the rollback.
    """
    try:
        yield session
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        logger.warning("Integrity error rolled back: %s", exc.orig)
        raise ConflictError("duplicate value") from exc
    except DBAPIError as exc:
        session.rollback()
        logger.exception("Storage failure rolled back")
        raise StorageUnavailable("storage is unavailable") from exc
    except Exception:
        session.rollback()
        raise
