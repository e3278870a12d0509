"""Domain error taxonomy shared by every service.

Each error carries a short machine-readable ``kind`` and an HTTP status so the
app-level handler can render ``{"ok": false, "error": kind, "message": ...}``
without services knowing about Flask.
"""

from __future__ import annotations


class DomainError(ValueError):
    kind = "domain_error"
    status_code = 400

    def __init__(self, message: str | None = None, *, kind: str | None = None):
        if kind:
            self.kind = kind
        self.message = message or self.kind.replace("_", " ")
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"ok": False, "error": self.kind, "message": self.message}


class ValidationError(DomainError):
    """Malformed or missing input; raised before any write."""

    kind = "validation_error"
    status_code = 400


class NotFoundOrForbidden(DomainError):
    """Missing id and foreign-owned id are reported identically."""

    kind = "not_found"
    status_code = 404


class ConflictError(DomainError):
    kind = "conflict"
    status_code = 409


class StorageUnavailable(DomainError):
    kind = "storage_unavailable"
    status_code = 503


__all__ = [
    "DomainError",
    "ValidationError",
    "NotFoundOrForbidden",
    "ConflictError",
    "StorageUnavailable",
]
