"""Ledger error taxonomy.

Every error is an ``HTTPException`` so route handlers let them propagate
and FastAPI renders ``{"detail": ...}`` with the matching status code.
The ``code`` attribute carries a stable machine-readable name
(``InvalidAmount``, ``GameNotFound``, ...).
"""

from fastapi import HTTPException, status


class LedgerError(HTTPException):
    """Base class for all ledger-core failures."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "LedgerError"

    def __init__(self, detail: str, code: str | None = None) -> None:
        super().__init__(status_code=type(self).status_code, detail=detail)
        self.code = code or self.default_code

    def __str__(self) -> str:
        return f"{self.code}: {self.detail}"


class ValidationError(LedgerError):
    """Bad input shape or range. Always client-correctable."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "ValidationError"


class NotFoundError(LedgerError):
    """A referenced entity does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    default_code = "NotFound"


class ConflictError(LedgerError):
    """Uniqueness violation or a lost optimistic-lock race."""

    status_code = status.HTTP_409_CONFLICT
    default_code = "Conflict"


class StorageError(LedgerError):
    """Persistence collaborator failure. Detail is kept generic."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_code = "StorageError"

    def __init__(self, detail: str = "Storage unavailable", code: str | None = None) -> None:
        super().__init__(detail, code)
