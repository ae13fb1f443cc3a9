"""Domain level exceptions shared by repositories, services and the API."""

from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """Base class for errors that carry an envelope-friendly payload."""

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(DomainError, LookupError):
    """Raised when a caller required an aggregate that does not exist."""


class DuplicateError(DomainError):
    """Raised when a natural key or uniqueness constraint is violated."""


class DomainValidationError(DomainError, ValueError):
    """Raised when a request is well formed but semantically invalid."""


__all__ = [
    "DomainError",
    "DomainValidationError",
    "DuplicateError",
    "NotFoundError",
]
