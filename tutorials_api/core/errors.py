from __future__ import annotations

from typing import Any, Optional


class RepositoryError(Exception):
    """Base class for errors surfaced by the data-access layer."""

    error_type = "repository_error"

    def __init__(self, message: str, *, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class StorageUnavailable(RepositoryError):
    """The database could not be reached or the connection was lost."""

    error_type = "storage_unavailable"


class InvalidQuery(RepositoryError):
    """
    A structured query could not be built.

    Raised before any SQL is sent: unknown fields, unsupported operators,
    malformed sort specifications, bad page requests, or a raw statement passed
    where only structured queries are accepted.
    """

    error_type = "invalid_query"


class InvalidRange(InvalidQuery):
    """An inclusive range whose lower bound is greater than its upper bound."""

    error_type = "invalid_range"


class ConstraintViolation(RepositoryError):
    """The database rejected a write (duplicate key, missing required value)."""

    error_type = "constraint_violation"


class NotFound(RepositoryError):
    """No record matched the given identifier."""

    error_type = "not_found"
