"""Chrio exception hierarchy.

Every error raised by the persistence layer and the comparator carries an
ErrorKind so the command boundary can report it without inspecting
exception types.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorKind(StrEnum):
    """Error taxonomy surfaced at the command boundary."""

    STORAGE_UNAVAILABLE = "storage_unavailable"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    INVALID_COMPARISON = "invalid_comparison"
    UNKNOWN = "unknown"


class ChrioError(Exception):
    """Base exception for all Chrio errors."""

    kind: ErrorKind = ErrorKind.UNKNOWN


class StorageUnavailable(ChrioError):
    """Raised when the database could not be opened or initialized."""

    kind = ErrorKind.STORAGE_UNAVAILABLE


class NotFound(ChrioError):
    """Raised when an update, delete or lookup target does not exist."""

    kind = ErrorKind.NOT_FOUND


class ValidationError(ChrioError):
    """Raised when a supplied field is malformed (e.g. an unparseable date)."""

    kind = ErrorKind.VALIDATION


class InvalidComparison(ChrioError):
    """Raised when two sessions being compared belong to different clients."""

    kind = ErrorKind.INVALID_COMPARISON


class UnknownError(ChrioError):
    """Wraps an unexpected failure from the underlying store."""

    kind = ErrorKind.UNKNOWN
