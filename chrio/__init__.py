"""Chrio — client and session records backed by a local SQLite store."""

__version__ = "0.1.0"

from chrio.app import ChrioApp
from chrio.comparator import SessionComparator
from chrio.errors import (
    ChrioError,
    ErrorKind,
    InvalidComparison,
    NotFound,
    StorageUnavailable,
    UnknownError,
    ValidationError,
)
from chrio.persistence.gateway import PersistenceGateway

__all__ = [
    "ChrioApp",
    "ChrioError",
    "ErrorKind",
    "InvalidComparison",
    "NotFound",
    "PersistenceGateway",
    "SessionComparator",
    "StorageUnavailable",
    "UnknownError",
    "ValidationError",
    "__version__",
]
