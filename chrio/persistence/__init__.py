"""Chrio persistence layer.

Provides SQLite-backed storage for clients, sessions and todos, session
photo storage, and export of session comparisons (JSON/Markdown).
"""

from chrio.persistence.database import close_db, init_db
from chrio.persistence.export import export_diff_json, export_diff_markdown
from chrio.persistence.gateway import PersistenceGateway
from chrio.persistence.photos import PhotoStore

__all__ = [
    "PersistenceGateway",
    "PhotoStore",
    "close_db",
    "export_diff_json",
    "export_diff_markdown",
    "init_db",
]
