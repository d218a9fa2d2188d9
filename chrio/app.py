"""Application composition root.

ChrioApp opens the database once, wires the gateway, photo store,
command boundary and state objects around it, and releases the handle
on close. Nothing else in Chrio holds a connection.
"""

from __future__ import annotations

import logging

import aiosqlite

from chrio.commands import Commands
from chrio.errors import StorageUnavailable
from chrio.persistence.database import close_db, init_db
from chrio.persistence.gateway import PersistenceGateway
from chrio.persistence.photos import PhotoStore
from chrio.schemas.config import AppConfig
from chrio.state.clients import ClientState
from chrio.state.events import StateEventEmitter
from chrio.state.sessions import SessionState
from chrio.state.todos import TodoState

logger = logging.getLogger(__name__)


class ChrioApp:
    """Owns the store handle and the objects built on top of it.

    When the database cannot be opened the app still starts:
    ``storage_error`` records why and every command reports
    StorageUnavailable through the state objects.
    """

    def __init__(
        self,
        db: aiosqlite.Connection | None,
        config: AppConfig,
        storage_error: StorageUnavailable | None = None,
    ) -> None:
        self.config = config
        self.storage_error = storage_error
        self._db = db

        self.gateway = PersistenceGateway(db)
        self.photos = PhotoStore(config.photos_path)
        self.commands = Commands(self.gateway, self.photos)
        self.events = StateEventEmitter()
        self.clients = ClientState(self.commands, self.events)
        self.sessions = SessionState(self.commands, self.events)
        self.todos = TodoState(self.commands, self.events)

    @classmethod
    async def open(cls, config: AppConfig) -> ChrioApp:
        """Initialize the database and build the application."""
        try:
            db = await init_db(config.db_path)
        except StorageUnavailable as e:
            logger.error("Persistence unavailable: %s", e)
            return cls(None, config, storage_error=e)
        return cls(db, config)

    @property
    def storage_available(self) -> bool:
        return self._db is not None

    async def close(self) -> None:
        if self._db is not None:
            await close_db(self._db)
            self._db = None

    async def __aenter__(self) -> ChrioApp:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
