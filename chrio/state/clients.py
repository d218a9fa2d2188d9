"""Reactive client list."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from chrio.schemas.client import Client
from chrio.schemas.result import Err
from chrio.state.base import StateBase
from chrio.state.events import StateEventType

_CLIENTS_KEY = "clients"


class ClientState(StateBase):
    """Cached list of clients, most recently registered first.

    ``clients`` is only ever replaced wholesale by a successful reload.
    After a failed reload it still holds the last good list and
    ``error`` describes the failure.
    """

    source = "clients"

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._clients: list[Client] = []
        self.loaded = False

    @property
    def clients(self) -> list[Client]:
        return list(self._clients)

    def find(self, client_id: int) -> Client | None:
        for client in self._clients:
            if client.id == client_id:
                return client
        return None

    async def refresh_clients(self) -> bool:
        """Reload the client list. Returns True when the cache was replaced."""
        ticket = self._ticket(_CLIENTS_KEY)
        async with self._busy():
            result = await self._commands.get_clients()

        if not self._is_current(_CLIENTS_KEY, ticket):
            return False
        if isinstance(result, Err):
            await self._fail(result, "Load clients")
            return False

        self._clients = list(result.data)
        self.loaded = True
        self.clear_error()
        await self._emit(StateEventType.CLIENTS_CHANGED, count=len(self._clients))
        return True

    async def create_client(self, fields: Mapping[str, Any]) -> int | None:
        """Register a client and reload the list.

        Returns the new client id, or None when the insert failed.
        """
        async with self._busy():
            result = await self._commands.add_client(fields)
        if isinstance(result, Err):
            await self._fail(result, "Add client")
            return None

        await self.refresh_clients()
        return result.data

    async def update_client_entry(self, fields: Mapping[str, Any]) -> bool:
        """Update the client identified by ``fields["id"]`` and reload the list."""
        async with self._busy():
            result = await self._commands.update_client(fields)
        if isinstance(result, Err):
            await self._fail(result, "Update client")
            return False

        await self.refresh_clients()
        return True
