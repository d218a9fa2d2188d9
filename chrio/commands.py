"""Command boundary between the UI and the persistence layer.

Each command wraps one gateway, photo-store or comparator call and
returns a CommandResult: ``Ok(data=...)`` or ``Err(error=..., kind=...)``.
Exceptions never escape a command.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from chrio.comparator import SessionComparator
from chrio.errors import ChrioError, ValidationError
from chrio.persistence.gateway import PersistenceGateway
from chrio.persistence.photos import PhotoStore
from chrio.schemas.result import Err, Ok

logger = logging.getLogger(__name__)


async def _run(name: str, call: Callable[[], Awaitable[Any]]) -> Ok | Err:
    try:
        return Ok(data=await call())
    except ChrioError as e:
        logger.warning("Command %s failed: %s", name, e)
        return Err.from_exception(e)
    except Exception as e:
        logger.exception("Command %s raised an unexpected error", name)
        return Err.from_exception(e)


class Commands:
    """Async command surface used by the state layer."""

    def __init__(self, gateway: PersistenceGateway, photos: PhotoStore) -> None:
        self._gateway = gateway
        self._photos = photos
        self._comparator = SessionComparator(gateway)

    # ── Clients ──────────────────────────────────────────────────

    async def get_clients(self) -> Ok | Err:
        return await _run("get_clients", self._gateway.list_clients)

    async def add_client(self, client: Mapping[str, Any]) -> Ok | Err:
        return await _run("add_client", lambda: self._gateway.insert_client(client))

    async def update_client(self, client: Mapping[str, Any]) -> Ok | Err:
        """Update a client; the payload carries the ``id``."""

        async def call() -> None:
            fields = dict(client)
            client_id = fields.pop("id", None)
            if not isinstance(client_id, int):
                raise ValidationError("Client update requires an integer id")
            await self._gateway.update_client(client_id, fields)

        return await _run("update_client", call)

    # ── Sessions ─────────────────────────────────────────────────

    async def get_client_sessions(self, client_id: int) -> Ok | Err:
        return await _run(
            "get_client_sessions",
            lambda: self._gateway.list_sessions_for_client(client_id),
        )

    async def get_session(self, session_id: int) -> Ok | Err:
        return await _run("get_session", lambda: self._gateway.get_session(session_id))

    async def add_session(self, client_id: int, session: Mapping[str, Any]) -> Ok | Err:
        return await _run(
            "add_session", lambda: self._gateway.insert_session(client_id, session),
        )

    async def update_session(self, session: Mapping[str, Any]) -> Ok | Err:
        """Update a session; the payload carries the ``id``."""

        async def call() -> None:
            fields = dict(session)
            session_id = fields.pop("id", None)
            if not isinstance(session_id, int):
                raise ValidationError("Session update requires an integer id")
            await self._gateway.update_session(session_id, fields)

        return await _run("update_session", call)

    async def delete_session(self, session_id: int) -> Ok | Err:
        return await _run("delete_session", lambda: self._gateway.delete_session(session_id))

    async def get_next_session_number(self, client_id: int) -> Ok | Err:
        return await _run(
            "get_next_session_number",
            lambda: self._gateway.next_session_number(client_id),
        )

    async def update_session_crop(
        self, session_id: int, image_type: str, crop_data: str,
    ) -> Ok | Err:
        return await _run(
            "update_session_crop",
            lambda: self._gateway.update_session_crop(session_id, image_type, crop_data),
        )

    async def compare_sessions(
        self, client_id: int, session_id_a: int, session_id_b: int,
    ) -> Ok | Err:
        return await _run(
            "compare_sessions",
            lambda: self._comparator.compare(client_id, session_id_a, session_id_b),
        )

    # ── Photos ───────────────────────────────────────────────────

    async def save_image(
        self,
        client_id: int,
        client_firstname: str,
        session_no: int,
        image_type: str,
        base64_image: str,
    ) -> Ok | Err:
        async def call() -> str:
            return self._photos.save_image(
                client_id, client_firstname, session_no, image_type, base64_image,
            )

        return await _run("save_image", call)

    async def read_image_base64(self, path: str) -> Ok | Err:
        async def call() -> str:
            return self._photos.read_image_base64(path)

        return await _run("read_image_base64", call)

    # ── Todos ────────────────────────────────────────────────────

    async def get_todos(self) -> Ok | Err:
        return await _run("get_todos", self._gateway.list_todos)

    async def add_todo(self, title: str) -> Ok | Err:
        return await _run("add_todo", lambda: self._gateway.add_todo(title))

    async def set_todo_completed(self, todo_id: int, completed: bool) -> Ok | Err:
        return await _run(
            "set_todo_completed",
            lambda: self._gateway.set_todo_completed(todo_id, completed),
        )
