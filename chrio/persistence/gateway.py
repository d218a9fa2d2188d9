"""Persistence gateway for clients, sessions and todos.

Provides the PersistenceGateway class, the only place in Chrio that
issues SQL. Inputs are validated through the Pydantic payload schemas and
every value is bound as a statement parameter.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, TypeVar

import aiosqlite
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from chrio.errors import (
    ChrioError,
    NotFound,
    StorageUnavailable,
    UnknownError,
    ValidationError,
)
from chrio.schemas.client import Client, CreateClientDto, UpdateClientDto, utc_timestamp
from chrio.schemas.session import (
    PHOTO_POSITIONS,
    WRITABLE_FIELDS,
    CreateSessionDto,
    Session,
    UpdateSessionDto,
)
from chrio.schemas.todo import Todo

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_CLIENT_COLUMNS = "id, firstname, lastname, dob, sex, registration_date"

_SESSION_COLUMNS = ", ".join(
    ("id", "client_id", "datetime", "session_number", *WRITABLE_FIELDS, "measurements_json")
)


def _parse(model: type[ModelT], fields: ModelT | Mapping[str, Any]) -> ModelT:
    """Validate a payload, converting Pydantic errors to ValidationError."""
    if isinstance(fields, model):
        return fields
    try:
        return model.model_validate(dict(fields))
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'payload'}: {err['msg']}"
            for err in e.errors()
        )
        raise ValidationError(f"Invalid {model.__name__}: {problems}") from None
    except TypeError as e:
        raise ValidationError(f"Invalid {model.__name__}: {e}") from None


def _now() -> str:
    return utc_timestamp(datetime.now())


def _row_to_session(row: aiosqlite.Row) -> Session:
    data = dict(row)
    data["extra_measurements"] = json.loads(data.pop("measurements_json") or "{}")
    return Session.model_validate(data)


def _session_values(values: dict[str, Any]) -> dict[str, Any]:
    """Map payload fields to columns (extra measurements are stored as JSON)."""
    columns = {k: v for k, v in values.items() if k in WRITABLE_FIELDS}
    if "extra_measurements" in values:
        columns["measurements_json"] = json.dumps(
            values["extra_measurements"] or {}, sort_keys=True,
        )
    return columns


class PersistenceGateway:
    """Typed CRUD operations against the Chrio SQLite store.

    The connection is injected by the caller (see chrio.app). A gateway
    built without a connection reports every operation as
    StorageUnavailable instead of failing on attribute access.
    """

    def __init__(self, db: aiosqlite.Connection | None) -> None:
        self._db = db

    @property
    def available(self) -> bool:
        return self._db is not None

    @property
    def db(self) -> aiosqlite.Connection:
        if self._db is None:
            raise StorageUnavailable("Database is not available")
        return self._db

    @asynccontextmanager
    async def _guard(self, action: str) -> AsyncIterator[aiosqlite.Connection]:
        """Run statements, mapping sqlite errors onto the Chrio taxonomy."""
        db = self.db
        try:
            yield db
        except ChrioError:
            raise
        except sqlite3.IntegrityError as e:
            await db.rollback()
            if "FOREIGN KEY" in str(e):
                raise NotFound(f"{action}: referenced row does not exist") from e
            raise ValidationError(f"{action}: {e}") from e
        except sqlite3.Error as e:
            await db.rollback()
            raise UnknownError(f"{action} failed: {e}") from e

    async def _fetch_one(self, sql: str, params: tuple) -> aiosqlite.Row | None:
        async with self.db.execute(sql, params) as cursor:
            return await cursor.fetchone()

    # ── Clients ──────────────────────────────────────────────────

    async def insert_client(self, fields: CreateClientDto | Mapping[str, Any]) -> int:
        """Register a client and return its store-assigned id.

        The registration timestamp is stamped now unless the payload
        carries one.
        """
        dto = _parse(CreateClientDto, fields)
        registration_date = dto.registration_date or _now()
        async with self._guard("Insert client") as db:
            cursor = await db.execute(
                """
                INSERT INTO clients (firstname, lastname, dob, sex, registration_date)
                VALUES (?, ?, ?, ?, ?)
                """,
                (dto.firstname, dto.lastname, dto.dob, dto.sex.value, registration_date),
            )
            await db.commit()
        client_id = cursor.lastrowid
        logger.info("Registered client %s", client_id)
        return client_id

    async def list_clients(self) -> list[Client]:
        """Return all clients, most recently registered first."""
        async with self._guard("List clients") as db:
            async with db.execute(
                f"SELECT {_CLIENT_COLUMNS} FROM clients"  # noqa: S608
                " ORDER BY registration_date DESC, id DESC"
            ) as cursor:
                rows = await cursor.fetchall()
        return [Client.model_validate(dict(row)) for row in rows]

    async def get_client(self, client_id: int) -> Client:
        async with self._guard("Get client"):
            row = await self._fetch_one(
                f"SELECT {_CLIENT_COLUMNS} FROM clients WHERE id = ?",  # noqa: S608
                (client_id,),
            )
        if row is None:
            raise NotFound(f"Client {client_id} not found")
        return Client.model_validate(dict(row))

    async def update_client(
        self, client_id: int, fields: UpdateClientDto | Mapping[str, Any],
    ) -> None:
        """Overwrite the supplied fields of an existing client.

        Raises:
            NotFound: If no client has this id.
            ValidationError: If a field is malformed or the payload id
                disagrees with ``client_id``.
        """
        if isinstance(fields, UpdateClientDto):
            dto = fields
        else:
            dto = _parse(UpdateClientDto, {**fields, "id": client_id})
        if dto.id != client_id:
            raise ValidationError(f"Payload id {dto.id} does not match client {client_id}")

        changes = dto.changes()
        if not changes:
            await self.get_client(client_id)
            return

        assignments = ", ".join(f"{column} = ?" for column in changes)
        async with self._guard("Update client") as db:
            cursor = await db.execute(
                f"UPDATE clients SET {assignments} WHERE id = ?",  # noqa: S608
                (*changes.values(), client_id),
            )
            await db.commit()
        if cursor.rowcount == 0:
            raise NotFound(f"Client {client_id} not found")
        logger.info("Updated client %s (%s)", client_id, ", ".join(changes))

    async def _require_client(self, client_id: int) -> None:
        row = await self._fetch_one("SELECT 1 FROM clients WHERE id = ?", (client_id,))
        if row is None:
            raise NotFound(f"Client {client_id} not found")

    # ── Sessions ─────────────────────────────────────────────────

    async def insert_session(
        self, client_id: int, fields: CreateSessionDto | Mapping[str, Any] | None = None,
    ) -> int:
        """Record a session for an existing client and return its id.

        The timestamp and the next per-client session number are assigned
        inside the insert statement.

        Raises:
            NotFound: If the client does not exist.
        """
        if isinstance(fields, CreateSessionDto):
            dto = fields
        else:
            dto = _parse(CreateSessionDto, {**(fields or {}), "client_id": client_id})
        if dto.client_id != client_id:
            raise ValidationError(
                f"Payload client_id {dto.client_id} does not match client {client_id}"
            )

        columns = _session_values(dto.model_dump(exclude={"client_id"}))
        names = ", ".join(columns)
        placeholders = ", ".join("?" for _ in columns)
        async with self._guard("Insert session") as db:
            await self._require_client(client_id)
            cursor = await db.execute(
                f"""
                INSERT INTO sessions (client_id, datetime, session_number, {names})
                VALUES (?, ?, (
                    SELECT COALESCE(MAX(session_number), 0) + 1
                    FROM sessions WHERE client_id = ?
                ), {placeholders})
                """,  # noqa: S608
                (client_id, _now(), client_id, *columns.values()),
            )
            await db.commit()
        session_id = cursor.lastrowid
        logger.info("Recorded session %s for client %s", session_id, client_id)
        return session_id

    async def list_sessions_for_client(self, client_id: int) -> list[Session]:
        """Return a client's sessions, most recent first."""
        async with self._guard("List sessions") as db:
            async with db.execute(
                f"SELECT {_SESSION_COLUMNS} FROM sessions WHERE client_id = ?"  # noqa: S608
                " ORDER BY datetime DESC, session_number DESC",
                (client_id,),
            ) as cursor:
                rows = await cursor.fetchall()
        return [_row_to_session(row) for row in rows]

    async def get_session(self, session_id: int) -> Session:
        async with self._guard("Get session"):
            row = await self._fetch_one(
                f"SELECT {_SESSION_COLUMNS} FROM sessions WHERE id = ?",  # noqa: S608
                (session_id,),
            )
        if row is None:
            raise NotFound(f"Session {session_id} not found")
        return _row_to_session(row)

    async def update_session(
        self, session_id: int, fields: UpdateSessionDto | Mapping[str, Any],
    ) -> None:
        """Overwrite the supplied fields of an existing session."""
        if isinstance(fields, UpdateSessionDto):
            dto = fields
        else:
            dto = _parse(UpdateSessionDto, {**fields, "id": session_id})
        if dto.id != session_id:
            raise ValidationError(f"Payload id {dto.id} does not match session {session_id}")

        columns = _session_values(dto.changes())
        if not columns:
            await self.get_session(session_id)
            return

        assignments = ", ".join(f"{column} = ?" for column in columns)
        async with self._guard("Update session") as db:
            cursor = await db.execute(
                f"UPDATE sessions SET {assignments} WHERE id = ?",  # noqa: S608
                (*columns.values(), session_id),
            )
            await db.commit()
        if cursor.rowcount == 0:
            raise NotFound(f"Session {session_id} not found")
        logger.info("Updated session %s", session_id)

    async def delete_session(self, session_id: int) -> None:
        async with self._guard("Delete session") as db:
            cursor = await db.execute("DELETE FROM sessions WHERE id = ?", (session_id,))
            await db.commit()
        if cursor.rowcount == 0:
            raise NotFound(f"Session {session_id} not found")
        logger.info("Deleted session %s", session_id)

    async def next_session_number(self, client_id: int) -> int:
        """Return the number the client's next session will receive."""
        async with self._guard("Next session number"):
            await self._require_client(client_id)
            row = await self._fetch_one(
                "SELECT COALESCE(MAX(session_number), 0) + 1 FROM sessions"
                " WHERE client_id = ?",
                (client_id,),
            )
        return row[0]

    async def update_session_crop(
        self, session_id: int, image_type: str, crop_data: str,
    ) -> None:
        """Store the crop rectangle for one photo position of a session."""
        if image_type not in PHOTO_POSITIONS:
            raise ValidationError(
                f"Unknown image type {image_type!r}; expected one of {', '.join(PHOTO_POSITIONS)}"
            )
        column = f"{image_type}_crop"
        async with self._guard("Update crop") as db:
            cursor = await db.execute(
                f"UPDATE sessions SET {column} = ? WHERE id = ?",  # noqa: S608
                (crop_data, session_id),
            )
            await db.commit()
        if cursor.rowcount == 0:
            raise NotFound(f"Session {session_id} not found")

    # ── Todos ────────────────────────────────────────────────────

    async def add_todo(self, title: str) -> int:
        async with self._guard("Add todo") as db:
            cursor = await db.execute(
                "INSERT INTO todos (title, completed) VALUES (?, ?)", (title, 0),
            )
            await db.commit()
        return cursor.lastrowid

    async def list_todos(self) -> list[Todo]:
        async with self._guard("List todos") as db:
            async with db.execute(
                "SELECT id, title, completed FROM todos ORDER BY id"
            ) as cursor:
                rows = await cursor.fetchall()
        return [
            Todo(id=row["id"], title=row["title"], completed=bool(row["completed"]))
            for row in rows
        ]

    async def set_todo_completed(self, todo_id: int, completed: bool) -> None:
        async with self._guard("Update todo") as db:
            cursor = await db.execute(
                "UPDATE todos SET completed = ? WHERE id = ?", (int(completed), todo_id),
            )
            await db.commit()
        if cursor.rowcount == 0:
            raise NotFound(f"Todo {todo_id} not found")
