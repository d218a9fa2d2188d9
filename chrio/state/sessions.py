"""Reactive session lists, one per visited client."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from chrio.schemas.diff import SessionDiff
from chrio.schemas.result import Err
from chrio.schemas.session import Session
from chrio.state.base import StateBase
from chrio.state.events import StateEventType

_CURRENT_KEY = "current_session"
_COMPARISON_KEY = "comparison"


def _sessions_key(client_id: int) -> tuple[str, int]:
    return ("sessions", client_id)


class SessionState(StateBase):
    """Cached sessions per client, the session being viewed, and the last comparison.

    Every write reloads the affected client's list; a write that touches
    the session being viewed also reloads ``current``.
    """

    source = "sessions"

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._sessions: dict[int, list[Session]] = {}
        self.current: Session | None = None
        self.comparison: SessionDiff | None = None

    def sessions_for(self, client_id: int) -> list[Session]:
        """Cached sessions for a client; empty if never loaded."""
        return list(self._sessions.get(client_id, []))

    def is_loaded(self, client_id: int) -> bool:
        return client_id in self._sessions

    async def refresh_sessions(self, client_id: int) -> bool:
        """Reload one client's sessions. Returns True when the cache was replaced."""
        key = _sessions_key(client_id)
        ticket = self._ticket(key)
        async with self._busy():
            result = await self._commands.get_client_sessions(client_id)

        if not self._is_current(key, ticket):
            return False
        if isinstance(result, Err):
            await self._fail(result, "Load sessions")
            return False

        self._sessions[client_id] = list(result.data)
        self.clear_error()
        await self._emit(
            StateEventType.SESSIONS_CHANGED,
            client_id=client_id,
            count=len(self._sessions[client_id]),
        )
        return True

    async def load_session(self, session_id: int) -> Session | None:
        """Fetch one session into ``current``."""
        ticket = self._ticket(_CURRENT_KEY)
        async with self._busy():
            result = await self._commands.get_session(session_id)

        if not self._is_current(_CURRENT_KEY, ticket):
            return self.current
        if isinstance(result, Err):
            await self._fail(result, "Load session")
            return None

        self.current = result.data
        self.clear_error()
        await self._emit(StateEventType.SESSION_LOADED, session_id=session_id)
        return self.current

    async def create_session(self, client_id: int, fields: Mapping[str, Any]) -> int | None:
        """Record a session for ``client_id`` and reload that client's sessions."""
        async with self._busy():
            result = await self._commands.add_session(client_id, fields)
        if isinstance(result, Err):
            await self._fail(result, "Add session")
            return None

        await self.refresh_sessions(client_id)
        return result.data

    async def update_session_entry(self, client_id: int, fields: Mapping[str, Any]) -> bool:
        """Update the session identified by ``fields["id"]`` and reload."""
        async with self._busy():
            result = await self._commands.update_session(fields)
        if isinstance(result, Err):
            await self._fail(result, "Update session")
            return False

        await self._reload_after_write(client_id, fields.get("id"))
        return True

    async def update_crop(
        self, client_id: int, session_id: int, image_type: str, crop_data: str,
    ) -> bool:
        """Store a photo crop for a session and reload."""
        async with self._busy():
            result = await self._commands.update_session_crop(session_id, image_type, crop_data)
        if isinstance(result, Err):
            await self._fail(result, "Update crop")
            return False

        await self._reload_after_write(client_id, session_id)
        return True

    async def delete_session_entry(self, client_id: int, session_id: int) -> bool:
        """Delete a session and reload the client's sessions."""
        async with self._busy():
            result = await self._commands.delete_session(session_id)
        if isinstance(result, Err):
            await self._fail(result, "Delete session")
            return False

        if self.current is not None and self.current.id == session_id:
            self._ticket(_CURRENT_KEY)
            self.current = None
        await self.refresh_sessions(client_id)
        return True

    async def compare(
        self, client_id: int, session_id_a: int, session_id_b: int,
    ) -> SessionDiff | None:
        """Compare two of a client's sessions and keep the result in ``comparison``."""
        ticket = self._ticket(_COMPARISON_KEY)
        async with self._busy():
            result = await self._commands.compare_sessions(client_id, session_id_a, session_id_b)

        if not self._is_current(_COMPARISON_KEY, ticket):
            return self.comparison
        if isinstance(result, Err):
            await self._fail(result, "Compare sessions")
            return None

        self.comparison = result.data
        self.clear_error()
        await self._emit(
            StateEventType.COMPARISON_READY,
            client_id=client_id,
            session_a=session_id_a,
            session_b=session_id_b,
        )
        return self.comparison

    async def _reload_after_write(self, client_id: int, session_id: Any) -> None:
        await self.refresh_sessions(client_id)
        if self.current is not None and self.current.id == session_id:
            await self.load_session(session_id)
