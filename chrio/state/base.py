"""Shared behavior for reactive state objects.

A state object caches data loaded through the command boundary. It never
patches its cache locally: every write is followed by a reload, and a
failed command records an error while leaving the cache as it was.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Hashable
from contextlib import asynccontextmanager
from typing import Any

from chrio.commands import Commands
from chrio.errors import ErrorKind
from chrio.schemas.result import Err
from chrio.state.events import StateEventEmitter, StateEventType

logger = logging.getLogger(__name__)


class StateBase:
    """Loading/error flags and request sequencing for state objects."""

    # Tags every event this object emits
    source = ""

    def __init__(self, commands: Commands, events: StateEventEmitter) -> None:
        self._commands = commands
        self._events = events
        self._pending = 0
        self._sequence = 0
        self._latest: dict[Hashable, int] = {}
        self.error: str | None = None
        self.error_kind: ErrorKind | None = None

    @property
    def loading(self) -> bool:
        return self._pending > 0

    @property
    def has_error(self) -> bool:
        return self.error is not None

    def _ticket(self, key: Hashable) -> int:
        """Issue a request number for ``key``; later tickets supersede earlier ones."""
        self._sequence += 1
        self._latest[key] = self._sequence
        return self._sequence

    def _is_current(self, key: Hashable, ticket: int) -> bool:
        if self._latest.get(key) == ticket:
            return True
        logger.debug("Discarding superseded result for %s (request %d)", key, ticket)
        return False

    @asynccontextmanager
    async def _busy(self) -> AsyncIterator[None]:
        self._pending += 1
        if self._pending == 1:
            await self._emit(StateEventType.LOADING_CHANGED, loading=True)
        try:
            yield
        finally:
            self._pending -= 1
            if self._pending == 0:
                await self._emit(StateEventType.LOADING_CHANGED, loading=False)

    async def _fail(self, result: Err, action: str) -> None:
        self.error = result.error
        self.error_kind = result.kind
        logger.warning("%s failed (%s): %s", action, result.kind, result.error)
        await self._emit(
            StateEventType.ERROR, action=action, kind=result.kind.value, error=result.error,
        )

    async def _emit(self, event_type: StateEventType, **data: Any) -> None:
        await self._events.emit(event_type, source=self.source, **data)

    def clear_error(self) -> None:
        """Dismiss the current error, e.g. after the view has shown it."""
        self.error = None
        self.error_kind = None
