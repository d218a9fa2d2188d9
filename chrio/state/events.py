"""State change notifications.

State objects emit an event whenever a cached sequence is replaced, the
loading flag flips, or an error is recorded. Views register listeners and
re-render from the state object when notified.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

_HISTORY_LIMIT = 200


class StateEventType(StrEnum):
    """Types of state change events."""

    CLIENTS_CHANGED = "clients_changed"
    SESSIONS_CHANGED = "sessions_changed"
    SESSION_LOADED = "session_loaded"
    COMPARISON_READY = "comparison_ready"
    TODOS_CHANGED = "todos_changed"
    LOADING_CHANGED = "loading_changed"
    ERROR = "error"


class StateEvent(BaseModel):
    """A single state change notification."""

    type: StateEventType = Field(description="Event type")
    source: str = Field(
        default="",
        description="Name of the state object that emitted it (clients, sessions, todos)",
    )
    timestamp: float = Field(
        default_factory=time.time,
        description="Emission time (Unix seconds)",
    )
    data: dict[str, Any] = Field(
        default_factory=dict,
        description="Payload; keys depend on the event type",
    )


# Called with every matching StateEvent; may return an awaitable
StateListener = Callable[[StateEvent], Any]


@dataclass(frozen=True)
class _Subscription:
    listener: StateListener
    types: frozenset[StateEventType] | None

    def wants(self, event: StateEvent) -> bool:
        return self.types is None or event.type in self.types


class StateEventEmitter:
    """Fan-out of state changes to view listeners.

    One emitter is shared by the ClientState, SessionState and TodoState of
    an application; each event names its ``source`` so a view can tell a
    client-list reload from a session-list reload. A listener subscribes
    to every event or only to the types it renders.
    """

    def __init__(self) -> None:
        self._subscriptions: list[_Subscription] = []
        self._history: deque[StateEvent] = deque(maxlen=_HISTORY_LIMIT)

    @property
    def history(self) -> list[StateEvent]:
        """The most recent events, oldest first."""
        return list(self._history)

    def history_for(self, source: str) -> list[StateEvent]:
        return [e for e in self._history if e.source == source]

    def add_listener(self, listener: StateListener, *types: StateEventType) -> None:
        """Subscribe ``listener``, to ``types`` only when any are given."""
        self._subscriptions.append(_Subscription(listener, frozenset(types) or None))

    def remove_listener(self, listener: StateListener) -> None:
        """Drop every subscription of ``listener``."""
        self._subscriptions = [s for s in self._subscriptions if s.listener is not listener]

    async def emit(
        self, event_type: StateEventType, *, source: str = "", **data: Any,
    ) -> StateEvent:
        """Record an event and deliver it to the matching listeners.

        Delivery follows subscription order. A listener that raises is
        logged and skipped; the others are still called.
        """
        event = StateEvent(type=event_type, source=source, data=data)
        self._history.append(event)

        for subscription in list(self._subscriptions):
            if not subscription.wants(event):
                continue
            try:
                result = subscription.listener(event)
                if asyncio.iscoroutine(result):
                    await result
            except Exception:
                logger.exception("State listener failed on %s from %s", event_type, source or "?")
        return event
