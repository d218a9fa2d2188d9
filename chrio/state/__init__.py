"""Reactive in-memory state mirroring the Chrio store.

State objects cache what views display and reload it after every write.
Views observe them through StateEventEmitter listeners.
"""

from chrio.state.clients import ClientState
from chrio.state.events import StateEvent, StateEventEmitter, StateEventType
from chrio.state.sessions import SessionState
from chrio.state.todos import TodoState

__all__ = [
    "ClientState",
    "SessionState",
    "StateEvent",
    "StateEventEmitter",
    "StateEventType",
    "TodoState",
]
