"""Tests for chrio.state.events — state change notifications."""

from __future__ import annotations

import pytest

from chrio.state.events import StateEvent, StateEventEmitter, StateEventType

# ══════════════════════════════════════════════════════════════════
# StateEvent Schema
# ══════════════════════════════════════════════════════════════════


class TestStateEvent:
    """StateEvent schema tests."""

    def test_create_event_with_defaults(self):
        event = StateEvent(type=StateEventType.CLIENTS_CHANGED)
        assert event.type == StateEventType.CLIENTS_CHANGED
        assert event.timestamp > 0
        assert event.data == {}

    def test_event_serializes_to_dict(self):
        event = StateEvent(type=StateEventType.ERROR, data={"error": "fail"})
        d = event.model_dump()
        assert d["type"] == "error"
        assert d["data"]["error"] == "fail"
        assert "timestamp" in d

    def test_event_type_is_string(self):
        assert StateEventType.LOADING_CHANGED == "loading_changed"
        assert str(StateEventType.COMPARISON_READY) == "comparison_ready"


# ══════════════════════════════════════════════════════════════════
# StateEventEmitter
# ══════════════════════════════════════════════════════════════════


class TestStateEventEmitter:
    """StateEventEmitter tests."""

    @pytest.mark.asyncio()
    async def test_emit_calls_sync_listener(self):
        emitter = StateEventEmitter()
        received = []
        emitter.add_listener(lambda e: received.append(e))

        await emitter.emit(StateEventType.SESSIONS_CHANGED, client_id=3, count=2)

        assert len(received) == 1
        assert received[0].type == StateEventType.SESSIONS_CHANGED
        assert received[0].data == {"client_id": 3, "count": 2}

    @pytest.mark.asyncio()
    async def test_emit_calls_async_listener(self):
        emitter = StateEventEmitter()
        received = []

        async def async_listener(event):
            received.append(event)

        emitter.add_listener(async_listener)
        await emitter.emit(StateEventType.TODOS_CHANGED, count=0)

        assert [e.type for e in received] == [StateEventType.TODOS_CHANGED]

    @pytest.mark.asyncio()
    async def test_listener_exception_does_not_propagate(self):
        emitter = StateEventEmitter()
        emitter.add_listener(lambda e: 1 / 0)
        received = []
        emitter.add_listener(lambda e: received.append(e))

        await emitter.emit(StateEventType.ERROR, error="boom")

        assert len(received) == 1

    @pytest.mark.asyncio()
    async def test_remove_listener(self):
        emitter = StateEventEmitter()
        received = []
        listener = lambda e: received.append(e)  # noqa: E731
        emitter.add_listener(listener)
        emitter.remove_listener(listener)

        await emitter.emit(StateEventType.CLIENTS_CHANGED)

        assert received == []

    @pytest.mark.asyncio()
    async def test_history_returns_copy(self):
        emitter = StateEventEmitter()
        await emitter.emit(StateEventType.CLIENTS_CHANGED)
        history = emitter.history
        history.clear()
        assert len(emitter.history) == 1

    @pytest.mark.asyncio()
    async def test_history_is_bounded(self):
        emitter = StateEventEmitter()
        for i in range(250):
            await emitter.emit(StateEventType.LOADING_CHANGED, n=i)

        history = emitter.history
        assert len(history) == 200
        assert history[0].data["n"] == 50
        assert history[-1].data["n"] == 249

    @pytest.mark.asyncio()
    async def test_typed_listener_receives_only_its_types(self):
        emitter = StateEventEmitter()
        received = []
        emitter.add_listener(
            lambda e: received.append(e.type),
            StateEventType.CLIENTS_CHANGED,
            StateEventType.ERROR,
        )

        await emitter.emit(StateEventType.LOADING_CHANGED, loading=True)
        await emitter.emit(StateEventType.CLIENTS_CHANGED, count=1)
        await emitter.emit(StateEventType.SESSIONS_CHANGED, client_id=1, count=0)
        await emitter.emit(StateEventType.ERROR, error="x")

        assert received == [StateEventType.CLIENTS_CHANGED, StateEventType.ERROR]
        assert len(emitter.history) == 4

    @pytest.mark.asyncio()
    async def test_emit_tags_source_and_returns_event(self):
        emitter = StateEventEmitter()

        event = await emitter.emit(StateEventType.TODOS_CHANGED, source="todos", count=2)

        assert event.source == "todos"
        assert event.data == {"count": 2}
        assert emitter.history[-1] is event

    @pytest.mark.asyncio()
    async def test_history_for_filters_by_source(self):
        emitter = StateEventEmitter()
        await emitter.emit(StateEventType.LOADING_CHANGED, source="clients", loading=True)
        await emitter.emit(StateEventType.LOADING_CHANGED, source="sessions", loading=True)
        await emitter.emit(StateEventType.CLIENTS_CHANGED, source="clients", count=0)

        assert [e.type for e in emitter.history_for("clients")] == [
            StateEventType.LOADING_CHANGED,
            StateEventType.CLIENTS_CHANGED,
        ]
        assert len(emitter.history_for("sessions")) == 1
        assert emitter.history_for("todos") == []

    @pytest.mark.asyncio()
    async def test_remove_listener_drops_every_subscription(self):
        emitter = StateEventEmitter()
        received = []
        listener = lambda e: received.append(e)  # noqa: E731
        emitter.add_listener(listener, StateEventType.ERROR)
        emitter.add_listener(listener)
        emitter.remove_listener(listener)

        await emitter.emit(StateEventType.ERROR, error="x")

        assert received == []
