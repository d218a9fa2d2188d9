"""Reactive todo list."""

from __future__ import annotations

from typing import Any

from chrio.schemas.result import Err
from chrio.schemas.todo import Todo
from chrio.state.base import StateBase
from chrio.state.events import StateEventType

_TODOS_KEY = "todos"


class TodoState(StateBase):
    """Cached todo list in creation order."""

    source = "todos"

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._todos: list[Todo] = []

    @property
    def todos(self) -> list[Todo]:
        return list(self._todos)

    async def refresh_todos(self) -> bool:
        ticket = self._ticket(_TODOS_KEY)
        async with self._busy():
            result = await self._commands.get_todos()

        if not self._is_current(_TODOS_KEY, ticket):
            return False
        if isinstance(result, Err):
            await self._fail(result, "Load todos")
            return False

        self._todos = list(result.data)
        self.clear_error()
        await self._emit(StateEventType.TODOS_CHANGED, count=len(self._todos))
        return True

    async def add_todo(self, title: str) -> int | None:
        async with self._busy():
            result = await self._commands.add_todo(title)
        if isinstance(result, Err):
            await self._fail(result, "Add todo")
            return None

        await self.refresh_todos()
        return result.data

    async def toggle_todo(self, todo_id: int) -> bool:
        """Flip the completion flag of a cached todo."""
        current = next((t for t in self._todos if t.id == todo_id), None)
        completed = not current.completed if current is not None else True
        async with self._busy():
            result = await self._commands.set_todo_completed(todo_id, completed)
        if isinstance(result, Err):
            await self._fail(result, "Update todo")
            return False

        await self.refresh_todos()
        return True
