"""Todo schema."""

from __future__ import annotations

from pydantic import BaseModel, Field


class Todo(BaseModel):
    """A todo item."""

    id: int = Field(description="Store-assigned identifier")
    title: str = Field(default="", description="Todo title")
    completed: bool = Field(default=False, description="Whether the todo is done")
