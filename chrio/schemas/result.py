"""Command results.

Every command returns exactly one of two variants, discriminated on
``status``. Callers must check the status before trusting ``data``.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field

from chrio.errors import ChrioError, ErrorKind


class Ok(BaseModel):
    """Successful command result."""

    status: Literal["ok"] = "ok"
    data: Any = Field(default=None, description="Command payload")

    @property
    def ok(self) -> bool:
        return True


class Err(BaseModel):
    """Failed command result."""

    status: Literal["error"] = "error"
    error: str = Field(description="Human-readable error message")
    kind: ErrorKind = Field(default=ErrorKind.UNKNOWN, description="Error category")

    @property
    def ok(self) -> bool:
        return False

    @classmethod
    def from_exception(cls, exc: Exception) -> Err:
        kind = exc.kind if isinstance(exc, ChrioError) else ErrorKind.UNKNOWN
        return cls(error=str(exc) or type(exc).__name__, kind=kind)


CommandResult = Annotated[Ok | Err, Field(discriminator="status")]
