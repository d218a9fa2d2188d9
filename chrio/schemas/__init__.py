"""Chrio schema definitions.

Pydantic v2 models for persisted entities and command payloads, plus the
dataclasses describing a session diff.
"""

from chrio.schemas.client import Client, CreateClientDto, Sex, UpdateClientDto
from chrio.schemas.config import AppConfig
from chrio.schemas.diff import ABSENT, FieldDiff, SessionDiff
from chrio.schemas.result import CommandResult, Err, Ok
from chrio.schemas.session import (
    MEASUREMENT_FIELDS,
    PHOTO_POSITIONS,
    CreateSessionDto,
    Session,
    UpdateSessionDto,
)
from chrio.schemas.todo import Todo

__all__ = [
    "ABSENT",
    "AppConfig",
    "Client",
    "CommandResult",
    "CreateClientDto",
    "CreateSessionDto",
    "Err",
    "FieldDiff",
    "MEASUREMENT_FIELDS",
    "Ok",
    "PHOTO_POSITIONS",
    "Session",
    "SessionDiff",
    "Sex",
    "Todo",
    "UpdateClientDto",
    "UpdateSessionDto",
]
