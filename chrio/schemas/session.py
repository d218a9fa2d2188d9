"""Session schemas.

A session is one recorded measurement set for a client: body height and
weight, four posture photographs with their crop rectangles, optional
free-form notes, and any number of extra named measurements.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Photo positions captured per session. Each has a path column and a
# matching ``<position>_crop`` column.
PHOTO_POSITIONS: tuple[str, ...] = (
    "anterior",
    "posterior",
    "right_lateral",
    "left_lateral",
)

# Measurement columns in declaration order. The comparator emits fields
# in this order, followed by notes and then extra measurements by name.
MEASUREMENT_FIELDS: tuple[str, ...] = (
    "height",
    "weight",
    *PHOTO_POSITIONS,
    *(f"{position}_crop" for position in PHOTO_POSITIONS),
)

# Every column a caller may write on a session row.
WRITABLE_FIELDS: tuple[str, ...] = (*MEASUREMENT_FIELDS, "notes")

# Names an extra measurement may not take: they would be shadowed by a
# column of the same name when the session is read or compared.
RESERVED_NAMES: frozenset[str] = frozenset(
    (*WRITABLE_FIELDS, "id", "client_id", "datetime", "session_number"),
)

MeasurementValue = float | int | str


class _SessionFields(BaseModel):
    """Columns shared by the Session record and its payloads."""

    height: float | None = Field(default=None, ge=0, description="Height in cm")
    weight: float | None = Field(default=None, ge=0, description="Weight in kg")
    anterior: str | None = Field(default=None, description="Anterior photo path")
    posterior: str | None = Field(default=None, description="Posterior photo path")
    right_lateral: str | None = Field(default=None, description="Right lateral photo path")
    left_lateral: str | None = Field(default=None, description="Left lateral photo path")
    notes: str | None = Field(default=None, description="Free-form practitioner notes")
    anterior_crop: str | None = Field(default=None)
    posterior_crop: str | None = Field(default=None)
    right_lateral_crop: str | None = Field(default=None)
    left_lateral_crop: str | None = Field(default=None)
    extra_measurements: dict[str, MeasurementValue] = Field(
        default_factory=dict,
        description="Session-type-dependent measurements keyed by name",
    )

    @field_validator("extra_measurements")
    @classmethod
    def _no_reserved_names(
        cls, value: dict[str, MeasurementValue],
    ) -> dict[str, MeasurementValue]:
        clashes = sorted(name for name in value if name in RESERVED_NAMES)
        if clashes:
            raise ValueError(
                f"extra measurement names clash with session fields: {', '.join(clashes)}"
            )
        return value


class Session(_SessionFields):
    """A session as stored in the database."""

    id: int = Field(description="Store-assigned identifier")
    client_id: int = Field(description="Owning client")
    datetime: str = Field(description="ISO-8601 timestamp assigned at insert")
    session_number: int = Field(ge=1, description="1-based number within the client")

    def field_value(self, name: str) -> Any:
        """Return a declared column or an extra measurement, or None when unset."""
        if name in WRITABLE_FIELDS:
            return getattr(self, name)
        return self.extra_measurements.get(name)


class CreateSessionDto(_SessionFields):
    """Payload for recording a new session.

    ``datetime`` and ``session_number`` are always assigned by the store.
    """

    model_config = ConfigDict(extra="forbid")

    client_id: int = Field(description="Owning client")


class UpdateSessionDto(_SessionFields):
    """Partial update for an existing session.

    Fields left unset are not written. Setting a field to ``None`` clears
    it. ``extra_measurements``, when given, replaces the stored mapping.
    """

    model_config = ConfigDict(extra="forbid")

    id: int = Field(description="Identifier of the session to update")

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude={"id"})
