"""Client schemas.

Defines the persisted Client record and the create/update payloads
accepted by the persistence gateway.
"""

from __future__ import annotations

from datetime import UTC, date, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Sex(StrEnum):
    """Recorded sex of a client, stored as a single letter."""

    MALE = "M"
    FEMALE = "F"
    OTHER = "O"


def utc_timestamp(moment: datetime) -> str:
    """Render an instant as UTC ISO-8601 with microseconds.

    Naive values are taken as local time. Stored timestamps all share this
    form so text ordering matches chronological ordering.
    """
    return moment.astimezone(UTC).isoformat(timespec="microseconds")


def _check_dob(value: str) -> str:
    try:
        date.fromisoformat(value)
    except ValueError:
        raise ValueError(f"dob must be an ISO-8601 date (YYYY-MM-DD), got {value!r}") from None
    return value


class Client(BaseModel):
    """A client as stored in the database."""

    id: int = Field(description="Store-assigned identifier")
    firstname: str = Field(description="First name")
    lastname: str = Field(description="Last name")
    dob: str = Field(description="Date of birth (ISO-8601 date)")
    sex: Sex = Field(description="Recorded sex")
    registration_date: str = Field(description="ISO-8601 timestamp assigned at insert")

    @property
    def full_name(self) -> str:
        return f"{self.firstname} {self.lastname}".strip()


class CreateClientDto(BaseModel):
    """Payload for registering a new client.

    ``registration_date`` is normally left unset so the gateway stamps the
    current instant.
    """

    model_config = ConfigDict(extra="forbid")

    firstname: str = Field(min_length=1, description="First name")
    lastname: str = Field(min_length=1, description="Last name")
    dob: str = Field(description="Date of birth (ISO-8601 date)")
    sex: Sex = Field(description="Recorded sex")
    registration_date: str | None = Field(
        default=None, description="Override for the registration timestamp",
    )

    @field_validator("dob")
    @classmethod
    def _dob_is_date(cls, value: str) -> str:
        return _check_dob(value)

    @field_validator("registration_date")
    @classmethod
    def _registration_is_timestamp(cls, value: str | None) -> str | None:
        if value is None:
            return value
        try:
            moment = datetime.fromisoformat(value)
        except ValueError:
            raise ValueError(
                f"registration_date must be an ISO-8601 timestamp, got {value!r}"
            ) from None
        return utc_timestamp(moment)


class UpdateClientDto(BaseModel):
    """Partial update for an existing client.

    Only the fields explicitly set are written; the registration
    timestamp is immutable and therefore not part of this payload.
    """

    model_config = ConfigDict(extra="forbid")

    id: int = Field(description="Identifier of the client to update")
    firstname: str | None = Field(default=None, min_length=1)
    lastname: str | None = Field(default=None, min_length=1)
    dob: str | None = Field(default=None)
    sex: Sex | None = Field(default=None)

    @field_validator("dob")
    @classmethod
    def _dob_is_date(cls, value: str | None) -> str | None:
        return value if value is None else _check_dob(value)

    def changes(self) -> dict[str, object]:
        """Return the column values supplied by the caller, excluding ``id``."""
        return self.model_dump(
            exclude_unset=True, exclude_none=True, exclude={"id"}, mode="json",
        )
