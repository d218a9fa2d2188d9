"""Session diff structures produced by the comparator."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class _Absent(Enum):
    ABSENT = "ABSENT"

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


# Marker for a field that has no value in one of the compared sessions.
ABSENT = _Absent.ABSENT


@dataclass(frozen=True)
class FieldDiff:
    field: str
    value_a: Any
    value_b: Any

    @property
    def changed(self) -> bool:
        return self.value_a != self.value_b

    def __iter__(self):
        # Unpacks as the (field, value_a, value_b) triple.
        return iter((self.field, self.value_a, self.value_b))


@dataclass(frozen=True)
class SessionDiff:
    """Field-by-field alignment of two sessions of the same client.

    Every field present in either session appears exactly once, in the
    canonical field order. Identical fields are kept; filtering them is
    left to the caller.
    """

    client_id: int
    session_a: int
    session_b: int
    session_number_a: int
    session_number_b: int
    fields: list[FieldDiff] = field(default_factory=list)

    def changed_fields(self) -> list[FieldDiff]:
        return [f for f in self.fields if f.changed]

    def get(self, name: str) -> FieldDiff | None:
        for entry in self.fields:
            if entry.field == name:
                return entry
        return None

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable form; ABSENT becomes null with a presence flag."""
        return {
            "client_id": self.client_id,
            "session_a": self.session_a,
            "session_b": self.session_b,
            "session_number_a": self.session_number_a,
            "session_number_b": self.session_number_b,
            "fields": [
                {
                    "field": f.field,
                    "a": None if f.value_a is ABSENT else f.value_a,
                    "b": None if f.value_b is ABSENT else f.value_b,
                    "a_present": f.value_a is not ABSENT,
                    "b_present": f.value_b is not ABSENT,
                    "changed": f.changed,
                }
                for f in self.fields
            ],
        }
