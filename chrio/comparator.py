"""Session comparison.

Aligns two sessions of the same client field by field so a view can show
progress between visits (e.g. weight change, new posture photos).
"""

from __future__ import annotations

import logging

from chrio.errors import InvalidComparison
from chrio.persistence.gateway import PersistenceGateway
from chrio.schemas.diff import ABSENT, FieldDiff, SessionDiff
from chrio.schemas.session import MEASUREMENT_FIELDS, Session

logger = logging.getLogger(__name__)


def canonical_fields(session_a: Session, session_b: Session) -> list[str]:
    """Field order for a diff: declared measurements, notes, then extras by name."""
    extras = sorted(set(session_a.extra_measurements) | set(session_b.extra_measurements))
    declared = [*MEASUREMENT_FIELDS, "notes"]
    return declared + [name for name in extras if name not in declared]


def diff_sessions(session_a: Session, session_b: Session) -> SessionDiff:
    """Build the diff of two already-loaded sessions.

    Every field holding a value in either session is emitted once. A
    side without a value is represented by ABSENT.
    """
    entries: list[FieldDiff] = []
    for name in canonical_fields(session_a, session_b):
        value_a = session_a.field_value(name)
        value_b = session_b.field_value(name)
        if value_a is None and value_b is None:
            continue
        entries.append(FieldDiff(
            field=name,
            value_a=ABSENT if value_a is None else value_a,
            value_b=ABSENT if value_b is None else value_b,
        ))

    return SessionDiff(
        client_id=session_a.client_id,
        session_a=session_a.id,
        session_b=session_b.id,
        session_number_a=session_a.session_number,
        session_number_b=session_b.session_number,
        fields=entries,
    )


class SessionComparator:
    """Loads two sessions through the gateway and diffs them."""

    def __init__(self, gateway: PersistenceGateway) -> None:
        self._gateway = gateway

    async def compare(
        self, client_id: int, session_id_a: int, session_id_b: int,
    ) -> SessionDiff:
        """Compare two sessions that must both belong to ``client_id``.

        Raises:
            NotFound: If either session does not exist.
            InvalidComparison: If either session belongs to another client.
        """
        session_a = await self._gateway.get_session(session_id_a)
        session_b = await self._gateway.get_session(session_id_b)

        for session in (session_a, session_b):
            if session.client_id != client_id:
                raise InvalidComparison(
                    f"Session {session.id} belongs to client {session.client_id},"
                    f" not client {client_id}"
                )

        diff = diff_sessions(session_a, session_b)
        logger.debug(
            "Compared sessions %s and %s: %d fields, %d changed",
            session_id_a, session_id_b, len(diff.fields), len(diff.changed_fields()),
        )
        return diff
