"""Entity kinds handled by the offline queue."""

from __future__ import annotations

from enum import Enum

from offlinesync.errors import InvalidArgumentError


class EntityKind(str, Enum):
    """Closed set of writable entity kinds. Values are the storage partition names."""

    USER = "users"
    ENROLLMENT = "enrollments"
    ATTENDANCE = "attendances"
    NOTIFICATION_EMAIL = "emails"


class EmailType(str, Enum):
    """Notification emails the backend can send for an event."""

    ENROLLMENT = "enrollment"
    ATTENDANCE = "attendance"
    CANCELLATION = "cancellation"


IDENTITY_KINDS: frozenset[EntityKind] = frozenset(
    {EntityKind.USER, EntityKind.ENROLLMENT, EntityKind.ATTENDANCE}
)


def produces_identity(kind: EntityKind) -> bool:
    """Return True if a committed write of this kind yields a reusable server id."""
    return kind in IDENTITY_KINDS


def coerce_kind(value: object) -> EntityKind:
    """
    Coerce a kind given as enum, value ("users") or name ("USER").

    Raises:
        InvalidArgumentError: value names no known kind.
    """
    if isinstance(value, EntityKind):
        return value
    if isinstance(value, str):
        try:
            return EntityKind(value)
        except ValueError:
            pass
        try:
            return EntityKind[value.upper()]
        except KeyError:
            pass
    raise InvalidArgumentError("Unknown entity kind", details={"kind": value})
