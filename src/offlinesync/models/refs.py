"""Tagged references between queued entities."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Iterator, Union

from offlinesync.util.ids import looks_like_local_id

from .kinds import EntityKind


@dataclass(frozen=True, slots=True)
class LocalRef:
    """Reference to an entity that was created offline and has no server id yet."""

    kind: EntityKind
    local_id: str


@dataclass(frozen=True, slots=True)
class ServerRef:
    """Reference to an entity whose server identity is already known."""

    server_id: str


Reference = Union[LocalRef, ServerRef]


def iter_local_refs(value: Any) -> Iterator[LocalRef]:
    """Yield every LocalRef found in value, walking nested mappings and sequences."""
    if isinstance(value, LocalRef):
        yield value
        return
    if isinstance(value, Mapping):
        for v in value.values():
            yield from iter_local_refs(v)
        return
    if isinstance(value, (list, tuple)):
        for v in value:
            yield from iter_local_refs(v)


def ref_matches(value: Any, target: Reference | str) -> bool:
    """Return True if value points at the same entity as target."""
    target = _as_ref(target)
    value = _as_ref(value)
    if isinstance(value, LocalRef) and isinstance(target, LocalRef):
        return value.local_id == target.local_id
    if isinstance(value, ServerRef) and isinstance(target, ServerRef):
        return value.server_id == target.server_id
    return False


def _as_ref(value: Any) -> Any:
    # Bare local ids carry no kind; only local_id is compared for LocalRefs.
    if looks_like_local_id(value):
        return LocalRef(EntityKind.USER, value)
    if isinstance(value, str):
        return ServerRef(value)
    return value
