"""QueueItem: one pending write."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Optional

from .kinds import EntityKind
from .refs import LocalRef


class ItemStatus(str, Enum):
    PENDING = "pending"
    COMMITTED = "committed"


def freeze_payload(payload: Mapping[str, Any]) -> Mapping[str, Any]:
    """Return a read-only, detached copy of payload (nested mappings and lists included)."""
    return _freeze(payload)


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    return copy.deepcopy(value)


@dataclass(frozen=True, slots=True)
class QueueItem:
    """
    A write captured locally and not yet confirmed by the remote service.

    Notes:
        - payload is a read-only view over a private copy; queued writes
          cannot be edited.
        - server_id is only set on the committed copy returned during a sync
          pass. It is never persisted.
    """

    local_id: str
    kind: EntityKind
    payload: Mapping[str, Any]
    created_at: datetime
    status: ItemStatus = ItemStatus.PENDING
    server_id: Optional[str] = None

    @property
    def ref(self) -> LocalRef:
        """LocalRef that later writes can use to reference this entity."""
        return LocalRef(self.kind, self.local_id)

    def committed(self, server_id: Optional[str]) -> QueueItem:
        return replace(self, status=ItemStatus.COMMITTED, server_id=server_id)
