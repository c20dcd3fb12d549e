"""Result models for submit and sync operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal, Optional

from .kinds import EntityKind
from .queue_item import QueueItem
from .refs import LocalRef, Reference, ServerRef


ItemOutcome = Literal["committed", "failed", "deferred"]
SyncOutcome = Literal["completed", "already_syncing", "offline"]
SubmitOutcome = Literal["committed", "queued", "rejected"]


@dataclass(slots=True)
class ItemResult:
    """Result for a single queued write within a sync pass."""

    kind: EntityKind
    local_id: str
    status: ItemOutcome

    server_id: Optional[str] = None
    error_type: Optional[str] = None
    error_message: Optional[str] = None
    error_details: Optional[dict[str, Any]] = None


@dataclass(slots=True)
class SyncResult:
    """Aggregate result of one sync() call."""

    status: SyncOutcome
    results: list[ItemResult] = field(default_factory=list)

    id_map: dict[str, str] = field(default_factory=dict)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @classmethod
    def already_syncing(cls) -> SyncResult:
        return cls(status="already_syncing")

    @classmethod
    def offline(cls) -> SyncResult:
        return cls(status="offline")

    @property
    def committed_counts(self) -> dict[EntityKind, int]:
        counts = {kind: 0 for kind in EntityKind}
        for r in self.results:
            if r.status == "committed":
                counts[r.kind] += 1
        return counts

    @property
    def total_committed(self) -> int:
        return sum(self.committed_counts.values())

    @property
    def errors(self) -> list[ItemResult]:
        return [r for r in self.results if r.status == "failed"]

    @property
    def deferred(self) -> list[ItemResult]:
        return [r for r in self.results if r.status == "deferred"]


@dataclass(slots=True)
class SubmitResult:
    """Result of a write submitted through the manager."""

    status: SubmitOutcome
    kind: EntityKind

    server_id: Optional[str] = None
    item: Optional[QueueItem] = None
    error_type: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def ref(self) -> Optional[Reference]:
        """Reference to the written entity, usable in later payloads."""
        if self.server_id is not None:
            return ServerRef(self.server_id)
        if self.item is not None:
            return LocalRef(self.item.kind, self.item.local_id)
        return None


@dataclass(frozen=True, slots=True)
class SyncStatus:
    """Persisted summary of the last completed sync pass."""

    last_synced_at: Optional[datetime] = None
    total_pending: int = 0
