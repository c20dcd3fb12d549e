"""LocalQueueStore: durable queues of pending writes, one per entity kind."""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import Any, Optional

from offlinesync.errors import InvalidArgumentError, PersistenceError
from offlinesync.models import (
    EntityKind,
    LocalRef,
    QueueItem,
    Reference,
    coerce_kind,
    freeze_payload,
    iter_local_refs,
    ref_matches,
)
from offlinesync.models.dependencies import (
    DEPENDENCIES,
    DependencyGraph,
    allowed_reference_kinds,
)
from offlinesync.util.ids import looks_like_local_id, new_local_id
from offlinesync.util.time import now_utc

from .codec import dumps_queues, loads_queues
from .storage import KeyValueStorage, MemoryStorage

logger = logging.getLogger(__name__)


class LocalQueueStore:
    """
    Pending writes partitioned by kind, persisted as a single document.

    The whole queue set is written under one storage key on every mutation,
    so a crash can never leave one queue updated and another stale.

    Persistence failures do not propagate: the store logs them and keeps
    working from memory (`degraded` becomes True until a write succeeds).
    """

    DEFAULT_KEY = "offline_queue"

    def __init__(
        self,
        storage: Optional[KeyValueStorage] = None,
        *,
        key: str = DEFAULT_KEY,
        graph: DependencyGraph = DEPENDENCIES,
    ) -> None:
        self._storage: KeyValueStorage = storage if storage is not None else MemoryStorage()
        self._key = key
        self._graph = graph
        self._lock = threading.RLock()
        self.degraded = False
        self._queues = self._load()

    # ----------------------------
    # Write APIs
    # ----------------------------
    def enqueue(self, kind: EntityKind | str, payload: Mapping[str, Any]) -> QueueItem:
        """
        Append a write to the queue of `kind` and persist.

        A bare local id string naming a queued item is stored as a LocalRef
        to that item, so it is rewritten (or deferred) like any reference.

        Raises:
            InvalidArgumentError: unknown kind, non-mapping or non-serializable
                payload, or a reference to a kind this kind cannot reference.
        """
        kind = coerce_kind(kind)
        if not isinstance(payload, Mapping):
            raise InvalidArgumentError("payload must be a mapping", details={"kind": kind.value})

        with self._lock:
            payload = self._tag_local_ids(payload)
            self._validate_references(kind, payload)

            local_id = new_local_id()
            while self._find(local_id) is not None:
                local_id = new_local_id()

            item = QueueItem(
                local_id=local_id,
                kind=kind,
                payload=freeze_payload(payload),
                created_at=now_utc(),
            )
            self._queues[kind].append(item)
            try:
                raw = dumps_queues(self._queues)
            except InvalidArgumentError:
                self._queues[kind].pop()
                raise
            self._write(raw)

        logger.debug("Queued %s write %s", kind.value, item.local_id)
        return item

    def remove(self, kind: EntityKind | str, local_id: str) -> bool:
        """Evict an item. Returns False if it was not queued."""
        kind = coerce_kind(kind)
        with self._lock:
            queue = self._queues[kind]
            kept = [item for item in queue if item.local_id != local_id]
            if len(kept) == len(queue):
                return False
            self._queues[kind] = kept
            self._write(dumps_queues(self._queues))
        return True

    def clear(self) -> None:
        """Drop every pending write."""
        with self._lock:
            self._queues = _empty_queues()
            self._write(dumps_queues(self._queues))

    # ----------------------------
    # Read APIs
    # ----------------------------
    def list(self, kind: EntityKind | str) -> list[QueueItem]:
        kind = coerce_kind(kind)
        with self._lock:
            return list(self._queues[kind])

    def get(self, local_id: str) -> Optional[QueueItem]:
        with self._lock:
            return self._find(local_id)

    def find_kind(self, local_id: str) -> Optional[EntityKind]:
        item = self.get(local_id)
        return item.kind if item is not None else None

    def count(self, kind: EntityKind | str | None = None) -> int:
        with self._lock:
            if kind is not None:
                return len(self._queues[coerce_kind(kind)])
            return sum(len(q) for q in self._queues.values())

    def counts(self) -> dict[EntityKind, int]:
        with self._lock:
            return {kind: len(self._queues[kind]) for kind in EntityKind}

    def pending_enrollments_for(self, user: Reference | str) -> list[QueueItem]:
        """Pending enrollments whose `user` field points at the given user."""
        return [
            item
            for item in self.list(EntityKind.ENROLLMENT)
            if ref_matches(item.payload.get("user"), user)
        ]

    # ----------------------------
    # Internals
    # ----------------------------
    def _find(self, local_id: str) -> Optional[QueueItem]:
        for queue in self._queues.values():
            for item in queue:
                if item.local_id == local_id:
                    return item
        return None

    def _tag_local_ids(self, value: Any) -> Any:
        if looks_like_local_id(value):
            item = self._find(value)
            return LocalRef(item.kind, value) if item is not None else value
        if isinstance(value, Mapping):
            return {k: self._tag_local_ids(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [self._tag_local_ids(v) for v in value]
        return value

    def _validate_references(self, kind: EntityKind, payload: Mapping[str, Any]) -> None:
        allowed = allowed_reference_kinds(kind, self._graph)
        for ref in iter_local_refs(payload):
            if ref.kind not in allowed:
                raise InvalidArgumentError(
                    "Payload references a kind this kind cannot depend on",
                    details={
                        "kind": kind.value,
                        "referenced_kind": ref.kind.value,
                        "local_id": ref.local_id,
                    },
                )

    def _load(self) -> dict[EntityKind, list[QueueItem]]:
        try:
            raw = self._storage.get(self._key)
        except PersistenceError as exc:
            logger.warning("Offline queue unreadable, starting empty: %s", exc)
            self.degraded = True
            return _empty_queues()

        if raw is None:
            return _empty_queues()

        try:
            return loads_queues(raw)
        except ValueError as exc:
            logger.warning("Offline queue is corrupt, starting empty: %s", exc)
            return _empty_queues()

    def _write(self, raw: str) -> None:
        try:
            self._storage.set(self._key, raw)
        except PersistenceError as exc:
            if not self.degraded:
                logger.warning("Offline queue not persisted, keeping it in memory: %s", exc)
            self.degraded = True
            return
        self.degraded = False


def _empty_queues() -> dict[EntityKind, list[QueueItem]]:
    return {kind: [] for kind in EntityKind}


