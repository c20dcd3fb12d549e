"""SyncOrchestrator: replays queued writes in dependency order."""

from __future__ import annotations

import logging
import threading
from typing import Optional

from offlinesync.errors import (
    ApiError,
    OfflineSyncError,
    PersistenceError,
    UnresolvedReferenceError,
)
from offlinesync.gateway.base import RemoteWriteGateway, WriteOutcome
from offlinesync.identity import IdentityResolver
from offlinesync.models import (
    EntityKind,
    ItemResult,
    QueueItem,
    SyncResult,
    SyncStatus,
    produces_identity,
)
from offlinesync.models.dependencies import DEPENDENCIES, DependencyGraph
from offlinesync.queue import KeyValueStorage, LocalQueueStore
from offlinesync.queue.codec import dumps_sync_status, loads_sync_status
from offlinesync.util.time import now_utc

from .ordering import build_sync_order

logger = logging.getLogger(__name__)


class SyncOrchestrator:
    """
    Drains the offline queues against a RemoteWriteGateway.

    Policy:
        - One pass at a time: a call made while a pass runs returns
          SyncResult.already_syncing() immediately.
        - Kinds are visited in dependency order; items in enqueue order.
        - An item whose references cannot be resolved yet is deferred.
        - Per-item failures are collected in the result and the item stays
          queued; there is no retry cap and no backoff.
    """

    STATUS_KEY = "sync_status"

    def __init__(
        self,
        store: LocalQueueStore,
        resolver: IdentityResolver,
        *,
        graph: DependencyGraph = DEPENDENCIES,
        status_storage: Optional[KeyValueStorage] = None,
        status_key: str = STATUS_KEY,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._order = build_sync_order(graph)
        self._status_storage = status_storage
        self._status_key = status_key
        self._guard = threading.Lock()

    @property
    def order(self) -> list[EntityKind]:
        return list(self._order)

    @property
    def is_syncing(self) -> bool:
        return self._guard.locked()

    def sync(self, gateway: RemoteWriteGateway) -> SyncResult:
        """Run one sync pass. Item failures, unexpected ones included, land in the result."""
        if not self._guard.acquire(blocking=False):
            logger.info("Sync already in progress; skipping")
            return SyncResult.already_syncing()
        try:
            return self._run_pass(gateway)
        finally:
            self._guard.release()

    def last_status(self) -> SyncStatus:
        """Summary of the last finished pass (empty if none was recorded)."""
        if self._status_storage is None:
            return SyncStatus(total_pending=self._store.count())
        try:
            raw = self._status_storage.get(self._status_key)
            if raw is not None:
                return loads_sync_status(raw)
        except PersistenceError as exc:
            logger.warning("Sync status unreadable: %s", exc)
        except ValueError as exc:
            logger.warning("Sync status is corrupt: %s", exc)
        return SyncStatus(total_pending=self._store.count())

    # ----------------------------
    # Internals
    # ----------------------------
    def _run_pass(self, gateway: RemoteWriteGateway) -> SyncResult:
        result = SyncResult(status="completed", started_at=now_utc())
        logger.info("Sync pass started: %d pending", self._store.count())

        for kind in self._order:
            for item in self._store.list(kind):
                result.results.append(self._replay_one(item, gateway, result.id_map))

        result.finished_at = now_utc()
        remaining = self._store.count()
        self._save_status(SyncStatus(last_synced_at=result.finished_at, total_pending=remaining))

        logger.info(
            "Sync pass finished: %d committed, %d failed, %d deferred, %d pending",
            result.total_committed,
            len(result.errors),
            len(result.deferred),
            remaining,
        )
        return result

    def _replay_one(
        self,
        item: QueueItem,
        gateway: RemoteWriteGateway,
        id_map: dict[str, str],
    ) -> ItemResult:
        # Committed in an earlier pass whose eviction was not persisted.
        known = self._resolver.resolve(item.local_id)
        if known is not None:
            self._store.remove(item.kind, item.local_id)
            logger.debug("Evicting already committed %s %s", item.kind.value, item.local_id)
            return _committed_result(item.committed(known))

        try:
            payload = self._resolver.rewrite(item.payload)
        except UnresolvedReferenceError as exc:
            logger.debug("Deferring %s %s: %s", item.kind.value, item.local_id, exc)
            return ItemResult(
                kind=item.kind,
                local_id=item.local_id,
                status="deferred",
                error_details={"unresolved": exc.local_ids},
            )

        logger.debug("Replaying %s %s", item.kind.value, item.local_id)
        try:
            outcome = gateway.create(item.kind, payload)
        except OfflineSyncError as exc:
            outcome = WriteOutcome.failed(exc)
        except Exception as exc:
            logger.exception("Gateway failed on %s %s", item.kind.value, item.local_id)
            outcome = WriteOutcome.failed(ApiError(str(exc) or exc.__class__.__name__, cause=exc))

        if outcome.success and produces_identity(item.kind) and not outcome.server_id:
            outcome = WriteOutcome.failed(
                ApiError(
                    "Remote did not return an id for the created entity",
                    details={"kind": item.kind.value},
                )
            )

        if not outcome.success:
            logger.warning(
                "%s %s not committed: %s",
                item.kind.value,
                item.local_id,
                outcome.error_message,
            )
            return _failed_result(item, outcome)

        if produces_identity(item.kind):
            self._resolver.record(item.local_id, str(outcome.server_id))
            id_map[item.local_id] = str(outcome.server_id)

        self._store.remove(item.kind, item.local_id)
        return _committed_result(item.committed(outcome.server_id))

    def _save_status(self, status: SyncStatus) -> None:
        if self._status_storage is None:
            return
        try:
            self._status_storage.set(self._status_key, dumps_sync_status(status))
        except PersistenceError as exc:
            logger.warning("Sync status not persisted: %s", exc)


def _committed_result(item: QueueItem) -> ItemResult:
    return ItemResult(
        kind=item.kind,
        local_id=item.local_id,
        status="committed",
        server_id=item.server_id,
    )


def _failed_result(item: QueueItem, outcome: WriteOutcome) -> ItemResult:
    return ItemResult(
        kind=item.kind,
        local_id=item.local_id,
        status="failed",
        error_type=outcome.error_type,
        error_message=outcome.error_message,
        error_details=outcome.error_details,
    )
