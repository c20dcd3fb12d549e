"""OfflineSyncManager: write-through with offline fallback, plus sync controls."""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Mapping
from typing import Any, Optional

from offlinesync.audit import AuditSink
from offlinesync.connectivity import (
    ConnectivityMonitor,
    ConnectivityProbe,
    MonitorPolicy,
)
from offlinesync.connectivity.monitor import Listener, TimerFactory
from offlinesync.errors import ApiError, OfflineSyncError, UnresolvedReferenceError
from offlinesync.gateway import AuditedGateway, RemoteWriteGateway, WriteOutcome
from offlinesync.identity import IdentityResolver
from offlinesync.models import (
    EmailType,
    EntityKind,
    QueueItem,
    Reference,
    SubmitResult,
    SyncResult,
    SyncStatus,
    coerce_kind,
)
from offlinesync.queue import FileStorage, KeyValueStorage, LocalQueueStore, MemoryStorage
from offlinesync.sync import SyncOrchestrator

logger = logging.getLogger(__name__)


class OfflineSyncManager:
    """High-level surface for clients: submit writes, observe and drive sync."""

    def __init__(
        self,
        gateway: RemoteWriteGateway,
        *,
        storage: Optional[KeyValueStorage] = None,
        policy: Optional[MonitorPolicy] = None,
        audit_sink: Optional[AuditSink] = None,
        probe: Optional[ConnectivityProbe] = None,
        initially_online: bool = True,
        timer_factory: TimerFactory = threading.Timer,
    ) -> None:
        storage = storage if storage is not None else MemoryStorage()
        self._gateway: RemoteWriteGateway = (
            AuditedGateway(gateway, audit_sink) if audit_sink is not None else gateway
        )
        self._store = LocalQueueStore(storage)
        self._resolver = IdentityResolver(storage)
        self._orchestrator = SyncOrchestrator(
            self._store,
            self._resolver,
            status_storage=storage,
        )
        self._monitor = ConnectivityMonitor(
            self._orchestrator,
            self._store,
            self._gateway,
            policy=policy,
            probe=probe,
            timer_factory=timer_factory,
            initially_online=initially_online,
        )

    @classmethod
    def from_directory(
        cls,
        directory: str | os.PathLike[str],
        gateway: RemoteWriteGateway,
        **kwargs: Any,
    ) -> "OfflineSyncManager":
        """Create a manager whose queue survives restarts under `directory`."""
        return cls(gateway, storage=FileStorage(directory), **kwargs)

    # ----------------------------
    # Components
    # ----------------------------
    @property
    def store(self) -> LocalQueueStore:
        return self._store

    @property
    def resolver(self) -> IdentityResolver:
        return self._resolver

    @property
    def monitor(self) -> ConnectivityMonitor:
        return self._monitor

    # ----------------------------
    # Writes
    # ----------------------------
    def submit(self, kind: EntityKind | str, payload: Mapping[str, Any]) -> SubmitResult:
        """
        Write now if possible, otherwise queue for the next sync.

        Policy:
            - Offline, or payload still references unsynced entities: queue.
            - Online: send; a network failure queues, a rejection is returned
              as status "rejected" and nothing is queued.

        Raises:
            InvalidArgumentError: invalid kind or payload (see LocalQueueStore.enqueue).
        """
        kind = coerce_kind(kind)

        if not self.is_online():
            return self._queue(kind, payload, reason="offline")

        try:
            rewritten = self._resolver.rewrite(payload)
        except UnresolvedReferenceError:
            return self._queue(kind, payload, reason="depends on unsynced writes")

        outcome = self._send(kind, rewritten)
        if outcome.success:
            return SubmitResult(status="committed", kind=kind, server_id=outcome.server_id)

        if outcome.is_network_failure:
            return self._queue(kind, payload, reason=outcome.error_message or "network error")

        logger.warning("%s write rejected: %s", kind.value, outcome.error_message)
        return SubmitResult(
            status="rejected",
            kind=kind,
            error_type=outcome.error_type,
            error_message=outcome.error_message,
        )

    def send_notification(
        self,
        email_type: EmailType | str,
        user: Reference | str,
        event_id: Any,
    ) -> None:
        """
        Best-effort notification email.

        Never raises and never affects any other write: failures are logged.
        """
        try:
            payload = {"email_type": EmailType(email_type).value, "user": user, "event_id": event_id}
            result = self.submit(EntityKind.NOTIFICATION_EMAIL, payload)
        except (OfflineSyncError, ValueError) as exc:
            logger.warning("Notification email dropped: %s", exc)
            return
        if result.status == "rejected":
            logger.warning("Notification email not sent: %s", result.error_message)

    # ----------------------------
    # UI-facing reads and controls
    # ----------------------------
    def pending_count(self) -> int:
        return self._store.count()

    def is_online(self) -> bool:
        return self._monitor.is_online()

    def is_syncing(self) -> bool:
        return self._orchestrator.is_syncing

    def set_online(self, online: bool) -> None:
        self._monitor.set_online(online)

    def sync_now(self) -> SyncResult:
        return self._monitor.trigger_sync()

    def sync_status(self) -> SyncStatus:
        return self._orchestrator.last_status()

    def pending_enrollments(self, user: Reference | str) -> list[QueueItem]:
        return self._store.pending_enrollments_for(user)

    def clear_queue(self) -> None:
        self._store.clear()
        self._monitor.refresh_pending()

    def add_listener(self, listener: Listener) -> None:
        self._monitor.add_listener(listener)

    def start(self) -> None:
        self._monitor.start()

    def stop(self) -> None:
        self._monitor.stop()

    def __enter__(self) -> "OfflineSyncManager":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    # ----------------------------
    # Internals
    # ----------------------------
    def _send(self, kind: EntityKind, payload: Mapping[str, Any]) -> WriteOutcome:
        try:
            return self._gateway.create(kind, payload)
        except OfflineSyncError as exc:
            return WriteOutcome.failed(exc)
        except Exception as exc:
            logger.exception("Gateway failed on %s write", kind.value)
            return WriteOutcome.failed(ApiError(str(exc) or exc.__class__.__name__, cause=exc))

    def _queue(self, kind: EntityKind, payload: Mapping[str, Any], *, reason: str) -> SubmitResult:
        item = self._store.enqueue(kind, payload)
        logger.info("Queued %s write %s (%s)", kind.value, item.local_id, reason)
        self._monitor.refresh_pending()
        return SubmitResult(status="queued", kind=kind, item=item)
