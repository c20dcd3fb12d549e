"""ConnectivityMonitor: online/offline state and reconnect-triggered sync."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from offlinesync.gateway.base import RemoteWriteGateway
from offlinesync.models import SyncResult
from offlinesync.queue import LocalQueueStore
from offlinesync.sync import SyncOrchestrator

from .probe import ConnectivityProbe

logger = logging.getLogger(__name__)


class ConnectivityState(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"


@dataclass(frozen=True)
class MonitorPolicy:
    settle_delay_sec: float = 1.0
    poll_interval_sec: float = 2.0


Listener = Callable[[ConnectivityState, int], None]
TimerFactory = Callable[[float, Callable[[], None]], Any]


class ConnectivityMonitor:
    """
    Two-state machine (ONLINE/OFFLINE) driven by platform signals.

    Notes:
        - OFFLINE -> ONLINE with pending writes schedules trigger_sync() after
          policy.settle_delay_sec; going OFFLINE again before that cancels it.
        - The pending count is re-polled every policy.poll_interval_sec once
          start() is called.
        - Every sync, scheduled or manual, goes through trigger_sync().
    """

    def __init__(
        self,
        orchestrator: SyncOrchestrator,
        store: LocalQueueStore,
        gateway: RemoteWriteGateway,
        *,
        policy: Optional[MonitorPolicy] = None,
        probe: Optional[ConnectivityProbe] = None,
        timer_factory: TimerFactory = threading.Timer,
        initially_online: bool = True,
    ) -> None:
        self._orchestrator = orchestrator
        self._store = store
        self._gateway = gateway
        self._policy = policy or MonitorPolicy()
        self._probe = probe
        self._timer_factory = timer_factory

        self._lock = threading.Lock()
        self._state = ConnectivityState.ONLINE if initially_online else ConnectivityState.OFFLINE
        self._pending = store.count()
        self._timer: Optional[Any] = None
        self._listeners: list[Listener] = []
        self._last_result: Optional[SyncResult] = None

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # ----------------------------
    # Read APIs
    # ----------------------------
    @property
    def state(self) -> ConnectivityState:
        with self._lock:
            return self._state

    def is_online(self) -> bool:
        return self.state is ConnectivityState.ONLINE

    @property
    def pending_count(self) -> int:
        with self._lock:
            return self._pending

    @property
    def sync_scheduled(self) -> bool:
        with self._lock:
            return self._timer is not None

    @property
    def last_result(self) -> Optional[SyncResult]:
        return self._last_result

    # ----------------------------
    # Signals
    # ----------------------------
    def set_online(self, online: bool) -> None:
        """Platform connectivity signal."""
        new_state = ConnectivityState.ONLINE if online else ConnectivityState.OFFLINE
        with self._lock:
            previous = self._state
            if previous is new_state:
                return
            self._state = new_state
            if new_state is ConnectivityState.OFFLINE:
                self._cancel_timer_locked()
            elif self._store.count() > 0:
                self._schedule_sync_locked()

        logger.info("Connectivity changed: %s -> %s", previous.value, new_state.value)
        self._notify()

    def trigger_sync(self) -> SyncResult:
        """
        Run a sync pass now if online.

        Safe to call concurrently: a call made while a pass runs returns an
        "already_syncing" result.
        """
        if not self.is_online():
            logger.debug("Offline; sync not attempted")
            return SyncResult.offline()

        result = self._orchestrator.sync(self._gateway)
        if result.status == "completed":
            self._last_result = result
        self.refresh_pending()
        return result

    def poll_once(self) -> int:
        """Refresh pending count (and reachability, when a probe is set)."""
        if self._probe is not None:
            self.set_online(self._probe.is_reachable())
        self.refresh_pending()
        return self.pending_count

    def refresh_pending(self) -> None:
        """Re-read the pending count from the store and notify listeners."""
        count = self._store.count()
        with self._lock:
            self._pending = count
        self._notify()

    # ----------------------------
    # Observers
    # ----------------------------
    def add_listener(self, listener: Listener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    # ----------------------------
    # Lifecycle
    # ----------------------------
    def start(self) -> None:
        """Start the background poll thread (idempotent)."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._poll_loop,
            name="offlinesync-monitor",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        """Stop polling and cancel a scheduled sync. An in-flight pass finishes."""
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self._policy.poll_interval_sec + 1.0)
        self._thread = None
        with self._lock:
            self._cancel_timer_locked()

    # ----------------------------
    # Internals
    # ----------------------------
    def _poll_loop(self) -> None:
        while not self._stop_event.wait(self._policy.poll_interval_sec):
            try:
                self.poll_once()
            except Exception:
                logger.exception("Connectivity poll failed")

    def _schedule_sync_locked(self) -> None:
        self._cancel_timer_locked()
        timer = self._timer_factory(self._policy.settle_delay_sec, self._on_settled)
        timer.daemon = True
        self._timer = timer
        timer.start()
        logger.debug("Sync scheduled in %.2fs", self._policy.settle_delay_sec)

    def _cancel_timer_locked(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_settled(self) -> None:
        with self._lock:
            self._timer = None
        self.trigger_sync()

    def _notify(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
            state = self._state
            pending = self._pending
        for listener in listeners:
            try:
                listener(state, pending)
            except Exception as exc:
                logger.warning("Connectivity listener failed: %s", exc)
