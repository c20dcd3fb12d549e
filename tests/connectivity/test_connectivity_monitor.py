import unittest
from collections.abc import Mapping
from typing import Any, Callable

from offlinesync.connectivity import ConnectivityMonitor, ConnectivityState, MonitorPolicy
from offlinesync.gateway import WriteOutcome
from offlinesync.identity import IdentityResolver
from offlinesync.models import EntityKind
from offlinesync.queue import LocalQueueStore, MemoryStorage
from offlinesync.sync import SyncOrchestrator


class FakeTimer:
    def __init__(self, interval: float, fn: Callable[[], None]) -> None:
        self.interval = interval
        self.fn = fn
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if not self.cancelled:
            self.fn()


class FakeGateway:
    def __init__(self) -> None:
        self.calls: list[EntityKind] = []

    def create(self, kind: EntityKind, payload: Mapping[str, Any]) -> WriteOutcome:
        self.calls.append(kind)
        return WriteOutcome.ok(f"{kind.value}-{len(self.calls)}")


class FakeProbe:
    def __init__(self, reachable: bool) -> None:
        self.reachable = reachable

    def is_reachable(self) -> bool:
        return self.reachable


class TestConnectivityMonitor(unittest.TestCase):
    def setUp(self) -> None:
        self.store = LocalQueueStore(MemoryStorage())
        self.orch = SyncOrchestrator(self.store, IdentityResolver())
        self.gateway = FakeGateway()
        self.timers: list[FakeTimer] = []

    def _timer_factory(self, interval: float, fn: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(interval, fn)
        self.timers.append(timer)
        return timer

    def _monitor(self, **kwargs: Any) -> ConnectivityMonitor:
        kwargs.setdefault("initially_online", False)
        return ConnectivityMonitor(
            self.orch,
            self.store,
            self.gateway,
            timer_factory=self._timer_factory,
            policy=MonitorPolicy(settle_delay_sec=0.5, poll_interval_sec=2.0),
            **kwargs,
        )

    def test_initial_state(self) -> None:
        self.assertIs(self._monitor().state, ConnectivityState.OFFLINE)
        self.assertTrue(self._monitor(initially_online=True).is_online())

    def test_reconnect_with_pending_schedules_sync(self) -> None:
        self.store.enqueue(EntityKind.USER, {"name": "Ana"})
        monitor = self._monitor()

        monitor.set_online(True)

        self.assertEqual(len(self.timers), 1)
        timer = self.timers[0]
        self.assertEqual(timer.interval, 0.5)
        self.assertTrue(timer.started)
        self.assertTrue(timer.daemon)
        self.assertTrue(monitor.sync_scheduled)
        self.assertEqual(self.gateway.calls, [])

        timer.fire()

        self.assertEqual(self.gateway.calls, [EntityKind.USER])
        self.assertFalse(monitor.sync_scheduled)
        self.assertEqual(monitor.pending_count, 0)
        self.assertIsNotNone(monitor.last_result)
        self.assertEqual(monitor.last_result.total_committed, 1)  # type: ignore[union-attr]

    def test_scheduled_sync_survives_gateway_bug(self) -> None:
        class BrokenGateway:
            def create(self, kind: EntityKind, payload: Mapping[str, Any]) -> WriteOutcome:
                raise RuntimeError("bug")

        self.store.enqueue(EntityKind.USER, {"name": "Ana"})
        monitor = ConnectivityMonitor(
            self.orch,
            self.store,
            BrokenGateway(),
            timer_factory=self._timer_factory,
            initially_online=False,
        )
        monitor.set_online(True)

        with self.assertLogs("offlinesync.sync.orchestrator", level="ERROR"):
            self.timers[0].fire()

        self.assertEqual(len(monitor.last_result.errors), 1)  # type: ignore[union-attr]
        self.assertEqual(monitor.pending_count, 1)
        self.assertFalse(self.orch.is_syncing)

    def test_reconnect_with_empty_queue_does_not_schedule(self) -> None:
        monitor = self._monitor()
        monitor.set_online(True)
        self.assertEqual(self.timers, [])
        self.assertFalse(monitor.sync_scheduled)

    def test_going_offline_cancels_scheduled_sync(self) -> None:
        self.store.enqueue(EntityKind.USER, {"name": "Ana"})
        monitor = self._monitor()

        monitor.set_online(True)
        monitor.set_online(False)

        self.assertTrue(self.timers[0].cancelled)
        self.assertFalse(monitor.sync_scheduled)
        self.timers[0].fire()
        self.assertEqual(self.gateway.calls, [])

    def test_repeated_signal_is_ignored(self) -> None:
        self.store.enqueue(EntityKind.USER, {"name": "Ana"})
        monitor = self._monitor()
        monitor.set_online(True)
        monitor.set_online(True)
        self.assertEqual(len(self.timers), 1)

    def test_trigger_sync_offline_does_not_call_gateway(self) -> None:
        self.store.enqueue(EntityKind.USER, {"name": "Ana"})
        monitor = self._monitor()
        result = monitor.trigger_sync()
        self.assertEqual(result.status, "offline")
        self.assertEqual(self.gateway.calls, [])
        self.assertEqual(self.store.count(), 1)

    def test_trigger_sync_online(self) -> None:
        self.store.enqueue(EntityKind.USER, {"name": "Ana"})
        monitor = self._monitor(initially_online=True)
        result = monitor.trigger_sync()
        self.assertEqual(result.status, "completed")
        self.assertEqual(monitor.pending_count, 0)

    def test_listeners_see_state_and_pending(self) -> None:
        self.store.enqueue(EntityKind.USER, {"name": "Ana"})
        monitor = self._monitor()
        seen: list[tuple[ConnectivityState, int]] = []
        monitor.add_listener(lambda state, pending: seen.append((state, pending)))

        monitor.set_online(True)
        self.timers[0].fire()

        self.assertEqual(seen[0], (ConnectivityState.ONLINE, 1))
        self.assertEqual(seen[-1], (ConnectivityState.ONLINE, 0))

    def test_failing_listener_is_isolated(self) -> None:
        monitor = self._monitor()
        seen: list[ConnectivityState] = []

        def broken(state: ConnectivityState, pending: int) -> None:
            raise RuntimeError("ui gone")

        monitor.add_listener(broken)
        monitor.add_listener(lambda state, pending: seen.append(state))

        with self.assertLogs("offlinesync.connectivity.monitor", level="WARNING"):
            monitor.set_online(True)
        self.assertEqual(seen, [ConnectivityState.ONLINE])

    def test_remove_listener(self) -> None:
        monitor = self._monitor()
        seen: list[ConnectivityState] = []

        def listener(state: ConnectivityState, pending: int) -> None:
            seen.append(state)

        monitor.add_listener(listener)
        monitor.remove_listener(listener)
        monitor.remove_listener(listener)
        monitor.set_online(True)
        self.assertEqual(seen, [])

    def test_poll_once_uses_probe_and_refreshes_count(self) -> None:
        probe = FakeProbe(reachable=True)
        monitor = self._monitor(probe=probe)
        self.store.enqueue(EntityKind.USER, {"name": "Ana"})

        self.assertEqual(monitor.poll_once(), 1)
        self.assertTrue(monitor.is_online())
        self.assertEqual(len(self.timers), 1)

        probe.reachable = False
        monitor.poll_once()
        self.assertFalse(monitor.is_online())
        self.assertTrue(self.timers[0].cancelled)

    def test_poll_once_without_probe_keeps_state(self) -> None:
        monitor = self._monitor()
        self.store.enqueue(EntityKind.USER, {"name": "Ana"})
        self.assertEqual(monitor.pending_count, 0)
        self.assertEqual(monitor.poll_once(), 1)
        self.assertFalse(monitor.is_online())

    def test_start_and_stop(self) -> None:
        self.store.enqueue(EntityKind.USER, {"name": "Ana"})
        monitor = self._monitor()
        monitor.start()
        monitor.start()
        monitor.set_online(True)
        monitor.stop()
        self.assertTrue(self.timers[0].cancelled)
        self.assertFalse(monitor.sync_scheduled)


if __name__ == "__main__":
    unittest.main()
