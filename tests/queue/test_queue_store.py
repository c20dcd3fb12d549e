import json
import threading
import unittest
from typing import Optional

from offlinesync.errors import InvalidArgumentError, PersistenceError
from offlinesync.models import EntityKind, LocalRef, ServerRef
from offlinesync.queue import LocalQueueStore, MemoryStorage
from offlinesync.util.ids import looks_like_local_id


class FlakyStorage(MemoryStorage):
    """MemoryStorage whose writes can be switched to fail."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_writes = False
        self.fail_reads = False

    def get(self, key: str) -> Optional[str]:
        if self.fail_reads:
            raise PersistenceError("read failed")
        return super().get(key)

    def set(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise PersistenceError("write failed")
        super().set(key, value)


class TestLocalQueueStore(unittest.TestCase):
    def setUp(self) -> None:
        self.storage = MemoryStorage()
        self.store = LocalQueueStore(self.storage)

    def test_enqueue_assigns_local_id_and_timestamp(self) -> None:
        item = self.store.enqueue(EntityKind.USER, {"name": "Ana"})
        self.assertTrue(looks_like_local_id(item.local_id))
        self.assertIsNotNone(item.created_at.tzinfo)
        self.assertEqual(item.status.value, "pending")
        self.assertEqual(self.store.list(EntityKind.USER), [item])

    def test_enqueue_accepts_kind_strings(self) -> None:
        item = self.store.enqueue("users", {"name": "Ana"})
        self.assertIs(item.kind, EntityKind.USER)

    def test_list_preserves_insertion_order(self) -> None:
        ids = [self.store.enqueue(EntityKind.USER, {"n": i}).local_id for i in range(5)]
        self.assertEqual([i.local_id for i in self.store.list(EntityKind.USER)], ids)

    def test_local_ids_unique_across_kinds(self) -> None:
        u = self.store.enqueue(EntityKind.USER, {})
        e = self.store.enqueue(EntityKind.ENROLLMENT, {"user": u.ref, "event_id": 1})
        a = self.store.enqueue(EntityKind.ATTENDANCE, {"enrollment": e.ref})
        self.assertEqual(len({u.local_id, e.local_id, a.local_id}), 3)

    def test_every_mutation_persists_whole_document(self) -> None:
        u = self.store.enqueue(EntityKind.USER, {"name": "Ana"})
        self.store.enqueue(EntityKind.NOTIFICATION_EMAIL, {"email_type": "enrollment", "user": u.ref, "event_id": 1})
        doc = json.loads(self.storage.get("offline_queue") or "")
        self.assertEqual(len(doc["queues"]["users"]), 1)
        self.assertEqual(len(doc["queues"]["emails"]), 1)

        self.assertTrue(self.store.remove(EntityKind.USER, u.local_id))
        doc = json.loads(self.storage.get("offline_queue") or "")
        self.assertEqual(doc["queues"]["users"], [])

    def test_survives_restart(self) -> None:
        u = self.store.enqueue(EntityKind.USER, {"name": "Ana"})
        e = self.store.enqueue(EntityKind.ENROLLMENT, {"user": u.ref, "event_id": 7})

        reopened = LocalQueueStore(self.storage)
        self.assertEqual(reopened.count(), 2)
        restored = reopened.get(e.local_id)
        self.assertIsNotNone(restored)
        self.assertEqual(restored.payload["user"], u.ref)  # type: ignore[union-attr]
        self.assertEqual(restored.created_at, e.created_at)  # type: ignore[union-attr]

    def test_payload_is_copied_at_enqueue(self) -> None:
        payload = {"name": "Ana", "tags": ["x"]}
        item = self.store.enqueue(EntityKind.USER, payload)
        payload["name"] = "Bia"
        payload["tags"].append("y")
        stored = self.store.list(EntityKind.USER)[0]
        self.assertEqual(stored.payload["name"], "Ana")
        self.assertEqual(stored.payload["tags"], ("x",))
        self.assertIs(stored, item)

    def test_nested_payload_values_are_read_only(self) -> None:
        self.store.enqueue(EntityKind.USER, {"tags": ["x"], "address": {"city": "Recife"}})
        stored = self.store.list(EntityKind.USER)[0]

        with self.assertRaises(AttributeError):
            stored.payload["tags"].append("y")
        with self.assertRaises(TypeError):
            stored.payload["address"]["city"] = "Natal"
        self.assertEqual(self.store.list(EntityKind.USER)[0].payload["tags"], ("x",))
        self.assertEqual(LocalQueueStore(self.storage).list(EntityKind.USER)[0].payload["tags"], ("x",))

    def test_remove_unknown_returns_false(self) -> None:
        self.assertFalse(self.store.remove(EntityKind.USER, "local_missing"))

    def test_count_and_counts(self) -> None:
        u = self.store.enqueue(EntityKind.USER, {})
        self.store.enqueue(EntityKind.USER, {})
        self.store.enqueue(EntityKind.ENROLLMENT, {"user": u.ref, "event_id": 1})
        self.assertEqual(self.store.count(), 3)
        self.assertEqual(self.store.count(EntityKind.USER), 2)
        counts = self.store.counts()
        self.assertEqual(counts[EntityKind.ENROLLMENT], 1)
        self.assertEqual(counts[EntityKind.ATTENDANCE], 0)

    def test_find_kind(self) -> None:
        u = self.store.enqueue(EntityKind.USER, {})
        self.assertIs(self.store.find_kind(u.local_id), EntityKind.USER)
        self.assertIsNone(self.store.find_kind("local_nope"))

    def test_clear(self) -> None:
        self.store.enqueue(EntityKind.USER, {})
        self.store.clear()
        self.assertEqual(self.store.count(), 0)
        self.assertEqual(LocalQueueStore(self.storage).count(), 0)

    def test_rejects_reference_to_non_dependency(self) -> None:
        u = self.store.enqueue(EntityKind.USER, {})
        with self.assertRaises(InvalidArgumentError):
            self.store.enqueue(EntityKind.ATTENDANCE, {"enrollment": u.ref})
        with self.assertRaises(InvalidArgumentError):
            self.store.enqueue(EntityKind.USER, {"friend": u.ref})
        self.assertEqual(self.store.count(), 1)

    def test_bare_local_id_is_stored_as_reference(self) -> None:
        u = self.store.enqueue(EntityKind.USER, {})
        e = self.store.enqueue(EntityKind.ENROLLMENT, {"user": u.local_id, "event_id": 7})

        self.assertEqual(e.payload["user"], u.ref)
        self.assertEqual(LocalQueueStore(self.storage).get(e.local_id).payload["user"], u.ref)  # type: ignore[union-attr]
        self.assertEqual(self.store.pending_enrollments_for(u.local_id), [e])

    def test_bare_local_id_to_non_dependency_is_rejected(self) -> None:
        u = self.store.enqueue(EntityKind.USER, {})
        with self.assertRaises(InvalidArgumentError):
            self.store.enqueue(EntityKind.ATTENDANCE, {"enrollment": u.local_id})
        self.assertEqual(self.store.count(), 1)

    def test_unknown_local_looking_string_is_kept_as_is(self) -> None:
        stray = "local_" + "c" * 32
        item = self.store.enqueue(EntityKind.ENROLLMENT, {"user": stray, "event_id": 7})
        self.assertEqual(item.payload["user"], stray)

    def test_rejects_unknown_kind_and_non_mapping(self) -> None:
        with self.assertRaises(InvalidArgumentError):
            self.store.enqueue("certificates", {})
        with self.assertRaises(InvalidArgumentError):
            self.store.enqueue(EntityKind.USER, ["not", "a", "mapping"])  # type: ignore[arg-type]

    def test_rejects_non_serializable_payload_without_queueing(self) -> None:
        with self.assertRaises(InvalidArgumentError):
            self.store.enqueue(EntityKind.USER, {"blob": object()})
        self.assertEqual(self.store.count(), 0)

    def test_pending_enrollments_for(self) -> None:
        u = self.store.enqueue(EntityKind.USER, {})
        mine = self.store.enqueue(EntityKind.ENROLLMENT, {"user": u.ref, "event_id": 1})
        server = self.store.enqueue(EntityKind.ENROLLMENT, {"user": ServerRef("9"), "event_id": 2})
        self.store.enqueue(EntityKind.ENROLLMENT, {"user": ServerRef("10"), "event_id": 3})

        self.assertEqual(self.store.pending_enrollments_for(u.ref), [mine])
        self.assertEqual(self.store.pending_enrollments_for("9"), [server])
        self.assertEqual(self.store.pending_enrollments_for(LocalRef(EntityKind.USER, "local_x")), [])

    def test_concurrent_enqueue_keeps_every_item(self) -> None:
        def worker() -> None:
            for i in range(25):
                self.store.enqueue(EntityKind.USER, {"n": i})

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(self.store.count(), 100)
        self.assertEqual(LocalQueueStore(self.storage).count(), 100)


class TestLocalQueueStoreDegraded(unittest.TestCase):
    def test_corrupt_document_loads_empty(self) -> None:
        storage = MemoryStorage({"offline_queue": "{broken"})
        with self.assertLogs("offlinesync.queue.store", level="WARNING"):
            store = LocalQueueStore(storage)
        self.assertEqual(store.count(), 0)
        store.enqueue(EntityKind.USER, {})
        self.assertEqual(LocalQueueStore(storage).count(), 1)

    def test_unreadable_storage_loads_empty(self) -> None:
        storage = FlakyStorage()
        storage.fail_reads = True
        with self.assertLogs("offlinesync.queue.store", level="WARNING"):
            store = LocalQueueStore(storage)
        self.assertEqual(store.count(), 0)
        self.assertTrue(store.degraded)

    def test_write_failure_degrades_to_memory(self) -> None:
        storage = FlakyStorage()
        store = LocalQueueStore(storage)
        storage.fail_writes = True

        with self.assertLogs("offlinesync.queue.store", level="WARNING"):
            item = store.enqueue(EntityKind.USER, {"name": "Ana"})
        self.assertTrue(store.degraded)
        self.assertEqual(store.count(), 1)
        self.assertIsNone(storage.get("offline_queue"))

        storage.fail_writes = False
        self.assertTrue(store.remove(EntityKind.USER, item.local_id))
        self.assertFalse(store.degraded)
        self.assertIsNotNone(storage.get("offline_queue"))


if __name__ == "__main__":
    unittest.main()
