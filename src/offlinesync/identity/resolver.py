"""IdentityResolver: local_id -> server id mapping and payload rewriting."""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import Any, Optional

from offlinesync.errors import (
    InvalidArgumentError,
    InvalidStateError,
    PersistenceError,
    UnresolvedReferenceError,
)
from offlinesync.models import LocalRef, ServerRef
from offlinesync.queue.codec import dumps_id_map, loads_id_map
from offlinesync.queue.storage import KeyValueStorage
from offlinesync.util.ids import looks_like_local_id

logger = logging.getLogger(__name__)


class IdentityResolver:
    """
    Append-only mapping from local ids to server-assigned ids.

    With a storage, the mapping is written through on every record() so a
    chain whose head committed before a restart can still be resolved.
    """

    DEFAULT_KEY = "offline_id_map"

    def __init__(
        self,
        storage: Optional[KeyValueStorage] = None,
        *,
        key: str = DEFAULT_KEY,
    ) -> None:
        self._storage = storage
        self._key = key
        self._lock = threading.Lock()
        self._map: dict[str, str] = self._load()

    def resolve(self, local_id: str) -> Optional[str]:
        with self._lock:
            return self._map.get(local_id)

    def record(self, local_id: str, server_id: str) -> None:
        """
        Record local_id -> server_id.

        Raises:
            InvalidArgumentError: empty ids.
            InvalidStateError: local_id is already bound to a different server id.
        """
        if not local_id or not server_id:
            raise InvalidArgumentError(
                "local_id and server_id are required",
                details={"local_id": local_id, "server_id": server_id},
            )

        with self._lock:
            existing = self._map.get(local_id)
            if existing == server_id:
                return
            if existing is not None:
                raise InvalidStateError(
                    "local_id is already resolved to another server id",
                    details={"local_id": local_id, "server_id": existing, "new_server_id": server_id},
                )
            self._map[local_id] = server_id
            self._persist()

    def is_local(self, value: object) -> bool:
        """True iff value is a reference to an entity without server identity."""
        return isinstance(value, LocalRef)

    @staticmethod
    def is_local_id(value: object) -> bool:
        """Shape check for generated local ids."""
        return looks_like_local_id(value)

    def rewrite(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        """
        Return a copy of payload with every reference replaced by a server id.

        Bare local id strings count as references: a local id never reaches
        the remote.

        Raises:
            UnresolvedReferenceError: some reference has no server id yet.
        """
        missing: list[str] = []
        with self._lock:
            rewritten = self._rewrite_value(payload, missing)
        if missing:
            raise UnresolvedReferenceError(missing)
        return rewritten

    def snapshot(self) -> dict[str, str]:
        with self._lock:
            return dict(self._map)

    def __len__(self) -> int:
        with self._lock:
            return len(self._map)

    # ----------------------------
    # Internals
    # ----------------------------
    def _rewrite_value(self, value: Any, missing: list[str]) -> Any:
        local_id = value.local_id if isinstance(value, LocalRef) else value
        if isinstance(value, LocalRef) or looks_like_local_id(local_id):
            server_id = self._map.get(local_id)
            if server_id is None:
                if local_id not in missing:
                    missing.append(local_id)
                return value
            return server_id
        if isinstance(value, ServerRef):
            return value.server_id
        if isinstance(value, Mapping):
            return {k: self._rewrite_value(v, missing) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [self._rewrite_value(v, missing) for v in value]
        return value

    def _load(self) -> dict[str, str]:
        if self._storage is None:
            return {}
        try:
            raw = self._storage.get(self._key)
            return loads_id_map(raw) if raw is not None else {}
        except PersistenceError as exc:
            logger.warning("Identity map unreadable, starting empty: %s", exc)
        except ValueError as exc:
            logger.warning("Identity map is corrupt, starting empty: %s", exc)
        return {}

    def _persist(self) -> None:
        if self._storage is None:
            return
        try:
            self._storage.set(self._key, dumps_id_map(self._map))
        except PersistenceError as exc:
            logger.warning("Identity map not persisted: %s", exc)
