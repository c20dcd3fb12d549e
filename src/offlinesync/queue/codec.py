"""JSON encoding of the queue set, references and sync status."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from offlinesync.errors import InvalidArgumentError
from offlinesync.models import (
    EntityKind,
    ItemStatus,
    LocalRef,
    QueueItem,
    ServerRef,
    SyncStatus,
    freeze_payload,
)
from offlinesync.util.time import parse_rfc3339, to_rfc3339

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1

_REF_TAG = "$ref"


def encode_value(value: Any) -> Any:
    """Convert a payload value into plain JSON types (references become tagged dicts)."""
    if isinstance(value, LocalRef):
        return {_REF_TAG: "local", "kind": value.kind.value, "local_id": value.local_id}
    if isinstance(value, ServerRef):
        return {_REF_TAG: "server", "server_id": value.server_id}
    if isinstance(value, Mapping):
        return {str(k): encode_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [encode_value(v) for v in value]
    return value


def decode_value(value: Any) -> Any:
    """Inverse of encode_value. Raises ValueError on malformed references."""
    if isinstance(value, dict):
        tag = value.get(_REF_TAG)
        if tag == "local":
            return LocalRef(EntityKind(value["kind"]), str(value["local_id"]))
        if tag == "server":
            return ServerRef(str(value["server_id"]))
        if tag is not None:
            raise ValueError(f"Unknown reference tag: {tag!r}")
        return {k: decode_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [decode_value(v) for v in value]
    return value


def item_to_dict(item: QueueItem) -> dict[str, Any]:
    return {
        "local_id": item.local_id,
        "kind": item.kind.value,
        "payload": encode_value(item.payload),
        "status": item.status.value,
        "created_at": to_rfc3339(item.created_at),
    }


def item_from_dict(data: Mapping[str, Any]) -> QueueItem:
    """Build a QueueItem from its stored form. Raises ValueError/KeyError if malformed."""
    payload = decode_value(data.get("payload") or {})
    if not isinstance(payload, dict):
        raise ValueError("payload must be an object")
    return QueueItem(
        local_id=str(data["local_id"]),
        kind=EntityKind(data["kind"]),
        payload=freeze_payload(payload),
        created_at=parse_rfc3339(data["created_at"]),
        status=ItemStatus(data.get("status", ItemStatus.PENDING.value)),
    )


def dumps_queues(queues: Mapping[EntityKind, list[QueueItem]]) -> str:
    """Serialize every queue as one JSON document."""
    body = {
        "version": FORMAT_VERSION,
        "queues": {
            kind.value: [item_to_dict(item) for item in queues.get(kind, [])]
            for kind in EntityKind
        },
    }
    try:
        return json.dumps(body, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as exc:
        raise InvalidArgumentError("Payload is not JSON-serializable", cause=exc) from exc


def loads_queues(raw: str) -> dict[EntityKind, list[QueueItem]]:
    """
    Parse the queue document.

    Missing kinds load as empty queues and malformed entries are skipped.
    Raises ValueError if the document itself is unreadable.
    """
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("queue document must be an object")
    stored = data.get("queues", {})
    if not isinstance(stored, dict):
        raise ValueError("queues must be an object")

    queues: dict[EntityKind, list[QueueItem]] = {kind: [] for kind in EntityKind}
    for kind in EntityKind:
        entries = stored.get(kind.value) or []
        for entry in entries:
            try:
                item = item_from_dict(entry)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed %s entry: %s", kind.value, exc)
                continue
            queues[kind].append(item)
    return queues


def dumps_id_map(id_map: Mapping[str, str]) -> str:
    return json.dumps({"version": FORMAT_VERSION, "id_map": dict(id_map)}, separators=(",", ":"))


def loads_id_map(raw: str) -> dict[str, str]:
    data = json.loads(raw)
    mapping = data.get("id_map") if isinstance(data, dict) else None
    if not isinstance(mapping, dict):
        raise ValueError("id_map must be an object")
    return {str(k): str(v) for k, v in mapping.items()}


def dumps_sync_status(status: SyncStatus) -> str:
    return json.dumps(
        {
            "last_synced_at": to_rfc3339(status.last_synced_at) if status.last_synced_at else None,
            "total_pending": status.total_pending,
        },
        separators=(",", ":"),
    )


def loads_sync_status(raw: str) -> SyncStatus:
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("sync status must be an object")
    last = data.get("last_synced_at")
    return SyncStatus(
        last_synced_at=parse_rfc3339(last) if last else None,
        total_pending=int(data.get("total_pending") or 0),
    )
