"""Audit trail of remote write attempts (passive observer)."""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal, Optional, Protocol

from offlinesync.models import EntityKind
from offlinesync.queue.codec import encode_value
from offlinesync.util.time import now_utc

AuditEventType = Literal["request", "response", "error"]

REDACTED = "[REDACTED]"

SENSITIVE_FIELDS: tuple[str, ...] = ("senha", "password", "token", "authorization", "secret")


@dataclass(frozen=True, slots=True)
class AuditEvent:
    event_type: AuditEventType
    kind: EntityKind

    payload: Optional[dict[str, Any]] = None
    success: Optional[bool] = None
    server_id: Optional[str] = None
    error_type: Optional[str] = None
    error_message: Optional[str] = None
    timestamp: datetime = field(default_factory=now_utc)


class AuditSink(Protocol):
    def record(self, event: AuditEvent) -> None: ...


def sanitize_data(value: Any) -> Any:
    """
    Redact sensitive fields, recursively.

    A key is sensitive if it contains any of SENSITIVE_FIELDS
    (case-insensitive). Non-container values are returned unchanged.
    """
    if isinstance(value, Mapping):
        result: dict[str, Any] = {}
        for key, v in value.items():
            key_lower = str(key).lower()
            if any(f in key_lower for f in SENSITIVE_FIELDS):
                result[key] = REDACTED
            else:
                result[key] = sanitize_data(v)
        return result
    if isinstance(value, (list, tuple)):
        return [sanitize_data(v) for v in value]
    return value


class LoggingAuditSink:
    """Keeps the most recent events in memory and forwards them to a logger."""

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        *,
        max_events: int = 1000,
    ) -> None:
        self._logger = logger or logging.getLogger("offlinesync.audit")
        self._events: deque[AuditEvent] = deque(maxlen=max_events)
        self._lock = threading.Lock()

    def record(self, event: AuditEvent) -> None:
        if event.payload is not None:
            event = AuditEvent(
                event_type=event.event_type,
                kind=event.kind,
                payload=sanitize_data(encode_value(event.payload)),
                success=event.success,
                server_id=event.server_id,
                error_type=event.error_type,
                error_message=event.error_message,
                timestamp=event.timestamp,
            )
        with self._lock:
            self._events.append(event)

        self._logger.info(
            "%s %s success=%s server_id=%s error=%s payload=%s",
            event.event_type,
            event.kind.value,
            event.success,
            event.server_id,
            event.error_message,
            event.payload,
        )

    def events(self) -> list[AuditEvent]:
        with self._lock:
            return list(self._events)

    def clear(self) -> None:
        with self._lock:
            self._events.clear()
