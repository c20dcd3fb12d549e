"""Gateway decorator that reports every remote write to an audit sink."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from offlinesync.audit import AuditEvent, AuditSink
from offlinesync.errors import OfflineSyncError
from offlinesync.models import EntityKind

from .base import RemoteWriteGateway, WriteOutcome

logger = logging.getLogger(__name__)


class AuditedGateway:
    """
    Wraps a RemoteWriteGateway and notifies `sink` before and after each write.

    Sink failures are logged and dropped; they never change the outcome.
    """

    def __init__(self, inner: RemoteWriteGateway, sink: AuditSink) -> None:
        self._inner = inner
        self._sink = sink

    @property
    def inner(self) -> RemoteWriteGateway:
        return self._inner

    def create(self, kind: EntityKind, payload: Mapping[str, Any]) -> WriteOutcome:
        self._notify(AuditEvent(event_type="request", kind=kind, payload=dict(payload)))
        try:
            outcome = self._inner.create(kind, payload)
        except OfflineSyncError as exc:
            self._notify(
                AuditEvent(
                    event_type="error",
                    kind=kind,
                    success=False,
                    error_type=exc.__class__.__name__,
                    error_message=str(exc),
                )
            )
            raise

        self._notify(
            AuditEvent(
                event_type="response" if outcome.success else "error",
                kind=kind,
                success=outcome.success,
                server_id=outcome.server_id,
                error_type=outcome.error_type,
                error_message=outcome.error_message,
            )
        )
        return outcome

    def _notify(self, event: AuditEvent) -> None:
        try:
            self._sink.record(event)
        except Exception as exc:  # audit must never affect the write
            logger.debug("Audit sink failed: %s", exc)
