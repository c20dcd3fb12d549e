"""Remote Write Gateway contract consumed by the sync orchestrator."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from offlinesync.errors import NetworkError, OfflineSyncError
from offlinesync.models import EntityKind


@dataclass(frozen=True, slots=True)
class WriteOutcome:
    """Outcome of one remote write."""

    success: bool
    server_id: Optional[str] = None

    error_type: Optional[str] = None
    error_message: Optional[str] = None
    error_details: Optional[dict[str, Any]] = None
    network_failure: bool = False

    @classmethod
    def ok(cls, server_id: Optional[str] = None) -> WriteOutcome:
        return cls(success=True, server_id=server_id)

    @classmethod
    def failed(cls, error: OfflineSyncError | str) -> WriteOutcome:
        if isinstance(error, str):
            return cls(success=False, error_type="RemoteRejectedError", error_message=error)
        return cls(
            success=False,
            error_type=error.__class__.__name__,
            error_message=str(error),
            error_details=dict(error.details) or None,
            network_failure=isinstance(error, NetworkError),
        )

    @property
    def is_network_failure(self) -> bool:
        """True when the write never reached the remote (safe to queue and retry)."""
        return not self.success and self.network_failure


class RemoteWriteGateway(Protocol):
    """Transport-agnostic remote write: one call per queued item."""

    def create(self, kind: EntityKind, payload: Mapping[str, Any]) -> WriteOutcome: ...
