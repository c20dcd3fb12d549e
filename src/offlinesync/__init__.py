"""offlinesync public API."""

from __future__ import annotations

from offlinesync.audit import AuditEvent, AuditSink, LoggingAuditSink, sanitize_data
from offlinesync.connectivity import (
    ConnectivityMonitor,
    ConnectivityState,
    HttpConnectivityProbe,
    MonitorPolicy,
)
from offlinesync.errors import (
    ApiError,
    AuthError,
    ConflictError,
    HttpErrorInfo,
    InvalidArgumentError,
    InvalidStateError,
    NetworkError,
    NotFoundError,
    OfflineSyncError,
    PermissionError,
    PersistenceError,
    RateLimitError,
    RemoteRejectedError,
    UnresolvedReferenceError,
    ValidationError,
    map_http_error,
)
from offlinesync.gateway import (
    AuditedGateway,
    HttpWriteGateway,
    RemoteWriteGateway,
    WriteOutcome,
)
from offlinesync.identity import IdentityResolver
from offlinesync.manager import OfflineSyncManager
from offlinesync.models import (
    DEPENDENCIES,
    EmailType,
    EntityKind,
    ItemResult,
    LocalRef,
    QueueItem,
    ServerRef,
    SubmitResult,
    SyncResult,
    SyncStatus,
)
from offlinesync.queue import FileStorage, KeyValueStorage, LocalQueueStore, MemoryStorage
from offlinesync.sync import SyncOrchestrator, build_sync_order

__all__ = [
    # High-level
    "OfflineSyncManager",
    # Core components
    "LocalQueueStore",
    "IdentityResolver",
    "SyncOrchestrator",
    "ConnectivityMonitor",
    "ConnectivityState",
    "MonitorPolicy",
    "build_sync_order",
    # Storage
    "KeyValueStorage",
    "MemoryStorage",
    "FileStorage",
    # Gateway / audit
    "RemoteWriteGateway",
    "WriteOutcome",
    "HttpWriteGateway",
    "AuditedGateway",
    "HttpConnectivityProbe",
    "AuditSink",
    "AuditEvent",
    "LoggingAuditSink",
    "sanitize_data",
    # Models
    "EntityKind",
    "EmailType",
    "DEPENDENCIES",
    "LocalRef",
    "ServerRef",
    "QueueItem",
    "ItemResult",
    "SyncResult",
    "SubmitResult",
    "SyncStatus",
    # Errors
    "OfflineSyncError",
    "InvalidArgumentError",
    "InvalidStateError",
    "UnresolvedReferenceError",
    "PersistenceError",
    "NetworkError",
    "RemoteRejectedError",
    "ValidationError",
    "AuthError",
    "PermissionError",
    "NotFoundError",
    "ConflictError",
    "RateLimitError",
    "ApiError",
    "HttpErrorInfo",
    "map_http_error",
]
