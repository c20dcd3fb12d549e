"""Public error exports for offlinesync."""

from __future__ import annotations

from .exceptions import (
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

__all__ = [
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
