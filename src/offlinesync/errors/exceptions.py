"""Exception hierarchy and HTTP error mapping for offlinesync."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence


class OfflineSyncError(Exception):
    """
    Base exception for offlinesync.

    Attributes:
        details: Optional structured information (e.g., HTTP status, kind).
        cause: Optional original exception that triggered this error.
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.details = details or {}
        self.cause = cause


class InvalidArgumentError(OfflineSyncError):
    """Raised when caller input is invalid (unknown kind, bad reference, etc.)."""


class InvalidStateError(OfflineSyncError):
    """Raised when an invariant would be broken (id rebinding, dependency cycle)."""


class UnresolvedReferenceError(OfflineSyncError):
    """Raised when a payload references a local_id with no server id yet."""

    def __init__(
        self,
        local_ids: Sequence[str],
        *,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        ids = list(local_ids)
        merged = {"local_ids": ids}
        if details:
            merged.update(details)
        super().__init__(f"Unresolved local reference(s): {', '.join(ids)}", details=merged)
        self.local_ids = ids


class PersistenceError(OfflineSyncError):
    """Raised when durable storage cannot be read or written."""


class NetworkError(OfflineSyncError):
    """Raised when no network is reachable or the transport fails."""


class RemoteRejectedError(OfflineSyncError):
    """Base for definitive failures returned by the remote service."""


class ValidationError(RemoteRejectedError):
    """Raised when the remote rejects the payload (HTTP 400/422)."""


class AuthError(RemoteRejectedError):
    """Raised when authentication fails (HTTP 401)."""


class PermissionError(RemoteRejectedError):
    """Raised when access is denied (HTTP 403)."""


class NotFoundError(RemoteRejectedError):
    """Raised when a referenced remote resource is not found (HTTP 404)."""


class ConflictError(RemoteRejectedError):
    """Raised when the write conflicts with remote state (HTTP 409/412)."""


class RateLimitError(RemoteRejectedError):
    """Raised when rate-limited (HTTP 429)."""


class ApiError(OfflineSyncError):
    """Raised for unclassified remote errors (5xx, unknown 4xx, bad responses)."""


@dataclass(frozen=True)
class HttpErrorInfo:
    """What the gateway knows about a failed HTTP response."""

    status_code: int
    reason: str | None = None
    message: str | None = None
    details: dict[str, Any] | None = None


# Definitive rejections: the write stays queued and is reported, but is never
# treated as a connectivity problem.
_REJECTIONS: dict[int, type[RemoteRejectedError]] = {
    400: ValidationError,
    422: ValidationError,
    401: AuthError,
    403: PermissionError,
    404: NotFoundError,
    409: ConflictError,
    412: ConflictError,
    429: RateLimitError,
}


def map_http_error(
    info: HttpErrorInfo,
    *,
    cause: Optional[BaseException] = None,
) -> OfflineSyncError:
    """
    Turn a failed HTTP response into an offlinesync exception.

    Known 4xx statuses map to a RemoteRejectedError subclass (see
    _REJECTIONS); 5xx and anything unrecognized become ApiError. The status
    code and reason are always present in `details`.
    """
    details: dict[str, Any] = dict(info.details or {})
    details.update(status_code=info.status_code, reason=info.reason)
    error_cls: type[OfflineSyncError] = _REJECTIONS.get(info.status_code, ApiError)
    return error_cls(
        info.message or f"HTTP error {info.status_code}",
        details=details,
        cause=cause,
    )
