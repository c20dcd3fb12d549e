"""HTTP implementation of the Remote Write Gateway (httpx)."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

import httpx

from offlinesync.errors import (
    ApiError,
    HttpErrorInfo,
    NetworkError,
    OfflineSyncError,
    ValidationError,
    map_http_error,
)
from offlinesync.models import EntityKind

from .base import WriteOutcome
from .endpoints import build_body


class HttpWriteGateway:
    """
    Sends queued writes to the backend REST API.

    Notes:
        - Emails go to a separate service (`email_base_url`), defaulting to
          `base_url`.
        - Transport failures map to NetworkError; HTTP errors go through
          map_http_error; a `{"success": false}` body is a rejection.
    """

    def __init__(
        self,
        base_url: str,
        *,
        email_base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._email_base_url = (email_base_url or base_url).rstrip("/")
        self._token = token
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(timeout=timeout)

    def __enter__(self) -> HttpWriteGateway:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def create(self, kind: EntityKind, payload: Mapping[str, Any]) -> WriteOutcome:
        try:
            path, body, uses_email_api = build_body(kind, payload)
            base = self._email_base_url if uses_email_api else self._base_url
            data = self._post(base + path, body)
        except OfflineSyncError as exc:
            return WriteOutcome.failed(exc)
        return WriteOutcome.ok(_extract_id(data))

    # ----------------------------
    # Internals
    # ----------------------------
    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _post(self, url: str, body: dict[str, Any]) -> Any:
        try:
            response = self._client.post(url, json=body, headers=self._headers())
        except httpx.TransportError as exc:
            raise NetworkError("Network error", details={"url": url}, cause=exc) from exc

        if response.status_code >= 400:
            raise map_http_error(_response_to_info(response))

        if not response.content:
            return None
        try:
            data = response.json()
        except ValueError as exc:
            raise ApiError(
                "Response is not valid JSON",
                details={"url": url, "status_code": response.status_code},
                cause=exc,
            ) from exc

        if isinstance(data, dict) and data.get("success") is False:
            raise ValidationError(
                data.get("message") or "Remote rejected the write",
                details={"url": url, "status_code": response.status_code},
            )
        return data


def _extract_id(data: Any) -> Optional[str]:
    """Server id from `id`, `data.id` or `data.data.id`."""
    node = data
    for _ in range(3):
        if not isinstance(node, dict):
            return None
        value = node.get("id")
        if value is not None and not isinstance(value, bool):
            return str(value)
        node = node.get("data")
    return None


def _response_to_info(response: httpx.Response) -> HttpErrorInfo:
    message = None
    details: dict[str, Any] = {"url": str(response.request.url)}
    try:
        payload = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        raw = payload.get("message") or payload.get("error")
        if isinstance(raw, str):
            message = raw
        elif isinstance(raw, dict) and isinstance(raw.get("message"), str):
            message = raw["message"]

    return HttpErrorInfo(
        status_code=response.status_code,
        reason=response.reason_phrase or None,
        message=message,
        details=details,
    )
