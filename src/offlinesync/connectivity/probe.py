"""Reachability probes feeding the connectivity monitor."""

from __future__ import annotations

from typing import Optional, Protocol

import httpx


class ConnectivityProbe(Protocol):
    def is_reachable(self) -> bool: ...


class HttpConnectivityProbe:
    """Backend is reachable iff GET {base_url}{path} answers 200."""

    def __init__(
        self,
        base_url: str,
        *,
        path: str = "/health",
        timeout: float = 2.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._url = base_url.rstrip("/") + path
        self._timeout = timeout
        self._client = client

    def is_reachable(self) -> bool:
        try:
            if self._client is not None:
                response = self._client.get(self._url, timeout=self._timeout)
            else:
                response = httpx.get(self._url, timeout=self._timeout)
        except httpx.HTTPError:
            return False
        return response.status_code == 200
