"""Remote Write Gateway contract and adapters."""

from __future__ import annotations

from .audited import AuditedGateway
from .base import RemoteWriteGateway, WriteOutcome
from .http_gateway import HttpWriteGateway

__all__ = [
    "RemoteWriteGateway",
    "WriteOutcome",
    "HttpWriteGateway",
    "AuditedGateway",
]
