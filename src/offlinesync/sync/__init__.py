"""Dependency-ordered replay of the offline queues."""

from __future__ import annotations

from .orchestrator import SyncOrchestrator
from .ordering import build_sync_order

__all__ = [
    "SyncOrchestrator",
    "build_sync_order",
]
