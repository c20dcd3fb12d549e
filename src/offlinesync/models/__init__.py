"""Public model exports for offlinesync."""

from __future__ import annotations

from .dependencies import DEPENDENCIES, DependencyGraph, allowed_reference_kinds
from .kinds import IDENTITY_KINDS, EmailType, EntityKind, coerce_kind, produces_identity
from .queue_item import ItemStatus, QueueItem, freeze_payload
from .refs import LocalRef, Reference, ServerRef, iter_local_refs, ref_matches
from .results import (
    ItemOutcome,
    ItemResult,
    SubmitOutcome,
    SubmitResult,
    SyncOutcome,
    SyncResult,
    SyncStatus,
)

__all__ = [
    "DEPENDENCIES",
    "DependencyGraph",
    "allowed_reference_kinds",
    "EntityKind",
    "EmailType",
    "IDENTITY_KINDS",
    "coerce_kind",
    "produces_identity",
    "LocalRef",
    "ServerRef",
    "Reference",
    "iter_local_refs",
    "ref_matches",
    "ItemStatus",
    "QueueItem",
    "freeze_payload",
    "ItemOutcome",
    "SyncOutcome",
    "SubmitOutcome",
    "ItemResult",
    "SyncResult",
    "SubmitResult",
    "SyncStatus",
]
