from __future__ import annotations

import re
import uuid

LOCAL_ID_PREFIX = "local_"

_LOCAL_ID_RE = re.compile(r"^local_[0-9a-f]{32}$")


def new_uuid() -> str:
    """Generate a UUID4 string."""
    return str(uuid.uuid4())


def new_local_id() -> str:
    """Generate a local_id for a write that has no server identity yet."""
    return f"{LOCAL_ID_PREFIX}{uuid.uuid4().hex}"


def looks_like_local_id(value: object) -> bool:
    """Return True if value has the shape produced by new_local_id()."""
    return isinstance(value, str) and bool(_LOCAL_ID_RE.match(value))
