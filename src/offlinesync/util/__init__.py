from .ids import LOCAL_ID_PREFIX, looks_like_local_id, new_local_id, new_uuid
from .time import ensure_utc, now_utc, parse_rfc3339, to_rfc3339

__all__ = [
    "LOCAL_ID_PREFIX",
    "new_uuid",
    "new_local_id",
    "looks_like_local_id",
    "now_utc",
    "ensure_utc",
    "parse_rfc3339",
    "to_rfc3339",
]
