"""Timestamps stamped on queued writes and sync summaries (always UTC)."""

from __future__ import annotations

from datetime import datetime, timezone


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """
    Return dt converted to UTC.

    Raises:
        TypeError: dt is not a datetime.
        ValueError: dt is naive; queued timestamps must carry a timezone.
    """
    if not isinstance(dt, datetime):
        raise TypeError(f"expected datetime, got {type(dt).__name__}")
    if dt.tzinfo is None or dt.utcoffset() is None:
        raise ValueError("naive datetime; queued timestamps must be timezone-aware")
    return dt.astimezone(timezone.utc)


def to_rfc3339(dt: datetime) -> str:
    """Stored form: UTC, microsecond precision, 'Z' suffix."""
    return ensure_utc(dt).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def parse_rfc3339(value: str) -> datetime:
    """
    Parse a stored timestamp back into an aware UTC datetime.

    Accepts the 'Z' suffix or an explicit offset, with or without fractions.
    A value without any offset is rejected rather than guessed.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError("timestamp must be a non-empty string")
    text = value.strip()
    if text[-1] in "Zz":
        text = text[:-1] + "+00:00"  # fromisoformat rejects 'Z' before 3.11
    return ensure_utc(datetime.fromisoformat(text))
