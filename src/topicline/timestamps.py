"""ISO-8601 timestamp helpers.

Timestamps are stored and exchanged as strings. Ordering and equality go
through parse_timestamp() so that ``...Z`` and ``...+00:00`` spellings of
the same instant compare equal.
"""

from __future__ import annotations

from datetime import datetime, timezone

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def utc_now_iso() -> str:
    """Current UTC time, millisecond precision, ``Z`` suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO-8601 string; naive values are taken as UTC. None if unparseable."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def timestamp_key(value: str | None) -> tuple[int, datetime, str]:
    """Sort key: missing/unparseable values first, then chronological."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return (0, _EPOCH, value or "")
    return (1, parsed, "")


def same_instant(a: str | None, b: str | None) -> bool:
    if a is None or b is None:
        return False
    pa, pb = parse_timestamp(a), parse_timestamp(b)
    if pa is None or pb is None:
        return a == b
    return pa == pb
