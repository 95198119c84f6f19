from __future__ import annotations

import time
from datetime import datetime, timezone

UTC = timezone.utc

# --- clock helpers ---

def utc_now() -> datetime:
    """Current instant as an aware UTC datetime."""
    return datetime.now(tz=UTC)

def local_now() -> datetime:
    """Current instant in the process's local time zone (aware)."""
    return datetime.now().astimezone()

def utc_now_ms() -> int:
    """Unix epoch milliseconds (int)."""
    return time.time_ns() // 1_000_000

def epoch_ms(dt: datetime) -> int:
    """Aware datetime -> epoch milliseconds."""
    if dt.tzinfo is None:
        raise ValueError("datetime must be timezone-aware")
    return int(dt.timestamp() * 1000)

# --- ISO-8601 ---

def to_iso(dt: datetime) -> str:
    """
    Aware datetime -> '2024-02-01T14:32:01.123Z' (UTC, millisecond precision).
    """
    if dt.tzinfo is None:
        raise ValueError("datetime must be timezone-aware")
    u = dt.astimezone(UTC)
    return u.strftime("%Y-%m-%dT%H:%M:%S.") + f"{u.microsecond // 1000:03d}Z"

def parse_iso(s: str) -> datetime:
    """ISO-8601 string (with 'Z' or offset) -> aware UTC datetime."""
    dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)

def minutes_between(start: datetime, end: datetime) -> float:
    """Signed elapsed minutes from start to end."""
    return (end - start).total_seconds() / 60.0
