from __future__ import annotations

from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from triage.utils.time import local_now

# Coarse session bounds used by the after-hours rule (hour granularity).
SESSION_OPEN_HOUR = 9
SESSION_CLOSE_HOUR = 16

def _now_in(tz_name: Optional[str]) -> datetime:
    if tz_name:
        return datetime.now(tz=ZoneInfo(tz_name))
    return local_now()

def is_after_hours(now: Optional[datetime] = None, tz_name: Optional[str] = None) -> bool:
    """
    True when the wall-clock hour is before 09:00 or at/after 16:00.

    `now` is read as-is (its own tzinfo, or naive local time). When omitted,
    the current time is taken in `tz_name`, or in the process's local zone.
    """
    if now is None:
        now = _now_in(tz_name)
    elif tz_name and now.tzinfo is not None:
        now = now.astimezone(ZoneInfo(tz_name))
    hour = now.hour
    return hour < SESSION_OPEN_HOUR or hour >= SESSION_CLOSE_HOUR
