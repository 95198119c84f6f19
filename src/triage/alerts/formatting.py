from __future__ import annotations
from datetime import datetime
from zoneinfo import ZoneInfo

from triage.alerts.models import Alert

SEVERITY_MARK = {"Critical": "‼", "High": "!", "Medium": "•", "Low": "·"}

def _fmt_ts(ts: datetime, tz_name: str) -> str:
    return ts.astimezone(ZoneInfo(tz_name)).strftime("%b %d %H:%M %Z")  # e.g., Jan 15 09:30 EST

def format_alert_pretty(alert: Alert, tz_name: str = "America/New_York") -> str:
    mark = SEVERITY_MARK.get(alert.severity, "?")
    return (
        f"{mark} [{alert.severity.upper()}] {alert.id} {_fmt_ts(alert.timestamp, tz_name)}  |  "
        f"{alert.type} ({alert.status})  |  "
        f"{alert.trader.name} [{alert.trader.id}]\n"
        f"  {alert.description}"
    )
