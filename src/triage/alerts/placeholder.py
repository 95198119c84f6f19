from __future__ import annotations

from datetime import datetime, timedelta, timezone

from triage.alerts.engine import CREATED_ACTION, SYSTEM_USER, TRADER_FIRM
from triage.alerts.models import Alert, TimelineEvent, Trader

# Fixed data set shown when the provider yields nothing (no key, quota hit,
# network down). Ids and timestamps are constant so repeated fallbacks merge
# as no-ops.

_BASE = datetime(2024, 1, 15, 14, 30, tzinfo=timezone.utc)
_REGISTERED = datetime(2020, 1, 1, tzinfo=timezone.utc)

_ROWS = (
    # id suffix, category, severity, trader id, trader name, minutes before base, description
    ("001", "Wash Trading", "Critical", "TRD1001", "James Mitchell", 15,
     "Matched buy and sell orders between related accounts within 2 seconds"),
    ("002", "Spoofing", "High", "TRD1002", "Sarah Chen", 95,
     "Large orders placed and cancelled before execution on both sides of the book"),
    ("003", "Insider Trading", "Critical", "TRD1003", "Michael Rodriguez", 240,
     "Options position opened 30 minutes before earnings announcement"),
    ("004", "Position Limit Breach", "Medium", "TRD1004", "Emily Johnson", 600,
     "Net position exceeded 110% of approved limit"),
    ("005", "Market Manipulation", "Low", "TRD1005", "David Kim", 1440,
     "Marking the close: concentrated buying in the final minute of trading"),
)

def _row_to_alert(row) -> Alert:
    suffix, category, severity, trader_id, name, minutes_ago, description = row
    alert_id = f"ALT-DEMO-{suffix}"
    ts = _BASE - timedelta(minutes=minutes_ago)
    return Alert(
        id=alert_id,
        type=category,
        severity=severity,
        status="New",
        trader=Trader(
            id=trader_id,
            name=name,
            email=f"{name.lower().replace(' ', '.', 1)}@trading.com",
            firm=TRADER_FIRM,
            registration_date=_REGISTERED,
        ),
        timestamp=ts,
        description=description,
        detected_by="Demo Data Set",
        timeline=[
            TimelineEvent(
                id=f"{alert_id}-0",
                timestamp=ts,
                action=CREATED_ACTION,
                user=SYSTEM_USER,
                notes="Placeholder alert (live market data unavailable)",
            )
        ],
    )

def placeholder_alerts() -> list[Alert]:
    """Fresh Alert objects for the placeholder set (callers may mutate them)."""
    return [_row_to_alert(r) for r in _ROWS]
