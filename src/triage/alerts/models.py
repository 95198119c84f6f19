from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from triage.utils.time import parse_iso, to_iso
from triage.utils.types import AlertCategory, Severity, Status

@dataclass(slots=True, frozen=True)
class Trader:
    id: str
    name: str
    email: str
    firm: str
    registration_date: datetime

@dataclass(slots=True, frozen=True)
class TimelineEvent:
    id: str
    timestamp: datetime
    action: str          # "Alert Created" or a workflow action label
    user: str
    notes: Optional[str] = None

@dataclass(slots=True)
class Alert:
    """
    A compliance alert. Created by the rule engine with a single
    "Alert Created" event; afterwards only the workflow touches
    status / investigation_notes / timeline (append-only).
    """
    id: str
    type: AlertCategory
    severity: Severity
    status: Status
    trader: Trader
    timestamp: datetime
    description: str
    detected_by: str
    investigation_notes: str = ""
    timeline: list[TimelineEvent] = field(default_factory=list)

    @property
    def last_event(self) -> Optional[TimelineEvent]:
        return self.timeline[-1] if self.timeline else None

# ---- dict codec (camelCase keys, same shape as the dashboard export) ----

def _event_to_dict(e: TimelineEvent) -> dict[str, Any]:
    d: dict[str, Any] = {
        "id": e.id,
        "timestamp": to_iso(e.timestamp),
        "action": e.action,
        "user": e.user,
    }
    if e.notes:
        d["notes"] = e.notes
    return d

def alert_to_dict(a: Alert) -> dict[str, Any]:
    return {
        "id": a.id,
        "type": a.type,
        "severity": a.severity,
        "status": a.status,
        "trader": {
            "id": a.trader.id,
            "name": a.trader.name,
            "email": a.trader.email,
            "firm": a.trader.firm,
            "registrationDate": to_iso(a.trader.registration_date),
        },
        "timestamp": to_iso(a.timestamp),
        "description": a.description,
        "detectedBy": a.detected_by,
        "investigationNotes": a.investigation_notes,
        "timeline": [_event_to_dict(e) for e in a.timeline],
    }

def alert_from_dict(d: dict[str, Any]) -> Alert:
    t = d["trader"]
    return Alert(
        id=d["id"],
        type=d["type"],
        severity=d["severity"],
        status=d["status"],
        trader=Trader(
            id=t["id"],
            name=t["name"],
            email=t["email"],
            firm=t["firm"],
            registration_date=parse_iso(t["registrationDate"]),
        ),
        timestamp=parse_iso(d["timestamp"]),
        description=d["description"],
        detected_by=d["detectedBy"],
        investigation_notes=d.get("investigationNotes", ""),
        timeline=[
            TimelineEvent(
                id=e["id"],
                timestamp=parse_iso(e["timestamp"]),
                action=e["action"],
                user=e["user"],
                notes=e.get("notes"),
            )
            for e in d.get("timeline", [])
        ],
    )
