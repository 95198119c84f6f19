from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np

from triage.alerts.models import Alert, TimelineEvent
from triage.utils.time import minutes_between

PENDING_STATUSES = frozenset({"New", "In Review"})
RESOLUTION_ACTIONS = frozenset({"Resolved", "Mark Resolved"})

@dataclass(slots=True, frozen=True)
class Metrics:
    """
    Dashboard aggregates. Rates/times are None (undefined) rather than 0
    when there is nothing to measure.
    """
    total_alerts: int
    pending_review: int
    false_positive_rate: Optional[float]        # percent, 1 decimal
    avg_investigation_minutes: Optional[float]  # minutes, 1 decimal

def resolution_event(alert: Alert) -> Optional[TimelineEvent]:
    """First resolving event, else the latest event."""
    for e in alert.timeline:
        if e.action in RESOLUTION_ACTIONS:
            return e
    return alert.last_event

def false_positive_rate(alerts: list[Alert]) -> Optional[float]:
    processed = [a for a in alerts if a.status != "New"]
    if not processed:
        return None
    dismissed = sum(1 for a in processed if a.status == "Dismissed")
    return round(dismissed / len(processed) * 100.0, 1)

def avg_investigation_minutes(alerts: list[Alert]) -> Optional[float]:
    durations = []
    for a in alerts:
        if a.status != "Resolved":
            continue
        ev = resolution_event(a)
        if ev is None:
            continue
        durations.append(minutes_between(a.timestamp, ev.timestamp))
    if not durations:
        return None
    return round(float(np.mean(durations)), 1)

def compute_metrics(alerts: Iterable[Alert]) -> Metrics:
    items = list(alerts)
    return Metrics(
        total_alerts=len(items),
        pending_review=sum(1 for a in items if a.status in PENDING_STATUSES),
        false_positive_rate=false_positive_rate(items),
        avg_investigation_minutes=avg_investigation_minutes(items),
    )
