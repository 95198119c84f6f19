from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Literal

from triage.alerts.models import Alert
from triage.utils.types import SEVERITY_RANK

SortField = Literal["time", "severity"]
SortOrder = Literal["asc", "desc"]

ALL = "All"

@dataclass(slots=True, frozen=True)
class AlertQuery:
    """
    Dashboard list state: free-text search, severity/status filters, sort.

    search  -> case-insensitive match on alert id, trader name or trader id
    severity/status -> exact match, or "All"
    """
    search: str = ""
    severity: str = ALL
    status: str = ALL
    sort_by: SortField = "time"
    order: SortOrder = "desc"

def matches(alert: Alert, q: AlertQuery) -> bool:
    needle = q.search.strip().lower()
    if needle and not (
        needle in alert.id.lower()
        or needle in alert.trader.name.lower()
        or needle in alert.trader.id.lower()
    ):
        return False
    if q.severity != ALL and alert.severity != q.severity:
        return False
    if q.status != ALL and alert.status != q.status:
        return False
    return True

def _sort_key(sort_by: SortField):
    if sort_by == "severity":
        return lambda a: SEVERITY_RANK.get(a.severity, 0)
    return lambda a: a.timestamp

def filter_and_sort(alerts: Iterable[Alert], q: AlertQuery | None = None) -> list[Alert]:
    q = q or AlertQuery()
    out = [a for a in alerts if matches(a, q)]
    # stable: ties keep collection order in both directions
    out.sort(key=_sort_key(q.sort_by), reverse=(q.order == "desc"))
    return out

def toggle_sort(q: AlertQuery, field: SortField) -> AlertQuery:
    """Same field flips the order; a new field starts descending."""
    if q.sort_by == field:
        return replace(q, order="asc" if q.order == "desc" else "desc")
    return replace(q, sort_by=field, order="desc")
