from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Optional

# ---- ingest-level primitives ----

@dataclass(slots=True, frozen=True)
class Snapshot:
    """
    One instrument's observed quote at a point in time.
    A refresh cycle builds new snapshots; old ones are never mutated.
    """
    symbol: str
    price: float
    volume: int
    change: float
    change_percent: float       # signed, e.g. -3.25 for -3.25%
    timestamp: datetime         # aware, UTC
    previous_close: Optional[float] = None

@dataclass(slots=True, frozen=True)
class IntervalPoint:
    """One 15-minute sub-snapshot of an interval history (oldest -> newest)."""
    price: float
    volume: int
    timestamp: datetime

# ---- alerting domain ----

AlertCategory = Literal[
    "Market Manipulation",
    "Wash Trading",
    "Spoofing",
    "Insider Trading",
    "Position Limit Breach",
]

Severity = Literal["Critical", "High", "Medium", "Low"]

Status = Literal["New", "In Review", "Escalated", "Dismissed", "Resolved"]

ALERT_CATEGORIES: tuple[str, ...] = (
    "Market Manipulation",
    "Wash Trading",
    "Spoofing",
    "Insider Trading",
    "Position Limit Breach",
)

SEVERITY_RANK: dict[str, int] = {"Critical": 4, "High": 3, "Medium": 2, "Low": 1}

TERMINAL_STATUSES = frozenset({"Dismissed", "Resolved"})

KeyCheck = Literal["ok", "invalid", "rate_limited", "unreachable"]
