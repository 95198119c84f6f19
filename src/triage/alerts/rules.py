# src/triage/alerts/rules.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Sequence

import numpy as np

from triage.utils.market_calendar import is_after_hours
from triage.utils.types import IntervalPoint, Severity, Snapshot

# thresholds (percent unless noted)
MOMENTUM_PCT = 5.0
VOLUME_SPIKE_MULTIPLE = 2.0
VOLUME_CRITICAL_PCT = 300.0
VOLUME_HIGH_PCT = 200.0
AFTER_HOURS_MIN_VOLUME = 1_000_000      # shares
RAPID_CHANGE_PCT = 3.0
RAPID_CRITICAL_PCT = 5.0

@dataclass(slots=True, frozen=True)
class RuleContext:
    """Everything a rule may look at for one symbol in one cycle (read-only)."""
    current: Snapshot
    previous: Optional[Snapshot]
    history: Sequence[IntervalPoint]
    average_volume: float
    now: datetime

def average_volume(history: Sequence[IntervalPoint], fallback: float) -> float:
    """Mean history volume; `fallback` (the snapshot's own volume) when history is empty."""
    if not history:
        return float(fallback)
    return float(np.mean([p.volume for p in history]))

def build_context(
    current: Snapshot,
    previous: Optional[Snapshot],
    history: Sequence[IntervalPoint],
    now: datetime,
) -> RuleContext:
    return RuleContext(
        current=current,
        previous=previous,
        history=history,
        average_volume=average_volume(history, current.volume),
        now=now,
    )

@dataclass(slots=True, frozen=True)
class Rule:
    """
    A detection rule: predicate + severity classifier + description.
    `category` may fall outside the closed taxonomy; alert construction
    remaps those (see engine.normalize_category).
    """
    key: str
    name: str
    category: str
    applies: Callable[[RuleContext], bool]
    severity_of: Callable[[RuleContext], Severity]
    describe: Callable[[RuleContext], str]

# ---------------- momentum (last two 15-min points) ---------------- #

def momentum_pct(ctx: RuleContext) -> Optional[float]:
    if len(ctx.history) < 2:
        return None
    latest, prior = ctx.history[-1], ctx.history[-2]
    if prior.price <= 0.0:
        return None
    return (latest.price - prior.price) / prior.price * 100.0

def _momentum_applies(ctx: RuleContext) -> bool:
    pct = momentum_pct(ctx)
    return pct is not None and abs(pct) > MOMENTUM_PCT

def _momentum_severity(ctx: RuleContext) -> Severity:
    # signed test: a -8% drop is High, not Critical
    pct = momentum_pct(ctx) or 0.0
    return "Critical" if pct > MOMENTUM_PCT else "High"

def _momentum_describe(ctx: RuleContext) -> str:
    pct = momentum_pct(ctx) or 0.0
    return f"Significant price movement detected: {pct:.2f}% change in 15 minutes"

# ---------------- volume spike vs history average ---------------- #

def volume_increase_pct(ctx: RuleContext) -> float:
    avg = ctx.average_volume
    return (ctx.current.volume - avg) / avg * 100.0

def _volume_applies(ctx: RuleContext) -> bool:
    avg = ctx.average_volume
    return avg > 0 and ctx.current.volume > avg * VOLUME_SPIKE_MULTIPLE

def _volume_severity(ctx: RuleContext) -> Severity:
    inc = volume_increase_pct(ctx)
    if inc > VOLUME_CRITICAL_PCT:
        return "Critical"
    if inc > VOLUME_HIGH_PCT:
        return "High"
    return "Medium"

def _volume_describe(ctx: RuleContext) -> str:
    inc = volume_increase_pct(ctx)
    return (
        f"Unusual trading volume detected: {inc:.0f}% above average "
        f"({ctx.current.volume:,} vs {round(ctx.average_volume):,} avg)"
    )

# ---------------- after-hours large trade ---------------- #

def _after_hours_applies(ctx: RuleContext) -> bool:
    return is_after_hours(ctx.now) and ctx.current.volume > AFTER_HOURS_MIN_VOLUME

def _after_hours_describe(ctx: RuleContext) -> str:
    return f"Large after-hours trade detected: {ctx.current.volume:,} shares traded outside market hours"

# ---------------- rapid change vs previous close ---------------- #

def _rapid_applies(ctx: RuleContext) -> bool:
    return ctx.previous is not None and abs(ctx.current.change_percent) > RAPID_CHANGE_PCT

def _rapid_severity(ctx: RuleContext) -> Severity:
    return "Critical" if abs(ctx.current.change_percent) > RAPID_CRITICAL_PCT else "High"

def _rapid_describe(ctx: RuleContext) -> str:
    cp = ctx.current.change_percent
    return f"Rapid price change: {'+' if cp > 0 else ''}{cp:.2f}%"


MOMENTUM_RULE = Rule(
    key="MOM",
    name="intraday_momentum",
    category="Market Manipulation",
    applies=_momentum_applies,
    severity_of=_momentum_severity,
    describe=_momentum_describe,
)

VOLUME_SPIKE_RULE = Rule(
    key="VOL",
    name="volume_spike",
    category="Unusual Activity",
    applies=_volume_applies,
    severity_of=_volume_severity,
    describe=_volume_describe,
)

AFTER_HOURS_RULE = Rule(
    key="AH",
    name="after_hours_large_trade",
    category="Suspicious Trading Pattern",
    applies=_after_hours_applies,
    severity_of=lambda ctx: "High",
    describe=_after_hours_describe,
)

RAPID_CHANGE_RULE = Rule(
    key="RPD",
    name="rapid_price_change",
    category="Market Manipulation",
    applies=_rapid_applies,
    severity_of=_rapid_severity,
    describe=_rapid_describe,
)

DEFAULT_RULES: tuple[Rule, ...] = (
    MOMENTUM_RULE,
    VOLUME_SPIKE_RULE,
    AFTER_HOURS_RULE,
    RAPID_CHANGE_RULE,
)
